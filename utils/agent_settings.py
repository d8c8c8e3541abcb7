"""Environment-driven settings for the agent subsystem."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import List

from models.agent_config import DEFAULT_ALLOWED_TOOLS, DEFAULT_MAX_TURNS, AgentConfig
from services.agent.conversation_process import DEFAULT_AGENT_MODEL

_TRUE_VALUES = {"1", "true", "yes", "on"}


def _env_number(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return float(raw)
    except ValueError as exc:
        raise RuntimeError(f"{name}={raw!r} must be a number.") from exc


@dataclass
class AgentSettings:
    """Agent options read from the environment (see `from_env`)."""

    enabled: bool = True
    model: str = DEFAULT_AGENT_MODEL
    max_turns: int = DEFAULT_MAX_TURNS
    allowed_tools: List[str] = field(default_factory=lambda: list(DEFAULT_ALLOWED_TOOLS))
    session_timeout_seconds: float = 3_600.0
    reaper_interval_seconds: float = 60.0
    archive_retention_days: int = 30

    @classmethod
    def from_env(cls) -> "AgentSettings":
        """
        Build settings from ENABLE_AGENT, AGENT_MODEL, AGENT_MAX_TURNS,
        AGENT_ALLOWED_TOOLS, AGENT_SESSION_TIMEOUT (milliseconds),
        AGENT_REAPER_INTERVAL (seconds) and AGENT_ARCHIVE_RETENTION_DAYS.
        """
        enabled_raw = os.getenv("ENABLE_AGENT", "true")
        tools_raw = os.getenv("AGENT_ALLOWED_TOOLS")
        if tools_raw is None:
            tools = list(DEFAULT_ALLOWED_TOOLS)
        else:
            tools = [name.strip() for name in tools_raw.split(",") if name.strip()]

        max_turns = int(_env_number("AGENT_MAX_TURNS", DEFAULT_MAX_TURNS))
        if max_turns < 1:
            raise RuntimeError("AGENT_MAX_TURNS must be at least 1.")

        return cls(
            enabled=enabled_raw.strip().lower() in _TRUE_VALUES,
            model=os.getenv("AGENT_MODEL") or DEFAULT_AGENT_MODEL,
            max_turns=max_turns,
            allowed_tools=tools,
            session_timeout_seconds=_env_number("AGENT_SESSION_TIMEOUT", 3_600_000) / 1000.0,
            reaper_interval_seconds=_env_number("AGENT_REAPER_INTERVAL", 60.0),
            archive_retention_days=int(_env_number("AGENT_ARCHIVE_RETENTION_DAYS", 30)),
        )

    def agent_config(self) -> AgentConfig:
        """Return the default per-session configuration."""
        return AgentConfig(allowed_tools=list(self.allowed_tools), max_turns=self.max_turns)
