"""Extract a title and slide sections from generated outline text."""

from __future__ import annotations

import re
from typing import List, Optional, Tuple

_TITLE_RE = re.compile(r"<TITLE>(.*?)</TITLE>", re.IGNORECASE | re.DOTALL)
_SLIDE_HEADING_RE = re.compile(r"^#\s*Slide\s+\d+\s*:", re.IGNORECASE | re.MULTILINE)


def parse_outline(text: str) -> Tuple[Optional[str], List[str]]:
	"""Return the presentation title (if tagged) and one string per slide section."""
	text = text or ""
	match = _TITLE_RE.search(text)
	title = match.group(1).strip() if match else None

	starts = [m.start() for m in _SLIDE_HEADING_RE.finditer(text)]
	sections: List[str] = []
	for idx, start in enumerate(starts):
		end = starts[idx + 1] if idx + 1 < len(starts) else len(text)
		section = text[start:end].strip()
		if section:
			sections.append(section)
	return title, sections
