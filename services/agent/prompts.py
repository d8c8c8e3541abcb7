"""Prompt helpers for the presentation agent."""

from __future__ import annotations

from typing import Iterable


def agent_system_prompt() -> str:
	"""Return the default presentation designer system prompt."""
	return (
		"You are an expert presentation designer AI assistant for Slide Forge.\n\n"
		"Your capabilities:\n"
		"1. Generate structured presentation outlines\n"
		"2. Search the web for current information using the web_search tool\n"
		"3. Read and analyze uploaded files\n"
		"4. Create comprehensive slide content with visual descriptions\n"
		"5. Provide iterative refinement based on feedback\n\n"
		"When generating outlines:\n"
		"- Create clear, engaging slide titles\n"
		"- Include detailed content for each slide\n"
		"- Add visual descriptions for AI image generation\n"
		"- Use web search to enhance with current data when helpful\n\n"
		"Output format for presentations:\n"
		"<TITLE>Presentation Title</TITLE>\n\n"
		"# Slide 1: Title\n"
		"- Point 1\n"
		"- Point 2\n"
		"...\n\n"
		"Guidelines:\n"
		"- Be concise but comprehensive\n"
		"- Focus on clarity and visual appeal\n"
		"- Suggest diverse slide layouts\n"
		"- Include detailed image descriptions (10+ words each)"
	)


def outline_generation_prompt(topic: str, number_of_slides: int, language: str, enable_web_search: bool) -> str:
	"""Return the turn text asking for a presentation outline."""
	search_line = (
		"- Use the web_search tool to find current, relevant information to enhance the content\n"
		if enable_web_search
		else ""
	)
	return (
		f'Create a presentation outline on the topic: "{topic}"\n\n'
		"Requirements:\n"
		f"- Generate exactly {number_of_slides} main topics/slides\n"
		f"- Use {language} language\n"
		"- Each topic should have 2-3 bullet points\n"
		"- Include a clear, engaging title for the presentation\n"
		f"{search_line}\n"
		"Format:\n"
		"<TITLE>Presentation Title</TITLE>\n\n"
		"# Slide 1: [Title]\n"
		"- Point 1\n"
		"- Point 2\n\n"
		"# Slide 2: [Title]\n"
		"- Point 1\n"
		"- Point 2\n\n"
		"...\n\n"
		"Remember to make it engaging and informative!"
	)


def slides_generation_prompt(outline: Iterable[str], title: str, language: str) -> str:
	"""Return the turn text asking for slide XML built from an outline."""
	outline_text = "\n\n".join(outline)
	return (
		"Based on the following presentation outline, generate complete slide content in XML format.\n\n"
		f"Presentation Title: {title}\n"
		f"Language: {language}\n\n"
		f"Outline:\n{outline_text}\n\n"
		"Generate slides using Slide Forge XML format with these components:\n"
		"- TITLE_COVER: Title slide with main title and subtitle\n"
		"- BULLETS: Bullet points layout\n"
		"- COLUMNS: Two-column layout\n"
		"- ICONS: Icon-based layout\n"
		"- QUOTE: Quote/testimonial layout\n"
		"- IMAGE_FULL: Full-width image with text\n\n"
		"For each slide:\n"
		"1. Use diverse layouts (vary between BULLETS, COLUMNS, ICONS, etc.)\n"
		"2. Include detailed image queries (10+ words describing the visual)\n"
		"3. Add comprehensive content (not just placeholders)\n"
		f"4. Ensure text is in {language} language\n\n"
		"Wrap every slide in <SLIDE> inside a single <SLIDES> root, with <LAYOUT>, <TITLE>, "
		"layout-specific content and an <IMAGE_QUERY> per slide.\n\n"
		"Generate complete slides now in XML format."
	)
