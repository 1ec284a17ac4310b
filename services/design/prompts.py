"""Prompt helpers for design composition."""

from __future__ import annotations


def enhanced_prompt(prompt: str) -> str:
	"""Wrap a user prompt for the text-only fallback request."""
	return (
		f"Create a professional design visualization. {prompt.strip()}. "
		"Generate a high-quality, realistic image with proper lighting, composition, "
		"and professional photography style."
	)
