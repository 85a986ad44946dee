"""Text cleanup for generated assistant replies."""
from __future__ import annotations
import re

__all__ = ["sanitize_output"]


def sanitize_output(text: str) -> str:
    """Strip markdown emphasis, bullets and wrapping quotes from model output."""
    text = re.sub(r"\*\*(.*?)\*\*", r"\1", text)
    text = re.sub(r"\*(.*?)\*", r"\1", text)
    text = re.sub(r"^\s*[•\-]\s+", "", text, flags=re.MULTILINE)
    text = re.sub(r'"([^"]+)"', r"\1", text)
    text = re.sub(r"\n\s*\n", "\n", text)
    return text.strip()
