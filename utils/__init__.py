"""Report generation."""

from .markdown_generator import MarkdownGenerator, format_minutes

__all__ = [
    "MarkdownGenerator",
    "format_minutes",
]
