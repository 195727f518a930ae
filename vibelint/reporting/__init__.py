"""Human-readable rendering of analysis reports."""

from .markdown import render_markdown, write_markdown_report

__all__ = ["render_markdown", "write_markdown_report"]
