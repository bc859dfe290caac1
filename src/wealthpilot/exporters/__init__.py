"""Exporters package — convert plans to output formats."""
from wealthpilot.exporters.markdown import render_markdown

__all__ = ["render_markdown"]
