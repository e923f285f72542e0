"""Rich renderers for CLI output."""

from .estimate_renderer import render_categorization, render_estimate

__all__ = ["render_estimate", "render_categorization"]
