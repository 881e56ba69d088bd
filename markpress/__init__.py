"""
markpress: Markdown to inline-styled HTML for rich-text publishing platforms.

This package can be used both as a CLI tool and as a library.

CLI Usage:
    markpress post.md --theme conglv --theme-system breeze

Library Usage:
    from pathlib import Path
    from markpress import ParseOptions, render

    content = Path("post.md").read_text()
    html = render(content, ParseOptions.from_ids("conglv", theme_system="breeze"))
"""

from .adapters import get_copy_adapter, register_copy_adapter
from .exceptions import FormulaError, MarkpressError, UnknownPresetError
from .formulas import render_formula
from .highlight import highlight_code
from .inline import format_inline
from .models import ParseOptions
from .parser import MarkdownParser, apply_styles, parse_markdown, render
from .slugify import generate_slug
from .themes import create_custom_theme, get_code_style, get_color_theme, get_theme_system

__version__ = "0.1.0"

__all__ = [
    # Core functionality
    "render",
    "parse_markdown",
    "apply_styles",
    "MarkdownParser",
    "format_inline",
    "highlight_code",
    "render_formula",
    "generate_slug",
    # Options and presets
    "ParseOptions",
    "get_color_theme",
    "get_code_style",
    "get_theme_system",
    "create_custom_theme",
    # Copy adapters
    "get_copy_adapter",
    "register_copy_adapter",
    # Exceptions
    "MarkpressError",
    "FormulaError",
    "UnknownPresetError",
    # Version
    "__version__",
]
