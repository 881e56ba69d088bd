"""
Renders a Markdown file to inline-styled HTML.
The HTML is printed to stdout, or written atomically to the file given with `--output`.
"""

from __future__ import annotations

import logging
from pathlib import Path

import click
from .config import ConfigError, build_config
from .filesystem import (
    collect_file_stat,
    enforce_file_size,
    get_max_file_size,
    normalize_filepath,
    safe_read,
    write_output,
)
from .parser import render
from .themes import CODE_STYLES, COLOR_THEMES, FONT_FAMILY_MAP, THEME_SYSTEMS

__all__ = ["cli"]


@click.command()
@click.version_option()
@click.option("--theme", "color_theme", type=click.Choice(sorted(COLOR_THEMES)), help="Color theme")
@click.option("--code-style", type=click.Choice(sorted(CODE_STYLES)), help="Code block style")
@click.option("--theme-system", type=click.Choice(sorted(THEME_SYSTEMS)), help="Layout system")
@click.option("--primary", help="Custom primary color (hex), replaces the color theme")
@click.option("--font-family", type=click.Choice(list(FONT_FAMILY_MAP)), help="Font family")
@click.option("--font-size", type=int, help="Base font size in pixels")
@click.option("--letter-spacing", type=float, help="Letter spacing in pixels")
@click.option("--line-height", type=float, help="Line height multiplier")
@click.option("--preview", is_flag=True, help="Render for preview instead of export")
@click.option(
    "--output",
    "-o",
    type=click.Path(dir_okay=False, writable=True),
    help="Write the HTML to this file instead of stdout",
)
@click.option("--verbose", "-v", is_flag=True, help="Log debug information to stderr")
@click.argument("filepath", type=click.Path(exists=True, dir_okay=False))
def cli(
    filepath: str,
    color_theme: str | None = None,
    code_style: str | None = None,
    theme_system: str | None = None,
    primary: str | None = None,
    font_family: str | None = None,
    font_size: int | None = None,
    letter_spacing: float | None = None,
    line_height: float | None = None,
    preview: bool = False,
    output: str | None = None,
    verbose: bool = False,
):
    """
    Entry point for rendering a Markdown file to HTML.

    Args:
        filepath: Path to the Markdown file to render.
        color_theme: Override for the color theme preset.
        code_style: Override for the code block style preset.
        theme_system: Override for the layout system preset.
        primary: Custom primary color; derives a whole color theme from it.
        font_family: Override for the font family key.
        font_size: Override for the base font size.
        letter_spacing: Override for the letter spacing.
        line_height: Override for the line height multiplier.
        preview: Render for the in-app preview instead of rich-text export.
        output: Destination file; stdout when omitted.
        verbose: Enable debug logging.

    Returns:
        None.

    Raises:
        click.BadParameter: If CLI parameters reference invalid paths or contain
            invalid configuration values.
        click.ClickException: If the file cannot be read, exceeds the size
            limit, or the output cannot be written.

    Examples:
        markpress post.md --theme conglv --theme-system breeze -o post.html
    """
    if verbose:
        logging.basicConfig(level=logging.DEBUG)

    base_dir = Path.cwd().resolve()
    try:
        filepath = normalize_filepath(filepath, base_dir)
    except ValueError as error:
        raise click.BadParameter(str(error)) from error
    try:
        config = build_config(
            filepath.parent,
            color_theme=color_theme,
            code_style=code_style,
            theme_system=theme_system,
            primary=primary,
            font_family=font_family,
            font_size=font_size,
            letter_spacing=letter_spacing,
            line_height=line_height,
            preview=preview or None,
        )
    except ConfigError as error:
        raise click.BadParameter(str(error)) from error

    try:
        max_file_size = get_max_file_size(default=config.max_file_size)
    except ValueError as error:
        raise click.ClickException(str(error)) from error

    try:
        initial_stat = collect_file_stat(filepath)
        enforce_file_size(initial_stat, max_file_size, filepath)
        with safe_read(filepath) as handle:
            markdown_text = handle.read()
    except (IOError, UnicodeDecodeError) as error:
        raise click.ClickException(str(error)) from error

    html = render(markdown_text, config.to_options())

    if output is None:
        click.echo(html)
        return

    try:
        write_output(Path(output), html)
    except IOError as error:
        raise click.ClickException(str(error)) from error


if __name__ == "__main__":
    cli()
