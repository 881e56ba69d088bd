"""HTML builders for block elements.

Every builder takes already-parsed pieces of one block and returns a single
HTML string with inline ``style`` attributes; none of them keep state.
"""

from __future__ import annotations

import re

from .color import set_alpha
from .constants import MIN_FONT_SIZE
from .formulas import render_math_placeholders
from .highlight import highlight_code, normalize_language
from .inline import escape_html, format_inline
from .lists import BULLET_SYMBOLS, LIST_MARKER_ATTRIBUTE, symbol_font_size
from .models import MathPlaceholder, ParseOptions
from .styling import merge_style, parse_style, restyle_tags
from .themes import CodeStyle, ColorTheme, list_colors, resolve_line_height

MAC_TRAFFIC_LIGHTS = ("#ff5f56", "#ffbd2e", "#27c93f")
MAC_HEADER = "mac-dynamic"

H1_UNDERLINE_WIDTH = "60px"
H2_BAR_WIDTH = "5px"
RULE_ALPHA = 0.3

LIST_MARKER_PATTERN = re.compile(
    r'(<p\b[^>]*\bdata-list-depth="(\d+)"[^>]*>(?:<span data-wx-lh-wrap="true" style="[^"]*">)?'
    rf'<span {LIST_MARKER_ATTRIBUTE}="true" style=")([^"]*)(">([^<]*)</span>)'
)
QUOTE_STYLE_PATTERN = re.compile(
    r'(<blockquote\b[^>]*\bdata-quote-depth="(\d+)"[^>]*\bstyle=")([^"]*)(")'
)
HEADING_DECORATION_STYLE_PATTERN = re.compile(
    r'(<span\b[^>]*\bdata-heading-(?:underline|bar)="true"[^>]*\bstyle=")([^"]*)(")'
)


def table_font_size(base_font_size: int) -> int:
    return max(base_font_size - 2, MIN_FONT_SIZE)


def _important(options: ParseOptions) -> str:
    return "" if options.is_preview else " !important"


def _inline(text: str, options: ParseOptions) -> str:
    return format_inline(
        text,
        options.color_theme,
        base_font_size=options.base_font_size,
        formula_renderer=options.formula_renderer,
    )


def render_paragraph(text: str, options: ParseOptions) -> str:
    """Render one paragraph line; blank input renders nothing."""
    if not text or not text.strip():
        return ""
    theme = options.color_theme
    style = (
        f"margin: {options.theme_system.paragraph_spacing} 0; "
        f"line-height: {resolve_line_height(options.font_settings)}; "
        f"color: {theme.text_primary}; font-size: {options.base_font_size}px;"
    )
    return f'<p style="{style}">{_inline(text.strip(), options)}</p>'


def heading_color(level: int, theme: ColorTheme) -> str:
    """Text color of a heading: the primary color on levels 1 and 3."""
    return theme.primary if level in (1, 3) else theme.text_primary


def render_heading(level: int, content: str, options: ParseOptions, anchor_id: str = "") -> str:
    """Render a heading whose inline content is already formatted.

    Preview output leaves ``<h1>`` and ``<h2>`` unstyled so the host page
    can theme them. Export output decorates ``<h1>`` with a centered
    underline and ``<h2>`` with a leading accent bar; both decorations carry
    a ``data-heading-*`` marker so copy adapters can find and replace them.

    Args:
        level: Heading level, 1 to 6.
        content: Heading text after `format_inline`.
        options: Render options.
        anchor_id: Value for the ``id`` attribute; omitted when empty.

    Returns:
        str: The heading element.

    Examples:
        render_heading(1, "Title", ParseOptions(is_preview=True))  # "<h1>Title</h1>"
    """
    level = min(max(level, 1), 6)
    tag = f"h{level}"
    id_attribute = f' id="{escape_html(anchor_id)}"' if anchor_id else ""

    if options.is_preview and level <= 2:
        return f"<{tag}{id_attribute}>{content}</{tag}>"

    theme = options.color_theme
    important = _important(options)
    size = options.theme_system.heading_size(level, options.base_font_size)

    if level == 1:
        style = (
            f"font-size: {size}px; font-weight: 700; color: {heading_color(1, theme)}{important}; "
            "text-align: center; margin: 32px 0 24px; line-height: 1.4;"
        )
        underline = (
            f'<span data-heading-underline="true" style="display: block; width: {H1_UNDERLINE_WIDTH}; '
            f'height: 3px; background-color: {theme.primary}; margin: 12px auto 0; '
            'border-radius: 2px;"></span>'
        )
        return f'<{tag}{id_attribute} style="{style}">{content}{underline}</{tag}>'

    if level == 2:
        style = (
            f"font-size: {size}px; font-weight: 700; color: {heading_color(2, theme)}{important}; "
            "margin: 28px 0 16px; line-height: 1.4; display: flex; align-items: center;"
        )
        bar = (
            f'<span data-heading-bar="true" style="display: inline-block; width: {H2_BAR_WIDTH}; '
            f'height: 1.2em; background-color: {theme.primary}; margin-right: 12px; '
            'border-radius: 3px; flex-shrink: 0;"></span>'
        )
        return f'<{tag}{id_attribute} style="{style}">{bar}{content}</{tag}>'

    style = (
        f"font-size: {size}px; font-weight: 600; color: {heading_color(level, theme)}{important}; "
        f"margin: {28 - level * 2}px 0 12px; line-height: 1.5;"
    )
    return f'<{tag}{id_attribute} style="{style}">{content}</{tag}>'


def _code_header(code_style: CodeStyle, language: str) -> str:
    if not code_style.has_header:
        return ""
    label_style = "margin-left: auto; opacity: 0.7; font-size: 12px; text-transform: lowercase;"
    language_label = f'<span style="{label_style}">{escape_html(language)}</span>' if language else ""

    if code_style.header_content == MAC_HEADER:
        lights = "".join(
            f'<span style="display: inline-block; width: 12px; height: 12px; border-radius: 50%; '
            f'background-color: {color}; margin-right: 8px;"></span>'
            for color in MAC_TRAFFIC_LIGHTS
        )
        return f'<section style="{code_style.header_style}">{lights}{language_label}</section>'

    title = f"<span>{escape_html(code_style.header_content)}</span>"
    return f'<section style="{code_style.header_style}">{title}{language_label}</section>'


def render_code_block(code: str, language: str, options: ParseOptions) -> str:
    """Render a fenced code block with optional header chrome.

    Newlines become ``<br>`` and spaces ``&nbsp;`` so the block survives
    paste into editors that collapse whitespace.

    Examples:
        render_code_block("print(1)", "py", ParseOptions())  # '<section ...><pre ...><code ...>'
    """
    code_style = options.code_style
    language_name = normalize_language(language) if language and language.strip() else ""
    body = highlight_code(code, language_name or None, code_style).replace("\n", "<br>")
    header = _code_header(code_style, language_name)

    radius = code_style.border_radius
    pre_radius = f"0 0 {radius} {radius}" if header else radius
    wrapper_style = (
        f"margin: {code_style.margin}; border-radius: {radius}; border: {code_style.border}; "
        f"background: {code_style.background}; overflow: hidden;"
    )
    pre_style = (
        f"margin: 0; padding: {code_style.padding}; background: {code_style.background}; "
        f"color: {code_style.color}; border-radius: {pre_radius}; overflow-x: auto; "
        "white-space: pre-wrap; word-break: break-all;"
    )
    code_css = (
        f"font-family: {code_style.font_family}; font-size: {code_style.font_size}; "
        f"line-height: {code_style.line_height}; color: {code_style.color}; "
        "background: transparent; display: block;"
    )
    language_attribute = f' data-language="{escape_html(language_name)}"' if language_name else ""
    return (
        f'<section class="code-block"{language_attribute} style="{wrapper_style}">{header}'
        f'<pre style="{pre_style}"><code style="{code_css}">{body}</code></pre></section>'
    )


def render_math_block(latex: str, options: ParseOptions) -> str:
    """Render a ``$$`` block; renderer failures yield an error fragment."""
    latex = latex.strip()
    if not latex:
        return ""
    placeholder = MathPlaceholder(id="", latex=latex, display_mode=True)
    render_math_placeholders([placeholder], options.formula_renderer)
    return placeholder.html or ""


def render_horizontal_rule(options: ParseOptions) -> str:
    color = options.color_theme.rule_color
    style = (
        f"border: none; height: 1px; background-color: {set_alpha(color, RULE_ALPHA)}; "
        "margin: 32px 0;"
    )
    return f'<hr style="{style}">'


def blockquote_style(depth: int, options: ParseOptions) -> str:
    """Quote style whose border and background fade with nesting depth."""
    theme = options.color_theme
    border_width = max(2, 4 - depth)
    border_color = theme.quote_border
    if depth > 0:
        border_color = set_alpha(border_color, max(0.4, 1 - 0.25 * depth))
    margin = "16px 0" if depth == 0 else "8px 0"
    return (
        f"margin: {margin}; padding: 12px 16px; border-left: {border_width}px solid {border_color}; "
        f"background-color: {theme.quote_background}; border-radius: 0 8px 8px 0; "
        f"color: {theme.text_secondary};"
    )


def render_blockquote(inner_html: str, depth: int, options: ParseOptions) -> str:
    return (
        f'<blockquote data-quote-depth="{depth}" style="{blockquote_style(depth, options)}">'
        f"{inner_html}</blockquote>"
    )


def retheme_blocks(html: str, options: ParseOptions) -> str:
    """Rewrite the theme colors and font sizes baked into rendered blocks.

    Paragraphs, list items and their markers, headings and their
    decorations, quotes, tables and rules are restyled for `options`, so
    HTML rendered with one theme can be re-themed without parsing again.
    Only elements that already carry a style are touched, which keeps plain
    preview headings plain. Inline elements and table row shading keep the
    colors they were rendered with.

    Args:
        html: Block HTML, possibly post-processed before.
        options: Render options to apply.

    Returns:
        str: Restyled HTML.
    """
    if not html:
        return html

    theme = options.color_theme
    important = _important(options)
    font_size = options.base_font_size
    paragraph = {
        "line-height": resolve_line_height(options.font_settings),
        "color": theme.text_primary,
        "font-size": f"{font_size}px",
    }
    out = restyle_tags(html, "p", lambda style: merge_style(style, paragraph), only_styled=True)

    colors = list_colors(theme)

    def restyle_marker(match: re.Match[str]) -> str:
        depth = int(match.group(2))
        glyph = match.group(5)
        size = symbol_font_size(depth, glyph, font_size) if glyph in BULLET_SYMBOLS else font_size
        style = merge_style(match.group(3), {"color": colors[depth % 4], "font-size": f"{size}px"})
        return f"{match.group(1)}{style}{match.group(4)}"

    out = LIST_MARKER_PATTERN.sub(restyle_marker, out)

    for level in range(1, 7):
        declarations = {
            "font-size": f"{options.theme_system.heading_size(level, font_size)}px",
            "color": f"{heading_color(level, theme)}{important}",
        }
        out = restyle_tags(
            out,
            f"h{level}",
            lambda style, values=declarations: merge_style(style, values),
            only_styled=True,
        )
    decoration = {"background-color": theme.primary}
    out = HEADING_DECORATION_STYLE_PATTERN.sub(
        lambda match: f"{match.group(1)}{merge_style(match.group(2), decoration)}{match.group(3)}",
        out,
    )

    def restyle_quote(match: re.Match[str]) -> str:
        quote_style = parse_style(blockquote_style(int(match.group(2)), options))
        return f"{match.group(1)}{merge_style(match.group(3), quote_style)}{match.group(4)}"

    out = QUOTE_STYLE_PATTERN.sub(restyle_quote, out)

    cell_border = {"border": f"1px solid {theme.table_border}"}
    table = {"font-size": f"{table_font_size(font_size)}px", **cell_border}
    header_cell = {
        **cell_border,
        "background-color": theme.table_header_bg,
        "color": theme.text_primary,
    }
    body_cell = {**cell_border, "color": theme.text_primary}
    for tag, declarations in (("table", table), ("th", header_cell), ("td", body_cell)):
        out = restyle_tags(
            out,
            tag,
            lambda style, values=declarations: merge_style(style, values),
            only_styled=True,
        )

    rule = {"background-color": set_alpha(theme.rule_color, RULE_ALPHA)}
    return restyle_tags(out, "hr", lambda style: merge_style(style, rule), only_styled=True)
