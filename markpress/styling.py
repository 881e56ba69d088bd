"""Theme and font post-processing of rendered HTML.

These passes rewrite ``style`` attributes on HTML that has already been
generated, so a cached render can be re-themed without parsing Markdown
again. Declarations are merged per property (replace if present, append if
absent), which makes every pass safe to apply more than once.
"""

from __future__ import annotations

import re
from collections.abc import Callable, Iterable, Mapping

from .constants import DEFAULT_FONT_SIZE, MIN_FONT_SIZE
from .themes import FontSettings, resolve_font_family, resolve_line_height

STYLE_ATTRIBUTE_PATTERN = re.compile(r'\sstyle="([^"]*)"', re.IGNORECASE)
CAPTIONED_IMAGE_PATTERN = re.compile(
    r'(<figure\b[^>]*>\s*)?(<img\b[^>]*\bdata-md-caption="true"[^>]*>)', re.IGNORECASE
)
ALT_PATTERN = re.compile(r'\balt="([^"]*)"', re.IGNORECASE)
EXPORT_WRAPPER_PATTERN = re.compile(
    r'^\s*<section data-role="outer"[^>]*>\s*<section data-role="inner"[^>]*>\n?'
    r"(?P<body>[\s\S]*?)\n?</section>\s*</section>\s*$"
)
LINE_HEIGHT_WRAP_MARKER = "data-wx-lh-wrap"
LINE_HEIGHT_WRAPPED_PATTERN = re.compile(
    rf'^<span {LINE_HEIGHT_WRAP_MARKER}="true" style="[^"]*">([\s\S]*)</span>$'
)
BASE_STYLE_MARKER = "data-wx-base"
FIGURE_MARKER = "data-md-figure"
OWN_FIGURE_PATTERN = re.compile(
    rf'<figure\b[^>]*\b{FIGURE_MARKER}="true"[^>]*>\s*(<img\b[^>]*>)'
    r"<figcaption\b[^>]*>[\s\S]*?</figcaption></figure>",
    re.IGNORECASE,
)
BLOCK_CHILD_PATTERN = re.compile(
    r"^\s*<(?:p|div|ul|ol|li|h[1-6]|blockquote|pre|table|section|figure)\b", re.IGNORECASE
)

TEXT_COLOR = "#333"
CAPTION_COLOR = "#666"
LINE_HEIGHT_TAGS = ("p", "h1", "h2", "h3", "ul", "ol", "li", "blockquote")
LINE_HEIGHT_WRAP_TAGS = ("p", "li", "h1", "h2", "h3")


def parse_style(style: str | None) -> dict[str, str]:
    """Split a ``style`` attribute value into an ordered property map.

    Property names are lowercased; later duplicates win.

    Examples:
        parse_style("color: red; margin:0")  # {"color": "red", "margin": "0"}
    """
    declarations: dict[str, str] = {}
    for declaration in (style or "").split(";"):
        name, separator, value = declaration.partition(":")
        name = name.strip().lower()
        if not separator or not name:
            continue
        declarations[name] = value.strip()
    return declarations


def format_style(declarations: Mapping[str, str]) -> str:
    return " ".join(f"{name}: {value};" for name, value in declarations.items())


def merge_style(style: str | None, declarations: Mapping[str, str]) -> str:
    """Merge `declarations` into `style`: replace if present, append if absent.

    Examples:
        merge_style("color: red; margin: 0;", {"color": "blue", "padding": "4px"})
        # "color: blue; margin: 0; padding: 4px;"
    """
    merged = parse_style(style)
    for name, value in declarations.items():
        merged[name.lower()] = value
    return format_style(merged)


def rewrite_style(
    style: str | None, declarations: Mapping[str, str], drop: Iterable[str] = ()
) -> str:
    """Drop properties matching `drop` prefixes, then merge `declarations`.

    Properties named in `declarations` are updated in place rather than
    dropped, so rewriting an already rewritten style returns it unchanged.

    Examples:
        rewrite_style("border: 1px; padding: 0;", {"border-top": "1px solid"}, drop=("border",))
        # "padding: 0; border-top: 1px solid;"
    """
    prefixes = tuple(prefix.lower() for prefix in drop)
    targets = {name.lower() for name in declarations}
    kept = {
        name: value
        for name, value in parse_style(style).items()
        if name in targets or not name.startswith(prefixes)
    }
    return merge_style(format_style(kept), declarations)


def open_tag_pattern(tag: str) -> re.Pattern[str]:
    """Opening-tag pattern bounded by the tag name, so ``p`` never matches ``<pre>``."""
    return re.compile(rf"<{tag}(?=[\s>/])([^>]*)>", re.IGNORECASE)


def restyle_tags(
    html: str,
    tag: str,
    update: Callable[[str], str],
    only_unstyled: bool = False,
    only_styled: bool = False,
) -> str:
    """Rewrite the ``style`` attribute of every opening `tag`.

    Args:
        html: Markup to rewrite.
        tag: Element name.
        update: Receives the current style (``""`` when absent) and returns
            the new one.
        only_unstyled: Leave elements that already carry a style untouched.
        only_styled: Leave elements without a style untouched.

    Returns:
        str: Rewritten markup.
    """

    def substitute(match: re.Match[str]) -> str:
        name = match.group(0)[1 : len(tag) + 1]
        attributes = match.group(1)
        style_match = STYLE_ATTRIBUTE_PATTERN.search(attributes)
        if style_match is None:
            if only_styled:
                return match.group(0)
            attributes = f'{attributes.rstrip()} style="{update("")}"'
        elif only_unstyled:
            return match.group(0)
        else:
            new_style = update(style_match.group(1))
            attributes = (
                f'{attributes[: style_match.start()]} style="{new_style}"'
                f"{attributes[style_match.end() :]}"
            )
        return f"<{name}{attributes}>"

    return open_tag_pattern(tag).sub(substitute, html)


def _base_declarations(font_family: str, letter_spacing: float) -> dict[str, str]:
    return {
        "font-family": font_family,
        "color": TEXT_COLOR,
        "letter-spacing": f"{letter_spacing:g}px",
    }


def _apply_base_style(html: str, tag: str, style: str) -> str:
    """Style unstyled `tag` elements, marking them so later passes can restyle them."""

    def substitute(match: re.Match[str]) -> str:
        name = match.group(0)[1 : len(tag) + 1]
        attributes = match.group(1)
        style_match = STYLE_ATTRIBUTE_PATTERN.search(attributes)
        if style_match is None:
            return f'<{name}{attributes.rstrip()} {BASE_STYLE_MARKER}="true" style="{style}">'
        if BASE_STYLE_MARKER not in attributes:
            return match.group(0)
        return (
            f'<{name}{attributes[: style_match.start()]} style="{style}"'
            f"{attributes[style_match.end() :]}>"
        )

    return open_tag_pattern(tag).sub(substitute, html)


def add_figure_captions(html: str, font_settings: FontSettings | None) -> str:
    """Wrap captioned images in ``<figure>`` with the alt text as caption.

    Figures built by an earlier call are rebuilt with the current font
    settings; images inside any other figure are left alone.
    """
    if not html or "data-md-caption" not in html:
        return html
    font_family = resolve_font_family(font_settings.font_family if font_settings else None)
    font_size = (font_settings.font_size if font_settings else None) or DEFAULT_FONT_SIZE
    letter_spacing = font_settings.letter_spacing if font_settings else 0
    base = _base_declarations(font_family, letter_spacing)
    figure_style = format_style({**base, "text-align": "center", "margin": "1em 0"})
    caption_style = format_style(
        {
            **base,
            "display": "block",
            "font-size": f"{max(MIN_FONT_SIZE, round(font_size * 0.875))}px",
            "color": CAPTION_COLOR,
            "margin-top": "6px",
        }
    )

    def substitute(match: re.Match[str]) -> str:
        if match.group(1):
            return match.group(0)
        image = match.group(2)
        alt_match = ALT_PATTERN.search(image)
        alt = alt_match.group(1) if alt_match else ""
        return (
            f'<figure style="{figure_style}" {FIGURE_MARKER}="true">{image}'
            f'<figcaption style="{caption_style}">{alt}</figcaption></figure>'
        )

    html = OWN_FIGURE_PATTERN.sub(r"\1", html)
    return CAPTIONED_IMAGE_PATTERN.sub(substitute, html)


def _wrap_inner_line_height(html: str, tag: str, line_height: str, letter_spacing: float) -> str:
    pattern = re.compile(rf"<{tag}(?=[\s>])([^>]*)>([\s\S]*?)</{tag}>", re.IGNORECASE)
    span_style = format_style(
        {
            "line-height": f"{line_height} !important",
            "letter-spacing": f"{letter_spacing:g}px",
            "display": "inline-block",
            "width": "100%",
        }
    )

    def substitute(match: re.Match[str]) -> str:
        attributes, inner = match.groups()
        wrapped = LINE_HEIGHT_WRAPPED_PATTERN.match(inner)
        if wrapped is not None:
            inner = wrapped.group(1)
        elif LINE_HEIGHT_WRAP_MARKER in inner or BLOCK_CHILD_PATTERN.match(inner):
            return match.group(0)
        return (
            f'<{tag}{attributes}><span {LINE_HEIGHT_WRAP_MARKER}="true" style="{span_style}">'
            f"{inner}</span></{tag}>"
        )

    return pattern.sub(substitute, html)


def apply_inline_styles(html: str, font_settings: FontSettings | None) -> str:
    """Inject font family, letter spacing and line height into element styles.

    Unstyled ``section``, ``strong``, ``b``, ``em`` and ``i`` elements get a
    base style; block elements get their line height replaced (or appended)
    with an ``!important`` declaration; text-bearing blocks have their
    content wrapped in a line-height span that survives editors which drop
    block-level line heights. Base styles and wrap spans left by an earlier
    call are rewritten, so restyling with other settings leaves no trace of
    the old ones.

    Args:
        html: Rendered block HTML.
        font_settings: Typography to apply; None returns `html` unchanged.

    Returns:
        str: Restyled HTML.
    """
    if not font_settings or not html:
        return html

    font_family = resolve_font_family(font_settings.font_family)
    line_height = resolve_line_height(font_settings)
    letter_spacing = font_settings.letter_spacing or 0
    base = _base_declarations(font_family, letter_spacing)
    enforced_line_height = {"line-height": f"{line_height} !important"}

    out = _apply_base_style(html, "section", format_style({**base, **enforced_line_height}))
    for tag in ("strong", "b"):
        out = _apply_base_style(out, tag, format_style({**base, "font-weight": "700"}))
    for tag in ("em", "i"):
        out = _apply_base_style(
            out, tag, format_style({**base, "font-weight": "400", "font-style": "italic"})
        )
    out = add_figure_captions(out, font_settings)

    for tag in LINE_HEIGHT_TAGS:
        out = restyle_tags(out, tag, lambda style: merge_style(style, enforced_line_height))
    for tag in LINE_HEIGHT_WRAP_TAGS:
        out = _wrap_inner_line_height(out, tag, line_height, letter_spacing)
    return out


def unwrap_export(html: str) -> str:
    """Return the body of an export wrapper, or `html` when it is not wrapped."""
    match = EXPORT_WRAPPER_PATTERN.match(html or "")
    return match.group("body") if match else html


def wrap_with_font_styles(html: str, font_settings: FontSettings | None) -> str:
    """Apply inline font styles and wrap the result in the export sections.

    The outer ``<section data-role="outer">`` and inner
    ``<section data-role="inner">`` both carry the font declarations, so
    platforms that strip one of them still render the intended typography.
    HTML that is already wrapped is unwrapped first.

    Examples:
        wrap_with_font_styles("<p>Hi</p>", FontSettings())
        # '<section data-role="outer" class="rich_media_content" style="...">...'
    """
    if not font_settings or not html:
        return html

    body = apply_inline_styles(unwrap_export(html), font_settings)
    font_family = resolve_font_family(font_settings.font_family)
    font_size = font_settings.font_size or DEFAULT_FONT_SIZE
    line_height = resolve_line_height(font_settings)
    letter_spacing = font_settings.letter_spacing or 0

    shared = {
        "font-family": font_family,
        "font-size": f"{font_size}px",
        "line-height": f"{line_height} !important",
        "letter-spacing": f"{letter_spacing:g}px",
        "font-weight": "400",
        "color": TEXT_COLOR,
    }
    outer_style = format_style({**shared, "margin": "0", "padding": "0"})
    inner_style = format_style(shared)
    return (
        f'<section data-role="outer" class="rich_media_content" style="{outer_style}">\n'
        f'<section data-role="inner" style="{inner_style}">\n{body}\n</section>\n</section>'
    )

