"""Copy adapters: platform decoration applied last to exported HTML.

A copy adapter is a callable ``(html, context) -> html`` registered under a
theme-system id. Unregistered ids resolve to `identity_adapter`. Adapters
must leave already-adapted HTML unchanged when applied again.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from enum import Enum
from typing import Callable

from .color import blend_with_white, mix_with_black, rgb_string
from .constants import DEFAULT_FONT_SIZE
from .styling import merge_style, restyle_tags, rewrite_style
from .themes import THEME_SYSTEMS, HeadingCopyConfig, ThemeSystem

logger = logging.getLogger(__name__)

DEFAULT_PRIMARY = "#5865F2"

H1_PILL_MARKER = "data-wx-h1-pill"
DECO_MARKER = "data-wx-deco"
LINE_HEIGHT_WRAP_PATTERN = re.compile(
    r"^\s*<span[^>]*data-wx-lh-wrap[^>]*>([\s\S]*)</span>\s*$", re.IGNORECASE
)
HEADING_DECORATION_PATTERN = re.compile(
    r'^(\s*)<span[^>]*\bdata-heading-(?:bar|underline)="true"[^>]*></span>\s*', re.IGNORECASE
)
TRAILING_DECORATION_PATTERN = re.compile(
    r'\s*<span[^>]*\bdata-heading-underline="true"[^>]*></span>\s*$', re.IGNORECASE
)
PILL_CONTENT_PATTERN = re.compile(
    r'^<span style="display: block; text-align: center;">'
    rf'<span {H1_PILL_MARKER}="true" style="[^"]*">([\s\S]*)</span></span>$'
)
DECO_CONTENT_PATTERN = re.compile(
    rf'^<span style="[^"]*"><span {DECO_MARKER}="true" style="[^"]*">&#8203;</span></span>'
    r'<span style="[^"]*">([\s\S]*)</span>$'
)

DEFAULT_HEADING_DECORATION = {
    "h2": HeadingCopyConfig(
        deco_width_px=6,
        deco_height_em=1.2,
        deco_radius_px=3,
        font_scale=1.5,
        line_height="1.35em",
        margin_top="1.8em",
        margin_bottom="1.1em",
    ),
    "h3": HeadingCopyConfig(
        deco_width_px=4,
        deco_height_em=1.1,
        deco_radius_px=2,
        font_scale=1.22,
        margin_top="1.2em",
        margin_bottom="0.8em",
    ),
    "h4": HeadingCopyConfig(
        deco_width_px=3,
        deco_height_em=1.05,
        deco_radius_px=2,
        font_scale=1.08,
        margin_top="1em",
        margin_bottom="0.6em",
    ),
}

# Shares of the primary color kept when mixing decoration bars with black.
DECO_COLOR_SHARES = {"h2": 1.0, "h3": 0.6, "h4": 0.35}

PILL_STYLE_NOISE = (
    "background",
    "padding",
    "border-radius",
    "display",
    "margin",
    "font-size",
    "text-align",
)

HEADING_STYLE_NOISE = (
    "background",
    "-webkit-background-clip",
    "-webkit-text-fill-color",
    "text-shadow",
    "filter",
    "padding",
    "gap",
    "display",
    "align-items",
    "border-left",
)


class LayoutSystem(str, Enum):
    """Theme systems that ship with a built-in copy adapter decision."""

    DEFAULT = "default"
    BREEZE = "breeze"


@dataclass(frozen=True)
class AdapterContext:
    """Values a copy adapter needs besides the HTML itself.

    Attributes:
        primary: Primary color of the active color theme, as hex.
        base_font_size: Base font size in pixels.
        theme_system: Active theme system, for its declarative copy config.
    """

    primary: str = DEFAULT_PRIMARY
    base_font_size: int = DEFAULT_FONT_SIZE
    theme_system: ThemeSystem | None = None

    @property
    def primary_rgb(self) -> str:
        return rgb_string(self.primary)


CopyAdapter = Callable[[str, AdapterContext], str]


def identity_adapter(html: str, context: AdapterContext) -> str:
    return html


def _unwrap_line_height(inner: str) -> str:
    match = LINE_HEIGHT_WRAP_PATTERN.match(inner)
    return match.group(1) if match else inner


def _element_pattern(tag: str) -> re.Pattern[str]:
    return re.compile(rf"<{tag}(?=[\s>])([^>]*)>([\s\S]*?)</{tag}>", re.IGNORECASE)


def _style_of(attributes: str) -> tuple[str, str, str]:
    """Split tag attributes into (before, style, after) around ``style="..."``."""
    match = re.search(r'\sstyle="([^"]*)"', attributes)
    if match is None:
        return attributes, "", ""
    return attributes[: match.start()], match.group(1), attributes[match.end() :]


def pill_headings(html: str, context: AdapterContext) -> str:
    """Turn every ``<h1>`` into a centered pill badge in the primary color.

    A pill left by an earlier pass is rebuilt around its content, so the
    badge always carries the current primary color and font size.
    """
    primary = context.primary
    pill_style = (
        f"display: inline-block; padding: 8px 16px; border-radius: 12px; background: {primary}; "
        f"color: #fff; font-size: {context.base_font_size}px; margin: 0 auto; "
        f"box-shadow: 0 8px 20px rgba({context.primary_rgb}, 0.22); letter-spacing: .5px;"
    )
    heading_config = _heading_config(context, "h1")

    def substitute(match: re.Match[str]) -> str:
        before, style, after = _style_of(match.group(1))
        margin_top = heading_config.margin_top or "2.2em"
        margin = f"{margin_top} 0 {heading_config.margin_bottom or '1.6em'}"
        new_style = rewrite_style(
            style, {"text-align": "center", "margin": margin}, drop=PILL_STYLE_NOISE
        )

        inner = _unwrap_line_height(match.group(2))
        pill = PILL_CONTENT_PATTERN.match(inner)
        if pill is not None:
            inner = pill.group(1)
        elif H1_PILL_MARKER not in inner:
            inner = TRAILING_DECORATION_PATTERN.sub("", inner).strip(" \u00a0\n\t")
        else:
            return f'<h1{before} style="{new_style}"{after}>{inner}</h1>'
        inner = (
            '<span style="display: block; text-align: center;">'
            f'<span {H1_PILL_MARKER}="true" style="{pill_style}">{inner}</span></span>'
        )
        return f'<h1{before} style="{new_style}"{after}>{inner}</h1>'

    return _element_pattern("h1").sub(substitute, html)


def _heading_config(context: AdapterContext, tag: str) -> HeadingCopyConfig:
    copy = context.theme_system.copy if context.theme_system is not None else None
    configured = copy.headings.get(tag) if copy is not None else None
    default = DEFAULT_HEADING_DECORATION.get(tag, HeadingCopyConfig())
    if configured is None:
        return default
    return HeadingCopyConfig(
        pill=configured.pill,
        deco_width_px=configured.deco_width_px or default.deco_width_px,
        deco_height_em=configured.deco_height_em or default.deco_height_em,
        deco_radius_px=configured.deco_radius_px or default.deco_radius_px,
        font_scale=configured.font_scale or default.font_scale,
        line_height=configured.line_height or default.line_height,
        margin_top=configured.margin_top or default.margin_top,
        margin_bottom=configured.margin_bottom or default.margin_bottom,
    )


def decorate_headings(html: str, context: AdapterContext, tag: str) -> str:
    """Prefix an ``<h2>``-``<h4>`` with a table-cell accent bar.

    The bar color keeps a level-dependent share of the primary color mixed
    with black. Accent bars from the block renderer are replaced, and bars
    left by an earlier pass are rebuilt in the current colors.
    """
    config = _heading_config(context, tag)
    share = DECO_COLOR_SHARES.get(tag, 1.0)
    color = context.primary if share >= 1 else mix_with_black(context.primary, share)
    bar_style = (
        f"display: block; width: {config.deco_width_px}px; height: {config.deco_height_em}em; "
        f"border-radius: {config.deco_radius_px}px; background: {color}; "
        "box-shadow: 0 0 6px rgba(0,0,0,0.08);"
    )
    left_cell = "display: table-cell; vertical-align: middle; width: 1px;"
    right_cell = "display: table-cell; vertical-align: middle; padding-left: 0.5em;"

    def substitute(match: re.Match[str]) -> str:
        before, style, after = _style_of(match.group(1))
        new_style = rewrite_style(
            style,
            {
                "margin-top": config.margin_top or "1.6em",
                "margin-bottom": config.margin_bottom or "1em",
                "display": "table",
                "width": "100%",
            },
            drop=HEADING_STYLE_NOISE,
        )
        inner = _unwrap_line_height(match.group(2))
        decorated = DECO_CONTENT_PATTERN.match(inner)
        if decorated is not None:
            inner = decorated.group(1)
        elif DECO_MARKER not in inner:
            inner = HEADING_DECORATION_PATTERN.sub(r"\1", inner)
        else:
            return f"<{tag}{before} style=\"{new_style}\"{after}>{inner}</{tag}>"
        inner = (
            f'<span style="{left_cell}"><span {DECO_MARKER}="true" style="{bar_style}">'
            f'&#8203;</span></span><span style="{right_cell}">{inner}</span>'
        )
        return f"<{tag}{before} style=\"{new_style}\"{after}>{inner}</{tag}>"

    return _element_pattern(tag).sub(substitute, html)


def style_links(html: str, context: AdapterContext) -> str:
    declarations = {
        "color": context.primary,
        "text-decoration": "none",
        "border-bottom": "1px solid rgba(0,0,0,0)",
    }
    return restyle_tags(html, "a", lambda style: merge_style(style, declarations))


def style_inner_card(html: str, context: AdapterContext) -> str:
    """Give the export wrapper's inner section a tinted, rounded card look."""
    copy = context.theme_system.copy if context.theme_system is not None else None
    shade = copy.inner_card_shade if copy is not None else 0.04
    radius = copy.inner_card_radius if copy is not None else 12
    padding = copy.inner_card_padding if copy is not None else "24px 20px"
    pattern = re.compile(r'<section(?=\s)([^>]*\bdata-role="inner"[^>]*)>', re.IGNORECASE)

    def substitute(match: re.Match[str]) -> str:
        before, style, after = _style_of(match.group(1))
        new_style = rewrite_style(
            style,
            {
                "background-color": blend_with_white(context.primary, shade),
                "border-radius": f"{radius}px",
                "padding": padding,
                "border": f"1px solid rgba({context.primary_rgb}, 0.12)",
            },
            drop=("background", "border", "padding"),
        )
        return f'<section{before} style="{new_style}"{after}>'

    return pattern.sub(substitute, html, count=1)


def _move_header_into_body(match: re.Match[str]) -> str:
    attributes, inner = match.groups()
    thead = re.search(r"<thead>([\s\S]*?)</thead>", inner, re.IGNORECASE)
    if thead is None:
        return match.group(0)
    rest = inner[: thead.start()] + inner[thead.end() :]
    if re.search(r"<tbody>", rest, re.IGNORECASE):
        rest = re.sub(
            r"<tbody>", lambda _: f"<tbody>{thead.group(1)}", rest, count=1, flags=re.IGNORECASE
        )
    else:
        rest = f"<tbody>{thead.group(1)}{rest}</tbody>"
    return f"<table{attributes}>{rest}</table>"


def style_tables(html: str, context: AdapterContext) -> str:
    """Restyle tables with primary-tinted borders and header cells.

    Header rows move from ``<thead>`` into ``<tbody>`` because some
    platforms drop ``<thead>`` on paste; header cells are restyled wherever
    they sit, so tables adapted earlier take the current colors.
    """
    copy = context.theme_system.copy if context.theme_system is not None else None
    border_alpha = copy.table_border_alpha if copy is not None else 0.18
    header_shade = copy.table_header_shade if copy is not None else 0.06
    border_color = f"rgba({context.primary_rgb}, {border_alpha:g})"
    header_background = blend_with_white(context.primary, header_shade)

    table_declarations = {
        "border-collapse": "collapse",
        "width": "100%",
        "border": f"1px solid {border_color}",
        "border-radius": "12px",
        "background": "#fff",
        "margin": "1.2em 0",
    }
    out = restyle_tags(
        html,
        "table",
        lambda style: rewrite_style(
            style, table_declarations, drop=("border", "background", "margin")
        ),
    )

    out = restyle_tags(
        out,
        "th",
        lambda style: rewrite_style(
            style,
            {"background": header_background, "color": "#1f2328", "font-weight": "600"},
            drop=("background", "color", "font-weight"),
        ),
    )
    out = re.sub(
        r"<table(?=[\s>])([^>]*)>([\s\S]*?)</table>",
        _move_header_into_body,
        out,
        flags=re.IGNORECASE,
    )

    cell_declarations = {"border-top": f"1px solid {border_color}", "padding": "10px 12px"}
    for tag in ("th", "td"):
        out = restyle_tags(
            out,
            tag,
            lambda style: rewrite_style(style, cell_declarations, drop=("border",)),
        )
    return out


def scale_headings(html: str, context: AdapterContext) -> str:
    """Set ``<h2>``-``<h4>`` font sizes to the base size times each level's scale."""
    out = html
    for tag in ("h2", "h3", "h4"):
        config = _heading_config(context, tag)
        font_size = round(context.base_font_size * (config.font_scale or 1))
        declarations = {"font-size": f"{font_size}px"}
        if config.line_height:
            declarations["line-height"] = f"{config.line_height} !important"
        out = restyle_tags(out, tag, lambda style, values=declarations: merge_style(style, values))
    return out


def breeze_adapter(html: str, context: AdapterContext) -> str:
    """Breeze layout: pill ``<h1>``, accent bars, tinted card, soft tables.

    Examples:
        breeze_adapter('<h1 style="color: red;">Title</h1>', AdapterContext())
    """
    out = pill_headings(html, context)
    for tag in ("h2", "h3", "h4"):
        out = decorate_headings(out, context, tag)
    out = style_links(out, context)
    out = style_inner_card(out, context)
    out = style_tables(out, context)
    return scale_headings(out, context)


_REGISTRY: dict[str, CopyAdapter] = {
    LayoutSystem.DEFAULT.value: identity_adapter,
    LayoutSystem.BREEZE.value: breeze_adapter,
}


def _system_id(theme_system: ThemeSystem | str | None) -> str | None:
    if isinstance(theme_system, ThemeSystem):
        return theme_system.id
    return theme_system


def get_copy_adapter(theme_system: ThemeSystem | str | None) -> CopyAdapter:
    """Return the adapter registered for a theme system or its id.

    Unknown ids resolve to `identity_adapter`, never to an error.

    Examples:
        get_copy_adapter("breeze") is breeze_adapter  # True
        get_copy_adapter("nonexistent") is identity_adapter  # True
    """
    system_id = _system_id(theme_system)
    adapter = _REGISTRY.get(system_id) if system_id is not None else None
    if adapter is None:
        logger.debug("No copy adapter registered for theme system %r", system_id)
        return identity_adapter
    return adapter


def register_copy_adapter(system_id: str, adapter: CopyAdapter) -> None:
    """Register `adapter` for `system_id`, replacing any earlier registration."""
    if not callable(adapter):
        raise TypeError(f"Copy adapter for {system_id!r} must be callable")
    _REGISTRY[system_id] = adapter


def apply_copy_adapter(
    html: str,
    primary: str = DEFAULT_PRIMARY,
    base_font_size: int = DEFAULT_FONT_SIZE,
    theme_system: ThemeSystem | str | None = None,
) -> str:
    """Apply the copy adapter of `theme_system` to exported HTML.

    A known theme-system id is resolved to its preset so the adapter sees
    the declarative copy config.
    """
    if not html:
        return html
    adapter = get_copy_adapter(theme_system)
    if isinstance(theme_system, str):
        theme_system = THEME_SYSTEMS.get(theme_system)
    context = AdapterContext(
        primary=primary or DEFAULT_PRIMARY,
        base_font_size=base_font_size or DEFAULT_FONT_SIZE,
        theme_system=theme_system,
    )
    return adapter(html, context)
