"""List item detection and formatting.

Every list line is rendered on its own as a styled paragraph; depth and kind
come from the current line only, so no nesting stack is kept.
"""

from __future__ import annotations

from dataclasses import dataclass
from types import MappingProxyType

from .constants import (
    HORIZONTAL_RULE_PATTERN,
    MIN_FONT_SIZE,
    ORDERED_ITEM_PATTERN,
    SPACES_PER_LEVEL,
    TASK_ITEM_PATTERN,
    UNORDERED_ITEM_PATTERN,
)
from .inline import format_inline
from .models import ListItem, ListType, ParseOptions
from .text import leading_whitespace_columns
from .themes import list_colors, resolve_line_height

BULLET_SYMBOLS = ("●", "○", "▪", "▫")
SYMBOL_SCALES = MappingProxyType({"●": 1.0, "○": 0.5, "▪": 1.2, "▫": 1.2})
CHECKED_SYMBOL = "☑"
UNCHECKED_SYMBOL = "☐"
INDENT_PX_PER_LEVEL = 24
LIST_MARKER_ATTRIBUTE = "data-list-marker"
MAX_ROMAN = 3999

_ROMAN_NUMERALS = (
    (1000, "m"),
    (900, "cm"),
    (500, "d"),
    (400, "cd"),
    (100, "c"),
    (90, "xc"),
    (50, "l"),
    (40, "xl"),
    (10, "x"),
    (9, "ix"),
    (5, "v"),
    (4, "iv"),
    (1, "i"),
)


def number_to_lower_alpha(number: int) -> str:
    """Spreadsheet-style letters: 1 -> a, 26 -> z, 27 -> aa; values below 1 map to a."""
    number = max(1, number)
    letters = []
    while number > 0:
        number, remainder = divmod(number - 1, 26)
        letters.append(chr(ord("a") + remainder))
    return "".join(reversed(letters))


def number_to_lower_roman(number: int) -> str:
    """Lowercase Roman numerals.

    Values below 1 yield an empty string; values above 3999 have no standard
    numeral and are written in decimal.
    """
    if number > MAX_ROMAN:
        return str(number)
    numerals = []
    for value, numeral in _ROMAN_NUMERALS:
        while number >= value:
            numerals.append(numeral)
            number -= value
    return "".join(numerals)


def ordered_marker(number: int, depth: int) -> str:
    """Marker glyph for an ordered item, cycling every four levels.

    Examples:
        [ordered_marker(1, depth) for depth in range(5)]
        # ["1.", "a.", "i.", "(1)", "1."]
    """
    family = depth % 4
    if family == 1:
        return f"{number_to_lower_alpha(number)}."
    if family == 2:
        return f"{number_to_lower_roman(number)}."
    if family == 3:
        return f"({number})"
    return f"{number}."


def symbol_scale(symbol: str) -> float:
    return SYMBOL_SCALES.get(symbol, 1.0)


def symbol_font_size(depth: int, symbol: str, base_font_size: int) -> int:
    """Bullet glyph size; shrinks slightly with depth but never below the minimum."""
    shrink = 1 - 0.05 * min(depth, 3)
    return max(MIN_FONT_SIZE, round(base_font_size * symbol_scale(symbol) * shrink))


def parse_list_item(line: str) -> ListItem | None:
    """Parse one source line into a `ListItem`.

    Task items are matched before generic bullets, and thematic breaks such as
    ``* * *`` are never treated as bullets.

    Examples:
        parse_list_item("  - [x] done")  # ListItem(type=TASK, depth=1, ...)
        parse_list_item("plain text")  # None
    """
    if not line or not line.strip() or HORIZONTAL_RULE_PATTERN.match(line):
        return None

    match = TASK_ITEM_PATTERN.match(line)
    if match:
        indent, state, content = match.groups()
        return ListItem(
            type=ListType.TASK,
            depth=leading_whitespace_columns(indent) // SPACES_PER_LEVEL,
            marker=line.strip()[0],
            content=content or "",
            is_checked=state.lower() == "x",
        )

    match = UNORDERED_ITEM_PATTERN.match(line)
    if match:
        indent, marker, content = match.groups()
        return ListItem(
            type=ListType.UNORDERED,
            depth=leading_whitespace_columns(indent) // SPACES_PER_LEVEL,
            marker=marker,
            content=content,
        )

    match = ORDERED_ITEM_PATTERN.match(line)
    if match:
        indent, number, content = match.groups()
        return ListItem(
            type=ListType.ORDERED,
            depth=leading_whitespace_columns(indent) // SPACES_PER_LEVEL,
            marker=number,
            content=content,
        )

    return None


@dataclass
class ListLineResult:
    """Outcome of `ListFormatter.process_line`."""

    is_list_item: bool
    html: str = ""
    item: ListItem | None = None


class ListFormatter:
    """Render list lines as themed paragraphs.

    The formatter holds no state between lines: depth and kind come from
    each line alone.
    """

    def process_line(self, line: str, options: ParseOptions) -> ListLineResult:
        item = parse_list_item(line)
        if item is None:
            return ListLineResult(is_list_item=False)

        html = self.format_list_item(item, options)
        return ListLineResult(is_list_item=True, html=html, item=item)

    def format_list_item(self, item: ListItem, options: ParseOptions) -> str:
        """Render `item` as a paragraph with a colored marker span.

        Returns an empty string for unknown item types.
        """
        if not isinstance(item.type, ListType):
            return ""

        theme = options.color_theme
        font_size = options.base_font_size
        line_height = resolve_line_height(options.font_settings)
        color = list_colors(theme)[item.depth % 4]

        marker, marker_size = self._marker(item, font_size)
        content = format_inline(
            item.content,
            theme,
            base_font_size=font_size,
            formula_renderer=options.formula_renderer,
        )
        if item.type is ListType.TASK and item.is_checked:
            content = (
                f'<span style="color: {theme.text_muted}; text-decoration: line-through;">'
                f"{content}</span>"
            )

        paragraph_style = (
            f"margin: 4px 0; padding-left: {item.depth * INDENT_PX_PER_LEVEL}px; "
            f"font-size: {font_size}px; line-height: {line_height}; color: {theme.text_primary};"
        )
        marker_style = (
            f"color: {color}; font-size: {marker_size}px; margin-right: 8px; "
            "display: inline-block; min-width: 1em; text-align: center; font-weight: 600;"
        )
        return (
            f'<p style="{paragraph_style}" data-list-depth="{item.depth}" '
            f'data-list-type="{item.type.value}">'
            f'<span {LIST_MARKER_ATTRIBUTE}="true" style="{marker_style}">{marker}</span>'
            f"{content}</p>"
        )

    @staticmethod
    def _marker(item: ListItem, font_size: int) -> tuple[str, int]:
        if item.type is ListType.ORDERED:
            return ordered_marker(int(item.marker), item.depth), font_size
        if item.type is ListType.TASK:
            symbol = CHECKED_SYMBOL if item.is_checked else UNCHECKED_SYMBOL
            return symbol, font_size
        symbol = BULLET_SYMBOLS[item.depth % len(BULLET_SYMBOLS)]
        return symbol, symbol_font_size(item.depth, symbol, font_size)

