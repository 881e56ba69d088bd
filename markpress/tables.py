"""Pipe table detection and rendering.

A table only starts once a candidate header row is confirmed by looking ahead
to the next non-blank line and finding a separator row (``| --- | :-: |``).
A rejected candidate is handed back to the parser untouched.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Sequence

from .blocks import render_paragraph, table_font_size
from .constants import TABLE_SEPARATOR_CELL_PATTERN
from .inline import format_inline
from .models import ParseOptions, TableState
from .text import is_escaped, split_unescaped

logger = logging.getLogger(__name__)

ALIGN_LEFT = "left"
ALIGN_CENTER = "center"
ALIGN_RIGHT = "right"


def split_row(line: str) -> list[str]:
    """Split a table row into trimmed cell texts.

    One leading and one trailing unescaped pipe are optional.

    Examples:
        split_row("| a | b |")  # ["a", "b"]
        split_row("a \\\\| b | c")  # ["a \\\\| b", "c"]
    """
    row = line.strip()
    if row.startswith("|"):
        row = row[1:]
    if row.endswith("|") and not is_escaped(row, len(row) - 1):
        row = row[:-1]
    return [cell.strip() for cell in split_unescaped(row, "|")]


def is_separator_row(line: str) -> bool:
    """Whether every cell of `line` looks like ``---``, ``:--``, ``--:`` or ``:-:``."""
    if not line or "-" not in line:
        return False
    cells = split_row(line)
    return bool(cells) and all(TABLE_SEPARATOR_CELL_PATTERN.match(cell) for cell in cells)


def is_candidate_row(line: str) -> bool:
    """A row with at least one unescaped pipe that is not a separator row."""
    if not line or not line.strip() or is_separator_row(line):
        return False
    return len(split_unescaped(line.strip(), "|")) > 1


def parse_alignment(cell: str) -> str:
    cell = cell.strip()
    if cell.startswith(":") and cell.endswith(":"):
        return ALIGN_CENTER
    if cell.endswith(":"):
        return ALIGN_RIGHT
    return ALIGN_LEFT


def next_non_blank(lines: Sequence[str], index: int) -> str | None:
    for line in lines[index + 1 :]:
        if line.strip():
            return line
    return None


@dataclass
class TableRowResult:
    """Outcome of `TableFormatter.process_row`.

    Attributes:
        consumed: The line belongs to the table and needs no further handling.
        html: Markup to emit now (a finished table or a flushed header).
        reprocess: The caller must dispatch the same line again as a
            non-table line.
    """

    consumed: bool
    html: str = ""
    reprocess: bool = False


@dataclass
class TableFormatter:
    """Three-state table machine: NONE -> DETECTING -> PROCESSING -> NONE."""

    state: TableState = TableState.NONE
    header_line: str = ""
    alignments: list[str] = field(default_factory=list)
    rows: list[str] = field(default_factory=list)

    @property
    def is_processing(self) -> bool:
        return self.state is TableState.PROCESSING

    @property
    def is_active(self) -> bool:
        return self.state is not TableState.NONE

    def reset(self) -> None:
        self.state = TableState.NONE
        self.header_line = ""
        self.alignments = []
        self.rows = []

    def process_row(
        self, line: str, lines: Sequence[str], index: int, options: ParseOptions
    ) -> TableRowResult:
        """Feed one source line to the table machine.

        Args:
            line: Current source line.
            lines: All source lines, for lookahead.
            index: Position of `line` in `lines`.
            options: Render options for a table completed by this line.

        Returns:
            TableRowResult: Whether the line was consumed, any HTML to emit,
                and whether the line must be processed again as non-table.

        Examples:
            lines = ["| a | b |", "| - | - |", "| 1 | 2 |"]
            formatter = TableFormatter()
            formatter.process_row(lines[0], lines, 0, options).consumed  # True
        """
        if self.state is TableState.NONE:
            if not is_candidate_row(line):
                return TableRowResult(consumed=False)
            lookahead = next_non_blank(lines, index)
            if lookahead is None or not is_separator_row(lookahead):
                logger.debug("Table candidate at line %d rejected by lookahead", index + 1)
                return TableRowResult(consumed=False)
            self.state = TableState.DETECTING
            self.header_line = line
            return TableRowResult(consumed=True)

        if self.state is TableState.DETECTING:
            if not line.strip():
                return TableRowResult(consumed=True)
            if is_separator_row(line):
                self.alignments = [parse_alignment(cell) for cell in split_row(line)]
                self.state = TableState.PROCESSING
                return TableRowResult(consumed=True)
            html = self._flush_header(options)
            return TableRowResult(consumed=False, html=html, reprocess=True)

        if line.strip() and len(split_unescaped(line.strip(), "|")) > 1:
            self.rows.append(line)
            return TableRowResult(consumed=True)
        return TableRowResult(consumed=False, html=self.complete(options), reprocess=True)

    def complete(self, options: ParseOptions) -> str:
        """Flush whatever is buffered and return to NONE.

        A confirmed table renders in full; a header still waiting for its
        separator renders as a paragraph so no input is lost.
        """
        if self.state is TableState.DETECTING:
            logger.debug("Unterminated table header flushed as paragraph")
            return self._flush_header(options)
        if self.state is not TableState.PROCESSING:
            return ""
        html = self.format_table(options)
        self.reset()
        return html

    def _flush_header(self, options: ParseOptions) -> str:
        html = render_paragraph(self.header_line, options)
        self.reset()
        return html

    def _cell(self, tag: str, text: str, column: int, style: str, options: ParseOptions) -> str:
        align = self.alignments[column] if column < len(self.alignments) else ALIGN_LEFT
        content = format_inline(
            text,
            options.color_theme,
            base_font_size=options.base_font_size,
            formula_renderer=options.formula_renderer,
        )
        return f'<{tag} style="{style} text-align: {align};">{content}</{tag}>'

    def format_table(self, options: ParseOptions) -> str:
        """Render the buffered header and rows.

        Data rows are padded or truncated to the header's column count.
        """
        theme = options.color_theme
        font_size = table_font_size(options.base_font_size)
        headers = split_row(self.header_line)
        columns = len(headers)

        cell_base = f"border: 1px solid {theme.table_border}; padding: 8px 12px;"
        th_style = (
            f"{cell_base} background-color: {theme.table_header_bg}; "
            f"color: {theme.text_primary}; font-weight: 600;"
        )
        head = "".join(
            self._cell("th", text, column, th_style, options) for column, text in enumerate(headers)
        )

        body_rows = []
        for row_index, line in enumerate(self.rows):
            cells = (split_row(line) + [""] * columns)[:columns]
            background = theme.bg_secondary if row_index % 2 else theme.bg_primary
            td_style = f"{cell_base} color: {theme.text_primary}; background-color: {background};"
            body_rows.append(
                "<tr>"
                + "".join(
                    self._cell("td", text, column, td_style, options)
                    for column, text in enumerate(cells)
                )
                + "</tr>"
            )

        table_style = (
            f"border-collapse: collapse; width: 100%; font-size: {font_size}px; "
            f"border: 1px solid {theme.table_border}; margin: 0;"
        )
        return (
            '<section style="overflow-x: auto; margin: 16px 0;">'
            f'<table style="{table_style}"><thead><tr>{head}</tr></thead>'
            f"<tbody>{''.join(body_rows)}</tbody></table></section>"
        )
