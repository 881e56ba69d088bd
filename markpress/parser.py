"""Block-level Markdown parser and rendering entry points."""

from __future__ import annotations

import logging
import re
from typing import Sequence

from .adapters import DEFAULT_PRIMARY, apply_copy_adapter
from .anchors import AnchorRegistry
from .blocks import (
    render_blockquote,
    render_code_block,
    render_heading,
    render_horizontal_rule,
    render_math_block,
    render_paragraph,
    retheme_blocks,
)
from .constants import (
    BLOCKQUOTE_PATTERN,
    CLOSING_FENCE_MAX_INDENT,
    CODE_FENCE_PATTERN,
    DEFAULT_FONT_SIZE,
    HEADING_PATTERN,
    HORIZONTAL_RULE_PATTERN,
    MATH_FENCE_PATTERN,
    MAX_QUOTE_DEPTH,
    REFERENCE_DEFINITION_PATTERN,
)
from .inline import format_inline
from .lists import ListFormatter
from .models import ParseContext, ParseOptions, ParserState
from .styling import add_figure_captions, wrap_with_font_styles
from .tables import TableFormatter
from .text import clean_text, leading_whitespace_columns

logger = logging.getLogger(__name__)

QUOTE_MARKER_PATTERN = re.compile(r"^\s{0,3}> ?")


def _try_open_fence(ctx: ParseContext, line: str) -> bool:
    """Detect the start of a fenced code block.

    Args:
        ctx: Parse context to update when a fence opens.
        line: Current line being scanned.

    Returns:
        bool: True when the line opens a fence and the context is updated.

    Examples:
        _try_open_fence(ParseContext(), "```python")  # True
    """
    if ctx.state is not ParserState.NORMAL:
        return False

    fence_match = CODE_FENCE_PATTERN.match(line)
    if not fence_match:
        return False

    fence_sequence = fence_match.group("fence")
    info = fence_match.group("info").strip()
    # A backtick fence cannot carry backticks in its info string.
    if fence_sequence[0] == "`" and "`" in info:
        return False

    ctx.state = ParserState.IN_CODE_BLOCK
    ctx.code_lines = []
    ctx.code_language = info.split()[0] if info else ""
    ctx.fence_char = fence_sequence[0]
    ctx.fence_length = len(fence_sequence)
    ctx.fence_indent_columns = leading_whitespace_columns(fence_match.group("indent") or "")
    return True


def _is_closing_fence(ctx: ParseContext, line: str) -> bool:
    """Whether `line` closes the open fence: same character, at least as long, nothing after."""
    if ctx.fence_char is None:
        return False

    if leading_whitespace_columns(line) > CLOSING_FENCE_MAX_INDENT:
        return False
    stripped_line = line.lstrip(" \t")
    if not stripped_line or stripped_line[0] != ctx.fence_char:
        return False

    fence_run_length = len(stripped_line) - len(stripped_line.lstrip(ctx.fence_char))
    if fence_run_length < ctx.fence_length:
        return False
    return not stripped_line[fence_run_length:].strip()


def _strip_fence_indent(line: str, columns: int) -> str:
    """Remove up to `columns` leading spaces, as the opening fence was indented."""
    removable = min(columns, len(line) - len(line.lstrip(" ")))
    return line[removable:]


class MarkdownParser:
    """Line-oriented Markdown to HTML parser.

    Each source line is dispatched in a fixed priority order: code fence, math
    fence, table row, list item, horizontal rule, heading, blockquote, and
    finally paragraph. Open code, math, quote and table buffers are flushed at
    the end of input so no line is ever dropped.

    A parser instance holds only its options; all scratch state lives in a
    `ParseContext` created per call.

    Examples:
        MarkdownParser(ParseOptions.from_ids("conglv")).parse("# Title")
    """

    def __init__(self, options: ParseOptions | None = None):
        self.options = options or ParseOptions()

    def parse(self, markdown_text: str) -> str:
        """Render `markdown_text` to block HTML; non-string or empty input yields ``""``."""
        if not isinstance(markdown_text, str) or not markdown_text:
            return ""
        lines = clean_text(markdown_text).split("\n")
        return self._parse_lines(lines, AnchorRegistry(), quote_depth=0)

    def _parse_lines(self, lines: Sequence[str], anchors: AnchorRegistry, quote_depth: int) -> str:
        options = self.options
        ctx = ParseContext()
        lists = ListFormatter()
        table = TableFormatter()
        output: list[str] = []

        index = 0
        while index < len(lines):
            line = lines[index]

            if ctx.in_code_block:
                if _is_closing_fence(ctx, line):
                    output.append(self._flush_code(ctx))
                else:
                    ctx.code_lines.append(_strip_fence_indent(line, ctx.fence_indent_columns))
                index += 1
                continue

            if ctx.in_math_block:
                if MATH_FENCE_PATTERN.match(line):
                    output.append(self._flush_math(ctx))
                else:
                    ctx.math_lines.append(line)
                index += 1
                continue

            if ctx.in_blockquote:
                if BLOCKQUOTE_PATTERN.match(line) or not line.strip():
                    ctx.blockquote_lines.append(line)
                    index += 1
                    continue
                output.append(self._flush_blockquote(ctx, anchors, quote_depth))

            if table.is_active:
                result = table.process_row(line, lines, index, options)
                if result.html:
                    output.append(result.html)
                if result.consumed:
                    index += 1
                continue

            html = self._process_line(ctx, lists, table, lines, index, anchors, quote_depth)
            if html:
                output.append(html)
            index += 1

        output.extend(self._flush_open_blocks(ctx, table, anchors, quote_depth))
        return "".join(output)

    def _process_line(
        self,
        ctx: ParseContext,
        lists: ListFormatter,
        table: TableFormatter,
        lines: Sequence[str],
        index: int,
        anchors: AnchorRegistry,
        quote_depth: int,
    ) -> str:
        options = self.options
        line = lines[index]

        if not line.strip():
            return ""
        if REFERENCE_DEFINITION_PATTERN.match(line):
            return ""

        if _try_open_fence(ctx, line):
            return ""
        if MATH_FENCE_PATTERN.match(line):
            ctx.state = ParserState.IN_MATH_BLOCK
            ctx.math_lines = []
            return ""

        result = table.process_row(line, lines, index, options)
        if result.consumed:
            return ""

        list_result = lists.process_line(line, options)
        if list_result.is_list_item:
            return list_result.html

        if HORIZONTAL_RULE_PATTERN.match(line):
            return render_horizontal_rule(options)

        heading = HEADING_PATTERN.match(line)
        if heading:
            content = format_inline(
                heading.group(2),
                options.color_theme,
                base_font_size=options.base_font_size,
                formula_renderer=options.formula_renderer,
            )
            level = len(heading.group(1))
            return render_heading(level, content, options, anchors.anchor_for(content))

        if BLOCKQUOTE_PATTERN.match(line) and quote_depth < MAX_QUOTE_DEPTH:
            ctx.state = ParserState.IN_BLOCKQUOTE
            ctx.blockquote_lines = [line]
            return ""

        return render_paragraph(line, options)

    def _flush_code(self, ctx: ParseContext) -> str:
        html = render_code_block("\n".join(ctx.code_lines), ctx.code_language, self.options)
        ctx.reset_code_block()
        return html

    def _flush_math(self, ctx: ParseContext) -> str:
        html = render_math_block("\n".join(ctx.math_lines), self.options)
        ctx.math_lines = []
        ctx.state = ParserState.NORMAL
        return html

    def _flush_blockquote(
        self, ctx: ParseContext, anchors: AnchorRegistry, quote_depth: int
    ) -> str:
        """Render buffered quote lines, parsing their content one level deeper."""
        inner_lines = [QUOTE_MARKER_PATTERN.sub("", line, count=1) for line in ctx.blockquote_lines]
        ctx.blockquote_lines = []
        ctx.state = ParserState.NORMAL
        inner_html = self._parse_lines(inner_lines, anchors, quote_depth + 1)
        return render_blockquote(inner_html, quote_depth, self.options)

    def _flush_open_blocks(
        self, ctx: ParseContext, table: TableFormatter, anchors: AnchorRegistry, quote_depth: int
    ) -> list[str]:
        flushed = []
        if ctx.in_code_block:
            logger.debug("Unterminated code block flushed at end of input")
            flushed.append(self._flush_code(ctx))
        elif ctx.in_math_block:
            logger.debug("Unterminated math block flushed at end of input")
            flushed.append(self._flush_math(ctx))
        elif ctx.in_blockquote:
            flushed.append(self._flush_blockquote(ctx, anchors, quote_depth))
        if table.is_active:
            flushed.append(table.complete(self.options))
        return flushed


def parse_markdown(markdown_text: str, options: ParseOptions | None = None) -> str:
    """Convert Markdown to block HTML without the export post-processing.

    Args:
        markdown_text: Markdown source.
        options: Render options; defaults to `ParseOptions()`.

    Returns:
        str: Concatenated block HTML; ``""`` for empty or non-string input.

    Examples:
        parse_markdown("Some **bold** text")
    """
    return MarkdownParser(options).parse(markdown_text)


def apply_styles(html: str, options: ParseOptions | None = None) -> str:
    """Post-process rendered HTML for the chosen output.

    Theme colors and font sizes of the blocks are rewritten first. Preview
    output then only gains figure captions. Export output is wrapped with the
    font styles and passed through the theme system's copy adapter; without
    font settings it stops after the block restyling. Any earlier output of
    this function can be passed in again: restyling it with other options
    gives the same HTML as styling the original render with them, as long as
    the theme system and output mode stay the same.

    Args:
        html: Output of `parse_markdown`, or of an earlier `apply_styles` call.
        options: Render options; defaults to `ParseOptions()`.

    Returns:
        str: Final HTML; ``""`` for empty input.
    """
    if not html:
        return ""
    options = options or ParseOptions()
    font_settings = options.font_settings

    html = retheme_blocks(html, options)
    if options.is_preview:
        return add_figure_captions(html, font_settings)
    if not font_settings:
        return html

    out = wrap_with_font_styles(html, font_settings)
    return apply_copy_adapter(
        out,
        primary=options.color_theme.primary or DEFAULT_PRIMARY,
        base_font_size=font_settings.font_size or DEFAULT_FONT_SIZE,
        theme_system=options.theme_system,
    )


def render(markdown_text: str, options: ParseOptions | None = None) -> str:
    """Render Markdown to final, inline-styled HTML.

    This is the engine entry point: block parsing followed by `apply_styles`.
    Malformed Markdown never raises; the worst case is literal rendering.

    Args:
        markdown_text: Markdown source.
        options: Render options; defaults to `ParseOptions()` (export mode,
            default theme, code style and theme system).

    Returns:
        str: HTML ready for preview or rich-text copy; ``""`` for empty or
            non-string input.

    Examples:
        render("# Title\\n\\nSome **bold** text", ParseOptions.from_ids("conglv"))
    """
    options = options or ParseOptions()
    return apply_styles(parse_markdown(markdown_text, options), options)
