"""Low-level text scanning helpers."""

from __future__ import annotations

import html
import re

TAG_PATTERN = re.compile(r"<[^>]+>")


def is_escaped(text: str, pos: int) -> bool:
    """Determine whether a character is escaped by preceding backslashes.

    Counts consecutive backslashes immediately before `pos`; an odd count marks
    the character as escaped.

    Args:
        text: Text containing the character.
        pos: Zero-based index of the character to inspect.

    Returns:
        bool: True when the character is escaped, otherwise False.

    Examples:
        is_escaped("\\\\*", 2)  # False, two backslashes
        is_escaped("\\*", 1)  # True, one backslash
    """
    backslash_count = 0
    i = pos - 1
    while i >= 0 and text[i] == "\\":
        backslash_count += 1
        i -= 1
    return backslash_count % 2 == 1


def find_inline_code_spans(text: str) -> list[tuple[int, int, int]]:
    """Locate inline code spans delimited by equal-length backtick runs.

    Both delimiters must be unescaped. A run without a partner of the same
    length is literal text.

    Args:
        text: The text to scan for inline code spans.

    Returns:
        list[tuple[int, int, int]]: Start (inclusive), end (exclusive) and
            delimiter length for each span.

    Examples:
        find_inline_code_spans("`code`")  # [(0, 6, 1)]
        find_inline_code_spans("``a ` b`` text")  # [(0, 9, 2)]
    """
    spans = []
    i = 0
    length = len(text)

    while i < length:
        if text[i] != "`" or is_escaped(text, i):
            i += 1
            continue

        start = i
        while i < length and text[i] == "`":
            i += 1
        run_length = i - start

        j = i
        closed = False
        while j < length:
            if text[j] != "`":
                j += 1
                continue
            close_start = j
            while j < length and text[j] == "`":
                j += 1
            if j - close_start == run_length:
                spans.append((start, j, run_length))
                closed = True
                break

        if closed:
            i = j
        # An unmatched run stays literal; scanning resumes after it.

    return spans


def leading_whitespace_columns(line: str) -> int:
    """Compute the column width of leading whitespace.

    Tabs advance to the next multiple of four columns to match Markdown
    indentation rules.

    Examples:
        leading_whitespace_columns("    text")  # 4
        leading_whitespace_columns("\\ttext")  # 4
    """
    columns = 0
    for character in line:
        if character == " ":
            columns += 1
        elif character == "\t":
            columns += 4 - (columns % 4)
        else:
            break
    return columns


def split_unescaped(text: str, separator: str) -> list[str]:
    """Split `text` on `separator` occurrences that are not backslash-escaped.

    Examples:
        split_unescaped("a \\\\| b | c", "|")  # ["a \\\\| b ", " c"]
    """
    parts = []
    current = []
    for index, character in enumerate(text):
        if character == separator and not is_escaped(text, index):
            parts.append("".join(current))
            current = []
        else:
            current.append(character)
    parts.append("".join(current))
    return parts


def clean_text(text: str) -> str:
    """Normalize raw Markdown before block parsing.

    Unifies line endings, expands tabs to four spaces, drops trailing
    whitespace and collapses runs of blank lines to a single blank line.

    Examples:
        clean_text("a\\r\\n\\n\\n\\nb  ")  # "a\\n\\nb"
    """
    text = text.replace("\r\n", "\n").replace("\r", "\n")
    text = text.replace("\t", "    ")
    text = re.sub(r"[ \t]+$", "", text, flags=re.MULTILINE)
    return re.sub(r"\n{3,}", "\n\n", text)


def strip_tags(fragment: str) -> str:
    """Return the visible text of an HTML fragment."""
    return html.unescape(TAG_PATTERN.sub("", fragment))
