"""Constants used across the markpress package."""

from __future__ import annotations

import re

# Block patterns
CODE_FENCE_PATTERN = re.compile(r"^(?P<indent>\s{0,3})(?P<fence>`{3,}|~{3,})(?P<info>.*)$")
CLOSING_FENCE_MAX_INDENT = 3
MATH_FENCE_PATTERN = re.compile(r"^\s{0,3}\$\$\s*$")
HEADING_PATTERN = re.compile(r"^(#{1,6})\s+(.+?)(?:\s+#+)?\s*$")
HORIZONTAL_RULE_PATTERN = re.compile(r"^\s{0,3}([-*_])(?:\s*\1){2,}\s*$")
BLOCKQUOTE_PATTERN = re.compile(r"^\s{0,3}>")
# Deeper ">" markers are kept as literal text.
MAX_QUOTE_DEPTH = 32
REFERENCE_DEFINITION_PATTERN = re.compile(r"^\s*!?\[[^\]]+\]:\s*\S+(?:\s+\"[^\"]*\")?\s*$")

# List patterns
SPACES_PER_LEVEL = 2
TASK_ITEM_PATTERN = re.compile(r"^(\s*)[-*+]\s+\[([ xX])\](?:\s+(.*))?$")
UNORDERED_ITEM_PATTERN = re.compile(r"^(\s*)([-*+])\s+(.*)$")
ORDERED_ITEM_PATTERN = re.compile(r"^(\s*)(\d{1,9})\.\s+(.*)$")

# Table patterns
TABLE_SEPARATOR_CELL_PATTERN = re.compile(r"^:?-+:?$")

# Placeholder delimiters: non-ASCII brackets never produced by Markdown syntax.
PLACEHOLDER_OPEN = "〖"
PLACEHOLDER_CLOSE = "〗"

# Characters a backslash may escape
ESCAPABLE_CHARACTERS = "\\`*_{}[]()#+-.!~$|^=<>"

# Typography
DEFAULT_FONT_SIZE = 16
MIN_FONT_SIZE = 12
MAX_FONT_SIZE = 24
INLINE_CODE_FONT_SIZE = 14
CODE_FONT_FAMILY = "Consolas, Monaco, 'Courier New', monospace"

# CLI limits
DEFAULT_MAX_FILE_SIZE = 10 * 1024 * 1024
MARKDOWN_EXTENSIONS = (".md", ".markdown", ".mdown", ".mkd", ".mkdn", ".mdtxt", ".txt")
