"""Minimal rule-based syntax highlighter for fenced code blocks."""

from __future__ import annotations

import html
import re
from dataclasses import dataclass
from types import MappingProxyType

from .models import PlaceholderContext
from .themes import CodeStyle

LANGUAGE_ALIASES = MappingProxyType(
    {
        "js": "javascript",
        "ts": "typescript",
        "py": "python",
        "rb": "ruby",
        "sh": "bash",
        "shell": "bash",
        "zsh": "bash",
        "yml": "yaml",
        "md": "markdown",
        "htm": "html",
        "xml": "html",
        "c++": "cpp",
        "c#": "csharp",
        "cs": "csharp",
        "fs": "fsharp",
        "vb": "vbnet",
        "ps1": "powershell",
        "psm1": "powershell",
    }
)

SUPPORTED_LANGUAGES = frozenset(
    """
    javascript typescript python java c cpp csharp php ruby go rust swift kotlin
    scala html css scss sass less json xml yaml markdown bash shell powershell sql
    r matlab perl lua dart elixir erlang haskell clojure fsharp vbnet assembly
    dockerfile nginx apache toml text
    """.split()
)

HASH_COMMENT_LANGUAGES = frozenset(
    {
        "python",
        "bash",
        "ruby",
        "yaml",
        "perl",
        "r",
        "powershell",
        "dockerfile",
        "nginx",
        "toml",
        "elixir",
    }
)

BASE_KEYWORDS = (
    "function const let var if else for while return class import export from default "
    "async await try catch finally public private protected static void int string boolean "
    "true false null undefined"
).split()

EXTRA_KEYWORDS = MappingProxyType(
    {
        "python": (
            "def elif lambda None True False pass with as yield in not and or is raise "
            "except del global nonlocal assert break continue"
        ).split(),
        "bash": "then fi do done case esac echo local function in".split(),
        "go": "func package type struct interface map chan go defer range nil".split(),
        "rust": "fn let mut pub impl trait struct enum match use mod self Self".split(),
        "sql": (
            "SELECT FROM WHERE INSERT INTO VALUES UPDATE SET DELETE JOIN ON GROUP BY ORDER "
            "LIMIT AS AND OR NOT NULL CREATE TABLE"
        ).split(),
    }
)

TAG_PATTERN = re.compile(r"<[^>]+>")


@dataclass(frozen=True)
class HighlightRule:
    pattern: re.Pattern[str]
    role: str


def normalize_language(language: str | None) -> str:
    """Resolve aliases and case; an empty language becomes ``"text"``.

    Examples:
        normalize_language("JS")  # "javascript"
        normalize_language(None)  # "text"
    """
    if not language or not language.strip():
        return "text"
    normalized = language.strip().lower()
    return LANGUAGE_ALIASES.get(normalized, normalized)


def is_supported_language(language: str | None) -> bool:
    return normalize_language(language) in SUPPORTED_LANGUAGES


def build_rules(language: str | None = None) -> tuple[HighlightRule, ...]:
    """Return highlight rules in priority order for `language`.

    Earlier rules win: comments, then strings, keywords, numbers and finally
    identifiers followed by ``(``.
    """
    language = normalize_language(language)
    comment_rules = [
        HighlightRule(re.compile(r"/\*[\s\S]*?\*/"), "comment"),
    ]
    if language in HASH_COMMENT_LANGUAGES:
        comment_rules.insert(0, HighlightRule(re.compile(r"#.*$", re.MULTILINE), "comment"))
    else:
        comment_rules.insert(0, HighlightRule(re.compile(r"//.*$", re.MULTILINE), "comment"))

    keywords = BASE_KEYWORDS + EXTRA_KEYWORDS.get(language, [])
    keyword_pattern = r"\b(?:" + "|".join(sorted(set(keywords), key=len, reverse=True)) + r")\b"
    return (
        *comment_rules,
        HighlightRule(re.compile(r"([\"'`])(?!gt;|lt;|amp;)[^\"'`\n]*?\1"), "string"),
        HighlightRule(
            re.compile(keyword_pattern, re.IGNORECASE if language == "sql" else 0), "keyword"
        ),
        HighlightRule(re.compile(r"\b\d+(?:\.\d+)?\b"), "number"),
        HighlightRule(re.compile(r"\b[a-zA-Z_$][a-zA-Z0-9_$]*(?=\()"), "function"),
    )


def _token_span(text: str, color: str, role: str) -> str:
    return (
        f'<span style="color: {color} !important; font-weight: inherit; text-decoration: none;" '
        f'class="syntax-{role}" data-syntax="{role}" data-color="{color}">'
        f'<font color="{color}">{text}</font></span>'
    )


def _preserve_spaces(markup: str) -> str:
    """Turn spaces into ``&nbsp;`` everywhere except inside tags."""
    tags = PlaceholderContext("TAG", open_delimiter="\x00", close_delimiter="\x00")
    protected = TAG_PATTERN.sub(lambda match: tags.add(match.group(0)), markup)
    return tags.restore(protected.replace(" ", "&nbsp;"))


def highlight_code(code: str, language: str | None, code_style: CodeStyle | None) -> str:
    """Tokenize `code` and wrap claimed ranges in themed spans.

    Each rule claims character ranges over the HTML-escaped source; a match
    overlapping an earlier claim is skipped. Unclaimed text passes through.
    Spaces become ``&nbsp;`` so indentation survives rich-text paste.

    Args:
        code: Raw code block body.
        language: Fence info string, used for comment syntax and keywords.
        code_style: Style providing the syntax color map.

    Returns:
        str: HTML with newlines preserved as ``\\n``.

    Examples:
        highlight_code("return 1", "js", get_code_style("github"))
    """
    if not code:
        return ""

    escaped = html.escape(code, quote=False)
    syntax = dict(code_style.syntax) if code_style is not None else {}
    if not syntax:
        return escaped.replace(" ", "&nbsp;")

    claimed = bytearray(len(escaped))
    matches: list[tuple[int, int, str]] = []
    for rule in build_rules(language):
        color = syntax.get(rule.role)
        if not color:
            continue
        for match in rule.pattern.finditer(escaped):
            start, end = match.span()
            if start == end or any(claimed[start:end]):
                continue
            claimed[start:end] = b"\x01" * (end - start)
            matches.append((start, end, rule.role))

    parts = []
    offset = 0
    for start, end, role in sorted(matches):
        parts.append(escaped[offset:start])
        parts.append(_token_span(escaped[start:end], syntax[role], role))
        offset = end
    parts.append(escaped[offset:])
    return _preserve_spaces("".join(parts))
