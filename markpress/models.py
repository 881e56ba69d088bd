"""Data models for markpress."""

from __future__ import annotations

import re
import secrets
import time
from collections.abc import Callable
from dataclasses import dataclass, field
from enum import Enum, auto

from .constants import PLACEHOLDER_CLOSE, PLACEHOLDER_OPEN
from .themes import (
    DEFAULT_FONT_SETTINGS,
    CodeStyle,
    ColorTheme,
    FontSettings,
    ThemeSystem,
    get_code_style,
    get_color_theme,
    get_theme_system,
)

FormulaRenderer = Callable[[str, bool], str]

_BASE36_DIGITS = "0123456789abcdefghijklmnopqrstuvwxyz"


def _to_base36(value: int) -> str:
    digits = []
    while True:
        value, remainder = divmod(value, 36)
        digits.append(_BASE36_DIGITS[remainder])
        if value == 0:
            return "".join(reversed(digits))


def new_placeholder_id() -> str:
    """Mint an identifier for a placeholder context.

    Combines a base-36 millisecond timestamp with 32 random bits, so two
    contexts created within the same millisecond still differ.

    Examples:
        new_placeholder_id()  # "m1x2k9q0a3f91c2e"
    """
    return _to_base36(time.time_ns() // 1_000_000) + secrets.token_hex(4)


class ParserState(Enum):
    """Block parser states.

    Attributes:
        NORMAL: Between blocks; lines are dispatched by priority.
        IN_CODE_BLOCK: Inside a fenced code block.
        IN_MATH_BLOCK: Inside a ``$$`` math block.
        IN_BLOCKQUOTE: Buffering ``>`` lines.
    """

    NORMAL = auto()
    IN_CODE_BLOCK = auto()
    IN_MATH_BLOCK = auto()
    IN_BLOCKQUOTE = auto()


class ListType(Enum):
    UNORDERED = "unordered"
    ORDERED = "ordered"
    TASK = "task"


class TableState(Enum):
    NONE = auto()
    DETECTING = auto()
    PROCESSING = auto()


@dataclass
class PlaceholderContext:
    """Per-call store for protected fragments.

    Each context owns a unique `id`; every token it mints embeds that id, so
    restoring with a different context leaves foreign tokens untouched.

    Attributes:
        kind: Token family, e.g. ``"CODE"`` or ``"MATH"``.
        id: Unique context identifier.
        placeholders: Protected fragments in insertion order.
        open_delimiter: Character opening each token.
        close_delimiter: Character closing each token.

    Examples:
        context = PlaceholderContext("CODE")
        token = context.add("<code>x</code>")
        context.restore(f"a {token} b")  # "a <code>x</code> b"
    """

    kind: str
    id: str = field(default_factory=new_placeholder_id)
    placeholders: list[str] = field(default_factory=list)
    open_delimiter: str = PLACEHOLDER_OPEN
    close_delimiter: str = PLACEHOLDER_CLOSE

    def token(self, index: int) -> str:
        return f"{self.open_delimiter}{self.kind}_{self.id}_{index}{self.close_delimiter}"

    def add(self, fragment: str) -> str:
        """Store `fragment` and return the token that stands in for it."""
        self.placeholders.append(fragment)
        return self.token(len(self.placeholders) - 1)

    @property
    def pattern(self) -> re.Pattern[str]:
        return re.compile(
            re.escape(f"{self.open_delimiter}{self.kind}_{self.id}_")
            + r"(\d+)"
            + re.escape(self.close_delimiter)
        )

    def restore(self, text: str) -> str:
        """Replace every token owned by this context with its fragment."""
        if not self.placeholders:
            return text

        def substitute(match: re.Match[str]) -> str:
            index = int(match.group(1))
            if index < len(self.placeholders):
                return self.placeholders[index]
            return match.group(0)

        return self.pattern.sub(substitute, text)

    def __len__(self) -> int:
        return len(self.placeholders)


@dataclass
class MathPlaceholder:
    """A formula extracted from inline text.

    Attributes:
        id: Token that replaced the formula in the source text.
        latex: Formula source without delimiters.
        display_mode: True for ``$$...$$`` formulas.
        html: Rendered fragment, filled in by the batch render step.
    """

    id: str
    latex: str
    display_mode: bool
    html: str | None = None


@dataclass
class ListItem:
    """A parsed list line.

    Attributes:
        type: Unordered, ordered or task item.
        depth: Nesting level derived from leading indentation.
        marker: Source marker (``-``, ``*``, ``+`` or the ordinal digits).
        content: Item text after the marker.
        is_checked: Whether a task item is ticked.
    """

    type: ListType
    depth: int
    marker: str
    content: str
    is_checked: bool = False


@dataclass
class ParseContext:
    """Mutable scratch state for one block-parser run.

    Attributes:
        state: Current parser state.
        code_lines: Pending fenced code body.
        code_language: Info string of the open fence.
        fence_char: Fence character that opened the code block, if any.
        fence_length: Number of fence characters that opened the block.
        fence_indent_columns: Indentation width preceding the opening fence.
        math_lines: Pending ``$$`` block body.
        blockquote_lines: Pending quote lines, ``>`` markers included.
    """

    state: ParserState = ParserState.NORMAL
    code_lines: list[str] = field(default_factory=list)
    code_language: str = ""
    fence_char: str | None = None
    fence_length: int = 0
    fence_indent_columns: int = 0
    math_lines: list[str] = field(default_factory=list)
    blockquote_lines: list[str] = field(default_factory=list)

    @property
    def in_code_block(self) -> bool:
        return self.state is ParserState.IN_CODE_BLOCK

    @property
    def in_math_block(self) -> bool:
        return self.state is ParserState.IN_MATH_BLOCK

    @property
    def in_blockquote(self) -> bool:
        return self.state is ParserState.IN_BLOCKQUOTE

    def reset_code_block(self) -> None:
        self.state = ParserState.NORMAL
        self.code_lines = []
        self.code_language = ""
        self.fence_char = None
        self.fence_length = 0
        self.fence_indent_columns = 0


@dataclass(frozen=True)
class ParseOptions:
    """Immutable input bundle for a render call.

    Attributes:
        color_theme: Palette and semantic color roles.
        code_style: Code block chrome and syntax colors.
        theme_system: Typography scale and copy adapter id.
        font_settings: Font family, size, letter spacing and line height.
        is_preview: Preview output omits ``!important`` overrides and the
            export wrapper.
        formula_renderer: Optional replacement for the built-in formula
            renderer.

    Examples:
        ParseOptions.from_ids(color_theme="conglv", code_style="github")
    """

    color_theme: ColorTheme = field(default_factory=get_color_theme)
    code_style: CodeStyle = field(default_factory=get_code_style)
    theme_system: ThemeSystem = field(default_factory=get_theme_system)
    font_settings: FontSettings | None = DEFAULT_FONT_SETTINGS
    is_preview: bool = False
    formula_renderer: FormulaRenderer | None = None

    @classmethod
    def from_ids(
        cls,
        color_theme: str | None = None,
        code_style: str | None = None,
        theme_system: str | None = None,
        font_settings: FontSettings | None = DEFAULT_FONT_SETTINGS,
        is_preview: bool = False,
        formula_renderer: FormulaRenderer | None = None,
    ) -> ParseOptions:
        """Build options from preset identifiers; unknown ids use defaults."""
        return cls(
            color_theme=get_color_theme(color_theme),
            code_style=get_code_style(code_style),
            theme_system=get_theme_system(theme_system),
            font_settings=font_settings,
            is_preview=is_preview,
            formula_renderer=formula_renderer,
        )

    @property
    def base_font_size(self) -> int:
        if self.font_settings is not None and self.font_settings.font_size:
            return self.font_settings.font_size
        return self.theme_system.base_font_size
