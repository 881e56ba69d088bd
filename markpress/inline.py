"""Inline formatting pipeline.

Passes run in a fixed order over the text of one block:

    escapes -> code -> math -> images -> links -> keyboard -> highlight
    -> bold/italic -> strikethrough -> superscript -> subscript
    -> restore math -> restore code -> restore escapes

Escaped punctuation, code spans and formulas are swapped for tokens owned by
a fresh `PlaceholderContext` before the pattern-based passes run and are
spliced back afterwards, so their content is never matched twice.
"""

from __future__ import annotations

import html
import re
from collections.abc import Callable
from dataclasses import dataclass, field

from .constants import (
    CODE_FONT_FAMILY,
    DEFAULT_FONT_SIZE,
    ESCAPABLE_CHARACTERS,
    INLINE_CODE_FONT_SIZE,
    PLACEHOLDER_CLOSE,
    PLACEHOLDER_OPEN,
)
from .formulas import (
    BLOCK_MATH_PATTERN,
    INLINE_MATH_PATTERN,
    extract_math,
    render_math_placeholders,
    restore_math,
)
from .models import FormulaRenderer, MathPlaceholder, PlaceholderContext
from .text import find_inline_code_spans
from .themes import ColorTheme

ESCAPE_PATTERN = re.compile("\\\\([" + re.escape(ESCAPABLE_CHARACTERS) + "])")
TAG_SPLIT_PATTERN = re.compile(r"(<[^>]+>)")
# A URL may hold one level of balanced parentheses, as in wiki links.
URL_CHARACTER = r"(?:[^\s()<>]|\([^\s()<>]*\))"
URL_TITLE = r"(?:\s+[\"']([^\"']*)[\"'])?"
IMAGE_PATTERN = re.compile(rf"!\[([^\]]*)\]\(\s*<?({URL_CHARACTER}*)>?{URL_TITLE}\s*\)")
LINK_PATTERN = re.compile(rf"\[([^\]]+)\]\(\s*<?({URL_CHARACTER}+)>?{URL_TITLE}\s*\)")
KEYBOARD_PATTERN = re.compile(r"<kbd>(.*?)</kbd>")
HIGHLIGHT_PATTERN = re.compile(r"==(.+?)==")
STRIKETHROUGH_PATTERN = re.compile(r"~~(.+?)~~")
SUPERSCRIPT_PATTERN = re.compile(r"\^([^\^\s]+)\^")
SUBSCRIPT_PATTERN = re.compile(r"(?<!~)~([^~\s]+)~(?!~)")

BOLD_ITALIC_STARS = re.compile(r"\*\*\*(.+?)\*\*\*")
BOLD_ITALIC_UNDERSCORES = re.compile(r"(^|[^A-Za-z0-9_])_{3}(.+?)_{3}(?![A-Za-z0-9_])")
BOLD_WITH_ITALIC_STARS = re.compile(r"\*\*([^*]*(?:\*[^*]+\*[^*]*)*)\*\*")
# Placeholder tokens contain underscores but count as one plain character.
NON_UNDERSCORE = (
    rf"(?:[^_{PLACEHOLDER_OPEN}]"
    rf"|{PLACEHOLDER_OPEN}[^{PLACEHOLDER_CLOSE}]*{PLACEHOLDER_CLOSE})"
)
BOLD_WITH_ITALIC_UNDERSCORES = re.compile(
    rf"(^|[^A-Za-z0-9_])__({NON_UNDERSCORE}*(?:_{NON_UNDERSCORE}+_{NON_UNDERSCORE}*)*)__"
    r"(?![A-Za-z0-9_])"
)
ITALIC_STARS = re.compile(r"(?<!\*)\*([^*]+)\*(?!\*)")
ITALIC_UNDERSCORES = re.compile(rf"(^|[^A-Za-z0-9_])_({NON_UNDERSCORE}+)_(?![A-Za-z0-9_])")

UNSAFE_SCHEMES = ("javascript:", "vbscript:", "file:")
DEFAULT_IMAGE_ALT = "image"


def escape_html(text: str) -> str:
    """Escape ``& < > " '`` for use in text and attribute values."""
    return html.escape(text, quote=True)


def sanitize_attribute(value: str | None) -> str:
    if not value:
        return ""
    return escape_html(value)


def clean_url(url: str | None, allow_data_images: bool = False) -> str:
    """Return a safe, attribute-escaped URL, or ``""`` when it must be dropped.

    Scripting schemes are rejected; ``data:`` URLs are only kept for images
    when `allow_data_images` is set.

    Examples:
        clean_url("https://example.com/?a=1&b=2")  # "https://example.com/?a=1&amp;b=2"
        clean_url("javascript:alert(1)")  # ""
    """
    if not url:
        return ""
    url = url.strip()
    compact = re.sub(r"[\s\x00-\x1f]", "", html.unescape(url)).lower()
    if compact.startswith(UNSAFE_SCHEMES):
        return ""
    if compact.startswith("data:") and not (
        allow_data_images and compact.startswith("data:image/")
    ):
        return ""
    return escape_html(html.unescape(url))


def _outside_tags(transform: Callable[[str], str]) -> Callable[[str], str]:
    """Apply `transform` to text segments only, never inside ``<...>`` tags."""

    def apply(text: str) -> str:
        if "<" not in text:
            return transform(text)
        segments = TAG_SPLIT_PATTERN.split(text)
        return "".join(
            segment if index % 2 else transform(segment) for index, segment in enumerate(segments)
        )

    return apply


def _masked(text: str, spans: list[tuple[int, int]]) -> str:
    characters = list(text)
    for start, end in spans:
        characters[start:end] = " " * (end - start)
    return "".join(characters)


def _literal_ranges(text: str) -> list[tuple[int, int]]:
    """Ranges of code spans and formulas, where backslashes are literal."""
    ranges = [(start, end) for start, end, _ in find_inline_code_spans(text)]
    masked = _masked(text, ranges)
    for pattern in (BLOCK_MATH_PATTERN, INLINE_MATH_PATTERN):
        for match in pattern.finditer(masked):
            ranges.append(match.span())
        masked = _masked(masked, ranges)
    return sorted(ranges)


def protect_escapes(text: str) -> tuple[str, PlaceholderContext]:
    r"""Replace backslash escapes with tokens.

    Escapes inside code spans and formulas are left alone.

    Returns:
        tuple[str, PlaceholderContext]: Protected text and the context holding
            the escaped characters.

    Examples:
        text, context = protect_escapes(r"\*not italic\*")
        context.restore(text)  # "*not italic*"
    """
    context = PlaceholderContext("ESC")
    if "\\" not in text:
        return text, context

    def substitute(match: re.Match[str]) -> str:
        return context.add(escape_html(match.group(1)))

    parts = []
    offset = 0
    for start, end in _literal_ranges(text):
        if start < offset:
            continue
        parts.append(ESCAPE_PATTERN.sub(substitute, text[offset:start]))
        parts.append(text[start:end])
        offset = end
    parts.append(ESCAPE_PATTERN.sub(substitute, text[offset:]))
    return "".join(parts), context


def restore_escapes(text: str, context: PlaceholderContext | None) -> str:
    if context is None:
        return text
    return context.restore(text)


def inline_code_style(theme: ColorTheme) -> str:
    return (
        f"background-color: {theme.inline_code_bg}; color: {theme.inline_code_text}; "
        f"padding: 2px 4px; border-radius: 3px; font-family: {CODE_FONT_FAMILY}; "
        f"font-size: {INLINE_CODE_FONT_SIZE}px; border: 1px solid {theme.inline_code_border};"
    )


def process_inline_code(text: str, theme: ColorTheme) -> tuple[str, PlaceholderContext]:
    """Render code spans and replace them with context-scoped tokens.

    Args:
        text: Inline Markdown text.
        theme: Color theme providing the inline code colors.

    Returns:
        tuple[str, PlaceholderContext]: Text with tokens, and the context
            holding the rendered ``<code>`` elements in source order.

    Examples:
        text, context = process_inline_code("use `pip`", theme)
        restore_code_placeholders(text, context)  # 'use <code style="...">pip</code>'
    """
    context = PlaceholderContext("CODE")
    spans = find_inline_code_spans(text)
    if not spans:
        return text, context

    style = inline_code_style(theme)
    parts = []
    offset = 0
    for start, end, delimiter_length in spans:
        parts.append(text[offset:start])
        code = text[start + delimiter_length : end - delimiter_length]
        if len(code) >= 2 and code[0] == code[-1] == " " and code.strip():
            code = code[1:-1]
        parts.append(context.add(f'<code style="{style}">{escape_html(code)}</code>'))
        offset = end
    parts.append(text[offset:])
    return "".join(parts), context


def restore_code_placeholders(text: str, context: PlaceholderContext | None) -> str:
    """Splice rendered code spans back in; a None or foreign context is a no-op."""
    if context is None:
        return text
    return context.restore(text)


def process_images(text: str, theme: ColorTheme) -> str:
    def substitute(match: re.Match[str]) -> str:
        alt, url, title = match.groups()
        has_alt = bool(alt and alt.strip())
        clean_alt = alt.strip() if has_alt else DEFAULT_IMAGE_ALT
        source = clean_url(url, allow_data_images=True)
        if not source:
            return f'<span class="md-image-placeholder">{escape_html(clean_alt)}</span>'
        caption = ' data-md-caption="true"' if has_alt else ""
        title_attribute = f' title="{sanitize_attribute(title)}"' if title else ""
        return (
            f'<img src="{source}" alt="{sanitize_attribute(clean_alt)}"{caption}{title_attribute} '
            "style=\"max-width: 100%; height: auto; border-radius: 6px; "
            f'box-shadow: 0 2px 8px {theme.shadow_color}; margin: 8px 0; display: block;" '
            'loading="lazy">'
        )

    return IMAGE_PATTERN.sub(substitute, text)


def process_links(text: str, theme: ColorTheme) -> str:
    def substitute(match: re.Match[str]) -> str:
        label, url, title = match.groups()
        href = clean_url(url)
        if not href:
            return label
        title_attribute = f' title="{sanitize_attribute(title)}"' if title else ""
        return (
            f'<a href="{href}"{title_attribute} style="color: {theme.primary}; '
            f'text-decoration: none; border-bottom: 1px solid {theme.primary}4D;" '
            f'target="_blank" rel="noopener noreferrer">{label}</a>'
        )

    return LINK_PATTERN.sub(substitute, text)


def process_keyboard(text: str, theme: ColorTheme) -> str:
    style = (
        f"background-color: {theme.border_light}; color: {theme.text_primary}; "
        f"padding: 2px 6px; border-radius: 3px; border: 1px solid {theme.border_medium}; "
        f"font-family: monospace; font-size: 0.9em; box-shadow: 0 1px 2px {theme.shadow_color};"
    )
    return KEYBOARD_PATTERN.sub(lambda match: f'<kbd style="{style}">{match.group(1)}</kbd>', text)


def process_highlight(text: str, theme: ColorTheme) -> str:
    style = (
        f"background-color: {theme.highlight}; color: {theme.text_primary}; "
        "padding: 1px 2px; border-radius: 2px;"
    )
    return _outside_tags(
        lambda segment: HIGHLIGHT_PATTERN.sub(rf'<mark style="{style}">\1</mark>', segment)
    )(text)


def process_bold_and_italic(text: str, theme: ColorTheme) -> str:
    """Render ``***``, ``**``, ``*`` and their underscore forms.

    Triple markers are consumed first so ``***x***`` becomes one bold-italic
    element, then bold (with nested italics), then plain italics.
    Underscore forms only open and close at word boundaries.
    """
    bold_italic = (
        f'<strong><em style="color: {theme.primary}; font-style: italic; font-weight: 900;">'
    )
    bold = f'<strong style="color: {theme.primary}; font-weight: 900;">'
    italic = f'<em style="color: {theme.text_secondary}; font-style: italic;">'

    def transform(segment: str) -> str:
        if "*" not in segment and "_" not in segment:
            return segment
        segment = BOLD_ITALIC_STARS.sub(
            lambda m: f"{bold_italic}{m.group(1)}</em></strong>", segment
        )
        segment = BOLD_ITALIC_UNDERSCORES.sub(
            lambda m: f"{m.group(1)}{bold_italic}{m.group(2)}</em></strong>", segment
        )
        segment = BOLD_WITH_ITALIC_STARS.sub(
            lambda m: bold + ITALIC_STARS.sub(rf"{italic}\1</em>", m.group(1)) + "</strong>",
            segment,
        )
        segment = BOLD_WITH_ITALIC_UNDERSCORES.sub(
            lambda m: m.group(1)
            + bold
            + ITALIC_UNDERSCORES.sub(rf"\1{italic}\2</em>", m.group(2))
            + "</strong>",
            segment,
        )
        segment = ITALIC_STARS.sub(rf"{italic}\1</em>", segment)
        return ITALIC_UNDERSCORES.sub(rf"\1{italic}\2</em>", segment)

    return _outside_tags(transform)(text)


def process_strikethrough(text: str, theme: ColorTheme) -> str:
    style = f"color: {theme.text_muted}; text-decoration: line-through;"
    return _outside_tags(
        lambda segment: STRIKETHROUGH_PATTERN.sub(rf'<del style="{style}">\1</del>', segment)
    )(text)


def process_superscript(text: str, theme: ColorTheme) -> str:
    style = f"color: {theme.text_secondary}; font-size: 0.8em;"
    return _outside_tags(
        lambda segment: SUPERSCRIPT_PATTERN.sub(rf'<sup style="{style}">\1</sup>', segment)
    )(text)


def process_subscript(text: str, theme: ColorTheme) -> str:
    style = f"color: {theme.text_secondary}; font-size: 0.8em;"
    return _outside_tags(
        lambda segment: SUBSCRIPT_PATTERN.sub(rf'<sub style="{style}">\1</sub>', segment)
    )(text)


@dataclass
class PipelineState:
    """Contexts handed from the protecting passes to the restoring passes."""

    theme: ColorTheme
    handle_escapes: bool = True
    base_font_size: int = DEFAULT_FONT_SIZE
    formula_renderer: FormulaRenderer | None = None
    escape_context: PlaceholderContext | None = None
    code_context: PlaceholderContext | None = None
    math_placeholders: list[MathPlaceholder] = field(default_factory=list)


def _escapes_pass(text: str, state: PipelineState) -> str:
    if not state.handle_escapes:
        return text
    text, state.escape_context = protect_escapes(text)
    return text


def _code_pass(text: str, state: PipelineState) -> str:
    text, state.code_context = process_inline_code(text, state.theme)
    return text


def _math_pass(text: str, state: PipelineState) -> str:
    text, state.math_placeholders = extract_math(text)
    return text


def _restore_math_pass(text: str, state: PipelineState) -> str:
    if not state.math_placeholders:
        return text
    rendered = render_math_placeholders(state.math_placeholders, state.formula_renderer)
    return restore_math(text, rendered)


INLINE_PASSES: tuple[tuple[str, Callable[[str, PipelineState], str]], ...] = (
    ("escapes", _escapes_pass),
    ("code", _code_pass),
    ("math", _math_pass),
    ("images", lambda text, state: process_images(text, state.theme)),
    ("links", lambda text, state: process_links(text, state.theme)),
    ("keyboard", lambda text, state: process_keyboard(text, state.theme)),
    ("highlight", lambda text, state: process_highlight(text, state.theme)),
    ("bold_and_italic", lambda text, state: process_bold_and_italic(text, state.theme)),
    ("strikethrough", lambda text, state: process_strikethrough(text, state.theme)),
    ("superscript", lambda text, state: process_superscript(text, state.theme)),
    ("subscript", lambda text, state: process_subscript(text, state.theme)),
    ("restore_math", _restore_math_pass),
    ("restore_code", lambda text, state: restore_code_placeholders(text, state.code_context)),
    ("restore_escapes", lambda text, state: restore_escapes(text, state.escape_context)),
)


def format_inline(
    text: str,
    theme: ColorTheme,
    *,
    handle_escapes: bool = True,
    base_font_size: int = DEFAULT_FONT_SIZE,
    formula_renderer: FormulaRenderer | None = None,
) -> str:
    """Run the inline pipeline over one block of text.

    Args:
        text: Raw inline Markdown (a paragraph line, heading, list item or cell).
        theme: Color theme for the generated inline styles.
        handle_escapes: Protect and restore backslash escapes.
        base_font_size: Base font size in pixels of the surrounding block.
        formula_renderer: Optional replacement for the built-in formula renderer.

    Returns:
        str: HTML fragment; empty for empty input.

    Examples:
        format_inline("Some **bold** and `code`", get_color_theme())
    """
    if not text:
        return ""

    state = PipelineState(
        theme=theme,
        handle_escapes=handle_escapes,
        base_font_size=base_font_size,
        formula_renderer=formula_renderer,
    )
    for _, apply_pass in INLINE_PASSES:
        text = apply_pass(text, state)
    return text
