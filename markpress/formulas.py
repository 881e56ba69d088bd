"""Formula extraction, rendering and restoration.

Formulas are lifted out of inline text before the emphasis passes run, so
``$a_1 * b_2$`` never turns into italics. Each formula is rendered exactly
once, by a pluggable renderer, and the result is spliced back verbatim.

The built-in renderer emits client-render markup: the escaped source sits in
a ``data-formula`` attribute and a visible ``<code>`` fallback, ready for
MathJax or KaTeX in the host page.
"""

from __future__ import annotations

import html
import logging
import re
from collections.abc import Iterable

from .exceptions import FormulaError
from .models import FormulaRenderer, MathPlaceholder, PlaceholderContext
from .text import find_inline_code_spans

logger = logging.getLogger(__name__)

BLOCK_MATH_PATTERN = re.compile(r"\$\$([\s\S]+?)\$\$")
# Opening `$` must not be followed by whitespace; closing `$` must not be
# preceded by whitespace or followed by a digit, so "$5 and $10" stays text.
# Formulas never span a protected code token.
INLINE_MATH_PATTERN = re.compile(
    r"(?<![\$\\])\$(?![\s$])([^$\n〖〗]*?[^\s$\\〖〗])\$(?![\$\d])"
)
FENCED_CODE_PATTERN = re.compile(r"```[\s\S]*?```")
ENVIRONMENT_PATTERN = re.compile(r"\\(begin|end)\{([^}]*)\}")

MATH_ERROR_TITLE = "Formula syntax error"

BLOCK_STYLE = "text-align:center;overflow-x:auto;overflow-y:auto;display:block;margin:16px 0;"
INLINE_STYLE = "cursor:pointer;display:inline-block;vertical-align:middle;"
SOURCE_STYLE = (
    "font-family: 'Latin Modern Math', 'Cambria Math', 'STIX Two Math', serif; "
    "font-style: italic; white-space: pre-wrap;"
)


def _strip_code(text: str) -> str:
    text = FENCED_CODE_PATTERN.sub("", text)
    parts = []
    offset = 0
    for start, end, _ in find_inline_code_spans(text):
        parts.append(text[offset:start])
        offset = end
    parts.append(text[offset:])
    return "".join(parts)


def detect_math(text: str) -> tuple[bool, bool]:
    """Report whether `text` contains inline and block formulas.

    Fenced and inline code are ignored.

    Returns:
        tuple[bool, bool]: ``(has_inline_math, has_block_math)``.

    Examples:
        detect_math("Euler: $e^{i\\pi}+1=0$")  # (True, False)
        detect_math("`$x$`")  # (False, False)
    """
    if not text:
        return False, False
    without_code = _strip_code(text)
    has_block = BLOCK_MATH_PATTERN.search(without_code) is not None
    has_inline = INLINE_MATH_PATTERN.search(BLOCK_MATH_PATTERN.sub("", without_code)) is not None
    return has_inline, has_block


def extract_math(text: str) -> tuple[str, list[MathPlaceholder]]:
    """Replace formulas with tokens scoped to a fresh placeholder context.

    Block formulas (``$$...$$``) are extracted first so their delimiters are
    never read as two inline formulas.

    Args:
        text: Inline text, usually with code spans already protected.

    Returns:
        tuple[str, list[MathPlaceholder]]: Text with tokens and the extracted
            formulas in order of extraction.

    Examples:
        text, formulas = extract_math("area $\\pi r^2$")
        formulas[0].latex  # "\\pi r^2"
    """
    if not text:
        return "", []

    context = PlaceholderContext("MATH")
    placeholders: list[MathPlaceholder] = []

    def lift(display_mode: bool):
        def substitute(match: re.Match[str]) -> str:
            latex = match.group(1).strip()
            token = context.add(match.group(0))
            placeholders.append(MathPlaceholder(id=token, latex=latex, display_mode=display_mode))
            return token

        return substitute

    text = BLOCK_MATH_PATTERN.sub(lift(True), text)
    text = INLINE_MATH_PATTERN.sub(lift(False), text)
    return text, placeholders


def _escape_attribute(value: str) -> str:
    return html.escape(value, quote=True)


def _validate(latex: str) -> None:
    depth = 0
    index = 0
    while index < len(latex):
        character = latex[index]
        if character == "\\":
            index += 2
            continue
        if character == "{":
            depth += 1
        elif character == "}":
            depth -= 1
            if depth < 0:
                raise FormulaError(latex, "unexpected '}'")
        index += 1
    if depth:
        raise FormulaError(latex, "unbalanced braces")

    environments: list[str] = []
    for kind, name in ENVIRONMENT_PATTERN.findall(latex):
        if kind == "begin":
            environments.append(name)
        elif not environments or environments.pop() != name:
            raise FormulaError(latex, f"unexpected \\end{{{name}}}")
    if environments:
        raise FormulaError(latex, f"missing \\end{{{environments[-1]}}}")


def render_formula(latex: str, display_mode: bool = False) -> str:
    """Render a formula as client-render markup.

    Args:
        latex: Formula source without delimiters.
        display_mode: Render as a centered block instead of inline.

    Returns:
        str: HTML fragment; empty for empty input.

    Raises:
        FormulaError: If braces or environments are unbalanced.

    Examples:
        render_formula("x^2")  # '<span class="span-inline-equation math-inline" ...'
    """
    if not latex:
        return ""
    _validate(latex)

    formula = _escape_attribute(latex)
    source = html.escape(latex, quote=False)
    if display_mode:
        return (
            '<span class="span-block-equation" style="cursor:pointer">'
            f'<section class="math-block block-equation" data-formula="{formula}" '
            f'style="{BLOCK_STYLE}"><code style="{SOURCE_STYLE}">{source}</code>'
            "</section></span>"
        )
    return (
        f'<span class="span-inline-equation math-inline" style="{INLINE_STYLE}" '
        f'data-formula="{formula}"><span class="inline-equation" data-formula="{formula}">'
        f'<code style="{SOURCE_STYLE}">{source}</code></span></span>'
    )


def render_error(latex: str) -> str:
    """Inline fragment shown in place of a formula that failed to render."""
    return f'<span class="math-error" title="{MATH_ERROR_TITLE}">{html.escape(latex)}</span>'


def render_math_placeholders(
    placeholders: Iterable[MathPlaceholder], renderer: FormulaRenderer | None = None
) -> list[MathPlaceholder]:
    """Render every extracted formula, filling in `MathPlaceholder.html`.

    A renderer that raises is logged and replaced by an error fragment; the
    batch always completes.

    Args:
        placeholders: Formulas returned by `extract_math`.
        renderer: Callable ``(latex, display_mode) -> html``; defaults to
            `render_formula`.

    Returns:
        list[MathPlaceholder]: The same placeholders, rendered.
    """
    renderer = renderer or render_formula
    rendered = []
    for placeholder in placeholders:
        try:
            placeholder.html = renderer(placeholder.latex, placeholder.display_mode)
        except Exception as error:
            logger.warning("Formula rendering failed for %r: %s", placeholder.latex, error)
            placeholder.html = render_error(placeholder.latex)
        rendered.append(placeholder)
    return rendered


def restore_math(text: str, placeholders: Iterable[MathPlaceholder]) -> str:
    """Replace formula tokens with their rendered HTML.

    Placeholders that have not been rendered yet restore the escaped source.
    """
    for placeholder in placeholders:
        fragment = placeholder.html
        if fragment is None:
            delimiter = "$$" if placeholder.display_mode else "$"
            fragment = html.escape(f"{delimiter}{placeholder.latex}{delimiter}", quote=False)
        text = text.replace(placeholder.id, fragment)
    return text


def process_math(text: str, renderer: FormulaRenderer | None = None) -> str:
    """Extract, render and restore every formula in `text`.

    Examples:
        process_math("$x$")  # '<span class="span-inline-equation math-inline" ...'
    """
    text, placeholders = extract_math(text)
    if not placeholders:
        return text
    return restore_math(text, render_math_placeholders(placeholders, renderer))
