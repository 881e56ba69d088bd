"""Tests for formula detection, extraction and rendering."""

from __future__ import annotations

import logging

import pytest

from markpress.exceptions import FormulaError
from markpress.formulas import (
    detect_math,
    extract_math,
    process_math,
    render_formula,
    render_math_placeholders,
    restore_math,
)


@pytest.mark.parametrize(
    "text, expected",
    [
        ("Euler: $e^{i\\pi}+1=0$", (True, False)),
        ("$$\\int_0^1 x\\,dx$$", (False, True)),
        ("inline $x$ and block $$y$$", (True, True)),
        ("`$x$` in code", (False, False)),
        ("```\n$$x$$\n```", (False, False)),
        ("costs $5 and $10", (False, False)),
        ("", (False, False)),
    ],
)
def test_detect_math(text, expected):
    assert detect_math(text) == expected


def test_extract_math_lifts_block_formulas_first():
    text, formulas = extract_math("$$a+b$$ then $c$")

    assert [formula.latex for formula in formulas] == ["a+b", "c"]
    assert [formula.display_mode for formula in formulas] == [True, False]
    assert "$" not in text
    assert text.endswith(formulas[1].id)


def test_extract_math_strips_formula_whitespace():
    _, formulas = extract_math("$$\n  x^2\n$$")

    assert formulas[0].latex == "x^2"


def test_extract_math_without_formulas():
    assert extract_math("no math here") == ("no math here", [])
    assert extract_math("") == ("", [])


def test_render_formula_inline_markup():
    html = render_formula("a<b")

    assert html.startswith('<span class="span-inline-equation math-inline"')
    assert 'data-formula="a&lt;b"' in html
    assert ">a&lt;b</code>" in html


def test_render_formula_display_markup():
    html = render_formula("x^2", display_mode=True)

    assert 'class="math-block block-equation"' in html
    assert 'data-formula="x^2"' in html
    assert "text-align:center" in html


def test_render_formula_escapes_quotes_in_attribute():
    html = render_formula('\\text{"a"}')

    assert 'data-formula="\\text{&quot;a&quot;}"' in html


def test_render_formula_empty_input():
    assert render_formula("") == ""


@pytest.mark.parametrize(
    "latex",
    [
        "{",
        "x}",
        "\\begin{matrix} a",
        "\\begin{matrix} a \\end{cases}",
    ],
)
def test_render_formula_rejects_malformed_latex(latex):
    with pytest.raises(FormulaError) as excinfo:
        render_formula(latex)

    assert excinfo.value.latex == latex


def test_render_formula_accepts_escaped_braces():
    assert 'data-formula="\\{x\\}"' in render_formula("\\{x\\}")


def test_render_math_placeholders_recovers_from_renderer_errors(caplog):
    _, formulas = extract_math("$good$ and $bad$")

    def renderer(latex, display_mode):
        if latex == "bad":
            raise RuntimeError("nope")
        return f"<b>{latex}</b>"

    with caplog.at_level(logging.WARNING, logger="markpress.formulas"):
        rendered = render_math_placeholders(formulas, renderer)

    assert rendered[0].html == "<b>good</b>"
    assert rendered[1].html == (
        '<span class="math-error" title="Formula syntax error">bad</span>'
    )
    assert "bad" in caplog.text


def test_render_math_placeholders_uses_builtin_renderer_errors():
    _, formulas = extract_math("${$")

    rendered = render_math_placeholders(formulas)

    assert 'class="math-error"' in rendered[0].html


def test_restore_math_without_rendering_shows_escaped_source():
    text, formulas = extract_math("$a<b$ and $$c$$")

    assert restore_math(text, formulas) == "$a&lt;b$ and $$c$$"


def test_process_math_renders_every_formula():
    html = process_math("$x$ plus $$y$$")

    assert 'data-formula="x"' in html
    assert 'data-formula="y"' in html
    assert "〖" not in html


def test_process_math_with_custom_renderer():
    assert process_math("$x$ and $$y$$", lambda latex, display: f"[{latex}:{display}]") == (
        "[x:False] and [y:True]"
    )


def test_process_math_leaves_plain_text_unchanged():
    assert process_math("costs $5 and $10") == "costs $5 and $10"
