"""End-to-end tests for block parsing and rendering."""

from __future__ import annotations

import pytest

from markpress.constants import MAX_QUOTE_DEPTH
from markpress.models import ParseOptions
from markpress.parser import MarkdownParser, apply_styles, parse_markdown, render
from markpress.themes import FontSettings, get_color_theme, get_theme_system

DOCUMENT = """# Release notes

Intro with **bold**, *italic*, `code` and a [link](https://example.com).

## Highlights

- first
  - nested
1. ordered

> quoted **text**

| Name | Qty |
| :--- | ---: |
| apple | 3 |

### Details

```python
def main():
    return 1
```

$$
E = mc^2
$$

![Diagram](https://example.com/a.png)

---
"""


@pytest.fixture()
def breeze_options(theme) -> ParseOptions:
    return ParseOptions(color_theme=theme, theme_system=get_theme_system("breeze"))


def test_end_to_end_scenario(options, theme):
    text = "# Title\n\nSome **bold** and `code` text.\n\n- item one\n- item two"

    html = parse_markdown(text, options)

    assert html.count("<h1") == 1
    assert "color: #0AA344 !important" in html
    assert html.count("<strong") == 1
    assert html.count("<code") == 1
    assert theme.inline_code_bg in html
    assert html.count('data-list-depth="0"') == 2
    assert html.count("color: #0AA344; font-size") == 2
    assert html.count("<p ") == 3


def test_preview_heading_is_plain_with_anchor(preview_options):
    assert render("# Title", preview_options) == '<h1 id="title">Title</h1>'
    assert render("## Sub", preview_options) == '<h2 id="sub">Sub</h2>'


def test_preview_h3_keeps_styles(preview_options):
    html = render("### Third", preview_options)

    assert html.startswith('<h3 id="third" style="')
    assert "!important" not in html


def test_export_heading_decorations(options):
    html = render("# Title\n\n## Section", options)

    assert "data-heading-underline" in html
    assert "data-heading-bar" in html
    assert "color: #0AA344 !important" in html


def test_duplicate_heading_anchors(preview_options):
    html = parse_markdown("# A\n\n## A\n\n### A", preview_options)

    assert 'id="a"' in html
    assert 'id="a-1"' in html
    assert 'id="a-2"' in html


def test_closed_heading_markers_are_dropped(preview_options):
    assert parse_markdown("## Closed ##", preview_options) == '<h2 id="closed">Closed</h2>'
    assert parse_markdown("# C#", preview_options) == '<h1 id="c">C#</h1>'
    assert parse_markdown("## F# notes ##", preview_options) == '<h2 id="f-notes">F# notes</h2>'


def test_code_block_with_language(options):
    html = parse_markdown("```python\nprint('hi')\n```", options)

    assert 'data-language="python"' in html
    assert "<pre" in html


def test_fenced_content_is_not_parsed(options):
    html = parse_markdown("```\n**not bold**\n# not heading\n- not item\n```", options)

    assert "<strong" not in html
    assert "<h1" not in html
    assert "data-list-depth" not in html
    assert "**not&nbsp;bold**" in html


def test_unterminated_code_block_is_flushed(options):
    html = parse_markdown("```\ncode line", options)

    assert 'class="code-block"' in html
    assert "code&nbsp;line" in html


def test_tilde_fence_and_longer_closer(options):
    html = parse_markdown("~~~\nx\n~~~~\nafter", options)

    assert html.count('class="code-block"') == 1
    assert "after</p>" in html


def test_info_string_with_backtick_is_not_a_fence(options):
    html = parse_markdown("``` foo`bar\ntext", options)

    assert 'class="code-block"' not in html
    assert html.count("<p ") == 2


def test_code_block_newlines_become_breaks(options):
    html = parse_markdown("```\na\nb\n```", options)

    assert "a<br>b" in html


def test_math_block(options):
    html = parse_markdown("$$\nE = mc^2\n$$", options)

    assert 'class="math-block block-equation"' in html
    assert 'data-formula="E = mc^2"' in html


def test_unterminated_math_block_is_flushed(options):
    assert 'data-formula="x"' in parse_markdown("$$\nx", options)


def test_custom_formula_renderer(theme):
    options = ParseOptions(color_theme=theme, formula_renderer=lambda latex, display: f"[{latex}]")

    html = parse_markdown("Inline $x$\n\n$$\ny\n$$", options)

    assert "[x]" in html
    assert "[y]" in html


def test_nested_blockquotes(options):
    html = parse_markdown("> outer\n> > inner\n\nafter", options)

    assert 'data-quote-depth="0"' in html
    assert 'data-quote-depth="1"' in html
    assert html.index('data-quote-depth="1"') < html.index("</blockquote>")
    assert html.endswith("after</p>")


def test_blockquote_content_is_parsed(options):
    html = parse_markdown("> # Quoted heading\n> - item", options)

    assert "<h1" in html
    assert "data-list-depth" in html


@pytest.mark.parametrize("rule", ["---", "***", "___", "- - -"])
def test_horizontal_rules(options, rule):
    assert parse_markdown(rule, options).startswith("<hr")


def test_pipe_line_without_separator_is_a_paragraph(options):
    html = parse_markdown("a | b\nplain text", options)

    assert "<table" not in html
    assert "a | b</p>" in html


def test_table_then_paragraph(options):
    html = parse_markdown("| a |\n|---|\n| 1 |\nafter", options)

    assert "<table" in html
    assert html.endswith("after</p>")


def test_table_at_end_of_input(options):
    assert "<table" in parse_markdown("| a | b |\n|---|---|\n| 1 | 2 |", options)


def test_reference_definitions_are_skipped(options):
    html = parse_markdown('[ref]: https://example.com "Title"\ntext', options)

    assert "example.com" not in html
    assert "text</p>" in html


def test_each_paragraph_line_is_its_own_paragraph(options):
    assert parse_markdown("one\ntwo", options).count("<p ") == 2


def test_blank_line_resets_list_numbering_context(options):
    html = parse_markdown("1. one\n\n- two", options)

    assert 'data-list-type="ordered"' in html
    assert 'data-list-type="unordered"' in html


def test_escaped_markers_stay_literal(options):
    html = parse_markdown(r"\*not italic\*", options)

    assert "<em" not in html
    assert "*not italic*" in html


def test_code_spans_protect_markup(options):
    html = parse_markdown("`**x**`", options)

    assert "<strong" not in html
    assert "**x**" in html


def test_raw_html_passes_through(options):
    assert "<kbd" in parse_markdown("Press <kbd>Esc</kbd>", options)


@pytest.mark.parametrize("value", ["", None, 42])
def test_empty_or_non_string_input(options, value):
    assert parse_markdown(value, options) == ""
    assert render(value, options) == ""


def test_parser_is_reusable(options):
    parser = MarkdownParser(options)

    assert parser.parse("# A") == parser.parse("# A")


def test_export_output_is_wrapped(options):
    html = render("hello", options)

    assert html.startswith('<section data-role="outer"')
    assert "data-wx-lh-wrap" in html


@pytest.mark.parametrize("fixture_name", ["options", "breeze_options"])
def test_apply_styles_is_idempotent(request, fixture_name):
    options = request.getfixturevalue(fixture_name)

    html = render(DOCUMENT, options)

    assert apply_styles(html, options) == html


def test_breeze_output_is_decorated(breeze_options):
    html = render(DOCUMENT, breeze_options)

    assert "data-wx-h1-pill" in html
    assert "data-wx-deco" in html
    assert "<thead>" not in html


def test_preview_figure_captions(preview_options):
    html = render("![Diagram](https://example.com/a.png)", preview_options)

    assert "<figure" in html
    assert ">Diagram</figcaption>" in html
    assert 'data-role="outer"' not in html


def test_apply_styles_without_font_settings(theme):
    options = ParseOptions(color_theme=theme, font_settings=None)

    assert apply_styles("<p>x</p>", options) == "<p>x</p>"


def test_apply_styles_empty_input(options):
    assert apply_styles("", options) == ""


def test_crlf_input(options):
    assert parse_markdown("# A\r\ntext", options) == parse_markdown("# A\ntext", options)


def test_deep_quote_nesting_is_capped(options):
    text = ">" * 1000 + " x"

    html = parse_markdown(text, options)

    assert html.count("<blockquote") == MAX_QUOTE_DEPTH
    assert "&gt;" in html
    assert render(text, options)


def test_quote_nesting_below_the_cap_is_kept(options):
    html = parse_markdown(">>> x", options)

    assert html.count("<blockquote") == 3
    assert "&gt;" not in html


RETHEME_DOCUMENT = """# Title

## Section

### Details

plain text

- item
  - nested
1. first

> quoted

| a | b |
| - | - |
| 1 | 2 |

---
"""


@pytest.mark.parametrize("system_id", ["default", "breeze"])
def test_apply_styles_retheme_matches_a_fresh_styling(theme, system_id):
    green = ParseOptions(color_theme=theme, theme_system=get_theme_system(system_id))
    magenta = ParseOptions(
        color_theme=get_color_theme("chijin"), theme_system=get_theme_system(system_id)
    )
    html = parse_markdown(DOCUMENT, green)

    assert apply_styles(apply_styles(html, green), magenta) == apply_styles(html, magenta)


@pytest.mark.parametrize("system_id", ["default", "breeze"])
def test_apply_styles_retheme_drops_the_old_colors(theme, system_id):
    green = ParseOptions(color_theme=theme, theme_system=get_theme_system(system_id))
    magenta = ParseOptions(
        color_theme=get_color_theme("chijin"), theme_system=get_theme_system(system_id)
    )

    html = apply_styles(render(RETHEME_DOCUMENT, green), magenta)

    assert theme.primary not in html
    assert magenta.color_theme.primary in html


def test_apply_styles_retheme_with_new_font_settings(theme):
    small = ParseOptions(color_theme=theme, font_settings=FontSettings(line_height=1.6))
    large = ParseOptions(color_theme=theme, font_settings=FontSettings(font_size=20, line_height=2))
    html = parse_markdown(DOCUMENT, small)

    restyled = apply_styles(apply_styles(html, small), large)

    assert restyled == apply_styles(html, large)
    assert "font-size: 20px" in restyled
    assert "1.6 !important" not in restyled


def test_apply_styles_retheme_in_preview(theme, preview_options):
    magenta = ParseOptions(color_theme=get_color_theme("chijin"), is_preview=True)
    html = parse_markdown(DOCUMENT, preview_options)

    assert apply_styles(apply_styles(html, preview_options), magenta) == apply_styles(html, magenta)
