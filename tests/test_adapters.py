"""Tests for the copy adapter registry and the breeze adapter."""

from __future__ import annotations

import pytest

from markpress import adapters
from markpress.adapters import (
    DECO_MARKER,
    H1_PILL_MARKER,
    AdapterContext,
    LayoutSystem,
    apply_copy_adapter,
    breeze_adapter,
    decorate_headings,
    get_copy_adapter,
    identity_adapter,
    pill_headings,
    register_copy_adapter,
    scale_headings,
    style_inner_card,
    style_links,
    style_tables,
)
from markpress.color import blend_with_white, mix_with_black
from markpress.themes import get_theme_system

PRIMARY = "#0AA344"
BREEZE = AdapterContext(primary=PRIMARY, base_font_size=16, theme_system=get_theme_system("breeze"))
ROSE = AdapterContext(primary="#FF0097", base_font_size=16, theme_system=get_theme_system("breeze"))
H1 = (
    '<h1 id="t" style="font-size: 28px; color: #0AA344 !important; text-align: center; '
    'margin: 32px 0 24px;">Title<span data-heading-underline="true" style="display: block;"></span></h1>'
)
H2 = (
    '<h2 style="font-size: 24px; display: flex; align-items: center;">'
    '<span data-heading-bar="true" style="width: 5px;"></span>Section</h2>'
)
TABLE = (
    '<table style="border: 1px solid #d0d7de; margin: 0;"><thead><tr>'
    '<th style="border: 1px solid #d0d7de; background-color: #f6f8fa;">h</th></tr></thead>'
    '<tbody><tr><td style="border: 1px solid #d0d7de;">c</td></tr></tbody></table>'
)


def test_layout_system_values():
    assert LayoutSystem.DEFAULT.value == "default"
    assert LayoutSystem.BREEZE == "breeze"


def test_context_defaults_and_rgb():
    context = AdapterContext(primary=PRIMARY)

    assert context.base_font_size == 16
    assert context.theme_system is None
    assert context.primary_rgb == "10, 163, 68"


def test_get_copy_adapter_by_id_and_object():
    assert get_copy_adapter("breeze") is breeze_adapter
    assert get_copy_adapter(get_theme_system("breeze")) is breeze_adapter
    assert get_copy_adapter("default") is identity_adapter


@pytest.mark.parametrize("system", ["nonexistent", None, ""])
def test_unknown_systems_resolve_to_identity(system):
    assert get_copy_adapter(system) is identity_adapter


def test_register_copy_adapter_rejects_non_callables():
    with pytest.raises(TypeError):
        register_copy_adapter("broken", "not callable")


def test_registered_adapter_is_applied(monkeypatch):
    def shout(html, context):
        return html.upper()

    monkeypatch.setitem(adapters._REGISTRY, "shout", shout)

    assert get_copy_adapter("shout") is shout
    assert apply_copy_adapter("<p>hi</p>", theme_system="shout") == "<P>HI</P>"


def test_register_copy_adapter_replaces_existing(monkeypatch):
    monkeypatch.setattr(adapters, "_REGISTRY", dict(adapters._REGISTRY))

    register_copy_adapter("breeze", identity_adapter)

    assert get_copy_adapter("breeze") is identity_adapter


def test_apply_copy_adapter_passes_context(monkeypatch):
    seen = []
    monkeypatch.setitem(adapters._REGISTRY, "breeze", lambda html, context: seen.append(context) or html)

    apply_copy_adapter("<p>x</p>", primary="", base_font_size=0, theme_system="breeze")

    assert seen[0].primary == adapters.DEFAULT_PRIMARY
    assert seen[0].base_font_size == 16
    assert seen[0].theme_system is get_theme_system("breeze")


def test_apply_copy_adapter_empty_html():
    assert apply_copy_adapter("", theme_system="breeze") == ""


def test_identity_for_default_system():
    assert apply_copy_adapter(H1, theme_system="default") == H1


def test_pill_headings():
    out = pill_headings(H1, BREEZE)

    assert H1_PILL_MARKER in out
    assert "data-heading-underline" not in out
    assert f"background: {PRIMARY};" in out
    assert 'id="t"' in out
    assert "margin: 2.2em 0 1.6em;" in out
    assert "font-size: 28px" not in out


def test_pill_headings_is_idempotent():
    once = pill_headings(H1, BREEZE)

    assert pill_headings(once, BREEZE) == once
    assert once.count(H1_PILL_MARKER) == 1


def test_pill_unwraps_line_height_span():
    html = '<h1 style="color: red;"><span data-wx-lh-wrap="true" style="x: y;">Title</span></h1>'

    out = pill_headings(html, BREEZE)

    assert "data-wx-lh-wrap" not in out
    assert ">Title</span></span></h1>" in out


def test_decorate_h2_replaces_bar():
    out = decorate_headings(H2, BREEZE, "h2")

    assert DECO_MARKER in out
    assert "data-heading-bar" not in out
    assert "display: table;" in out
    assert "align-items" not in out
    assert f"background: {PRIMARY};" in out
    assert out.endswith("Section</span></h2>")


def test_decorate_h3_darkens_bar():
    out = decorate_headings('<h3 style="color: red;">Sub</h3>', BREEZE, "h3")

    assert f"background: {mix_with_black(PRIMARY, 0.6)};" in out
    assert "width: 4px;" in out


def test_decorate_headings_is_idempotent():
    once = decorate_headings(H2, BREEZE, "h2")

    assert decorate_headings(once, BREEZE, "h2") == once


def test_style_links():
    out = style_links('<a href="x" style="color: blue;">x</a>', BREEZE)

    assert f'style="color: {PRIMARY}; text-decoration: none;' in out


def test_style_inner_card():
    html = '<section data-role="outer" style="a: b;"><section data-role="inner" style="color: #333; padding: 0;">'

    out = style_inner_card(html, BREEZE)

    assert f"background-color: {blend_with_white(PRIMARY, 0.04)};" in out
    assert "border-radius: 12px;" in out
    assert "padding: 24px 20px;" in out
    assert 'data-role="outer" style="a: b;"' in out


def test_style_tables_moves_header_into_body():
    out = style_tables(TABLE, BREEZE)

    assert "<thead>" not in out
    assert out.count("<tbody>") == 1
    assert out.index("<th") < out.index("<td")
    assert "border: 1px solid rgba(10, 163, 68, 0.18);" in out
    assert f"background: {blend_with_white(PRIMARY, 0.06)};" in out
    assert "border-top: 1px solid rgba(10, 163, 68, 0.18);" in out


def test_style_tables_without_tbody():
    html = '<table><thead><tr><th>h</th></tr></thead><tr><td>c</td></tr></table>'

    out = style_tables(html, BREEZE)

    assert "<tbody><tr><th" in out
    assert out.endswith("</tbody></table>")


def test_style_tables_is_idempotent():
    once = style_tables(TABLE, BREEZE)

    assert style_tables(once, BREEZE) == once


def test_scale_headings():
    out = scale_headings('<h2 style="font-size: 20px;">a</h2><h3>b</h3>', BREEZE)

    assert '<h2 style="font-size: 24px; line-height: 1.35em !important;">' in out
    assert '<h3 style="font-size: 20px;">' in out


def test_breeze_adapter_full_pass():
    html = f"{H1}{H2}<p><a href='x'>link</a></p>"

    out = breeze_adapter(html, BREEZE)

    assert H1_PILL_MARKER in out
    assert DECO_MARKER in out
    assert f"color: {PRIMARY}; text-decoration: none;" in out
    assert breeze_adapter(out, BREEZE) == out


def test_breeze_without_theme_system_uses_default_decoration():
    out = decorate_headings(H2, AdapterContext(primary=PRIMARY), "h2")

    assert "width: 6px;" in out


def test_pill_headings_recolor_with_new_primary():
    recolored = pill_headings(pill_headings(H1, BREEZE), ROSE)

    assert recolored == pill_headings(H1, ROSE)
    assert f"background: {PRIMARY};" not in recolored
    assert recolored.count(H1_PILL_MARKER) == 1


def test_decorate_headings_recolor_with_new_primary():
    recolored = decorate_headings(decorate_headings(H2, BREEZE, "h2"), ROSE, "h2")

    assert recolored == decorate_headings(H2, ROSE, "h2")
    assert PRIMARY not in recolored


def test_style_tables_restyles_moved_header_cells():
    recolored = style_tables(style_tables(TABLE, BREEZE), ROSE)

    assert recolored == style_tables(TABLE, ROSE)
    assert "10, 163, 68" not in recolored
