from __future__ import annotations

import pytest

from markpress.color import contrast_ratio
from markpress.exceptions import MarkpressError, UnknownPresetError
from markpress.themes import (
    CODE_STYLES,
    COLOR_THEMES,
    FONT_FAMILY_MAP,
    FontSettings,
    create_custom_theme,
    derive_line_height,
    get_code_style,
    get_color_theme,
    get_theme_system,
    list_colors,
    resolve_font_family,
    resolve_line_height,
)


def test_builtin_presets_are_registered():
    assert len(COLOR_THEMES) == 8
    assert set(CODE_STYLES) == {"mac", "github", "vscode", "terminal"}
    assert get_theme_system("breeze").copy is not None
    assert get_theme_system("default").copy is None


def test_lenient_lookup_falls_back_to_defaults():
    assert get_color_theme("nonexistent").id == "meihei"
    assert get_code_style(None).id == "mac"
    assert get_theme_system("nonexistent").id == "default"


def test_strict_lookup_raises_unknown_preset_error():
    with pytest.raises(UnknownPresetError) as excinfo:
        get_color_theme("nonexistent", strict=True)

    assert excinfo.value.kind == "color theme"
    assert excinfo.value.name == "nonexistent"
    assert str(excinfo.value) == "Unknown color theme: 'nonexistent'"
    assert isinstance(excinfo.value, KeyError)
    assert isinstance(excinfo.value, MarkpressError)


def test_preset_inline_code_colors_derive_from_primary():
    theme = get_color_theme("conglv")

    assert theme.primary == "#0AA344"
    assert theme.inline_code_bg == "rgba(10, 163, 68, 0.08)"
    assert theme.inline_code_text == theme.primary_dark
    assert theme.quote_border == theme.primary


def test_list_colors_darken_primary_per_depth(theme):
    colors = list_colors(theme)

    assert len(colors) == 4
    assert colors[0] == theme.primary
    assert len(set(colors)) == 4


def test_list_colors_without_theme_use_fallback():
    assert list_colors(None)[0] == "#2563eb"


def test_create_custom_theme_keeps_readable_primary():
    theme = create_custom_theme("#3366ff")

    assert theme.id == "custom"
    assert theme.primary == "#3366ff"
    assert theme.primary_light == "rgba(51, 102, 255, 0.08)"
    assert theme.primary_dark != theme.primary


def test_create_custom_theme_darkens_low_contrast_primary():
    theme = create_custom_theme("#ffee00")

    assert contrast_ratio(theme.primary, "#ffffff") >= 4.5


def test_create_custom_theme_expands_short_hex():
    assert create_custom_theme("#000").primary == "#000000"


def test_create_custom_theme_rejects_non_hex():
    with pytest.raises(ValueError):
        create_custom_theme("blue")


@pytest.mark.parametrize(
    ("level", "expected"),
    [(1, 28), (2, 24), (3, 20), (4, 16), (6, 16)],
)
def test_default_heading_sizes(level, expected):
    assert get_theme_system().heading_size(level) == expected


def test_heading_size_scales_with_base_font_size():
    breeze = get_theme_system("breeze")

    assert breeze.heading_size(1) == 30
    assert breeze.heading_size(1, 17) == 30
    assert breeze.heading_size(1, 16) == 28


@pytest.mark.parametrize(("size", "expected"), [(12, "1.7"), (14, "1.7"), (16, "1.6"), (20, "1.5")])
def test_derive_line_height(size, expected):
    assert derive_line_height(size) == expected


def test_resolve_line_height_prefers_explicit_value():
    assert resolve_line_height(FontSettings(line_height=1.75)) == "1.75"
    assert resolve_line_height(FontSettings(line_height=None, font_size=20)) == "1.5"
    assert resolve_line_height(None) == "1.6"


def test_resolve_font_family_defaults_to_yahei():
    assert resolve_font_family("arial") == FONT_FAMILY_MAP["arial"]
    assert resolve_font_family("comic-sans") == FONT_FAMILY_MAP["microsoft-yahei"]
    assert resolve_font_family(None) == FONT_FAMILY_MAP["microsoft-yahei"]


def test_font_families_never_contain_double_quotes():
    for font_family in FONT_FAMILY_MAP.values():
        assert '"' not in font_family
    for code_style in CODE_STYLES.values():
        assert '"' not in code_style.font_family
        assert '"' not in code_style.header_style
