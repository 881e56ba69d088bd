"""Color themes, code styles, theme systems and font settings."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Mapping

from .color import adjust_brightness, darken, ensure_contrast, hex_to_rgb, is_hex_color, set_alpha
from .constants import DEFAULT_FONT_SIZE
from .exceptions import UnknownPresetError

logger = logging.getLogger(__name__)

# Darkening factors for list nesting levels 0..3.
LIST_COLOR_FACTORS = (1.0, 0.7, 0.5, 0.3)
FALLBACK_PRIMARY = "#2563eb"


@dataclass(frozen=True)
class ColorTheme:
    """Palette and semantic color roles used by every formatter.

    Attributes:
        id: Preset identifier.
        name: Display name.
        primary: Accent color used for headings, bold text and list markers.
        primary_hover: Slightly darker accent.
        primary_light: Translucent accent used for quote backgrounds.
        primary_dark: Darkest accent, also used for inline code text.
        list_colors: Explicit per-depth list colors; derived from `primary`
            when None.
    """

    id: str
    name: str
    primary: str
    primary_hover: str
    primary_light: str
    primary_dark: str
    text_primary: str = "#1f2328"
    text_secondary: str = "#656d76"
    text_tertiary: str = "#8b949e"
    text_muted: str = "#8b949e"
    bg_primary: str = "#ffffff"
    bg_secondary: str = "#f6f8fa"
    border_light: str = "#d0d7de"
    border_medium: str = "#8b949e"
    table_header_bg: str = "#f6f8fa"
    table_border: str = "#d0d7de"
    highlight: str = "#fff3cd"
    shadow_color: str = "rgba(0, 0, 0, 0.1)"
    inline_code_bg: str = "rgba(251, 146, 60, 0.08)"
    inline_code_text: str = "#ea580c"
    inline_code_border: str = "rgba(251, 146, 60, 0.15)"
    blockquote_border: str | None = None
    blockquote_background: str | None = None
    hr_color: str | None = None
    list_colors: tuple[str, ...] | None = None

    @property
    def quote_border(self) -> str:
        return self.blockquote_border or self.primary

    @property
    def quote_background(self) -> str:
        return self.blockquote_background or self.primary_light

    @property
    def rule_color(self) -> str:
        return self.hr_color or self.primary


@dataclass(frozen=True)
class CodeStyle:
    """Code block chrome and syntax colors.

    `header_content` is either ``"mac-dynamic"`` (traffic lights plus the
    language name) or a literal label shown in the header bar.
    """

    id: str
    name: str
    background: str
    color: str
    border_radius: str = "12px"
    padding: str = "24px"
    margin: str = "32px 0"
    border: str = "none"
    font_size: str = "14px"
    line_height: str = "1.7"
    font_family: str = "'SF Mono', Monaco, Inconsolata, 'Fira Code', Consolas, monospace"
    has_header: bool = False
    header_style: str = ""
    header_content: str = ""
    syntax: Mapping[str, str] = field(default_factory=dict)


@dataclass(frozen=True)
class HeadingCopyConfig:
    """Per-level heading decoration used by copy adapters."""

    pill: bool = False
    deco_width_px: int | None = None
    deco_height_em: float | None = None
    deco_radius_px: int | None = None
    font_scale: float | None = None
    line_height: str | None = None
    margin_top: str | None = None
    margin_bottom: str | None = None


@dataclass(frozen=True)
class CopyConfig:
    """Declarative settings for a theme system's copy adapter."""

    headings: Mapping[str, HeadingCopyConfig] = field(default_factory=dict)
    link_underline: bool = False
    inner_card_radius: int = 12
    inner_card_padding: str = "24px 20px"
    inner_card_shade: float = 0.04
    table_header_shade: float = 0.06
    table_border_alpha: float = 0.18


@dataclass(frozen=True)
class ThemeSystem:
    """Typography scale and layout of a named layout system."""

    id: str
    name: str
    font_family: str
    base_font_size: int = DEFAULT_FONT_SIZE
    h1_size: int = 28
    h2_size: int = 24
    h3_size: int = 20
    line_height: str = "1.75"
    paragraph_spacing: str = "16px"
    copy: CopyConfig | None = None

    def heading_size(self, level: int, base_font_size: int | None = None) -> int:
        """Heading font size in pixels, scaled to `base_font_size` when given."""
        sizes = {1: self.h1_size, 2: self.h2_size, 3: self.h3_size}
        size = sizes.get(level, self.base_font_size + max(0, 4 - level) * 2)
        if base_font_size is None or base_font_size == self.base_font_size:
            return size
        return round(size * base_font_size / self.base_font_size)


@dataclass(frozen=True)
class FontSettings:
    """User typography settings.

    Attributes:
        font_family: Key into `FONT_FAMILY_MAP`.
        font_size: Base font size in pixels.
        letter_spacing: Letter spacing in pixels.
        line_height: Explicit line height; derived from `font_size` when None.
    """

    font_family: str = "microsoft-yahei"
    font_size: int = DEFAULT_FONT_SIZE
    letter_spacing: float = 0
    line_height: float | None = 1.6


FONT_FAMILY_MAP = MappingProxyType(
    {
        "microsoft-yahei": "Microsoft YaHei, Arial, sans-serif",
        "pingfang-sc": "PingFang SC, Microsoft YaHei, Arial, sans-serif",
        "hiragino-sans": "Hiragino Sans GB, Microsoft YaHei, Arial, sans-serif",
        "arial": "Arial, sans-serif",
        "system-safe": "Microsoft YaHei, Arial, sans-serif",
    }
)

DEFAULT_FONT_SETTINGS = FontSettings()


def _preset_theme(theme_id: str, name: str, primary: str, hover: str, dark: str) -> ColorTheme:
    red, green, blue = hex_to_rgb(primary)
    light = f"rgba({red}, {green}, {blue}, 0.08)"
    return ColorTheme(
        id=theme_id,
        name=name,
        primary=primary,
        primary_hover=hover,
        primary_light=light,
        primary_dark=dark,
        inline_code_bg=light,
        inline_code_text=dark,
        inline_code_border=f"rgba({red}, {green}, {blue}, 0.15)",
    )


COLOR_THEMES: Mapping[str, ColorTheme] = MappingProxyType(
    {
        theme.id: theme
        for theme in (
            _preset_theme("chijin", "Magenta", "#FF0097", "#E60087", "#CC0077"),
            _preset_theme("dianlan", "Dark Plum", "#56004F", "#4A0043", "#3E0037"),
            _preset_theme("ehuang", "Apricot", "#FFA631", "#E6952C", "#CC8427"),
            _preset_theme("conglv", "Scallion Green", "#0AA344", "#09923C", "#088234"),
            _preset_theme("shiliuhong", "Pomegranate", "#F20C00", "#DA0B00", "#C20A00"),
            _preset_theme("meihei", "Coal Black", "#312C20", "#2A251B", "#231E16"),
            _preset_theme("ganziqing", "Indigo", "#003371", "#002D64", "#002757"),
            _preset_theme("xuanse", "Sable", "#622A1D", "#552419", "#481E15"),
        )
    }
)
DEFAULT_COLOR_THEME = "meihei"

_BASE_HEADER_STYLE = (
    "width: 100%; box-sizing: border-box; margin: 0; line-height: 1.2 !important; "
    "min-height: auto !important; height: auto !important;"
)

CODE_STYLES: Mapping[str, CodeStyle] = MappingProxyType(
    {
        "mac": CodeStyle(
            id="mac",
            name="Mac",
            background="#1e1e1e",
            color="#e6edf3",
            padding="16px",
            has_header=True,
            header_style=(
                "background: #1e1e1e; border-bottom: none; padding: 8px 20px; "
                "border-radius: 11px 11px 0 0; font-size: 12px; color: #e6edf3; "
                "display: flex; align-items: center; width: 100%; box-sizing: border-box; "
                "margin: 0; line-height: 1.1 !important; min-height: auto !important; "
                "height: auto !important; position: relative;"
            ),
            header_content="mac-dynamic",
            syntax=MappingProxyType(
                {
                    "keyword": "#ff7b72",
                    "string": "#a5d6ff",
                    "comment": "#8b949e",
                    "number": "#79c0ff",
                    "function": "#d2a8ff",
                }
            ),
        ),
        "github": CodeStyle(
            id="github",
            name="GitHub",
            background="#f6f8fa",
            color="#24292f",
            border="1px solid #d0d7de",
            border_radius="8px",
            padding="16px",
            has_header=True,
            header_style=(
                "background: #f1f3f4; border-bottom: 1px solid #d0d7de; padding: 8px 16px; "
                "border-radius: 7px 7px 0 0; font-size: 12px; color: #656d76; display: block; "
                + _BASE_HEADER_STYLE
            ),
            header_content="📄 Code",
            syntax=MappingProxyType(
                {
                    "keyword": "#d73a49",
                    "string": "#032f62",
                    "comment": "#6a737d",
                    "number": "#005cc5",
                    "function": "#6f42c1",
                }
            ),
        ),
        "vscode": CodeStyle(
            id="vscode",
            name="VS Code",
            background="linear-gradient(135deg, #1e1e1e 0%, #252526 100%)",
            color="#d4d4d4",
            border="1px solid #3c3c3c",
            border_radius="10px",
            padding="20px",
            has_header=True,
            header_style=(
                "background: linear-gradient(135deg, #2d2d30 0%, #3c3c3c 100%); "
                "border-bottom: 1px solid #3c3c3c; padding: 10px 20px; "
                "border-radius: 9px 9px 0 0; font-size: 13px; color: #cccccc; display: block; "
                + _BASE_HEADER_STYLE
            ),
            header_content="⚡ Snippet",
            syntax=MappingProxyType(
                {
                    "keyword": "#569cd6",
                    "string": "#ce9178",
                    "comment": "#6a9955",
                    "number": "#b5cea8",
                    "function": "#dcdcaa",
                }
            ),
        ),
        "terminal": CodeStyle(
            id="terminal",
            name="Terminal",
            background="#000000",
            color="#00ff00",
            border="2px solid #333333",
            border_radius="6px",
            padding="20px",
            font_family="'Courier New', 'Monaco', monospace",
            has_header=True,
            header_style=(
                "background: #1a1a1a; border-bottom: 1px solid #333333; padding: 8px 20px; "
                "border-radius: 4px 4px 0 0; font-size: 12px; color: #00ff00; "
                "font-family: 'Courier New', monospace; display: block; " + _BASE_HEADER_STYLE
            ),
            header_content="$ terminal",
            syntax=MappingProxyType(
                {
                    "keyword": "#00ffff",
                    "string": "#ffff00",
                    "comment": "#888888",
                    "number": "#ff00ff",
                    "function": "#00ff88",
                }
            ),
        ),
    }
)
DEFAULT_CODE_STYLE = "mac"

THEME_SYSTEMS: Mapping[str, ThemeSystem] = MappingProxyType(
    {
        "default": ThemeSystem(
            id="default",
            name="Default",
            font_family=(
                "-apple-system, BlinkMacSystemFont, 'PingFang SC', 'Hiragino Sans GB', "
                "'Microsoft YaHei', Arial, sans-serif"
            ),
        ),
        "breeze": ThemeSystem(
            id="breeze",
            name="Breeze",
            font_family="PingFang SC, Microsoft YaHei, Arial, sans-serif",
            base_font_size=17,
            h1_size=30,
            h2_size=24,
            h3_size=20,
            line_height="1.8",
            paragraph_spacing="1.2em",
            copy=CopyConfig(
                headings=MappingProxyType(
                    {
                        "h1": HeadingCopyConfig(
                            pill=True, margin_top="2.2em", margin_bottom="1.6em"
                        ),
                        "h2": HeadingCopyConfig(
                            deco_width_px=6,
                            deco_height_em=1.2,
                            deco_radius_px=3,
                            font_scale=1.5,
                            line_height="1.35em",
                            margin_top="1.8em",
                            margin_bottom="1.1em",
                        ),
                        "h3": HeadingCopyConfig(
                            deco_width_px=4,
                            deco_height_em=1.1,
                            deco_radius_px=2,
                            font_scale=1.22,
                            margin_top="1.2em",
                            margin_bottom="0.8em",
                        ),
                        "h4": HeadingCopyConfig(
                            deco_width_px=3,
                            deco_height_em=1.05,
                            deco_radius_px=2,
                            font_scale=1.08,
                            margin_top="1em",
                            margin_bottom="0.6em",
                        ),
                    }
                ),
            ),
        ),
    }
)
DEFAULT_THEME_SYSTEM = "default"

_REGISTRIES = {
    "color theme": (COLOR_THEMES, DEFAULT_COLOR_THEME),
    "code style": (CODE_STYLES, DEFAULT_CODE_STYLE),
    "theme system": (THEME_SYSTEMS, DEFAULT_THEME_SYSTEM),
}


def _lookup(kind: str, preset_id: str | None, strict: bool):
    registry, default_id = _REGISTRIES[kind]
    if preset_id in registry:
        return registry[preset_id]
    if strict:
        raise UnknownPresetError(kind, str(preset_id))
    if preset_id is not None:
        logger.debug("Unknown %s %r, using %r", kind, preset_id, default_id)
    return registry[default_id]


def get_color_theme(theme_id: str | None = None, strict: bool = False) -> ColorTheme:
    """Return the color theme registered as `theme_id`.

    Args:
        theme_id: Preset identifier, or None for the default theme.
        strict: Raise instead of falling back to the default.

    Returns:
        ColorTheme: Matching preset, or the default when unknown and not strict.

    Raises:
        UnknownPresetError: If `strict` is set and the id is not registered.

    Examples:
        get_color_theme("conglv").primary  # "#0AA344"
    """
    return _lookup("color theme", theme_id, strict)


def get_code_style(style_id: str | None = None, strict: bool = False) -> CodeStyle:
    """Return the code style registered as `style_id` (see `get_color_theme`)."""
    return _lookup("code style", style_id, strict)


def get_theme_system(system_id: str | None = None, strict: bool = False) -> ThemeSystem:
    """Return the theme system registered as `system_id` (see `get_color_theme`)."""
    return _lookup("theme system", system_id, strict)


def resolve_font_family(font_family_id: str | None) -> str:
    return FONT_FAMILY_MAP.get(font_family_id or "", FONT_FAMILY_MAP["microsoft-yahei"])


def derive_line_height(font_size: int | None) -> str:
    """Comfortable line height for a font size: tighter as text grows.

    Examples:
        derive_line_height(14)  # "1.7"
        derive_line_height(20)  # "1.5"
    """
    size = font_size or DEFAULT_FONT_SIZE
    if size <= 14:
        return "1.7"
    if size <= 18:
        return "1.6"
    return "1.5"


def list_colors(theme: ColorTheme | None) -> tuple[str, str, str, str]:
    """Return the four list colors for nesting depths 0..3.

    Explicit `ColorTheme.list_colors` are used as given; otherwise the primary
    color is darkened by 0%, 30%, 50% and 70%.

    Examples:
        list_colors(get_color_theme("conglv"))[0]  # "#0AA344"
    """
    if theme is not None and theme.list_colors:
        colors = tuple(theme.list_colors)
        return tuple(colors[i % len(colors)] for i in range(4))

    primary = theme.primary if theme is not None and theme.primary else FALLBACK_PRIMARY
    return tuple(
        primary if factor == 1.0 else adjust_brightness(primary, factor)
        for factor in LIST_COLOR_FACTORS
    )


def create_custom_theme(primary: str, name: str = "Custom") -> ColorTheme:
    """Build a complete color theme from a single primary color.

    The primary color is darkened until it reaches a 4.5:1 contrast ratio
    against white; hover and dark variants drop HSL lightness by 8 and 15
    points.

    Args:
        primary: Hex color chosen by the user.
        name: Display name for the generated theme.

    Returns:
        ColorTheme: Theme with id ``"custom"``.

    Raises:
        ValueError: If `primary` is not a hex color.

    Examples:
        create_custom_theme("#3366ff").primary_light  # "rgba(51, 102, 255, 0.08)"
    """
    if not is_hex_color(primary):
        raise ValueError(f"Invalid primary color: {primary!r} (expected #rgb or #rrggbb)")

    adjusted = ensure_contrast(primary)
    if len(adjusted) == 4:
        adjusted = "#" + "".join(char * 2 for char in adjusted[1:])
    dark = darken(adjusted, 15)
    return ColorTheme(
        id="custom",
        name=name,
        primary=adjusted,
        primary_hover=darken(adjusted, 8),
        primary_light=set_alpha(adjusted, 0.08),
        primary_dark=dark,
        inline_code_bg=set_alpha(adjusted, 0.08),
        inline_code_text=dark,
        inline_code_border=set_alpha(adjusted, 0.15),
        blockquote_background=set_alpha(adjusted, 0.05),
    )


def resolve_line_height(font_settings: FontSettings | None) -> str:
    """Explicit line height when configured, otherwise derived from the font size."""
    if font_settings is not None and font_settings.line_height:
        return f"{font_settings.line_height:g}"
    return derive_line_height(font_settings.font_size if font_settings else None)
