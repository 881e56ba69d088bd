"""Color helpers shared by themes, lists and copy adapters."""

from __future__ import annotations

import colorsys
import math
import re

HEX_COLOR_PATTERN = re.compile(r"^#?([0-9a-fA-F]{3}|[0-9a-fA-F]{6})$")

# Used when a copy adapter receives something that is not a hex color.
FALLBACK_RGB = (88, 101, 242)

Rgb = tuple[int, int, int]


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def _clamp_channel(value: float) -> int:
    return max(0, min(255, _round_half_up(value)))


def hex_to_rgb(color: str | None) -> Rgb | None:
    """Convert a ``#rgb`` or ``#rrggbb`` color to an RGB tuple.

    Args:
        color: Hex color with or without the leading ``#``.

    Returns:
        Rgb | None: Channel values, or None when `color` is not a hex color.

    Examples:
        hex_to_rgb("#fff")  # (255, 255, 255)
        hex_to_rgb("red")  # None
    """
    if not color:
        return None
    match = HEX_COLOR_PATTERN.match(color.strip())
    if match is None:
        return None
    digits = match.group(1)
    if len(digits) == 3:
        digits = "".join(char * 2 for char in digits)
    value = int(digits, 16)
    return (value >> 16) & 255, (value >> 8) & 255, value & 255


def rgb_to_hex(red: float, green: float, blue: float) -> str:
    """Format channel values as a lowercase ``#rrggbb`` string."""
    return "#" + "".join(f"{_clamp_channel(channel):02x}" for channel in (red, green, blue))


def is_hex_color(color: object) -> bool:
    return isinstance(color, str) and hex_to_rgb(color) is not None and color.startswith("#")


def adjust_brightness(color: str, factor: float) -> str:
    """Scale every channel of a hex color by `factor`.

    Non-hex values (``rgb()`` strings, named colors) are returned unchanged.

    Examples:
        adjust_brightness("#ffffff", 0.5)  # "#808080"
    """
    rgb = hex_to_rgb(color) if color and color.startswith("#") else None
    if rgb is None:
        return color
    return rgb_to_hex(*(channel * factor for channel in rgb))


def mix_colors(first: str, second: str, ratio: float = 0.5) -> str:
    """Linearly interpolate from `first` (ratio 0) to `second` (ratio 1)."""
    rgb_first = hex_to_rgb(first)
    rgb_second = hex_to_rgb(second)
    if rgb_first is None or rgb_second is None:
        return first
    return rgb_to_hex(
        *(a * (1 - ratio) + b * ratio for a, b in zip(rgb_first, rgb_second))
    )


def blend_with_white(color: str, ratio: float = 0.04) -> str:
    """Keep `ratio` of `color` and fill the rest with white."""
    rgb = hex_to_rgb(color) or FALLBACK_RGB
    return rgb_to_hex(*(channel * ratio + 255 * (1 - ratio) for channel in rgb))


def mix_with_black(color: str, percent_primary: float = 0.6) -> str:
    """Keep `percent_primary` of `color` and fill the rest with black."""
    rgb = hex_to_rgb(color) or FALLBACK_RGB
    percent = max(0.0, min(1.0, percent_primary))
    return rgb_to_hex(*(channel * percent for channel in rgb))


def set_alpha(color: str, alpha: float) -> str:
    """Return an ``rgba()`` string, or `color` itself when it is not hex."""
    rgb = hex_to_rgb(color)
    if rgb is None:
        return color
    alpha = max(0.0, min(1.0, alpha))
    return f"rgba({rgb[0]}, {rgb[1]}, {rgb[2]}, {alpha:g})"


def rgb_string(color: str) -> str:
    """Return ``"r, g, b"`` for use inside ``rgba()``; falls back to the brand blue."""
    rgb = hex_to_rgb(color) or FALLBACK_RGB
    return f"{rgb[0]}, {rgb[1]}, {rgb[2]}"


def relative_luminance(color: str) -> float:
    """WCAG relative luminance of a hex color (0 for black, 1 for white)."""
    rgb = hex_to_rgb(color) or (0, 0, 0)

    def linearize(channel: int) -> float:
        value = channel / 255
        return value / 12.92 if value <= 0.03928 else ((value + 0.055) / 1.055) ** 2.4

    red, green, blue = (linearize(channel) for channel in rgb)
    return 0.2126 * red + 0.7152 * green + 0.0722 * blue


def contrast_ratio(first: str, second: str) -> float:
    lighter, darker = sorted(
        (relative_luminance(first), relative_luminance(second)), reverse=True
    )
    return (lighter + 0.05) / (darker + 0.05)


def hex_to_hsl(color: str) -> tuple[float, float, float]:
    """Return hue in degrees and saturation/lightness in percent."""
    rgb = hex_to_rgb(color) or (0, 0, 0)
    hue, lightness, saturation = colorsys.rgb_to_hls(*(channel / 255 for channel in rgb))
    return hue * 360, saturation * 100, lightness * 100


def hsl_to_hex(hue: float, saturation: float, lightness: float) -> str:
    saturation = max(0.0, min(100.0, saturation))
    lightness = max(0.0, min(100.0, lightness))
    red, green, blue = colorsys.hls_to_rgb((hue % 360) / 360, lightness / 100, saturation / 100)
    return rgb_to_hex(red * 255, green * 255, blue * 255)


def ensure_contrast(color: str, background: str = "#ffffff", minimum: float = 4.5) -> str:
    """Darken `color` in HSL space until it reaches `minimum` contrast on `background`.

    Lightness drops in steps of five points, at most twenty times. Colors that
    already meet the target are returned unchanged.

    Examples:
        ensure_contrast("#ffd700")  # a darker gold that is readable on white
    """
    if contrast_ratio(color, background) >= minimum:
        return color

    hue, saturation, lightness = hex_to_hsl(color)
    candidate = color
    for _ in range(20):
        lightness = max(0.0, lightness - 5)
        candidate = hsl_to_hex(hue, saturation, lightness)
        if contrast_ratio(candidate, background) >= minimum or lightness <= 0:
            break
    return candidate


def darken(color: str, amount: float) -> str:
    """Lower HSL lightness by `amount` percentage points."""
    hue, saturation, lightness = hex_to_hsl(color)
    return hsl_to_hex(hue, saturation, lightness - amount)
