"""Configuration loading and management."""

from __future__ import annotations

import logging
import tomllib
from dataclasses import dataclass, replace
from pathlib import Path

from .color import is_hex_color
from .constants import DEFAULT_FONT_SIZE, DEFAULT_MAX_FILE_SIZE, MAX_FONT_SIZE, MIN_FONT_SIZE
from .exceptions import UnknownPresetError
from .models import ParseOptions
from .themes import (
    FONT_FAMILY_MAP,
    FontSettings,
    create_custom_theme,
    get_code_style,
    get_color_theme,
    get_theme_system,
)

logger = logging.getLogger(__name__)

CONFIG_TABLE = "markpress"
PRESET_LOOKUPS = {
    "color_theme": get_color_theme,
    "code_style": get_code_style,
    "theme_system": get_theme_system,
}


@dataclass
class RenderConfig:
    """Configuration for rendering Markdown files.

    Attributes:
        color_theme: Color theme preset id; None selects the default theme.
        code_style: Code style preset id; None selects the default style.
        theme_system: Theme system preset id; None selects the default system.
        font_family: Key of the font family map.
        font_size: Base font size in pixels.
        letter_spacing: Letter spacing in pixels.
        line_height: Line height multiplier; None derives it from `font_size`.
        preview: Render for the in-app preview instead of rich-text export.
        primary: Custom primary color; replaces `color_theme` with a theme
            derived from this color.
        max_file_size: Maximum file size in bytes that will be read.

    Examples:
        RenderConfig(color_theme="conglv", theme_system="breeze", font_size=17)
    """

    # Presets
    color_theme: str | None = None
    code_style: str | None = None
    theme_system: str | None = None

    # Typography
    font_family: str = "microsoft-yahei"
    font_size: int = DEFAULT_FONT_SIZE
    letter_spacing: float = 0
    line_height: float | None = 1.6

    # Output
    preview: bool = False
    primary: str | None = None

    # Limits
    max_file_size: int = DEFAULT_MAX_FILE_SIZE

    def font_settings(self) -> FontSettings:
        return FontSettings(
            font_family=self.font_family,
            font_size=self.font_size,
            letter_spacing=self.letter_spacing,
            line_height=self.line_height,
        )

    def to_options(self) -> ParseOptions:
        """Build the `ParseOptions` described by this configuration.

        Raises:
            ValueError: If `primary` is not a hex color.
        """
        color_theme = (
            create_custom_theme(self.primary) if self.primary else get_color_theme(self.color_theme)
        )
        return ParseOptions(
            color_theme=color_theme,
            code_style=get_code_style(self.code_style),
            theme_system=get_theme_system(self.theme_system),
            font_settings=self.font_settings(),
            is_preview=self.preview,
        )


class ConfigError(ValueError):
    """Exception raised when configuration values are invalid.

    Attributes:
        args: Arguments provided to the underlying `ValueError`.

    Examples:
        raise ConfigError("`font_size` must be between 12 and 24")
    """


def load_config(search_path: Path) -> RenderConfig:
    """Load configuration from the nearest config file.

    Walks parent directories from `search_path` to the filesystem root, reading
    the ``[tool.markpress]`` table from `pyproject.toml` and the
    ``[markpress]`` or ``[tool.markpress]`` table from `.markpress.toml` when
    present. Returns default values when no configuration is found. TOML
    files that cannot be read or decoded are skipped. Unknown preset ids are
    logged and replaced by the defaults.

    Args:
        search_path: Directory used as the starting point for configuration lookup.

    Returns:
        RenderConfig: Loaded configuration with defaults applied when necessary.

    Raises:
        ConfigError: If the table is present but is not a mapping or contains
            unsupported keys.

    Examples:
        load_config(Path("docs"))
    """
    current = search_path.resolve()

    while True:
        pyproject_config = _load_from_file(
            current / "pyproject.toml", table_paths=[("tool", CONFIG_TABLE)]
        )
        if pyproject_config is not None:
            return pyproject_config

        dotfile_config = _load_from_file(
            current / f".{CONFIG_TABLE}.toml",
            table_paths=[(CONFIG_TABLE,), ("tool", CONFIG_TABLE)],
        )
        if dotfile_config is not None:
            return dotfile_config

        parent = current.parent
        if parent == current:
            break
        current = parent

    return RenderConfig()


_MISSING = object()


def _load_from_file(config_file: Path, table_paths: list[tuple[str, ...]]) -> RenderConfig | None:
    if not config_file.exists():
        return None

    try:
        with open(config_file, "rb") as stream:
            data = tomllib.load(stream)
    except (OSError, tomllib.TOMLDecodeError):
        return None

    for table_path in table_paths:
        raw_config = _extract_table(data, table_path)
        if raw_config is _MISSING:
            continue
        return _build_config_from_raw(raw_config, config_file, table_path)

    return None


def _extract_table(data: object, table_path: tuple[str, ...]) -> object:
    current = data
    for key in table_path:
        if not isinstance(current, dict) or key not in current:
            return _MISSING
        current = current[key]
    return current


def _build_config_from_raw(
    raw_config: object, config_file: Path, table_path: tuple[str, ...]
) -> RenderConfig:
    table_display = ".".join(table_path)

    if raw_config is None:
        return RenderConfig()

    if not isinstance(raw_config, dict):
        raise ConfigError(f"Invalid `[{table_display}]` settings in {config_file}")

    if not raw_config:
        return RenderConfig()

    raw_config = {key.replace("-", "_"): value for key, value in raw_config.items()}
    try:
        config = RenderConfig(**raw_config)
    except TypeError as error:
        raise ConfigError(f"Invalid `[{table_display}]` settings in {config_file}") from error

    return _drop_unknown_presets(config, config_file)


def _drop_unknown_presets(config: RenderConfig, config_file: Path) -> RenderConfig:
    changes = {}
    for field_name, lookup in PRESET_LOOKUPS.items():
        preset_id = getattr(config, field_name)
        if preset_id is None:
            continue
        try:
            lookup(preset_id, strict=True)
        except UnknownPresetError:
            logger.warning(
                "%s: unknown %s %r, using the default", config_file, field_name, preset_id
            )
            changes[field_name] = None
    return replace(config, **changes) if changes else config


def validate_config(config: RenderConfig) -> None:
    """Validate a `RenderConfig` instance.

    Args:
        config: Configuration to validate.

    Returns:
        None.

    Raises:
        ConfigError: If a preset id or font family is unknown, the font size
            is out of range, letter spacing is negative, `primary` is not a
            hex color, or a numeric field has the wrong type.

    Examples:
        validate_config(RenderConfig(font_size=18, theme_system="breeze"))
    """
    for field_name, lookup in PRESET_LOOKUPS.items():
        preset_id = getattr(config, field_name)
        if preset_id is None:
            continue
        try:
            lookup(preset_id, strict=True)
        except UnknownPresetError as error:
            raise ConfigError(f"`{field_name}`: {error}") from error

    if config.font_family not in FONT_FAMILY_MAP:
        choices = ", ".join(FONT_FAMILY_MAP)
        raise ConfigError(f"`font_family` must be one of: {choices}")

    _ensure_integers({"font_size": config.font_size, "max_file_size": config.max_file_size})
    _ensure_numbers(
        {
            "letter_spacing": config.letter_spacing,
            **({"line_height": config.line_height} if config.line_height is not None else {}),
        }
    )

    if not MIN_FONT_SIZE <= config.font_size <= MAX_FONT_SIZE:
        raise ConfigError(f"`font_size` must be between {MIN_FONT_SIZE} and {MAX_FONT_SIZE}")
    if config.letter_spacing < 0:
        raise ConfigError("`letter_spacing` must be >= 0")
    if config.line_height is not None and config.line_height <= 0:
        raise ConfigError("`line_height` must be positive")
    if config.max_file_size <= 0:
        raise ConfigError("`max_file_size` must be a positive integer")

    if not isinstance(config.preview, bool):
        raise ConfigError("`preview` must be a boolean")
    if config.primary is not None and not is_hex_color(config.primary):
        raise ConfigError("`primary` must be a hex color such as #3366ff")


def apply_overrides(config: RenderConfig, **overrides: object) -> RenderConfig:
    """Apply override values to a `RenderConfig`.

    Args:
        config: Base configuration to update.
        overrides: Override values keyed by configuration field name; values set to
            None are ignored.

    Returns:
        RenderConfig: New configuration with the provided overrides applied. The
        original configuration is returned when no changes are supplied.

    Raises:
        TypeError: If an override name is not defined on `RenderConfig`.

    Examples:
        updated = apply_overrides(config, color_theme="conglv", font_size=18)
    """
    changes = {key: value for key, value in overrides.items() if value is not None}
    if not changes:
        return config
    return replace(config, **changes)


def build_config(search_path: Path, **overrides: object) -> RenderConfig:
    """Load, override, and validate configuration.

    Args:
        search_path: Directory where configuration files are resolved.
        overrides: Override values keyed by configuration attributes; None values
            are ignored.

    Returns:
        RenderConfig: Validated configuration ready for rendering.

    Raises:
        ConfigError: If configuration loading or validation fails.

    Examples:
        config = build_config(Path.cwd(), theme_system="breeze", preview=True)
    """
    config = load_config(search_path)
    config = apply_overrides(config, **overrides)
    validate_config(config)
    return config


def _ensure_integers(values: dict[str, object]) -> None:
    for key, value in values.items():
        if isinstance(value, bool) or not isinstance(value, int):
            raise ConfigError(f"`{key}` must be an integer")


def _ensure_numbers(values: dict[str, object]) -> None:
    for key, value in values.items():
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise ConfigError(f"`{key}` must be a number")
