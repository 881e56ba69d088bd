"""Reading Markdown sources and writing rendered HTML for the CLI."""

from __future__ import annotations

import os
import stat
import tempfile
from pathlib import Path
from typing import TextIO

from .constants import DEFAULT_MAX_FILE_SIZE, MARKDOWN_EXTENSIONS

MAX_FILE_SIZE_ENV_VAR = "MARKPRESS_MAX_FILE_SIZE"


def get_max_file_size(default: int = DEFAULT_MAX_FILE_SIZE) -> int:
    """Return the largest Markdown source, in bytes, the CLI will render.

    ``MARKPRESS_MAX_FILE_SIZE`` overrides `default`, which usually comes from
    the ``max_file_size`` key of the configuration file.

    Raises:
        ValueError: If the environment value is not a positive byte count.

    Examples:
        os.environ["MARKPRESS_MAX_FILE_SIZE"] = "2097152"
        get_max_file_size(default=1048576)  # 2097152
    """
    env_value = os.environ.get(MAX_FILE_SIZE_ENV_VAR)
    if env_value is None:
        return default

    try:
        max_size = int(env_value)
    except ValueError as error:
        error_message = (
            f"Invalid value for {MAX_FILE_SIZE_ENV_VAR}: {env_value} "
            "(expected a positive byte count)"
        )
        raise ValueError(error_message) from error

    if max_size <= 0:
        error_message = f"{MAX_FILE_SIZE_ENV_VAR} must be a positive byte count, got {max_size}."
        raise ValueError(error_message)

    return max_size


def contains_symlink(path: Path) -> bool:
    # Unreadable ancestors are skipped; resolving the path reports them.
    for candidate in (path, *path.parents):
        try:
            if candidate.is_symlink():
                return True
        except OSError:
            continue
    return False


def normalize_filepath(raw_path: str, base_dir: Path) -> Path:
    """Resolve the Markdown source to render, confined to `base_dir`.

    Args:
        raw_path: Source path as given on the command line; ``~`` is expanded.
        base_dir: Directory the source must live under, normally the
            current working directory.

    Returns:
        Path: Absolute path of the source.

    Raises:
        ValueError: If the source is missing, reached through a symlink, not a
            regular file, outside `base_dir`, or lacks a Markdown extension.

    Examples:
        normalize_filepath("posts/launch.md", Path.cwd())
    """
    path = Path(raw_path).expanduser()

    if contains_symlink(path):
        error_message = f"Refusing to render through a symlink: {path}"
        raise ValueError(error_message)

    try:
        resolved = path.resolve(strict=True)
    except FileNotFoundError as error:
        error_message = f"Markdown source {path} does not exist."
        raise ValueError(error_message) from error
    except OSError as error:
        error_message = f"Cannot resolve Markdown source {path}: {error}"
        raise ValueError(error_message) from error

    if not resolved.is_file():
        error_message = f"Markdown source {resolved} is not a regular file."
        raise ValueError(error_message)

    try:
        resolved.relative_to(base_dir)
    except ValueError as error:
        error_message = f"Markdown source {resolved} is outside the working directory {base_dir}."
        raise ValueError(error_message) from error

    if resolved.suffix.lower() not in MARKDOWN_EXTENSIONS:
        error_message = f"{resolved} is not a Markdown file and cannot be rendered.\n"
        error_message += f"Supported extensions are: {', '.join(MARKDOWN_EXTENSIONS)}"
        raise ValueError(error_message)

    return resolved


def collect_file_stat(filepath: Path) -> os.stat_result:
    """Stat a source or output file without following symlinks.

    Raises:
        IOError: If the path cannot be stat'ed, is a symlink, or is not a
            regular file. FIFOs and sockets are refused here so rendering
            never blocks on them.
    """
    try:
        stat_result = os.stat(filepath, follow_symlinks=False)
    except OSError as error:
        error_message = f"Cannot stat {filepath}: {error}"
        raise IOError(error_message) from error

    if stat.S_ISLNK(stat_result.st_mode):
        error_message = f"Refusing to open a symlink: {filepath}."
        raise IOError(error_message)

    if not stat.S_ISREG(stat_result.st_mode):
        error_message = f"{filepath} is not a regular file."
        raise IOError(error_message)

    return stat_result


def enforce_file_size(stat_result: os.stat_result, max_size: int, filepath: Path):
    """Refuse to render a source larger than `max_size` bytes."""
    if stat_result.st_size > max_size:
        error_message = (
            f"{filepath} is too large to render: {stat_result.st_size} bytes "
            f"(limit {max_size} bytes)."
        )
        raise IOError(error_message)


def safe_read(filepath: Path) -> TextIO:
    """Open a Markdown source as UTF-8 text.

    Raises:
        IOError: If the source is missing, unreadable, or not a file.

    Examples:
        with safe_read(Path("post.md")) as handle:
            html = render(handle.read())
    """
    try:
        return open(filepath, "r", encoding="UTF-8")
    except (
        FileNotFoundError,
        PermissionError,
        IsADirectoryError,
        NotADirectoryError,
    ) as error:
        error_message = f"Cannot read Markdown source {filepath}: {error}"
        raise IOError(error_message) from error


def write_output(output_path: Path, content: str):
    """Write rendered HTML to `output_path` atomically.

    The HTML goes to a temporary file in the destination directory, which
    then replaces the target, so a reader never sees half a document. An
    existing output file keeps its permissions.

    Args:
        output_path: Destination of the rendered HTML.
        content: HTML to write as UTF-8.

    Raises:
        IOError: If the destination is a symlink, its directory is missing, or
            the file cannot be replaced.

    Examples:
        write_output(Path("post.html"), render(source))
    """
    if contains_symlink(output_path):
        error_message = f"Refusing to write rendered HTML through a symlink: {output_path}"
        raise IOError(error_message)
    if not output_path.parent.is_dir():
        error_message = f"Output directory {output_path.parent} does not exist."
        raise IOError(error_message)

    permissions = None
    if output_path.exists():
        permissions = stat.S_IMODE(collect_file_stat(output_path).st_mode)

    temp_path: Path | None = None
    try:
        with tempfile.NamedTemporaryFile(
            mode="w", encoding="UTF-8", delete=False, dir=output_path.parent, suffix=".html"
        ) as tmp_file:
            temp_path = Path(tmp_file.name)
            tmp_file.write(content)
            tmp_file.flush()
            os.fsync(tmp_file.fileno())
            if permissions is not None:
                os.chmod(tmp_file.name, permissions)

        os.replace(temp_path, output_path)
    except OSError as error:
        error_message = f"Cannot write rendered HTML to {output_path}: {error}"
        raise IOError(error_message) from error
    finally:
        if temp_path is not None:
            try:
                temp_path.unlink(missing_ok=True)
            except OSError:
                pass
