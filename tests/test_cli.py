from __future__ import annotations

import os
import textwrap
from pathlib import Path

import pytest

import markpress.cli as cli_module
from markpress.cli import cli


def _write(tmp_path: Path, filename: str, content: str) -> Path:
    path = tmp_path / filename
    path.write_text(textwrap.dedent(content).lstrip(), encoding="utf-8")
    return path


def _write_pyproject(base: Path, body: str) -> Path:
    path = base / "pyproject.toml"
    path.write_text(textwrap.dedent(body).lstrip(), encoding="utf-8")
    return path


def test_cli_prints_html(cli_runner, tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    target = _write(
        tmp_path,
        "post.md",
        """
        # Title

        Some **bold** text.
        """,
    )

    result = cli_runner.invoke(cli, [str(target)])

    assert result.exit_code == 0
    assert result.output.startswith('<section data-role="outer"')
    assert 'id="title"' in result.output
    assert "<strong" in result.output


def test_cli_preview_skips_export_wrapper(cli_runner, tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    target = _write(tmp_path, "post.md", "# Title\n")

    result = cli_runner.invoke(cli, ["--preview", str(target)])

    assert result.exit_code == 0
    assert result.output.strip() == '<h1 id="title">Title</h1>'


def test_cli_writes_output_file(cli_runner, tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    target = _write(tmp_path, "post.md", "Hello\n")
    output = tmp_path / "post.html"

    result = cli_runner.invoke(cli, ["-o", str(output), str(target)])

    assert result.exit_code == 0
    assert result.output == ""
    assert "Hello" in output.read_text(encoding="utf-8")
    assert [path.name for path in tmp_path.iterdir() if path.name.startswith("tmp")] == []


def test_cli_output_keeps_existing_permissions(cli_runner, tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    target = _write(tmp_path, "post.md", "Hello\n")
    output = tmp_path / "post.html"
    output.write_text("old", encoding="utf-8")
    output.chmod(0o640)

    result = cli_runner.invoke(cli, ["--output", str(output), str(target)])

    assert result.exit_code == 0
    assert output.stat().st_mode & 0o777 == 0o640
    assert "old" not in output.read_text(encoding="utf-8")


def test_cli_theme_option(cli_runner, tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    target = _write(tmp_path, "post.md", "Some **bold** text.\n")

    result = cli_runner.invoke(cli, ["--theme", "conglv", str(target)])

    assert result.exit_code == 0
    assert "color: #0AA344" in result.output


def test_cli_rejects_unknown_theme(cli_runner, tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    target = _write(tmp_path, "post.md", "Hello\n")

    result = cli_runner.invoke(cli, ["--theme", "nonexistent", str(target)])

    assert result.exit_code != 0
    assert "nonexistent" in result.output


def test_cli_rejects_invalid_primary(cli_runner, tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    target = _write(tmp_path, "post.md", "Hello\n")

    result = cli_runner.invoke(cli, ["--primary", "blue", str(target)])

    assert result.exit_code != 0
    assert "primary" in result.output


def test_cli_primary_color_derives_theme(cli_runner, tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    target = _write(tmp_path, "post.md", "Some **bold** text.\n")

    result = cli_runner.invoke(cli, ["--primary", "#3366ff", str(target)])

    assert result.exit_code == 0
    assert "color: #3366ff" in result.output


def test_cli_rejects_out_of_range_font_size(cli_runner, tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    target = _write(tmp_path, "post.md", "Hello\n")

    result = cli_runner.invoke(cli, ["--font-size", "40", str(target)])

    assert result.exit_code != 0
    assert "font_size" in result.output


def test_cli_rejects_non_markdown_files(cli_runner, tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    target = _write(tmp_path, "notes.rst", "Heading\n")

    result = cli_runner.invoke(cli, [str(target)])

    assert result.exit_code != 0
    assert "not a Markdown file" in result.output


def test_cli_rejects_files_outside_working_directory(cli_runner, tmp_path, monkeypatch):
    outside = tmp_path / "outside"
    outside.mkdir()
    target = _write(outside, "post.md", "Hello\n")
    workdir = tmp_path / "work"
    workdir.mkdir()
    monkeypatch.chdir(workdir)

    result = cli_runner.invoke(cli, [str(target)])

    assert result.exit_code != 0
    assert "outside the working directory" in result.output


@pytest.mark.skipif(not hasattr(os, "symlink"), reason="symlinks unavailable")
def test_cli_rejects_symlinked_input(cli_runner, tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    target = _write(tmp_path, "post.md", "Hello\n")
    link = tmp_path / "link.md"
    link.symlink_to(target)

    result = cli_runner.invoke(cli, [str(link)])

    assert result.exit_code != 0
    assert "Refusing to render through a symlink" in result.output


def test_cli_enforces_max_file_size_env(cli_runner, tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("MARKPRESS_MAX_FILE_SIZE", "4")
    target = _write(tmp_path, "post.md", "Hello world\n")

    result = cli_runner.invoke(cli, [str(target)])

    assert result.exit_code != 0
    assert "too large to render" in result.output


def test_cli_rejects_invalid_max_file_size_env(cli_runner, tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("MARKPRESS_MAX_FILE_SIZE", "lots")
    target = _write(tmp_path, "post.md", "Hello\n")

    result = cli_runner.invoke(cli, [str(target)])

    assert result.exit_code != 0
    assert "MARKPRESS_MAX_FILE_SIZE" in result.output


def test_cli_rejects_invalid_utf8(cli_runner, tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    target = tmp_path / "post.md"
    target.write_bytes(b"\xff\xfe\xfa")

    result = cli_runner.invoke(cli, [str(target)])

    assert result.exit_code != 0


def test_cli_reads_config_from_pyproject(cli_runner, tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    _write_pyproject(
        tmp_path,
        """
        [tool.markpress]
        color_theme = "conglv"
        preview = true
        """,
    )
    target = _write(tmp_path, "post.md", "Some **bold** text.\n")

    result = cli_runner.invoke(cli, [str(target)])

    assert result.exit_code == 0
    assert "color: #0AA344" in result.output
    assert "data-role" not in result.output


def test_cli_flags_override_config(cli_runner, tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    _write_pyproject(
        tmp_path,
        """
        [tool.markpress]
        color_theme = "conglv"
        """,
    )
    target = _write(tmp_path, "post.md", "Some **bold** text.\n")

    result = cli_runner.invoke(cli, ["--theme", "chijin", str(target)])

    assert result.exit_code == 0
    assert "color: #FF0097" in result.output
    assert "#0AA344" not in result.output


def test_cli_reports_invalid_config(cli_runner, tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    _write_pyproject(
        tmp_path,
        """
        [tool.markpress]
        font_size = 99
        """,
    )
    target = _write(tmp_path, "post.md", "Hello\n")

    result = cli_runner.invoke(cli, [str(target)])

    assert result.exit_code != 0
    assert "font_size" in result.output


def test_cli_reports_write_failures(cli_runner, tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    target = _write(tmp_path, "post.md", "Hello\n")

    def _fail(output_path, content):
        raise IOError(f"Cannot write rendered HTML to {output_path}: disk full")

    monkeypatch.setattr(cli_module, "write_output", _fail)
    result = cli_runner.invoke(cli, ["-o", str(tmp_path / "post.html"), str(target)])

    assert result.exit_code != 0
    assert "disk full" in result.output


def test_cli_verbose_flag(cli_runner, tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    target = _write(tmp_path, "post.md", "Hello\n")

    result = cli_runner.invoke(cli, ["-v", str(target)])

    assert result.exit_code == 0
    assert "Hello" in result.output


def test_cli_public_api():
    assert cli_module.__all__ == ["cli"]
