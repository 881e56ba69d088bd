import pytest
from click.testing import CliRunner
from markpress.models import ParseOptions
from markpress.themes import get_color_theme


@pytest.fixture()
def cli_runner() -> CliRunner:
    """Provides a reusable Click CLI runner."""
    return CliRunner()


@pytest.fixture()
def theme():
    """The green preset, whose primary color is easy to spot in output."""
    return get_color_theme("conglv")


@pytest.fixture()
def options(theme) -> ParseOptions:
    """Export options with the green preset and default typography."""
    return ParseOptions(color_theme=theme)


@pytest.fixture()
def preview_options(theme) -> ParseOptions:
    return ParseOptions(color_theme=theme, is_preview=True)
