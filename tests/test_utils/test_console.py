"""Tests for forgedeps.utils.console.

Covers the Rich console singleton and its colour detection, the status
printers used by the CLI, and verbatim printing of report text.
"""

from __future__ import annotations

import sys
from typing import Generator
from unittest.mock import patch

import pytest
from rich.console import Console

from forgedeps.utils.console import (
    FORGEDEPS_THEME,
    _get_console,
    _should_use_color,
    print_error,
    print_report,
    print_warning,
    reconfigure_console,
)


# ==============================================================================
# Fixtures
# ==============================================================================


@pytest.fixture(autouse=True)
def reset_console() -> Generator[None, None, None]:
    """Reset console singleton before and after each test."""
    reconfigure_console()
    yield
    reconfigure_console()


@pytest.fixture
def clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Remove environment variables that affect console behavior."""
    monkeypatch.delenv("NO_COLOR", raising=False)
    monkeypatch.delenv("CI", raising=False)


# ==============================================================================
# Test: Console lifecycle
# ==============================================================================


@pytest.mark.unit
class TestConsoleLifecycle:
    """Tests for the console singleton."""

    def test_singleton(self) -> None:
        """Test the same console is returned until reconfigured."""
        first = _get_console()

        assert _get_console() is first
        assert isinstance(first, Console)

        reconfigure_console()
        assert _get_console() is not first

    def test_theme_styles(self) -> None:
        """Test the theme defines the status styles."""
        for style in ("error", "warning"):
            assert style in FORGEDEPS_THEME.styles

    def test_no_color_env(self, clean_env: None, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test NO_COLOR disables color."""
        monkeypatch.setenv("NO_COLOR", "1")

        assert _should_use_color() is False

    def test_tty_enables_color(self, clean_env: None) -> None:
        """Test a TTY stdout enables color."""
        with patch.object(sys.stdout, "isatty", return_value=True):
            assert _should_use_color() is True


# ==============================================================================
# Test: Output helpers
# ==============================================================================


@pytest.mark.unit
class TestPrintHelpers:
    """Tests for status and report printing."""

    @pytest.mark.parametrize(
        "func,prefix",
        [
            (print_error, "[ERROR]"),
            (print_warning, "[WARNING]"),
        ],
    )
    def test_status_prefixes(self, func, prefix: str, capsys: pytest.CaptureFixture) -> None:
        """Test status helpers print a prefixed message."""
        func("done [x]")

        assert capsys.readouterr().out.strip() == f"{prefix} done [x]"

    def test_custom_prefix(self, capsys: pytest.CaptureFixture) -> None:
        """Test the prefix can be overridden."""
        print_error("boom", prefix="!!")

        assert capsys.readouterr().out.strip() == "!! boom"

    def test_print_report_verbatim(self, capsys: pytest.CaptureFixture) -> None:
        """Test report text is printed exactly, tabs and markers included."""
        text = "Checking *acme/a* dependencies.\n\tacme/b (>= 1.0.0) *matches* 1.2.0\n\n"

        print_report(text)

        assert capsys.readouterr().out.replace("        ", "\t") == text
