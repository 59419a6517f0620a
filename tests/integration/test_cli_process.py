"""
Integration Tests for the notesync CLI.

Runs the CLI as a separate process from the project root.
"""

import os
import subprocess
import sys
from pathlib import Path

import pytest

from notesync.core.identifiers import identifier_for

pytestmark = pytest.mark.integration

# Project root for running commands
PROJECT_ROOT = Path(__file__).parent.parent.parent


def run_cli(*args: str, cwd: Path = PROJECT_ROOT) -> subprocess.CompletedProcess:
    return subprocess.run(
        [sys.executable, "-m", "notesync.cli.main", *args],
        cwd=cwd,
        capture_output=True,
        text=True,
        env={**os.environ, "PYTHONPATH": str(PROJECT_ROOT)},
    )


class TestNotesyncCLI:
    """Integration tests for the notesync command-line interface."""

    def test_help_returns_zero_exit_code(self):
        result = run_cli("--help")

        assert result.returncode == 0
        assert "Usage:" in result.stdout
        assert "identity" in result.stdout

    def test_identity_show_prints_builtin_identifier(self):
        # Act
        result = run_cli("identity", "show", "Book", "green", "book")

        # Assert
        assert result.returncode == 0
        assert identifier_for("Book", "green", "book") in result.stdout
        assert "built-in category" in result.stdout

    def test_identity_show_custom_category(self):
        result = run_cli("identity", "show", "Trips", "blue", "book")

        assert result.returncode == 0
        assert identifier_for("Trips", "blue", "book") in result.stdout
        assert "built-in category" not in result.stdout

    def test_fails_outside_project(self, tmp_path):
        result = run_cli("identity", "defaults", cwd=tmp_path)

        assert result.returncode == 1
        assert "Error" in result.stdout
