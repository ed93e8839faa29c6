"""Smoke tests for tagmirror CLI."""
import subprocess


def test_cli_help_returns_zero_exit_code():
    """Execute tagmirror --help and verify it returns exit code 0."""
    result = subprocess.run(
        ["tagmirror", "--help"],
        capture_output=True,
        text=True,
    )
    assert result.returncode == 0
