"""Smoke tests for documenter-index CLI."""
import subprocess


def test_cli_help_returns_zero_exit_code():
    """Execute documenter-index --help and verify it returns exit code 0."""
    result = subprocess.run(
        ["documenter-index", "--help"],
        capture_output=True,
        text=True,
    )
    assert result.returncode == 0
