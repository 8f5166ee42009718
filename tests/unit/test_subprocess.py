"""Tests for subprocess wrapper with rich error context."""

import subprocess
from pathlib import Path
from unittest.mock import Mock, patch

import pytest

from patchstack.core.subprocess import run_subprocess_with_context


def test_stdin_and_defaults_are_passed_to_subprocess_run() -> None:
    """Input text and the capture defaults reach subprocess.run."""
    with patch("patchstack.core.subprocess.subprocess.run") as mock_run:
        mock_result = Mock(spec=subprocess.CompletedProcess)
        mock_result.returncode = 0
        mock_result.stdout = "e69de29bb2d1d6434b8b29ae775ad8c2e48c5391\n"
        mock_run.return_value = mock_result

        result = run_subprocess_with_context(
            ["git", "hash-object", "-w", "--stdin"],
            operation_context="store stack.json",
            cwd=Path("/repo"),
            input="{}",
        )

        assert result == mock_result
        mock_run.assert_called_once_with(
            ["git", "hash-object", "-w", "--stdin"],
            cwd=Path("/repo"),
            input="{}",
            capture_output=True,
            text=True,
            encoding="utf-8",
            check=True,
            env=None,
        )


def test_failure_includes_command_exit_code_and_stderr() -> None:
    """A failing command becomes a RuntimeError that names the operation."""
    with patch("patchstack.core.subprocess.subprocess.run") as mock_run:
        original_error = subprocess.CalledProcessError(
            returncode=128,
            cmd=["git", "cat-file", "blob", "deadbeef:stack.json"],
            stderr="fatal: path 'stack.json' does not exist in 'deadbeef'",
        )
        mock_run.side_effect = original_error

        with pytest.raises(RuntimeError) as exc_info:
            run_subprocess_with_context(
                ["git", "cat-file", "blob", "deadbeef:stack.json"],
                operation_context="read stack state deadbeef",
            )

        error_message = str(exc_info.value)
        assert "Failed to read stack state deadbeef" in error_message
        assert "Command: git cat-file blob deadbeef:stack.json" in error_message
        assert "Exit code: 128" in error_message
        assert "stderr: fatal: path 'stack.json' does not exist" in error_message
        assert exc_info.value.__cause__ is original_error


def test_whitespace_stderr_is_omitted() -> None:
    with patch("patchstack.core.subprocess.subprocess.run") as mock_run:
        mock_run.side_effect = subprocess.CalledProcessError(
            returncode=1, cmd=["git", "mktree"], stderr="   \n  "
        )

        with pytest.raises(RuntimeError) as exc_info:
            run_subprocess_with_context(["git", "mktree"], operation_context="build tree")

        assert "stderr:" not in str(exc_info.value)


def test_missing_binary_is_reported() -> None:
    with patch("patchstack.core.subprocess.subprocess.run") as mock_run:
        mock_run.side_effect = FileNotFoundError("git")

        with pytest.raises(RuntimeError, match="Command not found while trying to resolve HEAD"):
            run_subprocess_with_context(
                ["git", "rev-parse", "HEAD"], operation_context="resolve HEAD"
            )


def test_check_false_returns_failed_result() -> None:
    with patch("patchstack.core.subprocess.subprocess.run") as mock_run:
        mock_result = Mock(spec=subprocess.CompletedProcess)
        mock_result.returncode = 1
        mock_run.return_value = mock_result

        result = run_subprocess_with_context(
            ["git", "update-ref", "refs/stacks/main", "a", "b"],
            operation_context="update stack ref",
            check=False,
        )

        assert result.returncode == 1
