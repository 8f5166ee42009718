"""Production Git implementation using subprocess.

This module provides the real Git implementation that executes actual git
commands via subprocess.
"""

import subprocess
from pathlib import Path

from patchstack.core.git.abc import Git
from patchstack.core.subprocess import run_subprocess_with_context

# ============================================================================
# Production Implementation
# ============================================================================


class RealGit(Git):
    """Production implementation using subprocess.

    All git operations execute actual git commands via subprocess.
    """

    def get_repository_root(self, cwd: Path) -> Path | None:
        result = subprocess.run(
            ["git", "rev-parse", "--show-toplevel"],
            cwd=cwd,
            capture_output=True,
            text=True,
            check=False,
        )
        if result.returncode != 0:
            return None
        return Path(result.stdout.strip())

    def get_current_branch(self, repo_root: Path) -> str | None:
        result = subprocess.run(
            ["git", "symbolic-ref", "--quiet", "--short", "HEAD"],
            cwd=repo_root,
            capture_output=True,
            text=True,
            check=False,
        )
        if result.returncode != 0:
            return None
        return result.stdout.strip()

    def ref_head(self, repo_root: Path) -> str:
        result = run_subprocess_with_context(
            ["git", "rev-parse", "--verify", "HEAD"],
            operation_context="resolve HEAD",
            cwd=repo_root,
        )
        return result.stdout.strip()

    def commit_parents(self, repo_root: Path, commit_id: str) -> list[str]:
        # Output is "<commit> <parent1> <parent2> ..."
        result = run_subprocess_with_context(
            ["git", "rev-list", "--parents", "-n", "1", commit_id],
            operation_context=f"read parents of {commit_id}",
            cwd=repo_root,
        )
        return result.stdout.split()[1:]

    def commit_message(self, repo_root: Path, commit_id: str) -> str:
        result = run_subprocess_with_context(
            ["git", "cat-file", "commit", commit_id],
            operation_context=f"read message of {commit_id}",
            cwd=repo_root,
        )
        _headers, separator, message = result.stdout.partition("\n\n")
        if not separator:
            return ""
        return message

    def resolve_commit(self, repo_root: Path, revision: str) -> str | None:
        result = subprocess.run(
            ["git", "rev-parse", "--verify", "--quiet", f"{revision}^{{commit}}"],
            cwd=repo_root,
            capture_output=True,
            text=True,
            check=False,
        )
        if result.returncode != 0:
            return None
        return result.stdout.strip()
