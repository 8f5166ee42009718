"""Production StackStore keeping stack state in git.

Each branch's state lives in a commit referenced by ``refs/stacks/<branch>``.
The commit's tree holds a single ``stack.json`` blob. Its first parent is the
previous state commit (the stack log); commits that patches start referencing
are added as further parents so they stay reachable after the branch moves.
The ref is only ever moved with ``git update-ref <ref> <new> <old>``, which
makes every write a compare-and-swap.
"""

import logging
import subprocess
from dataclasses import replace
from pathlib import Path

from patchstack.core.errors import (
    ConcurrentModificationError,
    StackAlreadyInitializedError,
    StackNotInitializedError,
    StackStorageError,
)
from patchstack.core.git.abc import short_id
from patchstack.core.global_config import DEFAULT_STACK_REF_PREFIX
from patchstack.core.stack.abc import StackStore
from patchstack.core.stack.types import Series, StackSnapshot, series_from_json, series_to_json
from patchstack.core.subprocess import run_subprocess_with_context

logger = logging.getLogger(__name__)

STACK_FILE = "stack.json"


class RealGitStackStore(StackStore):
    """Stack state stored as commits under a refs/ namespace."""

    def __init__(
        self, repo_root: Path, branch: str, *, ref_prefix: str = DEFAULT_STACK_REF_PREFIX
    ) -> None:
        self._repo_root = repo_root
        self._branch = branch
        self._refname = f"{ref_prefix}{branch}"

    @property
    def branch(self) -> str:
        return self._branch

    @property
    def refname(self) -> str:
        return self._refname

    def exists(self) -> bool:
        return self._current_token() is not None

    def read(self) -> StackSnapshot:
        token = self._current_token()
        if token is None:
            raise StackNotInitializedError(self._branch)
        return StackSnapshot(series=self._read_state(token), token=token)

    def write(self, series: Series, *, expected: str, message: str) -> str:
        previous = self._read_state(expected)
        to_store = replace(series, prev=expected)

        known = set(previous.patches.values()) | {previous.head}
        new_commits = [oid for oid in to_store.patches.values() if oid not in known]
        if to_store.head not in known:
            new_commits.append(to_store.head)
        parents = [expected, *dict.fromkeys(new_commits)]

        token = self._commit_state(to_store, parents=parents, message=message)
        self._update_ref(token, expected=expected, message=message)
        logger.debug(
            "Stack %s moved %s -> %s (%s)",
            self._refname,
            short_id(expected),
            short_id(token),
            message,
        )
        return token

    def initialize(self, head: str) -> str:
        if self.exists():
            raise StackAlreadyInitializedError(self._branch)
        token = self._commit_state(Series.empty(head), parents=[], message="initialize")
        self._update_ref(token, expected=None, message="initialize")
        logger.debug("Initialized %s at %s", self._refname, short_id(head))
        return token

    # ------------------------------------------------------------------------
    # git plumbing
    # ------------------------------------------------------------------------

    def _current_token(self) -> str | None:
        result = subprocess.run(
            ["git", "rev-parse", "--verify", "--quiet", self._refname],
            cwd=self._repo_root,
            capture_output=True,
            text=True,
            check=False,
        )
        if result.returncode != 0:
            return None
        return result.stdout.strip()

    def _read_state(self, token: str) -> Series:
        try:
            result = run_subprocess_with_context(
                ["git", "cat-file", "blob", f"{token}:{STACK_FILE}"],
                operation_context=f"read stack state {short_id(token)}",
                cwd=self._repo_root,
            )
            return series_from_json(result.stdout)
        except (RuntimeError, ValueError) as e:
            raise StackStorageError(str(e)) from e

    def _commit_state(self, series: Series, *, parents: list[str], message: str) -> str:
        try:
            blob = run_subprocess_with_context(
                ["git", "hash-object", "-w", "--stdin"],
                operation_context="store stack.json",
                cwd=self._repo_root,
                input=series_to_json(series),
            ).stdout.strip()
            tree = run_subprocess_with_context(
                ["git", "mktree"],
                operation_context="build stack state tree",
                cwd=self._repo_root,
                input=f"100644 blob {blob}\t{STACK_FILE}\n",
            ).stdout.strip()

            cmd = ["git", "commit-tree", tree]
            for parent in parents:
                cmd.extend(["-p", parent])
            cmd.extend(["-m", message])
            return run_subprocess_with_context(
                cmd,
                operation_context="commit stack state",
                cwd=self._repo_root,
            ).stdout.strip()
        except RuntimeError as e:
            raise StackStorageError(str(e)) from e

    def _update_ref(self, token: str, *, expected: str | None, message: str) -> None:
        # An empty old value requires that the ref does not exist yet
        result = subprocess.run(
            ["git", "update-ref", "-m", message, self._refname, token, expected or ""],
            cwd=self._repo_root,
            capture_output=True,
            text=True,
            check=False,
        )
        if result.returncode == 0:
            return

        actual = self._current_token()
        if actual != expected:
            raise ConcurrentModificationError(expected, actual)
        raise StackStorageError(
            f"Failed to update {self._refname}: {result.stderr.strip() or 'unknown error'}"
        )
