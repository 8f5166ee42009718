"""Error kinds raised by the patch stack engine.

Every error carries the offending value as attributes so the CLI layer can
render a precise message. The core never formats output for the user beyond
the exception's own ``str()``.
"""


class PatchstackError(Exception):
    """Base class for all engine errors."""


# ============================================================================
# Request validation
# ============================================================================


class UsageConflictError(PatchstackError):
    """Mutually exclusive selection options were combined."""

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class NonPositiveCountError(PatchstackError):
    def __init__(self, count: int) -> None:
        super().__init__(f"Invalid count {count}: must be a positive integer")
        self.count = count


class InvalidPatchNameError(PatchstackError):
    def __init__(self, name: str, reason: str) -> None:
        super().__init__(f"Invalid patch name {name!r}: {reason}")
        self.name = name
        self.reason = reason


class PatchNameCollisionError(PatchstackError):
    def __init__(self, name: str) -> None:
        super().__init__(f"Patch `{name}` already exists")
        self.name = name


# ============================================================================
# History traversal
# ============================================================================


class HistoryError(PatchstackError):
    """The commit history cannot supply the requested commits."""


class UnknownRevisionError(HistoryError):
    def __init__(self, revision: str) -> None:
        super().__init__(f"Revision {revision!r} does not name a commit")
        self.revision = revision


class NonLinearHistoryError(HistoryError):
    def __init__(self, commit_id: str, parent_count: int) -> None:
        super().__init__(
            f"Trying to uncommit {commit_id}, which does not have exactly one parent "
            f"(it has {parent_count})"
        )
        self.commit_id = commit_id
        self.parent_count = parent_count


class InsufficientHistoryError(HistoryError):
    """The walk ran out of commits before collecting enough of them.

    It ends at a root commit, or at a commit a patch already points at
    (``patch`` names that patch). ``requested``/``available`` are set for
    count selections, ``target`` when walking toward a commit that was never
    reached.
    """

    def __init__(
        self,
        commit_id: str,
        *,
        requested: int | None = None,
        available: int | None = None,
        target: str | None = None,
        patch: str | None = None,
    ) -> None:
        floor = f"patch `{patch}`" if patch is not None else f"root commit {commit_id}"
        if target is not None:
            message = f"Commit {target} is not reachable through linear history"
        elif requested is not None:
            message = (
                f"Cannot uncommit {requested} commits: only {available} available "
                f"above {floor}"
            )
        elif patch is not None:
            message = f"Reached commit {commit_id}, which is already patch `{patch}`"
        else:
            message = f"Reached root commit {commit_id}, which has no parent"
        super().__init__(message)
        self.commit_id = commit_id
        self.requested = requested
        self.available = available
        self.target = target
        self.patch = patch


class CommitAlreadyTrackedError(HistoryError):
    def __init__(self, commit_id: str, patch: str) -> None:
        super().__init__(f"Commit {commit_id} is already patch `{patch}`")
        self.commit_id = commit_id
        self.patch = patch


# ============================================================================
# Stack state
# ============================================================================


class StackTransactionError(PatchstackError):
    """The stack state could not be persisted."""


class ConcurrentModificationError(StackTransactionError):
    def __init__(self, expected: str | None, actual: str | None) -> None:
        super().__init__(
            f"Stack state was modified concurrently (expected {expected}, found {actual})"
        )
        self.expected = expected
        self.actual = actual


class StackStorageError(StackTransactionError):
    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class StackNotInitializedError(PatchstackError):
    def __init__(self, branch: str) -> None:
        super().__init__(f"Branch `{branch}` not initialized (run `patchstack init`)")
        self.branch = branch


class StackAlreadyInitializedError(PatchstackError):
    def __init__(self, branch: str) -> None:
        super().__init__(f"Branch `{branch}` already initialized")
        self.branch = branch


class HeadDetachedError(PatchstackError):
    def __init__(self) -> None:
        super().__init__("Not on a branch (HEAD is detached)")


class UnknownPatchError(PatchstackError):
    def __init__(self, name: str) -> None:
        super().__init__(f"Patch `{name}` does not exist")
        self.name = name


class PatchOrderError(PatchstackError):
    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class NoAppliedPatchesError(PatchstackError):
    def __init__(self) -> None:
        super().__init__("No patches applied")
