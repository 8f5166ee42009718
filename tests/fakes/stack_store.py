"""Fake stack state storage for testing.

FakeStackStore keeps one branch's series in memory and mimics the
compare-and-swap behavior of the git-backed store. Conflicting writers and
storage faults can be injected through the constructor.
"""

from dataclasses import replace

from patchstack.core.errors import (
    ConcurrentModificationError,
    StackAlreadyInitializedError,
    StackNotInitializedError,
)
from patchstack.core.stack.abc import StackStore
from patchstack.core.stack.types import Series, StackSnapshot


class FakeStackStore(StackStore):
    """In-memory fake implementation of StackStore.

    This class has NO public setup methods. All state is provided via constructor
    using keyword arguments with sensible defaults.
    """

    def __init__(
        self,
        *,
        series: Series | None = None,
        branch: str = "main",
        conflicts: int = 0,
        write_raises: Exception | None = None,
        racing_series: Series | None = None,
    ) -> None:
        """Create FakeStackStore with pre-configured state.

        Args:
            series: Stored series (None = stack not initialized)
            branch: Branch name the store belongs to
            conflicts: Number of writes that lose a race with another writer
                before writes start succeeding
            write_raises: Exception to raise from every write
            racing_series: Series the conflicting writer stores (None = the
                stored series stays as it was)
        """
        self._series = series
        self._branch = branch
        self._version = 0
        self._conflicts_remaining = conflicts
        self._write_raises = write_raises
        self._racing_series = racing_series
        self._write_attempts = 0
        self._messages: list[str] = []

    @property
    def branch(self) -> str:
        return self._branch

    @property
    def series(self) -> Series | None:
        """The currently stored series, for assertions."""
        return self._series

    @property
    def write_attempts(self) -> int:
        return self._write_attempts

    @property
    def messages(self) -> list[str]:
        """Messages of the successful writes, in order."""
        return list(self._messages)

    def exists(self) -> bool:
        return self._series is not None

    def read(self) -> StackSnapshot:
        if self._series is None:
            raise StackNotInitializedError(self._branch)
        return StackSnapshot(series=self._series, token=self._token())

    def write(self, series: Series, *, expected: str, message: str) -> str:
        self._write_attempts += 1
        if self._write_raises is not None:
            raise self._write_raises

        if self._conflicts_remaining > 0:
            # Another writer got in first
            self._conflicts_remaining -= 1
            self._version += 1
            if self._racing_series is not None:
                self._series = self._racing_series
        if expected != self._token():
            raise ConcurrentModificationError(expected, self._token())

        self._series = replace(series, prev=expected)
        self._version += 1
        self._messages.append(message)
        return self._token()

    def initialize(self, head: str) -> str:
        if self._series is not None:
            raise StackAlreadyInitializedError(self._branch)
        self._series = Series.empty(head)
        return self._token()

    def _token(self) -> str:
        return f"state-{self._version}"
