"""Stack state storage interface.

Architecture:
- StackStore: Abstract base class defining the interface
- RealGitStackStore: Production implementation keeping state under refs/stacks/
- DryRunStackStore: Wrapper that delegates reads and skips writes

Writes are compare-and-swap: the caller passes the token of the snapshot it
read, and the write fails with ConcurrentModificationError if the stored state
has moved on since. patchstack.core.stack.transaction builds the retrying
read-modify-write loop on top of this.
"""

from abc import ABC, abstractmethod

from patchstack.core.stack.types import Series, StackSnapshot


class StackStore(ABC):
    """Abstract interface for one branch's persisted stack state."""

    @property
    @abstractmethod
    def branch(self) -> str:
        """Branch whose stack this store holds."""
        ...

    @abstractmethod
    def exists(self) -> bool:
        """Check whether a stack has been initialized for the branch."""
        ...

    @abstractmethod
    def read(self) -> StackSnapshot:
        """Read the current series and its version token.

        Raises:
            StackNotInitializedError: If no stack exists for the branch
            StackStorageError: If the stored state cannot be read
        """
        ...

    @abstractmethod
    def write(self, series: Series, *, expected: str, message: str) -> str:
        """Persist series, replacing the state identified by expected.

        Args:
            series: New series to store
            expected: Token of the snapshot the series was derived from
            message: Description of the change, recorded in the stack log

        Returns:
            Token of the newly persisted state

        Raises:
            ConcurrentModificationError: If the stored state is no longer expected
            StackStorageError: If the state cannot be written
        """
        ...

    @abstractmethod
    def initialize(self, head: str) -> str:
        """Create an empty stack based at head.

        Returns:
            Token of the initial state

        Raises:
            StackAlreadyInitializedError: If a stack already exists
        """
        ...
