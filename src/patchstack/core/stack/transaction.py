"""Atomic read-modify-write of a branch's series.

with_series_transaction is the only way the engine mutates stack state. The
transform receives one consistent snapshot and returns the complete new series;
nothing is written until it returns, so any exception it raises leaves the
stored state exactly as it was.
"""

import logging
from collections.abc import Callable

from patchstack.core.errors import ConcurrentModificationError
from patchstack.core.global_config import DEFAULT_TRANSACTION_ATTEMPTS
from patchstack.core.stack.abc import StackStore
from patchstack.core.stack.types import Series

logger = logging.getLogger(__name__)


def with_series_transaction(
    store: StackStore,
    transform: Callable[[Series], Series],
    *,
    message: str,
    max_attempts: int = DEFAULT_TRANSACTION_ATTEMPTS,
) -> Series:
    """Apply transform to the current series and persist the result.

    The transform may be run more than once: when the write loses a race with
    another writer, the snapshot is re-read and the transform re-applied, up to
    max_attempts times in total. It must therefore be free of side effects.

    Args:
        store: Stack state store for the branch
        transform: Pure function from the current series to the new one
        message: Stack log message for the write
        max_attempts: Total number of read-transform-write attempts

    Returns:
        The series that was persisted

    Raises:
        ConcurrentModificationError: If every attempt lost a race
        Any exception raised by transform, or by the store's read/write
    """
    if max_attempts < 1:
        raise ValueError(f"max_attempts must be at least 1, got {max_attempts}")

    for attempt in range(1, max_attempts + 1):
        snapshot = store.read()
        new_series = transform(snapshot.series)
        try:
            store.write(new_series, expected=snapshot.token, message=message)
        except ConcurrentModificationError:
            logger.debug(
                "Transaction %r lost a race on attempt %d/%d", message, attempt, max_attempts
            )
            if attempt == max_attempts:
                raise
            continue
        logger.debug("Transaction %r committed on attempt %d", message, attempt)
        return new_series

    raise AssertionError("unreachable")
