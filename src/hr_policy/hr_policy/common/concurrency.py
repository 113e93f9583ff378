from __future__ import annotations

import logging
from typing import Callable

from ..core.exceptions import ConflictError

logger = logging.getLogger(__name__)


def compare_and_swap(
    *,
    read: Callable[[], int],
    compute: Callable[[int], int],
    write: Callable[[int, int], bool],
    what: str,
) -> tuple[int, int]:
    """Read-compute-write a balance guarded by the previous value.

    ``write(expected, new)`` must be a single conditional update. A lost race is
    retried once against a fresh read, then reported as ConflictError.
    Returns ``(old, new)``.
    """

    for attempt in (1, 2):
        current = read()
        new_value = compute(current)
        if new_value == current or write(current, new_value):
            return current, new_value
        logger.warning("balance_cas_conflict", extra={"balance": what, "attempt": attempt})
    raise ConflictError(f"{what} was changed concurrently, please retry")
