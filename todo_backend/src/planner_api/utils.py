from __future__ import annotations

from datetime import date, timedelta
from typing import Iterator, Mapping, Optional, Tuple


# PUBLIC_INTERFACE
def iter_dates(start: date, end: date) -> Iterator[date]:
    """
    Yield every calendar date from start to end, both inclusive.

    Args:
        start: First date of the range.
        end: Last date of the range.

    Yields nothing when end is before start.
    """
    current = start
    while current <= end:
        yield current
        current += timedelta(days=1)


# PUBLIC_INTERFACE
def due_time_sort_key(item: Mapping[str, Optional[str]]) -> Tuple[int, str]:
    """
    Sort key placing all-day items (due_time None) first, then timed items by their
    zero-padded 'HH:mm' string, which sorts chronologically.
    """
    due_time = item.get("due_time")
    if not due_time:
        return (0, "")
    return (1, due_time)
