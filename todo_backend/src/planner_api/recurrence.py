from __future__ import annotations

from datetime import date
from enum import Enum
from typing import Union


# PUBLIC_INTERFACE
class Recurrence(str, Enum):
    """Closed set of supported recurrence rules."""

    NONE = "none"
    DAILY = "daily"
    WEEKLY = "weekly"
    BIWEEKLY = "biweekly"
    MONTHLY = "monthly"
    QUARTERLY = "quarterly"


def _normalize(recurrence: Union[Recurrence, str, None]) -> Union[Recurrence, None]:
    if isinstance(recurrence, Recurrence):
        return recurrence
    try:
        return Recurrence(recurrence)
    except ValueError:
        return None


# PUBLIC_INTERFACE
def is_due_on(anchor: date, recurrence: Union[Recurrence, str, None], target: date) -> bool:
    """
    Return True when a task anchored on `anchor` with the given recurrence has an
    instance on `target`.

    Rules:
    - none: only on the anchor date itself
    - daily: every date, including dates before the anchor
    - weekly: same weekday, in either direction
    - biweekly: same weekday and an even, non-negative number of whole weeks after the anchor
    - monthly: same day-of-month, in either direction; months lacking that day never match
    - quarterly: same day-of-month and a non-negative month distance divisible by 3

    Unknown recurrence values are never due.
    """
    rule = _normalize(recurrence)

    if rule is Recurrence.NONE:
        return target == anchor

    if rule is Recurrence.DAILY:
        return True

    if rule is Recurrence.WEEKLY:
        return target.weekday() == anchor.weekday()

    if rule is Recurrence.BIWEEKLY:
        if target.weekday() != anchor.weekday():
            return False
        weeks = (target - anchor).days // 7
        return weeks >= 0 and weeks % 2 == 0

    if rule is Recurrence.MONTHLY:
        return target.day == anchor.day

    if rule is Recurrence.QUARTERLY:
        if target.day != anchor.day:
            return False
        months = (target.year - anchor.year) * 12 + (target.month - anchor.month)
        return months >= 0 and months % 3 == 0

    return False
