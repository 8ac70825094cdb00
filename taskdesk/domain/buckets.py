"""Scheduling buckets: coarse labels derived from a due date's distance from today"""
from datetime import date


TODAY = "today"
TOMORROW = "tomorrow"
THIS_WEEK = "this_week"
NEXT_WEEK = "next_week"
BACKBURNER = "backburner"

BUCKETS: list[tuple[str, str]] = [
    (TODAY, "today"),
    (TOMORROW, "tomorrow"),
    (THIS_WEEK, "this week"),
    (NEXT_WEEK, "next week"),
    (BACKBURNER, "backburner"),
]


def get_bucket_label(status: str) -> str:
    for bucket_id, label in BUCKETS:
        if bucket_id == status:
            return label
    return status


def classify_bucket(due_date: date, today: date) -> str:
    """
    0 -> today, 1 -> tomorrow, 2..7 -> this_week, 8..14 -> next_week,
    anything else (past or further out) -> backburner.
    """
    diff = (due_date - today).days
    if diff == 0:
        return TODAY
    if diff == 1:
        return TOMORROW
    if 2 <= diff <= 7:
        return THIS_WEEK
    if 8 <= diff <= 14:
        return NEXT_WEEK
    return BACKBURNER
