"""Decides whether a recurring template needs a new instance on this run"""
from datetime import date


HORIZON_DAYS = 14


def should_create_instance(
    last_instance_date: date | None,
    next_due: date,
    today: date,
    horizon_days: int = HORIZON_DAYS,
) -> bool:
    """
    1. Refuse anything further out than the horizon, a later run will pick it up.
    2. No previous instance -> create.
    3. Otherwise only when next_due is strictly after the last instance's due date.
    """
    if (next_due - today).days > horizon_days:
        return False
    if last_instance_date is None:
        return True
    return next_due > last_instance_date
