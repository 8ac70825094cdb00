"""
Recurrence rule tokens and next-due-date calculation.

Uses date only (no timezone). Tokens are stored as a plain string on the template:

- daily
- weekly-<weekday>      weekday = monday..sunday
- monthly-<n>           n = 1..31, day of month
- monthly-last          last day of month

Months without day n get no occurrence; the rule moves on to the next
month that has that day (no clipping to the last day).
"""
import calendar
from dataclasses import dataclass
from datetime import date, timedelta


WEEKDAY_MAP = {
    "monday": 0, "tuesday": 1, "wednesday": 2, "thursday": 3,
    "friday": 4, "saturday": 5, "sunday": 6,
}
VALID_KINDS = frozenset({"daily", "weekly", "monthly"})
MONTHLY_LAST = "last"


@dataclass(frozen=True)
class RecurrenceRule:
    kind: str  # daily / weekly / monthly
    weekday: int | None = None  # weekly only (monday=0..sunday=6)
    month_day: int | None = None  # monthly only, 1..31; None with last_day=True
    last_day: bool = False  # monthly-last


def last_day_of_month(year: int, month: int) -> int:
    return calendar.monthrange(year, month)[1]


def add_months(year: int, month: int, n: int) -> tuple[int, int]:
    month = month - 1 + n
    return year + month // 12, month % 12 + 1


def parse_rule(token: str | None) -> RecurrenceRule | None:
    """
    Decode a rule token. Returns None for anything unrecognized or malformed,
    callers treat that as "no recurrence".
    """
    if not token or not token.strip():
        return None
    kind, _, selector = token.strip().lower().partition("-")
    if kind not in VALID_KINDS:
        return None

    if kind == "daily":
        return None if selector else RecurrenceRule(kind="daily")

    if kind == "weekly":
        if selector not in WEEKDAY_MAP:
            return None
        return RecurrenceRule(kind="weekly", weekday=WEEKDAY_MAP[selector])

    if selector == MONTHLY_LAST:
        return RecurrenceRule(kind="monthly", last_day=True)
    if not selector.isdigit():
        return None
    day = int(selector)
    if day < 1 or day > 31:
        return None
    return RecurrenceRule(kind="monthly", month_day=day)


def encode_rule(kind: str, selector: str | int | None = None) -> str:
    if selector is None or selector == "":
        return kind
    return f"{kind}-{selector}"


def build_rule(kind: str, weekday: str | None = None, month_day: str | int | None = None) -> str:
    """Token for the recurring-task form: weekly defaults to monday, monthly to the 1st."""
    if kind == "weekly":
        return encode_rule("weekly", (weekday or "monday").lower())
    if kind == "monthly":
        return encode_rule("monthly", str(month_day or 1).lower())
    return encode_rule("daily")


def ordinal_suffix(day: int) -> str:
    if 11 <= day % 100 <= 13:
        return "th"
    return {1: "st", 2: "nd", 3: "rd"}.get(day % 10, "th")


def format_rule(token: str | None) -> str:
    """Human-readable rule, e.g. 'Every friday', '3rd of each month'. Unknown tokens echo back."""
    rule = parse_rule(token)
    if rule is None:
        return token or ""
    if rule.kind == "daily":
        return "Every day"
    if rule.kind == "weekly":
        return f"Every {token.strip().lower().partition('-')[2]}"
    if rule.last_day:
        return "Last day of each month"
    return f"{rule.month_day}{ordinal_suffix(rule.month_day)} of each month"


def _next_weekday(ref: date, weekday: int) -> date:
    return ref + timedelta(days=(weekday - ref.weekday()) % 7)


def _next_month_day(ref: date, day: int) -> date:
    if ref.day <= day and day <= last_day_of_month(ref.year, ref.month):
        return ref.replace(day=day)
    k = 1
    while True:
        year, month = add_months(ref.year, ref.month, k)
        if day <= last_day_of_month(year, month):
            return date(year, month, day)
        k += 1


def _next_last_day(ref: date) -> date:
    last = last_day_of_month(ref.year, ref.month)
    if ref.day <= last:
        return ref.replace(day=last)
    year, month = add_months(ref.year, ref.month, 1)
    return date(year, month, last_day_of_month(year, month))


def next_due_date(rule: RecurrenceRule, ref: date) -> date:
    """First date >= ref that matches the rule. A matching ref is returned unchanged."""
    if rule.kind == "daily":
        return ref
    if rule.kind == "weekly":
        return _next_weekday(ref, rule.weekday)
    if rule.kind == "monthly":
        if rule.last_day:
            return _next_last_day(ref)
        return _next_month_day(ref, rule.month_day)
    raise ValueError(f"unhandled kind: {rule.kind}")
