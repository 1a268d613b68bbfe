"""
Relative date resolution for note due dates.

Resolves German and English expressions ("morgen", "Freitag", "next week",
"in 3 Tagen") against the current date into ISO calendar dates. Anything
unrecognized resolves to None instead of raising.
"""

import re
from datetime import date, timedelta

# Python weekday index (Monday=0 .. Sunday=6)
WEEKDAYS: dict[str, int] = {
    "montag": 0,
    "dienstag": 1,
    "mittwoch": 2,
    "donnerstag": 3,
    "freitag": 4,
    "samstag": 5,
    "sonntag": 6,
    "monday": 0,
    "tuesday": 1,
    "wednesday": 2,
    "thursday": 3,
    "friday": 4,
    "saturday": 5,
    "sunday": 6,
}

# Exact-match relative tokens -> day offset
RELATIVE_DAYS: dict[str, int] = {
    "heute": 0,
    "today": 0,
    "morgen": 1,
    "tomorrow": 1,
    "übermorgen": 2,
    "day after tomorrow": 2,
}

ISO_DATE = re.compile(r"^\d{4}-\d{2}-\d{2}$")
IN_DAYS = re.compile(r"in (\d+) (?:tag|day)")
IN_WEEKS = re.compile(r"in (\d+) (?:woche|week)")


def next_weekday(today: date, weekday: int) -> date:
    """Next occurrence of ``weekday`` strictly after ``today``."""
    days_until = weekday - today.weekday()
    if days_until <= 0:
        days_until += 7
    return today + timedelta(days=days_until)


def parse_relative_date(expression: str | None, today: date | None = None) -> str | None:
    """
    Resolve a due-date expression to an ISO date string.

    Args:
        expression: Raw expression, e.g. "morgen", "Freitag", "in 2 Wochen", "2025-02-01"
        today: Reference date (defaults to the current local date)

    Returns:
        "YYYY-MM-DD" or None when the expression is empty or not understood
    """
    if not expression:
        return None

    today = today or date.today()
    expr = expression.lower().strip()

    if expr in RELATIVE_DAYS:
        return (today + timedelta(days=RELATIVE_DAYS[expr])).isoformat()

    for name, weekday in WEEKDAYS.items():
        if name in expr:
            return next_weekday(today, weekday).isoformat()

    if "nächste woche" in expr or expr == "next week":
        return next_weekday(today, 0).isoformat()

    match = IN_DAYS.search(expr)
    if match:
        return (today + timedelta(days=int(match.group(1)))).isoformat()

    match = IN_WEEKS.search(expr)
    if match:
        return (today + timedelta(weeks=int(match.group(1)))).isoformat()

    if ISO_DATE.match(expr):
        try:
            return date.fromisoformat(expr).isoformat()
        except ValueError:
            return None

    return None


def extract_due_date(text: str, today: date | None = None) -> str | None:
    """
    Find the first known date keyword inside free text.

    Used by the keyword fallback, where the whole note is scanned rather
    than a single extracted expression.
    """
    lower = text.lower()

    for token in ("übermorgen", "day after tomorrow"):
        if token in lower:
            return parse_relative_date(token, today)
    for token in ("morgen", "tomorrow", "heute", "today"):
        if token in lower:
            return parse_relative_date(token, today)
    for name in WEEKDAYS:
        if name in lower:
            return parse_relative_date(name, today)
    if "nächste woche" in lower or "next week" in lower:
        return parse_relative_date("next week", today)

    match = IN_DAYS.search(lower) or IN_WEEKS.search(lower)
    if match:
        return parse_relative_date(match.group(0), today)

    return None
