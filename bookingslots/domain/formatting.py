"""
Display formatting for durations, dates and slot times (Swedish wording).
"""

from datetime import date, datetime

MINUTES_PER_HOUR = 60
MINUTES_PER_DAY = 1440

WEEKDAY_NAMES = {
    1: "Måndag",
    2: "Tisdag",
    3: "Onsdag",
    4: "Torsdag",
    5: "Fredag",
    6: "Lördag",
    7: "Söndag",
}

MONTH_NAMES = {
    1: "januari",
    2: "februari",
    3: "mars",
    4: "april",
    5: "maj",
    6: "juni",
    7: "juli",
    8: "augusti",
    9: "september",
    10: "oktober",
    11: "november",
    12: "december",
}


def format_duration(minutes: int) -> str:
    """
    Format a duration in minutes to a human-readable string.

    Examples: 30 -> "30 min", 60 -> "1 tim", 90 -> "1 tim 30 min", 1440 -> "1 dygn"
    """
    if minutes >= MINUTES_PER_DAY and minutes % MINUTES_PER_DAY == 0:
        return f"{minutes // MINUTES_PER_DAY} dygn"

    if minutes >= MINUTES_PER_HOUR and minutes % MINUTES_PER_HOUR == 0:
        return f"{minutes // MINUTES_PER_HOUR} tim"

    if minutes >= MINUTES_PER_HOUR:
        hours, mins = divmod(minutes, MINUTES_PER_HOUR)
        return f"{hours} tim {mins} min"

    return f"{minutes} min"


def weekday_name(day: date) -> str:
    """Swedish name of the day's weekday, capitalized."""
    return WEEKDAY_NAMES[day.isoweekday()]


def format_date(day: date) -> str:
    """Format a date as e.g. ``Onsdag 27 november 2024``."""
    return f"{weekday_name(day)} {day.day} {MONTH_NAMES[day.month]} {day.year}"


def format_time_range(start: datetime, end: datetime) -> str:
    """
    Format the clock times of a range as ``HH:MM – HH:MM``.

    Ranges ending on a later calendar day get the end date appended so
    overnight and multi-day slots stay unambiguous.
    """
    label = f"{start:%H:%M} – {end:%H:%M}"
    if end.date() != start.date():
        label += f" ({end.day} {MONTH_NAMES[end.month][:3]})"
    return label
