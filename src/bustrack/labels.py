"""Fixed labelling rules for routes and service calendars."""

import re
from typing import Optional

from .models import WEEKDAYS, ServiceCalendar

_LEADING_INT = re.compile(r"^\s*([+-]?\d+)")

_DAY_ABBREVIATIONS = {
    "monday": "Mon",
    "tuesday": "Tue",
    "wednesday": "Wed",
    "thursday": "Thu",
    "friday": "Fri",
    "saturday": "Sat",
    "sunday": "Sun",
}


def short_name_number(short_name: Optional[str]) -> Optional[int]:
    """
    Parse the leading integer of a route short name.

    "7" -> 7, "159A" -> 159, "FRW" -> None.
    """
    if not short_name:
        return None
    match = _LEADING_INT.match(short_name)
    if not match:
        return None
    return int(match.group(1))


def route_category(short_name: Optional[str]) -> str:
    """Classify a route by the numeric range of its short name."""
    number = short_name_number(short_name)
    if number is None:
        return "Local"
    if 1 <= number <= 10:
        return "Corridor"  # High frequency
    if 100 <= number < 200:
        return "Express"
    if 300 <= number < 400:
        return "Regional Express"
    return "Local"


def service_label(calendar: Optional[ServiceCalendar]) -> str:
    """
    Human-readable label for the days a service runs.

    Args:
        calendar: Calendar record, or None when calendar.txt has no entry.

    Returns:
        "Special", "Weekdays", "Every Day", "Saturday", "Sunday", or a list
        such as "Mon, Wed".
    """
    if calendar is None:
        return "Special"

    days = calendar.active_days
    if days == WEEKDAYS[:5]:
        return "Weekdays"
    if days == WEEKDAYS:
        return "Every Day"
    if days == ("saturday",):
        return "Saturday"
    if days == ("sunday",):
        return "Sunday"
    return ", ".join(_DAY_ABBREVIATIONS[day] for day in days)
