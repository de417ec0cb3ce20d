from __future__ import annotations

from collections.abc import Sequence
import re

from reslot.services.occupancy import OccupancyModel

AM_PM_PATTERN = re.compile(r"^(\d{1,2})(?::?(\d{2}))?(am|pm)$")
CLOCK_PATTERN = re.compile(r"^(\d{1,2}):(\d{2})$")
HOUR_ONLY_PATTERN = re.compile(r"^(\d{1,2})$")


def parse_hour(value: str) -> int | None:
    """Snap ``11am``, ``3:00 pm``, ``13:00`` or ``9`` to the containing hour."""
    text = re.sub(r"\s+", "", str(value or "").strip().lower())
    match = AM_PM_PATTERN.match(text)
    if match:
        hour = int(match.group(1))
        if hour > 12:
            return None
        if hour == 12:
            hour = 0
        if match.group(3) == "pm":
            hour += 12
        return hour
    match = CLOCK_PATTERN.match(text) or HOUR_ONLY_PATTERN.match(text)
    if not match:
        return None
    hour = int(match.group(1))
    if hour > 23:
        return None
    return hour


def busy_instructors_at(occupancy: OccupancyModel, hour: int, days: Sequence[str]) -> dict[str, list[dict]]:
    result: dict[str, list[dict]] = {}
    for day in days:
        entries = []
        for name in occupancy.instructor_names():
            record = occupancy.instructor_record(name, day, hour)
            if record is None or not record.busy:
                continue
            entries.append(
                {
                    "name": name,
                    "course_code": record.course_code,
                    "course_name": record.course_name,
                    "room": record.room,
                    "time_range": record.time_range,
                }
            )
        result[day] = entries
    return result


def free_instructors_in_range(
    occupancy: OccupancyModel,
    start_hour: int,
    end_hour: int,
    days: Sequence[str],
) -> dict[str, list[str]]:
    if start_hour >= end_hour:
        return {}
    hours = range(start_hour, end_hour)
    return {
        day: [
            name
            for name in occupancy.instructor_names()
            if not any(occupancy.is_instructor_busy(name, day, hour) for hour in hours)
        ]
        for day in days
    }


def common_free_hours(occupancy: OccupancyModel, days: Sequence[str], hours: Sequence[int]) -> dict[str, list[int]]:
    names = occupancy.instructor_names()
    if not names:
        return {}
    return {
        day: [hour for hour in hours if all(not occupancy.is_instructor_busy(name, day, hour) for name in names)]
        for day in days
    }


def occupancy_category(percentage: float) -> str:
    if percentage >= 75:
        return "high"
    if percentage >= 40:
        return "medium"
    return "low"


def classroom_utilisation(
    occupancy: OccupancyModel,
    days: Sequence[str],
    first_hour: int,
    last_hour: int,
    full_day_hours: int = 8,
) -> list[dict]:
    rows = []
    for room in occupancy.classroom_names():
        daily = [
            sum(1 for hour in range(first_hour, last_hour + 1) if occupancy.is_classroom_occupied(room, day, hour))
            for day in days
        ]
        max_daily = max(daily, default=0)
        percentage = round(max_daily * 100 / full_day_hours, 1)
        rows.append(
            {
                "room": room,
                "max_daily_hours": max_daily,
                "total_hours": sum(daily),
                "total_classes": occupancy.classroom_class_counts.get(room, 0),
                "percentage": percentage,
                "category": occupancy_category(percentage),
            }
        )
    return rows
