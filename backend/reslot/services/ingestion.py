from __future__ import annotations

import csv
from dataclasses import dataclass
import io
import logging
import re
from collections.abc import Iterable, Mapping

from reslot.core.config import Settings, get_settings
from reslot.core.exceptions import RescheduleError
from reslot.services.occupancy import (
    OccupancyModel,
    OccupancyRecord,
    Section,
    SectionCatalog,
    WeeklyMeeting,
    format_hour,
)

logger = logging.getLogger(__name__)

COURSE_NAME_COLUMN = "Course Name"
SECTION_COLUMN = "Section No"
DEPARTMENT_COLUMN = "Department Name"

COURSE_CODE_PATTERN = re.compile(r"^[A-Z]{3,5}\d{3,4}", re.IGNORECASE)
MEETING_CELL_PATTERN = re.compile(r"(\d{2}):\d{2}-(\d{2}):\d{2}\s*-\s*([^\\]+)\\(.+)")
EMPTY_CELLS = {"", "-"}


@dataclass
class TimetableSnapshot:
    occupancy: OccupancyModel
    catalog: SectionCatalog
    total_classes: int
    skipped_cells: int = 0


def extract_course_code(course_name: str) -> str:
    text = str(course_name or "").strip()
    if not text:
        return ""
    match = COURSE_CODE_PATTERN.match(text)
    if match:
        return match.group(0).upper()
    return text.split()[0]


def parse_meeting_cell(cell: object) -> tuple[int, int, str, str] | None:
    """Parse ``HH:MM-HH:MM - ROOM\\INSTRUCTOR`` into hours, room and instructor."""
    match = MEETING_CELL_PATTERN.search(str(cell))
    if not match:
        return None
    start_hour, end_hour = int(match.group(1)), int(match.group(2))
    room = match.group(3).strip()
    instructor = match.group(4).strip()
    if not room or not instructor:
        return None
    return start_hour, end_hour, room, instructor


def read_csv_rows(text: str) -> list[dict[str, str]]:
    reader = csv.DictReader(io.StringIO(text.lstrip("\ufeff")))
    if reader.fieldnames is None:
        return []
    rows: list[dict[str, str]] = []
    for raw in reader:
        rows.append({(key or "").strip(): (value or "").strip() for key, value in raw.items()})
    return rows


def build_snapshot(rows: Iterable[Mapping[str, object]], settings: Settings | None = None) -> TimetableSnapshot:
    settings = settings or get_settings()
    days = tuple(settings.work_days)
    recorded_hours = set(settings.occupancy_hours)

    occupancy = OccupancyModel(days=days)
    meetings_by_key: dict[str, list[WeeklyMeeting]] = {}
    section_info: dict[str, dict[str, str | None]] = {}
    total_classes = 0
    skipped_cells = 0

    for index, row in enumerate(rows):
        if not isinstance(row, Mapping):
            raise RescheduleError("Timetable rows must be objects", details={"row": index})
        course_name = str(row.get(COURSE_NAME_COLUMN) or "").strip()
        section_number = str(row.get(SECTION_COLUMN) or "").strip()
        if not course_name or not section_number:
            continue
        department = str(row.get(DEPARTMENT_COLUMN) or "").strip() or None
        course_code = extract_course_code(course_name)
        section_key = f"{course_code}-{section_number}"

        for day in days:
            cell = row.get(day)
            if cell is None or str(cell).strip() in EMPTY_CELLS:
                continue
            parsed = parse_meeting_cell(cell)
            if parsed is None or parsed[1] <= parsed[0]:
                skipped_cells += 1
                logger.debug("Skipping unparseable cell %r for %s on %s", cell, section_key, day)
                continue
            start_hour, end_hour, room, instructor = parsed

            occupancy.register_instructor(instructor)
            occupancy.register_classroom(room)
            if section_key not in section_info:
                section_info[section_key] = {
                    "code": course_code,
                    "name": course_name,
                    "section_number": section_number,
                    "department": department,
                    "instructor": instructor,
                }
            meeting = WeeklyMeeting(day=day, start_hour=start_hour, end_hour=end_hour, room=room, instructor=instructor)
            meetings_by_key.setdefault(section_key, []).append(meeting)

            for hour in meeting.hours:
                if hour not in recorded_hours:
                    continue
                record = OccupancyRecord(
                    busy=True,
                    course_code=course_code,
                    section_id=section_number,
                    room=room,
                    instructor=instructor,
                    course_name=course_name,
                    time_range=f"{format_hour(start_hour)}-{format_hour(end_hour)}",
                )
                occupancy.mark_instructor(instructor, day, hour, record)
                occupancy.mark_classroom(room, day, hour, record)

            occupancy.instructor_class_counts[instructor] += 1
            occupancy.classroom_class_counts[room] += 1
            total_classes += 1

    sections = [
        Section(
            key=key,
            code=str(info["code"]),
            name=str(info["name"]),
            section_number=str(info["section_number"]),
            instructor=str(info["instructor"]),
            department=info["department"],
            meetings=tuple(meetings_by_key.get(key, [])),
        )
        for key, info in section_info.items()
    ]
    catalog = SectionCatalog(sections)
    logger.info(
        "Built timetable snapshot: %d sections, %d instructors, %d classrooms, %d classes (%d cells skipped)",
        len(catalog),
        len(occupancy.instructors),
        len(occupancy.classrooms),
        total_classes,
        skipped_cells,
    )
    return TimetableSnapshot(
        occupancy=occupancy,
        catalog=catalog,
        total_classes=total_classes,
        skipped_cells=skipped_cells,
    )
