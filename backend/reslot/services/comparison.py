"""Before/after grids and summaries consumed by report generators."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Literal

from reslot.services.session import RescheduleSession

Grid = dict[str, dict[int, "Cell"]]


@dataclass(frozen=True)
class Cell:
    status: Literal["busy", "removing", "new"]
    course: str
    section: str


def _instructor_section_keys(session: RescheduleSession, name: str) -> list[str]:
    return [section.key for section in session.working_set() if section.instructor == name]


def current_instructor_grid(session: RescheduleSession, name: str) -> Grid:
    occupancy = session.occupancy
    keys = _instructor_section_keys(session, name)
    grid: Grid = {}
    for day in session.settings.work_days:
        row: dict[int, Cell] = {}
        for hour in session.settings.search_hours:
            record = occupancy.instructor_record(name, day, hour)
            if record is None or not record.busy:
                continue
            removing = any(session.moves.is_freed_by(key, day, hour) for key in keys)
            row[hour] = Cell(
                status="removing" if removing else "busy",
                course=record.course_code,
                section=record.section_id,
            )
        grid[day] = row
    return grid


def proposed_instructor_grid(session: RescheduleSession, name: str) -> Grid:
    keys = set(_instructor_section_keys(session, name))
    grid: Grid = {}
    for day, row in current_instructor_grid(session, name).items():
        proposed = {hour: cell for hour, cell in row.items() if cell.status == "busy"}
        for assignment in session.assignments:
            if assignment.day != day or assignment.section_key not in keys:
                continue
            for hour in range(assignment.start_hour, assignment.end_hour):
                proposed[hour] = Cell(status="new", course=assignment.section_code, section=assignment.section_number)
        grid[day] = dict(sorted(proposed.items()))
    return grid


def current_classroom_grid(session: RescheduleSession, room: str) -> Grid:
    occupancy = session.occupancy
    grid: Grid = {}
    for day in session.settings.work_days:
        row: dict[int, Cell] = {}
        for hour in session.settings.search_hours:
            record = occupancy.classroom_record(room, day, hour)
            if record is None or not record.busy:
                continue
            row[hour] = Cell(
                status="removing" if session.moves.is_room_freed(room, day, hour) else "busy",
                course=record.course_code,
                section=record.section_id,
            )
        grid[day] = row
    return grid


def proposed_classroom_grid(session: RescheduleSession, room: str) -> Grid:
    grid: Grid = {}
    for day, row in current_classroom_grid(session, room).items():
        proposed = {hour: cell for hour, cell in row.items() if cell.status == "busy"}
        for assignment in session.assignments:
            if assignment.day != day or assignment.classroom.upper() != room.upper():
                continue
            for hour in range(assignment.start_hour, assignment.end_hour):
                proposed[hour] = Cell(status="new", course=assignment.section_code, section=assignment.section_number)
        grid[day] = dict(sorted(proposed.items()))
    return grid


def reschedule_summary(session: RescheduleSession) -> dict:
    sections = []
    classrooms: list[str] = []
    instructors: list[str] = []
    for section in session.working_set():
        group = session.groups.group_for(section.key)
        settings = session.section_settings(section.key)
        entries = session.moves.entries_for(section.key)
        new = [item for item in session.assignments if item.section_key == section.key]
        sections.append(
            {
                "section_key": section.key,
                "code": section.code,
                "name": section.name,
                "instructor": section.instructor,
                "group_id": group.id if group else None,
                "group_name": group.name if group else None,
                "times_per_week": settings.times_per_week,
                "hours_per_session": settings.hours_per_session,
                "vacated": [entry for entry in entries if entry.selected],
                "kept": [entry for entry in entries if not entry.selected],
                "assignments": new,
            }
        )
        if section.instructor and section.instructor not in instructors:
            instructors.append(section.instructor)
        for entry in entries:
            if entry.selected and entry.room not in classrooms:
                classrooms.append(entry.room)
        for item in new:
            if item.classroom not in classrooms:
                classrooms.append(item.classroom)
    return {
        "sections": sections,
        "affected_classrooms": classrooms,
        "affected_instructors": instructors,
        "total_assignments": len(session.assignments),
    }
