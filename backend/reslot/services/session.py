from __future__ import annotations

from dataclasses import dataclass
import logging
from typing import TYPE_CHECKING

from reslot.core.config import Settings, get_settings
from reslot.core.exceptions import InvariantViolationError, RescheduleError, ResourceNotFoundError
from reslot.services.assignment_validator import AssignmentValidator, ClassroomConflict, ValidationResult
from reslot.services.conflict_groups import ConflictGroupRegistry
from reslot.services.ingestion import TimetableSnapshot
from reslot.services.occupancy import Section
from reslot.services.pending_moves import PendingMoveSet

if TYPE_CHECKING:
    from reslot.services.slot_search import SearchResult

logger = logging.getLogger(__name__)


@dataclass
class SectionSettings:
    times_per_week: int
    hours_per_session: int


@dataclass(frozen=True)
class Assignment:
    day: str
    start_hour: int
    end_hour: int
    section_key: str
    classroom: str
    section_code: str = ""
    section_number: str = ""

    @property
    def key(self) -> tuple[str, int, str]:
        return (self.day, self.start_hour, self.section_key)


class RescheduleSession:
    """Everything one rescheduling session owns.

    The snapshot is shared read-only; groups, pending moves, per-section
    settings, selected days and assignments belong to this session alone.
    Engines receive the session explicitly instead of reaching for globals.
    """

    def __init__(self, snapshot: TimetableSnapshot, settings: Settings | None = None) -> None:
        self.settings = settings or get_settings()
        self.snapshot = snapshot
        self.occupancy = snapshot.occupancy
        self.catalog = snapshot.catalog
        self.moves = PendingMoveSet()
        self.groups = ConflictGroupRegistry(self.catalog, self.moves)
        self.validator = AssignmentValidator(self.occupancy, self.moves)
        self.selected_days: list[str] = []
        self.assignments: list[Assignment] = []
        self.last_search: SearchResult | None = None
        self._section_settings: dict[str, SectionSettings] = {}

    def section(self, section_key: str) -> Section:
        section = self.catalog.get(section_key)
        if section is None:
            raise ResourceNotFoundError("Section", section_key)
        return section

    def working_set(self) -> list[Section]:
        return self.groups.working_set()

    def section_settings(self, section_key: str) -> SectionSettings:
        settings = self._section_settings.get(section_key)
        if settings is None:
            settings = SectionSettings(
                times_per_week=self.settings.default_times_per_week,
                hours_per_session=self.settings.default_hours_per_session,
            )
            self._section_settings[section_key] = settings
        return settings

    def update_section_settings(
        self,
        section_key: str,
        *,
        times_per_week: int | None = None,
        hours_per_session: int | None = None,
    ) -> SectionSettings:
        if times_per_week is not None and times_per_week < 1:
            raise RescheduleError("times_per_week must be at least 1", details={"section_key": section_key})
        if hours_per_session is not None and hours_per_session < 1:
            raise RescheduleError("hours_per_session must be at least 1", details={"section_key": section_key})
        settings = self.section_settings(section_key)
        if times_per_week is not None:
            settings.times_per_week = times_per_week
        if hours_per_session is not None:
            settings.hours_per_session = hours_per_session
        return settings

    def validate_day(self, day: str) -> str:
        if day not in self.settings.work_days:
            raise RescheduleError(f"Unknown day {day}", details={"work_days": list(self.settings.work_days)})
        return day

    def toggle_day(self, day: str) -> bool:
        self.validate_day(day)
        if day in self.selected_days:
            self.selected_days.remove(day)
            return False
        self.selected_days.append(day)
        return True

    def instructors_for_working_set(self) -> list[dict]:
        by_name: dict[str, list[Section]] = {}
        for section in self.working_set():
            if section.instructor:
                by_name.setdefault(section.instructor, []).append(section)
        result = []
        for name, sections in by_name.items():
            group_ids: list[str] = []
            for section in sections:
                group = self.groups.group_for(section.key)
                if group is not None and group.id not in group_ids:
                    group_ids.append(group.id)
            result.append(
                {
                    "name": name,
                    "total_classes": self.occupancy.instructor_class_counts.get(name, 0),
                    "section_count": len(sections),
                    "group_ids": group_ids,
                }
            )
        return result

    def find_assignment(self, day: str, start_hour: int, section_key: str) -> Assignment | None:
        for assignment in self.assignments:
            if assignment.key == (day, start_hour, section_key):
                return assignment
        return None

    def commit(self, assignment: Assignment) -> None:
        if self.find_assignment(*assignment.key) is not None:
            raise InvariantViolationError(
                "Assignment already committed",
                details={"day": assignment.day, "start_hour": assignment.start_hour, "section_key": assignment.section_key},
            )
        self.assignments.append(assignment)

    def assign(
        self,
        day: str,
        start_hour: int,
        end_hour: int,
        section_key: str,
        classroom: str,
    ) -> ValidationResult:
        self.validate_day(day)
        section = self.section(section_key)
        if end_hour <= start_hour:
            raise RescheduleError("end_hour must be after start_hour")
        if not self.groups.in_working_set(section_key):
            raise RescheduleError(
                f"{section_key} is not selected for rescheduling",
                details={"section_key": section_key},
            )
        if self.find_assignment(day, start_hour, section_key) is not None:
            return ValidationResult(available=True)
        self._reject_original_slot(section, day, start_hour, classroom)
        result = self._check_room(classroom, day, start_hour, end_hour, section_key)
        if not result.available:
            logger.info("Rejected %s in %s on %s at %02d:00: room busy", section_key, classroom, day, start_hour)
            return result
        self.commit(
            Assignment(
                day=day,
                start_hour=start_hour,
                end_hour=end_hour,
                section_key=section_key,
                classroom=classroom,
                section_code=section.code,
                section_number=section.section_number,
            )
        )
        return result

    def unassign(self, day: str, start_hour: int, section_key: str) -> bool:
        assignment = self.find_assignment(day, start_hour, section_key)
        if assignment is None:
            return False
        self.assignments.remove(assignment)
        return True

    def change_classroom(self, day: str, start_hour: int, section_key: str, classroom: str) -> ValidationResult:
        assignment = self.find_assignment(day, start_hour, section_key)
        if assignment is None:
            raise ResourceNotFoundError("Assignment", f"{day}-{start_hour:02d}:00-{section_key}")
        self._reject_original_slot(self.section(section_key), day, start_hour, classroom)
        result = self._check_room(classroom, day, start_hour, assignment.end_hour, section_key, exclude=assignment)
        if result.available:
            index = self.assignments.index(assignment)
            self.assignments[index] = Assignment(
                day=assignment.day,
                start_hour=assignment.start_hour,
                end_hour=assignment.end_hour,
                section_key=assignment.section_key,
                classroom=classroom,
                section_code=assignment.section_code,
                section_number=assignment.section_number,
            )
        return result

    def _check_room(
        self,
        classroom: str,
        day: str,
        start_hour: int,
        end_hour: int,
        section_key: str,
        exclude: Assignment | None = None,
    ) -> ValidationResult:
        """Timetable occupancy first, then rooms already held by this session's assignments."""
        result = self.validator.validate(classroom, day, start_hour, end_hour - start_hour, section_key)
        if not result.available:
            return result
        for other in self.assignments:
            if other is exclude or other.day != day or other.classroom.upper() != classroom.upper():
                continue
            if other.start_hour < end_hour and start_hour < other.end_hour:
                return ValidationResult(
                    available=False,
                    conflict=ClassroomConflict(
                        hour=max(start_hour, other.start_hour),
                        occupant_course=other.section_code,
                        occupant_section=other.section_number,
                    ),
                )
        return result

    def _reject_original_slot(self, section: Section, day: str, start_hour: int, classroom: str) -> None:
        for meeting in section.meetings_on(day):
            if meeting.start_hour == start_hour and meeting.room.upper() == classroom.upper():
                raise RescheduleError(
                    f"This would put {section.key} back in its original room and time",
                    details={"section_key": section.key, "day": day, "start_hour": start_hour, "classroom": classroom},
                )

    def reset(self) -> None:
        self.groups.clear()
        self._section_settings.clear()
        self.selected_days.clear()
        self.assignments.clear()
        self.last_search = None
