from __future__ import annotations

from dataclasses import dataclass

from reslot.services.occupancy import OccupancyModel
from reslot.services.pending_moves import PendingMoveSet


@dataclass(frozen=True)
class ClassroomConflict:
    hour: int
    occupant_course: str
    occupant_section: str


@dataclass(frozen=True)
class ValidationResult:
    available: bool
    conflict: ClassroomConflict | None = None


class AssignmentValidator:
    """Decides whether a room is free for a placement right now.

    An occupied hour does not count when that exact room, day and hour is
    being vacated by a pending move. Only the first conflict is reported.
    """

    def __init__(self, occupancy: OccupancyModel, moves: PendingMoveSet) -> None:
        self.occupancy = occupancy
        self.moves = moves

    def validate(
        self,
        room: str,
        day: str,
        start_hour: int,
        duration_hours: int,
        section_key: str | None = None,
    ) -> ValidationResult:
        for hour in range(start_hour, start_hour + duration_hours):
            record = self.occupancy.classroom_record(room, day, hour)
            if record is None or not record.busy:
                continue
            if self.moves.is_room_freed(room, day, hour):
                continue
            return ValidationResult(
                available=False,
                conflict=ClassroomConflict(
                    hour=hour,
                    occupant_course=record.course_code,
                    occupant_section=record.section_id,
                ),
            )
        return ValidationResult(available=True)
