from __future__ import annotations

from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
import logging

from reslot.services.occupancy import Section
from reslot.services.session import Assignment, RescheduleSession, SectionSettings
from reslot.services.slot_search import CandidateSlot

logger = logging.getLogger(__name__)

NO_SLOTS_WARNING = "No available slots found"


@dataclass(frozen=True)
class RankedSlot:
    slot: CandidateSlot
    score: int
    day_index: int

    @property
    def day(self) -> str:
        return self.slot.day

    @property
    def start_hour(self) -> int:
        return self.slot.start_hour


@dataclass
class UnassignedSection:
    section: Section
    assigned: int
    required: int


@dataclass
class AutoAssignResult:
    assignments: list[Assignment] = field(default_factory=list)
    unassigned: list[UnassignedSection] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)


@dataclass(frozen=True)
class AssignmentIssue:
    type: str
    section_key: str
    message: str
    day: str | None = None


class AutoAssignEngine:
    """Greedy distribution of candidate windows to sections.

    Sections are served in the order given; each takes the best-ranked windows
    it is eligible for, at most one per day, until its weekly frequency is met.
    Nothing is revisited once placed, so results depend only on section order,
    window ranking and classroom order.
    """

    def __init__(self, session: RescheduleSession) -> None:
        self.session = session
        self.settings = session.settings

    def rank_slots(self) -> list[RankedSlot]:
        result = self.session.last_search
        if result is None:
            return []
        days = result.days
        ranked: list[RankedSlot] = []
        for day_index, day in enumerate(days):
            for slot in result.slots_by_day.get(day, []):
                score = slot.start_hour
                if day == self.settings.thursday_name and slot.start_hour >= self.settings.thursday_cutoff_hour:
                    score += self.settings.thursday_afternoon_penalty
                ranked.append(RankedSlot(slot=slot, score=score, day_index=day_index))
        ranked.sort(key=lambda item: (item.score, item.day_index, item.start_hour))
        return ranked

    def auto_distribute(
        self,
        sections: Sequence[Section] | None = None,
        settings_lookup: Callable[[str], SectionSettings] | None = None,
    ) -> AutoAssignResult:
        session = self.session
        sections = list(session.working_set() if sections is None else sections)
        settings_lookup = settings_lookup or session.section_settings
        result = AutoAssignResult()

        session.assignments.clear()
        ranked = self.rank_slots()
        if not ranked:
            result.warnings.append(NO_SLOTS_WARNING)
            logger.info("Auto-assign skipped: no candidate windows")
            return result

        claimed: dict[tuple[str, int], set[str]] = {}
        for section in sections:
            section_settings = settings_lookup(section.key)
            used_days: set[str] = set()
            remaining = section_settings.times_per_week

            for item in ranked:
                if remaining <= 0:
                    break
                slot = item.slot
                if slot.day in used_days:
                    continue
                if section.key not in slot.eligible_sections:
                    continue
                if slot.duration < section_settings.hours_per_session:
                    continue

                rooms_taken = claimed.setdefault((slot.day, slot.start_hour), set())
                room = self._pick_room(slot, rooms_taken, section.key, section_settings.hours_per_session)
                if room is None:
                    continue

                rooms_taken.add(room)
                used_days.add(slot.day)
                remaining -= 1
                assignment = Assignment(
                    day=slot.day,
                    start_hour=slot.start_hour,
                    end_hour=slot.end_hour,
                    section_key=section.key,
                    classroom=room,
                    section_code=section.code,
                    section_number=section.section_number,
                )
                session.commit(assignment)
                result.assignments.append(assignment)

            if remaining > 0:
                result.unassigned.append(
                    UnassignedSection(
                        section=section,
                        assigned=section_settings.times_per_week - remaining,
                        required=section_settings.times_per_week,
                    )
                )

        if result.unassigned:
            summary = ", ".join(f"{item.section.code} ({item.assigned}/{item.required})" for item in result.unassigned)
            result.warnings.append(f"Could not fully assign: {summary}")
            logger.warning("Auto-assign left sections under-served: %s", summary)
        logger.info(
            "Auto-assign placed %d meetings for %d sections",
            len(result.assignments),
            len(sections),
        )
        return result

    def _pick_room(self, slot: CandidateSlot, taken: set[str], section_key: str, hours: int) -> str | None:
        for room in slot.classrooms:
            if room in taken:
                continue
            # Re-check against live occupancy for the section length.
            if self.session.validator.validate(room, slot.day, slot.start_hour, hours, section_key).available:
                return room
        return None

    def audit_assignments(self) -> list[AssignmentIssue]:
        session = self.session
        issues: list[AssignmentIssue] = []
        days_by_section: dict[str, set[str]] = {}
        for assignment in session.assignments:
            seen = days_by_section.setdefault(assignment.section_key, set())
            if assignment.day in seen:
                issues.append(
                    AssignmentIssue(
                        type="duplicate_day",
                        section_key=assignment.section_key,
                        day=assignment.day,
                        message=f"{assignment.section_key} is scheduled twice on {assignment.day}",
                    )
                )
            seen.add(assignment.day)

        ordered = sorted(session.assignments, key=lambda item: (item.day, item.classroom.upper(), item.start_hour))
        for index, first in enumerate(ordered):
            for second in ordered[index + 1:]:
                if second.day != first.day or second.classroom.upper() != first.classroom.upper():
                    break
                if second.start_hour < first.end_hour:
                    issues.append(
                        AssignmentIssue(
                            type="room_overlap",
                            section_key=second.section_key,
                            day=second.day,
                            message=(
                                f"{first.section_key} and {second.section_key} overlap in "
                                f"{first.classroom} on {first.day}"
                            ),
                        )
                    )

        for section in session.working_set():
            required = session.section_settings(section.key).times_per_week
            count = sum(1 for item in session.assignments if item.section_key == section.key)
            if count > required:
                issues.append(
                    AssignmentIssue(
                        type="over_assigned",
                        section_key=section.key,
                        message=f"{section.key} has {count} slots but only needs {required}",
                    )
                )
            elif count < required:
                issues.append(
                    AssignmentIssue(
                        type="under_assigned",
                        section_key=section.key,
                        message=f"{section.key} has {count} slots but needs {required}",
                    )
                )
        return issues
