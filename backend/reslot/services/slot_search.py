from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
import logging

from reslot.core.exceptions import RescheduleError
from reslot.services.conflict_groups import normalize_codes
from reslot.services.occupancy import Section, format_hour
from reslot.services.session import RescheduleSession

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SearchConstraints:
    no_thursday_afternoon: bool = True


@dataclass(frozen=True)
class IneligibleSection:
    key: str
    code: str
    section_number: str
    reason: str


@dataclass
class CandidateSlot:
    day: str
    start_hour: int
    end_hour: int
    classrooms: list[str]
    eligible_sections: list[str]
    ineligible_sections: list[IneligibleSection]
    available_for_groups: list[str] = field(default_factory=list)
    conflicting_groups: list[str] = field(default_factory=list)

    @property
    def duration(self) -> int:
        return self.end_hour - self.start_hour

    @property
    def start_time(self) -> str:
        return format_hour(self.start_hour)

    @property
    def end_time(self) -> str:
        return format_hour(self.end_hour)


@dataclass
class SearchResult:
    days: list[str]
    duration_hours: int
    slots_by_day: dict[str, list[CandidateSlot]]
    unresolved_codes: list[str]
    avoid_sections: list[str] = field(default_factory=list)
    group_avoid_hours: dict[str, dict[str, list[int]]] = field(default_factory=dict)

    @property
    def total_slots(self) -> int:
        return sum(len(slots) for slots in self.slots_by_day.values())


def _matches_preferred(room: str, preferred: Sequence[str]) -> bool:
    candidate = room.upper()
    return any(wanted in candidate or candidate in wanted for wanted in preferred)


class SlotSearchEngine:
    """Enumerates day/hour windows the working set can move into.

    A window survives when it clears the global avoid hours, at least one
    section in the working set can use it, and at least one classroom is free
    for every hour of it. Sections that cannot use a surviving window are
    listed with the reason, so partial availability is never discarded.
    """

    def __init__(self, session: RescheduleSession) -> None:
        self.session = session
        self.settings = session.settings

    def search(
        self,
        days: Sequence[str],
        duration_hours: int,
        global_avoid_codes: Iterable[str] = (),
        preferred_rooms: Iterable[str] = (),
        constraints: SearchConstraints | None = None,
    ) -> SearchResult:
        constraints = constraints or SearchConstraints()
        if duration_hours < 1:
            raise RescheduleError("duration_hours must be at least 1", details={"duration_hours": duration_hours})
        days = list(days)
        for day in days:
            self.session.validate_day(day)

        catalog = self.session.catalog
        groups = self.session.groups.groups()
        global_codes = normalize_codes(global_avoid_codes)
        preferred = [room.strip().upper() for room in preferred_rooms if room and room.strip()]

        global_resolved, unresolved = catalog.resolve_codes(global_codes)
        avoid_sections = [section.key for section in global_resolved.values()]
        group_avoid_sections: dict[str, list[Section]] = {}
        for group in groups:
            resolved, missing = catalog.resolve_codes(group.avoid_codes)
            group_avoid_sections[group.id] = list(resolved.values())
            for section in resolved.values():
                if section.key not in avoid_sections:
                    avoid_sections.append(section.key)
            for code in missing:
                if code not in unresolved:
                    unresolved.append(code)

        slots_by_day: dict[str, list[CandidateSlot]] = {}
        group_avoid_hours: dict[str, dict[str, list[int]]] = {group.id: {} for group in groups}
        for day in days:
            per_group: dict[str, set[int]] = {}
            for group in groups:
                hours: set[int] = set()
                for section in group_avoid_sections[group.id]:
                    hours.update(section.hours_on(day))
                per_group[group.id] = hours
                group_avoid_hours[group.id][day] = sorted(hours)

            global_hours: set[int] = set()
            for section in global_resolved.values():
                global_hours.update(section.hours_on(day))

            slots_by_day[day] = self._search_day(
                day,
                duration_hours,
                global_hours,
                per_group,
                preferred,
                constraints,
            )

        result = SearchResult(
            days=days,
            duration_hours=duration_hours,
            slots_by_day=slots_by_day,
            unresolved_codes=unresolved,
            avoid_sections=avoid_sections,
            group_avoid_hours=group_avoid_hours,
        )
        self.session.selected_days = list(days)
        self.session.last_search = result
        if unresolved:
            logger.warning("Avoid codes without a matching section: %s", ", ".join(unresolved))
        logger.info(
            "Slot search over %s for %dh windows found %d candidates",
            ", ".join(days),
            duration_hours,
            result.total_slots,
        )
        return result

    def window_end(self, day: str, constraints: SearchConstraints) -> int:
        if constraints.no_thursday_afternoon and day == self.settings.thursday_name:
            return min(self.settings.search_end_hour, self.settings.thursday_cutoff_hour)
        return self.settings.search_end_hour

    def _search_day(
        self,
        day: str,
        duration: int,
        global_hours: set[int],
        group_hours: dict[str, set[int]],
        preferred: list[str],
        constraints: SearchConstraints,
    ) -> list[CandidateSlot]:
        session = self.session
        occupancy = session.occupancy
        sections = session.working_set()
        groups = session.groups.groups()
        classrooms = occupancy.classroom_names()
        if preferred:
            classrooms = [room for room in classrooms if _matches_preferred(room, preferred)]

        candidates: list[CandidateSlot] = []
        last_start = self.window_end(day, constraints) - duration
        for start in range(self.settings.search_start_hour, last_start + 1):
            window = range(start, start + duration)
            if any(hour in global_hours for hour in window):
                continue

            eligible: list[str] = []
            ineligible: list[IneligibleSection] = []
            for section in sections:
                reason = self._ineligibility_reason(section, day, window, group_hours)
                if reason is None:
                    eligible.append(section.key)
                else:
                    ineligible.append(
                        IneligibleSection(
                            key=section.key,
                            code=section.code,
                            section_number=section.section_number,
                            reason=reason,
                        )
                    )
            if not eligible:
                continue

            free_rooms = [
                room
                for room in classrooms
                if session.validator.validate(room, day, start, duration).available
            ]
            if not free_rooms:
                continue

            blocked_keys = {item.key for item in ineligible}
            available_for_groups: list[str] = []
            conflicting_groups: list[str] = []
            for group in groups:
                if any(key in eligible for key in group.member_keys):
                    available_for_groups.append(group.id)
                elif any(key in blocked_keys for key in group.member_keys):
                    conflicting_groups.append(group.id)

            candidates.append(
                CandidateSlot(
                    day=day,
                    start_hour=start,
                    end_hour=start + duration,
                    classrooms=sorted(free_rooms),
                    eligible_sections=eligible,
                    ineligible_sections=ineligible,
                    available_for_groups=available_for_groups,
                    conflicting_groups=conflicting_groups,
                )
            )
        return candidates

    def _ineligibility_reason(
        self,
        section: Section,
        day: str,
        window: range,
        group_hours: dict[str, set[int]],
    ) -> str | None:
        occupancy = self.session.occupancy
        moves = self.session.moves
        instructor = section.instructor
        if instructor and occupancy.has_instructor(instructor):
            for hour in window:
                if moves.is_freed_by(section.key, day, hour):
                    continue
                if occupancy.is_instructor_busy(instructor, day, hour):
                    return f"{instructor} busy"

        group = self.session.groups.group_for(section.key)
        if group is not None:
            avoid = group_hours.get(group.id, set())
            if any(hour in avoid for hour in window):
                return f"{group.name or 'Group'} conflict"
        return None
