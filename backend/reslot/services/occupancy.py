from __future__ import annotations

from collections.abc import Iterable, Iterator
from dataclasses import dataclass, field


def format_hour(hour: int) -> str:
    return f"{hour:02d}:00"


@dataclass(frozen=True)
class WeeklyMeeting:
    day: str
    start_hour: int
    end_hour: int
    room: str
    instructor: str

    @property
    def hours(self) -> range:
        return range(self.start_hour, self.end_hour)

    @property
    def duration(self) -> int:
        return max(0, self.end_hour - self.start_hour)

    @property
    def time_range(self) -> str:
        return f"{format_hour(self.start_hour)}-{format_hour(self.end_hour)}"


@dataclass(frozen=True)
class Section:
    key: str
    code: str
    name: str
    section_number: str
    instructor: str
    department: str | None = None
    meetings: tuple[WeeklyMeeting, ...] = ()

    def meetings_on(self, day: str) -> list[WeeklyMeeting]:
        return [meeting for meeting in self.meetings if meeting.day == day]

    def hours_on(self, day: str) -> set[int]:
        hours: set[int] = set()
        for meeting in self.meetings_on(day):
            hours.update(meeting.hours)
        return hours


@dataclass(frozen=True)
class OccupancyRecord:
    busy: bool
    course_code: str
    section_id: str
    room: str
    instructor: str
    course_name: str = ""
    time_range: str = ""


@dataclass
class OccupancyModel:
    """Who and what is busy when, keyed by subject, weekday and hour.

    Only busy hours are stored, so a missing record means the subject is free.
    The model is built once per upload and treated as read-only afterwards.
    """

    days: tuple[str, ...]
    instructors: dict[str, dict[str, dict[int, OccupancyRecord]]] = field(default_factory=dict)
    classrooms: dict[str, dict[str, dict[int, OccupancyRecord]]] = field(default_factory=dict)
    instructor_class_counts: dict[str, int] = field(default_factory=dict)
    classroom_class_counts: dict[str, int] = field(default_factory=dict)

    def mark_instructor(self, name: str, day: str, hour: int, record: OccupancyRecord) -> None:
        self.instructors.setdefault(name, {}).setdefault(day, {})[hour] = record

    def mark_classroom(self, room: str, day: str, hour: int, record: OccupancyRecord) -> None:
        self.classrooms.setdefault(room, {}).setdefault(day, {})[hour] = record

    def register_instructor(self, name: str) -> None:
        self.instructors.setdefault(name, {})
        self.instructor_class_counts.setdefault(name, 0)

    def register_classroom(self, room: str) -> None:
        self.classrooms.setdefault(room, {})
        self.classroom_class_counts.setdefault(room, 0)

    def instructor_record(self, name: str, day: str, hour: int) -> OccupancyRecord | None:
        return self.instructors.get(name, {}).get(day, {}).get(hour)

    def classroom_record(self, room: str, day: str, hour: int) -> OccupancyRecord | None:
        return self.classrooms.get(room, {}).get(day, {}).get(hour)

    def is_instructor_busy(self, name: str, day: str, hour: int) -> bool:
        record = self.instructor_record(name, day, hour)
        return record is not None and record.busy

    def is_classroom_occupied(self, room: str, day: str, hour: int) -> bool:
        record = self.classroom_record(room, day, hour)
        return record is not None and record.busy

    def has_instructor(self, name: str) -> bool:
        return name in self.instructors

    def classroom_names(self) -> list[str]:
        return sorted(self.classrooms)

    def instructor_names(self) -> list[str]:
        return sorted(self.instructors)


class SectionCatalog:
    """Weekly meeting pattern of every course section, keyed by section key."""

    def __init__(self, sections: Iterable[Section] = ()) -> None:
        self._sections: dict[str, Section] = {}
        for section in sections:
            self._sections[section.key] = section

    def __contains__(self, key: object) -> bool:
        return key in self._sections

    def __iter__(self) -> Iterator[Section]:
        return iter(self._sections.values())

    def __len__(self) -> int:
        return len(self._sections)

    def get(self, key: str) -> Section | None:
        return self._sections.get(key)

    def resolve_code(self, code: str) -> Section | None:
        """Map a typed course code to a section.

        Precedence: an exact key match wins; otherwise the first key in catalog
        order that contains the code, or is contained in it, case-insensitively.
        """
        needle = (code or "").strip().upper()
        if not needle:
            return None
        exact = self._sections.get(needle) or self._sections.get(code)
        if exact is not None:
            return exact
        for key, section in self._sections.items():
            candidate = key.upper()
            if needle in candidate or candidate in needle:
                return section
        return None

    def resolve_codes(self, codes: Iterable[str]) -> tuple[dict[str, Section], list[str]]:
        resolved: dict[str, Section] = {}
        unresolved: list[str] = []
        for code in codes:
            if code in resolved or code in unresolved:
                continue
            section = self.resolve_code(code)
            if section is None:
                unresolved.append(code)
            else:
                resolved[code] = section
        return resolved, unresolved
