from __future__ import annotations

from dataclasses import dataclass

from reslot.services.occupancy import Section


@dataclass
class MoveSelection:
    section_key: str
    day: str
    start_hour: int
    end_hour: int
    room: str
    selected: bool = True


@dataclass(frozen=True)
class FreedSlot:
    day: str
    hour: int
    room: str
    section_key: str


class PendingMoveSet:
    """Tracks which original meetings are being vacated.

    The freed-slot set is derived from the selections and rebuilt in full after
    every change; it is the only place that decides whether an occupancy hit is
    about to go away.
    """

    def __init__(self) -> None:
        self._entries: dict[tuple[str, str, int], MoveSelection] = {}
        self._freed: tuple[FreedSlot, ...] = ()
        self._freed_rooms: set[tuple[str, int, str]] = set()
        self._freed_by_section: set[tuple[str, str, int]] = set()

    def seed(self, section: Section) -> None:
        for meeting in section.meetings:
            key = (section.key, meeting.day, meeting.start_hour)
            self._entries[key] = MoveSelection(
                section_key=section.key,
                day=meeting.day,
                start_hour=meeting.start_hour,
                end_hour=meeting.end_hour,
                room=meeting.room,
            )
        self._rebuild()

    def discard(self, section_key: str) -> None:
        stale = [key for key in self._entries if key[0] == section_key]
        for key in stale:
            del self._entries[key]
        self._rebuild()

    def toggle(self, section_key: str, day: str, start_hour: int) -> bool:
        entry = self._entries.get((section_key, day, start_hour))
        if entry is None:
            return False
        entry.selected = not entry.selected
        self._rebuild()
        return entry.selected

    def set_selected(self, section_key: str, day: str, start_hour: int, selected: bool) -> bool:
        entry = self._entries.get((section_key, day, start_hour))
        if entry is None:
            return False
        if entry.selected != selected:
            entry.selected = selected
            self._rebuild()
        return True

    def is_selected(self, section_key: str, day: str, start_hour: int) -> bool:
        entry = self._entries.get((section_key, day, start_hour))
        return True if entry is None else entry.selected

    def entries_for(self, section_key: str) -> list[MoveSelection]:
        return [entry for key, entry in self._entries.items() if key[0] == section_key]

    def selected_for(self, section_key: str) -> list[MoveSelection]:
        return [entry for entry in self.entries_for(section_key) if entry.selected]

    def section_keys(self) -> set[str]:
        return {key[0] for key in self._entries}

    def freed_slots(self) -> tuple[FreedSlot, ...]:
        return self._freed

    def is_room_freed(self, room: str, day: str, hour: int) -> bool:
        return (day, hour, room.upper()) in self._freed_rooms

    def is_freed_by(self, section_key: str, day: str, hour: int) -> bool:
        return (section_key, day, hour) in self._freed_by_section

    def clear(self) -> None:
        self._entries.clear()
        self._rebuild()

    def _rebuild(self) -> None:
        freed: list[FreedSlot] = []
        for entry in self._entries.values():
            if not entry.selected:
                continue
            for hour in range(entry.start_hour, entry.end_hour):
                freed.append(FreedSlot(day=entry.day, hour=hour, room=entry.room, section_key=entry.section_key))
        self._freed = tuple(freed)
        self._freed_rooms = {(slot.day, slot.hour, slot.room.upper()) for slot in freed}
        self._freed_by_section = {(slot.section_key, slot.day, slot.hour) for slot in freed}
