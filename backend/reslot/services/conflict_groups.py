from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field
import logging

from reslot.core.exceptions import InvariantViolationError, ResourceNotFoundError
from reslot.services.occupancy import Section, SectionCatalog
from reslot.services.pending_moves import PendingMoveSet

logger = logging.getLogger(__name__)

DEFAULT_GROUP_NAMES = ("Year 1", "Year 2", "Year 3", "Year 4", "Group 5", "Group 6")


def normalize_codes(codes: Iterable[str]) -> list[str]:
    cleaned: list[str] = []
    for code in codes:
        value = str(code or "").strip().upper()
        if value and value not in cleaned:
            cleaned.append(value)
    return cleaned


@dataclass
class ConflictGroup:
    id: str
    name: str
    member_keys: list[str] = field(default_factory=list)
    avoid_codes: list[str] = field(default_factory=list)


class ConflictGroupRegistry:
    """Partitions the working set into groups that share "avoid" courses.

    A section key is in at most one group; every move removes it from the old
    group before adding it to the new one.
    """

    def __init__(self, catalog: SectionCatalog, moves: PendingMoveSet) -> None:
        self.catalog = catalog
        self.moves = moves
        self._groups: dict[str, ConflictGroup] = {}
        self._working_set: list[str] = []
        self._next_group_number = 1

    def create_group(self, name: str | None = None) -> str:
        default_name = DEFAULT_GROUP_NAMES[(self._next_group_number - 1) % len(DEFAULT_GROUP_NAMES)]
        group_id = f"group_{self._next_group_number}"
        self._next_group_number += 1
        self._groups[group_id] = ConflictGroup(id=group_id, name=(name or "").strip() or default_name)
        return group_id

    def get_group(self, group_id: str) -> ConflictGroup:
        group = self._groups.get(group_id)
        if group is None:
            raise ResourceNotFoundError("Conflict group", group_id)
        return group

    def groups(self) -> list[ConflictGroup]:
        return list(self._groups.values())

    def default_group_id(self) -> str:
        if not self._groups:
            return self.create_group()
        return next(iter(self._groups))

    def rename_group(self, group_id: str, name: str) -> None:
        group = self.get_group(group_id)
        if name and name.strip():
            group.name = name.strip()

    def set_avoid_courses(self, group_id: str, codes: Iterable[str]) -> list[str]:
        group = self.get_group(group_id)
        group.avoid_codes = normalize_codes(codes)
        return group.avoid_codes

    def group_for(self, section_key: str) -> ConflictGroup | None:
        for group in self._groups.values():
            if section_key in group.member_keys:
                return group
        return None

    def in_working_set(self, section_key: str) -> bool:
        return section_key in self._working_set

    def working_set(self) -> list[Section]:
        return [self.catalog.get(key) for key in self._working_set]

    def add_section(self, section_key: str, group_id: str | None = None) -> str | None:
        section = self.catalog.get(section_key)
        if section is None or section_key in self._working_set:
            logger.debug("Not adding section %s: unknown or already selected", section_key)
            return None
        if group_id is not None:
            target = self.get_group(group_id)
        else:
            target = self._groups[self.default_group_id()]

        target.member_keys.append(section_key)
        self._working_set.append(section_key)
        self.moves.seed(section)
        return target.id

    def move_section(self, section_key: str, new_group_id: str) -> bool:
        target = self.get_group(new_group_id)
        if section_key not in self._working_set:
            return False
        self._detach(section_key)
        target.member_keys.append(section_key)
        return True

    def remove_section(self, section_key: str) -> bool:
        if section_key not in self._working_set:
            return False
        self._detach(section_key)
        self.moves.discard(section_key)
        self._working_set.remove(section_key)
        return True

    def remove_group(self, group_id: str) -> None:
        group = self.get_group(group_id)
        for section_key in list(group.member_keys):
            self.remove_section(section_key)
        del self._groups[group_id]

    def clear(self) -> None:
        self._groups.clear()
        self._working_set.clear()
        self._next_group_number = 1
        self.moves.clear()

    def check_invariants(self) -> None:
        seen: dict[str, str] = {}
        for group in self._groups.values():
            for key in group.member_keys:
                if key in seen:
                    raise InvariantViolationError(
                        f"Section {key} belongs to groups {seen[key]} and {group.id}",
                        details={"section_key": key, "groups": [seen[key], group.id]},
                    )
                seen[key] = group.id
        if set(seen) != set(self._working_set):
            raise InvariantViolationError(
                "Group membership does not match the working set",
                details={
                    "ungrouped": sorted(set(self._working_set) - set(seen)),
                    "orphaned": sorted(set(seen) - set(self._working_set)),
                },
            )
        stray = self.moves.section_keys() - set(self._working_set)
        if stray:
            raise InvariantViolationError(
                "Pending moves reference sections outside the working set",
                details={"section_keys": sorted(stray)},
            )

    def _detach(self, section_key: str) -> None:
        for group in self._groups.values():
            if section_key in group.member_keys:
                group.member_keys.remove(section_key)
                return
