from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, Field, field_validator, model_validator


def _clean_list(value: list[str]) -> list[str]:
    return [item.strip() for item in value if item and item.strip()]


class GroupCreate(BaseModel):
    name: str | None = Field(default=None, max_length=100)
    avoid_codes: list[str] = Field(default_factory=list, max_length=200)


class GroupUpdate(BaseModel):
    name: str | None = Field(default=None, min_length=1, max_length=100)
    avoid_codes: list[str] | None = Field(default=None, max_length=200)


class GroupOut(BaseModel):
    model_config = {"from_attributes": True}

    id: str
    name: str
    member_keys: list[str]
    avoid_codes: list[str]


class SectionAdd(BaseModel):
    section_key: str = Field(min_length=1, max_length=100)
    group_id: str | None = None


class SectionAddResult(BaseModel):
    added: bool
    group_id: str | None = None


class SectionMove(BaseModel):
    group_id: str = Field(min_length=1)


class SectionSettingsUpdate(BaseModel):
    times_per_week: int | None = Field(default=None, ge=1, le=14)
    hours_per_session: int | None = Field(default=None, ge=1, le=12)


class SectionSettingsOut(BaseModel):
    model_config = {"from_attributes": True}

    times_per_week: int
    hours_per_session: int


class MoveToggle(BaseModel):
    day: str
    start_hour: int = Field(ge=0, le=23)


class MoveSelectionOut(BaseModel):
    model_config = {"from_attributes": True}

    section_key: str
    day: str
    start_hour: int
    end_hour: int
    room: str
    selected: bool


class FreedSlotOut(BaseModel):
    model_config = {"from_attributes": True}

    day: str
    hour: int
    room: str
    section_key: str


class SearchRequest(BaseModel):
    days: list[str] = Field(min_length=1, max_length=7)
    duration_hours: int = Field(default=2, ge=1, le=12)
    avoid_codes: list[str] = Field(default_factory=list, max_length=200)
    preferred_rooms: list[str] = Field(default_factory=list, max_length=200)
    no_thursday_afternoon: bool = True

    @field_validator("days", "avoid_codes", "preferred_rooms")
    @classmethod
    def clean(cls, value: list[str]) -> list[str]:
        return _clean_list(value)

    @model_validator(mode="after")
    def validate_unique_days(self) -> "SearchRequest":
        if len(set(self.days)) != len(self.days):
            raise ValueError("Duplicate day entries")
        return self


class IneligibleSectionOut(BaseModel):
    model_config = {"from_attributes": True}

    key: str
    code: str
    section_number: str
    reason: str


class CandidateSlotOut(BaseModel):
    model_config = {"from_attributes": True}

    day: str
    start_hour: int
    end_hour: int
    start_time: str
    end_time: str
    classrooms: list[str]
    eligible_sections: list[str]
    ineligible_sections: list[IneligibleSectionOut]
    available_for_groups: list[str]
    conflicting_groups: list[str]


class SearchResponse(BaseModel):
    model_config = {"from_attributes": True}

    days: list[str]
    duration_hours: int
    slots_by_day: dict[str, list[CandidateSlotOut]]
    unresolved_codes: list[str]
    avoid_sections: list[str]
    total_slots: int


class AssignmentOut(BaseModel):
    model_config = {"from_attributes": True}

    day: str
    start_hour: int
    end_hour: int
    section_key: str
    classroom: str
    section_code: str
    section_number: str


class UnassignedOut(BaseModel):
    section_key: str
    code: str
    assigned: int
    required: int


class AutoAssignResponse(BaseModel):
    assignments: list[AssignmentOut]
    unassigned: list[UnassignedOut]
    warnings: list[str]


class ValidateRequest(BaseModel):
    room: str = Field(min_length=1, max_length=100)
    day: str
    start_hour: int = Field(ge=0, le=23)
    duration_hours: int = Field(ge=1, le=12)
    section_key: str | None = None


class ConflictOut(BaseModel):
    model_config = {"from_attributes": True}

    hour: int
    occupant_course: str
    occupant_section: str


class ValidationOut(BaseModel):
    model_config = {"from_attributes": True}

    available: bool
    conflict: ConflictOut | None = None


class AssignmentCreate(BaseModel):
    day: str
    start_hour: int = Field(ge=0, le=23)
    end_hour: int = Field(ge=1, le=24)
    section_key: str = Field(min_length=1)
    classroom: str = Field(min_length=1, max_length=100)

    @model_validator(mode="after")
    def validate_order(self) -> "AssignmentCreate":
        if self.end_hour <= self.start_hour:
            raise ValueError("end_hour must be after start_hour")
        return self


class AssignmentRef(BaseModel):
    day: str
    start_hour: int = Field(ge=0, le=23)
    section_key: str = Field(min_length=1)


class ClassroomChange(AssignmentRef):
    classroom: str = Field(min_length=1, max_length=100)


class AssignmentIssueOut(BaseModel):
    model_config = {"from_attributes": True}

    type: Literal["duplicate_day", "room_overlap", "over_assigned", "under_assigned"]
    section_key: str
    message: str
    day: str | None = None


class CellOut(BaseModel):
    model_config = {"from_attributes": True}

    status: Literal["busy", "removing", "new"]
    course: str
    section: str


class ComparisonOut(BaseModel):
    subject: str
    current: dict[str, dict[int, CellOut]]
    proposed: dict[str, dict[int, CellOut]]


class SectionSummaryOut(BaseModel):
    section_key: str
    code: str
    name: str
    instructor: str
    group_id: str | None
    group_name: str | None
    times_per_week: int
    hours_per_session: int
    vacated: list[MoveSelectionOut]
    kept: list[MoveSelectionOut]
    assignments: list[AssignmentOut]


class SummaryOut(BaseModel):
    sections: list[SectionSummaryOut]
    affected_classrooms: list[str]
    affected_instructors: list[str]
    total_assignments: int
