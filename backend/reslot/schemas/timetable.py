from __future__ import annotations

from pydantic import BaseModel, Field, field_validator


class SnapshotCreate(BaseModel):
    rows: list[dict[str, str | None]] = Field(min_length=1, max_length=20000)

    @field_validator("rows")
    @classmethod
    def strip_headers(cls, value: list[dict[str, str | None]]) -> list[dict[str, str | None]]:
        return [{key.strip(): item for key, item in row.items()} for row in value]


class SessionCreated(BaseModel):
    session_id: str
    sections: int
    instructors: int
    classrooms: int
    total_classes: int
    skipped_cells: int


class MeetingOut(BaseModel):
    model_config = {"from_attributes": True}

    day: str
    start_hour: int
    end_hour: int
    room: str
    instructor: str
    time_range: str


class SectionOut(BaseModel):
    model_config = {"from_attributes": True}

    key: str
    code: str
    name: str
    section_number: str
    instructor: str
    department: str | None = None
    meetings: list[MeetingOut] = Field(default_factory=list)


class InstructorOut(BaseModel):
    name: str
    total_classes: int
    section_count: int
    group_ids: list[str]
