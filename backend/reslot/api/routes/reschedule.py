from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, Query, Response, status

from reslot.api.deps import SessionStore, get_store
from reslot.schemas.reschedule import (
    AssignmentCreate,
    AssignmentIssueOut,
    AssignmentOut,
    AutoAssignResponse,
    CandidateSlotOut,
    CellOut,
    ClassroomChange,
    ComparisonOut,
    ConflictOut,
    FreedSlotOut,
    IneligibleSectionOut,
    MoveSelectionOut,
    SearchRequest,
    SearchResponse,
    SectionSummaryOut,
    SummaryOut,
    UnassignedOut,
    ValidateRequest,
    ValidationOut,
)
from reslot.services.assignment_validator import ValidationResult
from reslot.services.auto_assign import AutoAssignEngine
from reslot.services.comparison import (
    Grid,
    current_classroom_grid,
    current_instructor_grid,
    proposed_classroom_grid,
    proposed_instructor_grid,
    reschedule_summary,
)
from reslot.services.slot_search import CandidateSlot, SearchConstraints, SearchResult, SlotSearchEngine

router = APIRouter()

logger = logging.getLogger(__name__)


def _validation_out(result: ValidationResult) -> ValidationOut:
    conflict = None
    if result.conflict is not None:
        conflict = ConflictOut.model_validate(result.conflict)
    return ValidationOut(available=result.available, conflict=conflict)


def _slot_out(slot: CandidateSlot) -> CandidateSlotOut:
    return CandidateSlotOut(
        day=slot.day,
        start_hour=slot.start_hour,
        end_hour=slot.end_hour,
        start_time=slot.start_time,
        end_time=slot.end_time,
        classrooms=list(slot.classrooms),
        eligible_sections=list(slot.eligible_sections),
        ineligible_sections=[IneligibleSectionOut.model_validate(item) for item in slot.ineligible_sections],
        available_for_groups=list(slot.available_for_groups),
        conflicting_groups=list(slot.conflicting_groups),
    )


def _search_out(result: SearchResult) -> SearchResponse:
    return SearchResponse(
        days=list(result.days),
        duration_hours=result.duration_hours,
        slots_by_day={day: [_slot_out(slot) for slot in slots] for day, slots in result.slots_by_day.items()},
        unresolved_codes=list(result.unresolved_codes),
        avoid_sections=list(result.avoid_sections),
        total_slots=result.total_slots,
    )


def _grid_out(grid: Grid) -> dict[str, dict[int, CellOut]]:
    return {day: {hour: CellOut.model_validate(cell) for hour, cell in row.items()} for day, row in grid.items()}


@router.post("/{session_id}/days/{day}/toggle")
def toggle_day(session_id: str, day: str, store: SessionStore = Depends(get_store)) -> dict:
    with store.checkout(session_id) as session:
        selected = session.toggle_day(day)
        return {"day": day, "selected": selected, "selected_days": list(session.selected_days)}


@router.post("/{session_id}/search", response_model=SearchResponse)
def search_slots(session_id: str, payload: SearchRequest, store: SessionStore = Depends(get_store)) -> SearchResponse:
    with store.checkout(session_id) as session:
        result = SlotSearchEngine(session).search(
            payload.days,
            payload.duration_hours,
            global_avoid_codes=payload.avoid_codes,
            preferred_rooms=payload.preferred_rooms,
            constraints=SearchConstraints(no_thursday_afternoon=payload.no_thursday_afternoon),
        )
        return _search_out(result)


@router.post("/{session_id}/auto-assign", response_model=AutoAssignResponse)
def auto_assign(session_id: str, store: SessionStore = Depends(get_store)) -> AutoAssignResponse:
    with store.checkout(session_id) as session:
        result = AutoAssignEngine(session).auto_distribute()
        return AutoAssignResponse(
            assignments=[AssignmentOut.model_validate(item) for item in result.assignments],
            unassigned=[
                UnassignedOut(
                    section_key=item.section.key,
                    code=item.section.code,
                    assigned=item.assigned,
                    required=item.required,
                )
                for item in result.unassigned
            ],
            warnings=list(result.warnings),
        )


@router.post("/{session_id}/validate", response_model=ValidationOut)
def validate_assignment(session_id: str, payload: ValidateRequest, store: SessionStore = Depends(get_store)) -> ValidationOut:
    with store.checkout(session_id) as session:
        session.validate_day(payload.day)
        result = session.validator.validate(
            payload.room,
            payload.day,
            payload.start_hour,
            payload.duration_hours,
            payload.section_key,
        )
        return _validation_out(result)


@router.get("/{session_id}/assignments", response_model=list[AssignmentOut])
def list_assignments(session_id: str, store: SessionStore = Depends(get_store)) -> list[AssignmentOut]:
    with store.checkout(session_id) as session:
        return [AssignmentOut.model_validate(item) for item in session.assignments]


@router.post("/{session_id}/assignments", response_model=ValidationOut, status_code=status.HTTP_201_CREATED)
def create_assignment(
    session_id: str,
    payload: AssignmentCreate,
    response: Response,
    store: SessionStore = Depends(get_store),
) -> ValidationOut:
    with store.checkout(session_id) as session:
        result = session.assign(
            payload.day,
            payload.start_hour,
            payload.end_hour,
            payload.section_key,
            payload.classroom,
        )
        if not result.available:
            response.status_code = status.HTTP_409_CONFLICT
        return _validation_out(result)


@router.delete("/{session_id}/assignments")
def delete_assignment(
    session_id: str,
    day: str = Query(...),
    start_hour: int = Query(..., ge=0, le=23),
    section_key: str = Query(..., min_length=1),
    store: SessionStore = Depends(get_store),
) -> dict:
    with store.checkout(session_id) as session:
        removed = session.unassign(day, start_hour, section_key)
    return {"removed": removed}


@router.put("/{session_id}/assignments/classroom", response_model=ValidationOut)
def change_classroom(session_id: str, payload: ClassroomChange, store: SessionStore = Depends(get_store)) -> ValidationOut:
    with store.checkout(session_id) as session:
        result = session.change_classroom(payload.day, payload.start_hour, payload.section_key, payload.classroom)
        return _validation_out(result)


@router.get("/{session_id}/assignments/audit", response_model=list[AssignmentIssueOut])
def audit_assignments(session_id: str, store: SessionStore = Depends(get_store)) -> list[AssignmentIssueOut]:
    with store.checkout(session_id) as session:
        issues = AutoAssignEngine(session).audit_assignments()
        if issues:
            logger.info("Assignment audit for session %s found %d issues", session_id, len(issues))
        return [AssignmentIssueOut.model_validate(item) for item in issues]


@router.get("/{session_id}/freed-slots", response_model=list[FreedSlotOut])
def list_freed_slots(session_id: str, store: SessionStore = Depends(get_store)) -> list[FreedSlotOut]:
    with store.checkout(session_id) as session:
        return [FreedSlotOut.model_validate(slot) for slot in session.moves.freed_slots()]


@router.get("/{session_id}/summary", response_model=SummaryOut)
def get_summary(session_id: str, store: SessionStore = Depends(get_store)) -> SummaryOut:
    with store.checkout(session_id) as session:
        summary = reschedule_summary(session)
    sections = []
    for item in summary["sections"]:
        sections.append(
            SectionSummaryOut(
                **{
                    **item,
                    "vacated": [MoveSelectionOut.model_validate(entry) for entry in item["vacated"]],
                    "kept": [MoveSelectionOut.model_validate(entry) for entry in item["kept"]],
                    "assignments": [AssignmentOut.model_validate(entry) for entry in item["assignments"]],
                }
            )
        )
    return SummaryOut(
        sections=sections,
        affected_classrooms=summary["affected_classrooms"],
        affected_instructors=summary["affected_instructors"],
        total_assignments=summary["total_assignments"],
    )


@router.get("/{session_id}/comparison/instructors/{name}", response_model=ComparisonOut)
def compare_instructor(session_id: str, name: str, store: SessionStore = Depends(get_store)) -> ComparisonOut:
    with store.checkout(session_id) as session:
        return ComparisonOut(
            subject=name,
            current=_grid_out(current_instructor_grid(session, name)),
            proposed=_grid_out(proposed_instructor_grid(session, name)),
        )


@router.get("/{session_id}/comparison/classrooms/{room}", response_model=ComparisonOut)
def compare_classroom(session_id: str, room: str, store: SessionStore = Depends(get_store)) -> ComparisonOut:
    with store.checkout(session_id) as session:
        return ComparisonOut(
            subject=room,
            current=_grid_out(current_classroom_grid(session, room)),
            proposed=_grid_out(proposed_classroom_grid(session, room)),
        )
