from fastapi import APIRouter, Depends, status

from reslot.api.deps import SessionStore, get_store
from reslot.core.exceptions import ResourceNotFoundError
from reslot.schemas.reschedule import (
    GroupCreate,
    GroupOut,
    GroupUpdate,
    MoveSelectionOut,
    MoveToggle,
    SectionAdd,
    SectionAddResult,
    SectionMove,
    SectionSettingsOut,
    SectionSettingsUpdate,
)

router = APIRouter()


@router.get("/{session_id}/groups", response_model=list[GroupOut])
def list_groups(session_id: str, store: SessionStore = Depends(get_store)) -> list[GroupOut]:
    with store.checkout(session_id) as session:
        return [GroupOut.model_validate(group) for group in session.groups.groups()]


@router.post("/{session_id}/groups", response_model=GroupOut, status_code=status.HTTP_201_CREATED)
def create_group(session_id: str, payload: GroupCreate, store: SessionStore = Depends(get_store)) -> GroupOut:
    with store.checkout(session_id) as session:
        group_id = session.groups.create_group(payload.name)
        if payload.avoid_codes:
            session.groups.set_avoid_courses(group_id, payload.avoid_codes)
        return GroupOut.model_validate(session.groups.get_group(group_id))


@router.patch("/{session_id}/groups/{group_id}", response_model=GroupOut)
def update_group(
    session_id: str,
    group_id: str,
    payload: GroupUpdate,
    store: SessionStore = Depends(get_store),
) -> GroupOut:
    with store.checkout(session_id) as session:
        if payload.name is not None:
            session.groups.rename_group(group_id, payload.name)
        if payload.avoid_codes is not None:
            session.groups.set_avoid_courses(group_id, payload.avoid_codes)
        return GroupOut.model_validate(session.groups.get_group(group_id))


@router.delete("/{session_id}/groups/{group_id}")
def delete_group(session_id: str, group_id: str, store: SessionStore = Depends(get_store)) -> dict:
    with store.checkout(session_id) as session:
        session.groups.remove_group(group_id)
    return {"status": "deleted"}


@router.post("/{session_id}/sections", response_model=SectionAddResult)
def add_section(session_id: str, payload: SectionAdd, store: SessionStore = Depends(get_store)) -> SectionAddResult:
    with store.checkout(session_id) as session:
        group_id = session.groups.add_section(payload.section_key, payload.group_id)
        return SectionAddResult(added=group_id is not None, group_id=group_id)


@router.put("/{session_id}/sections/{section_key}/group", response_model=GroupOut)
def move_section(
    session_id: str,
    section_key: str,
    payload: SectionMove,
    store: SessionStore = Depends(get_store),
) -> GroupOut:
    with store.checkout(session_id) as session:
        if not session.groups.move_section(section_key, payload.group_id):
            raise ResourceNotFoundError("Working-set section", section_key)
        return GroupOut.model_validate(session.groups.get_group(payload.group_id))


@router.delete("/{session_id}/sections/{section_key}")
def remove_section(session_id: str, section_key: str, store: SessionStore = Depends(get_store)) -> dict:
    with store.checkout(session_id) as session:
        if not session.groups.remove_section(section_key):
            raise ResourceNotFoundError("Working-set section", section_key)
    return {"status": "removed"}


@router.get("/{session_id}/sections/{section_key}/settings", response_model=SectionSettingsOut)
def get_section_settings(session_id: str, section_key: str, store: SessionStore = Depends(get_store)) -> SectionSettingsOut:
    with store.checkout(session_id) as session:
        session.section(section_key)
        return SectionSettingsOut.model_validate(session.section_settings(section_key))


@router.patch("/{session_id}/sections/{section_key}/settings", response_model=SectionSettingsOut)
def update_section_settings(
    session_id: str,
    section_key: str,
    payload: SectionSettingsUpdate,
    store: SessionStore = Depends(get_store),
) -> SectionSettingsOut:
    with store.checkout(session_id) as session:
        session.section(section_key)
        settings = session.update_section_settings(
            section_key,
            times_per_week=payload.times_per_week,
            hours_per_session=payload.hours_per_session,
        )
        return SectionSettingsOut.model_validate(settings)


@router.get("/{session_id}/sections/{section_key}/moves", response_model=list[MoveSelectionOut])
def list_moves(session_id: str, section_key: str, store: SessionStore = Depends(get_store)) -> list[MoveSelectionOut]:
    with store.checkout(session_id) as session:
        return [MoveSelectionOut.model_validate(entry) for entry in session.moves.entries_for(section_key)]


@router.post("/{session_id}/sections/{section_key}/moves/toggle")
def toggle_move(
    session_id: str,
    section_key: str,
    payload: MoveToggle,
    store: SessionStore = Depends(get_store),
) -> dict:
    with store.checkout(session_id) as session:
        if not session.groups.in_working_set(section_key):
            raise ResourceNotFoundError("Working-set section", section_key)
        selected = session.moves.toggle(section_key, payload.day, payload.start_hour)
        return {"selected": selected}
