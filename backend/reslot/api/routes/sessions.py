import logging

from fastapi import APIRouter, Depends, Request, status

from reslot.api.deps import SessionStore, get_store
from reslot.core.config import get_settings
from reslot.core.exceptions import RescheduleError
from reslot.schemas.timetable import InstructorOut, SectionOut, SessionCreated, SnapshotCreate
from reslot.services.ingestion import TimetableSnapshot, build_snapshot, read_csv_rows

router = APIRouter()

logger = logging.getLogger(__name__)


def _open_session(snapshot: TimetableSnapshot, store: SessionStore) -> SessionCreated:
    session_id = store.create(snapshot, get_settings())
    logger.info("Opened rescheduling session %s", session_id)
    return SessionCreated(
        session_id=session_id,
        sections=len(snapshot.catalog),
        instructors=len(snapshot.occupancy.instructors),
        classrooms=len(snapshot.occupancy.classrooms),
        total_classes=snapshot.total_classes,
        skipped_cells=snapshot.skipped_cells,
    )


@router.post("", response_model=SessionCreated, status_code=status.HTTP_201_CREATED)
def create_session(payload: SnapshotCreate, store: SessionStore = Depends(get_store)) -> SessionCreated:
    snapshot = build_snapshot(payload.rows, get_settings())
    return _open_session(snapshot, store)


@router.post("/csv", response_model=SessionCreated, status_code=status.HTTP_201_CREATED)
async def create_session_from_csv(request: Request, store: SessionStore = Depends(get_store)) -> SessionCreated:
    raw = await request.body()
    try:
        text = raw.decode("utf-8-sig")
    except UnicodeDecodeError as exc:
        raise RescheduleError("CSV upload must be UTF-8 encoded") from exc
    rows = read_csv_rows(text)
    if not rows:
        raise RescheduleError("CSV upload contains no timetable rows")
    snapshot = build_snapshot(rows, get_settings())
    return _open_session(snapshot, store)


@router.get("/{session_id}/sections", response_model=list[SectionOut])
def list_sections(session_id: str, store: SessionStore = Depends(get_store)) -> list[SectionOut]:
    with store.checkout(session_id) as session:
        return [SectionOut.model_validate(section) for section in session.catalog]


@router.get("/{session_id}/instructors", response_model=list[InstructorOut])
def list_working_set_instructors(session_id: str, store: SessionStore = Depends(get_store)) -> list[InstructorOut]:
    with store.checkout(session_id) as session:
        return [InstructorOut(**item) for item in session.instructors_for_working_set()]


@router.post("/{session_id}/reset")
def reset_session(session_id: str, store: SessionStore = Depends(get_store)) -> dict:
    with store.checkout(session_id) as session:
        session.reset()
    return {"status": "reset"}


@router.delete("/{session_id}")
def delete_session(session_id: str, store: SessionStore = Depends(get_store)) -> dict:
    store.delete(session_id)
    logger.info("Closed rescheduling session %s", session_id)
    return {"status": "deleted"}
