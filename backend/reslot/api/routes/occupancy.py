from __future__ import annotations

from fastapi import APIRouter, Depends, Query

from reslot.api.deps import SessionStore, get_store
from reslot.core.exceptions import RescheduleError
from reslot.services.occupancy_queries import (
    busy_instructors_at,
    classroom_utilisation,
    common_free_hours,
    free_instructors_in_range,
    parse_hour,
)
from reslot.services.session import RescheduleSession

router = APIRouter()


def _resolve_days(session: RescheduleSession, days: list[str] | None) -> list[str]:
    if not days:
        return list(session.settings.work_days)
    return [session.validate_day(day) for day in days]


def _require_hour(value: str, field: str) -> int:
    hour = parse_hour(value)
    if hour is None:
        raise RescheduleError(f"Could not read a time from {value!r}", details={"field": field, "value": value})
    return hour


@router.get("/{session_id}/occupancy/busy")
def busy_instructors(
    session_id: str,
    time: str = Query(..., min_length=1),
    days: list[str] | None = Query(default=None),
    store: SessionStore = Depends(get_store),
) -> dict:
    hour = _require_hour(time, "time")
    with store.checkout(session_id) as session:
        return {"hour": hour, "days": busy_instructors_at(session.occupancy, hour, _resolve_days(session, days))}


@router.get("/{session_id}/occupancy/free")
def free_instructors(
    session_id: str,
    start: str = Query(..., min_length=1),
    end: str = Query(..., min_length=1),
    days: list[str] | None = Query(default=None),
    store: SessionStore = Depends(get_store),
) -> dict:
    start_hour = _require_hour(start, "start")
    end_hour = _require_hour(end, "end")
    with store.checkout(session_id) as session:
        free = free_instructors_in_range(session.occupancy, start_hour, end_hour, _resolve_days(session, days))
    return {"start_hour": start_hour, "end_hour": end_hour, "days": free}


@router.get("/{session_id}/occupancy/common-free")
def common_free(
    session_id: str,
    days: list[str] | None = Query(default=None),
    store: SessionStore = Depends(get_store),
) -> dict:
    with store.checkout(session_id) as session:
        hours = session.settings.search_hours
        return {"days": common_free_hours(session.occupancy, _resolve_days(session, days), hours)}


@router.get("/{session_id}/occupancy/classrooms")
def classroom_occupancy(
    session_id: str,
    days: list[str] | None = Query(default=None),
    store: SessionStore = Depends(get_store),
) -> list[dict]:
    with store.checkout(session_id) as session:
        settings = session.settings
        return classroom_utilisation(
            session.occupancy,
            _resolve_days(session, days),
            settings.search_start_hour,
            settings.search_end_hour - 1,
            full_day_hours=settings.full_occupancy_hours,
        )
