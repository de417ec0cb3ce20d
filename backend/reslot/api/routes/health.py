from __future__ import annotations

from datetime import datetime, timezone

from fastapi import APIRouter, Depends

from reslot.api.deps import SessionStore, get_store

router = APIRouter()


@router.get("/health")
def health() -> dict:
    return {"status": "ok"}


@router.get("/health/live")
def health_live(store: SessionStore = Depends(get_store)) -> dict:
    return {
        "status": "ok",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "open_sessions": len(store),
    }
