from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from reslot.api.routes import groups, health, occupancy, reschedule, sessions
from reslot.core.config import get_settings
from reslot.core.exceptions import AppError
from reslot.core.middleware import SecurityHeadersMiddleware, TimetableUploadLimitMiddleware

settings = get_settings()


async def app_error_handler(request: Request, exc: AppError):
    return JSONResponse(
        status_code=exc.status_code,
        content={"message": exc.message, "details": exc.details},
    )


sessions_prefix = f"{settings.api_prefix}/sessions"

app = FastAPI(title=settings.project_name)
app.add_exception_handler(AppError, app_error_handler)

app.add_middleware(
    TimetableUploadLimitMiddleware,
    upload_paths=(sessions_prefix, f"{sessions_prefix}/csv"),
    max_bytes=settings.max_upload_bytes,
)
app.add_middleware(SecurityHeadersMiddleware)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(health.router, prefix=settings.api_prefix, tags=["health"])
app.include_router(sessions.router, prefix=sessions_prefix, tags=["sessions"])
app.include_router(groups.router, prefix=sessions_prefix, tags=["groups"])
app.include_router(reschedule.router, prefix=sessions_prefix, tags=["reschedule"])
app.include_router(occupancy.router, prefix=sessions_prefix, tags=["occupancy"])
