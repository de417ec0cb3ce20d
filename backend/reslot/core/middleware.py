from __future__ import annotations

from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next) -> Response:
        response = await call_next(request)
        response.headers.setdefault("X-Content-Type-Options", "nosniff")
        response.headers.setdefault("X-Frame-Options", "DENY")
        response.headers.setdefault("Referrer-Policy", "strict-origin-when-cross-origin")
        return response


class TimetableUploadLimitMiddleware(BaseHTTPMiddleware):
    """Refuses timetable uploads that declare more bytes than a session may ingest.

    Only POSTs to the upload paths are measured; every other request passes
    through untouched. A missing or unparsable Content-Length is left for the
    route to deal with.
    """

    def __init__(self, app, *, upload_paths: tuple[str, ...], max_bytes: int) -> None:
        super().__init__(app)
        self._upload_paths = frozenset(path.rstrip("/") for path in upload_paths)
        self._max_bytes = max(1, max_bytes)

    def _is_upload(self, request: Request) -> bool:
        return request.method == "POST" and request.url.path.rstrip("/") in self._upload_paths

    async def dispatch(self, request: Request, call_next) -> Response:
        if not self._is_upload(request):
            return await call_next(request)
        raw_length = request.headers.get("content-length", "")
        if raw_length.isdigit() and int(raw_length) > self._max_bytes:
            received = int(raw_length)
            return JSONResponse(
                status_code=413,
                content={
                    "message": (
                        f"Timetable upload too large ({received} bytes). "
                        f"Uploads are limited to {self._max_bytes} bytes."
                    ),
                    "details": {
                        "path": request.url.path,
                        "max_bytes": self._max_bytes,
                        "received_bytes": received,
                    },
                },
            )
        return await call_next(request)
