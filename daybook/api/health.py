"""
Health endpoints for the daybook service.

Lightweight checks that never expose configuration values.
"""

import logging

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

from daybook.core.config import settings
from daybook.core.database import check_connection
from daybook.core.logging import get_request_id

logger = logging.getLogger("daybook")

root_router = APIRouter(tags=["health"])


@root_router.get("/healthz")
def healthz():
    """Liveness check (no deps)."""
    return {"status": "ok"}


@root_router.get("/readyz")
def readyz(request: Request):
    """Readiness: document store configured, database reachable when SQL-backed."""
    store_kind = (settings.DOCUMENT_STORE or "memory").lower()
    ready = getattr(request.app.state, "store", None) is not None
    db_ok = None
    if store_kind == "sql":
        db_ok = check_connection()
        ready = ready and db_ok

    payload = {"ok": ready, "store": store_kind, "db_connected": db_ok}
    if not ready:
        logger.warning("readyz.not_ready", extra={"request_id": get_request_id(), "store": store_kind})
        return JSONResponse(status_code=503, content=payload)
    return payload
