import logging
import os
import time
from contextlib import asynccontextmanager

from dotenv import load_dotenv

package_dir = os.path.dirname(os.path.abspath(__file__))
if "PYTEST_CURRENT_TEST" not in os.environ:
    load_dotenv(dotenv_path=os.path.join(os.path.dirname(package_dir), ".env"))

from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware

from daybook.api import auth, debrief, exercise, goals, health, intentions, profile, sleep, subscription
from daybook.core.config import settings, validate_config
from daybook.core.database import dispose_engine
from daybook.core.errors import (
    AppError,
    app_error_handler,
    http_error_handler,
    unhandled_exception_handler,
)
from daybook.core.logging import configure_logging
from daybook.core.middleware.request_id import RequestIdMiddleware
from daybook.features.documents.store import build_store
from daybook.features.sessions.registry import WorkspaceRegistry

configure_logging(settings.ENV)
validate_config(strict=getattr(settings, "CONFIG_STRICT", False))


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger = logging.getLogger("daybook")
    logger.info("Starting daybook backend...")
    app.state.startup_time = time.time()
    if getattr(app.state, "store", None) is None:
        app.state.store = build_store(settings)
    if getattr(app.state, "workspaces", None) is None:
        app.state.workspaces = WorkspaceRegistry(
            app.state.store, provider=getattr(app.state, "auth_provider", None)
        )
    try:
        yield
    finally:
        # Flush every open debrief before the process goes away
        await app.state.workspaces.close_all()
        if (settings.DOCUMENT_STORE or "").lower() == "sql":
            dispose_engine()
        logging.getLogger("daybook").info("Stopping daybook backend...")


app = FastAPI(title="Daybook - Backend", lifespan=lifespan)

app.add_middleware(RequestIdMiddleware)

app.add_exception_handler(AppError, app_error_handler)
app.add_exception_handler(HTTPException, http_error_handler)
app.add_exception_handler(Exception, unhandled_exception_handler)

app.add_middleware(
    CORSMiddleware,
    allow_origins=[origin.strip() for origin in settings.CORS_ORIGINS.split(",") if origin.strip()],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(auth.router)
app.include_router(profile.router)
app.include_router(intentions.router)
app.include_router(exercise.router)
app.include_router(sleep.router)
app.include_router(goals.router)
app.include_router(debrief.router)
app.include_router(subscription.router)
app.include_router(health.root_router)


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("daybook.main:app", host="0.0.0.0", port=8000, reload=False, log_level="info")
