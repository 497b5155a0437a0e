from __future__ import annotations

import logging
import os
from contextlib import asynccontextmanager
from pathlib import Path

from alembic import command
from alembic.config import Config
from dotenv import load_dotenv
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from . import schemas
from .errors import WayfarerError
from .routers import (
    admin,
    itineraries,
    notifications,
    posts,
    profiles,
    social,
    system,
)
from .settings import RUN_MIGRATIONS_ON_STARTUP

load_dotenv()

logging.basicConfig(level=os.getenv("LOG_LEVEL", "INFO"))
logger = logging.getLogger(__name__)

_STARTUP_COMPLETE = False


def run_migrations() -> None:
    logger.info("run_migrations: Starting...")
    try:
        alembic_cfg = _alembic_config()

        from alembic.runtime.migration import MigrationContext
        from alembic.script import ScriptDirectory

        from .db import engine

        with engine.connect() as connection:
            context = MigrationContext.configure(connection)
            current_rev = context.get_current_revision()
            head = ScriptDirectory.from_config(alembic_cfg).get_current_head()

        if current_rev == head:
            logger.info(f"Database is up to date (revision: {current_rev}), skipping migrations.")
            return

        logger.info(f"Current revision: {current_rev}, target revision: {head}. Running migrations...")
        command.upgrade(alembic_cfg, "head")
        logger.info("run_migrations: Completed successfully.")
    except Exception as e:
        logger.error(f"run_migrations: Error occurred: {e}", exc_info=True)
        raise


def _alembic_config() -> Config:
    base_dir = Path(__file__).resolve().parent.parent
    cfg = Config(str(base_dir / "alembic.ini"))
    cfg.set_main_option("script_location", str(base_dir / "alembic"))
    return cfg


def run_startup_tasks() -> None:
    global _STARTUP_COMPLETE
    if _STARTUP_COMPLETE:
        logger.info("run_startup_tasks: Already completed, skipping.")
        return
    if RUN_MIGRATIONS_ON_STARTUP:
        run_migrations()
    else:
        logger.info("run_startup_tasks: Migrations disabled, skipping.")
    _STARTUP_COMPLETE = True
    logger.info("Startup tasks completed.")


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Starting application...")
    # Server won't accept requests until the schema is current
    run_startup_tasks()
    logger.info("Wayfarer API server ready")
    yield
    logger.info("Shutting down application...")


app = FastAPI(
    title="Wayfarer API",
    version="1.0.0",
    description="Social-travel network API",
    lifespan=lifespan,
)

# In production, set CORS_ORIGINS to a comma-separated list of allowed origins
cors_origins_str = os.getenv("CORS_ORIGINS", "http://localhost:3000,http://localhost")
if cors_origins_str == "*":
    logger.warning(
        "CORS is configured to allow all origins. "
        "This is insecure for production. Set CORS_ORIGINS to specific domains."
    )
cors_origins = [origin.strip() for origin in cors_origins_str.split(",")]

app.add_middleware(
    CORSMiddleware,
    allow_origins=cors_origins,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "PATCH", "OPTIONS"],
    allow_headers=["Content-Type", "Authorization", "Accept", "Origin", "X-Requested-With"],
    max_age=600,
)


@app.exception_handler(WayfarerError)
async def wayfarer_error_handler(request: Request, exc: WayfarerError) -> JSONResponse:
    """Render domain errors as RFC 7807 problem details."""
    problem = schemas.Problem(title=exc.title, status=exc.status_code, detail=exc.detail)
    return JSONResponse(
        status_code=exc.status_code,
        content=problem.model_dump(),
        media_type="application/problem+json",
    )


app.include_router(system.router)
app.include_router(social.router)
app.include_router(posts.router)
app.include_router(itineraries.router)
app.include_router(profiles.router)
app.include_router(notifications.router)
app.include_router(admin.router)
