# backend/squirrel/main.py
import logging
import os
from pathlib import Path
from typing import List

from alembic.config import Config
from alembic.script import ScriptDirectory
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy import text

from .apps.inventory.router import router as inventory_router
from .database import WriteSessionLocal
from .logging_config import configure_logging

logger = logging.getLogger(__name__)

_ALEMBIC_INI = Path(__file__).resolve().parent / "alembic.ini"


def _allowed_origins() -> List[str]:
    """
    Parse CORS_ALLOWED_ORIGINS from env.

    Accepts comma-separated origins. If unset, defaults to local dev ports.
    """
    raw = os.getenv("CORS_ALLOWED_ORIGINS", "")
    if raw:
        origins = [origin.strip() for origin in raw.split(",") if origin.strip()]
        if origins:
            return origins
    return [
        "http://127.0.0.1:5173",
        "http://localhost:5173",
        "http://localhost:4173",
    ]


def _schema_strict() -> bool:
    return os.getenv("SCHEMA_STRICT", "0").strip().lower() in {"1", "true", "yes", "on"}


def _enforce_schema_head_sync_if_configured() -> None:
    """
    Refuse to start against a database that is not at the migration head.

    Only active when SCHEMA_STRICT is truthy.
    """
    if not _schema_strict():
        return

    cfg = Config(str(_ALEMBIC_INI))
    cfg.set_main_option("script_location", str(_ALEMBIC_INI.parent / "alembic"))
    heads = set(ScriptDirectory.from_config(cfg).get_heads())

    db = WriteSessionLocal()
    try:
        rows = db.execute(text("SELECT version_num FROM alembic_version")).fetchall()
    finally:
        db.close()
    current = {row[0] for row in rows}

    if current != heads:
        logger.error(
            "Database schema is not at migration head",
            extra={"current": sorted(current), "heads": sorted(heads)},
        )
        raise RuntimeError(
            f"Database schema revision {sorted(current)} does not match migration head {sorted(heads)}. "
            "Run `alembic -c squirrel/alembic.ini upgrade head`."
        )


configure_logging()
_enforce_schema_head_sync_if_configured()

app = FastAPI(title="Squirrel Stock Ledger API", version="1.0.0")
cors_origins = _allowed_origins()
allow_credentials = "*" not in cors_origins

app.add_middleware(
    CORSMiddleware,
    allow_origins=cors_origins,
    allow_credentials=allow_credentials,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.get("/", tags=["health"])
def read_root():
    return {"status": "ok", "message": "Welcome to squirrel"}


@app.get("/health", tags=["health"])
def health():
    return {"status": "ok"}


app.include_router(inventory_router)
