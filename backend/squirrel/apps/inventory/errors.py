from __future__ import annotations

from contextlib import contextmanager
from typing import Dict, Iterator, Optional

from sqlalchemy.exc import IntegrityError, SQLAlchemyError


# ---------------------------------------------------------------------------
# Errors
# ---------------------------------------------------------------------------


class InventoryError(Exception):
    """Base class for stock ledger failures."""


class NotFound(InventoryError):
    """Raised when the referenced item does not exist."""


class InvalidInput(InventoryError):
    """Raised for malformed or out-of-range quantities and metadata."""

    def __init__(self, errors: Dict[str, str]) -> None:
        super().__init__("; ".join(f"{k}: {v}" for k, v in errors.items()))
        self.errors = errors


class InsufficientStock(InventoryError):
    """Raised when an issue or removal asks for more than is on hand."""

    def __init__(self, message: str, *, remaining: int, requested: int) -> None:
        super().__init__(message)
        self.remaining = remaining
        self.requested = requested


class EditConflict(InventoryError):
    """Raised when the version guard matches no row."""


class DuplicateName(InventoryError):
    """Raised on a unique-key violation."""


class ReferenceMissing(InventoryError):
    """Raised on a foreign-key violation."""


class StorageError(InventoryError):
    """Opaque driver, connectivity or commit failure."""


# ---------------------------------------------------------------------------
# Constraint classification
# ---------------------------------------------------------------------------

# SQLSTATE class 23 codes (PostgreSQL, shared by psycopg2 and psycopg 3).
_PG_UNIQUE_VIOLATION = "23505"
_PG_FOREIGN_KEY_VIOLATION = "23503"

# Extended result code names exposed by sqlite3 (Python 3.11+).
_SQLITE_UNIQUE = {"SQLITE_CONSTRAINT_UNIQUE", "SQLITE_CONSTRAINT_PRIMARYKEY"}
_SQLITE_FOREIGN_KEY = {"SQLITE_CONSTRAINT_FOREIGNKEY"}


def _constraint_code(exc: IntegrityError) -> Optional[str]:
    orig = getattr(exc, "orig", None)
    if orig is None:
        return None
    for attr in ("pgcode", "sqlstate", "sqlite_errorname"):
        code = getattr(orig, attr, None)
        if code:
            return str(code)
    return None


def classify_integrity_error(exc: IntegrityError) -> InventoryError:
    code = _constraint_code(exc)
    if code == _PG_UNIQUE_VIOLATION or code in _SQLITE_UNIQUE:
        return DuplicateName("a record with this name already exists")
    if code == _PG_FOREIGN_KEY_VIOLATION or code in _SQLITE_FOREIGN_KEY:
        return ReferenceMissing("referenced item does not exist")
    return StorageError(str(exc.orig) if exc.orig is not None else str(exc))


@contextmanager
def storage_errors() -> Iterator[None]:
    """Translate driver exceptions raised inside the block into domain errors."""
    try:
        yield
    except IntegrityError as exc:
        raise classify_integrity_error(exc) from exc
    except SQLAlchemyError as exc:
        raise StorageError(str(exc)) from exc
