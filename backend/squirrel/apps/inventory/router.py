from __future__ import annotations

from contextlib import contextmanager
from typing import Iterator, Optional

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from squirrel.database import get_db, get_read_db
from squirrel.pagination import DEFAULT_PAGE_SIZE, FilterError, Filters

from . import models, schemas, services
from .errors import (
    DuplicateName,
    EditConflict,
    InsufficientStock,
    InvalidInput,
    InventoryError,
    NotFound,
    ReferenceMissing,
)
from .items import ITEM_SORT_SAFELIST
from .ledgers import get_ledger

router = APIRouter(prefix="", tags=["inventory"])

NOT_FOUND_MESSAGE = "the requested resource could not be found"
EDIT_CONFLICT_MESSAGE = "unable to update the record due to an edit conflict, please try again"
SERVER_ERROR_MESSAGE = "the server encountered a problem and could not process your request"


@contextmanager
def _translate_errors() -> Iterator[None]:
    try:
        yield
    except FilterError as exc:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=exc.errors)
    except (NotFound, ReferenceMissing):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=NOT_FOUND_MESSAGE)
    except InvalidInput as exc:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=exc.errors)
    except InsufficientStock as exc:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail={"item": str(exc)})
    except DuplicateName:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail={"name": "an item with this name already exists"},
        )
    except EditConflict:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=EDIT_CONFLICT_MESSAGE)
    except InventoryError:
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=SERVER_ERROR_MESSAGE)


# ---------------------------------------------------------------------------
# ITEMS
# ---------------------------------------------------------------------------


@router.get("/items", response_model=schemas.ItemList)
def list_items(
    name: str = "",
    remarks: str = "",
    page: int = 1,
    page_size: int = DEFAULT_PAGE_SIZE,
    sort: str = "id",
    db: Session = Depends(get_read_db),
):
    with _translate_errors():
        filters = Filters(page=page, page_size=page_size, sort=sort, sort_safelist=ITEM_SORT_SAFELIST).validate()
        rows, metadata = services.list_items(db, name=name, remarks=remarks, filters=filters)
    return {"items": rows, "metadata": metadata}


@router.post("/items", response_model=schemas.ItemEnvelope, status_code=status.HTTP_201_CREATED)
def create_item(payload: schemas.ItemCreate, db: Session = Depends(get_db)):
    with _translate_errors():
        item = services.create_item(db, name=payload.name, quantity=payload.quantity, remarks=payload.remarks)
    return {"item": item}


@router.get("/items/{item_id}", response_model=schemas.ItemEnvelope)
def get_item(item_id: int, db: Session = Depends(get_read_db)):
    with _translate_errors():
        item = services.get_item(db, item_id)
    return {"item": item}


@router.put("/items/{item_id}", response_model=schemas.ItemEnvelope)
def update_item(item_id: int, payload: schemas.ItemUpdate, db: Session = Depends(get_db)):
    with _translate_errors():
        item = services.update_item_remaining(
            db,
            item_id,
            remaining=payload.remaining,
            expected_version=payload.version,
        )
    return {"item": item}


@router.delete("/items/{item_id}")
def delete_item(item_id: int, db: Session = Depends(get_db)):
    with _translate_errors():
        services.delete_item(db, item_id)
    return {"message": "item successfully deleted"}


@router.get("/items/{item_id}/reconciliation", response_model=schemas.Reconciliation)
def reconcile_item(item_id: int, db: Session = Depends(get_read_db)):
    with _translate_errors():
        return services.reconcile_item(db, item_id)


# ---------------------------------------------------------------------------
# MOVEMENTS
# ---------------------------------------------------------------------------


def _list_movements(
    db: Session,
    kind: models.MovementKind,
    *,
    item_id: int,
    page: int,
    page_size: int,
    sort: Optional[str],
) -> dict:
    ledger = get_ledger(kind)
    with _translate_errors():
        filters = ledger.filters(page=page, page_size=page_size, sort=sort)
        rows, metadata = services.list_movements(db, kind, item_id=item_id, filters=filters)
    return {ledger.plural: rows, "metadata": metadata}


@router.post("/additions", response_model=schemas.AdditionEnvelope, status_code=status.HTTP_201_CREATED)
def record_addition(payload: schemas.AdditionCreate, db: Session = Depends(get_db)):
    with _translate_errors():
        addition = services.record_addition(
            db, item_id=payload.item_id, quantity=payload.quantity, remarks=payload.remarks
        )
    return {"addition": addition}


@router.get("/additions/{item_id}", response_model=schemas.AdditionList)
def list_additions(
    item_id: int,
    page: int = 1,
    page_size: int = DEFAULT_PAGE_SIZE,
    sort: Optional[str] = None,
    db: Session = Depends(get_read_db),
):
    return _list_movements(
        db, models.MovementKind.ADDITION, item_id=item_id, page=page, page_size=page_size, sort=sort
    )


@router.post("/issues", response_model=schemas.IssueEnvelope, status_code=status.HTTP_201_CREATED)
def record_issue(payload: schemas.IssueCreate, db: Session = Depends(get_db)):
    with _translate_errors():
        issue = services.record_issue(
            db, item_id=payload.item_id, quantity=payload.quantity, issued_to=payload.issued_to
        )
    return {"issue": issue}


@router.get("/issues/{item_id}", response_model=schemas.IssueList)
def list_issues(
    item_id: int,
    page: int = 1,
    page_size: int = DEFAULT_PAGE_SIZE,
    sort: Optional[str] = None,
    db: Session = Depends(get_read_db),
):
    return _list_movements(
        db, models.MovementKind.ISSUE, item_id=item_id, page=page, page_size=page_size, sort=sort
    )


@router.post("/removals", response_model=schemas.RemovalEnvelope, status_code=status.HTTP_201_CREATED)
def record_removal(payload: schemas.RemovalCreate, db: Session = Depends(get_db)):
    with _translate_errors():
        removal = services.record_removal(
            db, item_id=payload.item_id, quantity=payload.quantity, remarks=payload.remarks
        )
    return {"removal": removal}


@router.get("/removals/{item_id}", response_model=schemas.RemovalList)
def list_removals(
    item_id: int,
    page: int = 1,
    page_size: int = DEFAULT_PAGE_SIZE,
    sort: Optional[str] = None,
    db: Session = Depends(get_read_db),
):
    return _list_movements(
        db, models.MovementKind.REMOVAL, item_id=item_id, page=page, page_size=page_size, sort=sort
    )
