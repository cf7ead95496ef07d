from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from squirrel.pagination import Metadata


class ItemCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    quantity: int = Field(..., gt=0)
    remarks: str = ""


class ItemUpdate(BaseModel):
    remaining: int = Field(..., ge=0)
    # When supplied, the override only applies if the stored version still matches.
    version: Optional[int] = None


class ItemRead(BaseModel):
    id: int
    name: str
    quantity: int
    remaining: int
    remarks: str
    created_at: datetime
    version: int

    model_config = ConfigDict(from_attributes=True)


class ItemEnvelope(BaseModel):
    item: ItemRead


class ItemList(BaseModel):
    items: List[ItemRead]
    metadata: Metadata


class MovementBase(BaseModel):
    item_id: int = Field(..., gt=0)
    quantity: int = Field(..., gt=0)


class AdditionCreate(MovementBase):
    remarks: str = ""


class IssueCreate(MovementBase):
    issued_to: str = Field(..., min_length=1)


class RemovalCreate(MovementBase):
    remarks: str = Field(..., min_length=1)


class AdditionRead(BaseModel):
    id: int
    item_id: int
    quantity: int
    remarks: str
    added_at: datetime

    model_config = ConfigDict(from_attributes=True)


class IssueRead(BaseModel):
    id: int
    item_id: int
    quantity: int
    issued_to: str
    issued_at: datetime

    model_config = ConfigDict(from_attributes=True)


class RemovalRead(BaseModel):
    id: int
    item_id: int
    quantity: int
    remarks: str
    removed_at: datetime

    model_config = ConfigDict(from_attributes=True)


class AdditionEnvelope(BaseModel):
    addition: AdditionRead


class IssueEnvelope(BaseModel):
    issue: IssueRead


class RemovalEnvelope(BaseModel):
    removal: RemovalRead


class AdditionList(BaseModel):
    additions: List[AdditionRead]
    metadata: Metadata


class IssueList(BaseModel):
    issues: List[IssueRead]
    metadata: Metadata


class RemovalList(BaseModel):
    removals: List[RemovalRead]
    metadata: Metadata


class Reconciliation(BaseModel):
    item_id: int
    remaining: int
    version: int
    total_added: int
    total_issued: int
    total_removed: int
    expected_remaining: int
    balanced: bool
