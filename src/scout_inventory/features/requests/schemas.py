"""Canonical shapes of a general item request."""

import datetime
from typing import Optional

from pydantic import EmailStr, Field

from ...common.domains import MAX_QUANTITY, RequestStatus
from ...common.schemas import CanonicalModel


class ItemRequestCreate(CanonicalModel):
    name: str = Field(..., min_length=1, max_length=255, description="Requester name")
    scout_group: str = Field(..., min_length=1, max_length=255, description="Requester's scout group")
    email: EmailStr = Field(..., description="Contact e-mail")
    phone: str = Field(..., min_length=1, max_length=50, description="Contact phone")
    item_requested: str = Field(
        ..., min_length=1, max_length=255,
        description="Free-text item description; not tied to an inventory id",
    )
    quantity: int = Field(..., gt=0, le=MAX_QUANTITY, description="Number of units requested")
    additional_message: Optional[str] = Field(None, description="Optional note from the requester")


class ItemRequest(ItemRequestCreate):
    id: str
    status: RequestStatus
    created_at: datetime.datetime
    updated_at: datetime.datetime


class ItemRequestStatusUpdate(CanonicalModel):
    status: RequestStatus
