"""Canonical shapes of a stock withdrawal request."""

import datetime
from typing import Optional

from pydantic import Field, field_validator

from ...common.domains import MAX_QUANTITY, WithdrawalStatus
from ...common.schemas import CanonicalModel


class WithdrawalCreate(CanonicalModel):
    item_id: str = Field(..., min_length=1, description="Id of the inventory item to withdraw")
    quantity: int = Field(..., gt=0, le=MAX_QUANTITY, description="Units to take out of stock")
    notes: Optional[str] = Field(None, description="Reason or purpose of the withdrawal")


class Withdrawal(WithdrawalCreate):
    id: str
    user_id: str
    status: WithdrawalStatus
    created_at: datetime.datetime
    updated_at: datetime.datetime


class WithdrawalDecision(CanonicalModel):
    status: WithdrawalStatus

    @field_validator("status")
    @classmethod
    def must_be_final(cls, value: WithdrawalStatus) -> WithdrawalStatus:
        if value == WithdrawalStatus.REQUESTED:
            raise ValueError("a decision must be 'approved' or 'rejected'")
        return value
