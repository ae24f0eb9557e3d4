"""API routes for stock withdrawals."""

from typing import Annotated

from fastapi import APIRouter, Depends, Query, status

from ...backends.base import BackendAdapter
from ...backends.factory import get_backend
from ..auth.schemas import Identity
from ..auth.security import get_current_identity
from ..auth.service import AccessControlGate
from .schemas import Withdrawal, WithdrawalCreate, WithdrawalDecision
from .service import WithdrawalWorkflow

router = APIRouter(
    prefix="/withdrawals",
    tags=["Withdrawals"],
)


def get_withdrawal_workflow(
    backend: Annotated[BackendAdapter, Depends(get_backend)],
) -> WithdrawalWorkflow:
    return WithdrawalWorkflow(backend, AccessControlGate(backend))


@router.get("", response_model=list[Withdrawal])
async def list_withdrawals_endpoint(
    identity: Annotated[Identity, Depends(get_current_identity)],
    workflow: Annotated[WithdrawalWorkflow, Depends(get_withdrawal_workflow)],
):
    return await workflow.list_withdrawals(identity)


@router.post("", response_model=Withdrawal, status_code=status.HTTP_201_CREATED)
async def request_withdrawal_endpoint(
    withdrawal_in: WithdrawalCreate,
    identity: Annotated[Identity, Depends(get_current_identity)],
    workflow: Annotated[WithdrawalWorkflow, Depends(get_withdrawal_workflow)],
):
    return await workflow.request_withdrawal(identity, withdrawal_in)


@router.put("", response_model=Withdrawal)
async def decide_withdrawal_endpoint(
    decision: WithdrawalDecision,
    identity: Annotated[Identity, Depends(get_current_identity)],
    workflow: Annotated[WithdrawalWorkflow, Depends(get_withdrawal_workflow)],
    withdrawal_id: str = Query(..., alias="id", description="Id of the withdrawal to decide"),
):
    return await workflow.decide_withdrawal(identity, withdrawal_id, decision.status)
