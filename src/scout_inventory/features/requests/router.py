"""API routes for general item requests."""

from typing import Annotated, Optional

from fastapi import APIRouter, Depends, Query, status

from ...backends.base import BackendAdapter
from ...backends.factory import get_backend
from ...common.domains import RequestStatus
from ..auth.schemas import Identity
from ..auth.security import get_optional_identity
from ..auth.service import AccessControlGate
from .schemas import ItemRequest, ItemRequestCreate, ItemRequestStatusUpdate
from .service import RequestRepository

router = APIRouter(
    prefix="/requests",
    tags=["Requests"],
)


def get_request_repository(
    backend: Annotated[BackendAdapter, Depends(get_backend)],
) -> RequestRepository:
    return RequestRepository(backend, AccessControlGate(backend))


@router.get("", response_model=list[ItemRequest])
async def list_item_requests_endpoint(
    identity: Annotated[Optional[Identity], Depends(get_optional_identity)],
    repository: Annotated[RequestRepository, Depends(get_request_repository)],
    status_filter: Optional[RequestStatus] = Query(None, alias="status"),
):
    return await repository.list_requests(identity, status_filter)


@router.post("", response_model=ItemRequest, status_code=status.HTTP_201_CREATED)
async def create_item_request_endpoint(
    request_in: ItemRequestCreate,
    repository: Annotated[RequestRepository, Depends(get_request_repository)],
):
    return await repository.create_request(request_in)


@router.put("", response_model=ItemRequest)
async def update_item_request_endpoint(
    status_in: ItemRequestStatusUpdate,
    identity: Annotated[Optional[Identity], Depends(get_optional_identity)],
    repository: Annotated[RequestRepository, Depends(get_request_repository)],
    request_id: str = Query(..., alias="id", description="Id of the request to update"),
):
    return await repository.update_status(identity, request_id, status_in.status)
