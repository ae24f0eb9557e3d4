"""API routes for the troop inventory."""

from typing import Annotated, Optional

from fastapi import APIRouter, Depends, Query, status

from ...backends.base import BackendAdapter
from ...backends.factory import get_backend
from ..auth.schemas import Identity
from ..auth.security import get_optional_identity
from ..auth.service import AccessControlGate
from .schemas import (
    InventoryItem,
    InventoryItemCreate,
    InventoryItemUpdate,
    InventoryOptions,
)
from .service import InventoryRepository, inventory_options

router = APIRouter(
    prefix="/inventory",
    tags=["Inventory"],
)


def get_inventory_repository(
    backend: Annotated[BackendAdapter, Depends(get_backend)],
) -> InventoryRepository:
    return InventoryRepository(backend, AccessControlGate(backend))


@router.get("", response_model=list[InventoryItem])
async def list_inventory_items_endpoint(
    repository: Annotated[InventoryRepository, Depends(get_inventory_repository)],
):
    return await repository.list_items()


@router.get("/options", response_model=InventoryOptions)
async def read_inventory_options_endpoint():
    return inventory_options()


@router.post("", response_model=InventoryItem, status_code=status.HTTP_201_CREATED)
async def create_inventory_item_endpoint(
    item_in: InventoryItemCreate,
    identity: Annotated[Optional[Identity], Depends(get_optional_identity)],
    repository: Annotated[InventoryRepository, Depends(get_inventory_repository)],
):
    return await repository.create_item(identity, item_in)


@router.put("", response_model=InventoryItem)
async def update_inventory_item_endpoint(
    item_in: InventoryItemUpdate,
    identity: Annotated[Optional[Identity], Depends(get_optional_identity)],
    repository: Annotated[InventoryRepository, Depends(get_inventory_repository)],
    item_id: str = Query(..., alias="id", description="Id of the item to update"),
):
    return await repository.update_item(identity, item_id, item_in)


@router.delete("", status_code=status.HTTP_204_NO_CONTENT)
async def delete_inventory_item_endpoint(
    identity: Annotated[Optional[Identity], Depends(get_optional_identity)],
    repository: Annotated[InventoryRepository, Depends(get_inventory_repository)],
    item_id: str = Query(..., alias="id", description="Id of the item to delete"),
):
    await repository.delete_item(identity, item_id)
    return None
