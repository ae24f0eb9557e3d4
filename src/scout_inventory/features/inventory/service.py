import logging
from typing import Any, Mapping, Optional, Union

from ...backends.base import BackendAdapter
from ...common.domains import Branch, ItemKind, Level
from ...common.schemas import parse_model
from ..auth.schemas import Identity
from ..auth.service import AccessControlGate
from .schemas import (
    InventoryItem,
    InventoryItemCreate,
    InventoryItemUpdate,
    InventoryOptions,
)

logger = logging.getLogger(__name__)


def inventory_options() -> InventoryOptions:
    """The enumerated domains offered by the item form's selection inputs."""
    return InventoryOptions(levels=list(Level), kinds=list(ItemKind), branches=list(Branch))


class InventoryRepository:
    """Inventory operations as the UI sees them.

    Mutations require the admin role. Input is validated against the
    enumerated domains here, before any backend call is made.
    """

    def __init__(self, backend: BackendAdapter, gate: AccessControlGate):
        self.backend = backend
        self.gate = gate

    async def list_items(self) -> list[InventoryItem]:
        return await self.backend.list_inventory_items()

    async def get_item(self, item_id: str) -> InventoryItem:
        return await self.backend.get_inventory_item(item_id)

    async def create_item(
        self, actor: Optional[Identity], fields: Union[InventoryItemCreate, Mapping[str, Any]]
    ) -> InventoryItem:
        """
        Creates a new inventory item.

        Args:
            actor: The signed-in caller; must hold the admin role.
            fields: Item data keyed by attribute names or wire aliases.

        Returns:
            The stored item, with its id and computed total value.
        """
        await self.gate.require_admin(actor, "create inventory items")
        item_in = parse_model(InventoryItemCreate, fields)
        item = await self.backend.create_inventory_item(item_in)
        logger.info(f"Item {item.id} '{item.description}' created by {actor.user_id}.")
        return item

    async def update_item(
        self,
        actor: Optional[Identity],
        item_id: str,
        fields: Union[InventoryItemUpdate, Mapping[str, Any]],
    ) -> InventoryItem:
        """
        Applies a partial update; the total value follows quantity and unit value.

        Raises:
            errors.NotFoundError: if the id does not exist.
        """
        await self.gate.require_admin(actor, "update inventory items")
        item_in = parse_model(InventoryItemUpdate, fields)
        item = await self.backend.update_inventory_item(item_id, item_in)
        logger.info(
            f"Item {item_id} updated by {actor.user_id}: "
            f"{', '.join(sorted(item_in.model_fields_set))}."
        )
        return item

    async def delete_item(self, actor: Optional[Identity], item_id: str) -> None:
        await self.gate.require_admin(actor, "delete inventory items")
        await self.backend.delete_inventory_item(item_id)
        logger.info(f"Item {item_id} deleted by {actor.user_id}.")
