"""The backend adapter contract.

Both persistence technologies implement this interface. The public methods
here hold the lifecycle rules that must not differ between them: input
validation, ``totalValue`` recomputation, forcing the initial status and
stamping timestamps. Concrete adapters only implement the underscored
storage primitives plus the read and delete operations.
"""

import abc
from typing import Any, Mapping, Optional, Union

from ..common.domains import (
    RequestStatus,
    WithdrawalStatus,
    compute_total_value,
)
from ..common.models import utc_now
from ..common.schemas import parse_enum, parse_model
from ..core import errors
from ..features.auth.schemas import Profile, ProfileCreate, ProfileCredentials, ProfileUpdate
from ..features.inventory.schemas import InventoryItem, InventoryItemCreate, InventoryItemUpdate
from ..features.requests.schemas import ItemRequest, ItemRequestCreate
from ..features.withdrawals.schemas import Withdrawal, WithdrawalCreate

Fields = Mapping[str, Any]


class BackendAdapter(abc.ABC):
    name: str = "abstract"

    # --- Inventory ---
    @abc.abstractmethod
    async def list_inventory_items(self) -> list[InventoryItem]:
        """All items, newest first."""

    @abc.abstractmethod
    async def get_inventory_item(self, item_id: str) -> InventoryItem:
        """Raises NotFoundError if the id does not exist."""

    @abc.abstractmethod
    async def delete_inventory_item(self, item_id: str) -> None:
        """Raises NotFoundError if the id does not exist, also on a repeated delete."""

    async def create_inventory_item(
        self, fields: Union[InventoryItemCreate, Fields]
    ) -> InventoryItem:
        data = parse_model(InventoryItemCreate, fields)
        now = utc_now()
        values = data.model_dump()
        values["total_value"] = compute_total_value(data.quantity, data.unit_value)
        values["created_at"] = now
        values["updated_at"] = now
        return await self._insert_inventory_item(values)

    async def update_inventory_item(
        self, item_id: str, fields: Union[InventoryItemUpdate, Fields]
    ) -> InventoryItem:
        changes = parse_model(InventoryItemUpdate, fields).model_dump(exclude_unset=True)
        if not changes:
            raise errors.ValidationError("No fields to update.")
        current = await self.get_inventory_item(item_id)
        # The three money fields always travel together so an overlapping update
        # can only ever leave a consistent set behind.
        changes.setdefault("quantity", current.quantity)
        changes.setdefault("unit_value", current.unit_value)
        changes["total_value"] = compute_total_value(changes["quantity"], changes["unit_value"])
        changes["updated_at"] = utc_now()
        return await self._update_inventory_item(item_id, changes)

    @abc.abstractmethod
    async def _insert_inventory_item(self, values: dict[str, Any]) -> InventoryItem: ...

    @abc.abstractmethod
    async def _update_inventory_item(self, item_id: str, changes: dict[str, Any]) -> InventoryItem: ...

    # --- Item requests ---
    @abc.abstractmethod
    async def list_item_requests(
        self, status: Optional[RequestStatus] = None
    ) -> list[ItemRequest]:
        """Requests newest first by createdAt, optionally filtered by status."""

    @abc.abstractmethod
    async def get_item_request(self, request_id: str) -> ItemRequest: ...

    async def create_item_request(self, fields: Union[ItemRequestCreate, Fields]) -> ItemRequest:
        # Any status in the input is dropped by the schema; new requests are always pending.
        data = parse_model(ItemRequestCreate, fields)
        now = utc_now()
        values = data.model_dump()
        values["status"] = RequestStatus.PENDING
        values["created_at"] = now
        values["updated_at"] = now
        return await self._insert_item_request(values)

    async def import_item_request(self, request: ItemRequest) -> ItemRequest:
        """Writes an existing request under a new id, keeping status and timestamps."""
        return await self._insert_item_request(request.model_dump(exclude={"id"}))

    async def update_item_request_status(self, request_id: str, status: Any) -> ItemRequest:
        changes = {"status": parse_enum(RequestStatus, status), "updated_at": utc_now()}
        return await self._update_item_request(request_id, changes)

    @abc.abstractmethod
    async def _insert_item_request(self, values: dict[str, Any]) -> ItemRequest: ...

    @abc.abstractmethod
    async def _update_item_request(self, request_id: str, changes: dict[str, Any]) -> ItemRequest: ...

    # --- Withdrawals ---
    @abc.abstractmethod
    async def list_withdrawals(self, user_id: Optional[str] = None) -> list[Withdrawal]:
        """Withdrawals newest first, optionally only those of one user."""

    @abc.abstractmethod
    async def get_withdrawal(self, withdrawal_id: str) -> Withdrawal: ...

    async def create_withdrawal(
        self, user_id: str, fields: Union[WithdrawalCreate, Fields]
    ) -> Withdrawal:
        data = parse_model(WithdrawalCreate, fields)
        now = utc_now()
        values = data.model_dump()
        values["user_id"] = user_id
        values["status"] = WithdrawalStatus.REQUESTED
        values["created_at"] = now
        values["updated_at"] = now
        return await self._insert_withdrawal(values)

    async def update_withdrawal_status(self, withdrawal_id: str, status: Any) -> Withdrawal:
        changes = {"status": parse_enum(WithdrawalStatus, status), "updated_at": utc_now()}
        return await self._update_withdrawal(withdrawal_id, changes)

    @abc.abstractmethod
    async def _insert_withdrawal(self, values: dict[str, Any]) -> Withdrawal: ...

    @abc.abstractmethod
    async def _update_withdrawal(self, withdrawal_id: str, changes: dict[str, Any]) -> Withdrawal: ...

    # --- Profiles ---
    @abc.abstractmethod
    async def list_profiles(self) -> list[Profile]: ...

    @abc.abstractmethod
    async def get_profile(self, user_id: str) -> Profile:
        """Raises NotFoundError if no profile is keyed by the id."""

    @abc.abstractmethod
    async def find_profile_by_email(self, email: str) -> Optional[ProfileCredentials]: ...

    async def create_profile(self, fields: Union[ProfileCreate, Fields]) -> Profile:
        data = parse_model(ProfileCreate, fields)
        now = utc_now()
        values = data.model_dump()
        values["created_at"] = now
        values["updated_at"] = now
        return await self._insert_profile(values)

    async def update_profile(self, user_id: str, fields: Union[ProfileUpdate, Fields]) -> Profile:
        changes = parse_model(ProfileUpdate, fields).model_dump(exclude_unset=True, exclude_none=True)
        if not changes:
            raise errors.ValidationError("No fields to update.")
        changes["updated_at"] = utc_now()
        return await self._update_profile(user_id, changes)

    @abc.abstractmethod
    async def _insert_profile(self, values: dict[str, Any]) -> Profile: ...

    @abc.abstractmethod
    async def _update_profile(self, user_id: str, changes: dict[str, Any]) -> Profile: ...

    # --- Lifecycle ---
    async def close(self) -> None:
        """Releases the connection this adapter owns. The default owns none."""
