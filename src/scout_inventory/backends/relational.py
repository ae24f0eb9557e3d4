"""Relational-table backend built on Tortoise ORM."""

import logging
from contextlib import asynccontextmanager
from typing import Any, Optional, Type

from tortoise import Tortoise, models
from tortoise.exceptions import (
    BaseORMException,
    DBConnectionError,
    IntegrityError,
    OperationalError,
    ValidationError as FieldValidationError,
)

from ..common.domains import RequestStatus
from ..common.schemas import parse_enum
from ..core import errors
from ..features.auth.models import ProfileRecord
from ..features.auth.schemas import Profile, ProfileCredentials
from ..features.inventory.models import InventoryItemRecord
from ..features.inventory.schemas import InventoryItem
from ..features.requests.models import ItemRequestRecord
from ..features.requests.schemas import ItemRequest
from ..features.withdrawals.models import WithdrawalRecord
from ..features.withdrawals.schemas import Withdrawal
from . import mapping
from .base import BackendAdapter

logger = logging.getLogger(__name__)

MODEL_MODULES = [
    "scout_inventory.features.auth.models",
    "scout_inventory.features.inventory.models",
    "scout_inventory.features.requests.models",
    "scout_inventory.features.withdrawals.models",
]


def build_tortoise_config(database_url: str) -> dict:
    return {
        "connections": {"default": database_url},
        "apps": {
            "models": {
                "models": MODEL_MODULES,
                "default_connection": "default",
            }
        },
        "use_tz": True,
        "timezone": "UTC",
    }


@asynccontextmanager
async def _backend_errors(operation: str):
    try:
        yield
    except (DBConnectionError, OperationalError) as e:
        logger.error(f"Relational backend failed to {operation}: {e}", exc_info=True)
        raise errors.BackendConnectionError(
            f"Relational backend unavailable while trying to {operation}."
        ) from e
    except IntegrityError as e:
        logger.warning(f"Integrity error while trying to {operation}: {e}")
        raise errors.ValidationError(f"Could not {operation}: conflicting record.") from e
    except (FieldValidationError, OverflowError) as e:
        logger.warning(f"Relational backend rejected the data while trying to {operation}: {e}")
        raise errors.ValidationError(f"Could not {operation}: the database rejected the data.") from e
    except BaseORMException as e:
        logger.error(f"Relational backend failed to {operation}: {e}", exc_info=True)
        raise errors.BackendConnectionError(f"Relational backend failed while trying to {operation}.") from e


def _row(record: models.Model, field_map: mapping.FieldMap) -> dict[str, Any]:
    return {column: getattr(record, column) for column in field_map.keys.values()}


class RelationalBackend(BackendAdapter):
    """Stores records in the inventory_items, item_requests,
    material_withdrawals and profiles tables.

    Instances created through `connect` own the Tortoise connections and
    close them in `close`; a bare instance reuses whatever Tortoise was
    initialized with (tests, the migration source).
    """

    name = "relational"

    def __init__(self, owns_connection: bool = False):
        self._owns_connection = owns_connection

    @classmethod
    async def connect(cls, database_url: str, generate_schemas: bool = False) -> "RelationalBackend":
        async with _backend_errors("connect"):
            await Tortoise.init(config=build_tortoise_config(database_url))
            if generate_schemas:
                await Tortoise.generate_schemas(safe=True)
        logger.info("Tortoise-ORM has been initialized.")
        return cls(owns_connection=True)

    async def close(self) -> None:
        if self._owns_connection:
            await Tortoise.close_connections()
            self._owns_connection = False
            logger.info("Tortoise-ORM connections have been closed.")

    async def _get_record(
        self, model: Type[models.Model], what: str, **lookup
    ) -> models.Model:
        record = await model.get_or_none(**lookup)
        if record is None:
            raise errors.NotFoundError(f"{what} not found.")
        return record

    async def _update_records(self, model: Type[models.Model], what: str, stored: dict, **lookup) -> None:
        updated = await model.filter(**lookup).update(**stored)
        if not updated:
            raise errors.NotFoundError(f"{what} not found.")

    # --- Inventory ---
    def _item(self, record: InventoryItemRecord) -> InventoryItem:
        return InventoryItem.model_validate(
            mapping.INVENTORY_COLUMNS.from_stored(_row(record, mapping.INVENTORY_COLUMNS))
        )

    async def list_inventory_items(self) -> list[InventoryItem]:
        async with _backend_errors("list inventory items"):
            records = await InventoryItemRecord.all().order_by("-created_at", "-id")
        return [self._item(record) for record in records]

    async def get_inventory_item(self, item_id: str) -> InventoryItem:
        async with _backend_errors("fetch an inventory item"):
            record = await self._get_record(InventoryItemRecord, "Item", public_id=item_id)
        return self._item(record)

    async def _insert_inventory_item(self, values: dict[str, Any]) -> InventoryItem:
        async with _backend_errors("create an inventory item"):
            record = await InventoryItemRecord.create(**mapping.INVENTORY_COLUMNS.to_stored(values))
        return self._item(record)

    async def _update_inventory_item(self, item_id: str, changes: dict[str, Any]) -> InventoryItem:
        async with _backend_errors("update an inventory item"):
            await self._update_records(
                InventoryItemRecord, "Item", mapping.INVENTORY_COLUMNS.to_stored(changes),
                public_id=item_id,
            )
        return await self.get_inventory_item(item_id)

    async def delete_inventory_item(self, item_id: str) -> None:
        async with _backend_errors("delete an inventory item"):
            deleted = await InventoryItemRecord.filter(public_id=item_id).delete()
        if not deleted:
            raise errors.NotFoundError("Item not found or already deleted.")

    # --- Item requests ---
    def _request(self, record: ItemRequestRecord) -> ItemRequest:
        return ItemRequest.model_validate(
            mapping.REQUEST_COLUMNS.from_stored(_row(record, mapping.REQUEST_COLUMNS))
        )

    async def list_item_requests(self, status: Optional[RequestStatus] = None) -> list[ItemRequest]:
        query = ItemRequestRecord.all()
        if status is not None:
            query = query.filter(status=parse_enum(RequestStatus, status).value)
        async with _backend_errors("list item requests"):
            records = await query.order_by("-created_at", "-id")
        return [self._request(record) for record in records]

    async def get_item_request(self, request_id: str) -> ItemRequest:
        async with _backend_errors("fetch an item request"):
            record = await self._get_record(ItemRequestRecord, "Request", public_id=request_id)
        return self._request(record)

    async def _insert_item_request(self, values: dict[str, Any]) -> ItemRequest:
        async with _backend_errors("create an item request"):
            record = await ItemRequestRecord.create(**mapping.REQUEST_COLUMNS.to_stored(values))
        return self._request(record)

    async def _update_item_request(self, request_id: str, changes: dict[str, Any]) -> ItemRequest:
        async with _backend_errors("update an item request"):
            await self._update_records(
                ItemRequestRecord, "Request", mapping.REQUEST_COLUMNS.to_stored(changes),
                public_id=request_id,
            )
        return await self.get_item_request(request_id)

    # --- Withdrawals ---
    def _withdrawal(self, record: WithdrawalRecord) -> Withdrawal:
        return Withdrawal.model_validate(
            mapping.WITHDRAWAL_COLUMNS.from_stored(_row(record, mapping.WITHDRAWAL_COLUMNS))
        )

    async def list_withdrawals(self, user_id: Optional[str] = None) -> list[Withdrawal]:
        query = WithdrawalRecord.all()
        if user_id is not None:
            query = query.filter(user_id=user_id)
        async with _backend_errors("list withdrawals"):
            records = await query.order_by("-created_at", "-id")
        return [self._withdrawal(record) for record in records]

    async def get_withdrawal(self, withdrawal_id: str) -> Withdrawal:
        async with _backend_errors("fetch a withdrawal"):
            record = await self._get_record(WithdrawalRecord, "Withdrawal", public_id=withdrawal_id)
        return self._withdrawal(record)

    async def _insert_withdrawal(self, values: dict[str, Any]) -> Withdrawal:
        async with _backend_errors("create a withdrawal"):
            record = await WithdrawalRecord.create(**mapping.WITHDRAWAL_COLUMNS.to_stored(values))
        return self._withdrawal(record)

    async def _update_withdrawal(self, withdrawal_id: str, changes: dict[str, Any]) -> Withdrawal:
        async with _backend_errors("update a withdrawal"):
            await self._update_records(
                WithdrawalRecord, "Withdrawal", mapping.WITHDRAWAL_COLUMNS.to_stored(changes),
                public_id=withdrawal_id,
            )
        return await self.get_withdrawal(withdrawal_id)

    # --- Profiles ---
    def _profile_values(self, record: ProfileRecord) -> dict[str, Any]:
        return mapping.PROFILE_COLUMNS.from_stored(_row(record, mapping.PROFILE_COLUMNS))

    async def list_profiles(self) -> list[Profile]:
        async with _backend_errors("list profiles"):
            records = await ProfileRecord.all().order_by("full_name", "id")
        return [Profile.model_validate(self._profile_values(record)) for record in records]

    async def get_profile(self, user_id: str) -> Profile:
        async with _backend_errors("fetch a profile"):
            record = await self._get_record(ProfileRecord, "Profile", user_id=user_id)
        return Profile.model_validate(self._profile_values(record))

    async def find_profile_by_email(self, email: str) -> Optional[ProfileCredentials]:
        async with _backend_errors("look up a profile"):
            record = await ProfileRecord.get_or_none(email=email)
        if record is None:
            return None
        return ProfileCredentials.model_validate(self._profile_values(record))

    async def _insert_profile(self, values: dict[str, Any]) -> Profile:
        async with _backend_errors("create a profile"):
            record = await ProfileRecord.create(**mapping.PROFILE_COLUMNS.to_stored(values))
        return Profile.model_validate(self._profile_values(record))

    async def _update_profile(self, user_id: str, changes: dict[str, Any]) -> Profile:
        async with _backend_errors("update a profile"):
            await self._update_records(
                ProfileRecord, "Profile", mapping.PROFILE_COLUMNS.to_stored(changes),
                user_id=user_id,
            )
        return await self.get_profile(user_id)

    # --- Raw access for the migration utility ---
    async def fetch_inventory_rows(self) -> list[dict[str, Any]]:
        """Every inventory_items row as stored, oldest first."""
        async with _backend_errors("read inventory rows"):
            return await InventoryItemRecord.all().order_by("created_at", "id").values()

    async def fetch_item_request_rows(self) -> list[dict[str, Any]]:
        """Every item_requests row as stored, oldest first."""
        async with _backend_errors("read item request rows"):
            return await ItemRequestRecord.all().order_by("created_at", "id").values()
