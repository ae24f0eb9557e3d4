"""Document-store backend built on MongoDB through the async motor driver."""

import datetime
import logging
from contextlib import asynccontextmanager
from typing import Any, Optional

from bson import ObjectId
from bson.errors import InvalidDocument
from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorCollection, AsyncIOMotorDatabase
from pymongo import ASCENDING, DESCENDING
from pymongo.errors import ConnectionFailure, DuplicateKeyError, PyMongoError, WriteError

from ..common.domains import Branch, ItemKind, Level, RequestStatus
from ..common.models import generate_ksuid, utc_now
from ..common.schemas import parse_enum
from ..core import errors
from ..features.auth.schemas import Profile, ProfileCredentials
from ..features.inventory.schemas import InventoryItem, InventoryItemCreate
from ..features.requests.schemas import ItemRequest
from ..features.withdrawals.schemas import Withdrawal
from . import mapping
from .base import BackendAdapter

logger = logging.getLogger(__name__)

INVENTORY = "inventory_items"
REQUESTS = "item_requests"
WITHDRAWALS = "material_withdrawals"
PROFILES = "profiles"

NEWEST_FIRST = [("createdAt", DESCENDING), ("_id", DESCENDING)]


class DocumentStoreConnection:
    """An explicitly owned MongoDB client.

    Opened once at startup, shared by every adapter call for the lifetime of
    the process, closed on shutdown. Using it before `open` or after `close`
    raises BackendConnectionError instead of silently reconnecting.
    """

    def __init__(self, connection_string: str, database_name: str):
        self.connection_string = connection_string
        self.database_name = database_name
        self._client: Optional[AsyncIOMotorClient] = None

    @classmethod
    def from_client(cls, client, database_name: str) -> "DocumentStoreConnection":
        """Wraps a client that is already connected (e.g. an in-memory one)."""
        connection = cls(connection_string="", database_name=database_name)
        connection._client = client
        return connection

    @property
    def is_open(self) -> bool:
        return self._client is not None

    async def open(self) -> "DocumentStoreConnection":
        if self._client is not None:
            return self
        client = AsyncIOMotorClient(
            self.connection_string, tz_aware=True, serverSelectionTimeoutMS=5000
        )
        try:
            await client.admin.command("ping")
        except PyMongoError as e:
            client.close()
            logger.error(f"Could not reach the document store: {e}")
            raise errors.BackendConnectionError("Document store unavailable.") from e
        self._client = client
        logger.info(f"Connected to document database '{self.database_name}'.")
        return self

    @property
    def database(self) -> AsyncIOMotorDatabase:
        if self._client is None:
            raise errors.BackendConnectionError("Document store connection is not open.")
        return self._client[self.database_name]

    def collection(self, name: str) -> AsyncIOMotorCollection:
        return self.database[name]

    def close(self) -> None:
        if self._client is not None:
            self._client.close()
            self._client = None
            logger.info("Document store connection closed.")


@asynccontextmanager
async def _backend_errors(operation: str):
    try:
        yield
    except ConnectionFailure as e:
        logger.error(f"Document store failed to {operation}: {e}", exc_info=True)
        raise errors.BackendConnectionError(
            f"Document store unavailable while trying to {operation}."
        ) from e
    except DuplicateKeyError as e:
        logger.warning(f"Duplicate key while trying to {operation}: {e}")
        raise errors.ValidationError(f"Could not {operation}: conflicting record.") from e
    except (WriteError, InvalidDocument, OverflowError) as e:
        logger.warning(f"Document store rejected the data while trying to {operation}: {e}")
        raise errors.ValidationError(f"Could not {operation}: the document store rejected the data.") from e
    except PyMongoError as e:
        logger.error(f"Document store failed to {operation}: {e}", exc_info=True)
        raise errors.BackendConnectionError(f"Document store failed while trying to {operation}.") from e


def _object_id(value: str, what: str, message: Optional[str] = None) -> ObjectId:
    # A malformed id can never match a document, so it is reported like a missing one.
    if not ObjectId.is_valid(value):
        raise errors.NotFoundError(message or f"{what} not found.")
    return ObjectId(value)


def _with_id(field_map: mapping.FieldMap, document: dict) -> dict[str, Any]:
    values = field_map.from_stored(document)
    values["id"] = str(document["_id"])
    return values


class DocumentBackend(BackendAdapter):
    """Stores records as camelCase documents in the scout_inventory database."""

    name = "document"

    def __init__(self, connection: DocumentStoreConnection):
        self.connection = connection

    async def close(self) -> None:
        self.connection.close()

    async def _insert(self, collection: str, field_map: mapping.FieldMap, values: dict, operation: str) -> dict:
        document = field_map.to_stored(values)
        async with _backend_errors(operation):
            result = await self.connection.collection(collection).insert_one(document)
        document["_id"] = result.inserted_id
        return document

    async def _find_one(self, collection: str, query: dict, what: str) -> dict:
        async with _backend_errors(f"fetch {what.lower()}"):
            document = await self.connection.collection(collection).find_one(query)
        if document is None:
            raise errors.NotFoundError(f"{what} not found.")
        return document

    async def _set(self, collection: str, query: dict, stored: dict, what: str) -> None:
        async with _backend_errors(f"update {what.lower()}"):
            result = await self.connection.collection(collection).update_one(query, {"$set": stored})
        if result.matched_count == 0:
            raise errors.NotFoundError(f"{what} not found.")

    async def _find_many(self, collection: str, query: dict, sort, operation: str) -> list[dict]:
        async with _backend_errors(operation):
            cursor = self.connection.collection(collection).find(query).sort(sort)
            return await cursor.to_list(length=None)

    # --- Inventory ---
    def _item(self, document: dict) -> InventoryItem:
        return InventoryItem.model_validate(_with_id(mapping.INVENTORY_DOCUMENT, document))

    async def list_inventory_items(self) -> list[InventoryItem]:
        documents = await self._find_many(INVENTORY, {}, NEWEST_FIRST, "list inventory items")
        return [self._item(document) for document in documents]

    async def get_inventory_item(self, item_id: str) -> InventoryItem:
        document = await self._find_one(INVENTORY, {"_id": _object_id(item_id, "Item")}, "Item")
        return self._item(document)

    async def _insert_inventory_item(self, values: dict[str, Any]) -> InventoryItem:
        document = await self._insert(
            INVENTORY, mapping.INVENTORY_DOCUMENT, values, "create an inventory item"
        )
        return self._item(document)

    async def _update_inventory_item(self, item_id: str, changes: dict[str, Any]) -> InventoryItem:
        await self._set(
            INVENTORY, {"_id": _object_id(item_id, "Item")},
            mapping.INVENTORY_DOCUMENT.to_stored(changes), "Item",
        )
        return await self.get_inventory_item(item_id)

    async def delete_inventory_item(self, item_id: str) -> None:
        object_id = _object_id(item_id, "Item", "Item not found or already deleted.")
        async with _backend_errors("delete an inventory item"):
            result = await self.connection.collection(INVENTORY).delete_one({"_id": object_id})
        if result.deleted_count == 0:
            raise errors.NotFoundError("Item not found or already deleted.")

    # --- Item requests ---
    def _request(self, document: dict) -> ItemRequest:
        return ItemRequest.model_validate(_with_id(mapping.REQUEST_DOCUMENT, document))

    async def list_item_requests(self, status: Optional[RequestStatus] = None) -> list[ItemRequest]:
        query = {}
        if status is not None:
            query["status"] = parse_enum(RequestStatus, status).value
        documents = await self._find_many(REQUESTS, query, NEWEST_FIRST, "list item requests")
        return [self._request(document) for document in documents]

    async def get_item_request(self, request_id: str) -> ItemRequest:
        document = await self._find_one(
            REQUESTS, {"_id": _object_id(request_id, "Request")}, "Request"
        )
        return self._request(document)

    async def _insert_item_request(self, values: dict[str, Any]) -> ItemRequest:
        document = await self._insert(
            REQUESTS, mapping.REQUEST_DOCUMENT, values, "create an item request"
        )
        return self._request(document)

    async def _update_item_request(self, request_id: str, changes: dict[str, Any]) -> ItemRequest:
        await self._set(
            REQUESTS, {"_id": _object_id(request_id, "Request")},
            mapping.REQUEST_DOCUMENT.to_stored(changes), "Request",
        )
        return await self.get_item_request(request_id)

    # --- Withdrawals ---
    def _withdrawal(self, document: dict) -> Withdrawal:
        return Withdrawal.model_validate(_with_id(mapping.WITHDRAWAL_DOCUMENT, document))

    async def list_withdrawals(self, user_id: Optional[str] = None) -> list[Withdrawal]:
        query = {} if user_id is None else {"userId": user_id}
        documents = await self._find_many(WITHDRAWALS, query, NEWEST_FIRST, "list withdrawals")
        return [self._withdrawal(document) for document in documents]

    async def get_withdrawal(self, withdrawal_id: str) -> Withdrawal:
        document = await self._find_one(
            WITHDRAWALS, {"_id": _object_id(withdrawal_id, "Withdrawal")}, "Withdrawal"
        )
        return self._withdrawal(document)

    async def _insert_withdrawal(self, values: dict[str, Any]) -> Withdrawal:
        document = await self._insert(
            WITHDRAWALS, mapping.WITHDRAWAL_DOCUMENT, values, "create a withdrawal"
        )
        return self._withdrawal(document)

    async def _update_withdrawal(self, withdrawal_id: str, changes: dict[str, Any]) -> Withdrawal:
        await self._set(
            WITHDRAWALS, {"_id": _object_id(withdrawal_id, "Withdrawal")},
            mapping.WITHDRAWAL_DOCUMENT.to_stored(changes), "Withdrawal",
        )
        return await self.get_withdrawal(withdrawal_id)

    # --- Profiles ---
    async def list_profiles(self) -> list[Profile]:
        documents = await self._find_many(
            PROFILES, {}, [("fullName", ASCENDING), ("_id", ASCENDING)], "list profiles"
        )
        return [Profile.model_validate(mapping.PROFILE_DOCUMENT.from_stored(d)) for d in documents]

    async def get_profile(self, user_id: str) -> Profile:
        document = await self._find_one(PROFILES, {"userId": user_id}, "Profile")
        return Profile.model_validate(mapping.PROFILE_DOCUMENT.from_stored(document))

    async def find_profile_by_email(self, email: str) -> Optional[ProfileCredentials]:
        async with _backend_errors("look up a profile"):
            document = await self.connection.collection(PROFILES).find_one({"email": email})
        if document is None:
            return None
        return ProfileCredentials.model_validate(mapping.PROFILE_DOCUMENT.from_stored(document))

    async def _insert_profile(self, values: dict[str, Any]) -> Profile:
        values.setdefault("user_id", generate_ksuid())
        document = await self._insert(PROFILES, mapping.PROFILE_DOCUMENT, values, "create a profile")
        return Profile.model_validate(mapping.PROFILE_DOCUMENT.from_stored(document))

    async def _update_profile(self, user_id: str, changes: dict[str, Any]) -> Profile:
        await self._set(
            PROFILES, {"userId": user_id}, mapping.PROFILE_DOCUMENT.to_stored(changes), "Profile"
        )
        return await self.get_profile(user_id)

    # --- Setup ---
    async def ensure_indexes(self) -> None:
        """Creates the lookup and ordering indexes; safe to run repeatedly."""
        async with _backend_errors("create indexes"):
            inventory = self.connection.collection(INVENTORY)
            await inventory.create_index([("tipo", ASCENDING)])
            await inventory.create_index([("ramo", ASCENDING)])
            await inventory.create_index([("nivel", ASCENDING)])
            await inventory.create_index([("createdAt", DESCENDING)])

            requests = self.connection.collection(REQUESTS)
            await requests.create_index([("status", ASCENDING)])
            await requests.create_index([("createdAt", DESCENDING)])
            await requests.create_index([("email", ASCENDING)])

            withdrawals = self.connection.collection(WITHDRAWALS)
            await withdrawals.create_index([("userId", ASCENDING)])
            await withdrawals.create_index([("createdAt", DESCENDING)])

            profiles = self.connection.collection(PROFILES)
            await profiles.create_index([("userId", ASCENDING)], unique=True)
            await profiles.create_index([("email", ASCENDING)], unique=True)
        logger.info("Document store indexes are in place.")

    async def seed_samples(self) -> dict[str, int]:
        """Inserts example items and requests into empty collections only.

        Returns the document count of each collection afterwards.
        """
        async with _backend_errors("count documents"):
            inventory_count = await self.connection.collection(INVENTORY).count_documents({})
            requests_count = await self.connection.collection(REQUESTS).count_documents({})

        if inventory_count == 0:
            for sample in SAMPLE_ITEMS:
                await self.create_inventory_item(sample)
            logger.info(f"Inserted {len(SAMPLE_ITEMS)} sample inventory items.")
        else:
            logger.info(f"Collection {INVENTORY} already holds {inventory_count} items.")

        if requests_count == 0:
            for sample in _sample_requests():
                await self.import_item_request(sample)
            logger.info("Inserted sample item requests.")
        else:
            logger.info(f"Collection {REQUESTS} already holds {requests_count} requests.")

        async with _backend_errors("count documents"):
            return {
                INVENTORY: await self.connection.collection(INVENTORY).count_documents({}),
                REQUESTS: await self.connection.collection(REQUESTS).count_documents({}),
            }


SAMPLE_ITEMS = [
    InventoryItemCreate(
        level=Level.LEVEL_1, kind=ItemKind.SPECIALTY_BADGE,
        description="Specialty Badge - Camping", quantity=50, unit_value="1.40",
        branch=Branch.SCOUT,
    ),
    InventoryItemCreate(
        level=Level.NONE, kind=ItemKind.RING,
        description="Group Ring - GE 193", quantity=25, unit_value="4.00",
        branch=Branch.ALL,
    ),
    InventoryItemCreate(
        level=Level.LEVEL_2, kind=ItemKind.PROGRESSION_BADGE,
        description="Progression Badge - Scout", quantity=30, unit_value="3.90",
        branch=Branch.SCOUT,
    ),
    InventoryItemCreate(
        level=Level.NONE, kind=ItemKind.CERTIFICATE,
        description="Participation Certificate - Camp", quantity=100, unit_value="2.00",
        branch=Branch.ALL,
    ),
]


def _sample_requests() -> list[ItemRequest]:
    now = utc_now()
    return [
        ItemRequest(
            id="sample", name="Joao Silva", scout_group="GE 193",
            email="joao.silva@example.com", phone="(11) 99999-9999",
            item_requested="Specialty Badge - Camping", quantity=2,
            additional_message="Needed for this week's ceremony",
            status=RequestStatus.PENDING, created_at=now, updated_at=now,
        ),
        ItemRequest(
            id="sample", name="Maria Santos", scout_group="GE 193",
            email="maria.santos@example.com", phone="(11) 88888-8888",
            item_requested="Group Ring - GE 193", quantity=1,
            status=RequestStatus.RESOLVED,
            created_at=now - datetime.timedelta(days=1), updated_at=now,
        ),
    ]
