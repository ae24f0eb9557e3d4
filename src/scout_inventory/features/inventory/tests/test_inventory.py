import asyncio
from decimal import Decimal
from unittest.mock import AsyncMock

import pytest

from scout_inventory.backends.base import BackendAdapter
from scout_inventory.common.domains import Branch, ItemKind, Level, Role
from scout_inventory.core import errors
from scout_inventory.features.auth.schemas import Identity, Profile
from scout_inventory.features.auth.service import AccessControlGate
from scout_inventory.features.inventory.service import InventoryRepository

MISSING_ID = "0123456789abcdef01234567"

CAMP_BADGE = {
    "description": "Camp Badge",
    "quantity": 10,
    "unitValue": 5.00,
    "kind": "Badge",
    "branch": "All",
    "level": "None",
}


@pytest.fixture
def repository(backend):
    return InventoryRepository(backend, AccessControlGate(backend))


# --- Repository ---
@pytest.mark.asyncio
async def test_camp_badge_total_follows_quantity(repository, admin_identity):
    item = await repository.create_item(admin_identity, CAMP_BADGE)
    assert item.total_value == Decimal("50.00")

    updated = await repository.update_item(admin_identity, item.id, {"quantity": 4})
    assert updated.quantity == 4
    assert updated.unit_value == Decimal("5.00")
    assert updated.total_value == Decimal("20.00")


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "quantity, unit_value, expected",
    [(3, "0.10", "0.30"), (7, "1.15", "8.05"), (0, "2.50", "0.00"), (1, 1.4, "1.40")],
)
async def test_total_value_has_no_float_drift(repository, admin_identity, quantity, unit_value, expected):
    item = await repository.create_item(
        admin_identity, {**CAMP_BADGE, "quantity": quantity, "unitValue": unit_value}
    )
    assert item.total_value == Decimal(expected)
    stored = await repository.get_item(item.id)
    assert stored.total_value == Decimal(expected)


@pytest.mark.asyncio
async def test_update_unit_value_recomputes_total(repository, admin_identity):
    item = await repository.create_item(admin_identity, CAMP_BADGE)
    updated = await repository.update_item(admin_identity, item.id, {"unitValue": "2.35"})
    assert updated.total_value == Decimal("23.50")


@pytest.mark.asyncio
async def test_overlapping_updates_keep_total_consistent(repository, admin_identity):
    item = await repository.create_item(admin_identity, {**CAMP_BADGE, "unitValue": "2.00"})

    await asyncio.gather(
        repository.update_item(admin_identity, item.id, {"quantity": 5}),
        repository.update_item(admin_identity, item.id, {"unitValue": "3.00"}),
    )

    stored = await repository.get_item(item.id)
    assert stored.total_value == stored.quantity * stored.unit_value


@pytest.mark.asyncio
async def test_caller_supplied_total_value_is_ignored(repository, admin_identity):
    item = await repository.create_item(admin_identity, {**CAMP_BADGE, "totalValue": 999})
    assert item.total_value == Decimal("50.00")


@pytest.mark.asyncio
async def test_created_item_reads_back_unchanged(repository, admin_identity):
    created = await repository.create_item(
        admin_identity,
        {
            "level": Level.LEVEL_2,
            "kind": ItemKind.SPECIALTY_BADGE,
            "description": "Specialty Badge - Knots",
            "quantity": 12,
            "unit_value": Decimal("3.90"),
            "branch": Branch.SENIOR_SCOUT,
        },
    )
    fetched = await repository.get_item(created.id)
    assert fetched == created
    assert fetched.level == Level.LEVEL_2
    assert fetched.branch == Branch.SENIOR_SCOUT
    assert fetched.created_at.tzinfo is not None


@pytest.mark.asyncio
async def test_list_items_newest_first(repository, admin_identity):
    first = await repository.create_item(admin_identity, {**CAMP_BADGE, "description": "First"})
    second = await repository.create_item(admin_identity, {**CAMP_BADGE, "description": "Second"})
    items = await repository.list_items()
    assert [item.id for item in items] == [second.id, first.id]


@pytest.mark.asyncio
async def test_unknown_branch_never_reaches_backend():
    backend = AsyncMock(spec=BackendAdapter)
    backend.get_profile.return_value = Profile(
        user_id="admin-1",
        email="admin@example.com",
        full_name="Admin",
        role=Role.ADMIN,
        is_active=True,
        created_at="2024-01-01T00:00:00Z",
        updated_at="2024-01-01T00:00:00Z",
    )
    repository = InventoryRepository(backend, AccessControlGate(backend))

    with pytest.raises(errors.ValidationError) as exc_info:
        await repository.create_item(
            Identity(user_id="admin-1", email="admin@example.com"),
            {**CAMP_BADGE, "branch": "Unknown"},
        )
    assert "branch" in exc_info.value.message
    backend.create_inventory_item.assert_not_awaited()


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "overrides",
    [
        {"level": "Level 9"}, {"kind": "Sticker"}, {"quantity": -1}, {"quantity": 2**31},
        {"unitValue": 0}, {"description": ""},
    ],
)
async def test_invalid_fields_are_rejected(repository, admin_identity, overrides):
    with pytest.raises(errors.ValidationError):
        await repository.create_item(admin_identity, {**CAMP_BADGE, **overrides})
    assert await repository.list_items() == []


@pytest.mark.asyncio
async def test_missing_required_field_is_rejected(repository, admin_identity):
    fields = dict(CAMP_BADGE)
    del fields["kind"]
    with pytest.raises(errors.ValidationError):
        await repository.create_item(admin_identity, fields)


@pytest.mark.asyncio
async def test_empty_or_null_update_is_rejected(repository, admin_identity):
    item = await repository.create_item(admin_identity, CAMP_BADGE)
    with pytest.raises(errors.ValidationError):
        await repository.update_item(admin_identity, item.id, {})
    with pytest.raises(errors.ValidationError):
        await repository.update_item(admin_identity, item.id, {"quantity": None})


@pytest.mark.asyncio
async def test_update_unknown_item_raises_not_found(repository, admin_identity):
    with pytest.raises(errors.NotFoundError):
        await repository.update_item(admin_identity, MISSING_ID, {"quantity": 1})


@pytest.mark.asyncio
async def test_delete_unknown_item_raises_not_found(repository, admin_identity):
    item = await repository.create_item(admin_identity, CAMP_BADGE)
    await repository.delete_item(admin_identity, item.id)

    with pytest.raises(errors.NotFoundError):
        await repository.delete_item(admin_identity, item.id)
    with pytest.raises(errors.NotFoundError):
        await repository.delete_item(admin_identity, MISSING_ID)
    with pytest.raises(errors.NotFoundError):
        await repository.get_item(item.id)


@pytest.mark.asyncio
async def test_operators_cannot_change_inventory(repository, admin_identity, operator_identity):
    item = await repository.create_item(admin_identity, CAMP_BADGE)
    with pytest.raises(errors.AuthorizationError):
        await repository.create_item(operator_identity, CAMP_BADGE)
    with pytest.raises(errors.AuthorizationError):
        await repository.update_item(operator_identity, item.id, {"quantity": 1})
    with pytest.raises(errors.AuthorizationError):
        await repository.delete_item(None, item.id)
    assert [i.id for i in await repository.list_items()] == [item.id]


# --- HTTP ---
@pytest.mark.asyncio
async def test_http_create_and_update_item(client, admin_headers):
    response = await client.post("/inventory", json=CAMP_BADGE, headers=admin_headers)
    assert response.status_code == 201
    data = response.json()
    assert data["totalValue"] == 50.0
    assert data["unitValue"] == 5.0
    assert set(data) == {
        "id", "level", "kind", "description", "quantity", "unitValue",
        "totalValue", "branch", "createdAt", "updatedAt",
    }

    response = await client.put(
        "/inventory", params={"id": data["id"]}, json={"quantity": 4}, headers=admin_headers
    )
    assert response.status_code == 200
    assert response.json()["totalValue"] == 20.0

    response = await client.get("/inventory")
    assert response.status_code == 200
    assert [item["id"] for item in response.json()] == [data["id"]]


@pytest.mark.asyncio
async def test_http_rejects_unknown_branch(client, admin_headers):
    response = await client.post(
        "/inventory", json={**CAMP_BADGE, "branch": "Unknown"}, headers=admin_headers
    )
    assert response.status_code == 422
    assert "branch" in response.json()["error"]


@pytest.mark.asyncio
async def test_http_operator_is_forbidden(client, operator_headers):
    response = await client.post("/inventory", json=CAMP_BADGE, headers=operator_headers)
    assert response.status_code == 403
    assert response.json() == {"error": "Only administrators may create inventory items."}


@pytest.mark.asyncio
async def test_http_delete_unknown_item(client, admin_headers):
    response = await client.delete("/inventory", params={"id": MISSING_ID}, headers=admin_headers)
    assert response.status_code == 404
    assert response.json() == {"error": "Item not found or already deleted."}


@pytest.mark.asyncio
async def test_http_inventory_options(client):
    response = await client.get("/inventory/options")
    assert response.status_code == 200
    data = response.json()
    assert data["levels"] == ["None", "Level 1", "Level 2", "Level 3"]
    assert "Specialty Badge" in data["kinds"]
    assert data["branches"][-1] == "All"
