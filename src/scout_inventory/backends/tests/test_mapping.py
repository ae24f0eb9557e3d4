import datetime
from decimal import Decimal

import pytest

from scout_inventory.backends import mapping
from scout_inventory.common.domains import Branch, ItemKind, Level, RequestStatus

NOW = datetime.datetime(2024, 5, 4, 10, 30, 15, 123000, tzinfo=datetime.timezone.utc)

ITEM_VALUES = {
    "level": Level.LEVEL_1,
    "kind": ItemKind.PROGRESSION_BADGE,
    "description": "Progression Badge - Scout",
    "quantity": 30,
    "unit_value": Decimal("3.90"),
    "total_value": Decimal("117.00"),
    "branch": Branch.SCOUT,
    "created_at": NOW,
    "updated_at": NOW,
}


def test_inventory_columns_use_relational_names():
    stored = mapping.INVENTORY_COLUMNS.to_stored(ITEM_VALUES)
    assert stored == {
        "nivel": "Level 1",
        "tipo": "Progression Badge",
        "descricao": "Progression Badge - Scout",
        "quantidade": 30,
        "valor_unitario": Decimal("3.90"),
        "valor_total": Decimal("117.00"),
        "ramo": "Scout",
        "created_at": NOW,
        "updated_at": NOW,
    }


def test_inventory_document_uses_camel_case_and_floats():
    stored = mapping.INVENTORY_DOCUMENT.to_stored(ITEM_VALUES)
    assert stored["valorUnitario"] == 3.9
    assert isinstance(stored["valorTotal"], float)
    assert stored["createdAt"] == NOW
    assert "valor_unitario" not in stored


@pytest.mark.parametrize("field_map", [mapping.INVENTORY_COLUMNS, mapping.INVENTORY_DOCUMENT])
def test_inventory_values_survive_both_directions(field_map):
    assert field_map.from_stored(field_map.to_stored(ITEM_VALUES)) == {
        **ITEM_VALUES,
        "level": "Level 1",
        "kind": "Progression Badge",
        "branch": "Scout",
    }


def test_from_stored_requantizes_float_money():
    values = mapping.INVENTORY_DOCUMENT.from_stored({"valorUnitario": 1.4, "valorTotal": 70.00000000001})
    assert values == {"unit_value": Decimal("1.40"), "total_value": Decimal("70.00")}


def test_naive_datetimes_are_read_as_utc():
    naive = NOW.replace(tzinfo=None)
    values = mapping.REQUEST_DOCUMENT.from_stored({"createdAt": naive})
    assert values["created_at"] == NOW
    assert values["created_at"].tzinfo is not None


def test_other_offsets_are_converted_to_utc():
    local = NOW.astimezone(datetime.timezone(datetime.timedelta(hours=-3)))
    assert mapping.as_utc(local).utcoffset() == datetime.timedelta(0)
    assert mapping.as_utc(local) == NOW


def test_request_keys():
    stored = mapping.REQUEST_DOCUMENT.to_stored(
        {
            "scout_group": "GE 193",
            "item_requested": "Ring",
            "additional_message": None,
            "status": RequestStatus.PENDING,
        }
    )
    assert stored == {
        "grupoEscoteiro": "GE 193",
        "itemSolicitado": "Ring",
        "mensagemAdicional": None,
        "status": "pending",
    }
    columns = mapping.REQUEST_COLUMNS.to_stored({"scout_group": "GE 193", "item_requested": "Ring"})
    assert columns == {"grupo_escoteiro": "GE 193", "item_solicitado": "Ring"}


def test_unknown_attribute_is_an_error():
    with pytest.raises(KeyError, match="inventory_items collection"):
        mapping.INVENTORY_DOCUMENT.to_stored({"id": "abc"})


def test_every_canonical_field_has_a_stored_key():
    from scout_inventory.features.inventory.schemas import InventoryItem
    from scout_inventory.features.requests.schemas import ItemRequest
    from scout_inventory.features.withdrawals.schemas import Withdrawal

    for model, columns, document in [
        (InventoryItem, mapping.INVENTORY_COLUMNS, mapping.INVENTORY_DOCUMENT),
        (ItemRequest, mapping.REQUEST_COLUMNS, mapping.REQUEST_DOCUMENT),
        (Withdrawal, mapping.WITHDRAWAL_COLUMNS, mapping.WITHDRAWAL_DOCUMENT),
    ]:
        fields = set(model.model_fields)
        assert set(columns.keys) == fields
        # The document id lives in _id and is added by the adapter.
        assert set(document.keys) == fields - {"id"}
