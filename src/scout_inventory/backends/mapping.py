"""Field-name and type translation between the canonical schema and storage.

Every backend stores records under its own key names: the relational tables
use snake_case columns (``valor_unitario``), the document collections use
camelCase keys (``valorUnitario``). A ``FieldMap`` is the one table per
record type and backend that both directions are derived from, so a field
can never be written under one name and read back under another.

Value translation applied on the way in:
    - enum members are stored as their string value
    - money is stored as a cent-quantized ``Decimal`` (relational) or a
      ``float`` (document)
    - datetimes are stored timezone-aware in UTC

and undone on the way out (money re-quantized, naive datetimes read as UTC).
"""

import datetime
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Mapping

from ..common.domains import quantize_money

TIMESTAMPS = frozenset({"created_at", "updated_at"})


def as_utc(value: datetime.datetime) -> datetime.datetime:
    """Normalizes a stored datetime to an aware UTC value."""
    if value.tzinfo is None:
        return value.replace(tzinfo=datetime.timezone.utc)
    return value.astimezone(datetime.timezone.utc)


@dataclass(frozen=True)
class FieldMap:
    name: str
    keys: Mapping[str, str]  # canonical attribute -> stored key
    money: frozenset = field(default_factory=frozenset)
    money_as_float: bool = False

    def stored_key(self, attribute: str) -> str:
        try:
            return self.keys[attribute]
        except KeyError:
            raise KeyError(f"{self.name} has no stored key for {attribute!r}") from None

    def to_stored(self, values: Mapping[str, Any]) -> dict[str, Any]:
        stored = {}
        for attribute, value in values.items():
            key = self.stored_key(attribute)
            if isinstance(value, Enum):
                value = value.value
            elif value is not None and attribute in self.money:
                value = quantize_money(value)
                if self.money_as_float:
                    value = float(value)
            elif isinstance(value, datetime.datetime):
                value = as_utc(value)
            stored[key] = value
        return stored

    def from_stored(self, row: Mapping[str, Any]) -> dict[str, Any]:
        values = {}
        for attribute, key in self.keys.items():
            if key not in row:
                continue
            value = row[key]
            if value is not None and attribute in self.money:
                value = quantize_money(value)
            elif isinstance(value, datetime.datetime):
                value = as_utc(value)
            values[attribute] = value
        return values


INVENTORY_MONEY = frozenset({"unit_value", "total_value"})

INVENTORY_COLUMNS = FieldMap(
    name="inventory_items table",
    keys={
        "id": "public_id",
        "level": "nivel",
        "kind": "tipo",
        "description": "descricao",
        "quantity": "quantidade",
        "unit_value": "valor_unitario",
        "total_value": "valor_total",
        "branch": "ramo",
        "created_at": "created_at",
        "updated_at": "updated_at",
    },
    money=INVENTORY_MONEY,
)

INVENTORY_DOCUMENT = FieldMap(
    name="inventory_items collection",
    keys={
        "level": "nivel",
        "kind": "tipo",
        "description": "descricao",
        "quantity": "quantidade",
        "unit_value": "valorUnitario",
        "total_value": "valorTotal",
        "branch": "ramo",
        "created_at": "createdAt",
        "updated_at": "updatedAt",
    },
    money=INVENTORY_MONEY,
    money_as_float=True,
)

REQUEST_COLUMNS = FieldMap(
    name="item_requests table",
    keys={
        "id": "public_id",
        "name": "nome",
        "scout_group": "grupo_escoteiro",
        "email": "email",
        "phone": "telefone",
        "item_requested": "item_solicitado",
        "quantity": "quantidade",
        "additional_message": "mensagem_adicional",
        "status": "status",
        "created_at": "created_at",
        "updated_at": "updated_at",
    },
)

REQUEST_DOCUMENT = FieldMap(
    name="item_requests collection",
    keys={
        "name": "nome",
        "scout_group": "grupoEscoteiro",
        "email": "email",
        "phone": "telefone",
        "item_requested": "itemSolicitado",
        "quantity": "quantidade",
        "additional_message": "mensagemAdicional",
        "status": "status",
        "created_at": "createdAt",
        "updated_at": "updatedAt",
    },
)

WITHDRAWAL_COLUMNS = FieldMap(
    name="material_withdrawals table",
    keys={
        "id": "public_id",
        "item_id": "item_id",
        "user_id": "user_id",
        "quantity": "quantity",
        "notes": "notes",
        "status": "status",
        "created_at": "created_at",
        "updated_at": "updated_at",
    },
)

WITHDRAWAL_DOCUMENT = FieldMap(
    name="material_withdrawals collection",
    keys={
        "item_id": "itemId",
        "user_id": "userId",
        "quantity": "quantity",
        "notes": "notes",
        "status": "status",
        "created_at": "createdAt",
        "updated_at": "updatedAt",
    },
)

PROFILE_COLUMNS = FieldMap(
    name="profiles table",
    keys={
        "user_id": "user_id",
        "email": "email",
        "full_name": "full_name",
        "hashed_password": "hashed_password",
        "role": "role",
        "is_active": "is_active",
        "created_at": "created_at",
        "updated_at": "updated_at",
    },
)

PROFILE_DOCUMENT = FieldMap(
    name="profiles collection",
    keys={
        "user_id": "userId",
        "email": "email",
        "full_name": "fullName",
        "hashed_password": "hashedPassword",
        "role": "role",
        "is_active": "isActive",
        "created_at": "createdAt",
        "updated_at": "updatedAt",
    },
)
