import datetime
from pydantic import Field, field_validator, model_validator
from typing import Optional

from ...common.domains import MAX_QUANTITY, Branch, ItemKind, Level
from ...common.schemas import CanonicalModel, Money


def _positive(value):
    if value is not None and value <= 0:
        raise ValueError("unitValue must be greater than zero")
    return value


# --- Inventory Schemas ---
class InventoryItemBase(CanonicalModel):
    level: Level = Field(..., description="Progression level the item belongs to")
    kind: ItemKind = Field(..., description="Item category")
    description: str = Field(..., min_length=1, max_length=255, description="Label shown in lists and forms")
    quantity: int = Field(..., ge=0, le=MAX_QUANTITY, description="Current stock count")
    unit_value: Money = Field(..., description="Price of a single unit")
    branch: Branch = Field(..., description="Age branch the item is meant for, or All")

    @field_validator("unit_value")
    @classmethod
    def check_unit_value(cls, value):
        return _positive(value)


class InventoryItemCreate(InventoryItemBase):
    """Input for a new item. A caller-supplied totalValue is ignored."""


class InventoryItemUpdate(CanonicalModel):
    level: Optional[Level] = Field(None, description="New level")
    kind: Optional[ItemKind] = Field(None, description="New category")
    description: Optional[str] = Field(None, min_length=1, max_length=255, description="New label")
    quantity: Optional[int] = Field(None, ge=0, le=MAX_QUANTITY, description="New stock count")
    unit_value: Optional[Money] = Field(None, description="New unit price")
    branch: Optional[Branch] = Field(None, description="New branch")

    @field_validator("unit_value")
    @classmethod
    def check_unit_value(cls, value):
        return _positive(value)

    @model_validator(mode="after")
    def reject_explicit_nulls(self):
        for name in self.model_fields_set:
            if getattr(self, name) is None:
                raise ValueError(f"{type(self).model_fields[name].alias} cannot be null")
        return self


class InventoryItem(InventoryItemBase):
    id: str = Field(..., description="Identifier assigned by the backend")
    total_value: Money = Field(..., description="quantity * unitValue, rounded to cents")
    created_at: datetime.datetime
    updated_at: datetime.datetime


class InventoryOptions(CanonicalModel):
    levels: list[Level]
    kinds: list[ItemKind]
    branches: list[Branch]
