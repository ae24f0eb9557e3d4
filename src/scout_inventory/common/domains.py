"""Enumerated domains and value rules shared by every layer.

These enums are the single source of truth for the values the selection
inputs offer and the repositories accept.
"""

from decimal import Decimal, ROUND_HALF_UP
from enum import Enum


class Level(str, Enum):
    NONE = "None"
    LEVEL_1 = "Level 1"
    LEVEL_2 = "Level 2"
    LEVEL_3 = "Level 3"


class ItemKind(str, Enum):
    RING = "Ring"
    CERTIFICATE = "Certificate"
    BADGE = "Badge"
    PROGRESSION_BADGE = "Progression Badge"
    SPECIALTY_BADGE = "Specialty Badge"


class Branch(str, Enum):
    CUB_SCOUT = "Cub Scout"
    SCOUT = "Scout"
    SENIOR_SCOUT = "Senior Scout"
    ROVER = "Rover"
    YOUTH = "Youth"
    LEADER = "Leader"
    ALL = "All"


class RequestStatus(str, Enum):
    """Lifecycle of a general item request."""

    PENDING = "pending"
    RESOLVED = "resolved"


class WithdrawalStatus(str, Enum):
    """Lifecycle of a stock withdrawal request."""

    REQUESTED = "requested"
    APPROVED = "approved"
    REJECTED = "rejected"


class Role(str, Enum):
    ADMIN = "admin"
    OPERATOR = "operator"


CENT = Decimal("0.01")

# Largest count a 32-bit integer column holds.
MAX_QUANTITY = 2**31 - 1


def quantize_money(value) -> Decimal:
    """Round a currency amount to cents, half up."""
    if not isinstance(value, Decimal):
        # str() keeps floats like 1.4 from turning into 1.399999...
        value = Decimal(str(value))
    return value.quantize(CENT, rounding=ROUND_HALF_UP)


def compute_total_value(quantity: int, unit_value) -> Decimal:
    return quantize_money(Decimal(quantity) * quantize_money(unit_value))
