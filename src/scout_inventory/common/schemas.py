"""Base pydantic model for the canonical schema and parsing helpers."""

from decimal import Decimal
from enum import Enum
from typing import Annotated, Any, Mapping, Type, TypeVar, Union

from pydantic import AfterValidator, BaseModel, ConfigDict, PlainSerializer
from pydantic import ValidationError as PydanticValidationError
from pydantic.alias_generators import to_camel

from ..core import errors
from .domains import quantize_money

ModelT = TypeVar("ModelT", bound=BaseModel)
EnumT = TypeVar("EnumT", bound=Enum)

# Currency: Decimal in Python, quantized to cents, a plain number on the wire.
Money = Annotated[
    Decimal,
    AfterValidator(quantize_money),
    PlainSerializer(float, return_type=float, when_used="json"),
]


class CanonicalModel(BaseModel):
    """snake_case attributes in Python, camelCase keys on the wire."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
        str_strip_whitespace=True,
        extra="ignore",
        protected_namespaces=(),
    )


def _describe(exc: PydanticValidationError) -> str:
    parts = []
    for error in exc.errors():
        location = ".".join(str(part) for part in error["loc"]) or "body"
        parts.append(f"{location}: {error['msg']}")
    return "; ".join(parts)


def parse_model(model_cls: Type[ModelT], data: Union[ModelT, Mapping[str, Any]]) -> ModelT:
    """Validates caller data against a canonical schema.

    Accepts an already-built instance (returned unchanged) or a mapping keyed
    by either attribute names or wire aliases.

    Raises:
        errors.ValidationError: if a field is missing, malformed or outside
            its enumerated domain.
    """
    if isinstance(data, model_cls):
        return data
    try:
        return model_cls.model_validate(data)
    except PydanticValidationError as exc:
        raise errors.ValidationError(f"Invalid {model_cls.__name__}: {_describe(exc)}") from exc


def parse_enum(enum_cls: Type[EnumT], value: Any) -> EnumT:
    try:
        return enum_cls(value)
    except ValueError as exc:
        allowed = ", ".join(member.value for member in enum_cls)
        raise errors.ValidationError(
            f"'{value}' is not a valid {enum_cls.__name__}; expected one of: {allowed}"
        ) from exc
