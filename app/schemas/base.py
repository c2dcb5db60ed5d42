"""
Base Schema Classes for Pydantic Models

This module provides base classes and field types shared by every schema,
so the camelCase wire format and Decimal handling stay consistent.

RULE: All request/response schemas MUST inherit from WireSchema.
"""

from decimal import Decimal
from typing import Annotated, Optional

from pydantic import BaseModel, BeforeValidator, ConfigDict, PlainSerializer
from pydantic.alias_generators import to_camel

from app.core.decimal_utils import to_decimal, optional_decimal


class WireSchema(BaseModel):
    """
    Base class for all schemas exchanged with the order forms.

    Features:
    - camelCase aliases on the wire (itemId, cgstPercent, ...)
    - Population by field name or alias
    - Unknown fields ignored (forward compatibility)

    Usage:
        class LineMetrics(WireSchema):
            item_id: int          # "itemId" in JSON
            line_total: Amount    # "lineTotal" in JSON
    """
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra='ignore',
    )


class PassthroughSchema(WireSchema):
    """Base class for header-like schemas that must keep unknown fields."""
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra='allow',
    )


def _decimal_to_json(value: Decimal) -> float:
    return float(value)


# Decimal that serializes as a JSON number
Amount = Annotated[
    Decimal,
    PlainSerializer(_decimal_to_json, return_type=float, when_used="json"),
]

# Decimal input that never fails validation: junk becomes 0
LenientDecimal = Annotated[
    Decimal,
    BeforeValidator(to_decimal),
    PlainSerializer(_decimal_to_json, return_type=float, when_used="json"),
]

# Same, but a missing value stays None
OptionalLenientDecimal = Annotated[
    Optional[Decimal],
    BeforeValidator(optional_decimal),
    PlainSerializer(
        lambda v: None if v is None else float(v),
        return_type=Optional[float],
        when_used="json",
    ),
]
