"""Pydantic schemas for indents and indent-to-order allocation."""
from datetime import date, datetime
from decimal import Decimal
from typing import Optional, List, Dict

from pydantic import Field, field_validator

from app.schemas.base import WireSchema, Amount, LenientDecimal, OptionalLenientDecimal
from app.schemas.pricing import OrderLine


# ==================== Indent Schemas (read-only input) ====================

class IndentItemPO(WireSchema):
    """Quantity of an indent line already booked on a purchase order."""
    id: Optional[int] = None
    ordered_qty: LenientDecimal = Decimal("0")
    purchase_order_detail_id: Optional[int] = None


class IndentLine(WireSchema):
    """One item row of an indent."""
    id: int
    indent_id: Optional[int] = None
    item_id: int
    item_name: Optional[str] = None
    remark: Optional[str] = None
    indent_qty: OptionalLenientDecimal = None
    approved1_qty: OptionalLenientDecimal = None
    approved2_qty: OptionalLenientDecimal = None  # Orderable cap
    indent_item_pos: List[IndentItemPO] = Field(default_factory=list, alias="indentItemPOs")


class Indent(WireSchema):
    """An indent (internal requisition) as returned by the bulk lookup."""
    id: int
    indent_no: Optional[str] = None
    indent_date: Optional[date] = None
    delivery_date: Optional[date] = None
    site_id: Optional[int] = None
    remarks: Optional[str] = None
    indent_items: List[IndentLine] = Field(default_factory=list)

    @field_validator('indent_date', 'delivery_date', mode='before')
    @classmethod
    def date_part_only(cls, v):
        # Lookups return ISO timestamps ("2024-01-01T00:00:00.000Z")
        if isinstance(v, str) and len(v) > 10:
            return v[:10]
        if isinstance(v, datetime):
            return v.date()
        return v


# ==================== Allocation Schemas ====================

class AllocationSplit(WireSchema):
    """Share of a merged order line booked against one indent line."""
    indent_item_id: int
    qty: Amount


class AllocationRequest(WireSchema):
    indents: List[Indent] = Field(default_factory=list)
    # Indent line id -> quantity already consumed; overrides indentItemPOs
    existing_allocations: Optional[Dict[int, LenientDecimal]] = None


class AllocationResult(WireSchema):
    lines: List[OrderLine] = Field(default_factory=list)
    allocation_map: Dict[int, List[AllocationSplit]] = Field(default_factory=dict)
    indent_ids: List[int] = Field(default_factory=list)
    site_id: Optional[int] = None
    delivery_date: Optional[date] = None

    @property
    def is_empty(self) -> bool:
        return not self.lines
