"""Pydantic schemas for order line pricing and document totals."""
from enum import Enum
from typing import Optional, List

from pydantic import Field, field_validator

from app.core.enum_utils import (
    normalize_to_uppercase,
    VALID_FORM_MODES,
    VALID_ORDER_KINDS,
    VALID_CHARGE_STATUSES,
)
from app.schemas.base import WireSchema, Amount, OptionalLenientDecimal


class FormMode(str, Enum):
    """Which form is editing the order; selects the active quantity field."""
    CREATE = "CREATE"
    EDIT = "EDIT"
    APPROVE_LEVEL_1 = "APPROVE_LEVEL_1"
    APPROVE_LEVEL_2 = "APPROVE_LEVEL_2"

    @property
    def is_approval(self) -> bool:
        return self in (FormMode.APPROVE_LEVEL_1, FormMode.APPROVE_LEVEL_2)


class OrderKind(str, Enum):
    PURCHASE_ORDER = "PURCHASE_ORDER"
    WORK_ORDER = "WORK_ORDER"


class ChargeStatus(str, Enum):
    """Status of a document-level additional charge."""
    EXCLUSIVE = "EXCLUSIVE"
    INCLUSIVE = "INCLUSIVE"
    NOT_APPLICABLE = "NOT_APPLICABLE"
    MANUAL = "MANUAL"  # Free entry; the amount is an explicit override


FIXED_CHARGE_LABELS = {
    ChargeStatus.EXCLUSIVE.value,
    ChargeStatus.INCLUSIVE.value,
    ChargeStatus.NOT_APPLICABLE.value,
}


# ==================== Order Line Schemas ====================

class OrderLine(WireSchema):
    """
    One item row of a purchase/work order as the form holds it.

    Numeric fields are lenient: anything non-numeric becomes 0, a missing
    quantity or price stays None.
    """
    id: Optional[int] = None  # Server id when editing/approving
    item_id: int = 0
    item_name: Optional[str] = None  # Display name, used to match server errors
    remark: Optional[str] = None
    qty: OptionalLenientDecimal = None
    approved1_qty: OptionalLenientDecimal = None
    approved2_qty: OptionalLenientDecimal = None
    rate: OptionalLenientDecimal = None
    discount_percent: OptionalLenientDecimal = None
    cgst_percent: OptionalLenientDecimal = None
    sgst_percent: OptionalLenientDecimal = None
    igst_percent: OptionalLenientDecimal = None
    indent_item_id: Optional[int] = None
    from_indent: bool = False

    @field_validator('item_id', mode='before')
    @classmethod
    def coerce_item_id(cls, v):
        if v is None or v == "":
            return 0
        try:
            return int(float(v))
        except (TypeError, ValueError):
            return 0


class LineMetrics(WireSchema):
    """Computed figures for one line, plus the inputs actually used."""
    qty: Amount
    rate: Amount
    discount_percent: Amount
    cgst_percent: Amount
    sgst_percent: Amount
    igst_percent: Amount
    discount_amount: Amount
    taxable_amount: Amount
    cgst_amount: Amount
    sgst_amount: Amount
    igst_amount: Amount
    line_total: Amount


class ModeKindSchema(WireSchema):
    """Request mixin carrying the form mode and the order kind."""
    mode: FormMode = FormMode.CREATE
    kind: OrderKind = OrderKind.PURCHASE_ORDER

    @field_validator('mode', mode='before')
    @classmethod
    def normalize_mode(cls, v):
        return normalize_to_uppercase(v, VALID_FORM_MODES)

    @field_validator('kind', mode='before')
    @classmethod
    def normalize_kind(cls, v):
        return normalize_to_uppercase(v, VALID_ORDER_KINDS)


class LineMetricsRequest(ModeKindSchema):
    line: OrderLine


# ==================== Additional Charges ====================

class AdditionalChargesWire(WireSchema):
    """
    Additional charges in the shape the order API stores them.

    When a status is one of the fixed labels the paired amount field holds
    the label text itself; only a null status means the amount is a number.
    """
    transit_insurance_status: Optional[ChargeStatus] = None
    transit_insurance_amount: Optional[str] = None
    pf_status: Optional[ChargeStatus] = None
    pf_charges: Optional[str] = None
    gst_reverse_status: Optional[ChargeStatus] = None
    gst_reverse_amount: Optional[str] = None

    @field_validator(
        'transit_insurance_status', 'pf_status', 'gst_reverse_status', mode='before'
    )
    @classmethod
    def normalize_status(cls, v):
        if v == "":
            return None
        return normalize_to_uppercase(v, VALID_CHARGE_STATUSES)

    @field_validator(
        'transit_insurance_amount', 'pf_charges', 'gst_reverse_amount', mode='before'
    )
    @classmethod
    def amount_as_text(cls, v):
        if v is None or isinstance(v, str):
            return v
        return str(v)


# ==================== Document Totals ====================

class ItemTotals(WireSchema):
    """Running sums over all lines, each addition rounded to 2 places."""
    amount: Amount
    discount_amount: Amount
    taxable_amount: Amount
    cgst_amount: Amount
    sgst_amount: Amount
    igst_amount: Amount


class DocumentTotals(WireSchema):
    lines: List[LineMetrics] = Field(default_factory=list)
    items: ItemTotals
    transit_insurance_amount: Amount
    pf_charges_amount: Amount
    gst_reverse_amount: Amount
    grand_total: Amount
    amount_in_words: str


class DocumentTotalsRequest(ModeKindSchema):
    lines: List[OrderLine] = Field(default_factory=list)
    charges: AdditionalChargesWire = Field(default_factory=AdditionalChargesWire)
