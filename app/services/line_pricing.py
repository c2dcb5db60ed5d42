"""
Line Pricing Service.

Computes discount, taxable value, CGST/SGST/IGST and line total for one
purchase-order or work-order line.

Calculation order (each step rounded half-up to 2 places before the next
step uses it):
1. base     = quantity × rate
2. discount = round2(base × discount% / 100)      (work orders: 0)
3. taxable  = round2(base − discount)
4. cgst/sgst/igst = round2(taxable × gst% / 100)
5. total    = round2(taxable + cgst + sgst + igst)

Example:
- 10 × ₹100, 10% discount, 9% CGST, 9% SGST
- discount ₹10.00, taxable ₹90.00, CGST ₹8.10, SGST ₹8.10, total ₹106.20

Inputs are never rejected here: junk coerces to 0 and out-of-range
percentages are computed as given. Range checks belong to request
validation at the API boundary.
"""
from decimal import Decimal
from typing import Optional

from app.core.decimal_utils import to_decimal, round2, ZERO
from app.schemas.pricing import FormMode, OrderKind, OrderLine, LineMetrics

HUNDRED = Decimal("100")


def active_quantity_field(mode: FormMode) -> str:
    """Name of the quantity field the given mode edits and prices."""
    if mode == FormMode.APPROVE_LEVEL_2:
        return "approved2_qty"
    if mode == FormMode.APPROVE_LEVEL_1:
        return "approved1_qty"
    return "qty"


def select_quantity(line: OrderLine, mode: FormMode) -> Decimal:
    """Quantity priced in this mode; missing or non-numeric is 0."""
    return to_decimal(getattr(line, active_quantity_field(mode)))


def compute_line_metrics(
    line: OrderLine,
    mode: FormMode = FormMode.CREATE,
    kind: OrderKind = OrderKind.PURCHASE_ORDER,
) -> LineMetrics:
    """Price a single line. Pure and idempotent."""
    qty = select_quantity(line, mode)
    rate = to_decimal(line.rate)
    discount_percent = to_decimal(line.discount_percent)
    cgst_percent = to_decimal(line.cgst_percent)
    sgst_percent = to_decimal(line.sgst_percent)
    igst_percent = to_decimal(line.igst_percent)

    base_amount = qty * rate
    if kind == OrderKind.WORK_ORDER:
        # Work orders are priced without a discount column
        discount_amount = Decimal("0.00")
    else:
        discount_amount = round2(base_amount * discount_percent / HUNDRED)
    taxable_amount = round2(base_amount - discount_amount)
    cgst_amount = round2(taxable_amount * cgst_percent / HUNDRED)
    sgst_amount = round2(taxable_amount * sgst_percent / HUNDRED)
    igst_amount = round2(taxable_amount * igst_percent / HUNDRED)
    line_total = round2(taxable_amount + cgst_amount + sgst_amount + igst_amount)

    return LineMetrics(
        qty=qty,
        rate=rate,
        discount_percent=discount_percent,
        cgst_percent=cgst_percent,
        sgst_percent=sgst_percent,
        igst_percent=igst_percent,
        discount_amount=discount_amount,
        taxable_amount=taxable_amount,
        cgst_amount=cgst_amount,
        sgst_amount=sgst_amount,
        igst_amount=igst_amount,
        line_total=line_total,
    )


def _first_present(*values: Optional[Decimal]) -> Decimal:
    for value in values:
        if value is not None:
            return to_decimal(value)
    return ZERO


def prepare_line_for_mode(line: OrderLine, mode: FormMode) -> OrderLine:
    """
    Seed the approval quantity when an approval form opens.

    - Level 1: approved1_qty defaults to the ordered qty
    - Level 2: approved2_qty defaults to approved1_qty, then qty
    Other modes return the line unchanged.
    """
    if mode == FormMode.APPROVE_LEVEL_1:
        return line.model_copy(
            update={"approved1_qty": _first_present(line.approved1_qty, line.qty)}
        )
    if mode == FormMode.APPROVE_LEVEL_2:
        return line.model_copy(
            update={
                "approved2_qty": _first_present(
                    line.approved2_qty, line.approved1_qty, line.qty
                )
            }
        )
    return line


def blank_line() -> OrderLine:
    """The single empty row a new order form starts with."""
    return OrderLine(
        item_id=0,
        qty=Decimal("1"),
        rate=ZERO,
        discount_percent=ZERO,
        cgst_percent=ZERO,
        sgst_percent=ZERO,
        igst_percent=ZERO,
    )
