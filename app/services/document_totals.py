"""
Document Totals Service.

Aggregates priced lines into order-level totals and adds the three
document-level charges (transit insurance, P&F, GST reverse charge).

Wire compatibility:
- The order API stores each charge as a (status, amount) pair of strings.
- When the status is EXCLUSIVE / INCLUSIVE / NOT_APPLICABLE the amount
  field carries the status label itself and the charge adds nothing.
- Only a null status means "free entry": the amount string is a number.

Internally a charge is an AdditionalCharge(status, override_amount) where
status MANUAL stands for free entry. from_wire/to_wire convert between the
two shapes so callers never read the label-in-amount quirk directly.
"""
import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import Dict, Iterable, List, Optional, Tuple

from num2words import num2words

from app.core.decimal_utils import to_decimal, round2, ZERO
from app.schemas.pricing import (
    AdditionalChargesWire,
    ChargeStatus,
    DocumentTotals,
    FIXED_CHARGE_LABELS,
    FormMode,
    ItemTotals,
    LineMetrics,
    OrderKind,
    OrderLine,
)
from app.services.line_pricing import compute_line_metrics

logger = logging.getLogger(__name__)


# Charge key -> (status field, amount field) on AdditionalChargesWire
CHARGE_FIELDS: Dict[str, Tuple[str, str]] = {
    "transit_insurance": ("transit_insurance_status", "transit_insurance_amount"),
    "pf_charges": ("pf_status", "pf_charges"),
    "gst_reverse": ("gst_reverse_status", "gst_reverse_amount"),
}


@dataclass(frozen=True)
class AdditionalCharge:
    """A document-level charge with an explicit status and optional amount."""
    status: ChargeStatus
    override_amount: Optional[Decimal] = None

    @property
    def amount(self) -> Decimal:
        """Amount added to the grand total (only MANUAL charges count)."""
        if self.status == ChargeStatus.MANUAL and self.override_amount is not None:
            return self.override_amount
        return ZERO

    @classmethod
    def from_wire(cls, status: Optional[ChargeStatus], raw_amount: Optional[str]) -> "AdditionalCharge":
        if status is None or status == ChargeStatus.MANUAL:
            # A label left over from a fixed status is not an amount
            if not raw_amount or raw_amount in FIXED_CHARGE_LABELS:
                return cls(ChargeStatus.MANUAL, None)
            return cls(ChargeStatus.MANUAL, to_decimal(raw_amount))
        return cls(status, None)

    def to_wire(self) -> Tuple[Optional[str], Optional[str]]:
        """(status, amount) as the order API expects them."""
        if self.status == ChargeStatus.MANUAL:
            if self.override_amount is None:
                return None, None
            return None, format(self.override_amount, "f")
        # Fixed label is echoed into the amount field
        return self.status.value, self.status.value


def echo_status_change(status: Optional[ChargeStatus], current_amount: Optional[str]) -> Optional[str]:
    """
    New value of a charge's amount field after its status changed.

    - Fixed label selected: the amount field takes the label text
    - Back to free entry: a stale label in the amount field is cleared
    - Otherwise the typed amount is kept
    """
    if status is not None and status.value in FIXED_CHARGE_LABELS:
        return status.value
    if current_amount is not None and current_amount in FIXED_CHARGE_LABELS:
        return None
    return current_amount


def charges_from_wire(wire: Optional[AdditionalChargesWire]) -> Dict[str, AdditionalCharge]:
    wire = wire or AdditionalChargesWire()
    return {
        key: AdditionalCharge.from_wire(getattr(wire, status_field), getattr(wire, amount_field))
        for key, (status_field, amount_field) in CHARGE_FIELDS.items()
    }


def charges_to_wire(charges: Dict[str, AdditionalCharge]) -> AdditionalChargesWire:
    values = {}
    for key, (status_field, amount_field) in CHARGE_FIELDS.items():
        charge = charges.get(key, AdditionalCharge(ChargeStatus.MANUAL))
        values[status_field], values[amount_field] = charge.to_wire()
    return AdditionalChargesWire(**values)


def sum_item_totals(metrics: Iterable[LineMetrics]) -> ItemTotals:
    """Running sums with every addition rounded, so totals never drift."""
    amount = discount = taxable = cgst = sgst = igst = Decimal("0.00")
    for m in metrics:
        amount = round2(amount + m.line_total)
        discount = round2(discount + m.discount_amount)
        taxable = round2(taxable + m.taxable_amount)
        cgst = round2(cgst + m.cgst_amount)
        sgst = round2(sgst + m.sgst_amount)
        igst = round2(igst + m.igst_amount)
    return ItemTotals(
        amount=amount,
        discount_amount=discount,
        taxable_amount=taxable,
        cgst_amount=cgst,
        sgst_amount=sgst,
        igst_amount=igst,
    )


def grand_total(items_amount: Decimal, charges: Dict[str, AdditionalCharge]) -> Decimal:
    """Item total plus free-entry charges, rounded once."""
    extra = sum((c.amount for c in charges.values()), ZERO)
    return round2(items_amount + extra)


def amount_in_words(amount: Decimal) -> str:
    """Convert amount to words (Indian numbering system)."""
    amount = round2(amount)
    prefix = "Minus " if amount < 0 else ""
    amount = abs(amount)
    rupees = int(amount)
    paise = int((amount - rupees) * 100)

    try:
        words = num2words(rupees, lang='en_IN').replace(",", "")
    except OverflowError:
        return f"{prefix}INR {amount:,.2f}"
    result = f"{prefix}Rupees {words.title()} Only"

    if paise > 0:
        paise_words = num2words(paise, lang='en_IN').replace(",", "")
        result = f"{prefix}Rupees {words.title()} and {paise_words.title()} Paise Only"

    return result


def compute_document_totals(
    lines: List[OrderLine],
    mode: FormMode = FormMode.CREATE,
    kind: OrderKind = OrderKind.PURCHASE_ORDER,
    charges: Optional[AdditionalChargesWire] = None,
) -> DocumentTotals:
    """Price every line and build the totals block shown under the grid."""
    metrics = [compute_line_metrics(line, mode, kind) for line in lines]
    items = sum_item_totals(metrics)
    parsed = charges_from_wire(charges)
    total = grand_total(items.amount, parsed)

    logger.debug(
        "Document totals: %d lines, items %s, grand total %s", len(metrics), items.amount, total
    )

    return DocumentTotals(
        lines=metrics,
        items=items,
        transit_insurance_amount=parsed["transit_insurance"].amount,
        pf_charges_amount=parsed["pf_charges"].amount,
        gst_reverse_amount=parsed["gst_reverse"].amount,
        grand_total=total,
        amount_in_words=amount_in_words(total),
    )
