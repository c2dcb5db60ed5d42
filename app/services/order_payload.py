"""
Order Submit Payload Builder.

Turns the form state (header, lines, charges) into the body sent to the
order create/update endpoints.

Per line:
- priced with the active quantity of the mode (see line_pricing)
- remark trimmed, empty becomes null
- approval modes also send the line id, the originally ordered qty and the
  approved qty of each level; qty is the approved qty

Header totals are running sums rounded at each addition. The payload amount
adds the free-entry additional charges on top of the item total.
"""
import logging
from decimal import Decimal
from typing import Any, Dict, List, Optional

from app.core.decimal_utils import to_decimal, round2
from app.core.enum_utils import get_enum_value
from app.schemas.indent import AllocationSplit
from app.schemas.order import OrderHeader, SubmitPayloadRequest, StatusAction
from app.schemas.pricing import (
    FormMode,
    LineMetrics,
    OrderKind,
    OrderLine,
)
from app.services.document_totals import (
    AdditionalCharge,
    amount_in_words,
    charges_from_wire,
    charges_to_wire,
    grand_total,
)
from app.services.line_pricing import compute_line_metrics

logger = logging.getLogger(__name__)


LINES_KEY = {
    OrderKind.PURCHASE_ORDER: "purchaseOrderItems",
    OrderKind.WORK_ORDER: "workOrderItems",
}

STATUS_ACTION_BY_MODE = {
    FormMode.APPROVE_LEVEL_1: StatusAction.APPROVE1,
    FormMode.APPROVE_LEVEL_2: StatusAction.APPROVE2,
}

HEADER_ID_FIELDS = [
    "siteId",
    "vendorId",
    "billingAddressId",
    "siteDeliveryAddressId",
    "paymentTermId",
]


def _optional_id(value: Any) -> Optional[int]:
    """Select values arrive as strings; empty or 0 means nothing selected."""
    if not value:
        return None
    number = to_decimal(value)
    return int(number) if number else None


def normalize_line(line: OrderLine, metrics: LineMetrics, mode: FormMode, kind: OrderKind) -> Dict[str, Any]:
    """One line of the submit payload."""
    remark = (line.remark or "").strip()
    item: Dict[str, Any] = {
        "itemId": line.item_id,
        "remark": remark or None,
        "qty": metrics.qty,
        "rate": metrics.rate,
    }
    if kind == OrderKind.PURCHASE_ORDER:
        item["discountPercent"] = metrics.discount_percent
    item.update({
        "cgstPercent": metrics.cgst_percent,
        "sgstPercent": metrics.sgst_percent,
        "igstPercent": metrics.igst_percent,
    })
    if kind == OrderKind.PURCHASE_ORDER:
        item["disAmt"] = metrics.discount_amount
    item.update({
        "cgstAmt": metrics.cgst_amount,
        "sgstAmt": metrics.sgst_amount,
        "igstAmt": metrics.igst_amount,
        "amount": metrics.line_total,
    })
    if line.indent_item_id is not None:
        item["indentItemId"] = line.indent_item_id

    if mode == FormMode.EDIT and line.id is not None:
        item["id"] = line.id
    elif mode.is_approval:
        item["id"] = line.id
        item["orderedQty"] = line.qty
        if mode == FormMode.APPROVE_LEVEL_1:
            item["approved1Qty"] = metrics.qty
        else:
            item["approved1Qty"] = line.approved1_qty
            item["approved2Qty"] = metrics.qty

    return item


def header_totals(items: List[Dict[str, Any]]) -> Dict[str, Decimal]:
    """Running totals over normalized lines."""
    totals = {
        "amount": Decimal("0.00"),
        "totalCgstAmount": Decimal("0.00"),
        "totalSgstAmount": Decimal("0.00"),
        "totalIgstAmount": Decimal("0.00"),
    }
    for item in items:
        totals["amount"] = round2(totals["amount"] + item["amount"])
        totals["totalCgstAmount"] = round2(totals["totalCgstAmount"] + item["cgstAmt"])
        totals["totalSgstAmount"] = round2(totals["totalSgstAmount"] + item["sgstAmt"])
        totals["totalIgstAmount"] = round2(totals["totalIgstAmount"] + item["igstAmt"])
    return totals


def _header_fields(header: OrderHeader) -> Dict[str, Any]:
    data = header.model_dump(by_alias=True)
    for key in HEADER_ID_FIELDS:
        data[key] = _optional_id(data.get(key))

    days = _optional_id(data.pop("paymentTermsInDays", None))
    if days is not None:
        data["paymentTermsInDays"] = days
    data["poStatus"] = data.get("poStatus") or None
    return data


def _charge_fields(charges: Dict[str, AdditionalCharge]) -> Dict[str, Any]:
    wire = charges_to_wire(charges)
    return {
        key: get_enum_value(value) or None
        for key, value in wire.model_dump(by_alias=True).items()
    }


def _allocations_payload(allocation_map: Dict[int, List[AllocationSplit]]) -> Dict[str, Any]:
    return {
        str(item_id): [split.model_dump(by_alias=True) for split in splits]
        for item_id, splits in allocation_map.items()
    }


def build_submit_payload(request: SubmitPayloadRequest) -> Dict[str, Any]:
    """
    Build the create/update body for a purchase or work order.

    Args:
        request: Form header, lines, charges and mode/kind

    Returns:
        Dict keyed the way the order API expects (camelCase)
    """
    mode, kind = request.mode, request.kind

    items = [
        normalize_line(line, compute_line_metrics(line, mode, kind), mode, kind)
        for line in request.lines
    ]
    totals = header_totals(items)
    charges = charges_from_wire(request.charges)
    final_amount = grand_total(totals["amount"], charges)

    payload = _header_fields(request.header)
    payload.update(_charge_fields(charges))
    payload.update({
        "amount": final_amount,
        "totalCgstAmount": totals["totalCgstAmount"],
        "totalSgstAmount": totals["totalSgstAmount"],
        "totalIgstAmount": totals["totalIgstAmount"],
        "amountInWords": amount_in_words(final_amount),
        LINES_KEY[kind]: items,
    })

    action = STATUS_ACTION_BY_MODE.get(mode)
    if action is not None:
        payload["statusAction"] = action.value
        if request.ignore_budget:
            payload["ignoreBudgetValidation"] = True

    if request.indent_ids:
        payload["indentIds"] = list(request.indent_ids)
        payload["indentAllocations"] = _allocations_payload(request.allocation_map or {})

    logger.debug(
        "Submit payload: kind=%s mode=%s, %d lines, amount %s",
        kind.value, mode.value, len(items), final_amount,
    )
    return payload
