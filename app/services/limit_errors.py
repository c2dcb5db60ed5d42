"""
Limit Error Parser.

The order API reports budget breaches as one message string, e.g.

    BAD_REQUEST: Item limit exceeded -> Cement: 120/100 | Rate limit exceeded -> 12: 410/400

Sections are separated by "|". A section is recognised by one of three
case-insensitive phrases, and the text after "->" is a comma separated list
of "name: ratio" pairs, where name is the item display name or the item id.

This module is the only place that reads that format. It turns the string
into LimitViolation records and maps them onto form rows; when nothing is
recognised the raw message is shown as a generic error instead.
"""
import logging
import re
from typing import Dict, List, Optional, Tuple

from app.schemas.order import (
    FieldError,
    LimitErrorReport,
    LimitKind,
    LimitViolation,
    SubmitErrorResolution,
)
from app.schemas.pricing import FormMode, OrderKind, OrderLine

logger = logging.getLogger(__name__)

_BAD_REQUEST_PREFIX = re.compile(r"^BAD_REQUEST:\s*", re.IGNORECASE)

LIMIT_PHRASES: List[Tuple[LimitKind, str]] = [
    (LimitKind.ITEM, "item limit exceeded"),
    (LimitKind.RATE, "rate limit exceeded"),
    (LimitKind.VALUE, "value limit exceeded"),
]

ORDER_KIND_LABELS = {
    OrderKind.PURCHASE_ORDER: "purchase order",
    OrderKind.WORK_ORDER: "work order",
}


def clean_message(message: str) -> str:
    """Drop the leading BAD_REQUEST: tag."""
    return _BAD_REQUEST_PREFIX.sub("", message or "", count=1)


def _parse_pairs(section: str) -> List[Tuple[str, str]]:
    arrow_idx = section.find("->")
    list_str = section[arrow_idx + 2:].strip() if arrow_idx >= 0 else section
    pairs = []
    for part in (p.strip() for p in list_str.split(",")):
        if not part:
            continue
        colon_idx = part.find(":")
        if colon_idx < 0:
            continue
        name = part[:colon_idx].strip()
        ratio = part[colon_idx + 1:].strip()
        if name and ratio:
            pairs.append((name, ratio))
    return pairs


def parse_limit_errors(message: str) -> LimitErrorReport:
    """
    Parse a server error message.

    Returns:
        LimitErrorReport - matched is True when any limit phrase was found,
        even if its list could not be parsed
    """
    cleaned = clean_message(message)
    report = LimitErrorReport()

    for section in (s.strip() for s in cleaned.split("|")):
        lower = section.lower()
        for kind, phrase in LIMIT_PHRASES:
            if phrase not in lower:
                continue
            report.matched = True
            for name, ratio in _parse_pairs(section):
                report.violations.append(LimitViolation(kind=kind, item_key=name, ratio=ratio))

    logger.debug(
        "Parsed limit errors: matched=%s, %d violations", report.matched, len(report.violations)
    )
    return report


def target_field(kind: LimitKind, form_mode: FormMode) -> Optional[str]:
    """Row field that carries the error for this kind in this mode."""
    if kind == LimitKind.ITEM:
        # Quantity limits only surface on the approval forms
        if form_mode == FormMode.APPROVE_LEVEL_2:
            return "approved2Qty"
        if form_mode == FormMode.APPROVE_LEVEL_1:
            return "approved1Qty"
        return None
    if kind == LimitKind.RATE:
        return "rate"
    return "amount"


def map_to_field_errors(
    report: LimitErrorReport,
    rows: List[OrderLine],
    form_mode: FormMode,
) -> List[FieldError]:
    """
    Attach each violation's ratio to the matching row.

    A row matches on its item display name first, then on its item id.
    A later pair for the same name replaces an earlier one.
    """
    by_kind: Dict[LimitKind, Dict[str, str]] = {}
    for v in report.violations:
        by_kind.setdefault(v.kind, {})[v.item_key] = v.ratio

    errors: List[FieldError] = []
    for kind, _ in LIMIT_PHRASES:
        name_to_ratio = by_kind.get(kind)
        field = target_field(kind, form_mode)
        if not name_to_ratio or field is None:
            continue
        for index, row in enumerate(rows):
            ratio = None
            if row.item_name:
                ratio = name_to_ratio.get(row.item_name)
            if not ratio and row.item_id:
                ratio = name_to_ratio.get(str(row.item_id))
            if ratio:
                errors.append(FieldError(row_index=index, field=field, message=ratio))
    return errors


def resolve_submit_error(
    message: str,
    rows: List[OrderLine],
    form_mode: FormMode,
    kind: OrderKind = OrderKind.PURCHASE_ORDER,
) -> SubmitErrorResolution:
    """
    Decide how the form reports a failed submit.

    - Limit phrases found: field errors on the rows plus a banner with the
      cleaned message
    - Nothing recognised: a generic toast with the raw message
    """
    report = parse_limit_errors(message)
    if report.matched:
        return SubmitErrorResolution(
            matched=True,
            violations=report.violations,
            field_errors=map_to_field_errors(report, rows, form_mode),
            budget_error=clean_message(message),
        )

    if message:
        logger.warning("Unrecognised order submit error: %s", message)
    action = "create" if form_mode == FormMode.CREATE else "edit"
    fallback = f"Failed to {action} {ORDER_KIND_LABELS[kind]}. Please try again."
    return SubmitErrorResolution(matched=False, toast_message=message or fallback)
