"""
Site Budget Validation.

Checks requested order quantities against the site's BOQ budget.

For each requested item:
    available = budget qty - qty already ordered on other orders
A line breaches the budget when the item has no budget at all, or when the
requested qty exceeds what is available.

The breach list is rendered into the "Item limit exceeded -> ..." message
that order forms parse back into field errors (see limit_errors).
"""
import logging
from decimal import Decimal
from typing import Iterable, List, Mapping

from app.core.decimal_utils import to_decimal, round4, ZERO
from app.schemas.order import BudgetLine, BudgetQtyViolation

logger = logging.getLogger(__name__)

TOLERANCE = Decimal("1e-9")


def _violation_message(budget: Decimal, ordered: Decimal, available: Decimal) -> str:
    shown_available = max(ZERO, available)
    return f"{ordered:.2f}/{budget:.2f}, available:{shown_available:.2f}"


def check_budget_quantities(
    items: Iterable[BudgetLine],
    budget_qty_by_item: Mapping[int, Decimal],
    ordered_qty_by_item: Mapping[int, Decimal],
) -> List[BudgetQtyViolation]:
    """
    Compare requested quantities with the remaining site budget.

    Lines with a non-positive item id or quantity are ignored.
    """
    violations: List[BudgetQtyViolation] = []

    for line in items:
        requested = to_decimal(line.qty)
        if line.item_id <= 0 or requested <= 0:
            continue

        budget = to_decimal(budget_qty_by_item.get(line.item_id))
        ordered = to_decimal(ordered_qty_by_item.get(line.item_id))
        available = round4(budget - ordered)

        if budget <= 0 or requested > available + TOLERANCE:
            violations.append(
                BudgetQtyViolation(
                    item_id=line.item_id,
                    budget_qty=budget,
                    ordered_qty=ordered,
                    available_qty=available,
                    requested_qty=requested,
                    message=_violation_message(budget, ordered, available),
                )
            )

    if violations:
        logger.info("Budget check: %d item(s) over budget", len(violations))
    return violations


def format_budget_violations(violations: List[BudgetQtyViolation]) -> str:
    """Render violations as the API's bad-request message."""
    parts = [f"{v.item_id}: {v.message or 'Item limit exceeded'}" for v in violations]
    return f"Item limit exceeded -> {', '.join(parts)}"
