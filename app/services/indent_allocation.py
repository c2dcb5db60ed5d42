"""
Indent Allocation Service.

Builds order lines from one or more approved indents, consuming indent
capacity oldest-first (FIFO).

Flow:
1. Flatten all indent lines, tagged with their indent's id and date
2. Sort by (indent date, indent id, indent line id)
3. Remaining capacity per line = max(0, approved2 qty - qty already ordered)
4. Skip lines with no remaining capacity
5. Merge by item: add remaining to the item's qty and record the
   {indent line, qty} split, keeping FIFO order inside the item
6. Remark: copied when a single indent fed the item, blank when several did

Example:
- Indent A (1 Jan): item X, 5 remaining
- Indent B (2 Jan): item X, 5 remaining
- Result: one line for X with qty 10, splits [A-line: 5, B-line: 5]

The splits are sent back on submit so the server can book the ordered
quantity against each source indent line.
"""
import logging
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from typing import Any, Dict, Iterable, List, Mapping, Optional, Set

from app.core.decimal_utils import to_decimal, ZERO
from app.schemas.indent import (
    AllocationResult,
    AllocationSplit,
    Indent,
    IndentLine,
)
from app.schemas.pricing import OrderLine

logger = logging.getLogger(__name__)


class IndentAllocationError(Exception):
    """Raised when an allocation request cannot be served."""
    pass


@dataclass(frozen=True)
class _QueuedLine:
    indent_id: int
    indent_date: Optional[date]
    line: IndentLine

    @property
    def fifo_key(self):
        # Undated indents queue after dated ones
        return (
            self.indent_date is None,
            self.indent_date or date.min,
            self.indent_id,
            self.line.id,
        )


@dataclass
class _MergedItem:
    item_id: int
    item_name: Optional[str]
    remark: str
    qty: Decimal = ZERO
    splits: List[AllocationSplit] = field(default_factory=list)
    indent_ids: Set[int] = field(default_factory=set)


def validate_indent_ids(ids: Iterable[Any], max_ids: int) -> List[int]:
    """
    Clean a list of selected indent ids.

    Drops non-numeric and non-positive ids and duplicates (first one wins).

    Raises:
        IndentAllocationError: nothing left, or more than max_ids ids
    """
    cleaned: List[int] = []
    for raw in ids or []:
        try:
            value = int(str(raw).strip())
        except (TypeError, ValueError):
            continue
        if value > 0 and value not in cleaned:
            cleaned.append(value)

    if not cleaned:
        raise IndentAllocationError("ids is required")
    if len(cleaned) > max_ids:
        raise IndentAllocationError(f"Too many ids (max {max_ids})")
    return cleaned


def remaining_capacity(line: IndentLine, consumed: Optional[Decimal] = None) -> Decimal:
    """
    Quantity of an indent line still available to order.

    Args:
        line: Indent line with its approved2 cap and prior PO bookings
        consumed: Already-ordered qty; when None it is summed from indentItemPOs
    """
    cap = to_decimal(line.approved2_qty)
    if consumed is None:
        consumed = sum((to_decimal(po.ordered_qty) for po in line.indent_item_pos), ZERO)
    return max(ZERO, cap - to_decimal(consumed))


def fifo_queue(indents: List[Indent]) -> List[_QueuedLine]:
    """All indent lines in allocation order."""
    queued = [
        _QueuedLine(indent_id=indent.id, indent_date=indent.indent_date, line=line)
        for indent in indents
        for line in indent.indent_items
    ]
    return sorted(queued, key=lambda q: q.fifo_key)


def resolve_site_id(indents: List[Indent]) -> Optional[int]:
    """Site to pre-fill: only when every indent points at the same site."""
    sites = {indent.site_id for indent in indents}
    if len(sites) == 1:
        return next(iter(sites))
    return None


def resolve_delivery_date(indents: List[Indent]) -> Optional[date]:
    """Delivery date to pre-fill: only for a single indent."""
    if len(indents) == 1:
        return indents[0].delivery_date
    return None


def unique_indents(indents: List[Indent]) -> List[Indent]:
    """Drop repeated indents (same id), keeping the first one."""
    unique: List[Indent] = []
    seen: Set[int] = set()
    for indent in indents:
        if indent.id in seen:
            logger.warning("Indent %s listed more than once; using the first copy", indent.id)
            continue
        seen.add(indent.id)
        unique.append(indent)
    return unique


def allocate_from_indents(
    indents: List[Indent],
    existing_allocations: Optional[Mapping[int, Decimal]] = None,
) -> AllocationResult:
    """
    Merge the remaining capacity of the given indents into order lines.

    Each indent counts once even when it is passed several times, so a
    line's capacity is never booked twice.

    Returns an empty result (no lines) when nothing is left to order; the
    caller keeps its default blank line in that case.
    """
    indents = unique_indents(indents)
    existing_allocations = existing_allocations or {}
    merged: Dict[int, _MergedItem] = {}

    for queued in fifo_queue(indents):
        line = queued.line
        remaining = remaining_capacity(line, existing_allocations.get(line.id))
        if remaining <= 0:
            continue

        item = merged.get(line.item_id)
        if item is None:
            item = _MergedItem(
                item_id=line.item_id,
                item_name=line.item_name,
                remark=(line.remark or "").strip(),
            )
            merged[line.item_id] = item

        item.qty += remaining
        item.splits.append(AllocationSplit(indent_item_id=line.id, qty=remaining))
        item.indent_ids.add(queued.indent_id)

    lines: List[OrderLine] = []
    allocation_map: Dict[int, List[AllocationSplit]] = {}
    for item in merged.values():
        # Provenance is ambiguous once two indents feed the same item
        remark = item.remark if len(item.indent_ids) == 1 else ""
        lines.append(
            OrderLine(
                item_id=item.item_id,
                item_name=item.item_name,
                remark=remark,
                qty=item.qty,
                indent_item_id=item.splits[0].indent_item_id if len(item.splits) == 1 else None,
                from_indent=True,
            )
        )
        allocation_map[item.item_id] = list(item.splits)

    contributing = [
        indent for indent in indents
        if any(indent.id in item.indent_ids for item in merged.values())
    ]
    indent_ids = [indent.id for indent in indents]

    logger.debug(
        "Indent allocation: %d indents, %d merged lines", len(indents), len(lines)
    )

    return AllocationResult(
        lines=lines,
        allocation_map=allocation_map,
        indent_ids=indent_ids,
        site_id=resolve_site_id(contributing) if contributing else None,
        delivery_date=resolve_delivery_date(indents) if lines else None,
    )
