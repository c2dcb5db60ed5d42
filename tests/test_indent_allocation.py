"""Tests for FIFO indent allocation."""
from datetime import date
from decimal import Decimal

import pytest

from app.services.indent_allocation import (
    IndentAllocationError,
    allocate_from_indents,
    fifo_queue,
    remaining_capacity,
    validate_indent_ids,
)
from tests.factories import indent_line, make_indent


def test_same_item_from_two_indents_is_merged_oldest_first(indent_a, indent_b):
    result = allocate_from_indents([indent_b, indent_a])

    by_item = {line.item_id: line for line in result.lines}
    assert by_item[10].qty == Decimal("10")
    assert [s.indent_item_id for s in result.allocation_map[10]] == [11, 21]
    assert [s.qty for s in result.allocation_map[10]] == [Decimal("5"), Decimal("5")]


def test_remaining_capacity_subtracts_existing_orders(indent_a, indent_b):
    result = allocate_from_indents([indent_a, indent_b])

    by_item = {line.item_id: line for line in result.lines}
    assert by_item[20].qty == Decimal("3")
    # Item 30 is fully ordered already
    assert 30 not in by_item
    assert 30 not in result.allocation_map


def test_remark_cleared_when_several_indents_contribute(indent_a, indent_b):
    result = allocate_from_indents([indent_a, indent_b])

    by_item = {line.item_id: line for line in result.lines}
    assert by_item[10].remark == ""


def test_single_indent_keeps_remark_and_delivery_date(indent_a):
    result = allocate_from_indents([indent_a])

    by_item = {line.item_id: line for line in result.lines}
    assert by_item[10].remark == "urgent"
    assert by_item[10].indent_item_id == 11
    assert by_item[10].from_indent is True
    assert result.delivery_date == date(2024, 1, 15)
    assert result.site_id == 1


def test_multiple_indents_leave_delivery_date_blank(indent_a, indent_b):
    result = allocate_from_indents([indent_a, indent_b])

    assert result.delivery_date is None
    assert result.site_id == 1
    assert result.indent_ids == [1, 2]


def test_site_not_filled_when_sites_differ(indent_a):
    other = make_indent(3, "2024-01-03", [indent_line(31, 40, 2)], site_id=9)

    result = allocate_from_indents([indent_a, other])

    assert result.site_id is None


def test_site_ignores_indents_that_contribute_nothing(indent_a):
    exhausted = make_indent(3, "2024-01-03", [indent_line(31, 40, 2, ordered=[2])], site_id=9)

    result = allocate_from_indents([indent_a, exhausted])

    assert result.site_id == 1


def test_no_capacity_gives_empty_result():
    indent = make_indent(5, "2024-02-01", [indent_line(51, 10, 4, ordered=[4])])

    result = allocate_from_indents([indent])

    assert result.is_empty
    assert result.allocation_map == {}
    assert result.delivery_date is None


def test_existing_allocations_override_indent_pos(indent_a):
    result = allocate_from_indents([indent_a], existing_allocations={11: Decimal("5")})

    assert [line.item_id for line in result.lines] == [20]


def test_undated_indents_queue_last(indent_a):
    undated = make_indent(0, None, [indent_line(1, 10, 1)])

    queue = fifo_queue([undated, indent_a])

    assert [q.indent_id for q in queue] == [1, 1, 0]


def test_remaining_capacity_never_negative():
    line = make_indent(1, "2024-01-01", [indent_line(1, 10, 2, ordered=[5])]).indent_items[0]

    assert remaining_capacity(line) == 0


def test_validate_indent_ids_cleans_input():
    assert validate_indent_ids(["3", 3, "x", -1, 4, None], max_ids=50) == [3, 4]


def test_validate_indent_ids_rejects_empty_and_too_many():
    with pytest.raises(IndentAllocationError, match="ids is required"):
        validate_indent_ids([], max_ids=50)
    with pytest.raises(IndentAllocationError, match=r"Too many ids \(max 50\)"):
        validate_indent_ids(range(1, 52), max_ids=50)


def test_repeated_indent_is_allocated_once(indent_a):
    result = allocate_from_indents([indent_a, indent_a])

    by_item = {line.item_id: line for line in result.lines}
    assert by_item[10].qty == Decimal("5")
    assert [s.indent_item_id for s in result.allocation_map[10]] == [11]
    assert by_item[10].indent_item_id == 11
    assert result.indent_ids == [1]
    assert result.delivery_date == date(2024, 1, 15)


def test_same_day_indents_break_ties_on_indent_then_line_id():
    newer_id = make_indent(7, "2024-03-01", [indent_line(71, 10, 1)])
    older_id = make_indent(3, "2024-03-01T00:00:00Z", [
        indent_line(32, 10, 2),
        indent_line(31, 10, 4),
    ])

    result = allocate_from_indents([newer_id, older_id])

    splits = result.allocation_map[10]
    assert [s.indent_item_id for s in splits] == [31, 32, 71]
    assert [s.qty for s in splits] == [Decimal("4"), Decimal("2"), Decimal("1")]
    assert result.lines[0].qty == Decimal("7")
    assert result.indent_ids == [7, 3]
