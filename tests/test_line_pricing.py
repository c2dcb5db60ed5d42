"""Tests for line pricing."""
from decimal import Decimal

from app.schemas.pricing import FormMode, OrderKind, OrderLine
from app.services.line_pricing import (
    blank_line,
    compute_line_metrics,
    prepare_line_for_mode,
    select_quantity,
)


def test_discounted_line_with_cgst_sgst():
    line = OrderLine(qty=10, rate=100, discount_percent=10, cgst_percent=9, sgst_percent=9)

    m = compute_line_metrics(line)

    assert m.discount_amount == Decimal("10.00")
    assert m.taxable_amount == Decimal("90.00")
    assert m.cgst_amount == Decimal("8.10")
    assert m.sgst_amount == Decimal("8.10")
    assert m.igst_amount == Decimal("0.00")
    assert m.line_total == Decimal("106.20")


def test_half_up_rounding():
    line = OrderLine(qty=3, rate="10.005")

    m = compute_line_metrics(line)

    assert m.taxable_amount == Decimal("30.02")
    assert m.line_total == Decimal("30.02")


def test_junk_inputs_coerce_to_zero():
    line = OrderLine(qty="abc", rate=None, discount_percent="", cgst_percent="x")

    m = compute_line_metrics(line)

    assert m.qty == 0
    assert m.line_total == Decimal("0.00")


def test_huge_quantities_still_price():
    m = compute_line_metrics(OrderLine(qty="1e30", rate=1, cgst_percent=9))

    assert m.taxable_amount == Decimal("1e30")
    assert m.cgst_amount == Decimal("9e28")
    assert m.line_total == Decimal("1.09e30")
    assert m.line_total.as_tuple().exponent == -2


def test_out_of_range_inputs_coerce_to_zero():
    m = compute_line_metrics(OrderLine(qty="1e999999", rate="1e999999"))

    assert m.qty == 0
    assert m.line_total == Decimal("0.00")


def test_quantity_selected_by_mode():
    line = OrderLine(qty=5, approved1_qty=4, approved2_qty=3, rate=1)

    assert select_quantity(line, FormMode.CREATE) == 5
    assert select_quantity(line, FormMode.EDIT) == 5
    assert select_quantity(line, FormMode.APPROVE_LEVEL_1) == 4
    assert select_quantity(line, FormMode.APPROVE_LEVEL_2) == 3
    assert compute_line_metrics(line, FormMode.APPROVE_LEVEL_2).line_total == Decimal("3.00")


def test_work_order_ignores_discount():
    line = OrderLine(qty=2, rate=50, discount_percent=10, igst_percent=18)

    m = compute_line_metrics(line, kind=OrderKind.WORK_ORDER)

    assert m.discount_amount == Decimal("0.00")
    assert m.taxable_amount == Decimal("100.00")
    assert m.igst_amount == Decimal("18.00")
    assert m.line_total == Decimal("118.00")


def test_percent_over_hundred_is_not_clamped():
    line = OrderLine(qty=1, rate=100, discount_percent=150)

    m = compute_line_metrics(line)

    assert m.discount_amount == Decimal("150.00")
    assert m.taxable_amount == Decimal("-50.00")


def test_pricing_is_idempotent():
    line = OrderLine(qty="7", rate="12.345", discount_percent="2.5", cgst_percent=6, sgst_percent=6)

    assert compute_line_metrics(line) == compute_line_metrics(line)


def test_prepare_line_seeds_approval_quantities():
    line = OrderLine(qty=8)

    level1 = prepare_line_for_mode(line, FormMode.APPROVE_LEVEL_1)
    level2 = prepare_line_for_mode(OrderLine(qty=8, approved1_qty=6), FormMode.APPROVE_LEVEL_2)

    assert level1.approved1_qty == 8
    assert level2.approved2_qty == 6
    assert prepare_line_for_mode(line, FormMode.CREATE) is line


def test_blank_line_defaults():
    line = blank_line()

    assert line.item_id == 0
    assert line.qty == 1
    assert compute_line_metrics(line).line_total == Decimal("0.00")
