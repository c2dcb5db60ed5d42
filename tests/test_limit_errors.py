"""Tests for the server limit-error parser."""
from app.schemas.order import LimitErrorReport, LimitKind
from app.schemas.pricing import FormMode, OrderKind, OrderLine
from app.services.limit_errors import (
    clean_message,
    map_to_field_errors,
    parse_limit_errors,
    resolve_submit_error,
)

MESSAGE = (
    "BAD_REQUEST: Item limit exceeded -> Cement: 120/100, 20: 5/4 "
    "| Rate limit exceeded -> Steel: 410/400 "
    "| Value limit exceeded -> 30: 9000/8000"
)

ROWS = [
    OrderLine(item_id=10, item_name="Cement"),
    OrderLine(item_id=20, item_name="Sand"),
    OrderLine(item_id=30, item_name="Steel"),
]


def test_clean_message_strips_prefix():
    assert clean_message("BAD_REQUEST: boom") == "boom"
    assert clean_message("boom") == "boom"


def test_parse_all_sections():
    report = parse_limit_errors(MESSAGE)

    assert report.matched is True
    assert [(v.kind, v.item_key, v.ratio) for v in report.violations] == [
        (LimitKind.ITEM, "Cement", "120/100"),
        (LimitKind.ITEM, "20", "5/4"),
        (LimitKind.RATE, "Steel", "410/400"),
        (LimitKind.VALUE, "30", "9000/8000"),
    ]


def test_phrase_matching_is_case_insensitive_and_skips_bad_pairs():
    report = parse_limit_errors("ITEM LIMIT EXCEEDED -> broken, Cement:1/0")

    assert report.matched is True
    assert [(v.item_key, v.ratio) for v in report.violations] == [("Cement", "1/0")]


def test_rows_match_by_name_then_item_id():
    report = parse_limit_errors(MESSAGE)

    errors = map_to_field_errors(report, ROWS, form_mode=FormMode.APPROVE_LEVEL_1)

    assert [(e.row_index, e.field, e.message) for e in errors] == [
        (0, "approved1Qty", "120/100"),
        (1, "approved1Qty", "5/4"),
        (2, "rate", "410/400"),
        (2, "amount", "9000/8000"),
    ]


def test_item_limit_targets_level_2_quantity():
    report = parse_limit_errors("Item limit exceeded -> Cement: 9/8")

    errors = map_to_field_errors(report, ROWS, form_mode=FormMode.APPROVE_LEVEL_2)

    assert [(e.row_index, e.field) for e in errors] == [(0, "approved2Qty")]


def test_item_limit_ignored_outside_approval():
    resolution = resolve_submit_error(MESSAGE, ROWS, FormMode.CREATE)

    assert resolution.matched is True
    assert {e.field for e in resolution.field_errors} == {"rate", "amount"}
    assert resolution.budget_error == clean_message(MESSAGE)
    assert resolution.toast_message is None


def test_unrecognised_message_becomes_toast():
    resolution = resolve_submit_error("Vendor not found", ROWS, FormMode.EDIT)

    assert resolution.matched is False
    assert resolution.field_errors == []
    assert resolution.toast_message == "Vendor not found"


def test_empty_message_uses_fallback_text():
    po = resolve_submit_error("", ROWS, FormMode.CREATE)
    wo = resolve_submit_error("", ROWS, FormMode.APPROVE_LEVEL_1, OrderKind.WORK_ORDER)

    assert po.toast_message == "Failed to create purchase order. Please try again."
    assert wo.toast_message == "Failed to edit work order. Please try again."


def test_phrase_without_pairs_still_matches():
    report = parse_limit_errors("BAD_REQUEST: Value limit exceeded")

    assert isinstance(report, LimitErrorReport)
    assert report.matched is True
    assert report.violations == []
    assert parse_limit_errors("Vendor not found") == LimitErrorReport()


def test_resolution_by_form_mode_keyword():
    resolution = resolve_submit_error(
        "Item limit exceeded -> 10: 3/2", ROWS, form_mode=FormMode.APPROVE_LEVEL_2, kind=OrderKind.WORK_ORDER
    )

    assert [(e.row_index, e.field, e.message) for e in resolution.field_errors] == [
        (0, "approved2Qty", "3/2"),
    ]
