"""Tests for the submit payload builder."""
from decimal import Decimal

from app.schemas.order import SubmitPayloadRequest
from app.services.order_payload import build_submit_payload


def _request(**overrides):
    data = {
        "mode": "create",
        "kind": "purchaseOrder",
        "header": {
            "siteId": "5",
            "vendorId": "",
            "billingAddressId": 0,
            "paymentTermsInDays": "",
            "quotationNo": "Q-1",
        },
        "lines": [
            {"itemId": 10, "qty": 10, "rate": 100, "discountPercent": 10,
             "cgstPercent": 9, "sgstPercent": 9, "remark": "  "},
            {"itemId": "20", "qty": 3, "rate": "10.005", "remark": " ok "},
        ],
        "charges": {
            "transitInsuranceAmount": "250",
            "pfStatus": "EXCLUSIVE",
            "pfCharges": "EXCLUSIVE",
        },
    }
    data.update(overrides)
    return SubmitPayloadRequest.model_validate(data)


def test_create_payload_header_and_totals():
    payload = build_submit_payload(_request())

    assert payload["siteId"] == 5
    assert payload["vendorId"] is None
    assert payload["billingAddressId"] is None
    assert "paymentTermsInDays" not in payload
    assert payload["quotationNo"] == "Q-1"
    assert payload["amount"] == Decimal("386.22")
    assert payload["totalCgstAmount"] == Decimal("8.10")
    assert payload["totalSgstAmount"] == Decimal("8.10")
    assert payload["totalIgstAmount"] == Decimal("0.00")
    assert payload["amountInWords"].startswith("Rupees ")
    assert "statusAction" not in payload


def test_create_payload_lines():
    items = build_submit_payload(_request())["purchaseOrderItems"]

    assert items[0]["remark"] is None
    assert items[0]["disAmt"] == Decimal("10.00")
    assert items[0]["amount"] == Decimal("106.20")
    assert items[1]["itemId"] == 20
    assert items[1]["remark"] == "ok"
    assert items[1]["amount"] == Decimal("30.02")
    assert "id" not in items[0]
    assert "orderedQty" not in items[0]


def test_charge_fields_keep_wire_shape():
    payload = build_submit_payload(_request())

    assert payload["transitInsuranceStatus"] is None
    assert payload["transitInsuranceAmount"] == "250"
    assert payload["pfStatus"] == "EXCLUSIVE"
    assert payload["pfCharges"] == "EXCLUSIVE"
    assert payload["gstReverseStatus"] is None
    assert payload["gstReverseAmount"] is None


def test_charge_fields_are_normalised_before_sending():
    request = _request(charges={
        "transitInsuranceStatus": "manual",
        "transitInsuranceAmount": "EXCLUSIVE",
        "pfCharges": "1.5E+3",
        "gstReverseStatus": "notApplicable",
        "gstReverseAmount": "40",
    })

    payload = build_submit_payload(request)

    assert payload["transitInsuranceStatus"] is None
    assert payload["transitInsuranceAmount"] is None
    assert payload["pfStatus"] is None
    assert payload["pfCharges"] == "1500"
    assert payload["gstReverseStatus"] == "NOT_APPLICABLE"
    assert payload["gstReverseAmount"] == "NOT_APPLICABLE"
    assert payload["amount"] == Decimal("1636.22")


def test_level_2_approval_payload():
    request = _request(
        mode="approveLevel2",
        lines=[{"id": 7, "itemId": 10, "qty": 10, "approved1Qty": 8, "approved2Qty": 6, "rate": 10}],
        charges={},
        ignoreBudget=True,
    )

    payload = build_submit_payload(request)
    item = payload["purchaseOrderItems"][0]

    assert payload["statusAction"] == "approve2"
    assert payload["ignoreBudgetValidation"] is True
    assert item["id"] == 7
    assert item["orderedQty"] == 10
    assert item["approved1Qty"] == 8
    assert item["approved2Qty"] == 6
    assert item["qty"] == 6
    assert payload["amount"] == Decimal("60.00")


def test_level_1_approval_sends_approved1_qty():
    request = _request(
        mode="APPROVE_LEVEL_1",
        lines=[{"id": 3, "itemId": 10, "qty": 10, "approved1Qty": 4, "rate": 1}],
    )

    payload = build_submit_payload(request)
    item = payload["purchaseOrderItems"][0]

    assert payload["statusAction"] == "approve1"
    assert "ignoreBudgetValidation" not in payload
    assert item["approved1Qty"] == 4
    assert item["qty"] == 4
    assert "approved2Qty" not in item


def test_work_order_payload_has_no_discount_columns():
    payload = build_submit_payload(_request(kind="WORK_ORDER"))

    assert "purchaseOrderItems" not in payload
    item = payload["workOrderItems"][0]
    assert "disAmt" not in item
    assert "discountPercent" not in item
    assert item["amount"] == Decimal("1180.00")


def test_indent_allocations_are_sent():
    request = _request(
        indentIds=[1, 2],
        allocationMap={"10": [{"indentItemId": 11, "qty": 5}, {"indentItemId": 21, "qty": 5}]},
    )

    payload = build_submit_payload(request)

    assert payload["indentIds"] == [1, 2]
    assert [s["indentItemId"] for s in payload["indentAllocations"]["10"]] == [11, 21]


def test_edit_payload_keeps_line_id():
    request = _request(mode="EDIT", lines=[{"id": 42, "itemId": 10, "qty": 1, "rate": 5}])

    item = build_submit_payload(request)["purchaseOrderItems"][0]

    assert item["id"] == 42
