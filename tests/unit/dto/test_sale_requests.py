"""Tests for sale request validation."""

from decimal import Decimal

import pytest
from pydantic import ValidationError

from boxstock.application.dto.requests import (
    AuditDecisionRequest,
    SaleAmendmentRequest,
    SaleRequest,
    StockCorrectionRequest,
)


def sale_payload(**overrides) -> dict:
    payload = {
        "product_id": "prd_test",
        "boxes_quantity": 1,
        "kg_quantity": "2.5",
        "box_price": "100",
        "kg_price": "10",
        "payment_method": "cash",
        "payment_status": "paid",
    }
    payload.update(overrides)
    return payload


class TestSaleRequest:
    def test_valid_paid_sale(self):
        request = SaleRequest.model_validate(sale_payload())
        assert request.kg_quantity == Decimal("2.5")

    def test_requires_a_quantity(self):
        with pytest.raises(ValidationError):
            SaleRequest.model_validate(sale_payload(boxes_quantity=0, kg_quantity="0"))

    def test_negative_quantity_rejected(self):
        with pytest.raises(ValidationError):
            SaleRequest.model_validate(sale_payload(boxes_quantity=-1))

    def test_unknown_payment_method_rejected(self):
        with pytest.raises(ValidationError):
            SaleRequest.model_validate(sale_payload(payment_method="cheque"))

    @pytest.mark.parametrize("status", ["pending", "partial"])
    def test_client_name_required_when_unpaid(self, status):
        with pytest.raises(ValidationError):
            SaleRequest.model_validate(
                sale_payload(payment_status=status, amount_paid="10", client_name="  ")
            )

    def test_partial_amount_bounded_by_total(self):
        with pytest.raises(ValidationError):
            SaleRequest.model_validate(
                sale_payload(payment_status="partial", amount_paid="125.01", client_name="Jo")
            )
        request = SaleRequest.model_validate(
            sale_payload(payment_status="partial", amount_paid="125", client_name="Jo")
        )
        assert request.amount_paid == Decimal("125")

    def test_blank_email_becomes_none(self):
        request = SaleRequest.model_validate(sale_payload(email_address="  "))
        assert request.email_address is None

    def test_invalid_email_rejected(self):
        with pytest.raises(ValidationError):
            SaleRequest.model_validate(sale_payload(email_address="not-an-email"))

    def test_long_email_rejected(self):
        with pytest.raises(ValidationError):
            SaleRequest.model_validate(sale_payload(email_address="a" * 150 + "@example.com"))


class TestSaleAmendmentRequest:
    def test_proposed_fields_exclude_reason(self):
        request = SaleAmendmentRequest(boxes_quantity=3, reason="Client wants more")
        assert request.proposed_fields() == {"boxes_quantity": 3}

    def test_needs_a_change(self):
        with pytest.raises(ValidationError):
            SaleAmendmentRequest(reason="nothing")

    def test_blank_contact_fields_become_none(self):
        request = SaleAmendmentRequest(
            client_name="   ", email_address=" ", phone="", reason="Client left no details"
        )
        assert request.client_name is None
        assert request.email_address is None
        assert request.phone is None
        assert request.proposed_fields() == {
            "client_name": None,
            "email_address": None,
            "phone": None,
        }

    def test_client_name_trimmed(self):
        request = SaleAmendmentRequest(client_name="  Amina ", reason="Name typo")
        assert request.client_name == "Amina"

    def test_reason_length(self):
        with pytest.raises(ValidationError):
            SaleAmendmentRequest(boxes_quantity=1, reason="x" * 501)
        with pytest.raises(ValidationError):
            SaleAmendmentRequest(boxes_quantity=1, reason="   ")


class TestOtherRequests:
    def test_decision_reason_trimmed(self):
        assert AuditDecisionRequest(approval_reason="  ok  ").approval_reason == "ok"

    def test_correction_must_adjust(self):
        with pytest.raises(ValidationError):
            StockCorrectionRequest(product_id="prd", correction_reason="recount")
        with pytest.raises(ValidationError):
            StockCorrectionRequest(product_id="prd", box_adjustment=1, correction_reason="no")
