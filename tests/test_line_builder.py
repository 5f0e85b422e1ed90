"""Tests for invoice line arithmetic and total composition."""

from decimal import Decimal

import pytest

from billing_engine.calculators.line_builder import InvoiceLineBuilder
from billing_engine.errors import ValidationError


class TestInvoiceLineBuilder:
    """Test line amounts and totals."""

    def test_round_to_cents(self):
        """Test rounding to 2 decimal places."""
        assert InvoiceLineBuilder.round_to_cents(Decimal("10.125")) == Decimal("10.13")
        assert InvoiceLineBuilder.round_to_cents(Decimal("10.124")) == Decimal("10.12")
        assert InvoiceLineBuilder.round_to_cents(Decimal("10.135")) == Decimal("10.14")

    def test_line_amount(self):
        assert InvoiceLineBuilder.line_amount(Decimal("8"), Decimal("50")) == Decimal("400.00")
        assert InvoiceLineBuilder.line_amount(Decimal("1.25"), Decimal("33.33")) == Decimal("41.66")

    def test_fee_total(self):
        assert InvoiceLineBuilder.fee_total(Decimal("3"), Decimal("16.67")) == Decimal("50.01")

    def test_compose_totals_all_sources(self):
        """Billed 400 + manual 100 + fee 50 - discount 25 = 525."""
        totals = InvoiceLineBuilder.compose_totals(
            billed_amounts=[Decimal("400.00")],
            manual_totals=[Decimal("100.00")],
            fee_totals=[Decimal("50.00")],
            discount=Decimal("25.00"),
        )

        assert totals.billed == Decimal("400.00")
        assert totals.manual == Decimal("100.00")
        assert totals.fees == Decimal("50.00")
        assert totals.subtotal == Decimal("550.00")
        assert totals.discount_applied == Decimal("25.00")
        assert totals.total == Decimal("525.00")

    def test_compose_totals_empty(self):
        totals = InvoiceLineBuilder.compose_totals([], [], [], Decimal("0"))

        assert totals.subtotal == Decimal("0")
        assert totals.total == Decimal("0")

    def test_discount_clamped_to_subtotal(self):
        totals = InvoiceLineBuilder.compose_totals(
            [Decimal("80.00")], [], [], Decimal("100.00"), clamp_discount=True
        )

        assert totals.discount_applied == Decimal("80.00")
        assert totals.total == Decimal("0.00")

    def test_discount_unclamped_allows_negative_total(self):
        totals = InvoiceLineBuilder.compose_totals(
            [Decimal("80.00")], [], [], Decimal("100.00"), clamp_discount=False
        )

        assert totals.total == Decimal("-20.00")

    def test_non_negative_rejects_negative(self):
        with pytest.raises(ValidationError) as exc_info:
            InvoiceLineBuilder.non_negative("hours", Decimal("-1"))

        assert exc_info.value.field == "hours"

    def test_non_negative_coerces_numbers(self):
        assert InvoiceLineBuilder.non_negative("rate", 0.1) == Decimal("0.1")
        assert InvoiceLineBuilder.non_negative("rate", "12.50") == Decimal("12.50")
        assert InvoiceLineBuilder.non_negative("rate", 0) == Decimal("0")

    def test_to_decimal_rejects_garbage(self):
        with pytest.raises(ValidationError):
            InvoiceLineBuilder.to_decimal("quantity", "lots")
        with pytest.raises(ValidationError):
            InvoiceLineBuilder.to_decimal("quantity", Decimal("NaN"))

    def test_required_text(self):
        assert InvoiceLineBuilder.required_text("label", "  Travel ") == "Travel"
        with pytest.raises(ValidationError):
            InvoiceLineBuilder.required_text("label", "   ")
        with pytest.raises(ValidationError):
            InvoiceLineBuilder.required_text("label", None)
