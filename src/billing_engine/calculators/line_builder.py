"""Line arithmetic and total composition for invoices."""

from __future__ import annotations

from collections.abc import Iterable
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

from billing_engine.calculators.types import InvoiceTotals
from billing_engine.errors import ValidationError


class InvoiceLineBuilder:
    """Computes line amounts and invoice totals.

    Rounding:
    - USD to 2 decimals, once per line product
    - Subtotal is the exact sum of already-rounded line values
    - Totals are never taken from caller input
    """

    OUTPUT_PRECISION = Decimal("0.01")  # 2 decimal places for persistence
    ZERO = Decimal("0")

    @staticmethod
    def round_to_cents(amount: Decimal) -> Decimal:
        """Round amount to 2 decimal places (cents)."""
        return amount.quantize(InvoiceLineBuilder.OUTPUT_PRECISION, rounding=ROUND_HALF_UP)

    @staticmethod
    def to_decimal(field: str, value: Decimal | int | float | str) -> Decimal:
        """Coerce a numeric input to Decimal, rejecting non-numbers."""
        if isinstance(value, Decimal):
            result = value
        else:
            try:
                # str() avoids binary float artefacts (0.1 -> 0.1000000000000000055)
                result = Decimal(str(value))
            except (InvalidOperation, ValueError):
                raise ValidationError(field, f"'{value}' is not a number") from None
        if not result.is_finite():
            raise ValidationError(field, "must be a finite number")
        return result

    @classmethod
    def non_negative(cls, field: str, value: Decimal | int | float | str) -> Decimal:
        """Validate a value is >= 0."""
        result = cls.to_decimal(field, value)
        if result < 0:
            raise ValidationError(field, "must not be negative")
        return result

    @staticmethod
    def required_text(field: str, value: str | None) -> str:
        """Validate a required text field and strip surrounding whitespace."""
        if value is None or not value.strip():
            raise ValidationError(field, "is required")
        return value.strip()

    @classmethod
    def line_amount(cls, hours: Decimal, rate: Decimal) -> Decimal:
        """hours × rate, rounded to cents."""
        return cls.round_to_cents(hours * rate)

    @classmethod
    def fee_total(cls, quantity: Decimal, unit_price: Decimal) -> Decimal:
        """quantity × unit price, rounded to cents."""
        return cls.round_to_cents(quantity * unit_price)

    @classmethod
    def compose_totals(
        cls,
        billed_amounts: Iterable[Decimal],
        manual_totals: Iterable[Decimal],
        fee_totals: Iterable[Decimal],
        discount: Decimal,
        clamp_discount: bool = True,
    ) -> InvoiceTotals:
        """Compose subtotal and total from the three charge sources.

        With clamp_discount the applied discount never exceeds the subtotal,
        so total >= 0. The stored discount itself is left untouched.
        """
        billed = sum(billed_amounts, cls.ZERO)
        manual = sum(manual_totals, cls.ZERO)
        fees = sum(fee_totals, cls.ZERO)
        subtotal = cls.round_to_cents(billed + manual + fees)

        applied = discount
        if clamp_discount:
            applied = min(discount, max(subtotal, cls.ZERO))
        applied = cls.round_to_cents(applied)

        return InvoiceTotals(
            billed=billed,
            manual=manual,
            fees=fees,
            subtotal=subtotal,
            discount_applied=applied,
            total=cls.round_to_cents(subtotal - applied),
        )
