from decimal import Decimal

import pytest

from budget_hotel.core.exceptions import ValidationError
from budget_hotel.models.base import DiscountType
from budget_hotel.services.pricing import (
    PromotionTerms,
    ServiceLine,
    compute_discount,
    compute_total,
    package_quote,
)


def test_room_only_total_is_rate_times_nights():
    quote = compute_total(Decimal("100.00"), 3)

    assert quote.room_total == Decimal("300.00")
    assert quote.services_total == Decimal("0.00")
    assert quote.discount == Decimal("0.00")
    assert quote.total == Decimal("300.00")
    assert quote.nights == 3


def test_percentage_promotion_discounts_whole_subtotal():
    lines = [ServiceLine(service_id="svc-1", unit_price=Decimal("15.00"), quantity=2)]
    promo = PromotionTerms(DiscountType.PERCENTAGE, Decimal("10"), "SAVE10")

    quote = compute_total(Decimal("100.00"), 3, lines, promo)

    assert quote.services_total == Decimal("30.00")
    assert quote.subtotal == Decimal("330.00")
    assert quote.discount == Decimal("33.00")
    assert quote.total == Decimal("297.00")


def test_fixed_discount_never_exceeds_subtotal():
    promo = PromotionTerms(DiscountType.FIXED_AMOUNT, Decimal("500.00"), "BIGONE")

    quote = compute_total(Decimal("80.00"), 2, promotion=promo)

    assert quote.discount == Decimal("160.00")
    assert quote.total == Decimal("0.00")


def test_amounts_round_half_up_to_cents():
    promo = PromotionTerms(DiscountType.PERCENTAGE, Decimal("12.5"), "ODD")

    assert compute_discount(Decimal("99.99"), promo) == Decimal("12.50")


def test_zero_nights_rejected():
    with pytest.raises(ValidationError):
        compute_total(Decimal("100.00"), 0)


def test_service_quantity_must_be_positive():
    lines = [ServiceLine(service_id="svc-1", unit_price=Decimal("5.00"), quantity=0)]
    with pytest.raises(ValidationError):
        compute_total(Decimal("100.00"), 1, lines)


def test_package_quote_uses_fixed_total():
    quote = package_quote(Decimal("450"), 2)

    assert quote.total == Decimal("450.00")
    assert quote.discount == Decimal("0.00")
