"""
Booking price calculation.

Pure functions: given the same inputs they always produce the same quote,
and nothing here touches the database.
"""

from dataclasses import dataclass, field
from decimal import ROUND_HALF_UP, Decimal
from typing import List, Optional, Sequence

from budget_hotel.core.exceptions import ValidationError
from budget_hotel.models.base import DiscountType

CENT = Decimal("0.01")
ZERO = Decimal("0.00")


def quantize(amount: Decimal) -> Decimal:
    return Decimal(amount).quantize(CENT, rounding=ROUND_HALF_UP)


@dataclass(frozen=True)
class ServiceLine:
    """A priced add-on selection."""
    service_id: str
    unit_price: Decimal
    quantity: int = 1

    @property
    def line_total(self) -> Decimal:
        return self.unit_price * self.quantity


@dataclass(frozen=True)
class PromotionTerms:
    """The parts of a promotion that affect price."""
    discount_type: DiscountType
    value: Decimal
    code: Optional[str] = None


@dataclass(frozen=True)
class PriceQuote:
    room_total: Decimal
    services_total: Decimal
    subtotal: Decimal
    discount: Decimal
    total: Decimal
    nights: int
    lines: List[ServiceLine] = field(default_factory=list)


def compute_discount(subtotal: Decimal, promotion: Optional[PromotionTerms]) -> Decimal:
    """Discount for ``subtotal``, never more than the subtotal itself"""
    if promotion is None:
        return ZERO
    if promotion.discount_type == DiscountType.PERCENTAGE:
        discount = subtotal * promotion.value / Decimal(100)
    else:
        discount = promotion.value
    return quantize(min(max(discount, ZERO), subtotal))


def compute_total(
    base_price: Decimal,
    nights: int,
    service_lines: Sequence[ServiceLine] = (),
    promotion: Optional[PromotionTerms] = None,
) -> PriceQuote:
    """
    Price a stay.

    Args:
        base_price: Nightly rate of the room type
        nights: Number of nights, at least one
        service_lines: Selected add-on services
        promotion: Discount to apply to the whole subtotal

    Returns:
        PriceQuote with every amount rounded half-up to cents
    """
    if nights < 1:
        raise ValidationError("A stay must be at least one night",
                              {"nights": ["must be >= 1"]})
    for line in service_lines:
        if line.quantity < 1:
            raise ValidationError("Service quantity must be at least 1",
                                  {"quantity": ["must be >= 1"]})

    room_total = quantize(Decimal(base_price) * nights)
    services_total = quantize(sum((line.line_total for line in service_lines), ZERO))
    subtotal = room_total + services_total
    discount = compute_discount(subtotal, promotion)
    total = quantize(max(subtotal - discount, ZERO))

    return PriceQuote(
        room_total=room_total,
        services_total=services_total,
        subtotal=subtotal,
        discount=discount,
        total=total,
        nights=nights,
        lines=list(service_lines),
    )


def package_quote(package_total: Decimal, nights: int, service_lines: Sequence[ServiceLine] = ()) -> PriceQuote:
    """Packages sell at their fixed total; promotions do not combine with them"""
    total = quantize(package_total)
    return PriceQuote(
        room_total=total,
        services_total=ZERO,
        subtotal=total,
        discount=ZERO,
        total=total,
        nights=nights,
        lines=list(service_lines),
    )
