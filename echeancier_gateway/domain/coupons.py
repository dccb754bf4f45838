"""Per-subscription coupon amounts (base and extension rates, withholding tax)"""

from decimal import ROUND_HALF_UP, Decimal
from fractions import Fraction
from typing import Iterable, List

from echeancier_gateway.domain.models import (
    SubscriptionCouponState,
    SubscriptionInput,
    TrancheParameters,
)
from echeancier_gateway.domain.periods import get_period_ratio

# Flat 30% withholding for physical persons; corporate investors receive gross
PHYSICAL_PERSON_NET_FACTOR = Fraction(7, 10)
CORPORATE_NET_FACTOR = Fraction(1)


def _as_fraction(value) -> Fraction:
    if isinstance(value, float):
        return Fraction(str(value))
    return Fraction(value)


def net_factor(investor_is_corporate: bool) -> Fraction:
    return CORPORATE_NET_FACTOR if investor_is_corporate else PHYSICAL_PERSON_NET_FACTOR


def period_coupon(invested_amount, annual_rate, period_ratio: Fraction) -> Fraction:
    """Gross coupon for one period: amount * rate% * period ratio"""
    annual_coupon = _as_fraction(invested_amount) * _as_fraction(annual_rate) / 100
    return annual_coupon * period_ratio


def calculate_coupon_amounts(
    subscription_id,
    invested_amount,
    nominal_rate,
    period_ratio: Fraction,
    investor_is_corporate: bool,
    step_up_rate=0,
) -> SubscriptionCouponState:
    """
    Compute base-rate and extension-rate coupons for one subscription.

    Extension amounts use nominal_rate + step_up_rate and are always computed;
    the schedule generator only uses them for periods past the base duration.
    Values stay exact; rounding happens when rows are persisted.
    """
    factor = net_factor(investor_is_corporate)
    base_gross = period_coupon(invested_amount, nominal_rate, period_ratio)
    extension_rate = _as_fraction(nominal_rate) + _as_fraction(step_up_rate)
    extension_gross = period_coupon(invested_amount, extension_rate, period_ratio)

    return SubscriptionCouponState(
        subscription_id=subscription_id,
        invested_amount=invested_amount,
        investor_is_corporate=investor_is_corporate,
        base_coupon_gross=base_gross,
        base_coupon_net=base_gross * factor,
        extension_coupon_gross=extension_gross,
        extension_coupon_net=extension_gross * factor,
    )


def calculate_subscription_coupons(
    subscriptions: Iterable[SubscriptionInput],
    params: TrancheParameters,
) -> List[SubscriptionCouponState]:
    """Coupon state for every subscription of a tranche, in input order"""
    ratio = get_period_ratio(params.payment_frequency, params.day_count_basis)
    return [
        calculate_coupon_amounts(
            subscription_id=sub.subscription_id,
            invested_amount=sub.invested_amount,
            nominal_rate=params.nominal_rate,
            period_ratio=ratio,
            investor_is_corporate=sub.investor_is_corporate,
            step_up_rate=params.step_up_rate,
        )
        for sub in subscriptions
    ]


def round_money(value) -> Decimal:
    """Round half-up to cents, e.g. Fraction(3001, 200) -> Decimal('15.01')"""
    amount = _as_fraction(value)
    exact = Decimal(amount.numerator) / Decimal(amount.denominator)
    return exact.quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)
