"""Coupon schedule (echeancier) generation"""

from datetime import date
from typing import Dict, Iterable, List, Set

from echeancier_gateway.domain.coupons import round_money
from echeancier_gateway.domain.models import (
    STATUS_PENDING,
    CouponEcheance,
    GeneratedSchedule,
    PaidCoupon,
    SubscriptionCouponState,
    TrancheParameters,
)
from echeancier_gateway.domain.periods import get_step_months
from echeancier_gateway.utils.date_utils import add_months, month_offsets


def _ceil_div(numerator: int, denominator: int) -> int:
    return -(-numerator // denominator)


def base_payment_count(params: TrancheParameters) -> int:
    return _ceil_div(params.duration_months, get_step_months(params.payment_frequency))


def total_payment_count(params: TrancheParameters) -> int:
    return _ceil_div(params.total_duration_months, get_step_months(params.payment_frequency))


def payment_dates(params: TrancheParameters) -> List[date]:
    """All coupon due dates, extension window included"""
    return month_offsets(
        params.issuance_date,
        get_step_months(params.payment_frequency),
        total_payment_count(params),
    )


def final_maturity_date(params: TrancheParameters) -> date:
    """Issuance date + total payments * step months (calendar months)"""
    step = get_step_months(params.payment_frequency)
    return add_months(params.issuance_date, total_payment_count(params) * step)


def _paid_dates_by_subscription(paid_coupons: Iterable[PaidCoupon]) -> Dict[object, Set[date]]:
    mapping: Dict[object, Set[date]] = {}
    for coupon in paid_coupons:
        mapping.setdefault(coupon.subscription_id, set()).add(coupon.due_date)
    return mapping


def generate_schedule(
    params: TrancheParameters,
    coupon_states: Iterable[SubscriptionCouponState],
    paid_coupons: Iterable[PaidCoupon] = (),
) -> GeneratedSchedule:
    """
    Build the pending coupon rows for every subscription of a tranche.

    Rules:
    - Payment i (1-based) is due issuance_date + i * step months
    - Payments past the base duration (i > base count) use extension amounts
    - A (subscription, date) pair that is already paid is skipped, so the paid
      row stays the only row for that date
    - Amounts are rounded to cents here, at persistence time

    Rows are ordered by subscription (input order), then due date.
    """
    base_count = base_payment_count(params)
    total_count = total_payment_count(params)
    dates = payment_dates(params)
    paid_by_subscription = _paid_dates_by_subscription(paid_coupons)

    coupons: List[CouponEcheance] = []
    skipped = 0
    for state in coupon_states:
        paid_dates = paid_by_subscription.get(state.subscription_id, set())
        for index, due_date in enumerate(dates, start=1):
            if due_date in paid_dates:
                skipped += 1
                continue

            in_extension = index > base_count
            gross = state.extension_coupon_gross if in_extension else state.base_coupon_gross
            net = state.extension_coupon_net if in_extension else state.base_coupon_net

            coupons.append(
                CouponEcheance(
                    subscription_id=state.subscription_id,
                    due_date=due_date,
                    gross_amount=round_money(gross),
                    net_amount=round_money(net),
                    status=STATUS_PENDING,
                    payment_index=index,
                    in_extension=in_extension,
                )
            )

    return GeneratedSchedule(
        coupons=coupons,
        final_maturity_date=final_maturity_date(params),
        base_payment_count=base_count,
        total_payment_count=total_count,
        skipped_paid=skipped,
    )
