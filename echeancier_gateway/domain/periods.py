"""Coupon frequency normalisation and period ratio tables"""

import logging
from fractions import Fraction
from typing import Dict, Optional, Tuple

from echeancier_gateway.domain.exceptions import UnknownFrequencyError
from echeancier_gateway.domain.models import PaymentFrequency

logger = logging.getLogger(__name__)

POLICY_FALLBACK_ANNUAL = "annual"
POLICY_REJECT = "reject"

_FREQUENCY_ALIASES: Dict[str, PaymentFrequency] = {
    "annuel": PaymentFrequency.ANNUAL,
    "annuelle": PaymentFrequency.ANNUAL,
    "annual": PaymentFrequency.ANNUAL,
    "semestriel": PaymentFrequency.SEMIANNUAL,
    "semestrielle": PaymentFrequency.SEMIANNUAL,
    "semiannual": PaymentFrequency.SEMIANNUAL,
    "trimestriel": PaymentFrequency.QUARTERLY,
    "trimestrielle": PaymentFrequency.QUARTERLY,
    "quarterly": PaymentFrequency.QUARTERLY,
    "mensuel": PaymentFrequency.MONTHLY,
    "mensuelle": PaymentFrequency.MONTHLY,
    "monthly": PaymentFrequency.MONTHLY,
}

STEP_MONTHS: Dict[PaymentFrequency, int] = {
    PaymentFrequency.ANNUAL: 12,
    PaymentFrequency.SEMIANNUAL: 6,
    PaymentFrequency.QUARTERLY: 3,
    PaymentFrequency.MONTHLY: 1,
}

# (days in period, days in year) per basis; ratios are kept exact
_PERIOD_DAYS: Dict[int, Dict[PaymentFrequency, Tuple[str, int]]] = {
    360: {
        PaymentFrequency.ANNUAL: ("360", 360),
        PaymentFrequency.SEMIANNUAL: ("180", 360),
        PaymentFrequency.QUARTERLY: ("90", 360),
        PaymentFrequency.MONTHLY: ("30", 360),
    },
    365: {
        PaymentFrequency.ANNUAL: ("365", 365),
        PaymentFrequency.SEMIANNUAL: ("182.5", 365),
        PaymentFrequency.QUARTERLY: ("91.25", 365),
        PaymentFrequency.MONTHLY: ("30.42", 365),
    },
}


def normalize_frequency(
    raw: Optional[str],
    policy: str = POLICY_FALLBACK_ANNUAL,
) -> Tuple[PaymentFrequency, bool]:
    """
    Map a stored frequency label to PaymentFrequency.

    Labels are matched case-insensitively in French or English.
    Unknown labels either fall back to annual (policy "annual", logged) or
    raise UnknownFrequencyError (policy "reject").

    Returns:
        (frequency, fell_back) where fell_back is True if the annual fallback was used
    """
    if isinstance(raw, PaymentFrequency):
        return raw, False

    key = (raw or "").strip().lower()
    frequency = _FREQUENCY_ALIASES.get(key)
    if frequency is not None:
        return frequency, False

    if policy == POLICY_REJECT:
        raise UnknownFrequencyError(str(raw))

    logger.warning(
        f"Unknown coupon frequency {raw!r}, using annual",
        extra={"step": "frequency_fallback", "frequency": raw},
    )
    return PaymentFrequency.ANNUAL, True


def get_period_ratio(frequency: PaymentFrequency, day_count_basis: int = 360) -> Fraction:
    """
    Fraction of the annual coupon paid each period.

    Basis 360: 1, 180/360, 90/360, 30/360
    Basis 365: 1, 182.5/365, 91.25/365, 30.42/365
    Any basis other than 365 uses the 360 table.
    """
    table = _PERIOD_DAYS[365 if day_count_basis == 365 else 360]
    period_days, year_days = table[frequency]
    return Fraction(period_days) / year_days


def get_step_months(frequency: PaymentFrequency) -> int:
    """Months between two coupon dates"""
    return STEP_MONTHS[frequency]
