"""Domain models - pure Python dataclasses representing business entities"""

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from enum import Enum
from fractions import Fraction
from typing import Any, List, Optional

# Coupon ledger statuses as stored in coupons_echeances.statut
STATUS_PENDING = "en_attente"
STATUS_PAID = "payé"


class PaymentFrequency(str, Enum):
    """Coupon payment frequency"""

    ANNUAL = "annuelle"
    SEMIANNUAL = "semestrielle"
    QUARTERLY = "trimestrielle"
    MONTHLY = "mensuelle"


@dataclass
class TrancheTerms:
    """Raw financial fields of a tranche or project record (any may be missing)"""

    nominal_rate: Optional[Decimal] = None
    payment_frequency: Optional[str] = None
    issuance_date: Optional[date] = None
    duration_months: Optional[int] = None
    day_count_basis: Optional[int] = None
    extension_possible: Optional[bool] = None
    extension_activated: Optional[bool] = None
    extension_months: Optional[int] = None
    step_up_rate: Optional[Decimal] = None


@dataclass
class TrancheRecord:
    """Tranche as read from the repository, with its parent project's terms joined"""

    tranche_id: Any
    tranche_name: str
    tranche: TrancheTerms
    project: TrancheTerms


@dataclass
class ExtensionClause:
    """Maturity extension (prorogation) with step-up rate"""

    possible: bool = False
    activated: bool = False
    extra_months: int = 0
    step_up_rate: Decimal = Decimal("0")

    @property
    def active(self) -> bool:
        return self.possible and self.activated


@dataclass
class TrancheParameters:
    """Effective financial configuration of one tranche"""

    nominal_rate: Decimal
    payment_frequency: PaymentFrequency
    issuance_date: date
    duration_months: int
    day_count_basis: int = 360
    extension: ExtensionClause = field(default_factory=ExtensionClause)

    @property
    def extra_months(self) -> int:
        return self.extension.extra_months if self.extension.active else 0

    @property
    def step_up_rate(self) -> Decimal:
        return self.extension.step_up_rate if self.extension.active else Decimal("0")

    @property
    def total_duration_months(self) -> int:
        return self.duration_months + self.extra_months


@dataclass
class SubscriptionInput:
    """Subscription data needed to compute coupons"""

    subscription_id: Any
    invested_amount: Decimal
    investor_is_corporate: bool


@dataclass
class SubscriptionCouponState:
    """Per-period coupon amounts for one subscription, unrounded"""

    subscription_id: Any
    invested_amount: Decimal
    investor_is_corporate: bool
    base_coupon_gross: Fraction
    base_coupon_net: Fraction
    extension_coupon_gross: Fraction
    extension_coupon_net: Fraction


@dataclass(frozen=True)
class PaidCoupon:
    """Already-paid ledger row, used only to avoid regenerating its date"""

    subscription_id: Any
    due_date: date


@dataclass
class CouponEcheance:
    """Single coupon payment obligation in the ledger"""

    subscription_id: Any
    due_date: date
    gross_amount: Decimal
    net_amount: Decimal
    status: str = STATUS_PENDING
    payment_index: int = 0
    in_extension: bool = False
    id: Any = None
    payment_date: Optional[date] = None
    paid_amount: Optional[Decimal] = None


@dataclass
class GeneratedSchedule:
    """Output of schedule generation for a whole tranche"""

    coupons: List[CouponEcheance]
    final_maturity_date: date
    base_payment_count: int
    total_payment_count: int
    skipped_paid: int = 0


@dataclass
class RegenerationResult:
    """Summary of one echeancier regeneration"""

    tranche_id: Any
    tranche_name: str
    updated_subscriptions: int
    deleted_pending_coupons: int
    created_coupons: int
    final_maturity_date: Optional[date]
    extension_active: bool
    frequency_fallback: bool = False
