"""Unit tests for the regeneration orchestrator with in-memory collaborators"""

import pytest
from datetime import date
from decimal import Decimal
from echeancier_gateway.domain.exceptions import (
    ConfigurationError,
    MissingTrancheParametersError,
    TrancheNotFoundError,
)
from echeancier_gateway.domain.models import (
    STATUS_PAID,
    STATUS_PENDING,
    CouponEcheance,
    PaidCoupon,
    SubscriptionInput,
    TrancheRecord,
    TrancheTerms,
)
from echeancier_gateway.domain.regeneration import EcheancierRegenerator


class FakeTranches:
    def __init__(self, records):
        self.records = records
        self.maturities = {}
        self.locked = []

    def get_tranche(self, tranche_id, for_update=False):
        if for_update:
            self.locked.append(tranche_id)
        return self.records.get(tranche_id)

    def update_final_maturity(self, tranche_id, maturity_date):
        self.maturities[tranche_id] = maturity_date


class FakeSubscriptions:
    def __init__(self, subscriptions):
        self.subscriptions = subscriptions
        self.amounts = {}
        self.next_dates = {}

    def get_subscriptions(self, tranche_id):
        return list(self.subscriptions)

    def update_coupon_amounts(self, subscription_id, gross, net):
        self.amounts[subscription_id] = (gross, net)

    def update_next_coupon_date(self, subscription_id, next_date):
        self.next_dates[subscription_id] = next_date


class FakeLedger:
    def __init__(self, rows=None):
        self.rows = list(rows or [])
        self.writes = 0

    def get_paid_coupons(self, subscription_ids):
        return [
            PaidCoupon(r.subscription_id, r.due_date)
            for r in self.rows
            if r.status == STATUS_PAID and r.subscription_id in subscription_ids
        ]

    def delete_pending_coupons(self, subscription_ids):
        self.writes += 1
        kept = [r for r in self.rows if r.status == STATUS_PAID or r.subscription_id not in subscription_ids]
        deleted = len(self.rows) - len(kept)
        self.rows = kept
        return deleted

    def insert_coupons(self, coupons):
        self.writes += 1
        self.rows.extend(coupons)
        return len(coupons)

    def pending(self):
        return sorted(
            ((r.subscription_id, r.due_date, r.gross_amount, r.net_amount) for r in self.rows if r.status == STATUS_PENDING),
            key=lambda row: (row[0], row[1]),
        )


def make_record(tranche: TrancheTerms | None = None, project: TrancheTerms | None = None) -> TrancheRecord:
    return TrancheRecord(
        tranche_id="t1",
        tranche_name="Tranche A",
        tranche=tranche or TrancheTerms(issuance_date=date(2024, 1, 1)),
        project=project
        or TrancheTerms(
            nominal_rate=Decimal("6"),
            payment_frequency="trimestrielle",
            duration_months=12,
            day_count_basis=360,
        ),
    )


def make_regenerator(record=None, subscriptions=None, ledger_rows=None):
    tranches = FakeTranches({"t1": record or make_record()})
    subs = FakeSubscriptions(
        subscriptions if subscriptions is not None else [SubscriptionInput("s1", Decimal("100000"), False)]
    )
    ledger = FakeLedger(ledger_rows)
    return EcheancierRegenerator(tranches, subs, ledger), tranches, subs, ledger


def test_regenerate_creates_schedule_and_reports_counts():
    regenerator, tranches, subs, ledger = make_regenerator()

    result = regenerator.regenerate("t1")

    assert result.tranche_name == "Tranche A"
    assert result.updated_subscriptions == 1
    assert result.deleted_pending_coupons == 0
    assert result.created_coupons == 4
    assert result.final_maturity_date == date(2025, 1, 1)
    assert result.extension_active is False
    assert tranches.maturities["t1"] == date(2025, 1, 1)
    assert tranches.locked == ["t1"]
    assert subs.amounts["s1"] == (Decimal("1500.00"), Decimal("1050.00"))
    assert subs.next_dates["s1"] == date(2024, 4, 1)


def test_regenerate_missing_rate_writes_nothing():
    record = make_record(project=TrancheTerms(payment_frequency="trimestrielle", duration_months=12))
    regenerator, tranches, subs, ledger = make_regenerator(record=record)

    with pytest.raises(MissingTrancheParametersError) as exc_info:
        regenerator.regenerate("t1")

    assert exc_info.value.missing_params == ["taux_nominal"]
    assert ledger.writes == 0
    assert subs.amounts == {}
    assert tranches.maturities == {}


def test_regenerate_unknown_tranche():
    regenerator, _, _, _ = make_regenerator()

    with pytest.raises(TrancheNotFoundError):
        regenerator.regenerate("missing")


def test_regenerate_without_subscriptions_is_a_no_op():
    regenerator, tranches, subs, ledger = make_regenerator(subscriptions=[])

    result = regenerator.regenerate("t1")

    assert result.updated_subscriptions == 0
    assert result.deleted_pending_coupons == 0
    assert result.created_coupons == 0
    assert ledger.writes == 0
    assert tranches.maturities == {}


def test_regenerate_twice_gives_identical_pending_set():
    paid = CouponEcheance("s1", date(2024, 4, 1), Decimal("1500.00"), Decimal("1050.00"), status=STATUS_PAID)
    regenerator, _, _, ledger = make_regenerator(ledger_rows=[paid])

    first = regenerator.regenerate("t1")
    pending_after_first = ledger.pending()
    second = regenerator.regenerate("t1")

    assert first.created_coupons == 3
    assert second.deleted_pending_coupons == 3
    assert second.created_coupons == 3
    assert ledger.pending() == pending_after_first
    # The paid row is still there, untouched, and is the only row for its date
    assert paid in ledger.rows
    assert [r for r in ledger.rows if r.due_date == date(2024, 4, 1)] == [paid]


def test_preview_does_not_write():
    regenerator, tranches, subs, ledger = make_regenerator()

    params, schedule, fell_back = regenerator.preview("t1")

    assert len(schedule.coupons) == 4
    assert params.nominal_rate == Decimal("6")
    assert fell_back is False
    assert ledger.writes == 0
    assert tranches.maturities == {}
    assert tranches.locked == []


def test_preview_reports_frequency_fallback():
    record = make_record(
        project=TrancheTerms(nominal_rate=Decimal("6"), payment_frequency="bimensuelle", duration_months=12)
    )
    regenerator, _, _, ledger = make_regenerator(record=record)

    params, schedule, fell_back = regenerator.preview("t1")

    assert fell_back is True
    assert schedule.total_payment_count == 1
    assert ledger.writes == 0


def test_regenerate_non_positive_duration_writes_nothing():
    record = make_record(tranche=TrancheTerms(issuance_date=date(2024, 1, 1), duration_months=-3))
    regenerator, tranches, subs, ledger = make_regenerator(record=record)

    with pytest.raises(ConfigurationError) as exc_info:
        regenerator.regenerate("t1")

    assert exc_info.value.missing_params == ["duree_mois"]
    assert ledger.writes == 0
    assert subs.amounts == {}
    assert tranches.maturities == {}
