"""Echeancier regeneration - orchestrates parameter resolution, coupon computation and ledger replacement"""

import logging
from datetime import date
from typing import Dict

from echeancier_gateway.domain.coupons import calculate_subscription_coupons, round_money
from echeancier_gateway.domain.exceptions import TrancheNotFoundError
from echeancier_gateway.domain.models import (
    GeneratedSchedule,
    RegenerationResult,
    TrancheParameters,
    TrancheRecord,
)
from echeancier_gateway.domain.parameters import DEFAULT_DAY_COUNT_BASIS, resolve_tranche_parameters
from echeancier_gateway.domain.periods import POLICY_FALLBACK_ANNUAL
from echeancier_gateway.domain.schedule import final_maturity_date, generate_schedule

logger = logging.getLogger(__name__)


class EcheancierRegenerator:
    """
    Recompute and replace the pending coupon schedule of one tranche.

    Collaborators (duck-typed):
    - tranches: get_tranche(tranche_id, for_update), update_final_maturity(tranche_id, date)
    - subscriptions: get_subscriptions(tranche_id), update_coupon_amounts(id, gross, net),
      update_next_coupon_date(id, date)
    - ledger: get_paid_coupons(ids), delete_pending_coupons(ids), insert_coupons(coupons)

    The regenerator never commits. Callers run regenerate() inside one
    transaction and commit or roll back as a whole; it also assumes at most one
    regeneration per tranche at a time (get_tranche(for_update=True) is how the
    database repositories provide that).
    """

    def __init__(
        self,
        tranches,
        subscriptions,
        ledger,
        unknown_frequency_policy: str = POLICY_FALLBACK_ANNUAL,
        default_day_count_basis: int = DEFAULT_DAY_COUNT_BASIS,
    ):
        self.tranches = tranches
        self.subscriptions = subscriptions
        self.ledger = ledger
        self.unknown_frequency_policy = unknown_frequency_policy
        self.default_day_count_basis = default_day_count_basis

    def _load_parameters(self, tranche_id, for_update: bool) -> tuple[TrancheRecord, TrancheParameters, bool]:
        record = self.tranches.get_tranche(tranche_id, for_update=for_update)
        if record is None:
            raise TrancheNotFoundError(tranche_id)

        params, fell_back = resolve_tranche_parameters(
            record.tranche,
            record.project,
            unknown_frequency_policy=self.unknown_frequency_policy,
            default_day_count_basis=self.default_day_count_basis,
        )
        logger.info(
            "Tranche parameters resolved",
            extra={
                "step": "parameters_resolved",
                "tranche_id": str(tranche_id),
                "taux_nominal": str(params.nominal_rate),
                "periodicite_coupons": params.payment_frequency.value,
                "date_emission": params.issuance_date.isoformat(),
                "duree_mois": params.duration_months,
                "base_interet": params.day_count_basis,
                "extension_active": params.extension.active,
            },
        )
        return record, params, fell_back

    def preview(self, tranche_id) -> tuple[TrancheParameters, GeneratedSchedule, bool]:
        """Compute the schedule that regenerate() would write, without writing anything.

        Returns (parameters, schedule, frequency_fell_back).
        """
        _, params, fell_back = self._load_parameters(tranche_id, for_update=False)
        subscriptions = self.subscriptions.get_subscriptions(tranche_id)
        states = calculate_subscription_coupons(subscriptions, params)
        paid = self.ledger.get_paid_coupons([s.subscription_id for s in subscriptions]) if subscriptions else []
        return params, generate_schedule(params, states, paid), fell_back

    def regenerate(self, tranche_id) -> RegenerationResult:
        """
        Replace the tranche's pending coupons with a freshly computed schedule.

        Raises:
            TrancheNotFoundError: unknown tranche id
            ConfigurationError: parameters unresolvable (nothing written)
        Repository errors propagate unchanged.
        """
        record, params, fell_back = self._load_parameters(tranche_id, for_update=True)

        subscriptions = self.subscriptions.get_subscriptions(tranche_id)
        if not subscriptions:
            logger.info(
                "No subscriptions to process",
                extra={"step": "no_subscriptions", "tranche_id": str(tranche_id)},
            )
            return RegenerationResult(
                tranche_id=tranche_id,
                tranche_name=record.tranche_name,
                updated_subscriptions=0,
                deleted_pending_coupons=0,
                created_coupons=0,
                final_maturity_date=final_maturity_date(params),
                extension_active=params.extension.active,
                frequency_fallback=fell_back,
            )

        subscription_ids = [s.subscription_id for s in subscriptions]
        states = calculate_subscription_coupons(subscriptions, params)
        paid = self.ledger.get_paid_coupons(subscription_ids)
        schedule = generate_schedule(params, states, paid)

        for state in states:
            self.subscriptions.update_coupon_amounts(
                state.subscription_id,
                round_money(state.base_coupon_gross),
                round_money(state.base_coupon_net),
            )

        deleted = self.ledger.delete_pending_coupons(subscription_ids)
        created = self.ledger.insert_coupons(schedule.coupons) if schedule.coupons else 0

        self.tranches.update_final_maturity(tranche_id, schedule.final_maturity_date)

        next_dates: Dict[object, date] = {}
        for coupon in schedule.coupons:
            current = next_dates.get(coupon.subscription_id)
            if current is None or coupon.due_date < current:
                next_dates[coupon.subscription_id] = coupon.due_date
        for subscription_id in subscription_ids:
            self.subscriptions.update_next_coupon_date(subscription_id, next_dates.get(subscription_id))

        logger.info(
            "Echeancier regenerated",
            extra={
                "step": "regeneration_complete",
                "tranche_id": str(tranche_id),
                "deleted_pending_coupons": deleted,
                "created_coupons": created,
                "skipped_paid_coupons": schedule.skipped_paid,
                "final_maturity_date": schedule.final_maturity_date.isoformat(),
            },
        )

        return RegenerationResult(
            tranche_id=tranche_id,
            tranche_name=record.tranche_name,
            updated_subscriptions=len(states),
            deleted_pending_coupons=deleted,
            created_coupons=created,
            final_maturity_date=schedule.final_maturity_date,
            extension_active=params.extension.active,
            frequency_fallback=fell_back,
        )
