"""Data access layer for tranches, subscriptions and the coupon ledger"""

import uuid
from datetime import date
from decimal import Decimal
from typing import Iterable, List, Optional
from sqlalchemy.orm import Session
from echeancier_gateway.infrastructure.database.models import (
    CouponEcheanceRow,
    Investisseur,
    Projet,
    Souscription,
    Tranche,
)
from echeancier_gateway.domain.models import (
    STATUS_PAID,
    CouponEcheance,
    PaidCoupon,
    SubscriptionInput,
    TrancheRecord,
    TrancheTerms,
)

PHYSICAL_PERSON_TYPE = "physique"


def _tranche_terms(tranche: Tranche) -> TrancheTerms:
    return TrancheTerms(
        nominal_rate=tranche.taux_nominal,
        payment_frequency=tranche.periodicite_coupons,
        issuance_date=tranche.date_emission,
        duration_months=tranche.duree_mois,
    )


def _project_terms(projet: Optional[Projet]) -> TrancheTerms:
    if projet is None:
        return TrancheTerms()
    return TrancheTerms(
        nominal_rate=projet.taux_nominal,
        payment_frequency=projet.periodicite_coupons,
        issuance_date=projet.date_emission,
        duration_months=projet.duree_mois,
        day_count_basis=projet.base_interet,
        extension_possible=projet.prorogation_possible,
        extension_activated=projet.prorogation_activee,
        extension_months=projet.duree_prorogation_mois,
        step_up_rate=projet.taux_prorogation,
    )


class TrancheRepository:
    """Read tranche terms (with project joined) and write the final maturity"""

    def __init__(self, db: Session):
        self.db = db

    def get_tranche(self, tranche_id: uuid.UUID, for_update: bool = False) -> Optional[TrancheRecord]:
        """
        Fetch one tranche and its project's financial fields.

        for_update locks the tranche row until the transaction ends, which
        serializes concurrent regenerations of the same tranche (no-op on SQLite).
        """
        query = self.db.query(Tranche).filter(Tranche.id == tranche_id)
        if for_update:
            query = query.with_for_update()
        tranche = query.first()
        if tranche is None:
            return None

        return TrancheRecord(
            tranche_id=tranche.id,
            tranche_name=tranche.tranche_name,
            tranche=_tranche_terms(tranche),
            project=_project_terms(tranche.projet),
        )

    def update_final_maturity(self, tranche_id: uuid.UUID, maturity_date: date) -> None:
        """Persist the computed final maturity onto the tranche"""
        tranche = self.db.get(Tranche, tranche_id)
        tranche.date_echeance_finale = maturity_date
        self.db.flush()


class SubscriptionRepository:
    """Repository for tranche subscriptions"""

    def __init__(self, db: Session):
        self.db = db

    def get_subscriptions(self, tranche_id: uuid.UUID) -> List[SubscriptionInput]:
        """Subscriptions of a tranche with the investor's tax classification, in stable order"""
        rows = (
            self.db.query(Souscription, Investisseur.type)
            .outerjoin(Investisseur, Souscription.investisseur_id == Investisseur.id)
            .filter(Souscription.tranche_id == tranche_id)
            .order_by(Souscription.created_at, Souscription.id)
            .all()
        )
        return [
            SubscriptionInput(
                subscription_id=sub.id,
                invested_amount=Decimal(sub.montant_investi),
                # Case-insensitive: legacy rows hold both 'physique' and 'Physique'
                investor_is_corporate=(investor_type or "").lower() != PHYSICAL_PERSON_TYPE,
            )
            for sub, investor_type in rows
        ]

    def update_coupon_amounts(self, subscription_id: uuid.UUID, coupon_brut: Decimal, coupon_net: Decimal) -> None:
        """Store the per-period base coupon on the subscription"""
        sub = self.db.get(Souscription, subscription_id)
        sub.coupon_brut = coupon_brut
        sub.coupon_net = coupon_net
        self.db.flush()

    def update_next_coupon_date(self, subscription_id: uuid.UUID, next_date: Optional[date]) -> None:
        sub = self.db.get(Souscription, subscription_id)
        sub.prochaine_date_coupon = next_date
        self.db.flush()


class CouponRepository:
    """Coupon ledger: paid rows are read-only here, pending rows are replaced wholesale"""

    def __init__(self, db: Session):
        self.db = db

    def get_paid_coupons(self, subscription_ids: Iterable[uuid.UUID]) -> List[PaidCoupon]:
        ids = list(subscription_ids)
        if not ids:
            return []
        rows = (
            self.db.query(CouponEcheanceRow.souscription_id, CouponEcheanceRow.date_echeance)
            .filter(CouponEcheanceRow.souscription_id.in_(ids))
            .filter(CouponEcheanceRow.statut == STATUS_PAID)
            .all()
        )
        return [PaidCoupon(subscription_id=sub_id, due_date=due_date) for sub_id, due_date in rows]

    def delete_pending_coupons(self, subscription_ids: Iterable[uuid.UUID]) -> int:
        """Delete every non-paid coupon of the given subscriptions, returning the count"""
        ids = list(subscription_ids)
        if not ids:
            return 0
        deleted = (
            self.db.query(CouponEcheanceRow)
            .filter(CouponEcheanceRow.souscription_id.in_(ids))
            .filter(CouponEcheanceRow.statut != STATUS_PAID)
            .delete(synchronize_session=False)
        )
        self.db.flush()
        return deleted

    def insert_coupons(self, coupons: Iterable[CouponEcheance]) -> int:
        """Bulk insert generated coupons; nothing is committed here"""
        rows = [
            CouponEcheanceRow(
                souscription_id=coupon.subscription_id,
                date_echeance=coupon.due_date,
                montant_brut=coupon.gross_amount,
                montant_coupon=coupon.net_amount,
                statut=coupon.status,
            )
            for coupon in coupons
        ]
        self.db.add_all(rows)
        self.db.flush()
        return len(rows)

    def get_coupons_for_tranche(self, tranche_id: uuid.UUID) -> List[CouponEcheanceRow]:
        """Full ledger (paid and pending) of a tranche, ordered by due date"""
        return (
            self.db.query(CouponEcheanceRow)
            .join(Souscription, CouponEcheanceRow.souscription_id == Souscription.id)
            .filter(Souscription.tranche_id == tranche_id)
            .order_by(CouponEcheanceRow.date_echeance, Souscription.created_at, Souscription.id)
            .all()
        )
