"""Dependency injection for FastAPI endpoints"""

from fastapi import Depends, Request
from sqlalchemy.orm import Session
from echeancier_gateway.config import settings
from echeancier_gateway.domain.regeneration import EcheancierRegenerator
from echeancier_gateway.infrastructure.database.repositories import (
    CouponRepository,
    SubscriptionRepository,
    TrancheRepository,
)
from echeancier_gateway.infrastructure.database.session import get_db


def get_request_id(request: Request) -> str:
    """Extract request ID from request state"""
    return getattr(request.state, "request_id", "unknown")


def get_regenerator(db: Session = Depends(get_db)) -> EcheancierRegenerator:
    """Regeneration engine bound to the request's database session"""
    return EcheancierRegenerator(
        tranches=TrancheRepository(db),
        subscriptions=SubscriptionRepository(db),
        ledger=CouponRepository(db),
        unknown_frequency_policy=settings.unknown_frequency_policy,
        default_day_count_basis=settings.default_day_count_basis,
    )
