"""Pytest fixtures for testing"""

import pytest
from datetime import date
from decimal import Decimal
from typing import Generator
from fastapi.testclient import TestClient
from sqlalchemy.orm import sessionmaker, Session
from echeancier_gateway.api.main import create_app
from echeancier_gateway.infrastructure.database.models import (
    Base,
    CouponEcheanceRow,
    Investisseur,
    Projet,
    Souscription,
    Tranche,
)
from echeancier_gateway.infrastructure.database.session import build_engine, get_db
from echeancier_gateway.domain.models import STATUS_PAID


# Test database
TEST_DATABASE_URL = "sqlite:///./test.db"
engine = build_engine(TEST_DATABASE_URL)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db() -> Generator[Session, None, None]:
    """Create test database and session"""
    Base.metadata.create_all(bind=engine)
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def client(db: Session) -> TestClient:
    """Create FastAPI test client with test database"""
    app = create_app()

    def override_get_db():
        try:
            yield db
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    return TestClient(app)


class LedgerSeeder:
    """Creates projects, tranches, subscriptions and paid coupons in the test database"""

    def __init__(self, db: Session):
        self.db = db

    def project(self, **fields) -> Projet:
        values = {
            "projet": "Résidence Les Tilleuls",
            "taux_nominal": Decimal("6"),
            "periodicite_coupons": "trimestrielle",
            "duree_mois": 12,
            "base_interet": 360,
        }
        values.update(fields)
        projet = Projet(**values)
        self.db.add(projet)
        self.db.commit()
        return projet

    def tranche(self, projet: Projet, **fields) -> Tranche:
        values = {
            "projet_id": projet.id,
            "tranche_name": "Tranche A",
            "date_emission": date(2024, 1, 1),
        }
        values.update(fields)
        tranche = Tranche(**values)
        self.db.add(tranche)
        self.db.commit()
        return tranche

    def subscription(self, tranche: Tranche, amount: str = "100000", investor_type: str = "physique") -> Souscription:
        investor = Investisseur(nom_raison_sociale=f"Investisseur {investor_type}", type=investor_type)
        self.db.add(investor)
        self.db.flush()
        sub = Souscription(
            tranche_id=tranche.id,
            investisseur_id=investor.id,
            montant_investi=Decimal(amount),
        )
        self.db.add(sub)
        self.db.commit()
        return sub

    def paid_coupon(self, sub: Souscription, due_date: date, amount: str = "1050.00") -> CouponEcheanceRow:
        row = CouponEcheanceRow(
            souscription_id=sub.id,
            date_echeance=due_date,
            montant_brut=Decimal("1500.00"),
            montant_coupon=Decimal(amount),
            statut=STATUS_PAID,
            date_paiement=due_date,
            montant_paye=Decimal(amount),
        )
        self.db.add(row)
        self.db.commit()
        return row


@pytest.fixture
def seeder(db: Session) -> LedgerSeeder:
    return LedgerSeeder(db)
