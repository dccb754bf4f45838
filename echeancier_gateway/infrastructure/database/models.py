"""SQLAlchemy ORM models for projects, tranches, subscriptions and the coupon ledger"""

import uuid
from sqlalchemy import Column, String, Boolean, DateTime, Date, Integer, Numeric, ForeignKey, Text
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import declarative_base, relationship
from sqlalchemy.sql import func

Base = declarative_base()


class Projet(Base):
    """Bond issuance project - holds the frequency, day-count basis and extension clause"""

    __tablename__ = "projets"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    projet = Column(Text, nullable=False)
    taux_nominal = Column(Numeric(7, 4), nullable=True)
    periodicite_coupons = Column(String(32), nullable=True)
    date_emission = Column(Date, nullable=True)
    duree_mois = Column(Integer, nullable=True)
    base_interet = Column(Integer, nullable=True)
    prorogation_possible = Column(Boolean, nullable=False, default=False)
    prorogation_activee = Column(Boolean, nullable=False, default=False)
    duree_prorogation_mois = Column(Integer, nullable=True)
    taux_prorogation = Column(Numeric(7, 4), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    tranches = relationship("Tranche", back_populates="projet", cascade="all, delete-orphan")


class Tranche(Base):
    """Tranche of a project; rate and duration override the project's"""

    __tablename__ = "tranches"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    projet_id = Column(UUID(as_uuid=True), ForeignKey("projets.id", ondelete="CASCADE"), nullable=False, index=True)
    tranche_name = Column(Text, nullable=False)
    taux_nominal = Column(Numeric(7, 4), nullable=True)
    periodicite_coupons = Column(String(32), nullable=True)  # not used: frequency comes from the project
    date_emission = Column(Date, nullable=True)
    duree_mois = Column(Integer, nullable=True)
    date_echeance_finale = Column(Date, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    projet = relationship("Projet", back_populates="tranches")
    souscriptions = relationship("Souscription", back_populates="tranche", cascade="all, delete-orphan")


class Investisseur(Base):
    """Investor; type 'physique' (physical person) or 'morale' (company)"""

    __tablename__ = "investisseurs"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    nom_raison_sociale = Column(Text, nullable=False)
    type = Column(String(16), nullable=False, default="physique")
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    souscriptions = relationship("Souscription", back_populates="investisseur")


class Souscription(Base):
    """Investor subscription to a tranche"""

    __tablename__ = "souscriptions"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    tranche_id = Column(UUID(as_uuid=True), ForeignKey("tranches.id", ondelete="CASCADE"), nullable=False, index=True)
    investisseur_id = Column(UUID(as_uuid=True), ForeignKey("investisseurs.id"), nullable=False)
    montant_investi = Column(Numeric(15, 2), nullable=False)
    coupon_brut = Column(Numeric(15, 2), nullable=False, default=0)
    coupon_net = Column(Numeric(15, 2), nullable=False, default=0)
    prochaine_date_coupon = Column(Date, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    tranche = relationship("Tranche", back_populates="souscriptions")
    investisseur = relationship("Investisseur", back_populates="souscriptions")
    coupons = relationship("CouponEcheanceRow", back_populates="souscription", cascade="all, delete-orphan")


class CouponEcheanceRow(Base):
    """Coupon ledger row; statut 'en_attente' (pending) or 'payé' (paid)"""

    __tablename__ = "coupons_echeances"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    souscription_id = Column(
        UUID(as_uuid=True), ForeignKey("souscriptions.id", ondelete="CASCADE"), nullable=False, index=True
    )
    date_echeance = Column(Date, nullable=False)
    montant_brut = Column(Numeric(15, 2), nullable=False)
    montant_coupon = Column(Numeric(15, 2), nullable=False)  # net amount due to the investor
    statut = Column(Text, nullable=False, default="en_attente")
    date_paiement = Column(Date, nullable=True)
    montant_paye = Column(Numeric(15, 2), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    souscription = relationship("Souscription", back_populates="coupons")
