"""Effective tranche parameters from tranche and project records"""

import logging
from decimal import Decimal
from typing import List, Tuple

from echeancier_gateway.domain.exceptions import (
    InvalidTrancheParametersError,
    MissingTrancheParametersError,
)
from echeancier_gateway.domain.models import (
    ExtensionClause,
    TrancheParameters,
    TrancheTerms,
)
from echeancier_gateway.domain.periods import POLICY_FALLBACK_ANNUAL, normalize_frequency

logger = logging.getLogger(__name__)

DEFAULT_DAY_COUNT_BASIS = 360
SUPPORTED_DAY_COUNT_BASES = (360, 365)


def _resolve_extension(project: TrancheTerms) -> ExtensionClause:
    return ExtensionClause(
        possible=bool(project.extension_possible),
        activated=bool(project.extension_activated),
        extra_months=int(project.extension_months or 0),
        step_up_rate=Decimal(str(project.step_up_rate or 0)),
    )


def _resolve_day_count_basis(project: TrancheTerms, default: int) -> int:
    basis = project.day_count_basis
    if basis is None:
        return default
    if basis not in SUPPORTED_DAY_COUNT_BASES:
        logger.warning(
            f"Unsupported day-count basis {basis}, using 360",
            extra={"step": "day_count_fallback", "base_interet": basis},
        )
        return 360
    return basis


def resolve_tranche_parameters(
    tranche: TrancheTerms,
    project: TrancheTerms,
    unknown_frequency_policy: str = POLICY_FALLBACK_ANNUAL,
    default_day_count_basis: int = DEFAULT_DAY_COUNT_BASIS,
) -> Tuple[TrancheParameters, bool]:
    """
    Merge tranche and project fields into the tranche's effective parameters.

    Each field has its own source rule, this is not a generic override merge:
    - nominal rate: tranche, else project
    - payment frequency: project only (a tranche-level frequency is ignored)
    - issuance date: tranche only (a project-level date is ignored)
    - duration: tranche, else project
    - day-count basis and extension clause: project

    Raises:
        MissingTrancheParametersError: listing every unresolvable field
        InvalidTrancheParametersError: duration not positive or negative extension months
        UnknownFrequencyError: frequency unknown and policy is "reject"

    Returns:
        (parameters, frequency_fell_back)
    """
    nominal_rate = tranche.nominal_rate if tranche.nominal_rate is not None else project.nominal_rate
    raw_frequency = project.payment_frequency
    issuance_date = tranche.issuance_date
    duration_months = (
        tranche.duration_months if tranche.duration_months is not None else project.duration_months
    )

    missing: List[str] = []
    if nominal_rate is None:
        missing.append("taux_nominal")
    if not raw_frequency:
        missing.append("periodicite_coupons")
    if issuance_date is None:
        missing.append("date_emission")
    if duration_months is None:
        missing.append("duree_mois")
    if missing:
        raise MissingTrancheParametersError(missing)

    extension = _resolve_extension(project)
    invalid: List[str] = []
    if int(duration_months) <= 0:
        invalid.append("duree_mois")
    if extension.extra_months < 0:
        invalid.append("duree_prorogation_mois")
    if invalid:
        raise InvalidTrancheParametersError(invalid)

    frequency, fell_back = normalize_frequency(raw_frequency, unknown_frequency_policy)

    params = TrancheParameters(
        nominal_rate=Decimal(str(nominal_rate)),
        payment_frequency=frequency,
        issuance_date=issuance_date,
        duration_months=int(duration_months),
        day_count_basis=_resolve_day_count_basis(project, default_day_count_basis),
        extension=extension,
    )
    return params, fell_back
