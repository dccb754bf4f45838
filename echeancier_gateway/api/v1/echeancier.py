"""Echeancier endpoints - regenerate, read and preview a tranche's coupon schedule"""

import time
import uuid
import logging
from decimal import Decimal
from fastapi import APIRouter, Depends, HTTPException, Request
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from echeancier_gateway.api.v1.schemas import (
    CouponSchema,
    EcheancierResponse,
    PreviewCouponSchema,
    PreviewResponse,
    RegenerateFailure,
    RegenerateRequest,
    RegenerateResponse,
)
from echeancier_gateway.api.dependencies import get_regenerator, get_request_id
from echeancier_gateway.infrastructure.database.session import get_db
from echeancier_gateway.infrastructure.database.repositories import CouponRepository, TrancheRepository
from echeancier_gateway.domain.regeneration import EcheancierRegenerator
from echeancier_gateway.domain.exceptions import ConfigurationError, TrancheNotFoundError
from echeancier_gateway.infrastructure.observability.metrics import (
    record_regeneration,
    regeneration_duration_histogram,
)
from echeancier_gateway.infrastructure.observability.logging import log_regeneration

router = APIRouter()

FREQUENCY_FALLBACK_WARNING = "Unknown coupon frequency on project, annual schedule used"


def _failure(status_code: int, error: str, missing_params=None) -> JSONResponse:
    body = RegenerateFailure(error=error, missing_params=missing_params)
    return JSONResponse(status_code=status_code, content=body.model_dump(exclude_none=True))


def _parse_tranche_id(tranche_id: str) -> uuid.UUID:
    try:
        return uuid.UUID(tranche_id)
    except ValueError:
        raise HTTPException(status_code=400, detail="Invalid tranche ID format")


@router.post(
    "/echeancier/regenerate",
    response_model=RegenerateResponse,
    responses={400: {"model": RegenerateFailure}, 404: {"model": RegenerateFailure}, 500: {"model": RegenerateFailure}},
)
def regenerate_echeancier(
    request_body: RegenerateRequest,
    request: Request,
    db: Session = Depends(get_db),
    regenerator: EcheancierRegenerator = Depends(get_regenerator),
):
    """
    Recompute the coupon schedule of a tranche.

    Flow:
    1. Resolve tranche parameters (tranche + project), locking the tranche row
    2. Recompute each subscription's coupon amounts
    3. Delete pending coupons, keep paid ones
    4. Insert the regenerated pending coupons and the final maturity date
    5. Commit once; any failure rolls the whole regeneration back
    """
    start_time = time.time()
    request_id = get_request_id(request)
    tranche_id = request_body.tranche_id
    if not tranche_id:
        return _failure(400, "tranche_id is required")

    try:
        tranche_uuid = uuid.UUID(tranche_id)
    except ValueError:
        return _failure(400, "Invalid tranche ID format")

    try:
        with regeneration_duration_histogram.time():
            result = regenerator.regenerate(tranche_uuid)
            db.commit()

    except ConfigurationError as e:
        db.rollback()
        record_regeneration("configuration_error")
        log_regeneration(
            request_id, tranche_id, False, (time.time() - start_time) * 1000, missing_params=e.missing_params
        )
        return _failure(400, str(e), e.missing_params)

    except TrancheNotFoundError as e:
        db.rollback()
        record_regeneration("not_found")
        logging.warning(f"Tranche not found: {tranche_id}", extra={"request_id": request_id})
        return _failure(404, str(e))

    except Exception as e:
        db.rollback()
        record_regeneration("error")
        logging.error(f"Regeneration failed: {e}", extra={"request_id": request_id, "tranche_id": tranche_id})
        return _failure(500, "Internal server error")

    # Record metrics and logs
    duration_ms = (time.time() - start_time) * 1000
    record_regeneration(
        "success",
        created_coupons=result.created_coupons,
        deleted_pending_coupons=result.deleted_pending_coupons,
        frequency_fallback=result.frequency_fallback,
    )
    log_regeneration(
        request_id,
        tranche_id,
        True,
        duration_ms,
        created_coupons=result.created_coupons,
        deleted_pending_coupons=result.deleted_pending_coupons,
    )

    if result.updated_subscriptions == 0:
        message = "No souscriptions to process"
    else:
        message = f"Echeancier regenerated successfully for {result.tranche_name}"

    return RegenerateResponse(
        message=message,
        tranche_name=result.tranche_name,
        updated_subscriptions=result.updated_subscriptions,
        deleted_pending_coupons=result.deleted_pending_coupons,
        created_coupons=result.created_coupons,
        final_maturity_date=result.final_maturity_date,
        extension_active=result.extension_active,
        warnings=[FREQUENCY_FALLBACK_WARNING] if result.frequency_fallback else [],
    )


@router.get("/tranches/{tranche_id}/echeancier", response_model=EcheancierResponse)
def get_echeancier(tranche_id: str, db: Session = Depends(get_db)):
    """
    Retrieve the persisted coupon schedule of a tranche.

    Returns:
        Paid and pending coupons ordered by due date, with gross/net totals
    """
    tranche_uuid = _parse_tranche_id(tranche_id)

    if TrancheRepository(db).get_tranche(tranche_uuid) is None:
        raise HTTPException(status_code=404, detail="Tranche not found")

    rows = CouponRepository(db).get_coupons_for_tranche(tranche_uuid)
    coupons = [
        CouponSchema(
            subscription_id=str(row.souscription_id),
            due_date=row.date_echeance,
            gross_amount=row.montant_brut,
            net_amount=row.montant_coupon,
            status=row.statut,
            payment_date=row.date_paiement,
            paid_amount=row.montant_paye,
        )
        for row in rows
    ]

    return EcheancierResponse(
        tranche_id=str(tranche_uuid),
        coupons=coupons,
        total_gross=sum((c.gross_amount for c in coupons), Decimal("0")),
        total_net=sum((c.net_amount for c in coupons), Decimal("0")),
    )


@router.get(
    "/tranches/{tranche_id}/echeancier/preview",
    response_model=PreviewResponse,
    responses={400: {"model": RegenerateFailure}, 404: {"model": RegenerateFailure}},
)
def preview_echeancier(
    tranche_id: str,
    regenerator: EcheancierRegenerator = Depends(get_regenerator),
):
    """Compute the schedule a regeneration would write, without touching the ledger"""
    try:
        tranche_uuid = uuid.UUID(tranche_id)
    except ValueError:
        return _failure(400, "Invalid tranche ID format")

    try:
        params, schedule, fell_back = regenerator.preview(tranche_uuid)
    except TrancheNotFoundError as e:
        return _failure(404, str(e))
    except ConfigurationError as e:
        return _failure(400, str(e), e.missing_params)

    return PreviewResponse(
        tranche_id=str(tranche_uuid),
        payment_frequency=params.payment_frequency.value,
        day_count_basis=params.day_count_basis,
        base_payment_count=schedule.base_payment_count,
        total_payment_count=schedule.total_payment_count,
        final_maturity_date=schedule.final_maturity_date,
        extension_active=params.extension.active,
        skipped_paid_coupons=schedule.skipped_paid,
        coupons=[
            PreviewCouponSchema(
                subscription_id=str(c.subscription_id),
                payment_index=c.payment_index,
                due_date=c.due_date,
                gross_amount=c.gross_amount,
                net_amount=c.net_amount,
                in_extension=c.in_extension,
            )
            for c in schedule.coupons
        ],
        warnings=[FREQUENCY_FALLBACK_WARNING] if fell_back else [],
    )
