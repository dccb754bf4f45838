"""Pydantic schemas for API request/response validation"""

from pydantic import BaseModel, Field
from datetime import date
from decimal import Decimal
from typing import List, Optional


class RegenerateRequest(BaseModel):
    """Request body for POST /v1/echeancier/regenerate"""

    tranche_id: Optional[str] = Field(None, description="Tranche identifier (UUID)")


class RegenerateResponse(BaseModel):
    """Successful regeneration summary"""

    success: bool = True
    message: str
    tranche_name: str
    updated_subscriptions: int
    deleted_pending_coupons: int
    created_coupons: int
    final_maturity_date: Optional[date] = None
    extension_active: bool
    warnings: List[str] = []


class RegenerateFailure(BaseModel):
    """Failed regeneration; missing_params is set for configuration errors"""

    success: bool = False
    error: str
    missing_params: Optional[List[str]] = None


class CouponSchema(BaseModel):
    """Single coupon ledger row"""

    subscription_id: str
    due_date: date
    gross_amount: Decimal
    net_amount: Decimal
    status: str
    payment_date: Optional[date] = None
    paid_amount: Optional[Decimal] = None


class EcheancierResponse(BaseModel):
    """Response for GET /v1/tranches/{tranche_id}/echeancier"""

    tranche_id: str
    coupons: List[CouponSchema]
    total_gross: Decimal
    total_net: Decimal


class PreviewCouponSchema(BaseModel):
    """Computed, not yet persisted coupon"""

    subscription_id: str
    payment_index: int
    due_date: date
    gross_amount: Decimal
    net_amount: Decimal
    in_extension: bool


class PreviewResponse(BaseModel):
    """Response for GET /v1/tranches/{tranche_id}/echeancier/preview"""

    tranche_id: str
    payment_frequency: str
    day_count_basis: int
    base_payment_count: int
    total_payment_count: int
    final_maturity_date: date
    extension_active: bool
    skipped_paid_coupons: int
    coupons: List[PreviewCouponSchema]
    warnings: List[str] = []
