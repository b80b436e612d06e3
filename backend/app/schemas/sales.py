# app/schemas/sales.py
from __future__ import annotations

import uuid
from datetime import datetime, timezone
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


class SaleBase(BaseModel):
    nickname: Optional[str] = Field(None, max_length=120)

    start_date_time: datetime
    closed_date_time: Optional[datetime] = None

    amount: Decimal = Field(..., ge=0)

    approved_date: Optional[datetime] = None
    finished_date_time: Optional[datetime] = None

    @field_validator("start_date_time", "closed_date_time", "approved_date", "finished_date_time")
    @classmethod
    def to_utc(cls, v: Optional[datetime]) -> Optional[datetime]:
        # SQLite drops offsets on write, so store every aware value as UTC
        if v is not None and v.tzinfo is not None:
            return v.astimezone(timezone.utc)
        return v


class SaleCreate(SaleBase):
    # None -> settings.DEFAULT_COMMISSION_PERCENTAGE
    commission_percentage: Optional[Decimal] = Field(None, ge=0, le=100)


class SaleUpdate(SaleBase):
    """Full replacement of the editable fields (PUT)."""

    commission_percentage: Decimal = Field(..., ge=0, le=100)
    cancelled_date_time: Optional[datetime] = None
    paid_out: bool = False

    @field_validator("cancelled_date_time")
    @classmethod
    def cancelled_to_utc(cls, v: Optional[datetime]) -> Optional[datetime]:
        if v is not None and v.tzinfo is not None:
            return v.astimezone(timezone.utc)
        return v

    @model_validator(mode="after")
    def closed_defaults_to_start(self) -> "SaleUpdate":
        if self.closed_date_time is None:
            self.closed_date_time = self.start_date_time
        return self


class SalePaidOutUpdate(BaseModel):
    paid_out: bool


class SaleOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    user_id: uuid.UUID
    nickname: Optional[str] = None

    start_date_time: datetime
    closed_date_time: Optional[datetime] = None

    amount: Decimal
    commission_percentage: Decimal

    approved_date: Optional[datetime] = None
    cancelled_date_time: Optional[datetime] = None
    finished_date_time: Optional[datetime] = None

    paid_out: bool

    created_at: datetime
    updated_at: datetime


class SalesSummaryOut(BaseModel):
    as_of: datetime
    cutoff: datetime

    # accrued and unpaid (half on close before cutoff, half on finish)
    upcoming_commission: Decimal

    total_sales: int
    this_month_sales: int
    total_revenue: Decimal
    # gross, ignores payout state
    total_commission: Decimal
