# app/api/v1/sales.py
from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps.sales import get_owned_sale
from app.api.v1.auth import get_current_user
from app.core.commission import calculate_upcoming_commission, get_sales_stats, last_wednesday_cutoff
from app.core.config import settings
from app.db.session import get_db
from app.models.sale import Sale
from app.models.user import User
from app.schemas.sales import SaleCreate, SaleOut, SalePaidOutUpdate, SalesSummaryOut, SaleUpdate

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/sales", tags=["sales"])

TIMESTAMP_FIELDS = ("closed_date_time", "cancelled_date_time", "finished_date_time")


def _as_utc(dt: Optional[datetime]) -> Optional[datetime]:
    # naive values come from SQLite, which stores UTC without an offset
    if dt is not None and dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt


def _snapshot(sale: Sale) -> dict[str, Any]:
    snap: dict[str, Any] = {
        "id": sale.id,
        "amount": sale.amount,
        "commission_percentage": sale.commission_percentage,
        "paid_out": sale.paid_out,
    }
    for name in TIMESTAMP_FIELDS:
        snap[name] = _as_utc(getattr(sale, name))
    return snap


async def _list_user_sales(db: AsyncSession, user: User) -> list[Sale]:
    stmt = (
        select(Sale)
        .where(Sale.user_id == user.id)
        .order_by(Sale.created_at.desc())
    )
    return list((await db.execute(stmt)).scalars().all())


@router.get("", response_model=list[SaleOut])
async def list_sales(
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user),
):
    """
    All of the current user's sales, newest first.
    """
    rows = await _list_user_sales(db, user)
    logger.info("Fetched %d sales for user %s", len(rows), user.id)
    return rows


@router.get("/summary", response_model=SalesSummaryOut)
async def get_sales_summary(
    as_of: Optional[datetime] = Query(None, description="Reference instant; defaults to now (UTC)."),
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user),
):
    """
    Dashboard headline: upcoming (accrued, unpaid) commission plus totals.
    Pass `as_of` with the client's UTC offset to get its local Wednesday cutoff and month.
    """
    now = _as_utc(as_of) if as_of is not None else datetime.now(timezone.utc)

    snapshots = [_snapshot(s) for s in await _list_user_sales(db, user)]
    stats = get_sales_stats(snapshots, now)

    return SalesSummaryOut(
        as_of=now,
        cutoff=last_wednesday_cutoff(now),
        upcoming_commission=calculate_upcoming_commission(snapshots, now),
        total_sales=stats.total_sales,
        this_month_sales=stats.this_month_sales,
        total_revenue=stats.total_revenue,
        total_commission=stats.total_commission,
    )


@router.post("", response_model=SaleOut, status_code=status.HTTP_201_CREATED)
async def create_sale(
    payload: SaleCreate,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user),
):
    pct = payload.commission_percentage
    sale = Sale(
        user_id=user.id,
        nickname=payload.nickname or None,
        start_date_time=payload.start_date_time,
        closed_date_time=payload.closed_date_time or payload.start_date_time,
        amount=payload.amount,
        commission_percentage=pct if pct is not None else settings.DEFAULT_COMMISSION_PERCENTAGE,
        approved_date=payload.approved_date,
        finished_date_time=payload.finished_date_time,
        paid_out=False,
    )

    db.add(sale)
    await db.commit()
    await db.refresh(sale)

    logger.info("Created sale %s for user %s", sale.id, user.id)
    return sale


@router.get("/{sale_id}", response_model=SaleOut)
async def get_sale(sale: Sale = Depends(get_owned_sale)):
    return sale


@router.put("/{sale_id}", response_model=SaleOut)
async def replace_sale(
    payload: SaleUpdate,
    db: AsyncSession = Depends(get_db),
    sale: Sale = Depends(get_owned_sale),
):
    """
    Full edit from the sale form, including cancellation and payout state.
    """
    data = payload.model_dump()
    data["nickname"] = data.get("nickname") or None
    for field, value in data.items():
        setattr(sale, field, value)

    await db.commit()
    await db.refresh(sale)

    logger.info("Updated sale %s", sale.id)
    return sale


@router.patch("/{sale_id}/paid-out", response_model=SaleOut)
async def set_sale_paid_out(
    payload: SalePaidOutUpdate,
    db: AsyncSession = Depends(get_db),
    sale: Sale = Depends(get_owned_sale),
):
    sale.paid_out = payload.paid_out

    await db.commit()
    await db.refresh(sale)

    logger.info("Sale %s paid_out=%s", sale.id, sale.paid_out)
    return sale


@router.delete("/{sale_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_sale(
    db: AsyncSession = Depends(get_db),
    sale: Sale = Depends(get_owned_sale),
):
    sale_id = sale.id
    await db.delete(sale)
    await db.commit()

    logger.info("Deleted sale %s", sale_id)
    return None
