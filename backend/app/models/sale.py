# app/models/sale.py
from __future__ import annotations

import uuid
from datetime import datetime, timezone
from decimal import Decimal
from typing import TYPE_CHECKING

from sqlalchemy import Boolean, DateTime, ForeignKey, Index, Numeric, String, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy.sql import func

from app.db.base import Base

if TYPE_CHECKING:
    from app.models.user import User


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Sale(Base):
    """
    One closed (or pending) deal tracked by a sales rep.

    Lifecycle timestamps:
      - start_date_time: first contact / appointment
      - closed_date_time: customer committed to buy (first half of commission accrues
        once this is on or before the weekly Wednesday cutoff)
      - approved_date: financing / paperwork approved
      - cancelled_date_time: deal voided; the sale no longer counts anywhere
      - finished_date_time: fulfilment done (second half of commission accrues)

    paid_out marks the commission as already disbursed to the rep.
    """

    __tablename__ = "sales"
    __table_args__ = (
        Index("ix_sales_user_created", "user_id", "created_at"),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)

    user_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    nickname: Mapped[str | None] = mapped_column(String(120), nullable=True)

    start_date_time: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    closed_date_time: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    amount: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False, default=Decimal("0.00"))
    commission_percentage: Mapped[Decimal] = mapped_column(
        Numeric(5, 2), nullable=False, default=Decimal("10.00"), server_default="10.00"
    )

    approved_date: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    cancelled_date_time: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    finished_date_time: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    paid_out: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False, server_default="false")

    # python-side defaults keep sub-second ordering on backends whose now() is coarse
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=_utcnow,
        server_default=func.now(),
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=_utcnow,
        onupdate=_utcnow,
        server_default=func.now(),
    )

    user: Mapped["User"] = relationship(back_populates="sales")
