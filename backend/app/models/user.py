# backend/app/models/user.py
import uuid
from datetime import datetime
from typing import TYPE_CHECKING, List, Optional

from sqlalchemy import Boolean, DateTime, String, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy.sql import func

from app.core.preferences import DEFAULT_THEME, DEFAULT_VIEW_MODE, ThemeMode, ViewMode
from app.db.base import Base

if TYPE_CHECKING:
    from app.models.sale import Sale


class User(Base):
    __tablename__ = "users"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)

    email: Mapped[str] = mapped_column(String(320), unique=True, index=True, nullable=False)

    # Email-first magic code auth
    magic_code: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)
    magic_code_expires_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)

    full_name: Mapped[Optional[str]] = mapped_column(String(200), nullable=True)

    # UI preferences, served to the dashboard instead of living in cookies
    theme: Mapped[str] = mapped_column(
        String(16), nullable=False, default=DEFAULT_THEME.value, server_default=DEFAULT_THEME.value
    )
    view_mode: Mapped[str] = mapped_column(
        String(16), nullable=False, default=DEFAULT_VIEW_MODE.value, server_default=DEFAULT_VIEW_MODE.value
    )

    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False
    )

    sales: Mapped[List["Sale"]] = relationship(back_populates="user", cascade="all, delete-orphan")

    @staticmethod
    def normalize_email(value: str) -> str:
        return value.strip().lower()

    @staticmethod
    def normalize_full_name(value: Optional[str]) -> Optional[str]:
        if value is None:
            return None
        v = " ".join(value.strip().split())
        return v or None

    @staticmethod
    def normalize_theme(value: Optional[str]) -> str:
        if value is None:
            return DEFAULT_THEME.value
        try:
            return ThemeMode(value.strip().lower()).value
        except ValueError:
            raise ValueError(f"theme must be one of: {', '.join(t.value for t in ThemeMode)}")

    @staticmethod
    def normalize_view_mode(value: Optional[str]) -> str:
        if value is None:
            return DEFAULT_VIEW_MODE.value
        try:
            return ViewMode(value.strip().lower()).value
        except ValueError:
            raise ValueError(f"view_mode must be one of: {', '.join(m.value for m in ViewMode)}")
