# backend/app/schemas/auth.py
from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator

from app.core.preferences import ThemeMode, ViewMode


def _normalize_full_name(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    v = " ".join(value.strip().split())
    return v or None


class MagicCodeRequest(BaseModel):
    email: EmailStr


class MagicCodeVerify(BaseModel):
    email: EmailStr
    code: str = Field(min_length=4, max_length=64)


class TokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"


class ProfileUpdateRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    full_name: Optional[str] = Field(default=None, max_length=200)
    theme: Optional[ThemeMode] = None
    view_mode: Optional[ViewMode] = None

    @field_validator("full_name")
    @classmethod
    def validate_full_name(cls, v: Optional[str]) -> Optional[str]:
        return _normalize_full_name(v)

    @field_validator("theme", "view_mode", mode="before")
    @classmethod
    def lower_enum_values(cls, v):
        return v.strip().lower() if isinstance(v, str) else v


class MeResponse(BaseModel):
    id: str
    email: EmailStr
    is_active: bool

    full_name: Optional[str] = None
    theme: ThemeMode
    view_mode: ViewMode
