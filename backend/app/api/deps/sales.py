from __future__ import annotations

import uuid

from fastapi import Depends, HTTPException, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.v1.auth import get_current_user
from app.db.session import get_db
from app.models.sale import Sale
from app.models.user import User


async def get_owned_sale(
    sale_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user),
) -> Sale:
    """
    Resolve {sale_id} for the current user.
    Someone else's sale is reported exactly like a missing one.
    """
    stmt = select(Sale).where(Sale.id == sale_id, Sale.user_id == user.id)
    sale = (await db.execute(stmt)).scalar_one_or_none()
    if sale is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Sale not found")
    return sale
