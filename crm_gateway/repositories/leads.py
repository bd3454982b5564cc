"""Lead repository helpers."""
from __future__ import annotations

from sqlalchemy import Select, select
from sqlalchemy.ext.asyncio import AsyncSession

from ..models.lead import Lead


async def get_by_id(session: AsyncSession, lead_id: int) -> Lead | None:
    """Return a lead by identifier."""

    stmt: Select[tuple[Lead]] = select(Lead).where(Lead.id == lead_id)
    result = await session.execute(stmt)
    return result.scalar_one_or_none()
