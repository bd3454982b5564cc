"""Project repository helpers."""
from __future__ import annotations

from sqlalchemy.ext.asyncio import AsyncSession

from ..models.project import Project


async def get_by_id(session: AsyncSession, project_id: int) -> Project | None:
    """Return a project by identifier."""

    return await session.get(Project, project_id)
