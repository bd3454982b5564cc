"""Outbound call endpoints."""
from __future__ import annotations

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from ..db.session import get_session
from ..schemas import calls as schemas
from ..services import calls as calls_service

router = APIRouter()


@router.post("/outbound", response_model=schemas.OutboundCallResponse, status_code=status.HTTP_201_CREATED)
async def start_outbound_call(
    payload: schemas.OutboundCallRequest,
    session: AsyncSession = Depends(get_session),
) -> schemas.OutboundCallResponse:
    """Create a call for a lead and return the browser session link."""

    return await calls_service.start_outbound_call(payload, session)
