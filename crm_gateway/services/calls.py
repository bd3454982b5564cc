"""Outbound call initiation."""
from __future__ import annotations

from fastapi import HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.config import settings
from ..repositories import calls as calls_repo
from ..repositories import leads as leads_repo
from ..schemas import calls as schemas


def session_url_for(call_id: int) -> str:
    return f"{settings.frontend_url.rstrip('/')}/webrtc-client.html?call_id={call_id}"


async def start_outbound_call(
    payload: schemas.OutboundCallRequest,
    session: AsyncSession,
) -> schemas.OutboundCallResponse:
    """Create a call for an existing lead and return the browser session link."""

    async with session.begin():
        lead = await leads_repo.get_by_id(session, payload.lead_id)
        if lead is None:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Lead not found")
        call = await calls_repo.create(session, lead_id=lead.id)

    return schemas.OutboundCallResponse(
        call_id=call.id,
        session_id=call.session_id,
        session_url=session_url_for(call.id),
        expires_in=settings.call_link_ttl_seconds,
    )
