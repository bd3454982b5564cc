"""Schemas for outbound call initiation."""
from __future__ import annotations

from pydantic import BaseModel, Field


class OutboundCallRequest(BaseModel):
    lead_id: int = Field(..., ge=1)


class OutboundCallResponse(BaseModel):
    call_id: int
    session_id: str
    session_url: str
    expires_in: int = Field(..., ge=1, description="Seconds the session link stays valid")
