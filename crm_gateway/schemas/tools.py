"""Schemas for tool invocations requested by the realtime agent."""
from __future__ import annotations

from datetime import datetime
import enum
from typing import Any, Literal

from pydantic import BaseModel, Field


class CrmOutcome(str, enum.Enum):
    INTERESTED = "interested"
    NOT_INTERESTED = "not_interested"
    FOLLOW_UP = "follow_up"
    APPOINTMENT = "appointment"


class CreateCalendarEventArgs(BaseModel):
    lead_id: str
    start_ts: datetime
    end_ts: datetime
    title: str
    notes: str | None = None


class SendMessageArgs(BaseModel):
    message: str
    type: Literal["sms", "email"]


class LogCrmOutcomeArgs(BaseModel):
    outcome: CrmOutcome
    notes: str | None = None
    next_action: str | None = None


class ToolCallRequest(BaseModel):
    id: str = Field(..., description="Tool call identifier assigned by the realtime service")
    name: str
    arguments: dict[str, Any] | str = Field(default_factory=dict)


class ToolCallResponse(BaseModel):
    tool_call_id: str
    output: str = Field(..., description="JSON encoded tool result")
