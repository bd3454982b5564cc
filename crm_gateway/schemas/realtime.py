"""Contracts for the external realtime AI session service and its callbacks."""
from __future__ import annotations

from datetime import datetime
from typing import Any, Literal

from pydantic import BaseModel, Field


class TurnDetection(BaseModel):
    type: Literal["server_vad"] = "server_vad"
    threshold: float = Field(default=0.5, ge=0.0, le=1.0)
    silence_duration_ms: int = Field(default=500, ge=0)


class ToolDefinition(BaseModel):
    type: Literal["function"] = "function"
    name: str
    description: str
    parameters: dict[str, Any]


class RealtimeSessionConfig(BaseModel):
    model: str
    voice: str
    instructions: str
    turn_detection: TurnDetection
    modalities: list[str] = Field(default_factory=lambda: ["text", "audio"])
    tools: list[ToolDefinition] = Field(default_factory=list)


class RealtimeClientSecret(BaseModel):
    value: str
    expires_at: datetime | int | None = None


class RealtimeSession(BaseModel):
    """Session handle returned by the realtime service."""

    id: str | None = None
    model: str
    client_secret: RealtimeClientSecret


class TranscriptDeltaRequest(BaseModel):
    text: str


class SummaryRequest(BaseModel):
    summary: Any
    sentiment: str | None = None
    score_hotness: int | None = Field(default=None, ge=0, le=100)


class SpeechRequest(BaseModel):
    text: str = Field(..., min_length=1)
