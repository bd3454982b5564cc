"""Messages exchanged with the browser over the call-session socket."""
from __future__ import annotations

from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter

from ..models.call import CallStatus


class ClientOfferMessage(BaseModel):
    model_config = ConfigDict(extra="allow")

    type: Literal["client-offer"]
    sdp: str | None = None


class ClientIceMessage(BaseModel):
    type: Literal["client-ice"]
    candidate: Any = None


InboundMessage = Annotated[Union[ClientOfferMessage, ClientIceMessage], Field(discriminator="type")]
inbound_adapter: TypeAdapter[InboundMessage] = TypeAdapter(InboundMessage)

INBOUND_TYPES = frozenset({"client-offer", "client-ice"})


class StatusMessage(BaseModel):
    type: Literal["status"] = "status"
    status: CallStatus


class ClientSecret(BaseModel):
    value: str


class SessionCredentials(BaseModel):
    model: str
    client_secret: ClientSecret


class SessionReadyMessage(BaseModel):
    type: Literal["session-ready"] = "session-ready"
    session: SessionCredentials


class TranscriptDeltaMessage(BaseModel):
    type: Literal["transcript.delta"] = "transcript.delta"
    text: str


class SummaryReadyMessage(BaseModel):
    type: Literal["summary.ready"] = "summary.ready"
    summary: Any
    sentiment: str
    score_hotness: int


class AudioDataMessage(BaseModel):
    type: Literal["audio.data"] = "audio.data"
    audio: str = Field(..., description="Base64 encoded audio clip")
    text: str


class ErrorMessage(BaseModel):
    type: Literal["error"] = "error"
    message: str


