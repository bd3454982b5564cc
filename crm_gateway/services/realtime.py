"""Client for the external realtime voice-agent session API."""
from __future__ import annotations

import logging
from typing import Protocol

import httpx
from pydantic import ValidationError

from ..core.config import Settings, settings
from ..schemas.realtime import RealtimeSession, RealtimeSessionConfig, ToolDefinition, TurnDetection

logger = logging.getLogger(__name__)

TOOL_DEFINITIONS: tuple[ToolDefinition, ...] = (
    ToolDefinition(
        name="create_calendar_event",
        description="Create an appointment for the customer.",
        parameters={
            "type": "object",
            "properties": {
                "lead_id": {"type": "string"},
                "start_ts": {"type": "string", "format": "date-time"},
                "end_ts": {"type": "string", "format": "date-time"},
                "title": {"type": "string"},
                "notes": {"type": "string"},
            },
            "required": ["lead_id", "start_ts", "end_ts", "title"],
        },
    ),
    ToolDefinition(
        name="send_message",
        description="Send the customer a message.",
        parameters={
            "type": "object",
            "properties": {
                "message": {"type": "string"},
                "type": {"type": "string", "enum": ["sms", "email"]},
            },
            "required": ["message", "type"],
        },
    ),
    ToolDefinition(
        name="log_crm_outcome",
        description="Record the outcome of the call in the CRM.",
        parameters={
            "type": "object",
            "properties": {
                "outcome": {
                    "type": "string",
                    "enum": ["interested", "not_interested", "follow_up", "appointment"],
                },
                "notes": {"type": "string"},
                "next_action": {"type": "string"},
            },
            "required": ["outcome"],
        },
    ),
)


class RealtimeUnavailableError(RuntimeError):
    """Raised when a realtime session could not be created."""


class RealtimeClient(Protocol):
    async def create_session(self, config: RealtimeSessionConfig) -> RealtimeSession:
        ...

    async def aclose(self) -> None:
        ...


def build_session_config(instructions: str, config: Settings | None = None) -> RealtimeSessionConfig:
    """Return the fixed session parameters around the per-call instructions."""

    config = config or settings
    return RealtimeSessionConfig(
        model=config.realtime_model,
        voice=config.realtime_voice,
        instructions=instructions,
        turn_detection=TurnDetection(
            threshold=config.realtime_vad_threshold,
            silence_duration_ms=config.realtime_vad_silence_ms,
        ),
        tools=list(TOOL_DEFINITIONS),
    )


class OpenAIRealtimeClient:
    """Mint ephemeral realtime sessions over HTTP."""

    def __init__(
        self,
        api_key: str,
        *,
        base_url: str = "https://api.openai.com/v1",
        timeout: float = 15.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._api_key = api_key
        self._client = httpx.AsyncClient(
            base_url=base_url.rstrip("/"),
            timeout=timeout,
            transport=transport,
        )

    @classmethod
    def from_settings(cls, config: Settings | None = None) -> "OpenAIRealtimeClient":
        config = config or settings
        return cls(
            config.openai_api_key,
            base_url=config.realtime_base_url,
            timeout=config.realtime_session_timeout_seconds,
        )

    async def create_session(self, config: RealtimeSessionConfig) -> RealtimeSession:
        if not self._api_key.strip():
            raise RealtimeUnavailableError("OPENAI_API_KEY is missing")

        headers = {
            "Authorization": f"Bearer {self._api_key}",
            "OpenAI-Beta": "realtime=v1",
        }
        try:
            response = await self._client.post(
                "/realtime/sessions",
                json=config.model_dump(mode="json"),
                headers=headers,
            )
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            logger.warning(
                "Realtime session request rejected with %s: %s",
                exc.response.status_code,
                exc.response.text[:500],
            )
            raise RealtimeUnavailableError(f"Realtime session request failed ({exc.response.status_code})") from exc
        except httpx.HTTPError as exc:
            logger.warning("Realtime session request failed: %s", exc)
            raise RealtimeUnavailableError("Realtime session service unreachable") from exc

        try:
            return RealtimeSession.model_validate(response.json())
        except (ValueError, ValidationError) as exc:
            raise RealtimeUnavailableError("Realtime session response was malformed") from exc

    async def aclose(self) -> None:
        await self._client.aclose()
