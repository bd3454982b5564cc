"""Call-session gateway bridging browser sockets, the CRM and the realtime agent."""
from __future__ import annotations

import asyncio
import base64
import json
import logging
from datetime import datetime, timezone
from typing import Any, AsyncContextManager, Awaitable, Callable

from pydantic import BaseModel, ValidationError
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.config import Settings, settings
from ..db.session import SessionFactory, transaction
from ..models.call import CallStatus, InvalidStatusTransition, can_transition
from ..repositories import calls as calls_repo
from ..repositories import leads as leads_repo
from ..repositories import projects as projects_repo
from ..schemas.gateway import (
    INBOUND_TYPES,
    AudioDataMessage,
    ClientIceMessage,
    ClientOfferMessage,
    ClientSecret,
    ErrorMessage,
    SessionCredentials,
    SessionReadyMessage,
    StatusMessage,
    SummaryReadyMessage,
    TranscriptDeltaMessage,
    inbound_adapter,
)
from ..schemas.realtime import RealtimeSession
from ..schemas.tools import ToolCallRequest, ToolCallResponse
from . import tools as tools_service
from .prompts import build_system_prompt
from .realtime import RealtimeClient, RealtimeUnavailableError, build_session_config
from .session_registry import CallSession, CloseCallable, SendCallable, SessionRegistry
from .tts import synthesize_speech

logger = logging.getLogger(__name__)

SpeechSynthesizer = Callable[[str], Awaitable[tuple[bytes, str]]]

SUPERSEDED_CLOSE_CODE = 4000
GOING_AWAY_CLOSE_CODE = 1001


class CallSetupError(RuntimeError):
    """Raised when a call record is missing or unusable for the requested step."""

    def __init__(self, client_message: str, *, call_exists: bool = True) -> None:
        super().__init__(client_message)
        self.client_message = client_message
        self.call_exists = call_exists


class SessionNotFoundError(LookupError):
    """Raised when a callback targets a call without a live session."""

    def __init__(self, call_id: int) -> None:
        super().__init__(f"No active session for call {call_id}")
        self.call_id = call_id


class CallGateway:
    """Drive the lifecycle of every live call session.

    One instance owns the session registry and the realtime client; the
    application creates it on startup and shuts it down on exit.
    """

    def __init__(
        self,
        *,
        session_factory: SessionFactory,
        realtime: RealtimeClient,
        registry: SessionRegistry | None = None,
        config: Settings | None = None,
        speech: SpeechSynthesizer = synthesize_speech,
    ) -> None:
        self._config = config or settings
        self._session_factory = session_factory
        self._realtime = realtime
        self._registry = registry or SessionRegistry(self._config.duplicate_connection_policy)
        self._speech = speech

    @property
    def registry(self) -> SessionRegistry:
        return self._registry

    @property
    def session_count(self) -> int:
        return len(self._registry)

    def _transaction(self) -> AsyncContextManager[AsyncSession]:
        return transaction(self._session_factory)

    # Socket lifecycle

    async def connect(self, call_id: int, send: SendCallable, close: CloseCallable | None = None) -> CallSession:
        """Register a socket for ``call_id`` and greet it with ``status: connecting``."""

        session = CallSession(call_id=call_id, send=send, close=close)
        displaced = self._registry.register(session)
        logger.info("Call session connected: %s", call_id)

        if displaced is not None:
            logger.info("Call %s superseded by a newer connection", call_id)
            await self._close_socket(displaced, SUPERSEDED_CLOSE_CODE, "Superseded by a newer connection")

        await self._send(session, StatusMessage(status=CallStatus.CONNECTING))
        return session

    async def disconnect(self, session: CallSession) -> None:
        """Tear down a session, failing the call if it was still in progress."""

        call_id = session.call_id
        try:
            if session.superseded:
                logger.info("Superseded session for call %s closed", call_id)
                return
            async with self._transaction() as db:
                call = await calls_repo.get_by_id(db, call_id)
                if call is not None and call.status == CallStatus.IN_PROGRESS:
                    await calls_repo.update_status(db, call_id, CallStatus.FAILED)
                    logger.info("Call %s marked failed after disconnect", call_id)
        except Exception:  # noqa: BLE001
            logger.exception("Error cleaning up session for call %s", call_id)
        finally:
            self._registry.remove(call_id, session)
            logger.info("Call session disconnected: %s", call_id)

    async def report_connection_error(self, session: CallSession) -> None:
        await self._send_error(session, "Connection error")

    async def shutdown(self) -> None:
        for session in self._registry.sessions():
            await self._close_socket(session, GOING_AWAY_CLOSE_CODE, "Server shutting down")
        await self._realtime.aclose()

    # Inbound client messages

    async def handle_frame(self, session: CallSession, raw: str | bytes) -> None:
        """Decode one socket frame and route it by message type."""

        try:
            payload = json.loads(raw)
        except (TypeError, ValueError):
            logger.warning("Undecodable frame on call %s", session.call_id)
            await self._send_error(session, "Invalid message format")
            return

        if not isinstance(payload, dict):
            await self._send_error(session, "Invalid message format")
            return

        kind = payload.get("type")
        if not isinstance(kind, str) or kind not in INBOUND_TYPES:
            logger.warning("Unknown message type %r on call %s", kind, session.call_id)
            return

        try:
            message = inbound_adapter.validate_python(payload)
        except ValidationError as exc:
            logger.warning("Malformed %s message on call %s: %s", kind, session.call_id, exc)
            await self._send_error(session, "Invalid message format")
            return

        try:
            if isinstance(message, ClientOfferMessage):
                await self.handle_offer(session, message)
            elif isinstance(message, ClientIceMessage):
                await self.handle_ice(session, message)
        except Exception:  # noqa: BLE001
            logger.exception("Error handling %s on call %s", kind, session.call_id)
            await self._send_error(session, "Internal server error")

    async def handle_offer(self, session: CallSession, message: ClientOfferMessage) -> None:
        """Load the call context, open a realtime session and hand its credential to the client."""

        call_id = session.call_id
        try:
            async with self._transaction() as db:
                call = await calls_repo.get_by_id(db, call_id)
                if call is None:
                    raise CallSetupError("Call not found", call_exists=False)
                lead_id = call.lead_id
                await calls_repo.update_status(db, call_id, CallStatus.CONNECTING)
        except CallSetupError as exc:
            await self._abort(session, exc.client_message, mark_failed=exc.call_exists)
            return
        except InvalidStatusTransition as exc:
            logger.warning("Offer rejected for call %s: %s", call_id, exc)
            await self._send_error(session, f"Call cannot be started from status {exc.current.value}")
            return
        except Exception:  # noqa: BLE001
            logger.exception("Could not load call %s", call_id)
            await self._abort(session, "Failed to initialize call")
            return

        try:
            async with self._transaction() as db:
                lead = await leads_repo.get_by_id(db, lead_id) if lead_id is not None else None
                if lead is None:
                    raise CallSetupError("Lead not found")
                project = None
                if lead.project_id is not None:
                    project = await projects_repo.get_by_id(db, lead.project_id)
                instructions = build_system_prompt(lead, project, language=self._config.agent_language)

            logger.info("Requesting realtime session for call %s (%d prompt chars)", call_id, len(instructions))
            realtime = await self._create_realtime_session(instructions)
            session.realtime = realtime

            await self._send(
                session,
                SessionReadyMessage(
                    session=SessionCredentials(
                        model=realtime.model,
                        client_secret=ClientSecret(value=realtime.client_secret.value),
                    )
                ),
            )
            await self._send(session, StatusMessage(status=CallStatus.IN_PROGRESS))

            async with self._transaction() as db:
                await calls_repo.update_status(db, call_id, CallStatus.IN_PROGRESS)
            session.started_at = datetime.now(timezone.utc)
            logger.info("Call %s in progress", call_id)
        except CallSetupError as exc:
            await self._abort(session, exc.client_message)
        except RealtimeUnavailableError as exc:
            logger.warning("Realtime session unavailable for call %s: %s", call_id, exc)
            await self._abort(session, "Failed to initialize call")
        except Exception:  # noqa: BLE001
            logger.exception("Error handling client offer for call %s", call_id)
            await self._abort(session, "Failed to initialize call")

    async def handle_ice(self, session: CallSession, message: ClientIceMessage) -> None:
        # Candidates are not forwarded; the browser negotiates with the realtime service directly.
        logger.info("ICE candidate received for call %s", session.call_id)

    # Realtime service callbacks

    async def handle_tool_call(self, call_id: int, request: ToolCallRequest) -> ToolCallResponse:
        """Run a tool for the agent and always return an answer."""

        result: dict[str, Any]
        if self._registry.get(call_id) is None:
            logger.warning("Tool %s requested for call %s without a live session", request.name, call_id)
            result = {"error": "No active session"}
        else:
            logger.info("Tool call %s (%s) for call %s", request.id, request.name, call_id)
            try:
                async with self._transaction() as db:
                    result = await tools_service.run_tool(call_id, request.name, request.arguments, db)
            except Exception:  # noqa: BLE001
                logger.exception("Tool %s failed for call %s", request.name, call_id)
                result = {"error": "Tool execution failed"}

        return ToolCallResponse(tool_call_id=request.id, output=json.dumps(result, ensure_ascii=False))

    async def handle_transcript_delta(self, call_id: int, text: str) -> None:
        session = self._require_session(call_id)
        session.transcript += text
        await self._send(session, TranscriptDeltaMessage(text=text))

        try:
            async with self._transaction() as db:
                await calls_repo.update_transcript(db, call_id, session.transcript)
        except Exception:  # noqa: BLE001
            logger.exception("Could not persist transcript for call %s", call_id)
            await self._abort(session, "Failed to save transcript")

    async def handle_summary(
        self,
        call_id: int,
        summary: Any,
        *,
        sentiment: str | None = None,
        score_hotness: int | None = None,
    ) -> None:
        """Store the call summary, complete the call, then publish ``summary.ready``."""

        session = self._require_session(call_id)
        sentiment = sentiment or self._config.default_sentiment
        score = score_hotness if score_hotness is not None else self._config.default_score_hotness

        try:
            async with self._transaction() as db:
                call = await calls_repo.get_by_id(db, call_id)
                if call is None:
                    raise CallSetupError("Call not found", call_exists=False)
                current = CallStatus(call.status)
                if not can_transition(current, CallStatus.COMPLETED):
                    raise InvalidStatusTransition(current, CallStatus.COMPLETED)
                await calls_repo.update_summary(
                    db, call_id, summary=summary, sentiment=sentiment, score_hotness=score
                )
                await calls_repo.update_status(db, call_id, CallStatus.COMPLETED)
        except CallSetupError as exc:
            await self._send_error(session, exc.client_message)
            return
        except InvalidStatusTransition as exc:
            logger.warning("Summary for call %s rejected: %s", call_id, exc)
            await self._send_error(session, f"Call cannot be completed from status {exc.current.value}")
            return
        except Exception:  # noqa: BLE001
            logger.exception("Could not persist summary for call %s", call_id)
            await self._abort(session, "Failed to save summary")
            return

        logger.info("Call %s completed", call_id)
        await self._send(
            session,
            SummaryReadyMessage(summary=summary, sentiment=sentiment, score_hotness=score),
        )

    async def speak(self, call_id: int, text: str) -> None:
        """Send synthesized agent speech, or the bare text if synthesis fails."""

        session = self._require_session(call_id)
        try:
            audio, _media_type = await self._speech(text)
        except Exception as exc:  # noqa: BLE001
            logger.warning("Speech synthesis failed for call %s: %s", call_id, exc)
            await self._send(session, TranscriptDeltaMessage(text=text))
            return

        encoded = base64.b64encode(audio).decode("ascii")
        await self._send(session, AudioDataMessage(audio=encoded, text=text))

    # Helpers

    async def _create_realtime_session(self, instructions: str) -> RealtimeSession:
        config = build_session_config(instructions, self._config)
        try:
            return await asyncio.wait_for(
                self._realtime.create_session(config),
                timeout=self._config.realtime_session_timeout_seconds,
            )
        except asyncio.TimeoutError as exc:
            raise RealtimeUnavailableError("Realtime session request timed out") from exc

    def _require_session(self, call_id: int) -> CallSession:
        session = self._registry.get(call_id)
        if session is None:
            raise SessionNotFoundError(call_id)
        return session

    async def _abort(self, session: CallSession, message: str, *, mark_failed: bool = True) -> None:
        await self._send_error(session, message)
        if mark_failed:
            await self._mark_failed(session.call_id)

    async def _mark_failed(self, call_id: int) -> None:
        try:
            async with self._transaction() as db:
                await calls_repo.update_status(db, call_id, CallStatus.FAILED)
        except Exception:  # noqa: BLE001
            logger.exception("Could not mark call %s as failed", call_id)

    async def _send(self, session: CallSession, message: BaseModel) -> None:
        try:
            await session.send(message.model_dump(mode="json"))
        except Exception as exc:  # noqa: BLE001
            logger.warning("Dropping %s message for call %s: %s", getattr(message, "type", "?"), session.call_id, exc)

    async def _send_error(self, session: CallSession, message: str) -> None:
        await self._send(session, ErrorMessage(message=message))

    async def _close_socket(self, session: CallSession, code: int, reason: str) -> None:
        if session.close is None:
            return
        try:
            await session.close(code=code, reason=reason)
        except Exception as exc:  # noqa: BLE001
            logger.warning("Could not close socket for call %s: %s", session.call_id, exc)
