"""Call repository helpers used by the session gateway."""
from __future__ import annotations

from datetime import datetime, timezone
from typing import Any
from uuid import uuid4

from sqlalchemy.ext.asyncio import AsyncSession

from ..models.call import TERMINAL_STATUSES, Call, CallStatus, InvalidStatusTransition, can_transition


async def get_by_id(session: AsyncSession, call_id: int) -> Call | None:
    """Return a call record by identifier."""

    return await session.get(Call, call_id)


async def create(session: AsyncSession, *, lead_id: int) -> Call:
    """Insert a new call for the lead in the ``created`` state."""

    call = Call(lead_id=lead_id, session_id=str(uuid4()), status=CallStatus.CREATED)
    session.add(call)
    await session.flush()
    return call


async def update_status(session: AsyncSession, call_id: int, status: CallStatus) -> Call | None:
    """Move a call to ``status``, stamping start/end times.

    Returns ``None`` when the call does not exist and raises
    :class:`InvalidStatusTransition` when the move is not allowed.
    """

    call = await session.get(Call, call_id)
    if call is None:
        return None
    if not can_transition(call.status, status):
        raise InvalidStatusTransition(call.status, status)

    now = datetime.now(timezone.utc)
    call.status = status
    if status is CallStatus.IN_PROGRESS and call.started_at is None:
        call.started_at = now
    if status in TERMINAL_STATUSES:
        call.ended_at = now
    session.add(call)
    await session.flush()
    return call


async def update_transcript(session: AsyncSession, call_id: int, transcript_text: str) -> Call | None:
    call = await session.get(Call, call_id)
    if call is None:
        return None
    call.transcript_text = transcript_text
    session.add(call)
    await session.flush()
    return call


async def update_summary(
    session: AsyncSession,
    call_id: int,
    *,
    summary: Any,
    sentiment: str,
    score_hotness: int,
) -> Call | None:
    call = await session.get(Call, call_id)
    if call is None:
        return None
    call.summary_json = summary
    call.sentiment = sentiment
    call.score_hotness = score_hotness
    session.add(call)
    await session.flush()
    return call


async def update_outcome(
    session: AsyncSession,
    call_id: int,
    *,
    outcome: str,
    notes: str | None = None,
    next_action: str | None = None,
) -> Call | None:
    """Record the CRM outcome the agent logged for the call."""

    call = await session.get(Call, call_id)
    if call is None:
        return None
    call.outcome = outcome
    call.outcome_notes = notes
    call.next_action = next_action
    session.add(call)
    await session.flush()
    return call
