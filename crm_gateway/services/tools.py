"""Handlers for tool calls requested by the realtime agent."""
from __future__ import annotations

import json
import logging
import time
from typing import Any, Awaitable, Callable

from pydantic import BaseModel, ValidationError
from sqlalchemy.ext.asyncio import AsyncSession

from ..repositories import calls as calls_repo
from ..schemas import tools as schemas

logger = logging.getLogger(__name__)

ToolResult = dict[str, Any]


def _stamp() -> int:
    return int(time.time() * 1000)


async def create_calendar_event(
    call_id: int,
    args: schemas.CreateCalendarEventArgs,
) -> ToolResult:
    """Acknowledge an appointment request.

    No calendar integration exists yet, so nothing is persisted.
    """

    logger.info(
        "Calendar event requested for call %s: lead=%s %s-%s %r",
        call_id,
        args.lead_id,
        args.start_ts.isoformat(),
        args.end_ts.isoformat(),
        args.title,
    )
    return {
        "success": True,
        "event_id": f"event_{_stamp()}",
        "message": "Appointment created successfully",
    }


async def send_message(
    call_id: int,
    args: schemas.SendMessageArgs,
) -> ToolResult:
    """Acknowledge an outbound message request; delivery is not wired up."""

    logger.info("Message requested for call %s via %s (%d chars)", call_id, args.type, len(args.message))
    return {
        "success": True,
        "message_id": f"msg_{_stamp()}",
        "message": "Message sent successfully",
    }


async def log_crm_outcome(
    call_id: int,
    args: schemas.LogCrmOutcomeArgs,
    session: AsyncSession,
) -> ToolResult:
    """Persist the outcome fields onto the call."""

    call = await calls_repo.update_outcome(
        session,
        call_id,
        outcome=args.outcome.value,
        notes=args.notes,
        next_action=args.next_action,
    )
    if call is None:
        logger.warning("Outcome for call %s not recorded: call not found", call_id)
        return {"error": "Call not found"}
    return {
        "success": True,
        "outcome": args.outcome.value,
        "message": "CRM outcome recorded",
    }


ToolHandler = Callable[..., Awaitable[ToolResult]]

# name -> (argument model, handler, handler writes through the session)
TOOL_HANDLERS: dict[str, tuple[type[BaseModel], ToolHandler, bool]] = {
    "create_calendar_event": (schemas.CreateCalendarEventArgs, create_calendar_event, False),
    "send_message": (schemas.SendMessageArgs, send_message, False),
    "log_crm_outcome": (schemas.LogCrmOutcomeArgs, log_crm_outcome, True),
}


def _decode_arguments(raw: dict[str, Any] | str) -> dict[str, Any]:
    if isinstance(raw, dict):
        return raw
    if not raw.strip():
        return {}
    decoded = json.loads(raw)
    if not isinstance(decoded, dict):
        raise ValueError("Tool arguments must be a JSON object")
    return decoded


async def run_tool(
    call_id: int,
    name: str,
    raw_arguments: dict[str, Any] | str,
    session: AsyncSession,
) -> ToolResult:
    """Validate arguments and execute the named tool.

    Unknown tools and invalid arguments produce an error payload; handler
    exceptions propagate to the caller.
    """

    entry = TOOL_HANDLERS.get(name)
    if entry is None:
        logger.warning("Unknown tool %r requested for call %s", name, call_id)
        return {"error": "Unknown tool"}

    model, handler, uses_session = entry
    try:
        args = model.model_validate(_decode_arguments(raw_arguments))
    except (ValueError, ValidationError) as exc:
        logger.warning("Invalid arguments for tool %s on call %s: %s", name, call_id, exc)
        return {"error": "Invalid arguments", "tool": name}

    if uses_session:
        return await handler(call_id, args, session)
    return await handler(call_id, args)
