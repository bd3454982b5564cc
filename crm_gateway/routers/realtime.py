"""Callback endpoints the realtime agent uses to reach the CRM."""
from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Response, status

from ..schemas import realtime as schemas
from ..schemas.tools import ToolCallRequest, ToolCallResponse
from ..services.gateway import CallGateway, SessionNotFoundError
from .deps import get_gateway

router = APIRouter()


@router.post("/calls/{call_id}/tool-calls", response_model=ToolCallResponse)
async def tool_call(
    call_id: int,
    payload: ToolCallRequest,
    gateway: CallGateway = Depends(get_gateway),
) -> ToolCallResponse:
    """Execute a tool for the agent; failures come back inside the output."""

    return await gateway.handle_tool_call(call_id, payload)


@router.post("/calls/{call_id}/transcript", status_code=status.HTTP_204_NO_CONTENT)
async def transcript_delta(
    call_id: int,
    payload: schemas.TranscriptDeltaRequest,
    gateway: CallGateway = Depends(get_gateway),
) -> Response:
    try:
        await gateway.handle_transcript_delta(call_id, payload.text)
    except SessionNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/calls/{call_id}/summary", status_code=status.HTTP_204_NO_CONTENT)
async def summary_ready(
    call_id: int,
    payload: schemas.SummaryRequest,
    gateway: CallGateway = Depends(get_gateway),
) -> Response:
    """Publish the summary and complete the call."""

    try:
        await gateway.handle_summary(
            call_id,
            payload.summary,
            sentiment=payload.sentiment,
            score_hotness=payload.score_hotness,
        )
    except SessionNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/calls/{call_id}/speech", status_code=status.HTTP_204_NO_CONTENT)
async def speech(
    call_id: int,
    payload: schemas.SpeechRequest,
    gateway: CallGateway = Depends(get_gateway),
) -> Response:
    try:
        await gateway.speak(call_id, payload.text)
    except SessionNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    return Response(status_code=status.HTTP_204_NO_CONTENT)
