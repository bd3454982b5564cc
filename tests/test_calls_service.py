"""Outbound call initiation."""
from __future__ import annotations

from types import SimpleNamespace
from unittest.mock import AsyncMock

import pytest
from fastapi import HTTPException

from crm_gateway.repositories import calls as calls_repo
from crm_gateway.repositories import leads as leads_repo
from crm_gateway.schemas.calls import OutboundCallRequest
from crm_gateway.services import calls as calls_service


@pytest.mark.asyncio
async def test_start_outbound_call_creates_call(monkeypatch, db) -> None:
    monkeypatch.setattr(leads_repo, "get_by_id", AsyncMock(return_value=SimpleNamespace(id=10)))
    create = AsyncMock(return_value=SimpleNamespace(id=42, session_id="5b0c9a5e-session"))
    monkeypatch.setattr(calls_repo, "create", create)
    monkeypatch.setattr(calls_service.settings, "frontend_url", "https://crm.example.com/", raising=False)
    monkeypatch.setattr(calls_service.settings, "call_link_ttl_seconds", 300, raising=False)

    response = await calls_service.start_outbound_call(OutboundCallRequest(lead_id=10), db)

    assert response.call_id == 42
    assert response.session_id == "5b0c9a5e-session"
    assert response.session_url == "https://crm.example.com/webrtc-client.html?call_id=42"
    assert response.expires_in == 300
    assert db.transactions == 1
    create.assert_awaited_once_with(db, lead_id=10)


@pytest.mark.asyncio
async def test_start_outbound_call_unknown_lead(monkeypatch, db) -> None:
    monkeypatch.setattr(leads_repo, "get_by_id", AsyncMock(return_value=None))
    create = AsyncMock()
    monkeypatch.setattr(calls_repo, "create", create)

    with pytest.raises(HTTPException) as exc:
        await calls_service.start_outbound_call(OutboundCallRequest(lead_id=99), db)

    assert exc.value.status_code == 404
    create.assert_not_awaited()
