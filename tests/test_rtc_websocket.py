"""End-to-end checks for the /ws/rtc socket."""
from __future__ import annotations

import pytest
from fastapi.testclient import TestClient
from starlette.websockets import WebSocketDisconnect

from crm_gateway.main import app
from crm_gateway.routers.deps import get_gateway


@pytest.fixture
def client(make_gateway, crm):
    crm.add_call(1, lead_id=10)
    crm.add_lead(10, full_name="Mehmet Demir")
    gateway = make_gateway()
    app.dependency_overrides[get_gateway] = lambda: gateway
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.mark.parametrize("query", ["", "?call_id=", "?call_id=abc", "?call_id=0"])
def test_missing_call_id_closes_with_policy_violation(client, query) -> None:
    with client.websocket_connect(f"/ws/rtc{query}") as websocket:
        with pytest.raises(WebSocketDisconnect) as exc:
            websocket.receive_json()

    assert exc.value.code == 1008


def test_offer_flow_over_socket(client, realtime) -> None:
    with client.websocket_connect("/ws/rtc?call_id=1") as websocket:
        assert websocket.receive_json() == {"type": "status", "status": "connecting"}

        websocket.send_json({"type": "client-offer", "sdp": "v=0"})

        ready = websocket.receive_json()
        assert ready["type"] == "session-ready"
        assert ready["session"]["client_secret"]["value"] == "ek_test_secret"
        assert websocket.receive_json() == {"type": "status", "status": "in-progress"}

    assert "Mehmet Demir" in realtime.configs[0].instructions


def test_invalid_json_reports_error_and_keeps_socket(client) -> None:
    with client.websocket_connect("/ws/rtc?call_id=1") as websocket:
        websocket.receive_json()

        websocket.send_text("{not json")
        assert websocket.receive_json() == {"type": "error", "message": "Invalid message format"}

        websocket.send_json({"type": "client-offer"})
        assert websocket.receive_json()["type"] == "session-ready"


def test_duplicate_connection_is_rejected(client) -> None:
    with client.websocket_connect("/ws/rtc?call_id=1") as first:
        first.receive_json()

        with client.websocket_connect("/ws/rtc?call_id=1") as second:
            with pytest.raises(WebSocketDisconnect) as exc:
                second.receive_json()

        assert exc.value.code == 1008
