"""Shared fakes for gateway tests."""
from __future__ import annotations

import asyncio
from types import SimpleNamespace
from typing import Any

import pytest

from crm_gateway.core.config import Settings
from crm_gateway.models.call import CallStatus, InvalidStatusTransition, can_transition
from crm_gateway.repositories import calls as calls_repo
from crm_gateway.repositories import leads as leads_repo
from crm_gateway.repositories import projects as projects_repo
from crm_gateway.schemas.realtime import RealtimeClientSecret, RealtimeSession
from crm_gateway.services.gateway import CallGateway


class DummySession:
    """Minimal session stub supporting ``async with`` and async transactions."""

    def __init__(self) -> None:
        self.added: list[object] = []
        self.transactions = 0

    async def __aenter__(self) -> "DummySession":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> bool:
        return False

    def add(self, obj: object) -> None:
        self.added.append(obj)

    async def flush(self) -> None:
        return None

    def begin(self):  # noqa: D401 - mimic SQLAlchemy's async begin
        session = self

        class _Tx:
            async def __aenter__(self_inner):
                session.transactions += 1
                return session

            async def __aexit__(self_inner, exc_type, exc, tb):
                return False

        return _Tx()


class FakeRealtimeClient:
    """Realtime client double recording the configs it receives."""

    def __init__(
        self,
        session: RealtimeSession | None = None,
        *,
        error: Exception | None = None,
        delay: float = 0.0,
    ) -> None:
        self.session = session or RealtimeSession(
            id="sess_123",
            model="gpt-4o-realtime-preview",
            client_secret=RealtimeClientSecret(value="ek_test_secret"),
        )
        self.error = error
        self.delay = delay
        self.configs: list[Any] = []
        self.closed = False

    async def create_session(self, config):
        self.configs.append(config)
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error is not None:
            raise self.error
        return self.session

    async def aclose(self) -> None:
        self.closed = True


class SocketRecorder:
    """Stand-in for a browser socket."""

    def __init__(self) -> None:
        self.messages: list[dict] = []
        self.closed_with: tuple[int, str | None] | None = None

    async def send(self, message: dict) -> None:
        self.messages.append(message)

    async def close(self, code: int = 1000, reason: str | None = None) -> None:
        self.closed_with = (code, reason)

    def of_type(self, kind: str) -> list[dict]:
        return [message for message in self.messages if message["type"] == kind]


class FakeCrm:
    """In-memory replacement for the call, lead and project repositories."""

    def __init__(self) -> None:
        self.calls: dict[int, SimpleNamespace] = {}
        self.leads: dict[int, SimpleNamespace] = {}
        self.projects: dict[int, SimpleNamespace] = {}
        self.status_writes: list[tuple[int, CallStatus]] = []
        self.transcript_writes: list[tuple[int, str]] = []
        self.summary_writes: list[tuple[int, Any, str, int]] = []
        self.outcome_writes: list[tuple[int, str, str | None, str | None]] = []

    def add_call(self, call_id: int = 1, *, lead_id: int | None = 10, status: CallStatus = CallStatus.CREATED):
        call = SimpleNamespace(
            id=call_id,
            lead_id=lead_id,
            status=status,
            transcript_text=None,
            summary_json=None,
            sentiment=None,
            score_hotness=None,
            outcome=None,
            outcome_notes=None,
            next_action=None,
        )
        self.calls[call_id] = call
        return call

    def add_lead(self, lead_id: int = 10, *, full_name: str = "Ayşe Yılmaz", project_id: int | None = None):
        lead = SimpleNamespace(id=lead_id, full_name=full_name, project_id=project_id)
        self.leads[lead_id] = lead
        return lead

    def add_project(self, project_id: int = 100, **fields: Any):
        defaults = {
            "name": "Bosphorus Gardens",
            "description": "Sea-view residences",
            "price_range": "8.5M - 14M TRY",
            "delivery_date": None,
            "address": "Sariyer, Istanbul",
            "faq_json": {},
            "docs_json": {},
        }
        defaults.update(fields)
        project = SimpleNamespace(id=project_id, **defaults)
        self.projects[project_id] = project
        return project

    async def get_call(self, session, call_id):
        return self.calls.get(call_id)

    async def update_status(self, session, call_id, status):
        call = self.calls.get(call_id)
        if call is None:
            return None
        current = CallStatus(call.status)
        if not can_transition(current, status):
            raise InvalidStatusTransition(current, status)
        call.status = status
        self.status_writes.append((call_id, status))
        return call

    async def update_transcript(self, session, call_id, transcript_text):
        call = self.calls.get(call_id)
        if call is None:
            return None
        call.transcript_text = transcript_text
        self.transcript_writes.append((call_id, transcript_text))
        return call

    async def update_summary(self, session, call_id, *, summary, sentiment, score_hotness):
        call = self.calls.get(call_id)
        if call is None:
            return None
        call.summary_json = summary
        call.sentiment = sentiment
        call.score_hotness = score_hotness
        self.summary_writes.append((call_id, summary, sentiment, score_hotness))
        return call

    async def update_outcome(self, session, call_id, *, outcome, notes=None, next_action=None):
        call = self.calls.get(call_id)
        if call is None:
            return None
        call.outcome = outcome
        call.outcome_notes = notes
        call.next_action = next_action
        self.outcome_writes.append((call_id, outcome, notes, next_action))
        return call

    async def get_lead(self, session, lead_id):
        return self.leads.get(lead_id)

    async def get_project(self, session, project_id):
        return self.projects.get(project_id)

    def install(self, monkeypatch: pytest.MonkeyPatch) -> "FakeCrm":
        monkeypatch.setattr(calls_repo, "get_by_id", self.get_call)
        monkeypatch.setattr(calls_repo, "update_status", self.update_status)
        monkeypatch.setattr(calls_repo, "update_transcript", self.update_transcript)
        monkeypatch.setattr(calls_repo, "update_summary", self.update_summary)
        monkeypatch.setattr(calls_repo, "update_outcome", self.update_outcome)
        monkeypatch.setattr(leads_repo, "get_by_id", self.get_lead)
        monkeypatch.setattr(projects_repo, "get_by_id", self.get_project)
        return self


def make_settings(**overrides: Any) -> Settings:
    values: dict[str, Any] = {"openai_api_key": "test-key", "agent_language": "Turkish"}
    values.update(overrides)
    return Settings(_env_file=None, **values)


@pytest.fixture
def crm(monkeypatch: pytest.MonkeyPatch) -> FakeCrm:
    return FakeCrm().install(monkeypatch)


@pytest.fixture
def db() -> DummySession:
    return DummySession()


@pytest.fixture
def realtime() -> FakeRealtimeClient:
    return FakeRealtimeClient()


@pytest.fixture
def make_gateway(db: DummySession, realtime: FakeRealtimeClient):
    def _make(*, realtime_client: FakeRealtimeClient | None = None, speech=None, **overrides: Any) -> CallGateway:
        kwargs: dict[str, Any] = {}
        if speech is not None:
            kwargs["speech"] = speech
        return CallGateway(
            session_factory=lambda: db,
            realtime=realtime_client or realtime,
            config=make_settings(**overrides),
            **kwargs,
        )

    return _make
