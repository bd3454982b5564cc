"""In-memory registry of live call sessions."""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Awaitable, Callable, Dict, Literal, Optional

from ..schemas.realtime import RealtimeSession

SendCallable = Callable[[dict], Awaitable[None]]
CloseCallable = Callable[..., Awaitable[None]]
DuplicatePolicy = Literal["reject", "supersede"]


class DuplicateSessionError(RuntimeError):
    """Raised when a call already has a live session under the reject policy."""

    def __init__(self, call_id: int) -> None:
        super().__init__(f"Call {call_id} already has an active session")
        self.call_id = call_id


@dataclass
class CallSession:
    """Live pairing of a socket connection with a call."""

    call_id: int
    send: SendCallable
    close: CloseCallable | None = None
    transcript: str = ""
    started_at: datetime | None = None
    realtime: RealtimeSession | None = None
    superseded: bool = field(default=False)


class SessionRegistry:
    """Track at most one live session per call identifier."""

    def __init__(self, policy: DuplicatePolicy = "reject") -> None:
        if policy not in ("reject", "supersede"):
            raise ValueError(f"Unknown duplicate connection policy: {policy}")
        self._policy = policy
        self._sessions: Dict[int, CallSession] = {}

    @property
    def policy(self) -> DuplicatePolicy:
        return self._policy

    def register(self, session: CallSession) -> Optional[CallSession]:
        """Add ``session`` and return the session it displaced, if any.

        Under the reject policy an existing entry raises :class:`DuplicateSessionError`
        and the registry is left untouched.
        """

        existing = self._sessions.get(session.call_id)
        if existing is not None and existing is not session:
            if self._policy == "reject":
                raise DuplicateSessionError(session.call_id)
            existing.superseded = True
        self._sessions[session.call_id] = session
        return existing if existing is not session else None

    def get(self, call_id: int) -> Optional[CallSession]:
        return self._sessions.get(call_id)

    def remove(self, call_id: int, session: CallSession | None = None) -> None:
        """Drop the entry for ``call_id``; a stale ``session`` never evicts its successor."""

        current = self._sessions.get(call_id)
        if current is None:
            return
        if session is not None and current is not session:
            return
        self._sessions.pop(call_id, None)

    def sessions(self) -> list[CallSession]:
        return list(self._sessions.values())

    def __len__(self) -> int:
        return len(self._sessions)

    def __contains__(self, call_id: object) -> bool:
        return call_id in self._sessions
