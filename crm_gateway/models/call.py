"""Call model and its status transition table."""
from __future__ import annotations

from datetime import datetime
import enum
from typing import TYPE_CHECKING, Any

from sqlalchemy import DateTime, Enum, ForeignKey, Integer, String, Text, func
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .base import Base

if TYPE_CHECKING:
    from .lead import Lead


class CallStatus(str, enum.Enum):
    CREATED = "created"
    CONNECTING = "connecting"
    IN_PROGRESS = "in-progress"
    COMPLETED = "completed"
    FAILED = "failed"


TERMINAL_STATUSES = frozenset({CallStatus.COMPLETED, CallStatus.FAILED})

ALLOWED_TRANSITIONS: dict[CallStatus, frozenset[CallStatus]] = {
    CallStatus.CREATED: frozenset({CallStatus.CONNECTING, CallStatus.FAILED}),
    CallStatus.CONNECTING: frozenset({CallStatus.IN_PROGRESS, CallStatus.FAILED}),
    CallStatus.IN_PROGRESS: frozenset({CallStatus.COMPLETED, CallStatus.FAILED}),
    CallStatus.COMPLETED: frozenset(),
    CallStatus.FAILED: frozenset(),
}


class InvalidStatusTransition(ValueError):
    """Raised when a call status change is not in the transition table."""

    def __init__(self, current: CallStatus, target: CallStatus) -> None:
        super().__init__(f"Cannot move call from {current.value} to {target.value}")
        self.current = current
        self.target = target


def can_transition(current: CallStatus, target: CallStatus) -> bool:
    return target in ALLOWED_TRANSITIONS[current]


class Call(Base):
    """One AI-assisted voice interaction with a lead."""

    __tablename__ = "calls"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    lead_id: Mapped[int | None] = mapped_column(ForeignKey("leads.id", ondelete="SET NULL"))
    session_id: Mapped[str] = mapped_column(String, unique=True, nullable=False)
    status: Mapped[CallStatus] = mapped_column(
        Enum(
            CallStatus,
            name="call_status",
            native_enum=False,
            values_callable=lambda members: [member.value for member in members],
        ),
        default=CallStatus.CREATED,
        nullable=False,
    )
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    started_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    ended_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    transcript_text: Mapped[str | None] = mapped_column(Text)
    summary_json: Mapped[Any | None] = mapped_column(JSONB)
    sentiment: Mapped[str | None] = mapped_column(String)
    score_hotness: Mapped[int | None] = mapped_column(Integer)
    outcome: Mapped[str | None] = mapped_column(String)
    outcome_notes: Mapped[str | None] = mapped_column(Text)
    next_action: Mapped[str | None] = mapped_column(Text)

    lead: Mapped["Lead | None"] = relationship("Lead", back_populates="calls")
