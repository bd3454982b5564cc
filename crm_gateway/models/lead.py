"""Lead model."""
from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING, Any

from sqlalchemy import Boolean, DateTime, ForeignKey, Integer, String, Text, func
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column, relationship

if TYPE_CHECKING:
    from .call import Call
    from .project import Project

from .base import Base


class Lead(Base):
    """Sales contact, optionally attached to a project."""

    __tablename__ = "leads"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    project_id: Mapped[int | None] = mapped_column(ForeignKey("projects.id", ondelete="SET NULL"))
    full_name: Mapped[str] = mapped_column(String, nullable=False)
    phone_e164: Mapped[str | None] = mapped_column(String)
    source: Mapped[str | None] = mapped_column(String)
    consent_kvkk: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    consent_text: Mapped[str | None] = mapped_column(Text)
    utm: Mapped[dict[str, Any]] = mapped_column(JSONB, default=dict, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    project: Mapped["Project | None"] = relationship("Project", back_populates="leads")
    calls: Mapped[list["Call"]] = relationship("Call", back_populates="lead")
