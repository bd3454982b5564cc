"""Project model."""
from __future__ import annotations

from datetime import date, datetime
from typing import TYPE_CHECKING, Any

from sqlalchemy import Date, DateTime, Integer, String, Text, func
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .base import Base

if TYPE_CHECKING:
    from .lead import Lead


class Project(Base):
    """Sales collateral used to brief the voice agent."""

    __tablename__ = "projects"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String, nullable=False)
    description: Mapped[str | None] = mapped_column(Text)
    price_range: Mapped[str | None] = mapped_column(String)
    delivery_date: Mapped[date | None] = mapped_column(Date)
    address: Mapped[str | None] = mapped_column(String)
    docs_url: Mapped[str | None] = mapped_column(String)
    faq_json: Mapped[Any] = mapped_column(JSONB, default=dict, nullable=False)
    docs_json: Mapped[Any] = mapped_column(JSONB, default=dict, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    leads: Mapped[list["Lead"]] = relationship("Lead", back_populates="project")
