"""Declarative base for the CRM tables."""
from __future__ import annotations

from sqlalchemy.orm import DeclarativeBase


class Base(DeclarativeBase):
    """Base model shared by all ORM classes."""
