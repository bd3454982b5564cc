"""Expose ORM models."""
from .call import Call, CallStatus
from .lead import Lead
from .project import Project

__all__ = [
    "Call",
    "CallStatus",
    "Lead",
    "Project",
]
