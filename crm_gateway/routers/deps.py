"""Shared router dependencies."""
from __future__ import annotations

from fastapi.requests import HTTPConnection

from ..services.gateway import CallGateway


def get_gateway(connection: HTTPConnection) -> CallGateway:
    """Return the gateway created during application startup."""

    return connection.app.state.gateway
