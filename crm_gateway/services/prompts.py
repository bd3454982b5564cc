"""System prompt construction for the realtime sales agent."""
from __future__ import annotations

from datetime import date
from typing import Any, Iterable

from ..core.config import settings
from ..models.lead import Lead
from ..models.project import Project

PERSONA_LINES = (
    "You are a professional sales representative speaking on the phone.",
    "Goal: explain the project accurately and clearly, give the personal data protection (KVKK) notice, and steer the customer towards an appointment.",
    "Style: short sentences, clear phone diction; ask, listen, then answer briefly.",
    "Never make misleading promises and never share unverified information.",
)
CLOSING_LINE = "Give the KVKK notice and ask for consent. Be ready to schedule an appointment."
NOT_SPECIFIED = "Not specified"


def _entries(value: Any) -> Iterable[Any]:
    """Yield entries stored either as a keyed object or as a list."""

    if isinstance(value, dict):
        return value.values()
    if isinstance(value, list):
        return value
    return ()


def _faq_lines(faq: Any) -> list[str]:
    lines: list[str] = []
    for entry in _entries(faq):
        if not isinstance(entry, dict):
            continue
        question = entry.get("question")
        answer = entry.get("answer")
        if question and answer:
            lines.append(f"Q: {question}")
            lines.append(f"A: {answer}")
    return lines


def _document_lines(docs: Any) -> list[str]:
    lines: list[str] = []
    for entry in _entries(docs):
        if not isinstance(entry, dict):
            continue
        name = entry.get("name")
        url = entry.get("url")
        if name and url:
            lines.append(f"- {name}: {url}")
    return lines


def build_system_prompt(lead: Lead, project: Project | None, *, language: str | None = None) -> str:
    """Return the deterministic instructions for one lead and optional project."""

    spoken_language = language or settings.agent_language
    lines = [
        *PERSONA_LINES,
        f"Language: speak {spoken_language} only.",
        "",
        f"Customer: {lead.full_name}",
    ]

    if project is not None:
        delivery = project.delivery_date
        if isinstance(delivery, date):
            delivery = delivery.isoformat()
        lines.extend(
            [
                "",
                "Project details:",
                f"- Project: {project.name}",
                f"- Description: {project.description or 'No description'}",
                f"- Price range: {project.price_range or NOT_SPECIFIED}",
                f"- Delivery date: {delivery or NOT_SPECIFIED}",
                f"- Address: {project.address or NOT_SPECIFIED}",
            ]
        )

        faq = _faq_lines(project.faq_json)
        if faq:
            lines.extend(["", "Frequently asked questions and answers:", *faq])

        documents = _document_lines(project.docs_json)
        if documents:
            lines.extend(["", "Available documents:", *documents])
            lines.extend(["", "Share these links if the customer asks for documents."])

    lines.extend(["", CLOSING_LINE])
    return "\n".join(lines)
