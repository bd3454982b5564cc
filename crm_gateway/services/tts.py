"""Agent speech synthesis with Edge TTS and gTTS."""
from __future__ import annotations

import asyncio
import logging
from io import BytesIO
from typing import Awaitable, Callable, Optional, Tuple

import edge_tts
from gtts import gTTS

from ..core.config import settings

logger = logging.getLogger(__name__)

AudioClip = Tuple[bytes, str]
Provider = Callable[[str], Awaitable[Optional[AudioClip]]]

MPEG = "audio/mpeg"


class SpeechUnavailableError(RuntimeError):
    """Raised when no provider produced audio."""


async def _edge_tts(phrase: str) -> AudioClip | None:
    communicator = edge_tts.Communicate(phrase, voice=settings.tts_voice)
    audio = bytearray()
    async for chunk in communicator.stream():
        if chunk["type"] == "audio":
            audio.extend(chunk["data"])

    if not audio:
        logger.warning("Edge TTS returned no audio for voice %s", settings.tts_voice)
        return None
    return bytes(audio), MPEG


async def _gtts(phrase: str) -> AudioClip | None:
    def _render() -> bytes:
        buffer = BytesIO()
        gTTS(text=phrase, lang=settings.tts_language).write_to_fp(buffer)
        return buffer.getvalue()

    audio = await asyncio.get_running_loop().run_in_executor(None, _render)
    return (audio, MPEG) if audio else None


def provider_chain(name: str | None = None) -> list[tuple[str, Provider]]:
    """Return the providers to try, in order, for the configured engine."""

    selected = (name or settings.tts_provider).strip().lower()
    if selected == "gtts":
        return [("gtts", _gtts)]
    if selected != "edge":
        logger.warning("Unknown TTS provider %r; using edge", selected)
    return [("edge", _edge_tts), ("gtts", _gtts)]


async def synthesize_speech(text: str) -> AudioClip:
    """Return ``(audio, media_type)`` for one agent utterance.

    Providers are tried in order; :class:`SpeechUnavailableError` is raised
    when none of them produced audio.
    """

    phrase = text.strip()
    if not phrase:
        raise ValueError("Cannot synthesize empty text")

    for label, provider in provider_chain():
        try:
            clip = await provider(phrase)
        except Exception as exc:  # noqa: BLE001
            logger.warning("%s TTS failed: %s", label, exc)
            continue
        if clip is not None:
            return clip

    raise SpeechUnavailableError("All TTS providers failed")
