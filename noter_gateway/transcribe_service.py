"""This module contains the class that relays audio files to the speech-to-text API"""

import logging
from pathlib import Path

import httpx

from .errors import UpstreamError

logger = logging.getLogger(__name__)

TRANSCRIPTION_URL = "https://api.groq.com/openai/v1/audio/transcriptions"
TRANSCRIPTION_MODEL = "whisper-large-v3"
NO_TEXT_FALLBACK = "no text recognized"


class TranscribeService:
    """Sends one audio file per call to the transcription endpoint."""

    def __init__(
        self,
        api_key: str,
        url: str = TRANSCRIPTION_URL,
        model: str = TRANSCRIPTION_MODEL,
        timeout: float = 120.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.api_key = api_key
        self.url = url
        self.model = model
        self.timeout = timeout
        # Only set in tests, to route requests to a mock transport
        self.transport = transport

    async def transcribe(self, path: Path, filename: str, content_type: str) -> str:
        """Upload the file as multipart form data and return the recognized text."""
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
                with open(path, "rb") as audio:
                    response = await client.post(
                        self.url,
                        headers={"Authorization": f"Bearer {self.api_key}"},
                        data={"model": self.model},
                        files={"file": (filename, audio, content_type)},
                    )
            response.raise_for_status()
            payload = response.json()
        except httpx.HTTPStatusError as exc:
            logger.error(
                "Transcription API returned %s: %s",
                exc.response.status_code,
                exc.response.text,
            )
            raise UpstreamError("could not transcribe the audio") from exc
        except (httpx.HTTPError, OSError, ValueError) as exc:
            logger.exception("Transcription request failed")
            raise UpstreamError("could not transcribe the audio") from exc

        text = payload.get("text") if isinstance(payload, dict) else None
        if isinstance(text, str) and text.strip():
            return text.strip()
        return NO_TEXT_FALLBACK
