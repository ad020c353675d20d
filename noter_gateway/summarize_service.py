"""This module contains the class that relays text to the chat completion API"""

import logging

import groq
from groq import AsyncGroq

from .errors import UpstreamError

logger = logging.getLogger(__name__)

SUMMARY_MODEL = "llama-3.1-8b-instant"
SUMMARY_TEMPERATURE = 0.2
SUMMARY_FALLBACK = "summary could not be generated"
PROMPT_TEMPLATE = "Summarize this text in {language}, in no more than 2 sentences:\n\n{text}"


class SummarizeService:
    """Asks the language model for a short summary of a text."""

    def __init__(
        self,
        api_key: str,
        language: str = "Spanish",
        model: str = SUMMARY_MODEL,
        timeout: float = 120.0,
        client: AsyncGroq | None = None,
    ) -> None:
        self.language = language
        self.model = model
        # No retries: a provider failure goes straight back to the caller
        self.client = client or AsyncGroq(api_key=api_key, timeout=timeout, max_retries=0)

    def build_prompt(self, text: str) -> str:
        return PROMPT_TEMPLATE.format(language=self.language, text=text)

    async def summarize(self, text: str) -> str:
        try:
            completion = await self.client.chat.completions.create(
                model=self.model,
                messages=[{"role": "user", "content": self.build_prompt(text)}],
                temperature=SUMMARY_TEMPERATURE,
            )
        except groq.APIError as exc:
            logger.exception("Summarization request failed")
            raise UpstreamError("could not summarize the text") from exc

        content = None
        if completion.choices:
            content = completion.choices[0].message.content
        if content and content.strip():
            return content.strip()
        return SUMMARY_FALLBACK
