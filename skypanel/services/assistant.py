"""
skypanel.services.assistant — Generative-text pass-through
===========================================================

Stateless: wraps the operator's question in a fixed prompt, sends it to
Gemini's ``generateContent`` REST endpoint and returns the first
candidate's text.  Nothing is stored.
"""

from __future__ import annotations

import logging

import httpx

from skypanel.errors import UpstreamFailure

logger = logging.getLogger(__name__)

GEMINI_API = "https://generativelanguage.googleapis.com/v1beta"

PROMPT_TEMPLATE = """You are an AI assistant for SkyUtilities, a bot for ERLC. Answer questions specifically about ERLC (Emergency Response: Liberty County) on Roblox, the SkyUtilities Discord bot's features, and the SkyUtilities website (its pages, functionalities).
If a question is outside these topics or you don't have enough information, politely state that you cannot assist with that specific query.
Ensure your answers are concise, helpful, and directly address the user's query based on the specified context.

User question: {question}"""


class AssistantClient:
    def __init__(
        self,
        api_key: str,
        model: str,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.api_key = api_key
        self.model = model
        self._transport = transport

    async def ask(self, question: str) -> str:
        """Return Gemini's answer to *question*.

        Raises
        ------
        UpstreamFailure
            On rate limiting, a rejected key, a transport error or a reply
            without text.
        """
        body = {"contents": [{"parts": [{"text": PROMPT_TEMPLATE.format(question=question)}]}]}
        try:
            async with httpx.AsyncClient(base_url=GEMINI_API, transport=self._transport) as client:
                resp = await client.post(
                    f"/models/{self.model}:generateContent",
                    json=body,
                    headers={"x-goog-api-key": self.api_key},
                )
        except httpx.HTTPError as exc:
            logger.error("Error processing AI request: %s", exc)
            raise UpstreamFailure(
                "Failed to get a response from the AI assistant. Please try again later."
            ) from exc

        if resp.status_code == 429:
            raise UpstreamFailure(
                "Too many requests to the AI model. Please wait a moment and try again."
            )
        if resp.status_code in (400, 401, 403):
            logger.error("AI provider rejected request (HTTP %s)", resp.status_code)
            raise UpstreamFailure(
                "AI service not accessible. Ensure your API key is valid and configured correctly."
            )
        if not resp.is_success:
            logger.error("AI provider error (HTTP %s)", resp.status_code)
            raise UpstreamFailure(
                "Failed to get a response from the AI assistant. Please try again later."
            )

        try:
            parts = resp.json()["candidates"][0]["content"]["parts"]
        except (ValueError, KeyError, IndexError, TypeError) as exc:
            logger.error("AI provider returned an unexpected payload: %s", exc)
            raise UpstreamFailure(
                "Failed to get a response from the AI assistant. Please try again later."
            ) from exc
        return "".join(p.get("text", "") for p in parts)
