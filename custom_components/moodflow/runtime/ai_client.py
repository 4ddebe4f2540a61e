"""OpenAI-compatible chat completions client."""

from __future__ import annotations

import asyncio
import json
import logging
from typing import Any

import aiohttp

from ..errors import TextGenerationError

_LOGGER = logging.getLogger(__name__)

CHAT_COMPLETIONS_PATH = "/v1/chat/completions"
SYSTEM_PROMPT = "You are a compassionate wellbeing assistant. Respond with valid JSON only."


class ChatCompletionsClient:
    """Turns a prompt into raw model text under a fixed deadline."""

    def __init__(
        self,
        session: aiohttp.ClientSession,
        *,
        endpoint: str,
        model: str,
        api_key: str = "",
        timeout_s: float = 20.0,
    ) -> None:
        self._session = session
        self._url = f"{endpoint.rstrip('/')}{CHAT_COMPLETIONS_PATH}"
        self._model = model
        self._api_key = api_key
        self._timeout_s = timeout_s

    def _headers(self) -> dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if self._api_key:
            headers["Authorization"] = f"Bearer {self._api_key}"
        return headers

    async def async_generate(self, prompt: str) -> str:
        payload: dict[str, Any] = {
            "model": self._model,
            "messages": [
                {"role": "system", "content": SYSTEM_PROMPT},
                {"role": "user", "content": prompt},
            ],
        }
        try:
            async with self._session.post(
                self._url,
                json=payload,
                headers=self._headers(),
                timeout=aiohttp.ClientTimeout(total=self._timeout_s),
            ) as resp:
                body = await resp.text()
                if resp.status >= 400:
                    raise TextGenerationError(f"HTTP {resp.status} from {self._url}: {body[:200]}")
        except asyncio.TimeoutError as err:
            raise TextGenerationError(
                f"Timeout after {self._timeout_s:.0f}s calling {self._url}"
            ) from err
        except aiohttp.ClientError as err:
            raise TextGenerationError(f"Client error calling {self._url}: {err}") from err

        try:
            data = json.loads(body) if body else {}
        except json.JSONDecodeError as err:
            raise TextGenerationError(f"Invalid JSON from {self._url}: {body[:200]}") from err

        content = ""
        choices = data.get("choices") if isinstance(data, dict) else None
        if choices and isinstance(choices[0], dict):
            message = choices[0].get("message") or {}
            content = str(message.get("content") or "")
        if not content.strip():
            raise TextGenerationError("Empty completion")

        _LOGGER.debug("Chat completion received (%s chars)", len(content))
        return content
