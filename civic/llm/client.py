"""Anthropic client used by the LLM-backed risk classifier.

Calls are synchronous, bounded by a timeout and never retried, so a slow
model can hold up a comment submission for at most ``timeout`` seconds.
"""

from __future__ import annotations

import os
import time
from dataclasses import dataclass

import anthropic

DEFAULT_MODEL = "claude-3-5-haiku-20241022"

DEFAULT_TIMEOUT = 10.0

# Classification replies are a small JSON object.
DEFAULT_MAX_TOKENS = 512


class LLMNotConfiguredError(RuntimeError):
    """Raised when a completion is requested without an API key."""


@dataclass
class LLMResponse:
    """Text of a completion plus its usage figures."""

    content: str
    model: str = ""
    input_tokens: int = 0
    output_tokens: int = 0
    latency_ms: int = 0


class LLMClient:
    """Wrapper around ``anthropic.Anthropic`` for single-turn prompts.

    Parameters
    ----------
    model : str
        Model identifier.
    api_key : str | None
        Anthropic API key; ``ANTHROPIC_API_KEY`` is used when omitted.
    timeout : float
        Seconds before a request is abandoned.
    """

    def __init__(
        self,
        model: str = DEFAULT_MODEL,
        api_key: str | None = None,
        timeout: float = DEFAULT_TIMEOUT,
    ) -> None:
        self.model = model
        self.timeout = timeout
        key = api_key or os.environ.get("ANTHROPIC_API_KEY", "")
        self._sdk = (
            anthropic.Anthropic(api_key=key, timeout=timeout, max_retries=0) if key else None
        )

    @property
    def configured(self) -> bool:
        return self._sdk is not None

    def complete(
        self,
        prompt: str,
        system_prompt: str | None = None,
        max_tokens: int = DEFAULT_MAX_TOKENS,
        temperature: float = 0.0,
    ) -> LLMResponse:
        """Run one prompt and return the first text block of the reply.

        Raises :class:`LLMNotConfiguredError` without an API key. SDK errors
        (timeouts, rate limits, HTTP failures) are left to the caller.
        """
        if self._sdk is None:
            raise LLMNotConfiguredError("No Anthropic API key; set ANTHROPIC_API_KEY")

        request: dict = {
            "model": self.model,
            "max_tokens": max_tokens,
            "temperature": temperature,
            "messages": [{"role": "user", "content": prompt}],
        }
        if system_prompt:
            request["system"] = system_prompt

        started = time.monotonic()
        message = self._sdk.messages.create(**request)
        elapsed_ms = int((time.monotonic() - started) * 1000)

        text = next((block.text for block in message.content if block.type == "text"), "")
        return LLMResponse(
            content=text,
            model=message.model or self.model,
            input_tokens=message.usage.input_tokens,
            output_tokens=message.usage.output_tokens,
            latency_ms=elapsed_ms,
        )
