"""Civic LLM integration.

Thin wrapper around the Anthropic API used by the Claude-backed risk
classifier, plus the prompt templates it sends.
"""

from civic.llm.client import LLMClient, LLMResponse, LLMNotConfiguredError

__all__ = [
    "LLMClient",
    "LLMResponse",
    "LLMNotConfiguredError",
]
