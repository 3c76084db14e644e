"""
Language-model provider clients.

``LLMClient`` issues a single user-role chat completion through litellm, so
OpenAI, Anthropic and Gemini are all reachable with the same call.
``MockLLMClient`` answers with a canned itinerary and needs no API key.
The generator receives one of these at construction time.
"""

from __future__ import annotations

import json
import logging
import re
from typing import Optional

import litellm
import openai

from errors import ProviderError
from mock_data import mock_itinerary

logger = logging.getLogger(__name__)

# Silence litellm's own verbose logging
litellm.suppress_debug_info = True
# Drop params unsupported by the active model (e.g. temperature on gpt-5)
litellm.drop_params = True

_LLM_DEFAULTS = {
    "openai":    "gpt-4o-mini",
    "gemini":    "gemini-2.0-flash",
    "anthropic": "claude-sonnet-4-20250514",
}


def llm_name(provider: str, model: str = "") -> str:
    """Return the litellm model string (provider/model format)."""
    provider = (provider or "openai").lower().strip()
    if provider not in _LLM_DEFAULTS:
        provider = "openai"
    model = model or _LLM_DEFAULTS[provider]
    if provider == "openai":
        return model  # litellm uses bare model name for OpenAI
    return f"{provider}/{model}"


class LLMClient:
    def __init__(self, model: str):
        self.model = model

    def complete(self, prompt: str, *, temperature: float, max_tokens: int) -> Optional[str]:
        """Send ``prompt`` as one user message and return the reply text.

        Returns None when the provider answers without content. Transport
        and API failures are raised as ProviderError.
        """
        try:
            response = litellm.completion(
                model=self.model,
                messages=[{"role": "user", "content": prompt}],
                temperature=temperature,
                max_tokens=max_tokens,
            )
        except openai.APIError as exc:
            logger.warning("LLM call to %s failed: %s", self.model, exc)
            raise ProviderError(f"Language model request failed: {exc}") from exc

        if not response.choices:
            return None
        return response.choices[0].message.content


_DESTINATION_RE = re.compile(r"^- Destination: (?P<dest>.+)$", re.MULTILINE)
_DURATION_RE = re.compile(r"^- Duration: (?P<days>\d+) days", re.MULTILINE)


class MockLLMClient:
    """Offline stand-in that answers itinerary prompts with canned days."""

    model = "mock"

    def complete(self, prompt: str, *, temperature: float, max_tokens: int) -> Optional[str]:
        dest = _DESTINATION_RE.search(prompt)
        days = _DURATION_RE.search(prompt)
        city = dest.group("dest").strip() if dest else "the city"
        num_days = int(days.group("days")) if days else 1
        itinerary = json.dumps(mock_itinerary(city, num_days), indent=2)
        return f"Here is your itinerary:\n```json\n{itinerary}\n```"


def build_llm_client(provider: str, model: str = ""):
    """Create the client selected by configuration."""
    if (provider or "").lower().strip() == "mock":
        logger.info("Using the offline mock LLM client")
        return MockLLMClient()
    return LLMClient(llm_name(provider, model))
