"""LLM client abstraction.

Supports multiple backends:
- OpenAI Responses API (cloud)
- Ollama (local)

The suggestion engine only needs a stateless ``complete(prompt, model)``
call; anything that implements :class:`Completer` can stand in for the
default client.
"""

import json
import logging
import re
from typing import Optional, Protocol

import httpx
from pydantic import BaseModel

from .config import Settings, get_settings
from .errors import LLMTransportError, TransportConflictError

logger = logging.getLogger(__name__)

# Statuses the backend uses when another request is still running
CONFLICT_STATUSES = {400, 409}


class LLMResponse(BaseModel):
    """Text returned by a completion call."""

    text: str


class Completer(Protocol):
    """Stateless completion call used by the suggesters."""

    async def complete(self, prompt: str, model: str) -> LLMResponse:
        ...


class LLMClient:
    """Unified async LLM client supporting multiple providers.

    Usage:
        client = LLMClient()  # Uses config defaults
        response = await client.complete("Suggest a code", "gpt-4.1-mini")

        # Or specify provider
        client = LLMClient(provider="ollama")
    """

    def __init__(
        self,
        provider: Optional[str] = None,
        settings: Optional[Settings] = None,
        http_client: Optional[httpx.AsyncClient] = None,
    ):
        """Initialize LLM client.

        Args:
            provider: "openai" or "ollama" (default from config)
            settings: Settings to use (default: cached settings)
            http_client: Shared httpx client (default: one per call)
        """
        self.settings = settings or get_settings()
        self.provider = provider or self.settings.llm_provider
        self._http = http_client

    def resolve_model(self, model: str) -> str:
        """Return ``model`` if accepted, otherwise the default suggestion model."""
        if self.provider != "openai" or model in self.settings.accepted_models:
            return model
        logger.warning(
            "Model %r is not in the list of accepted models. Defaulting to %r.",
            model,
            self.settings.suggestion_model,
        )
        return self.settings.suggestion_model

    async def complete(self, prompt: str, model: str) -> LLMResponse:
        """Run one stateless completion.

        Args:
            prompt: The prompt text
            model: Model name

        Returns:
            LLMResponse with the generated text

        Raises:
            TransportConflictError: The backend reported a concurrent request
            LLMTransportError: Any other transport failure
        """
        model = self.resolve_model(model)
        if self.provider == "ollama":
            text = await self._complete_ollama(prompt, model)
        else:
            text = await self._complete_openai(prompt, model)
        logger.debug("Completion from %s/%s: %s", self.provider, model, text[:200])
        return LLMResponse(text=text)

    async def _post(self, url: str, payload: dict, headers: Optional[dict] = None) -> dict:
        try:
            if self._http is not None:
                response = await self._http.post(
                    url, json=payload, headers=headers, timeout=self.settings.request_timeout
                )
            else:
                async with httpx.AsyncClient(timeout=self.settings.request_timeout) as client:
                    response = await client.post(url, json=payload, headers=headers)
        except (httpx.RequestError, httpx.TimeoutException) as e:
            raise LLMTransportError(f"{self.provider} request failed: {e}") from e

        if response.status_code in CONFLICT_STATUSES:
            raise TransportConflictError(
                f"{self.provider} error {response.status_code}: {response.text[:200]}"
            )
        if response.status_code != 200:
            raise LLMTransportError(
                f"{self.provider} error {response.status_code}: {response.text[:200]}"
            )
        return response.json()

    async def _complete_openai(self, prompt: str, model: str) -> str:
        """Generate using the OpenAI Responses API."""
        if not self.settings.openai_api_key:
            raise LLMTransportError("OpenAI API key not set")

        result = await self._post(
            f"{self.settings.openai_base_url}/responses",
            {"model": model, "input": prompt, "store": False},
            headers={
                "Authorization": f"Bearer {self.settings.openai_api_key}",
                "Content-Type": "application/json",
            },
        )

        if isinstance(result.get("output_text"), str):
            return result["output_text"].strip()

        parts: list[str] = []
        for item in result.get("output", []):
            for content in item.get("content") or []:
                if content.get("type") == "output_text":
                    parts.append(content.get("text", ""))
        return "".join(parts).strip()

    async def _complete_ollama(self, prompt: str, model: str) -> str:
        """Generate using Ollama."""
        result = await self._post(
            f"{self.settings.ollama_base_url}/api/generate",
            {"model": model, "prompt": prompt, "stream": False},
        )
        return result.get("response", "").strip()

    @staticmethod
    def extract_json(response: str) -> list | dict | None:
        """Extract JSON from LLM response.

        Handles markdown code blocks and stray text.

        Args:
            response: Raw LLM response

        Returns:
            Parsed JSON or None
        """
        if not response:
            return None

        # Try to extract from code block
        if "```" in response:
            match = re.search(r"```(?:json)?\s*([\s\S]*?)\s*```", response)
            if match:
                response = match.group(1)

        # Try direct parse
        try:
            return json.loads(response)
        except json.JSONDecodeError:
            pass

        # Try to find array or object
        array_match = re.search(r"\[[\s\S]*\]", response)
        if array_match:
            try:
                return json.loads(array_match.group(0))
            except json.JSONDecodeError:
                pass

        obj_match = re.search(r"\{[\s\S]*\}", response)
        if obj_match:
            try:
                return json.loads(obj_match.group(0))
            except json.JSONDecodeError:
                pass

        return None

    async def is_available(self) -> bool:
        """Check if the LLM backend is available."""
        if self.provider == "openai":
            return bool(self.settings.openai_api_key)
        try:
            async with httpx.AsyncClient(timeout=5.0) as client:
                response = await client.get(f"{self.settings.ollama_base_url}/api/tags")
            return response.status_code == 200
        except (httpx.RequestError, httpx.TimeoutException):
            return False


# Convenience function
def get_llm_client(provider: Optional[str] = None) -> LLMClient:
    """Get an LLM client instance."""
    return LLMClient(provider=provider)
