"""Shared fixtures: settings without delays and a scripted LLM."""

from typing import Union

import pytest

from passage_coder.config import Settings
from passage_coder.llm import LLMResponse


class FakeCompleter:
    """Replays queued responses and records every prompt it receives.

    Queue strings for successful completions and exception instances for
    transport failures. Once the script runs out, ``default`` is returned.
    """

    def __init__(self, *script: Union[str, Exception], default: str = '{"passage": "", "codes": []}'):
        self.script = list(script)
        self.default = default
        self.calls: list[tuple[str, str]] = []

    @property
    def prompts(self) -> list[str]:
        return [prompt for prompt, _ in self.calls]

    def queue(self, *items: Union[str, Exception]) -> None:
        self.script.extend(items)

    async def complete(self, prompt: str, model: str) -> LLMResponse:
        self.calls.append((prompt, model))
        item = self.script.pop(0) if self.script else self.default
        if isinstance(item, Exception):
            raise item
        return LLMResponse(text=item)


@pytest.fixture
def settings() -> Settings:
    return Settings(
        _env_file=None,
        llm_provider="openai",
        openai_api_key="test-key",
        conflict_retry_delay=0.0,
        autocomplete_quiet_interval=0.0,
    )


@pytest.fixture
def fake_llm() -> FakeCompleter:
    return FakeCompleter()
