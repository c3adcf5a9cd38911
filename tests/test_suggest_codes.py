"""Tests for code and autocomplete suggestion fetches."""

import anyio
import pytest

from passage_coder.errors import LLMTransportError
from passage_coder.segment.segmenter import PassageSegmenter
from passage_coder.session import CodingSession
from passage_coder.suggest.codes import CodeSuggester
from passage_coder.suggest.prompts import PromptBuilder

from conftest import FakeCompleter

TEXT = "Alice said the process was slow. Bob agreed."


@pytest.fixture
def session() -> CodingSession:
    session = CodingSession.from_text(TEXT)
    PassageSegmenter(session).create_span("passage-0", 11, 31)
    return session


def make_suggester(session, llm, settings):
    return CodeSuggester(session, llm, PromptBuilder(session, settings=settings), settings)


class TestCodeSuggestions:
    """Test code suggestion fetches."""

    def test_parses_array(self, session, settings):
        llm = FakeCompleter('["slowness", "delay"]')
        passage = session.get_passage("passage-2")

        codes = anyio.run(make_suggester(session, llm, settings).code_suggestions, passage, ["slow"])

        assert codes == ["slowness", "delay"]
        prompt, model = llm.calls[0]
        assert model == settings.suggestion_model
        assert "Alice said <<<the process was slow>>>\n" in prompt
        assert "Bob agreed" not in prompt
        assert 'Codes already assigned: ["slow"]' in prompt

    def test_one_stricter_retry(self, session, settings):
        llm = FakeCompleter("I would suggest slowness", "still not json")
        passage = session.get_passage("passage-2")

        codes = anyio.run(make_suggester(session, llm, settings).code_suggestions, passage, [])

        assert codes == []
        assert len(llm.calls) == 2
        assert "ADDITIONAL NOTE" in llm.prompts[1]

    def test_transport_error_propagates(self, session, settings):
        llm = FakeCompleter(LLMTransportError("down"))
        passage = session.get_passage("passage-2")

        with pytest.raises(LLMTransportError):
            anyio.run(make_suggester(session, llm, settings).code_suggestions, passage, [])


class TestAutocomplete:
    """Test autocomplete fetches."""

    def test_completion(self, session, settings):
        llm = FakeCompleter("slowness")
        passage = session.get_passage("passage-2")

        result = anyio.run(make_suggester(session, llm, settings).autocomplete, passage, [], "slo")

        assert result == "slowness"
        assert 'Typed so far: "slo"' in llm.prompts[0]

    def test_following_text_not_sent(self, session, settings):
        llm = FakeCompleter("slowness")
        passage = session.get_passage("passage-2")

        anyio.run(make_suggester(session, llm, settings).autocomplete, passage, [], "slo")

        assert "Alice said <<<the process was slow>>>\n" in llm.prompts[0]
        assert "Bob agreed" not in llm.prompts[0]

    def test_invalid_then_valid(self, session, settings):
        llm = FakeCompleter("slow; sluggish", "sluggish")
        passage = session.get_passage("passage-2")

        result = anyio.run(make_suggester(session, llm, settings).autocomplete, passage, [], "slu")

        assert result == "sluggish"
        assert "failed validation" in llm.prompts[1]

    def test_gives_up_after_retry(self, session, settings):
        llm = FakeCompleter("", "")
        passage = session.get_passage("passage-2")

        assert anyio.run(make_suggester(session, llm, settings).autocomplete, passage, [], "x") == ""
        assert len(llm.calls) == 2
