"""Tests for the UI-event workbench."""

import json

import anyio
import pytest

from passage_coder.errors import InvariantViolation
from passage_coder.models.code import Code
from passage_coder.models.passage import UnhighlightedPassage
from passage_coder.session import CodingSession
from passage_coder.workbench import CodingWorkbench

from conftest import FakeCompleter

TEXT = "Alice said the process was slow. Bob agreed."


def response(passage: str, codes: list) -> str:
    return json.dumps({"passage": passage, "codes": codes})


@pytest.fixture
def workbench(settings) -> CodingWorkbench:
    return CodingWorkbench(CodingSession.from_text(TEXT), FakeCompleter(), settings=settings)


class TestHighlighting:
    """Test highlight, accept and decline events."""

    def test_highlight_fetches_code_suggestions(self, workbench):
        workbench.suggestions.code_suggester.llm.queue('["slowness", "delay"]')

        async def scenario():
            new_id = workbench.highlight("passage-0", 11, 31)
            await workbench.wait_idle()
            return new_id

        new_id = anyio.run(scenario)

        assert new_id == "passage-2"
        assert workbench.session.get_passage(new_id).code_suggestions == ("slowness", "delay")
        assert workbench.session.active_code_id == "code-0"

    def test_commit_then_suggest_next(self, workbench):
        llm = workbench.suggestions.code_suggester.llm
        llm.queue('["slowness"]', response("Bob agreed.", ["agreement"]))

        async def scenario():
            workbench.highlight("passage-0", 11, 31)
            await workbench.wait_idle()
            affected = workbench.commit_code("code-0", " slow; delay;")
            await workbench.wait_idle()
            return affected

        affected = anyio.run(scenario)

        session = workbench.session
        assert affected == "passage-2"
        assert session.codes_for("passage-2") == ["slow", "delay"]
        assert session.active_code_id is None
        assert workbench.visible_suggestion_for == "passage-3"
        assert session.get_passage("passage-3").next_highlight_suggestion.passage == "Bob agreed."

    def test_accept_suggestion(self, workbench):
        llm = workbench.suggestions.code_suggester.llm
        llm.queue('["slowness"]', response("Bob agreed.", ["agreement"]))

        async def scenario():
            workbench.highlight("passage-0", 11, 31)
            await workbench.wait_idle()
            workbench.commit_code("code-0", "slow")
            await workbench.wait_idle()
            return workbench.accept_suggestion("passage-3")

        new_id = anyio.run(scenario)

        session = workbench.session
        passage = session.get_passage(new_id)
        assert passage.text == "Bob agreed."
        assert passage.code_suggestions == ("agreement",)
        assert session.active_code_id == passage.code_ids[0]
        assert session.document_text() == TEXT
        session.check_invariants()

    def test_accept_without_suggestion(self, workbench):
        assert workbench.accept_suggestion("passage-0") is None

    def test_click_on_uncoded_text(self, workbench):
        workbench.suggestions.code_suggester.llm.queue(response("Bob agreed.", ["agreement"]))

        async def scenario():
            future = workbench.click_passage("passage-0")
            duplicate = workbench.click_passage("passage-0")
            await workbench.wait_idle()
            return await future, duplicate

        shown, duplicate = anyio.run(scenario)

        assert shown == "passage-0"
        assert duplicate is None
        assert workbench.visible_suggestion_for == "passage-0"

    def test_decline(self, workbench):
        llm = workbench.suggestions.code_suggester.llm
        llm.queue(response("Alice said", ["speech"]), response("Bob agreed.", ["agreement"]))

        async def scenario():
            await workbench.click_passage("passage-0")
            return await workbench.decline_suggestion("passage-0")

        shown = anyio.run(scenario)

        assert shown == "passage-0"
        suggestion = workbench.session.get_passage("passage-0").next_highlight_suggestion
        assert suggestion.passage == "Bob agreed."


class TestCodeFields:
    """Test typing into and deleting code fields."""

    def test_delimiter_refreshes_code_suggestions(self, workbench):
        llm = workbench.suggestions.code_suggester.llm
        llm.queue('["slowness"]', '["slowness"]', '["delay"]')

        async def scenario():
            workbench.highlight("passage-0", 11, 31)
            await workbench.wait_idle()
            workbench.activate_code("code-0")
            await workbench.wait_idle()
            workbench.type_code("code-0", "slow;")
            await workbench.wait_idle()

        anyio.run(scenario)

        assert 'Codes already assigned: ["slow"]' in llm.prompts[-1]
        assert workbench.session.get_passage("passage-2").code_suggestions == ("delay",)

    def test_known_completion_skips_autocomplete(self, workbench):
        llm = workbench.suggestions.code_suggester.llm
        llm.queue('["delay"]')

        async def scenario():
            workbench.highlight("passage-0", 11, 31)
            await workbench.wait_idle()
            workbench.type_code("code-0", "de")
            await workbench.wait_idle()

        anyio.run(scenario)

        assert len(llm.calls) == 1

    def test_unknown_label_triggers_autocomplete(self, workbench):
        llm = workbench.suggestions.code_suggester.llm
        llm.queue('["delay"]', "slowness")

        async def scenario():
            workbench.highlight("passage-0", 11, 31)
            await workbench.wait_idle()
            workbench.type_code("code-0", "slo")
            await workbench.wait_idle()

        anyio.run(scenario)

        assert 'Typed so far: "slo"' in llm.prompts[-1]
        assert workbench.session.get_passage("passage-2").autocomplete_suggestion == "slowness"

    def test_delete_last_code_searches_again(self, workbench):
        llm = workbench.suggestions.code_suggester.llm
        llm.queue('["slowness"]', response("", []))

        async def scenario():
            workbench.highlight("passage-0", 11, 31)
            await workbench.wait_idle()
            merged = workbench.delete_code("code-0")
            await workbench.wait_idle()
            return merged

        merged = anyio.run(scenario)

        assert merged == "passage-4"
        assert workbench.session.document_text() == TEXT
        assert llm.calls[-1][1] == workbench.settings.highlight_model

    def test_commit_empty_value_deletes(self, workbench):
        llm = workbench.suggestions.code_suggester.llm
        llm.queue('["slowness"]', response("", []))

        async def scenario():
            workbench.highlight("passage-0", 11, 31)
            await workbench.wait_idle()
            workbench.commit_code("code-0", " ;; ")
            await workbench.wait_idle()

        anyio.run(scenario)

        assert len(workbench.session.passages) == 1
        assert workbench.session.codes == []


class TestEventPreconditions:
    """Test that events fail before mutating the session."""

    def test_highlight_needs_running_loop(self, workbench):
        with pytest.raises(RuntimeError):
            workbench.highlight("passage-0", 11, 31)

        assert len(workbench.session.passages) == 1
        assert workbench.session.codes == []
        assert workbench.session.active_code_id is None

    def test_commit_and_delete_need_running_loop(self, workbench):
        workbench.suggestions.code_suggester.llm.queue('["slowness"]')

        async def scenario():
            workbench.highlight("passage-0", 11, 31)
            await workbench.wait_idle()

        anyio.run(scenario)

        with pytest.raises(RuntimeError):
            workbench.commit_code("code-0", "slow")
        with pytest.raises(RuntimeError):
            workbench.delete_code("code-0")

        session = workbench.session
        assert session.get_code("code-0").code == ""
        assert session.active_code_id == "code-0"
        assert len(session.passages) == 3

    def test_code_on_unhighlighted_passage(self, settings):
        passage = UnhighlightedPassage(id="passage-0", order=0, text=TEXT)
        code = Code(id="code-0", passage_id="passage-0", code="slow")
        session = CodingSession([passage], [code])
        workbench = CodingWorkbench(session, FakeCompleter(), settings=settings)

        async def scenario():
            workbench.activate_code("code-0")

        with pytest.raises(InvariantViolation):
            anyio.run(scenario)
