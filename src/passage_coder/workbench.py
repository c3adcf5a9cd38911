"""Wire UI events to segmentation, code editing and suggestion fetches.

The workbench is what a front end talks to. Each event method mutates the
session synchronously and starts any suggestion fetches it implies as
background tasks on the running event loop. Methods that start fetches
raise RuntimeError before touching the session when no loop is running.
"""

import asyncio
import logging
from typing import Coroutine, Optional

from .config import Settings, get_settings
from .errors import InvariantViolation
from .llm import Completer
from .models.code import LABEL_DELIMITER
from .models.passage import HighlightedPassage, UnhighlightedPassage
from .segment.codes import CodeManager
from .segment.segmenter import PassageSegmenter
from .session import CodingSession
from .suggest.completion import after_last_delimiter, completion_for, existing_labels
from .suggest.manager import SuggestionsManager
from .suggest.prompts import PromptBuilder, PromptConfig

logger = logging.getLogger(__name__)


class CodingWorkbench:
    """One coding session plus the components that act on it.

    Usage:
        workbench = CodingWorkbench(CodingSession.from_text(text), LLMClient())
        passage_id = workbench.highlight("passage-0", 11, 31)
        workbench.commit_code(workbench.session.active_code_id, "slow process")
        await workbench.wait_idle()
    """

    def __init__(
        self,
        session: CodingSession,
        llm: Completer,
        settings: Optional[Settings] = None,
        prompt_config: Optional[PromptConfig] = None,
    ):
        self.session = session
        self.settings = settings or get_settings()
        self.segmenter = PassageSegmenter(session)
        self.code_manager = CodeManager(session)
        self.prompts = PromptBuilder(session, prompt_config, self.settings)
        self.suggestions = SuggestionsManager(session, llm, self.prompts, self.settings)

        # Passage whose highlight suggestion is currently shown
        self.visible_suggestion_for: Optional[str] = None
        self._field_values: dict[str, str] = {}
        self._queued: set[str] = set()
        self._tasks: set[asyncio.Task] = set()
        self._futures: set[asyncio.Future] = set()

    @staticmethod
    def _require_loop() -> None:
        asyncio.get_running_loop()

    def _spawn(self, coro: Coroutine) -> asyncio.Task:
        task = asyncio.get_running_loop().create_task(coro)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def wait_idle(self) -> None:
        """Wait for every background and queued fetch, including ones they start."""
        while self._tasks or self._futures:
            await asyncio.gather(*self._tasks, *self._futures, return_exceptions=True)

    def _owner(self, code_id: str) -> HighlightedPassage:
        code = self.session.get_code(code_id)
        passage = self.session.get_passage(code.passage_id)
        if not isinstance(passage, HighlightedPassage):
            raise InvariantViolation(f"{code_id} belongs to unhighlighted {passage.id}")
        return passage

    # ------------------------------------------------------------------
    # Highlighting
    # ------------------------------------------------------------------

    def highlight(self, passage_id: str, start: int, end: int) -> str:
        """Highlight a user selection and fetch code suggestions for it."""
        self._require_loop()
        new_passage_id = self.segmenter.create_span(passage_id, start, end)
        self.visible_suggestion_for = None
        self.suggestions.clear_pending()
        self._field_values[self.session.active_code_id] = ""
        self._spawn(self.suggestions.update_code_suggestions(new_passage_id, []))
        return new_passage_id

    def accept_suggestion(self, passage_id: str) -> Optional[str]:
        """Turn the shown highlight suggestion into a highlighted passage."""
        passage = self.session.find_passage(passage_id)
        if not isinstance(passage, UnhighlightedPassage):
            return None
        suggestion = passage.next_highlight_suggestion
        if suggestion is None or not suggestion.passage or not suggestion.codes:
            return None

        new_passage_id = self.segmenter.create_span(
            passage.id, suggestion.start_index, suggestion.end_index, suggestion.codes
        )
        self.visible_suggestion_for = None
        self.suggestions.clear_pending()
        self._field_values[self.session.active_code_id] = ""
        return new_passage_id

    async def decline_suggestion(self, passage_id: str) -> Optional[str]:
        """Decline the shown suggestion; returns the passage showing the next one."""
        self.visible_suggestion_for = None
        shown = await self.suggestions.decline_highlight_suggestion(passage_id)
        if shown:
            self.visible_suggestion_for = shown
        return shown

    def click_passage(self, passage_id: str) -> Optional["asyncio.Future[Optional[str]]"]:
        """Queue a highlight search after a click on uncoded text."""
        self._require_loop()
        if self.suggestions.is_fetching_highlight or passage_id in self._queued:
            logger.debug("Ignoring click on %s while a highlight search is pending", passage_id)
            return None
        passage = self.session.find_passage(passage_id)
        if not isinstance(passage, UnhighlightedPassage):
            return None
        self.session.active_code_id = None
        self.visible_suggestion_for = passage_id
        return self._queue_highlight_fetch(passage_id)

    def _queue_highlight_fetch(self, passage_id: str) -> "asyncio.Future[Optional[str]]":
        self._queued.add(passage_id)
        future = self.suggestions.request_highlight_fetch(passage_id)
        self._futures.add(future)

        def _done(f: asyncio.Future) -> None:
            self._queued.discard(passage_id)
            self._futures.discard(f)
            if f.cancelled() or f.exception() is not None:
                return
            if f.result():
                self.visible_suggestion_for = f.result()

        future.add_done_callback(_done)
        return future

    # ------------------------------------------------------------------
    # Code editing
    # ------------------------------------------------------------------

    def activate_code(self, code_id: str) -> None:
        """Focus a code field: pending searches are dropped and code suggestions refreshed."""
        self._require_loop()
        passage = self._owner(code_id)
        self.session.active_code_id = code_id
        self.suggestions.clear_pending()
        self._field_values[code_id] = self.session.get_code(code_id).code
        existing = self.session.codes_for(passage.id, exclude=code_id)
        self._spawn(self.suggestions.update_code_suggestions(passage.id, existing))

    def type_code(self, code_id: str, value: str) -> None:
        """React to the contents of a code field changing."""
        self._require_loop()
        passage = self._owner(code_id)
        previous = self._field_values.get(code_id, self.session.get_code(code_id).code)
        self._field_values[code_id] = value
        existing = existing_labels(value, self.session.codes_for(passage.id, exclude=code_id))

        if previous.count(LABEL_DELIMITER) != value.count(LABEL_DELIMITER):
            self.suggestions.cancel_autocomplete(passage.id)
            self.suggestions.clear_code_suggestions(passage.id)
            self._spawn(self.suggestions.update_code_suggestions(passage.id, existing))
            return

        typed = after_last_delimiter(value).strip()
        if not typed:
            return
        if value.strip() in self.session.codes_for(passage.id):
            return

        current = self.session.get_passage(passage.id)
        match = completion_for(
            value,
            current.code_suggestions,
            current.autocomplete_suggestion,
            self.session.codebook,
            existing,
            self.suggestions.enabled,
        )
        if match:
            self.suggestions.cancel_autocomplete(passage.id)
            return

        task = self.suggestions.schedule_autocomplete(passage.id, existing, typed)
        if task is not None:
            self._tasks.add(task)
            task.add_done_callback(self._tasks.discard)

    def commit_code(self, code_id: str, value: str) -> Optional[str]:
        """Store the field contents and look for the next highlight."""
        self._require_loop()
        passage = self._owner(code_id)
        self.suggestions.cancel_autocomplete(passage.id)
        self._field_values.pop(code_id, None)

        cleaned = value.strip().rstrip(LABEL_DELIMITER)
        if not cleaned.strip():
            return self.delete_code(code_id)

        affected = self.code_manager.update_code(code_id, cleaned)
        self.session.active_code_id = None
        logger.debug("Committed %s as %r", code_id, cleaned)
        if affected:
            self._queue_highlight_fetch(affected)
        return affected

    def delete_code(self, code_id: str) -> Optional[str]:
        """Delete a code; a passage that lost its last code triggers a new search."""
        self._require_loop()
        code = self.session.find_code(code_id)
        if code is None:
            return None
        owner = self.session.find_passage(code.passage_id)
        was_last = owner is not None and len(owner.code_ids) <= 1
        if owner is not None:
            self.suggestions.cancel_autocomplete(owner.id)
        self._field_values.pop(code_id, None)

        affected = self.code_manager.delete_code(code_id)
        if affected and was_last:
            self._queue_highlight_fetch(affected)
        return affected
