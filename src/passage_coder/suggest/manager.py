"""Central orchestrator for AI suggestions (highlight, code and autocomplete).

Every fetch claims a generation number for its passage before awaiting the
model. The result is written back only if the passage's latest generation
is still the one claimed; otherwise the fetch was superseded and its
result is dropped. Write-back runs between awaits, so it is atomic on the
event loop.

Highlight fetches triggered by the UI go through a serial pending queue so
that at most one search runs at a time. Code and autocomplete fetches run
concurrently, each guarded on its own.
"""

import asyncio
import itertools
import logging
from dataclasses import dataclass
from typing import Optional, Sequence

from ..config import Settings, get_settings
from ..errors import LLMError
from ..llm import Completer
from ..models.passage import HighlightedPassage, HighlightSuggestion, UnhighlightedPassage, trim_text
from ..session import CodingSession
from .codes import CodeSuggester
from .highlight import HighlightSuggester
from .prompts import PromptBuilder
from .queue import CallQueue

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class HighlightOutcome:
    """What a highlight refresh produced and whether it was written back."""

    suggestion: Optional[HighlightSuggestion] = None
    passage_id: Optional[str] = None
    stale: bool = False

    @property
    def found(self) -> bool:
        return (
            not self.stale
            and self.suggestion is not None
            and self.passage_id is not None
            and bool(trim_text(self.suggestion.passage))
            and bool(self.suggestion.codes)
        )


class SuggestionsManager:
    """Owns the suggestion fields of every passage in a session."""

    def __init__(
        self,
        session: CodingSession,
        llm: Completer,
        prompts: Optional[PromptBuilder] = None,
        settings: Optional[Settings] = None,
        highlighter: Optional[HighlightSuggester] = None,
        code_suggester: Optional[CodeSuggester] = None,
    ):
        self.session = session
        self.settings = settings or get_settings()
        self.prompts = prompts or PromptBuilder(session, settings=self.settings)
        self.highlighter = highlighter or HighlightSuggester(session, llm, self.prompts, self.settings)
        self.code_suggester = code_suggester or CodeSuggester(session, llm, self.prompts, self.settings)
        self.enabled = self.settings.ai_suggestions_enabled

        self._generations: dict[str, int] = {}
        self._counter = itertools.count(1)
        self._pending = CallQueue()
        self._highlight_fetches = 0
        self._autocomplete_timers: dict[str, asyncio.Task] = {}

    # ------------------------------------------------------------------
    # Staleness guard
    # ------------------------------------------------------------------

    def claim(self, passage_id: str) -> int:
        """Mark a new fetch as the latest for ``passage_id``."""
        generation = next(self._counter)
        self._generations[passage_id] = generation
        return generation

    def is_current(self, passage_id: str, generation: int) -> bool:
        return self._generations.get(passage_id) == generation

    @property
    def is_fetching_highlight(self) -> bool:
        return self._highlight_fetches > 0 or self._pending.busy

    # ------------------------------------------------------------------
    # Code and autocomplete suggestions
    # ------------------------------------------------------------------

    async def update_code_suggestions(self, passage_id: str, existing_codes: Sequence[str]) -> None:
        """Fetch code suggestions for a highlighted passage."""
        if not self.enabled:
            return
        generation = self.claim(passage_id)
        passage = self.session.find_passage(passage_id)
        if not isinstance(passage, HighlightedPassage):
            return

        try:
            suggestions = await self.code_suggester.code_suggestions(passage, existing_codes)
        except LLMError as e:
            logger.warning("Error fetching code suggestions for %s: %s", passage_id, e)
            return

        if not self.is_current(passage_id, generation):
            logger.debug("Dropping stale code suggestions for %s", passage_id)
            return
        current = self.session.find_passage(passage_id)
        if isinstance(current, HighlightedPassage):
            self.session.update_passage(current.with_code_suggestions(tuple(suggestions)))

    def clear_code_suggestions(self, passage_id: str) -> None:
        passage = self.session.find_passage(passage_id)
        if isinstance(passage, HighlightedPassage):
            self.session.update_passage(passage.with_code_suggestions(()))

    async def update_autocomplete(
        self,
        passage_id: str,
        existing_codes: Sequence[str],
        user_input: str,
    ) -> None:
        """Fetch a completion for the label being typed on a passage."""
        if not self.enabled:
            return
        generation = self.claim(passage_id)
        passage = self.session.find_passage(passage_id)
        if not isinstance(passage, HighlightedPassage):
            return

        try:
            suggestion = await self.code_suggester.autocomplete(passage, existing_codes, user_input)
        except LLMError as e:
            logger.warning("Autocomplete suggestion fetch failed for %s: %s", passage_id, e)
            suggestion = ""

        if not self.is_current(passage_id, generation):
            logger.debug("Dropping stale autocomplete suggestion for %s", passage_id)
            return
        current = self.session.find_passage(passage_id)
        if isinstance(current, HighlightedPassage):
            self.session.update_passage(current.with_autocomplete(suggestion))

    def schedule_autocomplete(
        self,
        passage_id: str,
        existing_codes: Sequence[str],
        user_input: str,
    ) -> Optional[asyncio.Task]:
        """Fetch a completion once typing has paused for the quiet interval.

        A new call for the same passage restarts the timer.
        """
        if not self.enabled:
            return None
        self.cancel_autocomplete(passage_id)

        async def _after_pause() -> None:
            await asyncio.sleep(self.settings.autocomplete_quiet_interval)
            await self.update_autocomplete(passage_id, existing_codes, user_input)

        task = asyncio.get_running_loop().create_task(_after_pause())
        self._autocomplete_timers[passage_id] = task
        task.add_done_callback(lambda t: self._forget_timer(passage_id, t))
        return task

    def cancel_autocomplete(self, passage_id: str) -> None:
        task = self._autocomplete_timers.pop(passage_id, None)
        if task is not None and not task.done():
            task.cancel()

    def _forget_timer(self, passage_id: str, task: asyncio.Task) -> None:
        if self._autocomplete_timers.get(passage_id) is task:
            del self._autocomplete_timers[passage_id]

    # ------------------------------------------------------------------
    # Highlight suggestions
    # ------------------------------------------------------------------

    async def refresh_highlight_suggestion(
        self,
        passage_id: str,
        search_start_index: int,
        generation: int,
    ) -> HighlightOutcome:
        """Fetch and store a highlight suggestion starting inside ``passage_id``."""
        passage = self.session.find_passage(passage_id)
        if not self.enabled or not isinstance(passage, UnhighlightedPassage):
            return HighlightOutcome()

        self._highlight_fetches += 1
        try:
            result = None
            if search_start_index < len(passage.text):
                result = await self.highlighter.next_suggestion(passage_id, search_start_index)
        finally:
            self._highlight_fetches -= 1

        if not self.is_current(passage_id, generation):
            logger.debug("Dropping stale highlight suggestion for %s", passage_id)
            return HighlightOutcome(stale=True)

        if result is None:
            current = self.session.find_passage(passage_id)
            if isinstance(current, UnhighlightedPassage) and current.next_highlight_suggestion:
                self.session.update_passage(current.with_suggestion(None))
            return HighlightOutcome()

        suggestion, for_passage_id = result
        target = self.session.find_passage(for_passage_id)
        if not isinstance(target, UnhighlightedPassage):
            return HighlightOutcome()
        self.session.update_passage(target.with_suggestion(suggestion))
        return HighlightOutcome(suggestion=suggestion, passage_id=for_passage_id)

    async def decline_highlight_suggestion(self, passage_id: str) -> Optional[str]:
        """Decline the suggestion on a passage and look for the next one.

        The search restarts right after the declined span. If that finds
        nothing, the search continues with the following passages.

        Returns:
            Id of the passage now holding a suggestion, or None
        """
        if not self.enabled:
            return None
        passage = self.session.find_passage(passage_id)
        if not isinstance(passage, UnhighlightedPassage):
            return None
        declined = passage.next_highlight_suggestion
        if declined is None:
            return None

        start = declined.start_index
        if passage.text[start:declined.end_index] != declined.passage:
            start = passage.text.find(declined.passage)
            if start == -1:
                return None
        search_start_index = start + len(declined.passage)

        self.session.update_passage(passage.with_suggestion(None))
        generation = self.claim(passage_id)
        outcome = await self.refresh_highlight_suggestion(passage_id, search_start_index, generation)
        if outcome.stale:
            return None
        if outcome.found:
            return outcome.passage_id

        current = self.session.find_passage(passage_id)
        if current is None:
            return None
        following = self.session.passage_at(current.order + 1)
        if following is None:
            return None
        return await self.fetch_highlight_suggestion_after(following.id)

    async def fetch_highlight_suggestion_after(self, passage_id: str) -> Optional[str]:
        """Search from ``passage_id`` (inclusive) onwards until a suggestion is found.

        Passages that are highlighted or whose trimmed text is too short are
        skipped.

        Returns:
            Id of the passage now holding a suggestion, or None
        """
        if not self.enabled:
            return None
        passage = self.session.find_passage(passage_id)
        if passage is None:
            logger.warning("Highlight suggestion fetch skipped: no passage %s", passage_id)
            return None

        candidate_ids = [
            p.id
            for p in self.session.passages
            if p.order >= passage.order
            and isinstance(p, UnhighlightedPassage)
            and len(trim_text(p.text)) > self.settings.min_candidate_chars
        ]
        for candidate_id in candidate_ids:
            if not isinstance(self.session.find_passage(candidate_id), UnhighlightedPassage):
                continue
            generation = self.claim(candidate_id)
            outcome = await self.refresh_highlight_suggestion(candidate_id, 0, generation)
            if outcome.stale:
                return None
            if outcome.found:
                return outcome.passage_id
        return None

    def request_highlight_fetch(self, passage_id: str) -> "asyncio.Future[Optional[str]]":
        """Queue a highlight search from ``passage_id``. Searches run one at a time."""
        return self._pending.enqueue(lambda: self._process_pending(passage_id))

    async def _process_pending(self, passage_id: str) -> Optional[str]:
        if self.session.find_passage(passage_id) is None:
            logger.debug("Skipping queued highlight fetch for removed %s", passage_id)
            return None
        return await self.fetch_highlight_suggestion_after(passage_id)

    def clear_pending(self) -> int:
        """Drop queued highlight searches that have not started."""
        return self._pending.clear()
