"""Fetch the next highlight suggestion for a stretch of uncoded text."""

import asyncio
import logging
from typing import Awaitable, Callable, Optional

from ..config import Settings, get_settings
from ..context.builder import highlight_search_context, search_tail
from ..errors import LLMError, ResponseFormatError, TransportConflictError
from ..llm import Completer
from ..models.passage import HighlightSuggestion, UnhighlightedPassage
from ..session import CodingSession
from .prompts import PromptBuilder
from .validation import HighlightResponse, parse_highlight_response

logger = logging.getLogger(__name__)

AMENDMENT = """

## IMPORTANT NOTE!
Previous attempt caused the following error. Please ensure it does not happen again.
ERROR MESSAGE: {error}
"""


class HighlightSuggester:
    """Asks the model for the next passage worth coding and validates the answer.

    Validation failures are retried with the violated rule appended to the
    prompt, up to ``highlight_max_attempts`` attempts in total. Transport
    conflicts are retried after a short delay on their own budget. Any other
    transport error ends the fetch. Exhausting retries yields no suggestion.
    """

    def __init__(
        self,
        session: CodingSession,
        llm: Completer,
        prompts: PromptBuilder,
        settings: Optional[Settings] = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self.session = session
        self.llm = llm
        self.prompts = prompts
        self.settings = settings or get_settings()
        self._sleep = sleep

    async def next_suggestion(
        self,
        start_passage_id: str,
        search_start_index: int = 0,
    ) -> Optional[tuple[HighlightSuggestion, str]]:
        """Fetch a suggestion starting at ``search_start_index`` of a passage.

        Args:
            start_passage_id: Unhighlighted passage the search starts in
            search_start_index: Offset in that passage where the search starts

        Returns:
            (suggestion, id of the passage containing it), or None if the
            model found nothing or every attempt failed
        """
        settings = self.settings
        attempts = 0
        conflicts = 0
        amendment = ""

        while attempts < settings.highlight_max_attempts:
            start = self.session.find_passage(start_passage_id)
            if not isinstance(start, UnhighlightedPassage):
                logger.debug("Search start %s is gone or highlighted", start_passage_id)
                return None

            context = highlight_search_context(
                start,
                self.session.passages,
                search_start_index,
                settings.highlight_search_words,
                self.session.row_structured,
                settings.cut_window_size,
            )
            prompt = self.prompts.highlight_prompt(context.preceding_text, context.search_area) + amendment

            try:
                response = await self.llm.complete(prompt, settings.highlight_model)
                validated = parse_highlight_response(
                    response.text, context.search_area, self.session.row_structured
                )
                if validated.is_empty:
                    logger.info("No highlight suggestion after %s:%d", start.id, search_start_index)
                    return None
                return self._locate(start, search_start_index, validated)

            except TransportConflictError as e:
                conflicts += 1
                if conflicts > settings.max_conflict_retries:
                    logger.warning("Giving up after %d transport conflicts: %s", conflicts, e)
                    break
                logger.debug("Transport conflict, retrying in %.1fs", settings.conflict_retry_delay)
                await self._sleep(settings.conflict_retry_delay)

            except ResponseFormatError as e:
                attempts += 1
                amendment = AMENDMENT.format(error=e)
                logger.warning(
                    "Highlight suggestion attempt %d for %r failed: %s",
                    attempts,
                    start.text[:25],
                    e,
                )

            except LLMError as e:
                logger.error("Non-retryable error fetching highlight suggestion: %s", e)
                break

        logger.warning(
            "All attempts to fetch a highlight suggestion for %s failed. Returning no suggestion.",
            start_passage_id,
        )
        return None

    def _locate(
        self,
        start: UnhighlightedPassage,
        search_start_index: int,
        validated: HighlightResponse,
    ) -> tuple[HighlightSuggestion, str]:
        """Find the passage holding the suggested text. The first match by order wins."""
        for passage in search_tail(start, self.session.passages):
            offset = search_start_index if passage.id == start.id else 0
            index = passage.text.find(validated.passage, offset)
            if index != -1:
                suggestion = HighlightSuggestion(
                    passage=validated.passage,
                    start_index=index,
                    codes=tuple(validated.codes),
                )
                logger.info("Highlight suggestion in %s at %d", passage.id, index)
                return suggestion, passage.id

        raise ResponseFormatError("Suggested passage is not a substring of the search area.")
