"""Code and autocomplete suggestions for highlighted passages."""

import logging
from typing import Optional, Sequence

from ..config import Settings, get_settings
from ..context.builder import surrounding_context
from ..errors import ResponseFormatError
from ..llm import Completer
from ..models.passage import Passage
from ..session import CodingSession
from .prompts import PromptBuilder
from .validation import parse_code_list, validate_autocomplete

logger = logging.getLogger(__name__)

CODES_REMINDER = (
    "\n\n## ADDITIONAL NOTE:\nIt is absolutely critical that you respond ONLY with a JSON array "
    "as specified. Nothing else. No explanations."
)
AUTOCOMPLETE_REMINDER = (
    "\n\n## ADDITIONAL NOTE:\nPrevious response failed validation. It is absolutely critical that "
    "you respond ONLY with a single code string as specified. Nothing else. No explanations."
)


class CodeSuggester:
    """Single-attempt fetches with one stricter retry on malformed output.

    Transport errors propagate to the caller; malformed output after the
    retry degrades to an empty result.
    """

    def __init__(
        self,
        session: CodingSession,
        llm: Completer,
        prompts: PromptBuilder,
        settings: Optional[Settings] = None,
    ):
        self.session = session
        self.llm = llm
        self.prompts = prompts
        self.settings = settings or get_settings()

    def _marked(self, passage: Passage) -> str:
        """Preceding context and the marked passage; following text is not sent."""
        context = surrounding_context(
            passage,
            self.session.passages,
            self.settings.code_context_words,
            0,
            self.session.row_structured,
            self.settings.cut_window_size,
        )
        return context.marked(with_trailing=False)

    async def code_suggestions(self, passage: Passage, existing_codes: Sequence[str]) -> list[str]:
        """Suggest codes for a highlighted passage."""
        prompt = self.prompts.code_prompt(passage, self._marked(passage), existing_codes)
        model = self.settings.suggestion_model

        response = await self.llm.complete(prompt, model)
        try:
            return parse_code_list(response.text)
        except ResponseFormatError as e:
            logger.warning("Malformed code suggestions for %s, retrying: %s", passage.id, e)

        response = await self.llm.complete(prompt + CODES_REMINDER, model)
        try:
            return parse_code_list(response.text)
        except ResponseFormatError as e:
            logger.warning("Failed to parse code suggestions for %s: %s", passage.id, e)
            return []

    async def autocomplete(
        self,
        passage: Passage,
        existing_codes: Sequence[str],
        user_input: str,
    ) -> str:
        """Complete the label the user is typing."""
        prompt = self.prompts.autocomplete_prompt(
            passage, self._marked(passage), existing_codes, user_input
        )
        model = self.settings.suggestion_model

        response = await self.llm.complete(prompt, model)
        try:
            return validate_autocomplete(response.text)
        except ResponseFormatError as e:
            logger.warning("Invalid autocomplete suggestion for %s, retrying: %s", passage.id, e)

        response = await self.llm.complete(prompt + AUTOCOMPLETE_REMINDER, model)
        try:
            return validate_autocomplete(response.text)
        except ResponseFormatError as e:
            logger.warning("Invalid autocomplete suggestion for %s: %s", passage.id, e)
            return ""
