"""LLM-backed suggestions: fetching, validation and orchestration."""

from passage_coder.suggest.codes import CodeSuggester
from passage_coder.suggest.completion import after_last_delimiter, completion_for, existing_labels
from passage_coder.suggest.highlight import HighlightSuggester
from passage_coder.suggest.manager import HighlightOutcome, SuggestionsManager
from passage_coder.suggest.prompts import FewShotExample, PromptBuilder, PromptConfig
from passage_coder.suggest.queue import CallQueue
from passage_coder.suggest.validation import (
    HighlightResponse,
    parse_code_list,
    parse_highlight_response,
    validate_autocomplete,
)

__all__ = [
    "CallQueue",
    "CodeSuggester",
    "FewShotExample",
    "HighlightOutcome",
    "HighlightResponse",
    "HighlightSuggester",
    "PromptBuilder",
    "PromptConfig",
    "SuggestionsManager",
    "after_last_delimiter",
    "completion_for",
    "existing_labels",
    "parse_code_list",
    "parse_highlight_response",
    "validate_autocomplete",
]
