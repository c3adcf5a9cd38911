"""Text windows and prompt context around passages."""

from passage_coder.context.builder import (
    PassageContext,
    SearchContext,
    highlight_search_context,
    preceding_row_context,
    search_tail,
    surrounding_context,
    trailing_row_context,
)
from passage_coder.context.window import count_words, first_n_words, string_head, string_tail

__all__ = [
    "PassageContext",
    "SearchContext",
    "count_words",
    "first_n_words",
    "highlight_search_context",
    "preceding_row_context",
    "search_tail",
    "string_head",
    "string_tail",
    "surrounding_context",
    "trailing_row_context",
]
