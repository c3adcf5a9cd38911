"""Build the text shown to the model around a passage.

Plain-text sources take context from the whole document on either side of
the passage. Row-structured sources never look past the row the passage
belongs to: the nearest row separator before and after the passage bounds
the context.
"""

import math
from dataclasses import dataclass
from typing import Sequence

from ..models.passage import ROW_SEPARATOR, Passage
from .window import CUT_WINDOW_SIZE, string_head, string_tail

# Preceding text for highlight searches is capped to this share of the search size.
PRECEDING_SHARE = 0.2


@dataclass(frozen=True)
class PassageContext:
    """A passage together with the text around it."""

    preceding: str
    passage_text: str
    trailing: str

    def marked(self, open_mark: str = "<<<", close_mark: str = ">>>", with_trailing: bool = True) -> str:
        """Render the passage inside its context with the passage marked."""
        trailing = self.trailing if with_trailing else ""
        return f"{self.preceding}{open_mark}{self.passage_text}{close_mark}{trailing}"


@dataclass(frozen=True)
class SearchContext:
    """Input to a highlight-suggestion request.

    ``preceding_text`` is for orientation only and must never be coded;
    suggestions have to come from ``search_area``.
    """

    preceding_text: str
    search_area: str


def _text_before(passage: Passage, passages: Sequence[Passage]) -> str:
    return "".join(p.text for p in sorted(passages, key=lambda p: p.order) if p.order < passage.order)


def _text_after(passage: Passage, passages: Sequence[Passage]) -> str:
    return "".join(p.text for p in sorted(passages, key=lambda p: p.order) if p.order > passage.order)


def preceding_row_context(
    passage: Passage,
    passages: Sequence[Passage],
    min_words: int,
    cut_window_size: int = CUT_WINDOW_SIZE,
) -> str:
    """Text of the passage's row that comes before it.

    If no row separator precedes the passage (first row), the preceding text
    is windowed the same way as plain text.
    """
    preceding = _text_before(passage, passages)
    row_start = preceding.rfind(ROW_SEPARATOR)
    if row_start == -1:
        return string_tail(preceding, min_words, cut_window_size)
    return preceding[row_start + 1:]


def trailing_row_context(
    passage: Passage,
    passages: Sequence[Passage],
    min_words: int,
    cut_window_size: int = CUT_WINDOW_SIZE,
) -> str:
    """Text of the passage's row that comes after it, separator excluded."""
    following = _text_after(passage, passages)
    row_end = following.find(ROW_SEPARATOR)
    if row_end == -1:
        return string_head(following, min_words, cut_window_size)
    return following[:row_end]


def surrounding_context(
    passage: Passage,
    passages: Sequence[Passage],
    min_preceding: int,
    min_trailing: int,
    row_structured: bool,
    cut_window_size: int = CUT_WINDOW_SIZE,
) -> PassageContext:
    """Return ``passage`` with its preceding and trailing context.

    Args:
        passage: The passage to contextualize
        passages: All passages of the document
        min_preceding: Minimum words of preceding context
        min_trailing: Minimum words of trailing context
        row_structured: Whether the source is split into rows
        cut_window_size: Characters searched for a natural cut point

    Returns:
        PassageContext with preceding, passage and trailing text
    """
    if row_structured:
        preceding = preceding_row_context(passage, passages, min_preceding, cut_window_size)
        trailing = ""
        if not passage.ends_row():
            trailing = trailing_row_context(passage, passages, min_trailing, cut_window_size)
    else:
        preceding = string_tail(_text_before(passage, passages), min_preceding, cut_window_size)
        trailing = string_head(_text_after(passage, passages), min_trailing, cut_window_size)

    return PassageContext(preceding=preceding, passage_text=passage.text, trailing=trailing)


def search_tail(start_passage: Passage, passages: Sequence[Passage]) -> list[Passage]:
    """Passages from ``start_passage`` onwards, stopping before the first highlighted one."""
    tail: list[Passage] = [start_passage]
    for p in sorted(passages, key=lambda p: p.order):
        if p.order <= start_passage.order:
            continue
        if p.is_highlighted:
            break
        tail.append(p)
    return tail


def highlight_search_context(
    start_passage: Passage,
    passages: Sequence[Passage],
    search_start_index: int,
    min_search_words: int,
    row_structured: bool,
    cut_window_size: int = CUT_WINDOW_SIZE,
) -> SearchContext:
    """Build the area a highlight suggestion may be taken from.

    The search area starts at ``search_start_index`` inside ``start_passage``
    and runs through the following unhighlighted passages, stopping before
    the first highlighted one. Preceding text is capped at a fifth of the
    search size and is not part of the search area.
    """
    min_preceding = math.floor(min_search_words * PRECEDING_SHARE)
    head_of_start = start_passage.text[:search_start_index]

    if len(passages) == 1:
        only = passages[0]
        return SearchContext(
            preceding_text=string_tail(only.text[:search_start_index], min_preceding, cut_window_size),
            search_area=string_head(only.text[search_start_index:], min_search_words, cut_window_size),
        )

    following = search_tail(start_passage, passages)[1:]
    search_area = start_passage.text[search_start_index:] + "".join(p.text for p in following)
    search_area = string_head(search_area, min_search_words, cut_window_size)

    if row_structured:
        preceding = preceding_row_context(start_passage, passages, min_preceding, cut_window_size)
        return SearchContext(preceding_text=preceding + head_of_start, search_area=search_area)

    preceding = _text_before(start_passage, passages) + head_of_start
    preceding = string_tail(preceding, min_preceding, cut_window_size)
    return SearchContext(preceding_text=preceding, search_area=search_area)
