"""Boundary-aware text windows.

A window keeps at least a minimum number of words from one end of a text and
then extends into a bounded search area looking for a natural place to cut:
a line break first, then sentence-ending punctuation followed by a space.
When neither is found the text is cut right at the word boundary and the
truncation is signalled with ``...``.
"""

import re

CUT_WINDOW_SIZE = 200  # characters searched for a cut point
TRUNCATION_MARKER = "..."

_WORD = re.compile(r"\S+")
_SENTENCE_ENDS = (". ", "! ", "? ", "... ")


def count_words(text: str) -> int:
    """Count runs of non-whitespace characters."""
    return sum(1 for _ in _WORD.finditer(text))


def index_after_nth_word(text: str, n: int) -> int:
    """Index right after the nth word, or len(text) if there are fewer words."""
    if n <= 0:
        return 0
    for count, match in enumerate(_WORD.finditer(text), start=1):
        if count == n:
            return match.end()
    return len(text)


def index_of_nth_last_word(text: str, n: int) -> int:
    """Index where the nth word from the end starts, or 0 if there are fewer words."""
    if n <= 0:
        return len(text)
    starts = [match.start() for match in _WORD.finditer(text)]
    if len(starts) < n:
        return 0
    return starts[-n]


def _punctuation_end(index: int, marker: str) -> int:
    """Index just past the punctuation of a sentence-end match, or -1."""
    if index == -1:
        return -1
    return index + len(marker.rstrip())


def first_n_words(text: str, n: int) -> str:
    """Return the prefix of ``text`` ending with its nth word."""
    return text[: index_after_nth_word(text, n)]


def last_n_words(text: str, n: int) -> str:
    """Return the suffix of ``text`` starting with its nth-from-last word."""
    return text[index_of_nth_last_word(text, n):]


def string_tail(text: str, min_words: int, cut_window_size: int = CUT_WINDOW_SIZE) -> str:
    """Return a suffix of ``text`` holding at least ``min_words`` words.

    The suffix is extended backwards to the closest line break, or failing
    that the closest sentence end, inside the ``cut_window_size`` characters
    before the minimum cut point.

    Args:
        text: Text to cut
        min_words: Number of words always included
        cut_window_size: Characters searched for a natural cut point

    Returns:
        The cut text, prefixed with ``...`` if no natural boundary was found
    """
    if count_words(text) <= min_words:
        return text

    cut = index_of_nth_last_word(text, min_words)
    included = text[cut:]
    window = text[max(cut - cut_window_size, 0):cut]

    # Start of text reached inside the window: everything fits
    if len(window) < cut_window_size:
        return window + included

    line_break = window.rfind("\n")
    if line_break != -1:
        return window[line_break + 1:] + included

    ends = [_punctuation_end(window.rfind(marker), marker) for marker in _SENTENCE_ENDS]
    sentence_end = max(ends)
    if sentence_end != -1:
        return window[sentence_end:] + included

    return TRUNCATION_MARKER + included


def string_head(text: str, min_words: int, cut_window_size: int = CUT_WINDOW_SIZE) -> str:
    """Return a prefix of ``text`` holding at least ``min_words`` words.

    Mirror of :func:`string_tail`: the prefix is extended forwards to the first
    line break (inclusive), or failing that the first sentence end, inside
    the ``cut_window_size`` characters after the minimum cut point.
    """
    if count_words(text) <= min_words:
        return text

    cut = index_after_nth_word(text, min_words)
    included = text[:cut]
    window = text[cut:cut + cut_window_size]

    # End of text reached inside the window
    if len(window) < cut_window_size:
        return included + window

    line_break = window.find("\n")
    if line_break != -1:
        return included + window[: line_break + 1]

    ends = [_punctuation_end(window.find(marker), marker) for marker in _SENTENCE_ENDS]
    found = [end for end in ends if end != -1]
    if found:
        return included + window[: min(found)]

    return included + TRUNCATION_MARKER
