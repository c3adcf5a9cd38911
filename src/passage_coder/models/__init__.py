"""Data models for passages and codes."""

from passage_coder.models.code import LABEL_DELIMITER, Code, Codebook
from passage_coder.models.ids import IdAllocator
from passage_coder.models.passage import (
    ROW_SEPARATOR,
    HighlightedPassage,
    HighlightSuggestion,
    Passage,
    UnhighlightedPassage,
    trim_text,
)

__all__ = [
    "Code",
    "Codebook",
    "HighlightSuggestion",
    "HighlightedPassage",
    "IdAllocator",
    "LABEL_DELIMITER",
    "Passage",
    "ROW_SEPARATOR",
    "UnhighlightedPassage",
    "trim_text",
]
