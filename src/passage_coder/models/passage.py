"""Passage models: contiguous, non-overlapping spans of the source text."""

from typing import Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

# Marks the end of a row in row-structured (CSV) sources. Opaque to this layer.
ROW_SEPARATOR = "\u001e"

# str.strip() would also remove the separator, which Python counts as whitespace.
_TRIM_CHARS = " \t\n\r\f\v\u00a0"


def trim_text(text: str) -> str:
    """Strip surrounding whitespace while keeping row separators."""
    return text.strip(_TRIM_CHARS)


class HighlightSuggestion(BaseModel):
    """A proposed sub-span of an unhighlighted passage, with candidate codes."""

    model_config = ConfigDict(frozen=True)

    passage: str
    start_index: int
    codes: tuple[str, ...] = ()

    @property
    def end_index(self) -> int:
        return self.start_index + len(self.passage)


class _PassageBase(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    order: int
    text: str

    def with_order(self, order: int):
        """Return a copy of this passage placed at ``order``."""
        if order == self.order:
            return self
        return self.model_copy(update={"order": order})

    def ends_row(self) -> bool:
        """True if the passage closes a row of a row-structured source."""
        return trim_text(self.text).endswith(ROW_SEPARATOR)


class UnhighlightedPassage(_PassageBase):
    """Uncoded text between highlights. May carry a highlight suggestion."""

    is_highlighted: Literal[False] = False
    next_highlight_suggestion: Optional[HighlightSuggestion] = None

    @property
    def code_ids(self) -> tuple[str, ...]:
        return ()

    @property
    def code_suggestions(self) -> tuple[str, ...]:
        return ()

    @property
    def autocomplete_suggestion(self) -> None:
        return None

    def highlight(
        self,
        code_ids: tuple[str, ...],
        code_suggestions: tuple[str, ...] = (),
        *,
        id: Optional[str] = None,
        text: Optional[str] = None,
        order: Optional[int] = None,
    ) -> "HighlightedPassage":
        """Promote to a highlighted passage, optionally under a new identity."""
        return HighlightedPassage(
            id=id if id is not None else self.id,
            order=order if order is not None else self.order,
            text=text if text is not None else self.text,
            code_ids=tuple(code_ids),
            code_suggestions=tuple(code_suggestions),
        )

    def with_suggestion(self, suggestion: Optional[HighlightSuggestion]) -> "UnhighlightedPassage":
        return self.model_copy(update={"next_highlight_suggestion": suggestion})


class HighlightedPassage(_PassageBase):
    """A coded span. Owns at least one code once the first label commits."""

    is_highlighted: Literal[True] = True
    code_ids: tuple[str, ...] = Field(default_factory=tuple)
    code_suggestions: tuple[str, ...] = Field(default_factory=tuple)
    autocomplete_suggestion: str = ""

    @property
    def next_highlight_suggestion(self) -> None:
        return None

    def demote(self) -> UnhighlightedPassage:
        """Drop codes and suggestions, keeping identity, order and text."""
        return UnhighlightedPassage(id=self.id, order=self.order, text=self.text)

    def with_code_ids(self, code_ids: tuple[str, ...]) -> "HighlightedPassage":
        return self.model_copy(update={"code_ids": tuple(code_ids), "autocomplete_suggestion": ""})

    def with_code_suggestions(self, suggestions: tuple[str, ...]) -> "HighlightedPassage":
        return self.model_copy(update={"code_suggestions": tuple(suggestions)})

    def with_autocomplete(self, suggestion: str) -> "HighlightedPassage":
        return self.model_copy(update={"autocomplete_suggestion": suggestion})


Passage = Union[UnhighlightedPassage, HighlightedPassage]
