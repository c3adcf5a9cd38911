"""In-memory state of one coding session.

The session holds the ordered passage list, the code list and the id
allocator. Structural writes go through :meth:`CodingSession.replace_passages`,
which re-sorts and re-densifies ``order`` after every change.
"""

import logging
from typing import Iterable, Optional, Sequence

from .errors import InvariantViolation, UnknownCodeError, UnknownPassageError
from .models.code import Code, Codebook
from .models.ids import IdAllocator
from .models.passage import (
    ROW_SEPARATOR,
    HighlightedPassage,
    Passage,
    UnhighlightedPassage,
)

logger = logging.getLogger(__name__)


class CodingSession:
    """Passages, codes and derived codebook for one source document."""

    def __init__(
        self,
        passages: Iterable[Passage] = (),
        codes: Iterable[Code] = (),
        ids: Optional[IdAllocator] = None,
        row_structured: bool = False,
    ):
        self.ids = ids or IdAllocator()
        self.row_structured = row_structured
        self.active_code_id: Optional[str] = None
        self.imported_codes: set[str] = set()
        self._passages: list[Passage] = []
        self._codes: list[Code] = list(codes)
        self.codebook = Codebook()
        self.replace_passages(passages)
        self.refresh_codebook()

    # ------------------------------------------------------------------
    # Construction
    # ------------------------------------------------------------------

    @classmethod
    def from_text(cls, text: str, ids: Optional[IdAllocator] = None) -> "CodingSession":
        """Start a session on a plain text: one unhighlighted passage."""
        ids = ids or IdAllocator()
        passage = UnhighlightedPassage(id=ids.passage_id(), order=0, text=text)
        return cls([passage], ids=ids, row_structured=False)

    @classmethod
    def from_rows(
        cls,
        rows: Sequence[Sequence[str]],
        column: int = 0,
        has_header: bool = False,
        ids: Optional[IdAllocator] = None,
    ) -> "CodingSession":
        """Start a session on one column of tabular data.

        Each non-empty cell becomes a passage ending in the row separator.
        """
        ids = ids or IdAllocator()
        passages: list[Passage] = []
        for row in rows[1:] if has_header else rows:
            cell = row[column] if column < len(row) else ""
            if not cell or not cell.strip():
                continue
            passages.append(
                UnhighlightedPassage(
                    id=ids.passage_id(),
                    order=len(passages),
                    text=cell.strip() + ROW_SEPARATOR,
                )
            )
        return cls(passages, ids=ids, row_structured=True)

    @classmethod
    def from_columns(
        cls,
        rows: Sequence[Sequence[str]],
        has_header: bool = False,
    ) -> dict[int, "CodingSession"]:
        """One session per column, sharing a single id allocator."""
        ids = IdAllocator()
        width = max((len(row) for row in rows), default=0)
        return {
            column: cls.from_rows(rows, column=column, has_header=has_header, ids=ids)
            for column in range(width)
        }

    # ------------------------------------------------------------------
    # Passages
    # ------------------------------------------------------------------

    @property
    def passages(self) -> list[Passage]:
        return list(self._passages)

    def replace_passages(self, passages: Iterable[Passage]) -> None:
        """Replace the passage list, re-sorting by order and re-densifying it."""
        ordered = sorted(passages, key=lambda p: p.order)
        self._passages = [p.with_order(index) for index, p in enumerate(ordered)]

    def update_passage(self, passage: Passage) -> None:
        """Swap in a new version of an existing passage (same id and order)."""
        for index, existing in enumerate(self._passages):
            if existing.id == passage.id:
                self._passages[index] = passage.with_order(existing.order)
                return
        raise UnknownPassageError(passage.id)

    def find_passage(self, passage_id: str) -> Optional[Passage]:
        for passage in self._passages:
            if passage.id == passage_id:
                return passage
        return None

    def get_passage(self, passage_id: str) -> Passage:
        passage = self.find_passage(passage_id)
        if passage is None:
            raise UnknownPassageError(passage_id)
        return passage

    def passage_at(self, order: int) -> Optional[Passage]:
        if 0 <= order < len(self._passages):
            return self._passages[order]
        return None

    def locate(self, offset: int) -> tuple[Passage, int]:
        """Passage holding a document offset, and the offset inside that passage."""
        base = 0
        for passage in self._passages:
            if 0 <= offset - base < len(passage.text):
                return passage, offset - base
            base += len(passage.text)
        raise UnknownPassageError(f"No passage at document offset {offset}")

    def document_text(self) -> str:
        return "".join(p.text for p in self._passages)

    # ------------------------------------------------------------------
    # Codes
    # ------------------------------------------------------------------

    @property
    def codes(self) -> list[Code]:
        return list(self._codes)

    def set_codes(self, codes: Iterable[Code]) -> None:
        self._codes = list(codes)
        self.refresh_codebook()

    def find_code(self, code_id: str) -> Optional[Code]:
        for code in self._codes:
            if code.id == code_id:
                return code
        return None

    def get_code(self, code_id: str) -> Code:
        code = self.find_code(code_id)
        if code is None:
            raise UnknownCodeError(code_id)
        return code

    def codes_for(self, passage_id: str, exclude: Optional[str] = None) -> list[str]:
        """Label strings attached to a passage, in code-id order of the passage."""
        passage = self.find_passage(passage_id)
        if passage is None:
            return []
        by_id = {c.id: c for c in self._codes}
        return [
            by_id[code_id].code
            for code_id in passage.code_ids
            if code_id in by_id and code_id != exclude and not by_id[code_id].is_blank
        ]

    def refresh_codebook(self) -> None:
        """Recompute the codebook and drop imported labels that are now in use."""
        self.codebook = Codebook.rebuild(self._codes)
        self.imported_codes -= set(self.codebook)

    def import_codes(self, labels: Iterable[str]) -> None:
        """Track labels from an external codebook that are not in use yet."""
        self.imported_codes |= {label.strip() for label in labels if label.strip()}
        self.imported_codes -= set(self.codebook)

    # ------------------------------------------------------------------
    # Checks
    # ------------------------------------------------------------------

    def check_invariants(self) -> None:
        """Raise InvariantViolation if passages or codes are inconsistent."""
        orders = [p.order for p in self._passages]
        if orders != list(range(len(self._passages))):
            raise InvariantViolation(f"passage orders are not dense: {orders}")

        ids = [p.id for p in self._passages]
        if len(set(ids)) != len(ids):
            raise InvariantViolation("duplicate passage ids")

        codes = {c.id: c for c in self._codes}
        for passage in self._passages:
            if isinstance(passage, HighlightedPassage):
                for code_id in passage.code_ids:
                    code = codes.get(code_id)
                    if code is None or code.passage_id != passage.id:
                        raise InvariantViolation(f"{passage.id} lists foreign code {code_id}")

        by_id = {p.id: p for p in self._passages}
        for code in self._codes:
            owner = by_id.get(code.passage_id)
            if owner is None:
                raise InvariantViolation(f"{code.id} points at missing {code.passage_id}")
            if code.id not in owner.code_ids:
                raise InvariantViolation(f"{code.id} is not listed by {owner.id}")
