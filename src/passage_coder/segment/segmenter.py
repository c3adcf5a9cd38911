"""Split passages when the user highlights a span."""

import logging
from typing import Sequence

from ..errors import EmptySpanError, OverlapError
from ..models.code import Code
from ..models.passage import HighlightedPassage, Passage, UnhighlightedPassage, trim_text
from ..session import CodingSession

logger = logging.getLogger(__name__)


class PassageSegmenter:
    """Creates highlighted passages out of spans of unhighlighted ones.

    Usage:
        segmenter = PassageSegmenter(session)
        passage_id = segmenter.create_span("passage-0", 11, 31)
    """

    def __init__(self, session: CodingSession):
        self.session = session

    def create_span(
        self,
        source_passage_id: str,
        start_offset: int,
        end_offset: int,
        initial_code_suggestions: Sequence[str] = (),
    ) -> str:
        """Highlight ``text[start_offset:end_offset]`` of a passage.

        The source passage is replaced by up to three passages (before, span,
        after); a new empty code is attached to the span and becomes the
        active code.

        Args:
            source_passage_id: Passage the selection was made in
            start_offset: Selection start inside the passage text
            end_offset: Selection end inside the passage text
            initial_code_suggestions: Code suggestions to show right away

        Returns:
            Id of the highlighted passage

        Raises:
            OverlapError: The span is not inside one uncoded passage
            EmptySpanError: The span is only whitespace
        """
        session = self.session
        source = session.find_passage(source_passage_id)
        if source is None:
            raise OverlapError(f"No passage {source_passage_id} to highlight in")
        if isinstance(source, HighlightedPassage) or source.code_ids:
            raise OverlapError(
                f"{source.id} is already highlighted; overlapping passages are not allowed"
            )

        # Selections may be made backwards
        if start_offset > end_offset:
            start_offset, end_offset = end_offset, start_offset
        if start_offset < 0 or end_offset > len(source.text):
            raise OverlapError(
                f"Span {start_offset}:{end_offset} does not lie inside {source.id}"
            )

        before = source.text[:start_offset]
        span = source.text[start_offset:end_offset]
        after = source.text[end_offset:]
        if not trim_text(span):
            raise EmptySpanError(f"Span {start_offset}:{end_offset} of {source.id} is empty")

        code_id = session.ids.code_id()
        suggestions = tuple(initial_code_suggestions)
        order = source.order

        if not before and not after:
            # Whole passage: highlight in place, identity and order preserved
            highlighted = source.highlight((code_id,), suggestions)
            emitted: list[Passage] = [highlighted]
        else:
            # Ids are allocated in text order: before, span, after
            emitted = []
            if before:
                emitted.append(
                    UnhighlightedPassage(id=session.ids.passage_id(), order=order, text=before)
                )
            highlighted = source.highlight(
                (code_id,),
                suggestions,
                id=session.ids.passage_id(),
                text=span,
                order=order + len(emitted),
            )
            emitted.append(highlighted)
            if after:
                emitted.append(
                    UnhighlightedPassage(
                        id=session.ids.passage_id(), order=order + len(emitted), text=after
                    )
                )

        shift = len(emitted) - 1
        kept = [
            p.with_order(p.order + shift) if p.order > order else p
            for p in session.passages
            if p.id != source.id
        ]
        session.replace_passages(kept + emitted)

        session.set_codes(session.codes + [Code(id=code_id, passage_id=highlighted.id, code="")])
        session.active_code_id = code_id

        logger.info(
            "Highlighted %s as %s (%d passages emitted)", source.id, highlighted.id, len(emitted)
        )
        return highlighted.id
