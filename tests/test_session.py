"""Tests for the session container."""

import pytest

from passage_coder.errors import InvariantViolation, UnknownPassageError
from passage_coder.models.code import Code
from passage_coder.models.ids import IdAllocator
from passage_coder.models.passage import HighlightedPassage, UnhighlightedPassage
from passage_coder.session import CodingSession


class TestConstruction:
    """Test building sessions from sources."""

    def test_from_text(self):
        session = CodingSession.from_text("Some text")
        assert [(p.id, p.order, p.text) for p in session.passages] == [("passage-0", 0, "Some text")]
        assert not session.row_structured

    def test_from_columns_share_ids(self):
        rows = [["q1", "q2"], ["a", "b"], ["c", ""]]

        sessions = CodingSession.from_columns(rows, has_header=True)

        assert [p.id for p in sessions[0].passages] == ["passage-0", "passage-1"]
        assert [p.id for p in sessions[1].passages] == ["passage-2"]
        assert sessions[0].ids is sessions[1].ids

    def test_replace_passages_densifies(self):
        session = CodingSession(
            [
                UnhighlightedPassage(id="passage-1", order=7, text="b"),
                UnhighlightedPassage(id="passage-0", order=3, text="a"),
            ]
        )
        assert [(p.id, p.order) for p in session.passages] == [("passage-0", 0), ("passage-1", 1)]


class TestLookups:
    """Test passage and code lookups."""

    def test_unknown_passage(self):
        session = CodingSession.from_text("x")
        assert session.find_passage("passage-9") is None
        with pytest.raises(UnknownPassageError):
            session.get_passage("passage-9")
        with pytest.raises(UnknownPassageError):
            session.update_passage(UnhighlightedPassage(id="passage-9", order=0, text="x"))

    def test_locate_document_offset(self):
        session = CodingSession(
            [
                UnhighlightedPassage(id="passage-0", order=0, text="Alice said "),
                UnhighlightedPassage(id="passage-1", order=1, text="the rest"),
            ]
        )

        assert [(p.id, o) for p, o in (session.locate(0), session.locate(11), session.locate(13))] == [
            ("passage-0", 0),
            ("passage-1", 0),
            ("passage-1", 2),
        ]
        with pytest.raises(UnknownPassageError):
            session.locate(19)
        with pytest.raises(UnknownPassageError):
            session.locate(-1)

    def test_id_allocator(self):
        ids = IdAllocator()
        assert [ids.passage_id(), ids.code_id(), ids.passage_id()] == ["passage-0", "code-0", "passage-1"]


class TestInvariants:
    """Test detection of inconsistent state."""

    def test_foreign_code(self):
        session = CodingSession(
            [HighlightedPassage(id="passage-0", order=0, text="x", code_ids=("code-0",))],
            [Code(id="code-0", passage_id="passage-1", code="a")],
        )
        with pytest.raises(InvariantViolation):
            session.check_invariants()

    def test_unlisted_code(self):
        session = CodingSession(
            [HighlightedPassage(id="passage-0", order=0, text="x", code_ids=())],
            [Code(id="code-0", passage_id="passage-0", code="a")],
        )
        with pytest.raises(InvariantViolation):
            session.check_invariants()

    def test_duplicate_ids(self):
        session = CodingSession(
            [
                UnhighlightedPassage(id="passage-0", order=0, text="a"),
                UnhighlightedPassage(id="passage-0", order=1, text="b"),
            ]
        )
        with pytest.raises(InvariantViolation):
            session.check_invariants()
