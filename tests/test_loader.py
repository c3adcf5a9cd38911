"""Tests for source loading."""

import pytest

from passage_coder.ingest.loader import column_names, load_csv_rows, load_source, load_text
from passage_coder.models.passage import ROW_SEPARATOR


class TestLoadText:
    """Test plain text loading."""

    def test_utf8(self, tmp_path):
        path = tmp_path / "notes.txt"
        path.write_text("Café interview", encoding="utf-8")
        assert load_text(path) == "Café interview"

    def test_latin1_fallback(self, tmp_path):
        path = tmp_path / "notes.txt"
        path.write_bytes("Café interview".encode("latin-1"))
        assert load_text(path) == "Café interview"

    def test_text_source(self, tmp_path):
        path = tmp_path / "interview.md"
        path.write_text("Alice said the process was slow.", encoding="utf-8")

        session = load_source(path)

        assert not session.row_structured
        assert [p.text for p in session.passages] == ["Alice said the process was slow."]


class TestLoadCsv:
    """Test tabular sources."""

    def test_rows_with_header(self, tmp_path):
        path = tmp_path / "survey.csv"
        path.write_text('id,answer\n1,"It was slow, really"\n2,\n3,Fine\n', encoding="utf-8")

        session = load_source(path, column=1, has_header=True)

        assert session.row_structured
        assert [p.text for p in session.passages] == [
            "It was slow, really" + ROW_SEPARATOR,
            "Fine" + ROW_SEPARATOR,
        ]
        assert [p.order for p in session.passages] == [0, 1]

    def test_tsv(self, tmp_path):
        path = tmp_path / "survey.tsv"
        path.write_text("a\tb\nc\td\n", encoding="utf-8")

        assert load_csv_rows(path) == [["a", "b"], ["c", "d"]]

    def test_column_names(self):
        rows = [["id", ""], ["1", "x", "extra"]]
        assert column_names(rows, has_header=True) == ["id", "Column 2", "Column 3"]
        assert column_names(rows, has_header=False) == ["Column 1", "Column 2", "Column 3"]

    def test_unsupported_format(self, tmp_path):
        path = tmp_path / "book.epub"
        path.write_bytes(b"")
        with pytest.raises(ValueError, match="Unsupported"):
            load_source(path)
