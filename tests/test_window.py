"""Tests for boundary-aware text windows."""

from passage_coder.context.window import (
    count_words,
    first_n_words,
    last_n_words,
    string_head,
    string_tail,
)


class TestWordCounting:
    """Test word counting and word-based slicing."""

    def test_counts_runs_of_non_whitespace(self):
        assert count_words("  a b\tc\n") == 3
        assert count_words("") == 0
        assert count_words("one,two three.") == 2

    def test_first_and_last_words(self):
        text = "one two  three four"
        assert first_n_words(text, 2) == "one two"
        assert last_n_words(text, 2) == "three four"
        assert first_n_words(text, 10) == text
        assert last_n_words(text, 10) == text


class TestStringTail:
    """Test windows taken from the end of a text."""

    def test_short_text_unchanged(self):
        assert string_tail("one two three", 5) == "one two three"
        assert string_tail("one two three", 3) == "one two three"

    def test_start_of_text_inside_window(self):
        text = "First sentence here. Second one is longer and keeps going."
        assert string_tail(text, 3) == text

    def test_cuts_at_line_break(self):
        text = "x " * 150 + "\nAlpha beta gamma delta."
        assert string_tail(text, 2) == "Alpha beta gamma delta."

    def test_cuts_after_sentence_end(self):
        text = "x " * 150 + "End here. Next part of text"
        assert string_tail(text, 3) == " Next part of text"

    def test_cuts_after_ellipsis(self):
        text = "x " * 150 + "and then... part of text"
        assert string_tail(text, 3) == " part of text"

    def test_truncation_marker_without_boundary(self):
        text = "word " * 100 + "last"
        assert string_tail(text, 1) == "...last"

    def test_keeps_minimum_words(self):
        text = "word " * 100 + "last"
        for n in (1, 5, 20):
            assert count_words(string_tail(text, n)) >= n


class TestStringHead:
    """Test windows taken from the start of a text."""

    def test_short_text_unchanged(self):
        assert string_head("one two", 2) == "one two"

    def test_end_of_text_inside_window(self):
        text = "Alpha beta. gamma delta"
        assert string_head(text, 1) == text

    def test_cuts_after_line_break(self):
        text = "Alpha beta.\n" + "y " * 150
        assert string_head(text, 1) == "Alpha beta.\n"

    def test_cuts_after_sentence_end(self):
        text = "Alpha beta. gamma " + "y " * 150
        assert string_head(text, 1) == "Alpha beta."

    def test_earliest_sentence_end_wins(self):
        text = "Alpha beta? gamma. delta " + "y " * 150
        assert string_head(text, 1) == "Alpha beta?"

    def test_truncation_marker_without_boundary(self):
        text = "y " * 150
        assert string_head(text, 1) == "y..."

    def test_custom_window_size(self):
        text = "Alpha beta gamma. delta " + "y " * 10
        assert string_head(text, 1, cut_window_size=5) == "Alpha..."
