"""Source document loading."""

from passage_coder.ingest.loader import column_names, load_csv_rows, load_source, load_text

__all__ = ["column_names", "load_csv_rows", "load_source", "load_text"]
