"""Load source documents into coding sessions."""

import csv
import io
import logging
from pathlib import Path
from typing import Optional

from ..session import CodingSession

logger = logging.getLogger(__name__)

ENCODINGS = ["utf-8", "utf-8-sig", "latin-1", "cp1252"]
TABULAR_SUFFIXES = {".csv", ".tsv"}


def load_source(path: Path, column: Optional[int] = None, has_header: bool = False) -> CodingSession:
    """
    Load a document and return a session ready for coding.

    Supports:
    - .txt and .md files (one passage with the whole text)
    - .csv and .tsv files (one passage per non-empty cell of ``column``)
    """
    suffix = path.suffix.lower()

    if suffix in {".txt", ".md"}:
        return CodingSession.from_text(load_text(path))
    elif suffix in TABULAR_SUFFIXES:
        rows = load_csv_rows(path)
        session = CodingSession.from_rows(rows, column=column or 0, has_header=has_header)
        logger.info("Loaded %d passages from column %d of %s", len(session.passages), column or 0, path)
        return session
    else:
        raise ValueError(f"Unsupported file format: {suffix}")


def load_text(path: Path) -> str:
    """Load a plain text file."""
    # Try common encodings
    for encoding in ENCODINGS:
        try:
            return path.read_text(encoding=encoding)
        except UnicodeDecodeError:
            continue

    raise ValueError(f"Could not decode {path} with any common encoding")


def load_csv_rows(path: Path) -> list[list[str]]:
    """Load a delimited file as a list of rows."""
    text = load_text(path)
    delimiter = "\t" if path.suffix.lower() == ".tsv" else ","
    return [row for row in csv.reader(io.StringIO(text), delimiter=delimiter)]


def column_names(rows: list[list[str]], has_header: bool) -> list[str]:
    """Header names, or ``Column N`` labels when the file has no header."""
    width = max((len(row) for row in rows), default=0)
    if has_header and rows:
        header = rows[0]
        return [header[i] if i < len(header) and header[i].strip() else f"Column {i + 1}" for i in range(width)]
    return [f"Column {i + 1}" for i in range(width)]
