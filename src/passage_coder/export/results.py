"""Export coded passages and the codebook as CSV files."""

import csv
import logging
from pathlib import Path
from typing import Mapping, Optional

from ..config import Settings, get_settings
from ..context.builder import surrounding_context
from ..models.passage import ROW_SEPARATOR
from ..session import CodingSession

logger = logging.getLogger(__name__)

CODED_PASSAGES_HEADER = ("Context", "Passage", "Codes")
CODEBOOK_HEADER = ("Code", "Count")
CODES_JOINER = "; "


def coded_passages_rows(
    session: CodingSession,
    settings: Optional[Settings] = None,
) -> list[tuple[str, str, str]]:
    """One ``(context, passage, codes)`` row per passage that has codes.

    The context uses the few-shot example window sizes. Row separators are
    removed from the context and passage columns; repeated labels on a
    passage are listed once.
    """
    settings = settings or get_settings()
    passages = session.passages
    rows = []

    for passage in passages:
        if not passage.code_ids:
            continue
        context = surrounding_context(
            passage,
            passages,
            settings.examples_preceding_words,
            settings.examples_trailing_words,
            session.row_structured,
            settings.cut_window_size,
        )
        text = f"{context.preceding}{context.passage_text}{context.trailing}"
        labels = list(dict.fromkeys(session.codes_for(passage.id)))
        rows.append(
            (
                text.replace(ROW_SEPARATOR, ""),
                passage.text.replace(ROW_SEPARATOR, ""),
                CODES_JOINER.join(labels),
            )
        )
    return rows


def codebook_counts(*sessions: CodingSession) -> list[tuple[str, int]]:
    """Codebook labels with how many codes use each, most used first.

    Labels used equally often are sorted alphabetically. Several sessions
    (one per column of a table) are counted together.
    """
    counts: dict[str, int] = {}
    for session in sessions:
        for label in session.codebook:
            counts.setdefault(label.strip(), 0)
        for code in session.codes:
            if not code.is_blank and code.code.strip() in counts:
                counts[code.code.strip()] += 1
    return sorted(counts.items(), key=lambda item: (-item[1], item[0].casefold(), item[0]))


def write_coded_passages(session: CodingSession, path: Path, settings: Optional[Settings] = None) -> int:
    """Write the coded passages of a session. Returns the number of rows."""
    rows = coded_passages_rows(session, settings)
    with open(path, "w", encoding="utf-8", newline="") as f:
        writer = csv.writer(f, quoting=csv.QUOTE_ALL)
        writer.writerow(CODED_PASSAGES_HEADER)
        writer.writerows(rows)
    return len(rows)


def write_codebook(path: Path, *sessions: CodingSession) -> int:
    """Write the codebook with per-label counts. Returns the number of labels."""
    counts = codebook_counts(*sessions)
    with open(path, "w", encoding="utf-8", newline="") as f:
        writer = csv.writer(f)
        writer.writerow(CODEBOOK_HEADER)
        writer.writerows(counts)
    return len(counts)


def write_results(
    sessions: Mapping[int, CodingSession],
    directory: Path,
    settings: Optional[Settings] = None,
) -> list[Path]:
    """Write ``coded_passages*.csv`` per column plus ``codebook.csv``.

    Columns without any coded passage get no file. With more than one
    column the passage files are suffixed with ``_column_N``.

    Returns:
        Paths of the files written
    """
    directory.mkdir(parents=True, exist_ok=True)
    written = []

    for column, session in sessions.items():
        if not any(p.code_ids for p in session.passages):
            logger.debug("Column %d has no coded passages, skipping", column)
            continue
        suffix = f"_column_{column}" if len(sessions) > 1 else ""
        path = directory / f"coded_passages{suffix}.csv"
        count = write_coded_passages(session, path, settings)
        logger.info("Wrote %d coded passages to %s", count, path)
        written.append(path)

    path = directory / "codebook.csv"
    count = write_codebook(path, *sessions.values())
    logger.info("Wrote %d codebook entries to %s", count, path)
    written.append(path)
    return written
