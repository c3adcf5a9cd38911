"""Result export."""

from passage_coder.export.results import (
    codebook_counts,
    coded_passages_rows,
    write_codebook,
    write_coded_passages,
    write_results,
)

__all__ = [
    "codebook_counts",
    "coded_passages_rows",
    "write_codebook",
    "write_coded_passages",
    "write_results",
]
