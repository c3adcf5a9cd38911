"""Code (label) models and the derived codebook."""

from typing import Iterable

from pydantic import BaseModel

# Separates multiple labels typed into one code field.
LABEL_DELIMITER = ";"


class Code(BaseModel):
    """One label attached to exactly one passage."""

    id: str
    passage_id: str
    code: str = ""

    @property
    def is_blank(self) -> bool:
        return not self.code.strip()


class Codebook:
    """Distinct non-empty labels currently in use, in first-use order."""

    def __init__(self, labels: Iterable[str] = ()):
        self._labels: list[str] = []
        for label in labels:
            if label.strip() and label not in self._labels:
                self._labels.append(label)

    @classmethod
    def rebuild(cls, codes: Iterable[Code]) -> "Codebook":
        return cls(c.code for c in codes)

    def __contains__(self, label: object) -> bool:
        return label in self._labels

    def __iter__(self):
        return iter(self._labels)

    def __len__(self) -> int:
        return len(self._labels)

    def __repr__(self) -> str:
        return f"Codebook({self._labels!r})"

    @property
    def labels(self) -> list[str]:
        return list(self._labels)
