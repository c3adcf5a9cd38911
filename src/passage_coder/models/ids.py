"""Session-owned id allocation."""

from dataclasses import dataclass


@dataclass
class IdAllocator:
    """Hands out passage and code ids from two independent counters.

    Ids are never reused, even after the passage or code they named is gone.
    """

    next_passage_number: int = 0
    next_code_number: int = 0

    def passage_id(self) -> str:
        passage_id = f"passage-{self.next_passage_number}"
        self.next_passage_number += 1
        return passage_id

    def code_id(self) -> str:
        code_id = f"code-{self.next_code_number}"
        self.next_code_number += 1
        return code_id
