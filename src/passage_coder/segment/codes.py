"""Edit and delete codes on highlighted passages.

Creating the first code of a passage is the segmenter's job; this module
handles everything after that, including merging a passage back into its
unhighlighted neighbours when its last code is deleted.
"""

import logging
from typing import Optional

from ..errors import InvariantViolation
from ..models.code import LABEL_DELIMITER, Code
from ..models.passage import HighlightedPassage, UnhighlightedPassage
from ..session import CodingSession

logger = logging.getLogger(__name__)


def split_labels(raw: str) -> list[str]:
    """Split delimiter-separated input into trimmed, non-empty labels."""
    return [label.strip() for label in raw.split(LABEL_DELIMITER) if label.strip()]


class CodeManager:
    """Updates, renames and deletes codes of a session."""

    def __init__(self, session: CodingSession):
        self.session = session

    def update_code(self, code_id: str, raw_value: str) -> Optional[str]:
        """Commit the text typed into a code field.

        The first label replaces the code's value; any further labels become
        new codes on the same passage. Clearing the field deletes the code.

        Args:
            code_id: The code being edited
            raw_value: Field contents, possibly several labels

        Returns:
            Id of the affected passage, or None if nothing changed
        """
        session = self.session
        code = session.get_code(code_id)
        labels = split_labels(raw_value)

        if len(labels) == 1 and labels[0] == code.code:
            return None
        if not labels:
            return self.delete_code(code_id)

        passage = session.get_passage(code.passage_id)
        if not isinstance(passage, HighlightedPassage):
            raise InvariantViolation(f"{code.id} belongs to unhighlighted {passage.id}")

        new_codes = [
            Code(id=session.ids.code_id(), passage_id=passage.id, code=label)
            for label in labels[1:]
        ]
        updated = [
            c.model_copy(update={"code": labels[0]}) if c.id == code_id else c
            for c in session.codes
        ]
        session.set_codes(updated + new_codes)
        session.update_passage(
            passage.with_code_ids(passage.code_ids + tuple(c.id for c in new_codes))
        )
        session.active_code_id = None

        logger.info("Updated %s on %s with %d label(s)", code_id, passage.id, len(labels))
        return passage.id

    def delete_code(self, code_id: str) -> Optional[str]:
        """Delete a code, demoting and merging its passage if it was the last one.

        A passage left without codes becomes unhighlighted and absorbs each
        neighbour that is unhighlighted and on the same row. When anything is
        absorbed the result is a new passage with a fresh id.

        Returns:
            Id of the passage left behind (the merged one after a merge),
            or None if the code did not exist
        """
        session = self.session
        code = session.find_code(code_id)
        if code is None:
            return None

        passage = session.find_passage(code.passage_id)
        remaining_codes = [c for c in session.codes if c.id != code_id]
        session.active_code_id = None

        if not isinstance(passage, HighlightedPassage) or code_id not in passage.code_ids:
            session.set_codes(remaining_codes)
            return None

        remaining_ids = tuple(cid for cid in passage.code_ids if cid != code_id)
        if remaining_ids:
            session.update_passage(passage.with_code_ids(remaining_ids))
            session.set_codes(remaining_codes)
            return passage.id

        demoted = passage.demote()
        previous = session.passage_at(passage.order - 1)
        following = session.passage_at(passage.order + 1)

        # A row separator at the end of a passage closes its row
        merge_previous = isinstance(previous, UnhighlightedPassage) and not previous.ends_row()
        merge_following = isinstance(following, UnhighlightedPassage) and not passage.ends_row()

        if not merge_previous and not merge_following:
            session.update_passage(demoted)
            session.set_codes(remaining_codes)
            logger.info("Demoted %s, no neighbour to merge with", passage.id)
            return passage.id

        absorbed = {passage.id}
        text = demoted.text
        order = passage.order
        if merge_previous:
            text = previous.text + text
            order = previous.order
            absorbed.add(previous.id)
        if merge_following:
            text = text + following.text
            absorbed.add(following.id)

        merged = UnhighlightedPassage(id=session.ids.passage_id(), order=order, text=text)
        session.replace_passages(
            [p for p in session.passages if p.id not in absorbed] + [merged]
        )
        session.set_codes(remaining_codes)

        logger.info("Merged %s into %s", sorted(absorbed), merged.id)
        return merged.id

    def edit_all_instances(self, old_value: str, new_value: str) -> int:
        """Rename every code labelled ``old_value``. Returns the number renamed."""
        new_value = new_value.strip()
        renamed = 0
        codes = []
        for code in self.session.codes:
            if code.code == old_value:
                code = code.model_copy(update={"code": new_value})
                renamed += 1
            codes.append(code)
        self.session.set_codes(codes)
        return renamed
