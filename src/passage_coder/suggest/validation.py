"""Structural checks on LLM output.

Every check raises ResponseFormatError with a message naming the violated
rule; the message is fed back to the model when the request is retried.
"""

import json

from pydantic import BaseModel

from ..errors import ResponseFormatError
from ..llm import LLMClient
from ..models.code import LABEL_DELIMITER
from ..models.passage import ROW_SEPARATOR, trim_text


class HighlightResponse(BaseModel):
    """A validated highlight suggestion as returned by the model."""

    passage: str
    codes: list[str]

    @property
    def is_empty(self) -> bool:
        return not trim_text(self.passage)


def parse_highlight_response(raw: str, search_area: str, row_structured: bool) -> HighlightResponse:
    """Parse and validate a ``{"passage": ..., "codes": [...]}`` response.

    Raises:
        ResponseFormatError: The response breaks one of the structural rules
    """
    raw = raw.strip()
    try:
        # strict=False lets a raw row separator through inside strings
        data = json.loads(raw, strict=False)
    except json.JSONDecodeError:
        raise ResponseFormatError(
            f"Response could not be parsed as JSON. Received response: {raw[:500]}"
        ) from None

    if (
        not isinstance(data, dict)
        or set(data) != {"passage", "codes"}
        or not isinstance(data["passage"], str)
        or not isinstance(data["codes"], list)
        or any(not isinstance(code, str) for code in data["codes"])
    ):
        raise ResponseFormatError(
            'Response does not match the required format {"passage": string, "codes": string[]}. '
            f"Received response: {raw[:500]}"
        )

    passage: str = data["passage"]
    codes: list[str] = [code.strip() for code in data["codes"]]

    if passage not in search_area:
        raise ResponseFormatError("Suggested passage is not a substring of the search area.")

    if any(LABEL_DELIMITER in code for code in codes):
        raise ResponseFormatError(
            f"One or more suggested codes contain a semicolon '{LABEL_DELIMITER}', which is forbidden."
        )

    if trim_text(passage) and not codes:
        raise ResponseFormatError(
            "Non-empty suggested passage must have at least one suggested code. "
            "Never leave the codes array empty when the passage field is non-empty."
        )

    if row_structured:
        index = passage.find(ROW_SEPARATOR)
        if index != -1 and index != len(passage) - 1:
            raise ResponseFormatError("Suggested passage spans multiple rows.")
        if passage == ROW_SEPARATOR:
            raise ResponseFormatError("Empty content (only end-of-row marker).")

    return HighlightResponse(passage=passage, codes=codes)


def parse_code_list(raw: str) -> list[str]:
    """Parse a JSON array of code strings.

    Raises:
        ResponseFormatError: The response is not a JSON array of strings
    """
    data = LLMClient.extract_json(raw)
    if not isinstance(data, list) or any(not isinstance(item, str) for item in data):
        raise ResponseFormatError(f"Expected a JSON array of strings. Received response: {raw[:500]}")
    return [item.strip() for item in data if item.strip()]


def validate_autocomplete(raw: str) -> str:
    """Return the trimmed completion if it is a single non-empty label."""
    text = raw.strip()
    if not text or LABEL_DELIMITER in text:
        raise ResponseFormatError(f"Expected a single code without '{LABEL_DELIMITER}'. Received: {raw[:200]}")
    return text
