"""Inline completion of the label being typed into a code field."""

from typing import Iterable, Optional, Sequence

from ..models.code import LABEL_DELIMITER


def after_last_delimiter(value: str) -> str:
    return value[value.rfind(LABEL_DELIMITER) + 1:]


def existing_labels(value: str, entered_codes: Iterable[str]) -> list[str]:
    """Labels already on the passage plus those typed before the last delimiter."""
    cut = value.rfind(LABEL_DELIMITER)
    typed = [] if cut == -1 else [c.strip() for c in value[:cut].split(LABEL_DELIMITER)]
    return list(dict.fromkeys([*entered_codes, *(c for c in typed if c)]))


def completion_for(
    value: str,
    code_suggestions: Sequence[str],
    autocomplete_suggestion: Optional[str],
    codebook: Iterable[str],
    existing_codes: Sequence[str],
    suggestions_enabled: bool = True,
) -> str:
    """Return the text that would complete ``value``, or "" if nothing matches.

    With nothing typed after the last delimiter, the first code suggestion
    not yet used is offered whole. Otherwise the label being typed is
    prefix-matched (case-insensitively) against the autocomplete suggestion
    and code suggestions, then the codebook, and the untyped remainder is
    returned.
    """
    typed = after_last_delimiter(value)
    prefix = typed.lstrip()

    if not typed.strip():
        if not suggestions_enabled:
            return ""
        for suggestion in code_suggestions:
            if (
                suggestion not in value
                and suggestion not in existing_codes
                and not any(suggestion.startswith(code) for code in existing_codes)
            ):
                return suggestion
        return ""

    lowered = prefix.lower()
    match = next(
        (
            code
            for code in codebook
            if code.lower().startswith(lowered) and code.strip() not in value.strip()
        ),
        None,
    )
    if suggestions_enabled:
        candidates = list(
            dict.fromkeys(
                ([autocomplete_suggestion] if autocomplete_suggestion and autocomplete_suggestion.strip() else [])
                + list(code_suggestions)
            )
        )
        suggestion_match = next(
            (
                s
                for s in candidates
                if s.lower().startswith(lowered) and s.lower().strip() not in value.lower()
            ),
            None,
        )
        if suggestion_match:
            match = suggestion_match

    if not match:
        return ""
    remainder = match[len(prefix):]
    return remainder.strip() if value.endswith(" ") else remainder
