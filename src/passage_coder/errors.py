"""Exception hierarchy for Passage Coder."""


class PassageCoderError(Exception):
    """Base class for all errors raised by this package."""


class StructuralError(PassageCoderError):
    """An operation would break passage coverage. Always surfaced to the caller."""


class OverlapError(StructuralError):
    """The requested span is not inside a single uncoded, unhighlighted passage."""


class EmptySpanError(StructuralError):
    """The requested span contains only whitespace."""


class UnknownPassageError(StructuralError):
    """No passage with the given id exists in the session."""


class UnknownCodeError(StructuralError):
    """No code with the given id exists in the session."""


class InvariantViolation(StructuralError):
    """The passage or code lists are in an inconsistent state."""


class ResponseFormatError(PassageCoderError):
    """An LLM response failed shape, substring or delimiter validation."""


class LLMError(PassageCoderError):
    """The LLM transport failed."""


class TransportConflictError(LLMError):
    """The backend rejected the call because another request is in progress."""


class LLMTransportError(LLMError):
    """Connection failure, timeout or unexpected status from the LLM backend."""
