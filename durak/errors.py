"""
Exception types for the Durak engine.

Rule violations during play are never raised: moves report failure by
returning the unchanged state (or ``False`` from a session). Exceptions are
reserved for malformed input at the boundary and for programming errors.
"""


class DurakError(Exception):
    """Base class for all engine errors."""


class MalformedCardError(DurakError, ValueError):
    """Raised when a card code such as ``"10d"`` cannot be decoded."""

    def __init__(self, code):
        super().__init__(f"Malformed card code: {code!r}")
        self.code = code


class InvariantViolation(DurakError, AssertionError):
    """
    Raised when a committed match state breaks card conservation or
    contains a duplicated card. This indicates a bug, not a bad move.
    """


class MatchIdExhausted(DurakError, RuntimeError):
    """Raised when no free match id could be generated."""
