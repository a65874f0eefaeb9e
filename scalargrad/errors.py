"""
Exceptions raised by scalargrad.

Every failure is raised at the call that caused it, while the graph is being
built or checked. Each class also derives from the closest builtin so callers
can catch it either way.
"""


class ScalarGradError(Exception):
    """Base class for all scalargrad errors."""


class ShapeMismatch(ScalarGradError, ValueError):
    """An input sequence or layer width disagrees with the expected width."""


class UnsupportedExponentType(ScalarGradError, TypeError):
    """Power was called with an exponent that is not a real constant."""


class DivisionByZero(ScalarGradError, ZeroDivisionError):
    """A divisor (or a zero base raised to a negative power) was zero."""


class GraphCycleError(ScalarGradError, ValueError):
    """A value was reached again while still on the current traversal path."""
