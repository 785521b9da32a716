"""
Exception taxonomy for the text-regression core.

Configuration errors are raised before any work starts. Per-fold runtime
failures are caught by the evaluator and only surface as
``AllFoldsFailedError`` when nothing could be scored.
"""


class TextRegError(Exception):
    """Base class for all errors raised by textreg."""


class EmptyInputError(TextRegError):
    """A vocabulary or hashed matrix was requested from zero documents."""


class InvalidConfigurationError(TextRegError, ValueError):
    """Bad bucket count, fold count, metric set or grid."""


class DivideByZeroError(TextRegError, ZeroDivisionError):
    """MAPE was asked to divide by a true value of exactly zero."""


class AllFoldsFailedError(TextRegError):
    """Every fold of an evaluation failed, so nothing can be aggregated."""

    def __init__(self, message: str, failures=None):
        super().__init__(message)
        self.failures = dict(failures or {})
