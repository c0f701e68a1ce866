from __future__ import annotations


class TempokitError(Exception):
    """Base error for the toolkit."""


class InvalidArgumentError(TempokitError, ValueError):
    """Raised when a caller passes an argument the operation cannot use."""


class InvalidWeightsError(InvalidArgumentError):
    """Raised when weights cannot describe a probability distribution."""


class OperationTimeoutError(TempokitError, TimeoutError):
    """Raised when a single retry attempt exceeds its time budget."""


class OperationCancelledError(TempokitError):
    """Raised when the caller aborts a retry sequence."""
