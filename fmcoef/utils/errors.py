# fmcoef/utils/errors.py


class CoefficientsError(RuntimeError):
    """
    Base class for every error raised by the coefficient engine.
    """


class ShapeMismatchError(CoefficientsError, ValueError):
    """
    Operand of an in-place arithmetic op does not match self's shapes
    (or is not the same coefficient kind). Caller bug, never retried.
    """


class MalformedPersistedError(CoefficientsError):
    """
    Persisted coefficients cannot be decoded: a metadata field is missing or
    ill-typed, or a payload length disagrees with the declared shape.
    No partial load is ever returned.
    """


class StorageIOError(CoefficientsError, OSError):
    """
    Underlying storage read/write failed. Still an OSError, so callers that
    already catch I/O errors see it unchanged. Retryable by the caller.
    """
