class NetworkError(Exception):
    """Base class for every error raised by feedforward_nn."""


class DimensionMismatchError(NetworkError, ValueError):
    pass


class InvalidConstructionError(NetworkError, ValueError):
    pass


class ParameterRangeError(NetworkError, ValueError):
    pass


class IndexRangeError(NetworkError, IndexError):
    pass


class IdxFormatError(NetworkError, ValueError):
    """Raised when an IDX file has the wrong magic number or is truncated."""
