"""Exception hierarchy shared by the storage engine."""


class MiddbError(Exception):
    """Base class for all errors raised by the engine."""


class CorruptionError(MiddbError):
    """Stored or transmitted data failed validation."""


class InvalidArgumentError(MiddbError, ValueError):
    """An argument was outside the range the operation accepts."""