"""Exceptions raised by the storage engine."""


class StorageError(Exception):
    """Base class for every storage error."""

    message = "storage error"

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message if message is not None else self.message)


class KeyNotFoundError(StorageError):
    message = "key not found"


class InvalidOperationError(StorageError):
    message = "invalid operation"


class WrongTypeError(StorageError):
    message = "WRONGTYPE Operation against a key holding the wrong kind of value"


class NoSuchKeyError(StorageError):
    message = "ERR no such key"


class IndexOutOfRangeError(StorageError):
    message = "ERR index out of range"


class WrongNumArgsError(StorageError):
    message = "ERR wrong number of arguments for 'hset' command"


class HashValueNotIntegerError(StorageError):
    message = "ERR hash value is not an integer"


class HashValueNotFloatError(StorageError):
    message = "ERR hash value is not a float"


class NotIntegerError(StorageError):
    message = "value is not an integer or out of range"


class PrecisionMismatchError(StorageError):
    message = "HyperLogLog precision mismatch"


class InvalidRegisterCountError(StorageError):
    message = "invalid register count"