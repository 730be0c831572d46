"""Exceptions raised by the HDF5 persistence layer.

Every error derives from `HDF5Error` and from the builtin exception
that fits its meaning best, so callers can catch either.
"""
from typing import Any, Optional


class HDF5Error(Exception):
    """Base class of all errors raised by `statio_core.io`."""


class InvalidAccessModeError(HDF5Error, ValueError):
    """Unrecognized file access mode."""

    def __init__(self, mode: Any):
        self.mode = mode
        super().__init__(f"Invalid file access mode: {mode!r}")


class PathNotFoundError(HDF5Error, KeyError):
    """Path does not resolve to an existing group or dataset."""

    def __init__(self, path: str, msg: Optional[str] = None):
        self.path = path
        super().__init__(msg or f"Path not found: '{path}'")

    def __str__(self):
        # KeyError would quote the message otherwise
        return str(self.args[0])


class AlreadyExistsError(HDF5Error, ValueError):
    """Target name is already taken (by a group or dataset)."""

    def __init__(self, path: str, msg: Optional[str] = None):
        self.path = path
        super().__init__(msg or f"Object already exists: '{path}'")


class TypeMismatchError(HDF5Error, TypeError):
    """Requested type disagrees with what the dataset stores."""

    def __init__(self, path: str, expected: Any = None, actual: Any = None, msg=None):
        self.path = path
        self.expected = expected
        self.actual = actual
        if msg is None:
            msg = f"{path}: type {actual} does not match any of {expected}"
        super().__init__(msg)


class NotExpandableError(TypeMismatchError):
    """Attempt to append to a dataset that was not created as a list."""

    def __init__(self, path: str):
        super().__init__(path, msg=f"{path}: dataset is not expandable (not a list)")


class IndexOutOfRangeError(HDF5Error, IndexError):
    """Slot index outside of the valid range of a dataset."""

    def __init__(self, path: str, index: int, size: int):
        self.path = path
        self.index = index
        self.size = size
        super().__init__(f"{path}: slot index {index} out of range [0, {size})")


class ReadOnlyError(HDF5Error, ValueError):
    """Mutation attempted on a file opened as read-only."""

    def __init__(self, filename: str):
        self.filename = filename
        super().__init__(f"{filename}: the file is opened as read-only!")


class HDF5IOError(HDF5Error, OSError):
    """Failure of the underlying storage (the cause is chained)."""

    def __init__(self, filename: str, msg: str):
        self.filename = filename
        super().__init__(f"{filename}: {msg}")
