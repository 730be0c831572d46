"""HDF5 persistence layer: typed, shaped and extensible array storage."""
from .errors import (
    AlreadyExistsError,
    HDF5Error,
    HDF5IOError,
    IndexOutOfRangeError,
    InvalidAccessModeError,
    NotExpandableError,
    PathNotFoundError,
    ReadOnlyError,
    TypeMismatchError,
)
from .hdf5file import HDF5File
from .node import Dataset, Group
from .storage import AccessMode, StorageRoot
from .types import Descriptor, ElementKind, TypeDescriptor

__all__ = [
    "AccessMode",
    "AlreadyExistsError",
    "Dataset",
    "Descriptor",
    "ElementKind",
    "Group",
    "HDF5Error",
    "HDF5File",
    "HDF5IOError",
    "IndexOutOfRangeError",
    "InvalidAccessModeError",
    "NotExpandableError",
    "PathNotFoundError",
    "ReadOnlyError",
    "StorageRoot",
    "TypeDescriptor",
    "TypeMismatchError",
]
