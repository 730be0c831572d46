"""Type descriptors mapping in-memory values to their on-disk representation."""
from __future__ import annotations

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Tuple

import h5py
import numpy as np

from .errors import TypeMismatchError

MAX_COMPRESSION: int = 9
"""Highest gzip compression level accepted for a dataset."""


class ElementKind(str, Enum):
    """Element type of the arrays stored in a dataset."""

    BOOL = "bool"
    INT8 = "int8"
    INT16 = "int16"
    INT32 = "int32"
    INT64 = "int64"
    UINT8 = "uint8"
    UINT16 = "uint16"
    UINT32 = "uint32"
    UINT64 = "uint64"
    FLOAT32 = "float32"
    FLOAT64 = "float64"
    COMPLEX64 = "complex64"
    COMPLEX128 = "complex128"
    STRING = "str"

    def __repr__(self) -> str:
        return f"{type(self).__name__}.{self.name}"

    def __str__(self) -> str:
        return self.value

    @property
    def dtype(self) -> np.dtype:
        """Return the numpy dtype used to store elements of this kind."""
        if self is ElementKind.STRING:
            return h5py.string_dtype(encoding="utf-8")
        return np.dtype(self.value)

    @classmethod
    def from_dtype(cls, dtype: Any) -> ElementKind:
        """Return the element kind for a numpy (or h5py) dtype."""
        dtype = np.dtype(dtype)
        if dtype.kind in "US" or h5py.check_string_dtype(dtype) is not None:
            return cls.STRING
        try:
            return cls(dtype.name)
        except ValueError:
            raise TypeMismatchError("", msg=f"Unsupported element type: {dtype}")


@dataclass(frozen=True)
class TypeDescriptor:
    """Element kind, per-slot shape and compression level of a dataset."""

    kind: ElementKind
    shape: Tuple[int, ...] = ()
    compression: int = field(default=0, compare=False)

    def __post_init__(self):
        # normalize, so that lists and numpy integers work as input
        object.__setattr__(self, "kind", ElementKind(self.kind))
        object.__setattr__(self, "shape", tuple(int(x) for x in self.shape))
        if any(x < 0 for x in self.shape):
            raise ValueError(f"Extents must be non-negative: {self.shape}")
        if not (0 <= self.compression <= MAX_COMPRESSION):
            msg = f"Compression level must be in [0, {MAX_COMPRESSION}]"
            raise ValueError(f"{msg}, got: {self.compression}")

    @classmethod
    def of(cls, value: Any, compression: int = 0) -> TypeDescriptor:
        """Infer the descriptor of a python scalar, string or array-like."""
        if isinstance(value, str):
            return cls(ElementKind.STRING, (), compression)
        arr = np.asarray(value)
        if arr.dtype.kind == "O" and all(isinstance(x, str) for x in arr.flat):
            # e.g. what is returned when reading string arrays
            return cls(ElementKind.STRING, arr.shape, compression)
        return cls(ElementKind.from_dtype(arr.dtype), arr.shape, compression)

    @property
    def rank(self) -> int:
        return len(self.shape)

    @property
    def size(self) -> int:
        """Number of elements in one array of this type."""
        return int(np.prod(self.shape, dtype=np.int64))

    @property
    def dtype(self) -> np.dtype:
        return self.kind.dtype

    def compatible(self, other: TypeDescriptor) -> bool:
        """Return whether data of both types can be exchanged.

        Element kind and all extents must match, compression is irrelevant.
        """
        return self.kind == other.kind and self.shape == other.shape

    def with_shape(self, shape: Tuple[int, ...]) -> TypeDescriptor:
        return replace(self, shape=tuple(shape))

    def __str__(self) -> str:
        if not self.shape:
            return str(self.kind)
        return f"{self.kind}[{','.join(map(str, self.shape))}]"


@dataclass(frozen=True)
class Descriptor:
    """One valid interpretation of the data stored in a dataset.

    A dataset can be read as `size` arrays of type `type`, and if `expandable`
    is set, new arrays of that type can be appended to it.
    """

    type: TypeDescriptor
    size: int
    expandable: bool = False

    def __str__(self) -> str:
        ext = ", expandable" if self.expandable else ""
        return f"{self.type} x {self.size}{ext}"
