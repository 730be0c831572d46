"""
Stateful HDF5 file interface with a current working group.

`HDF5File` is what client code (e.g. machines saving their parameters) uses.
It wraps a `StorageRoot` and keeps a cursor into its node tree, so
that relative paths work like in a shell:

    with HDF5File("model.h5", "w") as f:
        f.set("gaussian/mean", np.zeros(3))
        f.cd("gaussian")
        f.read("mean")

Datasets hold either one array or an extensible list of arrays ("slots"),
see `create`, `write_buffer` and `extend_buffer`.
"""
from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Iterator, List, Optional, Union

import numpy as np

from .errors import AlreadyExistsError
from .node import Dataset, Group, Node
from .storage import AccessMode, StorageRoot
from .types import Descriptor, TypeDescriptor

logger = logging.getLogger(__name__)


class HDF5File:
    """An HDF5 file with a current working group that relative paths resolve against.

    Not safe for concurrent use, use one instance per thread.
    """

    def __init__(
        self, filename: Union[str, Path], mode: Union[AccessMode, str, int] = "r"
    ):
        """Open or create a file, see `AccessMode` for the supported modes."""
        self._storage = StorageRoot(filename, mode)
        self._cwd: Group = self._storage.root

    @property
    def filename(self) -> Path:
        return self._storage.filename

    @property
    def mode(self) -> AccessMode:
        return self._storage.mode

    def close(self) -> None:
        self._storage.close()

    def flush(self) -> None:
        self._storage.flush()

    def _cursor(self) -> Group:
        if self._storage.closed:
            raise ValueError(f"{self.filename}: file is not open!")
        return self._cwd

    # ---- navigation ----

    def cd(self, path: str) -> None:
        """Change the working group. On failure, it stays unchanged."""
        self._cwd = self._cursor().cd(path)

    def cwd(self) -> str:
        """Return the absolute path of the working group."""
        return self._cursor().path

    def has_group(self, path: str) -> bool:
        return self._cursor().has_group(path)

    def create_group(self, path: str) -> None:
        self._cursor().create_group(path)

    def exists(self, path: str) -> bool:
        """Return whether a dataset exists at the given path."""
        return self._cursor().has_dataset(path)

    contains = exists
    __contains__ = exists

    def walk(self) -> Iterator[Node]:
        """Iterate all groups and datasets below the working group."""
        return self._cursor().walk()

    def paths(self) -> List[str]:
        """Return sorted absolute paths of all datasets below the working group."""
        return sorted(n.path for n in self.walk() if isinstance(n, Dataset))

    # ---- dataset management ----

    def _dataset(self, path: str) -> Dataset:
        return self._cursor()[path]

    def create(
        self,
        path: str,
        type_: TypeDescriptor,
        as_list: bool = False,
        compression: int = 0,
    ) -> None:
        """Create a dataset, or redefine the type of an existing one.

        Redefinition keeps what fits into the new extents and applies the
        compression level (see `Dataset.resize`).
        """
        if compression:
            type_ = TypeDescriptor(type_.kind, type_.shape, compression)
        if not self.exists(path):
            self._cursor().create_dataset(path, type_, as_list, compression)
        else:
            self._dataset(path).resize(type_)

    def describe(self, path: str) -> List[Descriptor]:
        """Return the valid interpretations of the dataset (primary first)."""
        return self._dataset(path).describe()

    def size(self, path: str) -> int:
        """Return the number of slots of the dataset in its primary interpretation."""
        return self.describe(path)[0].size

    def unlink(self, path: str) -> None:
        """Delete a dataset."""
        self._cursor().remove_dataset(path)

    def rename(self, src: str, dst: str) -> None:
        """Move a dataset. The node tree is rebuilt, the working group is kept."""
        current = self._cursor().path
        self._cwd.rename_dataset(src, dst)
        self._cwd = self._storage.rescan().cd(current)

    def copy(self, other: HDF5File) -> None:
        """Copy all top-level groups and datasets of another file into the working group.

        If any name is already taken, nothing is copied.
        """
        src_root = other._storage.root
        groups, datasets = src_root.groups(), src_root.datasets()
        cwd = self._cursor()
        taken = sorted(n for n in [*groups, *datasets] if cwd._has_child(n))
        if taken:
            msg = f"Cannot copy {other.filename} into '{cwd.path}', names taken: {taken}"
            raise AlreadyExistsError(cwd.path, msg)

        logger.debug("Copying %s into %s:%s", other.filename, self.filename, cwd.path)
        for name in sorted(groups):
            cwd.copy_group(groups[name], name)
        for name in sorted(datasets):
            cwd.copy_dataset(datasets[name], name)

    # ---- data access ----

    def read(
        self, path: str, pos: int = 0, expected: Optional[TypeDescriptor] = None
    ) -> Any:
        """Read one slot of a dataset (the only one, if it is not a list)."""
        return self._dataset(path).read(pos, expected)

    read_array = read

    def read_buffer(self, path: str, pos: int, out: np.ndarray) -> np.ndarray:
        """Read a slot into a preallocated array of matching type and shape."""
        return self._dataset(path).read_buffer(pos, out)

    def write_buffer(self, path: str, pos: int, data: Any) -> None:
        self._dataset(path).write_buffer(pos, data)

    def extend_buffer(self, path: str, data: Any) -> None:
        self._dataset(path).extend_buffer(data)

    def set(self, path: str, value: Any, compression: int = 0) -> None:
        """Store a single value or array, replacing what was stored before."""
        type_ = TypeDescriptor.of(value, compression)
        if self.exists(path) and self._dataset(path).is_list:
            self.unlink(path)
        self.create(path, type_, False, compression)
        self.write_buffer(path, 0, value)

    set_array = set

    def append(self, path: str, value: Any, compression: int = 0) -> None:
        """Append a value to a list dataset (which is created if needed)."""
        if not self.exists(path):
            type_ = TypeDescriptor.of(value, compression)
            self.create(path, type_, True, compression)
        self.extend_buffer(path, value)

    def __repr__(self) -> str:
        return f"<HDF5File {self._storage.filename} (cwd '{self._cwd.path}')>"

    # ---- context manager support (i.e. to use `with`) ----

    def __enter__(self):
        return self

    def __exit__(self, ex_type, ex_value, ex_traceback):
        self.close()
