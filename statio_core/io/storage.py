"""Ownership of one physical HDF5 file and the node tree describing it."""
from __future__ import annotations

import logging
from enum import Enum
from pathlib import Path
from typing import Any, Union

import h5py

from .errors import HDF5IOError, InvalidAccessModeError
from .node import Group

logger = logging.getLogger(__name__)


class AccessMode(str, Enum):
    """Modes a file can be opened with (same letters as for h5py.File)."""

    READ_ONLY = "r"  # fail if missing, no changes allowed
    READ_WRITE = "r+"  # fail if missing
    TRUNCATE = "w"  # create, destroying existing content
    EXCLUSIVE = "x"  # create, fail if it exists

    def __repr__(self) -> str:
        return f"{type(self).__name__}.{self.name}"

    @classmethod
    def parse(cls, mode: Any) -> AccessMode:
        """Return the access mode for a mode value.

        Besides the enum values, accepts `"w-"` (like h5py) and the
        numeric mode codes of the old file API (0, 1, 2 and 4).
        """
        if isinstance(mode, cls):
            return mode
        if isinstance(mode, int) and not isinstance(mode, bool):
            if mode in _MODE_CODES:
                return _MODE_CODES[mode]
            raise InvalidAccessModeError(mode)
        if mode == "w-":
            return cls.EXCLUSIVE
        try:
            return cls(mode)
        except (ValueError, TypeError):
            raise InvalidAccessModeError(mode)


_MODE_CODES = {
    0: AccessMode.READ_ONLY,
    1: AccessMode.READ_WRITE,
    2: AccessMode.TRUNCATE,
    4: AccessMode.EXCLUSIVE,
}


class StorageRoot:
    """An open HDF5 file together with the cached tree of its groups and datasets.

    The access mode is fixed until the file is closed.
    Opening in truncate mode immediately destroys any previous content.
    """

    def __init__(
        self, filename: Union[str, Path], mode: Union[AccessMode, str, int] = "r"
    ):
        self._mode = AccessMode.parse(mode)
        self._filename = Path(filename)
        try:
            self._file = h5py.File(self._filename, self._mode.value)
        except OSError as e:
            msg = f"cannot open file (mode '{self._mode.value}'): {e}"
            raise HDF5IOError(str(filename), msg) from e
        try:
            self._root = Group(None, "", self._file["/"])
        except BaseException:
            self._file.close()
            raise
        logger.debug("Opened %s (mode '%s')", self._filename, self._mode.value)

    @property
    def filename(self) -> Path:
        return self._filename

    @property
    def mode(self) -> AccessMode:
        return self._mode

    @property
    def writable(self) -> bool:
        return self._mode != AccessMode.READ_ONLY

    @property
    def closed(self) -> bool:
        return not bool(self._file)

    def _expect_open(self):
        if self.closed:
            raise ValueError(f"{self._filename}: file is not open!")

    @property
    def root(self) -> Group:
        """Root group of the cached node tree."""
        self._expect_open()
        return self._root

    def rescan(self) -> Group:
        """Drop the node tree and rebuild it from the file.

        All nodes obtained before are stale afterwards.
        """
        self._expect_open()
        logger.debug("Rescanning %s", self._filename)
        self._root = Group(None, "", self._file["/"])
        return self._root

    def flush(self) -> None:
        self._expect_open()
        self._file.flush()

    def close(self) -> None:
        """Flush and close the file. Closing a closed file does nothing."""
        if self.closed:
            return
        if self.writable:
            self._file.flush()
        self._file.close()
        logger.debug("Closed %s", self._filename)

    def __repr__(self) -> str:
        state = "closed" if self.closed else f"mode {self._mode.value}"
        return f"<StorageRoot ({state}) {self._filename}>"

    # ---- context manager support (i.e. to use `with`) ----

    def __enter__(self):
        return self

    def __exit__(self, ex_type, ex_value, ex_traceback):
        self.close()
