"""In-memory node tree mirroring the groups and datasets of an open HDF5 file.

The tree is a cache: it is built by scanning the file and kept up to date
by the mutating operations of the nodes, except for `Group.rename_dataset`,
after which the owner of the tree must rebuild it (see `StorageRoot.rescan`).
"""
from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Any, Dict, Iterator, List, Optional, Set, Tuple, Union

import h5py
import numpy as np

from . import utils
from .errors import (
    AlreadyExistsError,
    HDF5Error,
    HDF5IOError,
    IndexOutOfRangeError,
    NotExpandableError,
    PathNotFoundError,
    ReadOnlyError,
    TypeMismatchError,
)
from .types import Descriptor, ElementKind, TypeDescriptor

logger = logging.getLogger(__name__)

LIST_ATTR = "statio_list"
"""Dataset attribute marking an extensible list of arrays."""


def _new_h5_dataset(
    group: h5py.Group,
    name: str,
    type_: TypeDescriptor,
    as_list: bool,
    slots: int = 0,
) -> h5py.Dataset:
    """Create an empty (zero-filled) dataset in the file for the given type.

    A list dataset gets a leading slot axis. All axes are unlimited, so that
    the extents can be redefined later (scalars cannot be resized).
    """
    if as_list:
        shape: Tuple[int, ...] = (slots,) + type_.shape
        maxshape: Tuple[Optional[int], ...] = (None,) * (type_.rank + 1)
    else:
        shape = type_.shape
        maxshape = (None,) * type_.rank

    kwargs: Dict[str, Any] = {}
    if shape:  # scalar dataspaces cannot be chunked
        kwargs.update(chunks=True, maxshape=maxshape)
        if type_.compression:
            kwargs.update(compression="gzip", compression_opts=type_.compression)

    ds = group.create_dataset(name, shape=shape, dtype=type_.dtype, **kwargs)
    if as_list:
        ds.attrs[LIST_ATTR] = True
    return ds


def _to_storage(data: Any, type_: TypeDescriptor) -> Any:
    """Convert a value into something h5py can write for the given type."""
    if type_.kind == ElementKind.STRING:
        if type_.rank == 0:
            return data if isinstance(data, str) else np.asarray(data).item()
        return np.asarray(data, dtype=object)
    return np.asarray(data, dtype=type_.dtype)


class Node:
    """Common functionality of groups and datasets."""

    _h5: Union[h5py.Group, h5py.Dataset]

    def __init__(self, parent: Optional[Group], name: str):
        self._parent = parent
        self._name = name

    @property
    def name(self) -> str:
        return self._name

    @property
    def parent(self) -> Optional[Group]:
        """Parent group (None for the root)."""
        return self._parent

    @property
    def path(self) -> str:
        """Absolute path of this node."""
        if self._parent is None:
            return "/"
        ppath = self._parent.path
        return f"/{self._name}" if ppath == "/" else f"{ppath}/{self._name}"

    @property
    def filename(self) -> str:
        return self._h5.file.filename

    def _guard_writable(self):
        if self._h5.file.mode == "r":
            raise ReadOnlyError(self.filename)

    @contextmanager
    def _io(self):
        """Re-raise failures of the storage library as `HDF5IOError`."""
        try:
            yield
        except HDF5Error:
            raise
        except OSError as e:
            raise HDF5IOError(self.filename, f"{self.path}: {e}") from e

    def __repr__(self) -> str:
        return f"<{type(self).__name__} '{self.path}' in {self.filename}>"


class Dataset(Node):
    """A typed array, or an extensible list of equally typed arrays."""

    _h5: h5py.Dataset

    def __init__(self, parent: Group, name: str, h5ds: h5py.Dataset):
        super().__init__(parent, name)
        self._h5 = h5ds
        self._descr = self._scan_descr()

    @property
    def is_list(self) -> bool:
        """Return whether the dataset was created as a list of arrays."""
        return bool(self._h5.attrs.get(LIST_ATTR, False))

    def _scan_descr(self) -> List[Descriptor]:
        shape = self._h5.shape
        if shape is None:  # null dataspace, nothing readable
            return []
        try:
            kind = ElementKind.from_dtype(self._h5.dtype)
        except TypeMismatchError:
            return []  # e.g. compound types written by other tools
        comp = 0
        if self._h5.compression == "gzip":
            comp = int(self._h5.compression_opts or 0)

        whole = TypeDescriptor(kind, shape, comp)
        if self.is_list:
            slot = Descriptor(whole.with_shape(shape[1:]), shape[0], True)
            return [slot, Descriptor(whole, 1, False)]
        ret = [Descriptor(whole, 1, False)]
        if shape:  # can also be read row by row
            ret.append(Descriptor(whole.with_shape(shape[1:]), shape[0], False))
        return ret

    def describe(self) -> List[Descriptor]:
        """Return all valid interpretations of the stored data, primary first."""
        return list(self._descr)

    def _select(self, pos: int, type_: TypeDescriptor) -> Tuple[Descriptor, tuple]:
        """Return matching descriptor and the h5py selection of the slot."""
        for descr in self._descr:
            if not descr.type.compatible(type_):
                continue
            if not (0 <= pos < descr.size):
                raise IndexOutOfRangeError(self.path, pos, descr.size)
            # the interpretation along the first axis has a smaller rank
            along_axis = descr.type.rank < len(self._h5.shape)
            return descr, (pos,) if along_axis else ()
        expected = [str(d.type) for d in self._descr]
        raise TypeMismatchError(self.path, expected, str(type_))

    def read(self, pos: int = 0, expected: Optional[TypeDescriptor] = None) -> Any:
        """Read one slot as a numpy value (or str, for string datasets).

        Without an expected type, the primary interpretation is used.
        """
        if expected is None:
            if not self._descr:
                raise TypeMismatchError(self.path, msg=f"{self.path}: unreadable type")
            expected = self._descr[0].type
        _, sel = self._select(pos, expected)
        src = self._h5.asstr() if expected.kind == ElementKind.STRING else self._h5
        with self._io():
            return src[sel]

    def read_buffer(self, pos: int, out: np.ndarray) -> np.ndarray:
        """Read one slot into the given array, whose type must match."""
        out[...] = self.read(pos, TypeDescriptor.of(out))
        return out

    def write_buffer(self, pos: int, data: Any) -> None:
        """Overwrite an existing slot with the given data."""
        self._guard_writable()
        type_ = TypeDescriptor.of(data)
        _, sel = self._select(pos, type_)
        if not sel and self._h5.shape:
            sel = (Ellipsis,)  # whole array
        with self._io():
            self._h5[sel] = _to_storage(data, type_)

    def extend_buffer(self, data: Any) -> None:
        """Append the given data as a new slot of a list dataset."""
        self._guard_writable()
        if not self.is_list:
            raise NotExpandableError(self.path)
        type_ = TypeDescriptor.of(data)
        slots = self._descr[0]
        if not slots.type.compatible(type_):
            raise TypeMismatchError(self.path, [str(slots.type)], str(type_))

        n = slots.size
        with self._io():
            self._h5.resize(n + 1, axis=0)
            try:
                self._h5[n] = _to_storage(data, type_)
            except BaseException:
                self._h5.resize(n, axis=0)
                raise
        self._descr = self._scan_descr()

    def resize(self, type_: TypeDescriptor) -> None:
        """Redefine the type of the dataset, e.g. when it is created again.

        If element kind and rank stay the same, values inside the new extents
        are kept, values outside are dropped and new cells are zero-filled.
        A different compression level rewrites the dataset with the new level.
        Otherwise the dataset is recreated zero-filled.
        List datasets keep their number of slots.
        """
        self._guard_writable()
        as_list = self.is_list
        slots = self._descr[0].size if as_list and self._descr else 0
        target = ((slots,) if as_list else ()) + type_.shape

        old = self._descr[0].type if self._descr else None
        same_layout = (
            old is not None and old.kind == type_.kind and old.rank == type_.rank
        )
        # scalars are stored contiguously, without compression
        level = type_.compression if target else 0
        recompress = old is not None and old.compression != level
        old_shape = tuple(self._h5.shape or ())
        if same_layout and not recompress and old_shape == target:
            return

        maxshape = self._h5.maxshape or ()
        resizable = self._h5.chunks is not None and all(
            m is None or m >= t for m, t in zip(maxshape, target)
        )
        with self._io():
            if same_layout and resizable and not recompress:
                self._h5.resize(target)
            else:
                logger.debug("Recreating %s as %s", self.path, type_)
                kept = None
                if same_layout:
                    extents = zip(old_shape, target)
                    region = tuple(slice(0, min(o, t)) for o, t in extents)
                    kept = (region, self._h5[region])
                assert self._parent is not None
                h5grp = self._parent._h5
                del h5grp[self._name]
                self._h5 = _new_h5_dataset(h5grp, self._name, type_, as_list, slots)
                if kept is not None and all(r.stop for r in kept[0]):
                    self._h5[kept[0]] = kept[1]
        self._descr = self._scan_descr()


class Group(Node):
    """A named collection of groups and datasets, like a directory."""

    _h5: h5py.Group

    def __init__(self, parent: Optional[Group], name: str, h5grp: h5py.Group):
        super().__init__(parent, name)
        self._h5 = h5grp
        self._groups: Dict[str, Group] = {}
        self._datasets: Dict[str, Dataset] = {}
        self._links: Set[str] = set()  # names taken by entries not in the tree
        with self._io():
            self._scan()

    def _scan(self):
        """Recursively load the structure below this group.

        Soft and external links are not followed, and hard links back to an
        enclosing group are not entered, so the tree is always finite.
        """
        for name in self._h5.keys():
            link = self._h5.get(name, getlink=True)
            obj = self._h5.get(name) if isinstance(link, h5py.HardLink) else None
            if isinstance(obj, h5py.Group) and not self._encloses(obj):
                self._groups[name] = Group(self, name, obj)
            elif isinstance(obj, h5py.Dataset):
                self._datasets[name] = Dataset(self, name, obj)
            else:
                self._links.add(name)

    def _encloses(self, h5grp: h5py.Group) -> bool:
        """Return whether the group is this group or one of its ancestors."""
        curr: Optional[Group] = self
        while curr is not None:
            if curr._h5 == h5grp:
                return True
            curr = curr._parent
        return False

    def _root(self) -> Group:
        curr = self
        while curr._parent is not None:
            curr = curr._parent
        return curr

    def _start(self, path: str) -> Group:
        return self._root() if utils.is_absolute(path) else self

    def _has_child(self, name: str) -> bool:
        return name in self._groups or name in self._datasets or name in self._links

    def _resolve(self, path: str) -> Tuple[Group, str]:
        """Return (existing parent group, last segment) of the path."""
        try:
            parent_path, name = utils.split(path)
        except ValueError:
            raise PathNotFoundError(path, f"Invalid object path: '{path}'")
        if name in (".", ".."):
            raise PathNotFoundError(path, f"Invalid object name: '{name}'")
        return (self.cd(parent_path) if parent_path else self), name

    # ---- navigation and queries ----

    def cd(self, path: str) -> Group:
        """Return the group at the given path (relative or absolute)."""
        curr = self._start(path)
        for seg in utils.path_segments(path):
            if seg == ".":
                continue
            if seg == "..":
                curr = curr._parent or curr
                continue
            nxt = curr._groups.get(seg)
            if nxt is None:
                why = "is a dataset" if seg in curr._datasets else "does not exist"
                raise PathNotFoundError(path, f"Cannot enter '{path}': '{seg}' {why}")
            curr = nxt
        return curr

    def __getitem__(self, path: str) -> Dataset:
        grp, name = self._resolve(path)
        ds = grp._datasets.get(name)
        if ds is None:
            raise PathNotFoundError(path, f"Dataset not found: '{path}'")
        return ds

    def has_group(self, path: str) -> bool:
        try:
            self.cd(path)
        except PathNotFoundError:
            return False
        return True

    def has_dataset(self, path: str) -> bool:
        try:
            self[path]
        except PathNotFoundError:
            return False
        return True

    __contains__ = has_dataset

    def groups(self) -> Dict[str, Group]:
        """Return immediate child groups by name."""
        return dict(self._groups)

    def datasets(self) -> Dict[str, Dataset]:
        """Return immediate child datasets by name."""
        return dict(self._datasets)

    def walk(self) -> Iterator[Node]:
        """Iterate all descendant nodes depth-first, in alphabetical order."""
        children: Dict[str, Node] = {**self._groups, **self._datasets}
        for name in sorted(children):
            child = children[name]
            yield child
            if isinstance(child, Group):
                yield from child.walk()

    # ---- structural changes ----

    def create_group(self, path: str) -> Group:
        """Create a group with all missing intermediate groups (like mkdir -p).

        Existing groups along the path are reused.
        """
        self._guard_writable()
        curr = self._start(path)
        for seg in utils.path_segments(path):
            if seg == ".":
                continue
            if seg == "..":
                curr = curr._parent or curr
                continue
            if seg in curr._datasets or seg in curr._links:
                raise AlreadyExistsError(utils.join(curr.path, seg))
            nxt = curr._groups.get(seg)
            if nxt is None:
                with curr._io():
                    nxt = Group(curr, seg, curr._h5.create_group(seg))
                curr._groups[seg] = nxt
            curr = nxt
        return curr

    def _prepare_target(self, path: str) -> Tuple[Group, str]:
        """Return parent group (created if missing) and free name for a new node."""
        try:
            parent_path, name = utils.split(path)
        except ValueError:
            raise PathNotFoundError(path, f"Invalid object path: '{path}'")
        if name in (".", ".."):
            raise PathNotFoundError(path, f"Invalid object name: '{name}'")
        grp = self.create_group(parent_path) if parent_path else self
        if grp._has_child(name):
            raise AlreadyExistsError(utils.join(grp.path, name))
        return grp, name

    def create_dataset(
        self,
        path: str,
        type_: TypeDescriptor,
        as_list: bool = False,
        compression: int = 0,
    ) -> Dataset:
        """Create a new dataset for arrays of the given type.

        A list dataset starts empty and grows with `Dataset.extend_buffer`,
        otherwise the dataset holds exactly one (zero-filled) array.
        """
        self._guard_writable()
        if compression:
            type_ = TypeDescriptor(type_.kind, type_.shape, compression)
        grp, name = self._prepare_target(path)
        with grp._io():
            ds = Dataset(grp, name, _new_h5_dataset(grp._h5, name, type_, as_list))
        grp._datasets[name] = ds
        return ds

    def remove_dataset(self, path: str) -> None:
        """Delete a dataset and its data."""
        self._guard_writable()
        ds = self[path]
        grp = ds._parent
        assert grp is not None
        with grp._io():
            del grp._h5[ds.name]
        del grp._datasets[ds.name]

    def rename_dataset(self, src: str, dst: str) -> None:
        """Move a dataset to a new path inside the same file.

        Only the file is changed, the node tree is stale afterwards
        and must be rebuilt by the caller.
        """
        self._guard_writable()
        ds = self[src]
        grp, name = self._prepare_target(dst)
        with self._io():
            self._h5.file.move(ds._h5.name, utils.join(grp.path, name))

    def copy_group(self, source: Group, name: str) -> Group:
        """Deep-copy a group (usually of a different file) into this group."""
        self._guard_writable()
        grp, name = self._prepare_target(name)
        with grp._io():
            grp._h5.copy(source._h5, name)
            ret = Group(grp, name, grp._h5[name])
        grp._groups[name] = ret
        return ret

    def copy_dataset(self, source: Dataset, name: str) -> Dataset:
        """Copy a dataset (usually of a different file) into this group."""
        self._guard_writable()
        grp, name = self._prepare_target(name)
        with grp._io():
            grp._h5.copy(source._h5, name)
            ret = Dataset(grp, name, grp._h5[name])
        grp._datasets[name] = ret
        return ret
