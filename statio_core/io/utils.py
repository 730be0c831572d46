"""Path helpers for the `/`-separated HDF5 namespace."""
from typing import List, Tuple


def path_segments(path: str) -> List[str]:
    """Split a path into its non-empty segments (`.` and `..` are kept)."""
    return [seg for seg in path.split("/") if seg]


def is_absolute(path: str) -> bool:
    return path.startswith("/")


def normalize(path: str) -> str:
    """Return canonical absolute form of an absolute path.

    Resolves `.` and `..` segments (the root is its own parent)
    and collapses repeated slashes.
    """
    if not is_absolute(path):
        raise ValueError(f"Path must be absolute: '{path}'")
    segs: List[str] = []
    for seg in path_segments(path):
        if seg == ".":
            continue
        if seg == "..":
            if segs:
                segs.pop()
            continue
        segs.append(seg)
    return "/" + "/".join(segs)


def join(base: str, path: str) -> str:
    """Resolve `path` against the absolute `base` path and normalize."""
    if is_absolute(path):
        return normalize(path)
    return normalize(f"{base}/{path}")


def split(path: str) -> Tuple[str, str]:
    """Split a path into (parent path, last segment).

    The parent path is empty for a single segment relative path.
    """
    stripped = path.rstrip("/")
    if not stripped:
        raise ValueError(f"Path has no last segment: '{path}'")
    idx = stripped.rfind("/")
    if idx < 0:
        return "", stripped
    return stripped[:idx] or "/", stripped[idx + 1 :]
