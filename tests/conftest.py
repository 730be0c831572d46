import secrets
import shutil
from pathlib import Path

import numpy as np
import pytest

from statio_core.io import HDF5File


@pytest.fixture(scope="session")
def h5_dir(tmpdir_factory):
    """Create a fresh temporary directory for files created in the tests."""
    return tmpdir_factory.mktemp("statio_tests")


@pytest.fixture
def tmp_h5_path_factory(h5_dir):
    """Return a file name generator to be used for creating HDF5 files.

    All files will be cleaned up after completing the test.
    """
    names = []

    def fresh_name() -> Path:
        name = secrets.token_hex(4)
        names.append(name)
        return Path(h5_dir / f"{name}.h5")

    yield fresh_name

    # clean up
    for name in names:
        for path in Path(h5_dir).glob(f"{name}*"):
            if path.is_file():
                path.unlink()
            elif path.is_dir():
                shutil.rmtree(path)


@pytest.fixture
def tmp_h5_path(tmp_h5_path_factory):
    """Generate a file name to be used for creating a HDF5 file."""
    return tmp_h5_path_factory()


@pytest.fixture
def fresh_file(tmp_h5_path):
    """Return a new writable file, closed after the test."""
    with HDF5File(tmp_h5_path, "w") as f:
        yield f


@pytest.fixture
def sample_file(tmp_h5_path):
    """Return path of a small file with some groups and datasets.

    Layout:
        /x            float64[3]
        /grp/y        int32 scalar
        /grp/sub/z    list of float64[2] (2 slots)
        /empty/       group
    """
    with HDF5File(tmp_h5_path, "w") as f:
        f.set("x", np.array([1.0, 2.0, 3.0]))
        f.set("grp/y", np.int32(7))
        f.append("grp/sub/z", np.array([0.0, 1.0]))
        f.append("grp/sub/z", np.array([2.0, 3.0]))
        f.create_group("empty")
    return tmp_h5_path
