import numpy as np
import pytest
from hypothesis import HealthCheck, given, settings
from hypothesis import strategies as st

from statio_core.io import (
    AlreadyExistsError,
    Descriptor,
    ElementKind,
    HDF5File,
    IndexOutOfRangeError,
    InvalidAccessModeError,
    PathNotFoundError,
    ReadOnlyError,
    TypeDescriptor,
    TypeMismatchError,
)

F64 = ElementKind.FLOAT64


def test_scenario_create_write_cd_read(tmp_h5_path_factory):
    path = tmp_h5_path_factory().parent / "m.h5"
    try:
        with HDF5File(path, "w") as f:
            f.create("g/mean", TypeDescriptor(F64, (3,)), as_list=False)
            f.write_buffer("g/mean", 0, np.array([1.0, 2.0, 3.0]))
            f.cd("g")
            np.testing.assert_array_equal(f.read_buffer("mean", 0, np.empty(3)), [1, 2, 3])
            np.testing.assert_array_equal(f.read("mean", 0), [1.0, 2.0, 3.0])
    finally:
        path.unlink()


def test_invalid_mode(tmp_h5_path):
    with pytest.raises(InvalidAccessModeError):
        HDF5File(tmp_h5_path, "rw")
    with pytest.raises(InvalidAccessModeError):
        HDF5File(tmp_h5_path, 3)


def test_legacy_mode_codes(tmp_h5_path):
    with HDF5File(tmp_h5_path, 2) as f:
        f.set("a", 1.0)
    with HDF5File(tmp_h5_path, 0) as f:
        assert f.read("a") == 1.0
        with pytest.raises(ReadOnlyError):
            f.set("a", 2.0)


def test_cwd_and_cd(sample_file):
    with HDF5File(sample_file, "r") as f:
        assert f.cwd() == "/"
        f.cd("grp/sub")
        assert f.cwd() == "/grp/sub"
        f.cd("..")
        assert f.cwd() == "/grp"
        f.cd("/grp/./sub/../../empty")
        assert f.cwd() == "/empty"
        f.cd("/")
        assert f.cwd() == "/"


def test_failed_cd_keeps_cursor(sample_file):
    with HDF5File(sample_file, "r") as f:
        f.cd("grp")
        for bad in ["missing", "y", "sub/z", "/x"]:
            with pytest.raises(PathNotFoundError):
                f.cd(bad)
            assert f.cwd() == "/grp"


def test_queries_relative_to_cwd(sample_file):
    with HDF5File(sample_file, "r") as f:
        f.cd("grp")
        assert f.exists("y")
        assert f.contains("sub/z")
        assert "../x" in f
        assert not f.exists("x")
        assert not f.exists("sub")
        assert f.has_group("sub")
        assert f.has_group("/empty")
        assert not f.has_group("y")
        assert f.paths() == ["/grp/sub/z", "/grp/y"]
        assert [n.path for n in f.walk()] == ["/grp/sub", "/grp/sub/z", "/grp/y"]


def test_create_group(fresh_file):
    fresh_file.create_group("a/b")
    fresh_file.cd("a/b")
    fresh_file.create_group("../c")
    assert fresh_file.has_group("/a/c")


def test_describe(sample_file):
    with HDF5File(sample_file, "r") as f:
        assert f.describe("x") == [
            Descriptor(TypeDescriptor(F64, (3,)), 1, False),
            Descriptor(TypeDescriptor(F64), 3, False),
        ]
        assert f.describe("grp/sub/z")[0] == Descriptor(TypeDescriptor(F64, (2,)), 2, True)
        assert f.describe("grp/y") == [Descriptor(TypeDescriptor(ElementKind.INT32), 1)]
        # nothing changes without writes
        assert f.describe("grp/sub/z") == f.describe("grp/sub/z")
        assert f.size("grp/sub/z") == 2
        assert f.size("x") == 1
        with pytest.raises(PathNotFoundError):
            f.describe("grp")


def test_create_existing_redefines(fresh_file):
    f = fresh_file
    f.create("v", TypeDescriptor(F64, (3,)))
    f.write_buffer("v", 0, np.array([1.0, 2.0, 3.0]))
    # no error for the existing path, the dataset is resized
    f.create("v", TypeDescriptor(F64, (2,)))
    assert f.describe("v")[0].type == TypeDescriptor(F64, (2,))
    np.testing.assert_array_equal(f.read("v"), [1.0, 2.0])
    f.create("v", TypeDescriptor(F64, (4,)))
    np.testing.assert_array_equal(f.read("v"), [1.0, 2.0, 0.0, 0.0])


def test_create_over_group_fails(sample_file):
    with HDF5File(sample_file, "r+") as f:
        with pytest.raises(AlreadyExistsError):
            f.create("grp", TypeDescriptor(F64))


def test_type_mismatch_keeps_content(sample_file):
    with HDF5File(sample_file, "r+") as f:
        with pytest.raises(TypeMismatchError):
            f.write_buffer("x", 0, np.array([1, 2, 3], dtype=np.int32))
        with pytest.raises(TypeMismatchError):
            f.write_buffer("x", 0, np.array([[1.0, 2.0, 3.0]]))
        with pytest.raises(TypeMismatchError):
            f.read("x", 0, TypeDescriptor(ElementKind.INT32, (3,)))
        np.testing.assert_array_equal(f.read("x"), [1.0, 2.0, 3.0])


def test_list_extension(fresh_file):
    f = fresh_file
    f.create("l", TypeDescriptor(F64, (2,)), as_list=True)
    assert f.size("l") == 0
    buffers = [np.array([1.0, 2.0]), np.array([3.0, 4.0]), np.array([5.0, 6.0])]
    for b in buffers:
        f.extend_buffer("l", b)
    assert f.describe("l")[0].size == 3
    for i, b in enumerate(buffers):
        np.testing.assert_array_equal(f.read("l", i), b)
    with pytest.raises(IndexOutOfRangeError):
        f.read("l", 3)


def test_set_and_append(fresh_file):
    f = fresh_file
    f.set("s/scalar", 2.5)
    f.set("s/int", np.int64(3))
    f.set("s/name", "gaussian")
    f.set_array("s/arr", np.eye(2), compression=4)
    assert f.read("s/scalar") == 2.5
    assert f.read("s/int") == 3
    assert f.read("s/name") == "gaussian"
    np.testing.assert_array_equal(f.read_array("s/arr"), np.eye(2))
    assert f.describe("s/arr")[0].type.compression == 4

    # overwrite, also with another type
    f.set("s/scalar", 1.0)
    assert f.read("s/scalar") == 1.0
    f.set("s/scalar", np.arange(3))
    np.testing.assert_array_equal(f.read("s/scalar"), [0, 1, 2])

    f.append("s/list", 1.0)
    f.append("s/list", 2.0)
    assert f.size("s/list") == 2
    assert f.read("s/list", 1) == 2.0
    # set replaces a list by a single value
    f.set("s/list", 5.0)
    assert f.describe("s/list") == [Descriptor(TypeDescriptor(F64), 1, False)]


def test_paths_sorted(fresh_file):
    fresh_file.set("a/x", 1.0)
    fresh_file.set("a-b", 2.0)
    # "-" sorts before "/", unlike in a depth-first walk
    assert fresh_file.paths() == ["/a-b", "/a/x"]


def test_set_changes_compression(fresh_file):
    f = fresh_file
    f.set("v", np.arange(4.0))
    assert f.describe("v")[0].type.compression == 0
    f.set("v", np.arange(4.0) + 1, compression=4)
    assert f.describe("v")[0].type.compression == 4
    np.testing.assert_array_equal(f.read("v"), [1.0, 2.0, 3.0, 4.0])

    f.create("v", TypeDescriptor(F64, (2,)), compression=6)
    assert f.describe("v")[0].type.compression == 6
    np.testing.assert_array_equal(f.read("v"), [1.0, 2.0])


def test_unlink(sample_file):
    with HDF5File(sample_file, "r+") as f:
        f.cd("grp")
        f.unlink("y")
        assert not f.exists("y")
        with pytest.raises(PathNotFoundError):
            f.unlink("y")
        with pytest.raises(PathNotFoundError):
            f.unlink("sub")
    with HDF5File(sample_file, "r") as f:
        assert not f.exists("grp/y")


def test_rename(sample_file):
    with HDF5File(sample_file, "r+") as f:
        f.cd("grp/sub")
        before = f.describe("/x")
        f.rename("/x", "../moved/x2")
        assert f.cwd() == "/grp/sub"
        assert not f.exists("/x")
        assert f.exists("/grp/moved/x2")
        assert f.describe("../moved/x2") == before
        np.testing.assert_array_equal(f.read("../moved/x2"), [1.0, 2.0, 3.0])
        # still working normally on the rebuilt tree
        f.extend_buffer("z", np.array([4.0, 5.0]))
        assert f.size("z") == 3


def test_rename_failure_keeps_state(sample_file):
    with HDF5File(sample_file, "r+") as f:
        f.cd("grp")
        with pytest.raises(AlreadyExistsError):
            f.rename("y", "sub/z")
        with pytest.raises(PathNotFoundError):
            f.rename("nope", "other")
        assert f.cwd() == "/grp"
        assert f.exists("y")


def test_copy(sample_file, tmp_h5_path_factory):
    with HDF5File(sample_file, "r") as other, HDF5File(
        tmp_h5_path_factory(), "w"
    ) as f:
        f.create_group("target")
        f.cd("target")
        assert not f.exists("x")
        f.copy(other)
        assert f.exists("x")
        np.testing.assert_array_equal(f.read("x"), other.read("x"))
        assert f.has_group("empty")
        assert f.describe("grp/sub/z") == other.describe("grp/sub/z")
        assert f.read("grp/y") == 7
        assert f.paths() == ["/target/grp/sub/z", "/target/grp/y", "/target/x"]


def test_copy_ignores_cwd_of_other(sample_file, tmp_h5_path_factory):
    with HDF5File(sample_file, "r") as other, HDF5File(
        tmp_h5_path_factory(), "w"
    ) as f:
        other.cd("grp/sub")
        f.copy(other)
        assert f.exists("x")


def test_copy_collision_copies_nothing(sample_file, tmp_h5_path_factory):
    with HDF5File(sample_file, "r") as other, HDF5File(
        tmp_h5_path_factory(), "w"
    ) as f:
        f.set("x", 0.0)
        with pytest.raises(AlreadyExistsError) as e:
            f.copy(other)
        assert "'x'" in str(e.value)
        assert not f.has_group("grp")
        assert f.read("x") == 0.0


def test_closed_file(sample_file):
    f = HDF5File(sample_file, "r")
    f.close()
    with pytest.raises(ValueError):
        f.cwd()
    with pytest.raises(ValueError):
        f.exists("x")


def test_read_only(sample_file):
    with HDF5File(sample_file) as f:
        for op in [
            lambda: f.create("new", TypeDescriptor(F64)),
            lambda: f.set("x", np.zeros(3)),
            lambda: f.append("grp/sub/z", np.zeros(2)),
            lambda: f.unlink("x"),
            lambda: f.rename("x", "y"),
            lambda: f.create_group("g"),
        ]:
            with pytest.raises(ReadOnlyError):
                op()
        np.testing.assert_array_equal(f.read("x"), [1.0, 2.0, 3.0])


floats = st.floats(allow_nan=False)


@settings(max_examples=25, suppress_health_check=[HealthCheck.function_scoped_fixture])
@given(st.lists(floats, max_size=10), floats)
def test_roundtrip_vector_and_scalar(tmp_h5_path_factory, vec, scalar):
    path = tmp_h5_path_factory()
    with HDF5File(path, "w") as f:
        f.set("v", np.array(vec, dtype=np.float64))
        f.set("s", scalar)
    with HDF5File(path, "r") as f:
        np.testing.assert_array_equal(f.read("v"), np.array(vec, dtype=np.float64))
        assert f.read("s") == scalar
