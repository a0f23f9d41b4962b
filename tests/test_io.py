"""Tests for point set reading and writing."""

from __future__ import annotations

import pytest

np = pytest.importorskip("numpy")
pytest.importorskip("open3d")
pv = pytest.importorskip("pyvista")

from pointset_normals.io import (
    find_normals,
    from_open3d,
    load_point_set,
    save_point_set,
    to_open3d,
    with_normals,
)


def test_load_xyz_without_normals(plane_xyz) -> None:
    loaded = load_point_set(plane_xyz)
    assert loaded.n_points == 100
    assert not loaded.has_normals
    assert loaded.path == plane_xyz


def test_load_xyz_with_normals(tmp_path, plane_points) -> None:
    data = np.hstack([plane_points, np.tile([0.0, 0.0, 1.0], (len(plane_points), 1))])
    path = tmp_path / "plane.txt"
    np.savetxt(path, data)
    loaded = load_point_set(path)
    assert loaded.has_normals
    assert np.allclose(find_normals(loaded.mesh), [0.0, 0.0, 1.0])


def test_load_rejects_bad_input(tmp_path) -> None:
    with pytest.raises(FileNotFoundError):
        load_point_set(tmp_path / "missing.vtp")

    unsupported = tmp_path / "cloud.obj"
    unsupported.write_text("v 0 0 0\n")
    with pytest.raises(ValueError, match="Unsupported extension"):
        load_point_set(unsupported)

    two_columns = tmp_path / "flat.xyz"
    np.savetxt(two_columns, np.zeros((4, 2)))
    with pytest.raises(ValueError, match="three columns"):
        load_point_set(two_columns)


def test_load_empty_vtp(tmp_path) -> None:
    path = tmp_path / "empty.vtp"
    pv.PolyData().save(str(path))
    with pytest.raises(ValueError, match="empty"):
        load_point_set(path)


def test_vtp_keeps_normals(tmp_path, plane_points) -> None:
    mesh = with_normals(pv.PolyData(plane_points), np.tile([0.0, 0.0, 1.0], (100, 1)))
    path = save_point_set(mesh, tmp_path / "out" / "plane.vtp")
    assert path.exists()

    loaded = load_point_set(path)
    assert loaded.has_normals
    assert np.allclose(loaded.mesh.points, plane_points)


def test_save_rejects_txt(tmp_path, plane_points) -> None:
    with pytest.raises(ValueError):
        save_point_set(pv.PolyData(plane_points), tmp_path / "plane.txt")


def test_with_normals_shape_mismatch(plane_points) -> None:
    with pytest.raises(ValueError):
        with_normals(pv.PolyData(plane_points), np.zeros((3, 3)))


def test_open3d_conversion_keeps_normals(plane_points) -> None:
    mesh = with_normals(pv.PolyData(plane_points), np.tile([1.0, 0.0, 0.0], (100, 1)))
    cloud = to_open3d(mesh)
    assert cloud.has_normals()

    back = from_open3d(cloud)
    assert back.n_points == 100
    assert np.allclose(find_normals(back), [1.0, 0.0, 0.0])


def test_xyz_keeps_normals(tmp_path, plane_points) -> None:
    mesh = with_normals(pv.PolyData(plane_points), np.tile([0.0, 1.0, 0.0], (100, 1)))
    path = save_point_set(mesh, tmp_path / "plane.xyz")
    assert np.loadtxt(path).shape == (100, 6)

    loaded = load_point_set(path)
    assert loaded.has_normals
    assert np.allclose(find_normals(loaded.mesh), [0.0, 1.0, 0.0])


def test_xyz_without_normals_has_three_columns(tmp_path, plane_points) -> None:
    path = save_point_set(pv.PolyData(plane_points), tmp_path / "plane.xyz")
    assert np.loadtxt(path).shape == (100, 3)
    assert not load_point_set(path).has_normals
