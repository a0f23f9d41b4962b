"""Input/Output utilities for point sets."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

import numpy as np
import pyvista as pv

try:  # pragma: no cover - import guard for optional dependency
    import open3d as o3d
except ModuleNotFoundError as exc:  # pragma: no cover - fallback for docs/tests
    raise RuntimeError(
        "open3d is required for pointset_normals.io; install the package dependencies"
    ) from exc

logger = logging.getLogger(__name__)

NORMALS_ARRAY = "Normals"
COLORS_ARRAY = "RGB"

VTK_EXTENSIONS = {".vtp", ".vtk"}
OPEN3D_EXTENSIONS = {".ply", ".pcd"}
TEXT_EXTENSIONS = {".xyz", ".txt"}
SUPPORTED_EXTENSIONS = VTK_EXTENSIONS | OPEN3D_EXTENSIONS | TEXT_EXTENSIONS
WRITABLE_EXTENSIONS = VTK_EXTENSIONS | OPEN3D_EXTENSIONS | {".xyz"}


@dataclass
class LoadedPointSet:
    """Container bundling a point set and metadata."""

    mesh: pv.PolyData
    path: Path
    has_normals: bool

    @property
    def n_points(self) -> int:
        return int(self.mesh.n_points)


def find_normals(mesh: pv.PolyData) -> Optional[np.ndarray]:
    """Return the normals carried by ``mesh`` or ``None``."""

    normals = mesh.point_data.active_normals
    if normals is None and NORMALS_ARRAY in mesh.point_data:
        normals = mesh.point_data[NORMALS_ARRAY]
    if normals is None:
        return None
    normals = np.asarray(normals, dtype=float)
    if normals.ndim != 2 or normals.shape[1] != 3:
        return None
    return normals


def with_normals(mesh: pv.PolyData, normals: np.ndarray) -> pv.PolyData:
    """Return a copy of ``mesh`` carrying ``normals`` as its active normals."""

    normals = np.asarray(normals, dtype=float)
    if normals.shape != (mesh.n_points, 3):
        raise ValueError(
            f"Normals shape {normals.shape} does not match {mesh.n_points} points"
        )
    out = mesh.copy(deep=True)
    out.point_data[NORMALS_ARRAY] = normals
    out.point_data.active_normals_name = NORMALS_ARRAY
    return out


def to_open3d(mesh: pv.PolyData) -> o3d.geometry.PointCloud:
    """Convert a PolyData point set to an Open3D point cloud."""

    cloud = o3d.geometry.PointCloud()
    cloud.points = o3d.utility.Vector3dVector(np.asarray(mesh.points, dtype=float))
    normals = find_normals(mesh)
    if normals is not None:
        cloud.normals = o3d.utility.Vector3dVector(normals)
    if COLORS_ARRAY in mesh.point_data:
        colors = np.asarray(mesh.point_data[COLORS_ARRAY], dtype=float)
        if colors.max(initial=0.0) > 1.0:
            colors = colors / 255.0
        cloud.colors = o3d.utility.Vector3dVector(colors)
    return cloud


def from_open3d(cloud: o3d.geometry.PointCloud) -> pv.PolyData:
    """Convert an Open3D point cloud to PolyData with vertex cells."""

    points = np.asarray(cloud.points, dtype=float)
    mesh = pv.PolyData(points) if len(points) else pv.PolyData()
    if cloud.has_normals():
        mesh = with_normals(mesh, np.asarray(cloud.normals))
    if cloud.has_colors():
        colors = np.clip(np.asarray(cloud.colors) * 255.0, 0, 255).astype(np.uint8)
        mesh.point_data[COLORS_ARRAY] = colors
    return mesh


def _load_xyz_with_optional_normals(path: Path) -> pv.PolyData:
    data = np.loadtxt(path, dtype=float, ndmin=2)
    if data.shape[1] < 3:
        msg = f"File {path} must contain at least three columns for x,y,z coordinates"
        raise ValueError(msg)
    mesh = pv.PolyData(data[:, :3])
    if data.shape[1] >= 6:
        mesh = with_normals(mesh, data[:, 3:6])
    return mesh


def _save_xyz_with_optional_normals(mesh: pv.PolyData, path: Path) -> None:
    # Same column layout the loader reads back: x y z [nx ny nz]
    data = np.asarray(mesh.points, dtype=float)
    normals = find_normals(mesh)
    if normals is not None:
        data = np.hstack([data, normals])
    np.savetxt(path, data)


def load_point_set(path: str | Path) -> LoadedPointSet:
    """Load a point set from a file.

    Parameters
    ----------
    path:
        File path pointing to a supported point set format.

    Returns
    -------
    LoadedPointSet
        The loaded point set and metadata.
    """

    p = Path(path)
    if not p.exists():
        raise FileNotFoundError(p)
    suffix = p.suffix.lower()
    if suffix not in SUPPORTED_EXTENSIONS:
        raise ValueError(f"Unsupported extension '{p.suffix}'. Supported: {sorted(SUPPORTED_EXTENSIONS)}")

    if suffix in TEXT_EXTENSIONS:
        mesh = _load_xyz_with_optional_normals(p)
    elif suffix in OPEN3D_EXTENSIONS:
        mesh = from_open3d(o3d.io.read_point_cloud(str(p)))
    else:
        data = pv.read(str(p))
        if not isinstance(data, pv.PolyData):
            data = data.extract_surface()
        mesh = data

    if mesh.n_points == 0:
        raise ValueError("Point set is empty")
    has_normals = find_normals(mesh) is not None
    logger.info("Loaded %s (%d points, normals: %s)", p.name, mesh.n_points, has_normals)
    return LoadedPointSet(mesh=mesh, path=p, has_normals=has_normals)


def save_point_set(mesh: pv.PolyData, path: str | Path) -> Path:
    """Save a point set to disk.

    Parameters
    ----------
    mesh:
        Point set to save; normals travel with it when present.
    path:
        Output file path.

    Returns
    -------
    Path
        The path where the file was written.
    """

    p = Path(path)
    suffix = p.suffix.lower()
    if suffix not in WRITABLE_EXTENSIONS:
        raise ValueError(f"Cannot write '{p.suffix}' files")
    p.parent.mkdir(parents=True, exist_ok=True)

    if suffix in VTK_EXTENSIONS:
        mesh.save(str(p))
    elif suffix in TEXT_EXTENSIONS:
        _save_xyz_with_optional_normals(mesh, p)
    else:
        success = o3d.io.write_point_cloud(str(p), to_open3d(mesh))
        if not success:
            raise IOError(f"Failed to save point set to {p}")
    logger.info("Saved %d points to %s", mesh.n_points, p)
    return p
