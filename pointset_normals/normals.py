"""Normal estimation and orientation."""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from enum import Enum
from typing import Iterable, Optional

import numpy as np
import pyvista as pv

try:  # pragma: no cover - import guard for optional dependency
    import open3d as o3d
except ModuleNotFoundError as exc:  # pragma: no cover - fallback for docs/tests
    raise RuntimeError(
        "open3d is required for pointset_normals.normals; install the package dependencies"
    ) from exc

from .io import NORMALS_ARRAY, with_normals

logger = logging.getLogger(__name__)


class NeighborhoodMode(str, Enum):
    """How the neighbourhood of each point is gathered."""

    RADIUS = "radius"
    KNN = "knn"


class NormalOrientation(str, Enum):
    """Orientation strategies for surface normals."""

    NONE = "none"
    Z_UP = "zup"
    VIEWPOINT = "viewpoint"
    CONSISTENT = "consistent"


@dataclass(slots=True)
class NormalEstimationParams:
    """Parameters controlling normal estimation.

    ``max_nn`` caps the neighbour count of a radius search; ``None`` keeps
    every point within ``radius``.
    """

    mode: NeighborhoodMode = NeighborhoodMode.RADIUS
    radius: float = 1.0
    k_neighbors: int = 30
    max_nn: int | None = None

    def validate(self) -> None:
        if self.mode is NeighborhoodMode.RADIUS and self.radius <= 0:
            raise ValueError("radius must be positive")
        if self.mode is NeighborhoodMode.KNN and self.k_neighbors <= 0:
            raise ValueError("k_neighbors must be positive")
        if self.max_nn is not None and self.max_nn <= 0:
            raise ValueError("max_nn must be positive")

    def to_search_param(self) -> o3d.geometry.KDTreeSearchParam:
        self.validate()
        if self.mode is NeighborhoodMode.RADIUS:
            if self.max_nn is not None:
                return o3d.geometry.KDTreeSearchParamHybrid(radius=self.radius, max_nn=self.max_nn)
            return o3d.geometry.KDTreeSearchParamRadius(radius=self.radius)
        return o3d.geometry.KDTreeSearchParamKNN(self.k_neighbors)


def _normalize_vectors(vectors: np.ndarray) -> np.ndarray:
    norms = np.linalg.norm(vectors, axis=1, keepdims=True)
    norms[norms == 0] = 1.0
    return vectors / norms


def _cloud(points: np.ndarray, normals: Optional[np.ndarray] = None) -> o3d.geometry.PointCloud:
    cloud = o3d.geometry.PointCloud()
    cloud.points = o3d.utility.Vector3dVector(np.asarray(points, dtype=float))
    if normals is not None:
        cloud.normals = o3d.utility.Vector3dVector(np.asarray(normals, dtype=float))
    return cloud


def estimate_normals(points: np.ndarray, params: NormalEstimationParams) -> np.ndarray:
    """Estimate unit normals for an ``(N, 3)`` array of points."""

    points = np.asarray(points, dtype=float)
    if points.ndim != 2 or points.shape[1] != 3:
        raise ValueError("points array must have shape (N, 3)")
    if len(points) == 0:
        raise ValueError("Point set is empty")

    cloud = _cloud(points)
    cloud.estimate_normals(search_param=params.to_search_param())
    return _normalize_vectors(np.asarray(cloud.normals).copy())


def orient_normals(
    points: np.ndarray,
    normals: np.ndarray,
    strategy: NormalOrientation,
    *,
    camera_location: Optional[Iterable[float]] = None,
    consistent_k: int = 30,
) -> np.ndarray:
    """Return ``normals`` oriented according to the chosen strategy."""

    normals = np.array(normals, dtype=float)
    if normals.shape != np.shape(points):
        raise ValueError("points and normals must have the same shape")

    if strategy is NormalOrientation.NONE:
        return normals
    if strategy is NormalOrientation.Z_UP:
        flip_mask = normals[:, 2] < 0
        normals[flip_mask] *= -1.0
        return normals
    if strategy is NormalOrientation.VIEWPOINT:
        if camera_location is None:
            raise ValueError("camera_location is required for viewpoint orientation")
        camera = np.asarray(list(camera_location), dtype=float)
        to_camera = camera - np.asarray(points, dtype=float)
        flip_mask = np.einsum("ij,ij->i", normals, to_camera) < 0
        normals[flip_mask] *= -1.0
        return normals
    if strategy is NormalOrientation.CONSISTENT:
        if consistent_k <= 0:
            raise ValueError("consistent_k must be > 0")
        cloud = _cloud(points, normals)
        cloud.orient_normals_consistent_tangent_plane(consistent_k)
        return np.asarray(cloud.normals).copy()
    raise ValueError(f"Unsupported orientation strategy {strategy}")


class NormalEstimationFilter:
    """Pipeline stage producing a copy of its input with estimated normals.

    The filter only recomputes in :meth:`update` when its input or
    parameters changed since the last run, so the window can call it
    freely from the worker thread.
    """

    def __init__(self, params: Optional[NormalEstimationParams] = None) -> None:
        self.params = params or NormalEstimationParams()
        self._input: Optional[pv.PolyData] = None
        self._output: Optional[pv.PolyData] = None
        self._modified = True

    @property
    def radius(self) -> float:
        return self.params.radius

    @radius.setter
    def radius(self, value: float) -> None:
        if value != self.params.radius:
            self.params = replace(self.params, radius=float(value))
            self._modified = True

    @property
    def input(self) -> Optional[pv.PolyData]:
        return self._input

    @property
    def output(self) -> Optional[pv.PolyData]:
        return self._output

    @property
    def modified(self) -> bool:
        return self._modified

    def set_input(self, mesh: Optional[pv.PolyData]) -> None:
        self._input = mesh
        self._output = None
        self._modified = True

    def set_params(self, params: NormalEstimationParams) -> None:
        self.params = params
        self._modified = True

    def update(self) -> pv.PolyData:
        """Run the estimation if needed and return the output."""

        if self._input is None:
            raise ValueError("No input point set")
        if not self._modified and self._output is not None:
            return self._output

        params = self.params
        logger.debug(
            "Estimating normals for %d points (mode=%s, radius=%g, k=%d)",
            self._input.n_points,
            params.mode.value,
            params.radius,
            params.k_neighbors,
        )
        normals = estimate_normals(np.asarray(self._input.points), params)
        self._output = with_normals(self._input, normals)
        # A radius change during the run leaves the filter modified.
        self._modified = params is not self.params
        logger.info("Estimated normals for %d points", self._output.n_points)
        return self._output

    def orient(
        self,
        strategy: NormalOrientation,
        *,
        camera_location: Optional[Iterable[float]] = None,
        consistent_k: int = 30,
    ) -> pv.PolyData:
        """Re-orient the normals of the current output."""

        if self._output is None:
            raise ValueError("Normals have not been estimated yet")
        points = np.asarray(self._output.points)
        normals = np.asarray(self._output.point_data[NORMALS_ARRAY])
        oriented = orient_normals(
            points,
            normals,
            strategy,
            camera_location=camera_location,
            consistent_k=consistent_k,
        )
        self._output = with_normals(self._output, oriented)
        logger.info("Oriented normals using '%s'", strategy.value)
        return self._output
