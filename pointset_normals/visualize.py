"""Helpers building the rendered geometry for point sets and normals."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence

import numpy as np
import pyvista as pv

from .io import NORMALS_ARRAY, find_normals


@dataclass(slots=True)
class GlyphParams:
    """Parameters for glyph construction."""

    scale: float = 0.1
    every: int = 1

    def validate(self) -> None:
        if self.scale <= 0:
            raise ValueError("scale must be positive")
        if self.every <= 0:
            raise ValueError("every must be positive")


def build_arrow_glyphs(mesh: pv.PolyData, params: GlyphParams) -> pv.PolyData:
    """Create arrow glyphs oriented along the normals of ``mesh``."""

    params.validate()
    normals = find_normals(mesh)
    if normals is None:
        raise ValueError("Point set requires normals to create glyphs")
    if mesh.n_points == 0:
        raise ValueError("Point set has no points")

    indices = np.arange(0, mesh.n_points, params.every)
    seeds = pv.PolyData(np.asarray(mesh.points)[indices])
    seeds.point_data[NORMALS_ARRAY] = normals[indices]
    return seeds.glyph(
        orient=NORMALS_ARRAY,
        scale=False,
        factor=params.scale,
        geom=pv.Arrow(),
    )


def build_radius_sphere(center: Sequence[float], radius: float) -> pv.PolyData:
    """Sphere previewing the neighbourhood radius around ``center``."""

    if radius <= 0:
        raise ValueError("radius must be positive")
    return pv.Sphere(radius=radius, center=tuple(float(c) for c in center))


def points_only(mesh: pv.PolyData) -> pv.PolyData:
    """Return the points of ``mesh`` as vertex cells, ready for rendering."""

    return pv.PolyData(np.asarray(mesh.points, dtype=float))


def normal_colors(normals: np.ndarray) -> np.ndarray:
    """Color points by normalized normal vectors."""

    normals = np.asarray(normals, dtype=float)
    return np.clip(0.5 * (normals + 1.0), 0.0, 1.0)
