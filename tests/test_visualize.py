"""Tests for glyph and scene geometry."""

from __future__ import annotations

import math

import pytest

np = pytest.importorskip("numpy")
pv = pytest.importorskip("pyvista")

from pointset_normals.io import with_normals
from pointset_normals.visualize import (
    GlyphParams,
    build_arrow_glyphs,
    build_radius_sphere,
    normal_colors,
    points_only,
)


def test_glyph_generation_arrow_count() -> None:
    points = np.array([[0.0, 0.0, float(i)] for i in range(25)])
    mesh = with_normals(pv.PolyData(points), np.tile([0.0, 0.0, 1.0], (25, 1)))

    params = GlyphParams(scale=0.1, every=4)
    glyphs = build_arrow_glyphs(mesh, params)
    expected = math.ceil(len(points) / params.every)
    assert glyphs.n_points == expected * pv.Arrow().n_points


def test_glyph_scale_follows_params() -> None:
    mesh = with_normals(pv.PolyData(np.zeros((1, 3))), np.array([[1.0, 0.0, 0.0]]))
    small = build_arrow_glyphs(mesh, GlyphParams(scale=0.5))
    large = build_arrow_glyphs(mesh, GlyphParams(scale=2.0))
    assert large.length == pytest.approx(4 * small.length)


def test_glyphs_require_normals() -> None:
    with pytest.raises(ValueError):
        build_arrow_glyphs(pv.PolyData(np.zeros((3, 3))), GlyphParams())
    with pytest.raises(ValueError):
        GlyphParams(scale=0.0).validate()


def test_radius_sphere() -> None:
    sphere = build_radius_sphere((1.0, 2.0, 3.0), 0.5)
    xmin, xmax, ymin, ymax, zmin, zmax = sphere.bounds
    assert zmax - zmin == pytest.approx(1.0)
    assert (zmax + zmin) / 2 == pytest.approx(3.0)
    with pytest.raises(ValueError):
        build_radius_sphere((0.0, 0.0, 0.0), 0.0)


def test_points_only_has_vertices() -> None:
    source = pv.PolyData(np.random.default_rng(0).random((12, 3)))
    display = points_only(source)
    assert display.n_points == 12
    assert display.n_cells == 12


def test_normal_colors_in_unit_range() -> None:
    colors = normal_colors(np.array([[0.0, 0.0, 1.0], [-1.0, 0.0, 0.0]]))
    assert np.allclose(colors[0], [0.5, 0.5, 1.0])
    assert np.allclose(colors[1], [0.0, 0.5, 0.5])
