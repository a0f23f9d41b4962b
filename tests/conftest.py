"""Shared fixtures for the test-suite."""

from __future__ import annotations

import os

import pytest

os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")

np = pytest.importorskip("numpy")


def make_plane(n: int = 10, spacing: float = 0.1) -> np.ndarray:
    """Regular grid of points lying in the z=0 plane."""

    xs, ys = np.meshgrid(np.arange(n) * spacing, np.arange(n) * spacing)
    return np.column_stack([xs.ravel(), ys.ravel(), np.zeros(n * n)])


@pytest.fixture
def plane_points() -> np.ndarray:
    return make_plane()


@pytest.fixture
def plane_xyz(tmp_path, plane_points):
    path = tmp_path / "plane.xyz"
    np.savetxt(path, plane_points)
    return path
