"""Tests for the background computation thread and slider widget."""

from __future__ import annotations

import pytest

pytest.importorskip("PySide6")
pytest.importorskip("pytestqt")

from pointset_normals.worker import ComputationThread


def test_thread_runs_function(qtbot) -> None:
    thread = ComputationThread(lambda: 42)
    with qtbot.waitSignals(
        [thread.computation_started, thread.computation_succeeded, thread.computation_finished],
        timeout=5000,
    ):
        thread.start()
    thread.wait()
    assert thread.result == 42


def test_thread_reports_failure(qtbot) -> None:
    def boom() -> None:
        raise ValueError("boom")

    thread = ComputationThread(boom)
    with qtbot.waitSignal(thread.computation_failed, timeout=5000) as blocker:
        thread.start()
    thread.wait()
    assert blocker.args == ["boom"]
    assert thread.result is None


def test_thread_without_function_fails(qtbot) -> None:
    thread = ComputationThread()
    with qtbot.waitSignal(thread.computation_failed, timeout=5000):
        thread.start()
    thread.wait()


def test_thread_updates_filter(qtbot, plane_points) -> None:
    pv = pytest.importorskip("pyvista")
    pytest.importorskip("open3d")
    from pointset_normals.normals import NormalEstimationFilter, NormalEstimationParams

    normal_filter = NormalEstimationFilter(NormalEstimationParams(radius=0.25))
    normal_filter.set_input(pv.PolyData(plane_points))
    thread = ComputationThread(normal_filter.update)
    with qtbot.waitSignal(thread.computation_finished, timeout=10000):
        thread.start()
    thread.wait()
    assert normal_filter.output is not None
    assert normal_filter.output.n_points == len(plane_points)


def test_float_slider_maps_range(qtbot) -> None:
    pytest.importorskip("pyvistaqt")
    from pointset_normals.gui import FloatSlider

    slider = FloatSlider(0.0, 2.0, 0.5, steps=200)
    qtbot.addWidget(slider)
    assert slider.value() == pytest.approx(0.5)

    with qtbot.waitSignal(slider.value_changed) as blocker:
        slider.slider.setValue(150)
    assert blocker.args[0] == pytest.approx(1.5)

    slider.set_value(99.0)
    assert slider.value() == pytest.approx(2.0)
