"""PySide6 GUI for interactive normal estimation on point sets."""

from __future__ import annotations

import logging
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

try:  # pragma: no cover - optional dependency guard
    from PySide6.QtCore import Qt, Signal
    from PySide6.QtGui import QAction, QCloseEvent, QKeySequence
    from PySide6.QtWidgets import (
        QApplication,
        QCheckBox,
        QComboBox,
        QFileDialog,
        QFormLayout,
        QGroupBox,
        QHBoxLayout,
        QLabel,
        QMainWindow,
        QMessageBox,
        QProgressBar,
        QPushButton,
        QSlider,
        QVBoxLayout,
        QWidget,
    )
    from pyvistaqt import QtInteractor
except ModuleNotFoundError as exc:  # pragma: no cover
    raise RuntimeError(
        "PySide6 and pyvistaqt are required for pointset_normals.gui; install the package dependencies"
    ) from exc

import pyvista as pv

from .io import LoadedPointSet, find_normals, load_point_set, save_point_set
from .normals import NormalEstimationFilter, NormalEstimationParams, NormalOrientation
from .settings import ViewerSettings
from .visualize import (
    GlyphParams,
    build_arrow_glyphs,
    build_radius_sphere,
    normal_colors,
    points_only,
)
from .worker import ComputationThread

logger = logging.getLogger(__name__)

POINTS_ACTOR = "points"
SPHERE_ACTOR = "radius_sphere"
NORMALS_ACTOR = "normals"
DEFAULT_SAVE_SUFFIX = ".vtp"


class FloatSlider(QWidget):
    """Horizontal slider mapping its integer positions onto a float range."""

    value_changed = Signal(float)

    def __init__(
        self,
        minimum: float,
        maximum: float,
        value: float,
        steps: int = 1000,
        parent: Optional[QWidget] = None,
    ) -> None:
        super().__init__(parent)
        if maximum <= minimum:
            raise ValueError("maximum must be greater than minimum")
        self._minimum = float(minimum)
        self._maximum = float(maximum)
        self._steps = int(steps)

        layout = QHBoxLayout(self)
        layout.setContentsMargins(0, 0, 0, 0)
        self.slider = QSlider(Qt.Orientation.Horizontal)
        self.slider.setRange(0, self._steps)
        self.label = QLabel()
        self.label.setMinimumWidth(48)
        layout.addWidget(self.slider, 1)
        layout.addWidget(self.label)

        self.set_value(value)
        self._update_label()
        self.slider.valueChanged.connect(self._on_position_changed)  # type: ignore[arg-type]

    def _to_value(self, position: int) -> float:
        span = self._maximum - self._minimum
        return self._minimum + span * position / self._steps

    def _to_position(self, value: float) -> int:
        clamped = min(max(float(value), self._minimum), self._maximum)
        span = self._maximum - self._minimum
        return int(round((clamped - self._minimum) / span * self._steps))

    def _update_label(self) -> None:
        self.label.setText(f"{self.value():.3g}")

    def _on_position_changed(self, position: int) -> None:
        self._update_label()
        self.value_changed.emit(self._to_value(position))

    def value(self) -> float:
        return self._to_value(self.slider.value())

    def set_value(self, value: float) -> None:
        self.slider.setValue(self._to_position(value))


@dataclass
class AppState:
    """Mutable GUI state."""

    loaded: Optional[LoadedPointSet] = None
    normals_mesh: Optional[pv.PolyData] = None


class PointSetProcessingWindow(QMainWindow):
    """Main window: load a point set, estimate normals, show and save them."""

    def __init__(
        self,
        file_name: Optional[str | Path] = None,
        settings: Optional[ViewerSettings] = None,
    ) -> None:
        super().__init__()
        self.settings = settings or ViewerSettings()
        self.settings.validate()
        self.state = AppState()
        self.setWindowTitle("Point Set Normals")
        self.resize(1100, 720)

        self.normal_filter = NormalEstimationFilter(
            NormalEstimationParams(radius=self.settings.radius_default)
        )
        self.glyph_params = GlyphParams(
            scale=self.settings.arrow_size_default,
            every=self.settings.glyph_every,
        )

        self._build_ui()

        self.computation = ComputationThread(self.normal_filter.update, self)
        self.computation.computation_started.connect(self.on_computation_started)  # type: ignore[arg-type]
        self.computation.computation_finished.connect(self.on_computation_finished)  # type: ignore[arg-type]
        self.computation.computation_succeeded.connect(self.on_normal_estimation_complete)  # type: ignore[arg-type]
        self.computation.computation_failed.connect(self.on_computation_failed)  # type: ignore[arg-type]

        if file_name is not None:
            self._open_and_report(file_name)

    # region UI setup
    def _build_ui(self) -> None:
        self._build_menu()

        central = QWidget(self)
        layout = QHBoxLayout(central)
        layout.setContentsMargins(8, 8, 8, 8)

        controls = QWidget()
        controls.setFixedWidth(320)
        side = QVBoxLayout(controls)
        side.setContentsMargins(0, 0, 0, 0)
        side.addWidget(self._build_normals_group())
        side.addWidget(self._build_view_group())

        # Marquee mode
        self.progress_bar = QProgressBar()
        self.progress_bar.setRange(0, 0)
        self.progress_bar.hide()
        side.addWidget(self.progress_bar)
        side.addStretch()

        self.plotter = QtInteractor(self)
        self.plotter.set_background(self.settings.background)

        layout.addWidget(controls)
        layout.addWidget(self.plotter, 1)
        self.setCentralWidget(central)
        self.statusBar().showMessage("Open a point set to begin")

    def _build_menu(self) -> None:
        file_menu = self.menuBar().addMenu("&File")

        self.action_open = QAction("&Open...", self)
        self.action_open.setShortcut(QKeySequence.StandardKey.Open)
        self.action_open.triggered.connect(self.on_open_triggered)  # type: ignore[arg-type]
        file_menu.addAction(self.action_open)

        self.action_save = QAction("&Save...", self)
        self.action_save.setShortcut(QKeySequence.StandardKey.Save)
        self.action_save.triggered.connect(self.on_save_triggered)  # type: ignore[arg-type]
        file_menu.addAction(self.action_save)

        file_menu.addSeparator()
        action_quit = QAction("&Quit", self)
        action_quit.setShortcut(QKeySequence.StandardKey.Quit)
        action_quit.triggered.connect(self.close)  # type: ignore[arg-type]
        file_menu.addAction(action_quit)

    def _build_normals_group(self) -> QWidget:
        group = QGroupBox("Normals")
        form = QFormLayout(group)

        self.radius_slider = FloatSlider(
            self.settings.radius_min,
            self.settings.radius_max,
            self.settings.radius_default,
            steps=self.settings.slider_steps,
        )
        self.radius_slider.value_changed.connect(self.on_neighbor_radius_changed)  # type: ignore[arg-type]
        form.addRow("Neighbour radius", self.radius_slider)

        self.generate_button = QPushButton("Generate normals")
        self.generate_button.clicked.connect(self.on_generate_normals_clicked)  # type: ignore[arg-type]
        form.addRow(self.generate_button)

        self.orient_combo = QComboBox()
        self.orient_combo.addItems(
            [
                NormalOrientation.Z_UP.value,
                NormalOrientation.VIEWPOINT.value,
                NormalOrientation.CONSISTENT.value,
            ]
        )
        form.addRow("Orientation", self.orient_combo)

        self.orient_button = QPushButton("Orient normals")
        self.orient_button.clicked.connect(self.on_orient_normals_clicked)  # type: ignore[arg-type]
        form.addRow(self.orient_button)
        return group

    def _build_view_group(self) -> QWidget:
        group = QGroupBox("Visualisation")
        form = QFormLayout(group)

        self.arrow_slider = FloatSlider(
            self.settings.arrow_size_min,
            self.settings.arrow_size_max,
            self.settings.arrow_size_default,
            steps=self.settings.slider_steps,
        )
        self.arrow_slider.value_changed.connect(self.on_arrow_size_changed)  # type: ignore[arg-type]
        form.addRow("Arrow size", self.arrow_slider)

        self.show_sphere_check = QCheckBox("Show radius sphere")
        self.show_sphere_check.setChecked(True)
        self.show_sphere_check.toggled.connect(lambda _checked: self._refresh_sphere())  # type: ignore[arg-type]
        form.addRow(self.show_sphere_check)

        self.color_normals_check = QCheckBox("Color points by normals")
        self.color_normals_check.toggled.connect(lambda _checked: self._refresh_points())  # type: ignore[arg-type]
        form.addRow(self.color_normals_check)
        return group

    # endregion

    # region helpers
    def _show_error(self, message: str) -> None:
        QMessageBox.critical(self, "Error", message)

    def _set_busy(self, busy: bool) -> None:
        self.generate_button.setEnabled(not busy)
        self.orient_button.setEnabled(not busy)
        self.action_open.setEnabled(not busy)
        self.action_save.setEnabled(not busy)

    def _open_and_report(self, file_name: str | Path) -> bool:
        try:
            self.open_file(file_name)
        except (OSError, ValueError) as exc:
            logger.error("Could not open %s: %s", file_name, exc)
            self._show_error(f"Could not open {file_name}:\n{exc}")
            return False
        return True

    def _refresh_points(self) -> None:
        if self.state.loaded is None:
            return
        display = points_only(self.state.loaded.mesh)
        normals = None
        if self.color_normals_check.isChecked():
            source = self.state.normals_mesh
            if source is None:
                source = self.state.loaded.mesh
            normals = find_normals(source)
        if normals is not None:
            display.point_data["colors"] = normal_colors(normals)
            self.plotter.add_mesh(
                display,
                name=POINTS_ACTOR,
                scalars="colors",
                rgb=True,
                point_size=self.settings.point_size,
                render_points_as_spheres=True,
                reset_camera=False,
            )
        else:
            self.plotter.add_mesh(
                display,
                name=POINTS_ACTOR,
                color="gray",
                point_size=self.settings.point_size,
                render_points_as_spheres=True,
                reset_camera=False,
            )
        self.plotter.render()

    def _refresh_sphere(self) -> None:
        if self.state.loaded is None or not self.show_sphere_check.isChecked():
            self.plotter.remove_actor(SPHERE_ACTOR, render=True)
            return
        center = self.state.loaded.mesh.points[0]
        sphere = build_radius_sphere(center, self.normal_filter.radius)
        self.plotter.add_mesh(
            sphere,
            name=SPHERE_ACTOR,
            color="lightblue",
            opacity=self.settings.sphere_opacity,
            reset_camera=False,
        )
        self.plotter.render()

    def _refresh_glyphs(self) -> None:
        if self.state.normals_mesh is None:
            self.plotter.remove_actor(NORMALS_ACTOR, render=True)
            return
        glyphs = build_arrow_glyphs(self.state.normals_mesh, self.glyph_params)
        self.plotter.add_mesh(glyphs, name=NORMALS_ACTOR, color="red", reset_camera=False)
        self.plotter.render()

    # endregion

    # region operations
    def open_file(self, file_name: str | Path) -> LoadedPointSet:
        """Load ``file_name`` into the pipeline and reset the view."""

        loaded = load_point_set(file_name)
        self.state.loaded = loaded
        self.state.normals_mesh = None
        self.normal_filter.set_input(loaded.mesh)

        self._refresh_points()
        self._refresh_glyphs()
        self.plotter.reset_camera()
        self._refresh_sphere()
        self.statusBar().showMessage(
            f"Loaded {loaded.path.name} ({loaded.n_points} points, normals: {loaded.has_normals})"
        )
        return loaded

    def save_file(self, file_name: str | Path) -> Path:
        """Write the point set with its estimated normals."""

        output = self.normal_filter.output
        if output is None:
            raise ValueError("Generate normals before saving")
        return save_point_set(output, file_name)

    # endregion

    # region slots
    def on_open_triggered(self) -> None:
        file_name, _ = QFileDialog.getOpenFileName(
            self,
            "Open File",
            str(Path.cwd()),
            self.settings.file_filter,
        )
        if not file_name:
            return
        self._open_and_report(file_name)

    def on_save_triggered(self) -> None:
        file_name, _ = QFileDialog.getSaveFileName(
            self, "Save File", str(Path.cwd()), self.settings.save_filter
        )
        if not file_name:
            logger.warning("File not saved.")
            return
        path = Path(file_name)
        if not path.suffix:
            path = path.with_suffix(DEFAULT_SAVE_SUFFIX)
        try:
            path = self.save_file(path)
        except (OSError, ValueError) as exc:
            logger.error("Could not save %s: %s", path, exc)
            self._show_error(str(exc))
            return
        self.statusBar().showMessage(f"Saved {path.name}")

    def on_generate_normals_clicked(self) -> None:
        if self.state.loaded is None:
            self._show_error("No point set loaded")
            return
        if self.computation.isRunning():
            logger.info("Normal estimation already running; request ignored")
            return
        self._set_busy(True)
        self.computation.start()

    def on_orient_normals_clicked(self) -> None:
        if self.state.normals_mesh is None:
            self._show_error("Generate normals before orienting them")
            return
        strategy = NormalOrientation(self.orient_combo.currentText())
        camera = None
        if strategy is NormalOrientation.VIEWPOINT:
            camera = self.plotter.camera_position[0]
        try:
            oriented = self.normal_filter.orient(strategy, camera_location=camera)
        except (RuntimeError, ValueError) as exc:
            logger.error("Orientation failed: %s", exc)
            self._show_error(str(exc))
            return
        self.state.normals_mesh = oriented.copy()
        self._refresh_glyphs()
        self._refresh_points()
        self.statusBar().showMessage(f"Normals oriented ({strategy.value})")

    def on_computation_started(self) -> None:
        self.progress_bar.show()
        self.statusBar().showMessage("Estimating normals...")

    def on_computation_finished(self) -> None:
        self.progress_bar.hide()
        self._set_busy(False)

    def on_computation_failed(self, message: str) -> None:
        self.statusBar().showMessage("Normal estimation failed")
        self._show_error(f"Normal estimation failed:\n{message}")

    def on_normal_estimation_complete(self) -> None:
        output = self.normal_filter.output
        if output is None:
            return
        self.state.normals_mesh = output.copy()
        self._refresh_glyphs()
        self._refresh_points()
        self.statusBar().showMessage(
            f"Estimated normals for {output.n_points} points (radius {self.normal_filter.radius:.3g})"
        )

    def on_neighbor_radius_changed(self, value: float) -> None:
        self.normal_filter.radius = value
        self._refresh_sphere()

    def on_arrow_size_changed(self, value: float) -> None:
        self.glyph_params.scale = value
        self._refresh_glyphs()

    # endregion

    def closeEvent(self, event: QCloseEvent) -> None:
        if self.computation.isRunning():
            self.computation.wait()
        self.plotter.close()
        super().closeEvent(event)


def run_gui(file_name: Optional[str | Path] = None, settings: Optional[ViewerSettings] = None) -> int:
    """Launch the PySide6 application."""

    app = QApplication.instance()
    owns_app = False
    if app is None:
        app = QApplication(sys.argv)
        owns_app = True
    window = PointSetProcessingWindow(file_name, settings=settings)
    window.show()
    if owns_app:
        return app.exec()
    return 0
