"""Typer-based CLI for the point set normals application."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

import typer

from .io import load_point_set, save_point_set
from .logging_config import setup_logging
from .normals import (
    NeighborhoodMode,
    NormalEstimationFilter,
    NormalEstimationParams,
    NormalOrientation,
)

app = typer.Typer(name="pointset-normals", help="Estimate and inspect point set normals")


def _parse_camera(camera: Optional[str]) -> Optional[tuple[float, float, float]]:
    if camera is None:
        return None
    parts = [p.strip() for p in camera.split(",") if p.strip()]
    if len(parts) != 3:
        raise typer.BadParameter("Camera must be formatted as 'cx,cy,cz'")
    try:
        return tuple(float(v) for v in parts)  # type: ignore[return-value]
    except ValueError as exc:
        raise typer.BadParameter(f"Camera values must be numbers: {camera}") from exc


@app.callback()
def main(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging"),
    log_file: Optional[Path] = typer.Option(None, help="Also write logs to this file"),
) -> None:
    setup_logging(
        level=logging.DEBUG if verbose else logging.INFO,
        log_file=log_file,
    )


@app.command()
def gui(
    path: Optional[Path] = typer.Argument(None, help="Point set to open on startup"),
) -> None:
    """Launch the interactive window."""

    from .gui import run_gui
    from .settings import ViewerSettings

    raise typer.Exit(code=run_gui(path, settings=ViewerSettings.from_env()))


@app.command()
def estimate(
    in_path: Path = typer.Option(..., "--in", help="Input point set"),
    out_path: Path = typer.Option(..., "--out", help="Output point set (.vtp recommended)"),
    mode: NeighborhoodMode = typer.Option(NeighborhoodMode.RADIUS, help="Neighbourhood mode"),
    radius: float = typer.Option(1.0, help="Neighbourhood radius"),
    k_neighbors: int = typer.Option(30, "--k", help="k neighbours (knn mode)"),
    max_nn: int = typer.Option(0, "--max-nn", help="Neighbour cap for radius mode (0 disables)"),
    orient: NormalOrientation = typer.Option(NormalOrientation.NONE, help="Normal orientation"),
    camera: Optional[str] = typer.Option(None, help="Camera location for viewpoint orientation"),
    consistent_k: int = typer.Option(30, help="k for consistent orientation"),
) -> None:
    """Estimate normals without the GUI and write the result."""

    params = NormalEstimationParams(
        mode=mode,
        radius=radius,
        k_neighbors=k_neighbors,
        max_nn=max_nn or None,
    )
    try:
        params.validate()
    except ValueError as exc:
        raise typer.BadParameter(str(exc)) from exc
    camera_location = _parse_camera(camera)
    if orient is NormalOrientation.VIEWPOINT and camera_location is None:
        raise typer.BadParameter("--camera is required for viewpoint orientation")
    if orient is NormalOrientation.CONSISTENT and consistent_k <= 0:
        raise typer.BadParameter("--consistent-k must be positive")

    loaded = load_point_set(in_path)
    normal_filter = NormalEstimationFilter(params)
    normal_filter.set_input(loaded.mesh)
    normal_filter.update()
    if orient is not NormalOrientation.NONE:
        normal_filter.orient(orient, camera_location=camera_location, consistent_k=consistent_k)

    written = save_point_set(normal_filter.output, out_path)
    typer.echo(f"Wrote {loaded.n_points} points with normals to {written}")


if __name__ == "__main__":  # pragma: no cover - CLI entry
    app()
