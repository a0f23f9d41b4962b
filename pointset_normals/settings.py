"""Viewer defaults, overridable from the environment."""

from __future__ import annotations

import os
from dataclasses import dataclass, fields
from typing import Mapping, Optional

ENV_PREFIX = "POINTSET_NORMALS_"


@dataclass(slots=True)
class ViewerSettings:
    """Slider ranges, defaults and rendering options for the window."""

    radius_min: float = 0.01
    radius_max: float = 10.0
    radius_default: float = 1.0
    arrow_size_min: float = 0.01
    arrow_size_max: float = 10.0
    arrow_size_default: float = 0.1
    slider_steps: int = 1000
    glyph_every: int = 1
    sphere_opacity: float = 0.2
    point_size: float = 3.0
    background: str = "white"
    file_filter: str = "VTP Files (*.vtp);;Point sets (*.vtp *.vtk *.ply *.pcd *.xyz *.txt)"
    save_filter: str = "VTP Files (*.vtp);;VTK Files (*.vtk);;PLY Files (*.ply);;PCD Files (*.pcd);;XYZ Files (*.xyz)"

    def validate(self) -> None:
        if not 0 < self.radius_min <= self.radius_default <= self.radius_max:
            raise ValueError("radius_default must lie within [radius_min, radius_max]")
        if not 0 < self.arrow_size_min <= self.arrow_size_default <= self.arrow_size_max:
            raise ValueError("arrow_size_default must lie within [arrow_size_min, arrow_size_max]")
        if self.slider_steps <= 0:
            raise ValueError("slider_steps must be positive")
        if self.glyph_every <= 0:
            raise ValueError("glyph_every must be positive")
        if not 0.0 <= self.sphere_opacity <= 1.0:
            raise ValueError("sphere_opacity must be within [0, 1]")

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "ViewerSettings":
        """Build settings, overriding defaults with ``POINTSET_NORMALS_*`` variables."""

        env = os.environ if environ is None else environ
        overrides: dict[str, object] = {}
        for f in fields(cls):
            raw = env.get(ENV_PREFIX + f.name.upper())
            if raw is None:
                continue
            kind = type(getattr(cls(), f.name))
            try:
                overrides[f.name] = kind(raw)
            except ValueError as exc:
                raise ValueError(f"Invalid value for {ENV_PREFIX + f.name.upper()}: {raw!r}") from exc
        settings = cls(**overrides)
        settings.validate()
        return settings
