"""Tests for viewer settings and logging setup."""

from __future__ import annotations

import logging

import pytest

from pointset_normals.logging_config import setup_logging
from pointset_normals.settings import ViewerSettings


def test_defaults_are_valid() -> None:
    settings = ViewerSettings()
    settings.validate()
    assert settings.sphere_opacity == pytest.approx(0.2)


def test_env_overrides() -> None:
    env = {
        "POINTSET_NORMALS_RADIUS_DEFAULT": "2.5",
        "POINTSET_NORMALS_GLYPH_EVERY": "5",
        "POINTSET_NORMALS_BACKGROUND": "black",
    }
    settings = ViewerSettings.from_env(env)
    assert settings.radius_default == pytest.approx(2.5)
    assert settings.glyph_every == 5
    assert settings.background == "black"


def test_env_rejects_bad_values() -> None:
    with pytest.raises(ValueError):
        ViewerSettings.from_env({"POINTSET_NORMALS_SLIDER_STEPS": "many"})
    with pytest.raises(ValueError):
        ViewerSettings.from_env({"POINTSET_NORMALS_RADIUS_DEFAULT": "50"})


def test_setup_logging_is_idempotent(tmp_path) -> None:
    log_file = tmp_path / "run.log"
    setup_logging(logging.DEBUG)
    logger = setup_logging(logging.DEBUG, log_file=str(log_file))
    assert len(logger.handlers) == 2
    logger.info("hello")
    for handler in logger.handlers:
        handler.flush()
    assert "hello" in log_file.read_text(encoding="utf-8")
    assert logging.getLogger("vtkmodules").level == logging.WARNING
    logger.handlers.clear()
