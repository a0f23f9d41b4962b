"""Point set normals package entry point."""

from __future__ import annotations

__all__ = ["main"]


def main() -> None:
    """Run the command-line interface."""

    from .cli import app

    app()


if __name__ == "__main__":  # pragma: no cover - convenience entry point
    main()
