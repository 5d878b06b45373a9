"""Helpers for locating engine executables."""

from __future__ import annotations

from pathlib import Path


def app_data_dir() -> Path:
    """Return the per-user application data directory."""
    from PyQt6.QtCore import QStandardPaths

    location = QStandardPaths.writableLocation(
        QStandardPaths.StandardLocation.AppDataLocation
    )
    return Path(location)


def resolve_engine_path(
    engine: str,
    *,
    relative: bool = False,
    base_dir: Path | None = None,
) -> Path:
    """Build the executable path for *engine*.

    With ``relative`` set, *engine* is taken as a path inside *base_dir*
    (the application data directory by default).
    """
    path = Path(engine).expanduser()
    if not relative:
        return path
    root = base_dir if base_dir is not None else app_data_dir()
    return root / path
