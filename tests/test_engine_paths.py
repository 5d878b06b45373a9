"""Tests for engine executable path resolution."""

from __future__ import annotations

from pathlib import Path

from enginelines import engine_paths
from enginelines.engine_paths import resolve_engine_path


class TestResolveEnginePath:
    def test_absolute_path_is_unchanged(self, tmp_path: Path) -> None:
        engine = tmp_path / "stockfish"
        assert resolve_engine_path(str(engine)) == engine

    def test_relative_uses_base_dir(self, tmp_path: Path) -> None:
        path = resolve_engine_path("engines/stockfish", relative=True, base_dir=tmp_path)
        assert path == tmp_path / "engines" / "stockfish"

    def test_relative_defaults_to_app_data(self, tmp_path: Path, monkeypatch) -> None:
        monkeypatch.setattr(engine_paths, "app_data_dir", lambda: tmp_path)
        assert resolve_engine_path("sf", relative=True) == tmp_path / "sf"

    def test_app_data_dir_is_a_path(self, qapp: object) -> None:
        del qapp
        assert isinstance(engine_paths.app_data_dir(), Path)
