"""Unit tests for workspace path resolution."""

from __future__ import annotations

import os
from pathlib import Path

import pytest

from mobide.errors import InvalidPathError, InvalidSessionError
from mobide.validators.path import resolve_session_root, resolve_workspace_path


class TestResolveSessionRoot:
    def test_plain_id_resolves_under_root(self, tmp_path: Path):
        assert resolve_session_root(tmp_path, "abc-123") == tmp_path / "abc-123"

    @pytest.mark.parametrize(
        "session_id",
        ["", ".", "..", "../other", "a/b", "/abs", "x\x00y"],
    )
    def test_rejects_ids_that_are_not_a_single_component(self, tmp_path: Path, session_id: str):
        with pytest.raises(InvalidSessionError):
            resolve_session_root(tmp_path, session_id)


class TestResolveWorkspacePath:
    @pytest.mark.parametrize("target", ["", ".", None])
    def test_empty_target_is_workspace_root(self, tmp_path: Path, target):
        result = resolve_workspace_path(tmp_path, "s1", target)

        assert result.base == tmp_path / "s1"
        assert result.resolved == tmp_path / "s1"
        assert result.is_root

    def test_nested_relative_path(self, tmp_path: Path):
        result = resolve_workspace_path(tmp_path, "s1", "src/app/main.py")

        assert result.resolved == tmp_path / "s1" / "src" / "app" / "main.py"
        assert not result.is_root

    def test_redundant_segments_are_normalized(self, tmp_path: Path):
        result = resolve_workspace_path(tmp_path, "s1", "./src//main.py")

        assert result.resolved == tmp_path / "s1" / "src" / "main.py"

    @pytest.mark.parametrize(
        "target",
        [
            "..",
            "../s2/secret.txt",
            "a/../../s2",
            "a/../b",
            "/etc/passwd",
            "/",
            "a/\x00b",
        ],
    )
    def test_rejects_escaping_targets(self, tmp_path: Path, target: str):
        with pytest.raises(InvalidPathError):
            resolve_workspace_path(tmp_path, "s1", target)

    def test_invalid_session_is_reported_before_path(self, tmp_path: Path):
        with pytest.raises(InvalidSessionError):
            resolve_workspace_path(tmp_path, "..", "file.txt")

    def test_resolution_does_not_touch_disk(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch):
        """Both accepted and rejected paths are decided lexically."""
        root = tmp_path / "missing-root"

        def _no_stat(*args, **kwargs):
            raise AssertionError("filesystem accessed")

        with monkeypatch.context() as m:
            m.setattr(os, "stat", _no_stat)
            m.setattr(os, "lstat", _no_stat)
            ok = resolve_workspace_path(root, "s1", "a/b.txt")
            with pytest.raises(InvalidPathError):
                resolve_workspace_path(root, "s1", "../../etc/passwd")

        assert ok.resolved == root / "s1" / "a" / "b.txt"
        assert not root.exists()
