"""Tests for goreleaser dist tree discovery."""

from __future__ import annotations

from collections.abc import Callable
from pathlib import Path

import pytest

from tfmirror.core.discovery import discover_binaries

PROVIDER = "terraform-provider-enos"


def _found(dist: Path) -> list[tuple[str, str, str, str]]:
    return sorted(
        (b.version, b.platform, b.arch, b.path.name) for b in discover_binaries(dist, PROVIDER)
    )


class TestDiscoverBinaries:
    def test_finds_each_target(self, make_dist: Callable[..., Path]):
        dist = make_dist(version="0.4.2")
        assert _found(dist) == [
            ("0.4.2", "darwin", "arm64", f"{PROVIDER}_0.4.2"),
            ("0.4.2", "linux", "amd64", f"{PROVIDER}_0.4.2"),
        ]

    def test_paths_are_absolute(self, make_dist: Callable[..., Path]):
        dist = make_dist()
        assert all(b.path.is_absolute() for b in discover_binaries(dist, PROVIDER))

    def test_skips_non_matching_directories(self, make_dist: Callable[..., Path], make_binary: Callable[..., Path]):
        dist = make_dist(targets={("linux", "amd64"): b"bin"})
        make_binary(name=f"{PROVIDER}_1.2.3", directory=dist / "other-provider_linux_amd64")
        make_binary(name=f"{PROVIDER}_1.2.3", directory=dist / "artifacts")
        (dist / "checksums.txt").write_text("not a build dir")

        assert _found(dist) == [("1.2.3", "linux", "amd64", f"{PROVIDER}_1.2.3")]

    def test_skips_directories_without_binary(self, tmp_dir: Path, make_binary: Callable[..., Path]):
        dist = tmp_dir / "dist"
        make_binary(name="README.md", directory=dist / f"{PROVIDER}_linux_amd64")
        assert _found(dist) == []

    def test_ignores_subdirectories_named_like_binaries(self, tmp_dir: Path, make_binary: Callable[..., Path]):
        dist = tmp_dir / "dist"
        build_dir = dist / f"{PROVIDER}_linux_amd64"
        (build_dir / f"{PROVIDER}_9.9.9").mkdir(parents=True)
        make_binary(name=f"{PROVIDER}_1.0.0", directory=build_dir)
        assert _found(dist) == [("1.0.0", "linux", "amd64", f"{PROVIDER}_1.0.0")]

    def test_provider_name_is_literal(self, tmp_dir: Path, make_binary: Callable[..., Path]):
        dist = tmp_dir / "dist"
        make_binary(name="terraform-provider-enos_1.0.0", directory=dist / "terraform-provider-enos_linux_amd64")
        assert list(discover_binaries(dist, "terraform.provider.enos")) == []

    def test_nested_build_directories(self, tmp_dir: Path, make_binary: Callable[..., Path]):
        dist = tmp_dir / "dist"
        make_binary(name=f"{PROVIDER}_2.0.0", directory=dist / "nested" / f"{PROVIDER}_freebsd_386")
        assert _found(dist) == [("2.0.0", "freebsd", "386", f"{PROVIDER}_2.0.0")]

    def test_missing_dist_dir(self, tmp_dir: Path):
        with pytest.raises(NotADirectoryError):
            list(discover_binaries(tmp_dir / "missing", PROVIDER))
