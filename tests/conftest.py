"""Shared test fixtures for tfmirror."""

from __future__ import annotations

import os
from collections.abc import Callable, Iterator
from pathlib import Path

import pytest

from tfmirror.core.registry import ArtifactRegistry
from tfmirror.storage.local import LocalBlobStore

PROVIDER_NAME = "terraform-provider-enos"
PROVIDER_ID = "hashicorp.com/qti/enos"
SRC_BUCKET = "enos-staging-mirror"
DEST_BUCKET = "enos-release-mirror"

# 2023-11-14T22:13:20Z, comfortably inside the zip timestamp range
FIXED_MTIME = 1_700_000_000


@pytest.fixture
def tmp_dir(tmp_path: Path) -> Path:
    """Provide a temporary directory for test artifacts."""
    return tmp_path


@pytest.fixture
def store(tmp_dir: Path) -> LocalBlobStore:
    """Provide a LocalBlobStore with the source and destination buckets created."""
    local = LocalBlobStore(tmp_dir / "buckets")
    local.create_bucket(SRC_BUCKET)
    local.create_bucket(DEST_BUCKET)
    return local


@pytest.fixture
def registry() -> Iterator[ArtifactRegistry]:
    """Provide an open ArtifactRegistry that is closed after the test."""
    with ArtifactRegistry(PROVIDER_NAME) as mirror:
        yield mirror


@pytest.fixture
def make_binary(tmp_dir: Path) -> Callable[..., Path]:
    """Factory fixture: write a fake provider binary and return its path."""

    def _factory(
        name: str = f"{PROVIDER_NAME}_v1.2.3",
        content: bytes = b"\x7fELF fake provider binary",
        directory: Path | None = None,
        mtime: float = FIXED_MTIME,
        mode: int = 0o755,
    ) -> Path:
        directory = directory or tmp_dir / "bin"
        directory.mkdir(parents=True, exist_ok=True)
        path = directory / name
        path.write_bytes(content)
        path.chmod(mode)
        os.utime(path, (mtime, mtime))
        return path

    return _factory


@pytest.fixture
def make_dist(tmp_dir: Path, make_binary: Callable[..., Path]) -> Callable[..., Path]:
    """Factory fixture: build a goreleaser-style dist tree.

    ``targets`` maps ``(platform, arch)`` to binary content.
    """

    def _factory(
        version: str = "1.2.3",
        targets: dict[tuple[str, str], bytes] | None = None,
        root: Path | None = None,
    ) -> Path:
        root = root or tmp_dir / "dist"
        targets = targets or {
            ("linux", "amd64"): b"linux-amd64-binary",
            ("darwin", "arm64"): b"darwin-arm64-binary",
        }
        for (platform, arch), content in targets.items():
            make_binary(
                name=f"{PROVIDER_NAME}_{version}",
                content=content,
                directory=root / f"{PROVIDER_NAME}_{platform}_{arch}",
            )
        return root

    return _factory


@pytest.fixture
def published_mirror(
    store: LocalBlobStore, make_dist: Callable[..., Path]
) -> Callable[..., Path]:
    """Factory fixture: populate *bucket* with a version built from a fresh dist tree."""

    def _factory(
        version: str = "1.2.3",
        bucket: str = SRC_BUCKET,
        targets: dict[tuple[str, str], bytes] | None = None,
    ) -> Path:
        dist = make_dist(
            version=version,
            targets=targets,
            root=store.root.parent / f"dist-{bucket}-{version}",
        )
        with ArtifactRegistry(PROVIDER_NAME) as mirror:
            mirror.load_remote_index(store, bucket, PROVIDER_ID)
            mirror.add_binaries_from(dist)
            mirror.write_metadata()
            mirror.publish_to_remote_bucket(store, bucket, PROVIDER_ID)
        return dist

    return _factory


def bucket_snapshot(store: LocalBlobStore, bucket: str) -> dict[str, bytes]:
    """All objects in a local bucket, keyed by their ``/``-separated key."""
    root = store.root / bucket
    return {
        p.relative_to(root).as_posix(): p.read_bytes()
        for p in sorted(root.rglob("*"))
        if p.is_file()
    }


@pytest.fixture
def snapshot(store: LocalBlobStore) -> Callable[[str], dict[str, bytes]]:
    """Provide ``bucket_snapshot`` bound to the test store."""
    return lambda bucket: bucket_snapshot(store, bucket)
