"""Adversarial tests: racing promoters, mid-copy failures, deadline expiry.

The destination index must never list a version whose objects were not all
copied, and a promotion that failed part-way must be safe to re-run.
"""

from __future__ import annotations

from collections.abc import Callable
from pathlib import Path

import pytest

from tfmirror.core.errors import IndexConflictError
from tfmirror.core.promotion import PromoteRequest, promote
from tfmirror.core.registry import ArtifactRegistry
from tfmirror.models.mirror import MirrorIndex
from tfmirror.storage import Deadline, DeadlineBlobStore, DeadlineExceededError, LocalBlobStore

PREFIX = "hashicorp.com/qti/enos"
SRC = "enos-staging-mirror"
DEST = "enos-release-mirror"
DEST_INDEX = f"{PREFIX}/index.json"


class _RacingStore(LocalBlobStore):
    """Lets a competing promoter publish the destination index just before we do."""

    def __init__(self, root: Path, competing_index: bytes) -> None:
        super().__init__(root)
        self._competing_index = competing_index
        self.raced = False

    def put_object(self, bucket, key, data, content_type=None, *, if_match=None, if_none_match=None):
        if bucket == DEST and key == DEST_INDEX and not self.raced:
            self.raced = True
            super().put_object(bucket, key, self._competing_index, "application/json")
        return super().put_object(
            bucket, key, data, content_type, if_match=if_match, if_none_match=if_none_match
        )


class _FlakyCopyStore(LocalBlobStore):
    """Fails the n-th server-side copy."""

    def __init__(self, root: Path, fail_on: int) -> None:
        super().__init__(root)
        self._fail_on = fail_on
        self.copies = 0

    def copy_object(self, dest_bucket, dest_key, source_bucket, source_key):
        self.copies += 1
        if self.copies == self._fail_on:
            raise ConnectionError("connection reset by peer")
        super().copy_object(dest_bucket, dest_key, source_bucket, source_key)


def _dest_has_version(store: LocalBlobStore, version: str) -> bool:
    with ArtifactRegistry("terraform-provider-enos") as mirror:
        mirror.load_remote_index(store, DEST, PREFIX)
        return mirror.has_version(version)


class TestConcurrentPromotion:
    def test_first_writer_wins_on_first_run(
        self, store: LocalBlobStore, published_mirror: Callable[..., Path]
    ):
        published_mirror(version="1.2.3")
        competitor = MirrorIndex.from_versions(["1.2.3"]).as_json().encode()
        racing = _RacingStore(store.root, competitor)

        with pytest.raises(IndexConflictError):
            promote(PromoteRequest(version="1.2.3", src_bucket=SRC, dest_bucket=DEST), racing, racing)

        assert racing.raced
        assert store.get_object(DEST, DEST_INDEX) == competitor

    def test_first_writer_wins_on_existing_index(
        self, store: LocalBlobStore, published_mirror: Callable[..., Path]
    ):
        published_mirror(version="1.0.0", bucket=DEST)
        published_mirror(version="1.2.3")
        competitor = MirrorIndex.from_versions(["1.0.0", "2.0.0"]).as_json().encode()
        racing = _RacingStore(store.root, competitor)

        with pytest.raises(IndexConflictError):
            promote(PromoteRequest(version="1.2.3", src_bucket=SRC, dest_bucket=DEST), racing, racing)

        index = MirrorIndex.from_json(store.get_object(DEST, DEST_INDEX))
        assert index.version_list() == ["1.0.0", "2.0.0"]


class TestPartialFailure:
    def test_failed_copy_leaves_version_unpublished(
        self, store: LocalBlobStore, published_mirror: Callable[..., Path]
    ):
        published_mirror(version="1.2.3")
        flaky = _FlakyCopyStore(store.root, fail_on=2)

        with pytest.raises(ConnectionError):
            promote(PromoteRequest(version="1.2.3", src_bucket=SRC, dest_bucket=DEST), flaky, flaky)

        assert flaky.copies == 2
        assert _dest_has_version(store, "1.2.3") is False

    def test_retry_after_failed_copy_succeeds(
        self,
        store: LocalBlobStore,
        published_mirror: Callable[..., Path],
        snapshot: Callable[[str], dict[str, bytes]],
    ):
        published_mirror(version="1.2.3")
        flaky = _FlakyCopyStore(store.root, fail_on=3)
        request = PromoteRequest(version="1.2.3", src_bucket=SRC, dest_bucket=DEST)

        with pytest.raises(ConnectionError):
            promote(request, flaky, flaky)

        promote(request, store, store)

        assert _dest_has_version(store, "1.2.3") is True
        src, dest = snapshot(SRC), snapshot(DEST)
        for key, data in dest.items():
            if key != DEST_INDEX:
                assert src[key] == data


class _SteppingClock:
    """Advances one second every time it is read."""

    def __init__(self) -> None:
        self.now = 0.0

    def __call__(self) -> float:
        self.now += 1
        return self.now


class TestDeadline:
    def test_deadline_mid_promotion_leaves_version_unpublished(
        self, store: LocalBlobStore, published_mirror: Callable[..., Path]
    ):
        published_mirror(version="1.2.3")
        # Enough budget for the bucket and index checks, not for every copy.
        bounded = DeadlineBlobStore(store, Deadline(8, clock=_SteppingClock()))

        with pytest.raises(DeadlineExceededError):
            promote(
                PromoteRequest(version="1.2.3", src_bucket=SRC, dest_bucket=DEST), bounded, bounded
            )

        assert _dest_has_version(store, "1.2.3") is False
