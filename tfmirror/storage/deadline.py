"""Overall operation budget for a command.

A :class:`Deadline` starts when it is created. :class:`DeadlineBlobStore`
checks it before every storage call, so once the budget is spent the next
call fails with :class:`DeadlineExceededError` and the command aborts.
Nothing already written is rolled back.

The deadline is checked between calls, not during one: a call that starts
with budget left runs to completion. For S3 the only bound on a single call
is the client's socket timeouts, which the CLI sets from the budget
remaining at startup. A read timeout limits each socket read, not the whole
transfer, so a slow copy can overrun the deadline by up to one call.
"""

from __future__ import annotations

import time
from collections.abc import Callable

from tfmirror.config import DEFAULT_TIMEOUT_SECONDS
from tfmirror.storage.base import BlobStore, BlobStoreError, ObjectInfo


class DeadlineExceededError(BlobStoreError, TimeoutError):
    """The command's overall time budget ran out."""

    def __init__(self, operation: str, budget: float) -> None:
        super().__init__(f"deadline of {budget:g}s exceeded before {operation}")
        self.operation = operation
        self.budget = budget


class Deadline:
    """A fixed budget measured on a monotonic clock."""

    def __init__(
        self,
        seconds: float = DEFAULT_TIMEOUT_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if seconds <= 0:
            raise ValueError("deadline must be positive")
        self._budget = float(seconds)
        self._clock = clock
        self._expires_at = clock() + self._budget

    @property
    def budget(self) -> float:
        return self._budget

    def remaining(self) -> float:
        return max(0.0, self._expires_at - self._clock())

    @property
    def expired(self) -> bool:
        return self.remaining() <= 0

    def check(self, operation: str) -> None:
        if self.expired:
            raise DeadlineExceededError(operation, self._budget)


class DeadlineBlobStore:
    """Wraps a blob store, refusing new operations after the deadline.

    Operations already in progress are not interrupted.
    """

    def __init__(self, store: BlobStore, deadline: Deadline) -> None:
        self._store = store
        self._deadline = deadline

    @property
    def deadline(self) -> Deadline:
        return self._deadline

    def head_bucket(self, bucket: str) -> None:
        self._deadline.check(f"head_bucket {bucket}")
        self._store.head_bucket(bucket)

    def head_object(self, bucket: str, key: str) -> ObjectInfo:
        self._deadline.check(f"head_object {bucket}/{key}")
        return self._store.head_object(bucket, key)

    def get_object(self, bucket: str, key: str) -> bytes:
        self._deadline.check(f"get_object {bucket}/{key}")
        return self._store.get_object(bucket, key)

    def put_object(
        self,
        bucket: str,
        key: str,
        data: bytes,
        content_type: str | None = None,
        *,
        if_match: str | None = None,
        if_none_match: str | None = None,
    ) -> str:
        self._deadline.check(f"put_object {bucket}/{key}")
        return self._store.put_object(
            bucket,
            key,
            data,
            content_type,
            if_match=if_match,
            if_none_match=if_none_match,
        )

    def copy_object(
        self, dest_bucket: str, dest_key: str, source_bucket: str, source_key: str
    ) -> None:
        self._deadline.check(f"copy_object {source_bucket}/{source_key}")
        self._store.copy_object(dest_bucket, dest_key, source_bucket, source_key)
