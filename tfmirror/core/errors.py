"""Mirror-level error types.

Storage transport failures are defined in :mod:`tfmirror.storage.base` and
propagate unchanged; these cover index/manifest state and promotion
preconditions.
"""

from __future__ import annotations


class MirrorError(RuntimeError):
    """Base class for mirror errors."""


class NoIndexLoadedError(MirrorError):
    """Raised when the index is queried before it was loaded or created."""

    def __init__(self, provider_name: str) -> None:
        super().__init__(f"no index loaded for provider {provider_name!r}")
        self.provider_name = provider_name


class ReleaseMetadataNotFoundError(MirrorError):
    """Raised when a version's manifest is missing from the remote mirror."""

    def __init__(self, bucket: str, key: str, version: str) -> None:
        super().__init__(
            f"release metadata for version {version} not found at s3://{bucket}/{key}"
        )
        self.bucket = bucket
        self.key = key
        self.version = version


class VersionNotFoundError(MirrorError):
    """Raised when promoting a version the source mirror does not have."""

    def __init__(self, version: str, bucket: str) -> None:
        super().__init__(f"version not found: {version} is not in the mirror in {bucket}")
        self.version = version
        self.bucket = bucket


class VersionAlreadyPromotedError(MirrorError):
    """Raised when the destination mirror already serves the version."""

    def __init__(self, version: str, bucket: str) -> None:
        super().__init__(
            f"version already promoted: {version} is already in the mirror in {bucket}"
        )
        self.version = version
        self.bucket = bucket


class IndexConflictError(MirrorError):
    """Raised when the remote index changed between load and publish."""

    def __init__(self, bucket: str, key: str) -> None:
        super().__init__(
            f"s3://{bucket}/{key} was modified by another writer since it was loaded"
        )
        self.bucket = bucket
        self.key = key


class InvalidVersionError(MirrorError):
    """Raised for a version that cannot be stored as ``<version>.json``."""

    def __init__(self, version: str, reason: str) -> None:
        super().__init__(f"invalid version {version!r}: {reason}")
        self.version = version
        self.reason = reason
