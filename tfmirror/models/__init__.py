"""tfmirror data models — Pydantic v2, JSON-compatible with the Terraform network mirror protocol."""

from tfmirror.models.mirror import Archive, IndexValue, MirrorIndex, Release

__all__ = [
    "Archive",
    "IndexValue",
    "MirrorIndex",
    "Release",
]
