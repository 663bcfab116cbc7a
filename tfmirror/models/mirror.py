"""Mirror metadata models: the version index and per-version release manifests.

These are the two JSON documents of a Terraform provider network mirror::

    index.json      {"versions": {"1.2.3": {}}}
    1.2.3.json      {"archives": {"linux_amd64": {"hashes": ["h1:..."], "url": "..."}}}

Both documents tolerate fields this version does not know about and carry
them through a load/serialize cycle unchanged, so an older writer never
strips metadata added by a newer one.
"""

from __future__ import annotations

import json
from collections.abc import Iterable

from pydantic import BaseModel, ConfigDict, Field


def _dump(model: BaseModel) -> str:
    """Render a model as stable, indented JSON."""
    return json.dumps(model.model_dump(mode="json"), indent=2, sort_keys=True) + "\n"


class Archive(BaseModel):
    """One zipped provider binary for a (version, platform, arch) triple.

    ``url`` is relative to the provider key prefix. ``hashes`` holds the
    ``h1:`` zip hash computed when the archive was written; it is never
    recomputed.
    """

    model_config = ConfigDict(frozen=True, extra="allow")

    hashes: list[str] = Field(min_length=1)
    url: str


class Release(BaseModel):
    """The archives published for a single version, keyed by ``<platform>_<arch>``."""

    model_config = ConfigDict(extra="allow")

    archives: dict[str, Archive] = Field(default_factory=dict)

    @staticmethod
    def archive_key(platform: str, arch: str) -> str:
        return f"{platform}_{arch}"

    def add_archive(self, platform: str, arch: str, archive: Archive) -> None:
        """Add an archive, replacing any earlier one for the same platform/arch."""
        self.archives[self.archive_key(platform, arch)] = archive

    def as_json(self) -> str:
        return _dump(self)

    @classmethod
    def from_json(cls, data: bytes | str) -> Release:
        return cls.model_validate_json(data)


class IndexValue(BaseModel):
    """Presence marker for a version in the index.

    Currently an empty object. Unknown keys are kept as-is.
    """

    model_config = ConfigDict(frozen=True, extra="allow")


class MirrorIndex(BaseModel):
    """The root ``index.json``: which versions this mirror serves."""

    model_config = ConfigDict(extra="allow")

    versions: dict[str, IndexValue] = Field(default_factory=dict)

    def has_version(self, version: str) -> bool:
        return version in self.versions

    def add_version(self, version: str) -> None:
        """Mark *version* present. An existing marker is left untouched."""
        self.versions.setdefault(version, IndexValue())

    def version_list(self) -> list[str]:
        return sorted(self.versions)

    def as_json(self) -> str:
        return _dump(self)

    @classmethod
    def from_json(cls, data: bytes | str) -> MirrorIndex:
        return cls.model_validate_json(data)

    @classmethod
    def from_versions(cls, versions: Iterable[str]) -> MirrorIndex:
        """Build an index with an empty marker for each version in *versions*."""
        return cls(versions={v: IndexValue() for v in versions})
