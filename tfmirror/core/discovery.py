"""Discovery of provider binaries in a goreleaser ``dist`` tree.

goreleaser writes one directory per target, each holding the versioned
binary::

    dist/
        terraform-provider-enos_linux_amd64/
            terraform-provider-enos_v0.4.2
        terraform-provider-enos_darwin_arm64/
            terraform-provider-enos_v0.4.2

Discovery is a pure function of the tree: it touches no storage and no
registry, and directories that don't follow the naming scheme are skipped.
"""

from __future__ import annotations

import re
from collections.abc import Iterator
from pathlib import Path

from pydantic import BaseModel, ConfigDict


class DiscoveredBinary(BaseModel):
    """A provider binary found in a build tree."""

    model_config = ConfigDict(frozen=True)

    version: str
    platform: str
    arch: str
    path: Path


def _directory_pattern(provider_name: str) -> re.Pattern[str]:
    return re.compile(re.escape(provider_name) + r"_(?P<platform>\w*)_(?P<arch>\w*)$")


def _binary_pattern(provider_name: str) -> re.Pattern[str]:
    return re.compile(re.escape(provider_name) + r"_(?P<version>.*)$")


def discover_binaries(dist_dir: Path, provider_name: str) -> Iterator[DiscoveredBinary]:
    """Yield every provider binary under *dist_dir*.

    A directory named ``<provider_name>_<platform>_<arch>`` is a build
    output; the first file inside it (by name) called
    ``<provider_name>_<version>`` is its binary. At most one binary is
    yielded per build directory.
    """
    root = Path(dist_dir).resolve()
    if not root.is_dir():
        raise NotADirectoryError(f"build directory does not exist: {root}")

    dir_re = _directory_pattern(provider_name)
    bin_re = _binary_pattern(provider_name)

    directories = [root, *sorted(p for p in root.rglob("*") if p.is_dir())]
    for directory in directories:
        dir_match = dir_re.search(directory.name)
        if dir_match is None:
            continue

        for entry in sorted(directory.iterdir()):
            if not entry.is_file():
                continue
            bin_match = bin_re.search(entry.name)
            if bin_match is None:
                continue
            yield DiscoveredBinary(
                version=bin_match.group("version"),
                platform=dir_match.group("platform"),
                arch=dir_match.group("arch"),
                path=entry,
            )
            break
