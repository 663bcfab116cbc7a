"""Archive builder — zips a provider binary and hashes the result.

Each archive holds exactly one entry, the binary under its own file name,
with the source file's mode and modification time. The ``h1:`` hash is
computed from the zip just written and recorded on the returned
:class:`~tfmirror.models.mirror.Archive`.
"""

from __future__ import annotations

import logging
import shutil
import zipfile
from pathlib import Path

from tfmirror.core.hasher import hash_zip
from tfmirror.models.mirror import Archive


def archive_file_name(provider_name: str, version: str, platform: str, arch: str) -> str:
    """``<provider>_<version>_<platform>_<arch>.zip``, the archive's object name."""
    return f"{provider_name}_{version}_{platform}_{arch}.zip"


def create_zip_archive(source_binary: Path, zip_path: Path) -> None:
    """Write a single-entry, deflated zip of *source_binary* to *zip_path*.

    Filesystem errors on either path propagate unchanged.
    """
    source_binary = Path(source_binary)
    # mtimes before 1980 (reproducible builds) are clamped to the zip epoch
    info = zipfile.ZipInfo.from_file(
        source_binary, arcname=source_binary.name, strict_timestamps=False
    )
    info.compress_type = zipfile.ZIP_DEFLATED

    with zipfile.ZipFile(zip_path, "w") as zf:
        with source_binary.open("rb") as src, zf.open(info, "w") as dest:
            shutil.copyfileobj(src, dest)


class ArchiveBuilder:
    """Builds archives for one provider into a staging directory.

    Parameters
    ----------
    provider_name:
        Provider binary name, e.g. ``terraform-provider-enos``.
    staging_dir:
        Directory the zips are written to.
    logger:
        Logger for progress messages; defaults to this module's logger.
    """

    def __init__(
        self,
        provider_name: str,
        staging_dir: Path,
        logger: logging.Logger | None = None,
    ) -> None:
        self._provider_name = provider_name
        self._staging_dir = Path(staging_dir)
        self._log = logger or logging.getLogger(__name__)

    def build(self, version: str, platform: str, arch: str, binary_path: Path) -> Archive:
        """Zip and hash *binary_path*, returning the archive's metadata."""
        name = archive_file_name(self._provider_name, version, platform, arch)
        zip_path = self._staging_dir / name

        self._log.info("creating zip archive %s from %s", zip_path, binary_path)
        create_zip_archive(Path(binary_path), zip_path)

        digest = hash_zip(zip_path)
        self._log.debug("hashed %s: %s", name, digest)
        return Archive(url=name, hashes=[digest])
