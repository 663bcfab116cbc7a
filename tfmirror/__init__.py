"""tfmirror: build and promote static Terraform provider network mirrors in object storage.

- Zips provider binaries and records Terraform ``h1:`` hashes
- Keeps the two-level mirror metadata: ``index.json`` plus one ``<version>.json`` per release
- Merges a local goreleaser build into an existing remote mirror (``populate``)
- Promotes one complete version between mirrors, at most once (``promote``)
"""

__version__ = "0.1.0"

from tfmirror.core.promotion import PromoteRequest, promote
from tfmirror.core.registry import ArtifactRegistry

__all__ = ["ArtifactRegistry", "PromoteRequest", "promote", "__version__"]
