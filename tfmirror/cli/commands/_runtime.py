"""Shared command plumbing: logging setup, store construction, error exit."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import NoReturn

import typer
from botocore.config import Config
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape

from tfmirror.storage import Deadline, DeadlineBlobStore, LocalBlobStore, S3BlobStore
from tfmirror.storage.base import BlobStore

err_console = Console(stderr=True)

_CONNECT_TIMEOUT_SECONDS = 60


def configure_logging(level: str) -> logging.Logger:
    """Route log records to stderr through Rich and return the tfmirror logger."""
    numeric = logging.getLevelName(level.upper())
    if not isinstance(numeric, int):
        raise typer.BadParameter(f"unknown log level {level!r}", param_hint="--log-level")

    handler = RichHandler(console=err_console, show_path=False)
    logging.basicConfig(level=numeric, format="%(message)s", handlers=[handler], force=True)
    # boto's own debug output drowns ours
    logging.getLogger("botocore").setLevel(max(numeric, logging.INFO))
    return logging.getLogger("tfmirror")


def build_store(
    deadline: Deadline,
    local_root: Path | None = None,
    endpoint_url: str | None = None,
    region_name: str | None = None,
) -> BlobStore:
    """Return a deadline-bounded store: local directories when *local_root* is set, else S3."""
    if local_root is not None:
        store: BlobStore = LocalBlobStore(local_root)
    else:
        remaining = max(1.0, deadline.remaining())
        store = S3BlobStore(
            endpoint_url=endpoint_url,
            region_name=region_name,
            config=Config(
                connect_timeout=min(_CONNECT_TIMEOUT_SECONDS, remaining),
                read_timeout=remaining,
            ),
        )
    return DeadlineBlobStore(store, deadline)


def fail(exc: BaseException) -> NoReturn:
    """Print *exc* with the error marker and exit 1."""
    err_console.print(f"[bold red]ERROR:[/bold red] {escape(str(exc))}")
    raise typer.Exit(code=1)
