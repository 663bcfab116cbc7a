"""``tfmirror populate --dist DIR --bucket NAME`` — publish a goreleaser build to a mirror.

Loads the bucket's existing index, archives every provider binary found in
the dist directory, writes the merged metadata, and uploads everything.
"""

from __future__ import annotations

from pathlib import Path

import typer
from rich.console import Console
from rich.panel import Panel

from tfmirror.cli.commands._runtime import build_store, configure_logging, fail
from tfmirror.config import settings
from tfmirror.core.populate import populate
from tfmirror.storage import Deadline

console = Console()


def populate_cmd(
    dist: Path = typer.Option(
        ...,
        "--dist",
        help="The goreleaser output directory holding the built binaries.",
        file_okay=False,
    ),
    bucket: str = typer.Option(
        ...,
        "--bucket",
        help="The mirror bucket name.",
    ),
    provider_name: str = typer.Option(
        settings.provider_name,
        "--provider-name",
        help="The provider binary name.",
    ),
    provider_id: str = typer.Option(
        settings.provider_id,
        "--provider-id",
        help="The provider address, used as the key prefix in the bucket.",
    ),
    timeout: float = typer.Option(
        settings.timeout_seconds,
        "--timeout",
        min=1,
        help="Maximum time in seconds the whole command may take.",
    ),
    log_level: str = typer.Option(
        settings.log_level,
        "--log-level",
        "--log",
        help="Log level (error, warning, info, debug).",
    ),
    local_root: Path = typer.Option(
        settings.local_root,
        "--local-root",
        help="Treat buckets as directories under this path instead of S3.",
    ),
) -> None:
    """Publish goreleaser binaries to a remote Terraform provider mirror."""
    log = configure_logging(log_level)
    deadline = Deadline(timeout)

    try:
        store = build_store(deadline, local_root, settings.s3_endpoint_url, settings.aws_region)
        result = populate(dist, store, bucket, provider_name, provider_id, logger=log)
    except Exception as exc:
        fail(exc)

    console.print(
        Panel(
            "\n".join([
                "[bold green]Mirror published![/bold green]",
                "",
                f"[bold]Bucket:[/bold]    {result.bucket}",
                f"[bold]Provider:[/bold]  {result.provider_id}",
                f"[bold]Versions:[/bold]  {', '.join(result.versions) or '-'}",
                f"[bold]Archives:[/bold]  {len(result.archives)}",
                f"[bold]Uploaded:[/bold]  {len(result.published_keys)} object(s)",
            ]),
            title="[bold]tfmirror populate[/bold]",
            border_style="green",
            padding=(1, 2),
        )
    )
