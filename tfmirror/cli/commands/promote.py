"""``tfmirror promote --version V --src-bucket A --dest-bucket B`` — promote a release.

Copies one version's manifest and archives from the source mirror to the
destination mirror and adds it to the destination index. Fails if the
source does not have the version or the destination already does.
"""

from __future__ import annotations

from pathlib import Path

import typer
from rich.console import Console
from rich.panel import Panel

from tfmirror.cli.commands._runtime import build_store, configure_logging, fail
from tfmirror.config import settings
from tfmirror.core.promotion import PromoteRequest, promote
from tfmirror.storage import Deadline

console = Console()


def promote_cmd(
    version: str = typer.Option(
        ...,
        "--version",
        help="The version of the artifact to promote.",
    ),
    src_bucket: str = typer.Option(
        ...,
        "--src-bucket",
        help="The source mirror bucket name.",
    ),
    dest_bucket: str = typer.Option(
        ...,
        "--dest-bucket",
        help="The destination mirror bucket name.",
    ),
    src_provider_name: str = typer.Option(
        settings.provider_name,
        "--src-provider-name",
        help="The provider binary name in the source mirror.",
    ),
    src_provider_id: str = typer.Option(
        settings.provider_id,
        "--src-provider-id",
        help="The provider address (key prefix) in the source mirror.",
    ),
    dest_provider_name: str = typer.Option(
        settings.provider_name,
        "--dest-provider-name",
        help="The provider binary name in the destination mirror.",
    ),
    dest_provider_id: str = typer.Option(
        settings.provider_id,
        "--dest-provider-id",
        help="The provider address (key prefix) in the destination mirror.",
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
    """Promote a version from a source mirror to a destination mirror."""
    log = configure_logging(log_level)
    deadline = Deadline(timeout)

    try:
        request = PromoteRequest(
            version=version,
            src_bucket=src_bucket,
            dest_bucket=dest_bucket,
            src_provider_name=src_provider_name,
            src_provider_id=src_provider_id,
            dest_provider_name=dest_provider_name,
            dest_provider_id=dest_provider_id,
        )
        # Both mirrors share one store (and credentials), as server-side
        # copies require the destination client to read the source bucket.
        store = build_store(deadline, local_root, settings.s3_endpoint_url, settings.aws_region)
        result = promote(request, store, store, logger=log)
    except Exception as exc:
        fail(exc)

    console.print(
        Panel(
            "\n".join([
                f"[bold green]Version {result.version} promoted![/bold green]",
                "",
                f"[bold]From:[/bold]    {src_bucket}/{src_provider_id}",
                f"[bold]To:[/bold]      {result.dest_bucket}/{result.dest_provider_id}",
                f"[bold]Copied:[/bold]  {len(result.copied_keys)} object(s)",
            ]),
            title="[bold]tfmirror promote[/bold]",
            border_style="green",
            padding=(1, 2),
        )
    )
