"""Main Typer application — imports and registers all CLI commands.

Entry point: ``tfmirror`` (configured via pyproject.toml console scripts).
"""

from __future__ import annotations

import typer

from tfmirror.cli.commands.populate import populate_cmd
from tfmirror.cli.commands.promote import promote_cmd

app = typer.Typer(
    name="tfmirror",
    help=(
        "Create a Terraform provider network mirror in object storage from goreleaser "
        "output, or promote a version from one mirror to another."
    ),
    no_args_is_help=True,
    rich_markup_mode="rich",
    add_completion=False,
)

# Register subcommands
app.command(name="populate", help="Publish goreleaser binaries to a remote mirror.")(populate_cmd)
app.command(name="promote", help="Promote one version from a source mirror to a destination mirror.")(
    promote_cmd
)


def main() -> None:
    """CLI entry point."""
    app()


if __name__ == "__main__":
    main()
