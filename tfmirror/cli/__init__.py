"""tfmirror CLI — Typer-based command-line interface.

Provides the ``tfmirror`` command with ``populate`` and ``promote``
subcommands. Errors are printed to stderr with an ``ERROR:`` marker and the
process exits 1; success exits 0.
"""
