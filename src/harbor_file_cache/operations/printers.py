"""
Human-readable output formatting.

Centralizes CLI output so commands only pass results along.
"""
from __future__ import annotations

from pathlib import Path

import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from ..models import BlobDescriptor, Manifest

_console = Console()
_err_console = Console(stderr=True)


def print_created(reference: str, created: bool) -> None:
    """
    Print the outcome of a repository bootstrap.

    Args:
        reference: Image reference that was checked
        created: Whether a bootstrap push happened
    """
    if created:
        _console.print(f"[green]Created[/] {reference}")
    else:
        _console.print(f"[dim]Exists[/] {reference}")


def print_upload_summary(path: Path, reference: str, descriptor: BlobDescriptor) -> None:
    """
    Print upload summary.

    Args:
        path: Local file that was uploaded
        reference: Image reference the file was appended to
        descriptor: Descriptor of the stored blob
    """
    table = Table(title="Uploaded")
    table.add_column("File", style="cyan")
    table.add_column("Reference")
    table.add_column("Digest", style="yellow")
    table.add_column("Size", justify="right")
    table.add_row(str(path), reference, descriptor.digest, _format_bytes(descriptor.size))
    _console.print(table)


def print_download_summary(target: Path, size: int) -> None:
    typer.echo(f"Downloaded {_format_bytes(size)} to {target}")


def print_digest(digest: str) -> None:
    """Print a bare digest so the output can be captured by scripts."""
    typer.echo(digest)


def print_layers(reference: str, manifest: Manifest) -> None:
    """
    Print the layers of a manifest, newest first.

    Args:
        reference: Image reference the manifest belongs to
        manifest: Decoded manifest
    """
    layers = manifest.layers or []
    if not layers:
        _console.print(f"[dim]{reference} has no layers[/]")
        return

    table = Table(title=reference)
    table.add_column("#", justify="right")
    table.add_column("Digest", style="yellow")
    table.add_column("Size", justify="right")
    for index, layer in enumerate(layers):
        table.add_row(str(index), layer.digest or "-", _format_bytes(layer.size or 0))
    _console.print(table)


def print_deleted(what: str) -> None:
    typer.echo(f"Deleted {what}")


def print_error(exc: BaseException) -> None:
    """Print an error message to stderr."""
    _err_console.print(f"[bold red]Error:[/] {escape(str(exc))}", highlight=False, soft_wrap=True)


def _format_bytes(size_bytes: int) -> str:
    """
    Format byte count as human-readable string.

    Args:
        size_bytes: Size in bytes

    Returns:
        Formatted string (e.g., "1.5 MB", "42 B")
    """
    if size_bytes < 1024:
        return f"{size_bytes} B"
    elif size_bytes < 1024 * 1024:
        return f"{size_bytes / 1024:.1f} KB"
    elif size_bytes < 1024 * 1024 * 1024:
        return f"{size_bytes / (1024 * 1024):.1f} MB"
    else:
        return f"{size_bytes / (1024 * 1024 * 1024):.1f} GB"
