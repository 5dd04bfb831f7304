"""
harbor-file-cache CLI

Implements the file store verbs over a FileStore:
- create: Bootstrap a repository tag if it does not exist
- upload: Push a local file as the newest layer of a tag
- download: Fetch the newest file of a tag, or a blob by digest
- latest: Print the newest layer digest (or newest Harbor artifact)
- layers: List the layers of a tag, newest first
- delete-image: Delete the manifest a tag points to
- delete-repo: Delete a whole repository through the Harbor API
"""
from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

import typer

from .cli_context import CLIContext
from .operations import run_and_exit
from .operations.printers import (
    print_created, print_deleted, print_digest, print_download_summary,
    print_layers, print_upload_summary,
)
from .storage.address import parse_store_address

app = typer.Typer(name="harbor-file-cache", help="Harbor-backed file store CLI")

DEFAULT_TAG = "latest"


@app.callback()
def main_callback(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging")
) -> None:
    """Harbor-backed file store CLI."""
    if verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(levelname)s %(name)s: %(message)s")


@app.command()
def create(
    address: str = typer.Argument(..., help="Store address, e.g. harbor.local/project/files"),
    tag: str = typer.Option(DEFAULT_TAG, "--tag", "-t", help="Tag to bootstrap"),
) -> None:
    """Create the repository with an empty first version if it does not exist."""

    def _create() -> None:
        parsed = parse_store_address(address)
        context = CLIContext.from_env()
        try:
            created = context.store.create_repository_if_not_exist(parsed, tag)
        finally:
            context.close()
        print_created(parsed.reference(tag), created)

    run_and_exit(_create)


@app.command()
def upload(
    file: Path = typer.Argument(..., help="Local file to upload"),
    address: str = typer.Argument(..., help="Store address"),
    tag: str = typer.Option(DEFAULT_TAG, "--tag", "-t", help="Tag to append the file to"),
    create: bool = typer.Option(True, "--create/--no-create", help="Bootstrap the repository if missing"),
) -> None:
    """Upload a file as the newest layer of a tag."""

    def _upload() -> None:
        parsed = parse_store_address(address)
        context = CLIContext.from_env()
        try:
            if create:
                context.store.create_repository_if_not_exist(parsed, tag)
            descriptor = context.store.upload_file(file, parsed, tag)
        finally:
            context.close()
        print_upload_summary(file, parsed.reference(tag), descriptor)

    run_and_exit(_upload)


@app.command()
def download(
    address: str = typer.Argument(..., help="Store address"),
    target: Path = typer.Argument(..., help="Where to write the file"),
    tag: str = typer.Option(DEFAULT_TAG, "--tag", "-t", help="Tag to read"),
    digest: Optional[str] = typer.Option(None, "--digest", help="Fetch this blob instead of the newest layer"),
) -> None:
    """Download the newest file of a tag, or a specific blob by digest."""

    def _download() -> None:
        parsed = parse_store_address(address)
        context = CLIContext.from_env()
        try:
            if digest:
                written = context.store.download_file_by_digest(parsed, tag, digest, target)
            else:
                written = context.store.download_file(parsed, tag, target)
        finally:
            context.close()
        print_download_summary(written, written.stat().st_size)

    run_and_exit(_download)


@app.command()
def latest(
    address: str = typer.Argument(..., help="Store address"),
    tag: str = typer.Option(DEFAULT_TAG, "--tag", "-t", help="Tag to read"),
    artifact: bool = typer.Option(False, "--artifact", help="Ask Harbor's artifact listing instead of the manifest"),
) -> None:
    """Print the digest of the newest file."""

    def _latest() -> None:
        parsed = parse_store_address(address)
        context = CLIContext.from_env()
        try:
            if artifact:
                digest = context.store.latest_artifact_digest(parsed)
            else:
                digest = context.store.latest_layer_digest(parsed, tag)
        finally:
            context.close()
        print_digest(digest)

    run_and_exit(_latest)


@app.command()
def layers(
    address: str = typer.Argument(..., help="Store address"),
    tag: str = typer.Option(DEFAULT_TAG, "--tag", "-t", help="Tag to read"),
) -> None:
    """List the layers of a tag, newest first."""

    def _layers() -> None:
        parsed = parse_store_address(address)
        context = CLIContext.from_env()
        try:
            manifest = context.store.manifest(parsed, tag)
        finally:
            context.close()
        print_layers(parsed.reference(tag), manifest)

    run_and_exit(_layers)


@app.command("delete-image")
def delete_image(
    address: str = typer.Argument(..., help="Store address"),
    tag: str = typer.Option(DEFAULT_TAG, "--tag", "-t", help="Tag whose manifest is deleted"),
) -> None:
    """Delete the manifest a tag points to."""

    def _delete_image() -> None:
        parsed = parse_store_address(address)
        context = CLIContext.from_env()
        try:
            context.store.delete_image(parsed, tag)
        finally:
            context.close()
        print_deleted(parsed.reference(tag))

    run_and_exit(_delete_image)


@app.command("delete-repo")
def delete_repo(
    address: str = typer.Argument(..., help="Store address"),
) -> None:
    """Delete a whole repository through the Harbor API."""

    def _delete_repo() -> None:
        parsed = parse_store_address(address)
        context = CLIContext.from_env()
        try:
            context.store.delete_repository(parsed)
        finally:
            context.close()
        print_deleted(parsed.location)

    run_and_exit(_delete_repo)


def main() -> None:
    """CLI entry point."""
    app()


if __name__ == "__main__":
    main()
