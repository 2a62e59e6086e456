from __future__ import annotations

import asyncio
import os

import click

from amble.config import load_environment
from amble.services.capabilities import supported_targets
from amble.services.converters import convert_batch
from amble.services.decoder import SourceFile
from amble.services.formats import normalize_token
from amble.services.provider_factory import build_conversion_service
from amble.utils.file_utils import replace_extension


@click.group()
def cli() -> None:
    """Amble file conversion CLI."""


@cli.command("formats")
@click.argument("filename")
def formats(filename: str) -> None:
    """Print the target formats available for FILENAME."""
    targets = build_conversion_service().supported_targets(filename)
    if not targets:
        click.secho(f"[warn] no conversions available for {filename}", fg="yellow", err=True)
        return
    click.echo(", ".join(targets))


@cli.command("convert-file")
@click.argument("file_path", type=click.Path(exists=True, dir_okay=False, readable=True))
@click.option("--target", "-t", "target", required=True, help="Target format (e.g. pdf, json, png).")
@click.option("--output", "-o", "output", type=click.Path(dir_okay=False, writable=True),
              help="Output file. Defaults to the input path with the target extension.")
def convert_file(file_path: str, target: str, output: str | None) -> None:
    """Convert a single file to TARGET."""
    load_environment()
    service = build_conversion_service()
    result = service.convert(SourceFile.from_path(file_path), target)

    if not result.success:
        click.secho(f"[error] {result.error_type}: {result.error}", fg="red", err=True)
        raise SystemExit(1)

    out_path = output or os.path.join(os.path.dirname(os.path.abspath(file_path)), result.filename)
    with open(out_path, "wb") as f:
        f.write(result.output)
    click.secho(f"[ok] written -> {os.path.abspath(out_path)}", fg="green")


@cli.command("convert-dir")
@click.argument("source_dir", type=click.Path(exists=True, file_okay=False, readable=True))
@click.option("--output-dir", "output_dir", "-o", required=True, type=click.Path(file_okay=False, writable=True),
              help="Directory to write converted files (structure is preserved).")
@click.option("--target", "-t", "target", required=True, help="Target format for every file.")
@click.option("--recursive/--no-recursive", default=True, help="Recurse into subdirectories (default: true).")
def convert_dir(source_dir: str, output_dir: str, target: str, recursive: bool) -> None:
    """Convert every file in SOURCE_DIR that supports TARGET, concurrently."""
    load_environment()
    target = normalize_token(target)

    src_paths = []
    for root, dirs, files in os.walk(source_dir):
        if not recursive:
            # clear dirs to prevent deeper traversal
            dirs[:] = []
        for fname in sorted(files):
            if target in supported_targets(fname):
                src_paths.append(os.path.join(root, fname))

    requests = [(SourceFile.from_path(path), target) for path in src_paths]
    results = asyncio.run(convert_batch(requests))

    success = failed = 0
    for src_path, result in zip(src_paths, results):
        if not result.success:
            failed += 1
            click.secho(f"[fail] {src_path} :: {result.error_type}: {result.error}", fg="red", err=True)
            continue
        success += 1
        rel_path = os.path.relpath(src_path, source_dir)
        out_path = os.path.join(output_dir, os.path.dirname(rel_path), replace_extension(rel_path, target))
        os.makedirs(os.path.dirname(out_path), exist_ok=True)
        with open(out_path, "wb") as f:
            f.write(result.output)
        click.secho(f"[ok] {src_path} -> {out_path}", fg="green")

    click.echo(f"Done. total={len(src_paths)} success={success} failed={failed}")


@cli.command("init-db")
def init_db() -> None:
    """Create database tables for the configured database."""
    from amble import create_app
    from amble import models  # noqa: F401
    from amble.extensions import db

    app = create_app()
    with app.app_context():
        db.create_all()
    click.secho(f"[ok] tables created in {app.config['SQLALCHEMY_DATABASE_URI']}", fg="green")


if __name__ == "__main__":
    cli()
