#!/usr/bin/env python3
"""
Command line entry point.

Usage:
    declfacts extract path/to/src --output facts/ -I include -j 4
    declfacts relations facts/struct_relations.jsonl ZopfliLZ77Store
"""

import json
import logging
from pathlib import Path

import click
from pydantic import ValidationError

from declfacts.config import ExtractConfig
from declfacts.console import Console
from declfacts.errors import DeclfactsError
from declfacts.extract import DeclarationExtractor


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def _load_config(source_root: Path, config_path: Path | None) -> ExtractConfig:
    try:
        if config_path is not None:
            return ExtractConfig.load_from_file(config_path)
        return ExtractConfig.find_config(source_root) or ExtractConfig(source_root=source_root)
    except (ValidationError, json.JSONDecodeError) as e:
        raise click.ClickException(f"Invalid configuration: {e}")


@click.group()
def cli():
    """Extract declaration facts from C sources as line-delimited JSON."""


@cli.command()
@click.argument("source", type=click.Path(exists=True, path_type=Path))
@click.option("--output", "-o", type=click.Path(path_type=Path), help="Output directory for .jsonl files")
@click.option(
    "--config",
    "config_path",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help="Path to a declfacts.json configuration file",
)
@click.option("--include", "-I", "include_dirs", multiple=True, help="Additional include directory")
@click.option("--std", help="C language standard, e.g. c11")
@click.option("--jobs", "-j", type=click.IntRange(min=1), help="Number of worker threads")
@click.option("--system-headers", is_flag=True, help="Also extract declarations from system headers")
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging")
def extract(
    source: Path,
    output: Path | None,
    config_path: Path | None,
    include_dirs: tuple[str, ...],
    std: str | None,
    jobs: int | None,
    system_headers: bool,
    verbose: bool,
):
    """Extract facts from SOURCE, a C file or a directory of C files."""
    _configure_logging(verbose)
    console = Console()

    source_root = source.parent if source.is_file() else source
    config = _load_config(source_root, config_path)

    updates: dict = {"source_root": source_root}
    if output is not None:
        updates["output_dir"] = output
    if include_dirs:
        updates["include_dirs"] = [*config.include_dirs, *include_dirs]
    if std:
        args = [a for a in config.compile_args if not a.startswith("-std=")]
        updates["compile_args"] = [f"-std={std}", *args]
    if jobs is not None:
        updates["jobs"] = jobs
    if system_headers:
        updates["include_system_headers"] = True
    config = config.model_copy(update=updates)

    extractor = DeclarationExtractor(config)
    paths = [source] if source.is_file() else extractor.find_sources()
    if not paths:
        raise click.ClickException(f"No source files found under {source}")

    try:
        with console.status(f"Extracting {len(paths)} files..."):
            summary = extractor.extract_all(paths)
    except (DeclfactsError, OSError) as e:
        raise click.ClickException(str(e))

    console.table(
        f"Facts written to {config.output_dir}",
        ["Kind", "Lines"],
        [[kind, str(count)] for kind, count in summary.written.items()],
    )
    console.print(
        f"Processed {summary.files_processed} files, "
        f"{len(summary.files_failed)} failed, {summary.total_written} lines written"
    )
    for failed in summary.files_failed:
        console.print(f"[red]Failed:[/red] {failed}")

    if summary.files_processed == 0:
        raise click.ClickException("Every source file failed to parse")


@cli.command()
@click.argument("relations_file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.argument("name")
def relations(relations_file: Path, name: str):
    """Print the records reachable from NAME in a struct relations log."""
    related = None
    with open(relations_file, encoding="utf-8") as f:
        for line in f:
            if not line.strip():
                continue
            record = json.loads(line)
            # append-only log, the latest line for a name wins
            if name in record:
                related = record[name]

    if related is None:
        raise click.ClickException(f"No relations recorded for {name}")
    if not related:
        click.echo(f"{name}: none")
        return
    click.echo(f"{name}: {', '.join(related)}")


def main():
    cli()


if __name__ == "__main__":
    main()
