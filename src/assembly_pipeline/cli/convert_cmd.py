"""Convert command: run a conversion job over input files.

Orchestrates the conversion flow:
1. Load config
2. Expand directories into their files
3. Create the item sink (DuckDB, or memory for --dry-run) and provenance tracker
4. Run the job (assembly reports, taxonomy, GFF3, FASTA)
5. Save provenance and print the summary
"""

import logging
import sys
from pathlib import Path

import click

from assembly_pipeline.config.loader import load_config
from assembly_pipeline.converters import ConversionJob
from assembly_pipeline.persistence import (
    DuckDBItemWriter,
    MemoryItemWriter,
    PipelineStore,
    ProvenanceTracker,
)

logger = logging.getLogger(__name__)


def expand_paths(paths) -> list[Path]:
    """Replace each directory by its files, sorted; files are kept in order."""
    expanded = []
    for path in paths:
        path = Path(path)
        if path.is_dir():
            expanded.extend(sorted(p for p in path.iterdir() if p.is_file()))
        else:
            expanded.append(path)
    return expanded


@click.command('convert')
@click.argument(
    'paths',
    nargs=-1,
    required=True,
    type=click.Path(exists=True, path_type=Path),
)
@click.option(
    '--dry-run',
    is_flag=True,
    help='Convert without writing to DuckDB (items are counted only)'
)
@click.pass_context
def convert(ctx, paths, dry_run):
    """Convert assembly reports, names.dmp, GFF3 and FASTA files.

    PATHS are files or directories. Files are processed in the order given,
    directory contents in name order. Unrecognised files are skipped.
    """
    config_path = ctx.obj['config_path']
    click.echo(click.style("=== Assembly Conversion ===", bold=True))
    click.echo()

    store = None
    try:
        click.echo("Loading configuration...")
        config = load_config(config_path)
        click.echo(click.style(f"  Config loaded: {config_path}", fg='green'))
        click.echo(f"  Data Set: {config.data_set.name}")
        click.echo()

        files = expand_paths(paths)
        click.echo(f"Input files: {len(files)}")

        provenance = ProvenanceTracker.from_config(config)
        if dry_run:
            click.echo(click.style("  Dry run: nothing is written to DuckDB", fg='yellow'))
            writer = MemoryItemWriter()
        else:
            store = PipelineStore.from_config(config)
            writer = DuckDBItemWriter(store)
            click.echo(f"  DuckDB Path: {config.duckdb_path}")
        click.echo()

        job = ConversionJob(config, writer, provenance=provenance)
        click.echo("Converting...")
        stored_counts = job.run(files)

        for path in job.skipped_files:
            click.echo(click.style(f"  Skipped unrecognised file: {path.name}", fg='yellow'))
        click.echo()

        if store is not None:
            provenance.save_to_store(store)
            provenance_path = provenance.save_sidecar(Path(config.data_dir) / "convert.json")
            click.echo(click.style(f"  Provenance saved: {provenance_path}", fg='green'))
            click.echo()

        click.echo(click.style("=== Conversion Summary ===", bold=True))
        for class_name, count in sorted(stored_counts.items()):
            click.echo(f"  {class_name}: {count}")
        click.echo(f"Total Items: {sum(stored_counts.values())}")
        click.echo()
        click.echo(click.style("Conversion complete!", fg='green', bold=True))

    except Exception as e:
        click.echo(click.style(f"Conversion failed: {e}", fg='red'), err=True)
        logger.exception("Convert command failed")
        sys.exit(1)
    finally:
        if store is not None:
            store.close()
