"""Main CLI entry point for assembly-pipeline.

Provides the command group with global options and the conversion subcommands.
"""

import logging
from pathlib import Path

import click

from assembly_pipeline import __version__
from assembly_pipeline.config.loader import load_config
from assembly_pipeline.cli.convert_cmd import convert
from assembly_pipeline.cli.tables_cmd import tables


logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)


@click.group()
@click.option(
    '--config',
    type=click.Path(exists=True, path_type=Path),
    default='config/default.yaml',
    help='Path to pipeline configuration YAML file'
)
@click.option(
    '--verbose',
    is_flag=True,
    help='Enable verbose logging (DEBUG level)'
)
@click.pass_context
def cli(ctx, config, verbose):
    """Assembly-pipeline: convert NCBI genome assembly files into warehouse items.

    Reads assembly reports, taxonomy dumps, GFF3 annotation and FASTA
    sequence files and writes linked chromosome, gene, transcript, exon,
    location and annotation tables to DuckDB.
    """
    ctx.ensure_object(dict)
    ctx.obj['config_path'] = config
    ctx.obj['verbose'] = verbose

    if verbose:
        logging.getLogger().setLevel(logging.DEBUG)
        logging.debug("Verbose logging enabled")


@cli.command()
@click.pass_context
def info(ctx):
    """Display pipeline information and configuration summary."""
    config_path = ctx.obj['config_path']

    click.echo(f"Assembly Pipeline v{__version__}")
    click.echo(f"Config: {config_path}")
    click.echo()

    try:
        config = load_config(config_path)

        config_hash = config.config_hash()
        click.echo(f"Config Hash: {config_hash[:16]}...")
        click.echo()

        click.echo(click.style("Organism:", bold=True))
        click.echo(f"  Taxon ID: {config.organism.taxon_id}")
        click.echo(f"  Strain:   {config.organism.strain}")
        click.echo()

        click.echo(click.style("Data Set:", bold=True))
        click.echo(f"  Data Source: {config.data_source.name}")
        click.echo(f"  Data Set:    {config.data_set.name}")
        click.echo(f"  Assembly:    {config.versions.assembly}")
        click.echo(f"  Annotation:  {config.versions.annotation}")
        click.echo()

        click.echo(click.style("Sequences:", bold=True))
        click.echo(f"  Classification: {config.sequences.classification.value}")
        if config.sequences.chromosome_prefix:
            click.echo(f"  Chromosome Prefix:  {config.sequences.chromosome_prefix}")
            click.echo(f"  Supercontig Prefix: {config.sequences.supercontig_prefix}")
        click.echo(f"  Unknown Sequences: {config.sequences.unknown.value}")
        click.echo(f"  Identifier Field: {config.sequences.identifier.value}")
        click.echo()

        click.echo(click.style("Paths:", bold=True))
        click.echo(f"  Data Directory: {config.data_dir}")
        click.echo(f"  DuckDB Path: {config.duckdb_path}")

    except Exception as e:
        click.echo(click.style(f"Error loading config: {e}", fg='red'), err=True)
        ctx.exit(1)


cli.add_command(convert)
cli.add_command(tables)


if __name__ == '__main__':
    cli()
