"""Tables command: list the warehouse tables written so far."""

import sys

import click

from assembly_pipeline.config.loader import load_config
from assembly_pipeline.persistence import PipelineStore


@click.command('tables')
@click.pass_context
def tables(ctx):
    """List stored tables with row counts and write times."""
    config_path = ctx.obj['config_path']

    try:
        config = load_config(config_path)
    except Exception as e:
        click.echo(click.style(f"Error loading config: {e}", fg='red'), err=True)
        sys.exit(1)

    with PipelineStore.from_config(config) as store:
        checkpoints = store.list_checkpoints()

    if not checkpoints:
        click.echo(click.style("No tables written yet. Run 'convert' first.", fg='yellow'))
        return

    click.echo(click.style(f"Tables in {config.duckdb_path}:", bold=True))
    for checkpoint in checkpoints:
        click.echo(
            f"  {checkpoint['table_name']:<24} {checkpoint['row_count']:>10} rows"
            f"  ({checkpoint['created_at']})"
        )
