"""Compose file commands"""

from pathlib import Path

import click
from rich.console import Console

from ethnode import compose as compose_doc

console = Console()


@click.group()
def compose():
    """Render or write docker-compose.yml"""
    pass


@compose.command()
@click.pass_context
def render(ctx):
    """Print the compose document"""
    from ethnode.cli.main import load_config

    click.echo(compose_doc.render_compose(load_config(ctx)), nl=False)


@compose.command()
@click.option("-o", "--output", type=click.Path(dir_okay=False), help="Write here instead of the node root")
@click.pass_context
def write(ctx, output):
    """Write the compose document if it changed"""
    from ethnode.cli.main import load_config

    config = load_config(ctx)
    path = Path(output) if output else Path(config.compose_path)

    if compose_doc.write_compose(config, path):
        console.print(f"[green]✓[/green] Wrote {path}")
    else:
        console.print(f"[dim]{path} is up to date[/dim]")
