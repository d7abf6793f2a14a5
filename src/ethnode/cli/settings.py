"""Configuration commands"""

import click
import yaml
from rich.console import Console

from ethnode.config.deployment import DeploymentConfig

console = Console()


@click.group()
def config():
    """Inspect and initialise the deployment configuration"""
    pass


@config.command()
@click.option("--format", type=click.Choice(["yaml", "json"]), default="yaml")
@click.pass_context
def show(ctx, format):
    """Show the effective configuration"""
    from ethnode.cli.main import load_config

    data = load_config(ctx).to_dict()

    if format == "json":
        console.print_json(data=data)
    else:
        click.echo(yaml.safe_dump(data, default_flow_style=False, sort_keys=False), nl=False)


@config.command()
@click.option("--force", is_flag=True, help="Overwrite an existing config file")
@click.pass_context
def init(ctx, force):
    """Write the default configuration to the config file"""
    manager = ctx.obj["config_manager"]

    if manager.config_path.exists() and not force:
        console.print(f"[yellow]{manager.config_path} already exists (use --force to overwrite)[/yellow]")
        raise click.Abort()

    manager.save(DeploymentConfig())
    console.print(f"[green]✓[/green] Wrote {manager.config_path}")
