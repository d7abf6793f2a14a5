#!/usr/bin/env python3
"""ethnode CLI - Main entry point"""

from pathlib import Path

import click
from rich.console import Console
from rich.markup import escape

from ethnode.config.deployment import ConfigError, DeploymentConfig
from ethnode.config.manager import DEFAULT_CONFIG_PATH, ConfigManager

console = Console()


@click.group()
@click.option("--config", type=click.Path(dir_okay=False), envvar="ETHNODE_CONFIG", help="Config file path")
@click.option("-v", "--verbose", is_flag=True, help="Verbose output")
@click.pass_context
def cli(ctx, config, verbose):
    """ethnode CLI - Ethereum node provisioning"""
    ctx.ensure_object(dict)

    config_path = Path(config) if config else DEFAULT_CONFIG_PATH
    ctx.obj["config_manager"] = ConfigManager(config_path)
    ctx.obj["verbose"] = verbose


def load_config(ctx) -> DeploymentConfig:
    """Load the deployment config, aborting with a readable message if invalid"""
    manager = ctx.obj["config_manager"]
    try:
        return manager.load()
    except ConfigError as e:
        console.print(f"[red]Invalid configuration:[/red] {manager.config_path}")
        console.print(escape(str(e)))
        raise click.Abort()


@cli.command()
def version():
    """Show version information"""
    from ethnode import __version__

    console.print(f"ethnode version {__version__}")


# Import subcommands
from ethnode.cli import compose, install, settings, status, verify

cli.add_command(install.install)
cli.add_command(compose.compose)
cli.add_command(settings.config)
cli.add_command(verify.verify)
cli.add_command(status.status)


if __name__ == "__main__":
    cli()
