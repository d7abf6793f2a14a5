"""Installation automation command"""

import os
import sys

import click
from rich.console import Console

from ethnode.installer.bootstrap import full_install
from ethnode.installer.runner import Shell, StepFailedError

console = Console()


@click.command()
@click.option("--dry-run", is_flag=True, help="Print commands and file writes without executing them")
@click.option("--no-follow", is_flag=True, help="Show recent container logs instead of following them")
@click.option("--check-endpoints", is_flag=True, help="Check checkpoint/genesis URLs before writing the compose file")
@click.option("--firewall-first", is_flag=True, help="Open the firewall before starting the containers")
@click.pass_context
def install(ctx, dry_run, no_follow, check_endpoints, firewall_first):
    """Provision this host as a Geth + Prysm node"""
    from ethnode.cli.main import load_config

    config = load_config(ctx)
    if firewall_first:
        config.firewall.before_services = True

    if not dry_run and os.geteuid() != 0:
        console.print("[red]✗ Provisioning requires root. Run with sudo or use --dry-run[/red]")
        sys.exit(1)

    if dry_run:
        console.print("[bold cyan]Dry run mode - nothing will be changed[/bold cyan]\n")

    console.print(f"[bold]Setting up an Ethereum node ({config.network}) in {config.root}[/bold]\n")

    shell = Shell(dry_run=dry_run, verbose=ctx.obj.get("verbose", False), console=console)
    try:
        full_install(config, shell, follow_logs=not no_follow, check_endpoints=check_endpoints)
    except StepFailedError as e:
        sys.exit(e.returncode if 0 < e.returncode < 256 else 1)
