"""Verification commands"""

import shutil
from pathlib import Path

import click
from rich.console import Console

from ethnode.api.client import check_endpoint
from ethnode.compose import render_compose
from ethnode.secret import is_valid_secret, read_secret

console = Console()

REQUIRED_TOOLS = ["apt-get", "docker", "ufw", "netstat", "curl"]


@click.group()
def verify():
    """Verify system and installation"""
    pass


@verify.command()
@click.pass_context
def system(ctx):
    """Verify the tools the installer drives are present"""
    console.print("[bold]Checking system tools...[/bold]\n")

    missing = []
    for tool in REQUIRED_TOOLS:
        if shutil.which(tool):
            console.print(f"[green]✓[/green] {tool} found")
        else:
            console.print(f"[red]✗[/red] {tool} not found")
            missing.append(tool)

    if missing:
        console.print(f"\n[yellow]Missing: {', '.join(missing)} (ethnode install provides them)[/yellow]")
        ctx.exit(1)


@verify.command()
@click.option("--timeout", default=10.0, show_default=True, help="Request timeout in seconds")
@click.pass_context
def endpoints(ctx, timeout):
    """Verify checkpoint and genesis endpoints are reachable"""
    from ethnode.cli.main import load_config

    config = load_config(ctx)
    urls = dict.fromkeys([config.consensus.checkpoint_sync_url, config.consensus.genesis_beacon_api_url])

    failed = False
    for url in urls:
        if check_endpoint(url, timeout=timeout):
            console.print(f"[green]✓[/green] {url}")
        else:
            console.print(f"[red]✗[/red] {url} not reachable")
            failed = True

    if failed:
        ctx.exit(1)


@verify.command()
@click.pass_context
def install(ctx):
    """Verify the files the installer writes"""
    from ethnode.cli.main import load_config

    config = load_config(ctx)
    checks = []

    for directory in (config.execution_dir, config.consensus_dir):
        checks.append((f"directory {directory}", Path(directory).is_dir()))

    jwt_path = Path(config.jwt_path)
    checks.append((f"secret {jwt_path}", jwt_path.is_file() and is_valid_secret(read_secret(jwt_path))))

    compose_path = Path(config.compose_path)
    up_to_date = compose_path.is_file() and compose_path.read_text() == render_compose(config)
    checks.append((f"compose file {compose_path}", up_to_date))

    for name, ok in checks:
        mark = "[green]✓[/green]" if ok else "[red]✗[/red]"
        console.print(f"{mark} {name}")

    if not all(ok for _, ok in checks):
        ctx.exit(1)
