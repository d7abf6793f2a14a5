"""Node sync status command"""

import click
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from ethnode.api.client import APIError, Client

console = Console()


def _execution_row(client: Client):
    try:
        syncing = client.execution.syncing()
        peers = client.execution.peer_count()
        current = syncing.get("currentBlock") if syncing else client.execution.block_number()
    except APIError as e:
        return {"client": "geth", "reachable": False, "error": str(e)}

    row = {"client": "geth", "reachable": True, "syncing": bool(syncing), "peers": peers, "current": current}
    if syncing:
        row["highest"] = syncing.get("highestBlock")
    return row


def _beacon_row(client: Client):
    try:
        data = client.beacon.syncing()
        peers = client.beacon.peer_count()
    except APIError as e:
        return {"client": "prysm", "reachable": False, "error": str(e)}

    return {
        "client": "prysm",
        "reachable": True,
        "syncing": bool(data.get("is_syncing")),
        "peers": int(peers.get("connected", 0)),
        "current": int(data.get("head_slot", 0)),
        "distance": int(data.get("sync_distance", 0)),
    }


@click.command()
@click.option("--host", default="localhost", help="Host the node's APIs are reachable on")
@click.option("--format", type=click.Choice(["table", "json"]), default="table")
@click.pass_context
def status(ctx, host, format):
    """Show execution and consensus client sync status"""
    from ethnode.cli.main import load_config

    client = ctx.obj.get("client") or Client.from_config(load_config(ctx), host=host)
    rows = [_execution_row(client), _beacon_row(client)]

    if format == "json":
        console.print_json(data=rows)
    else:
        table = Table(title="Node Status")
        table.add_column("Client", style="cyan")
        table.add_column("Status", no_wrap=True)
        table.add_column("Peers")
        table.add_column("Head")
        table.add_column("Detail")

        for row in rows:
            if not row["reachable"]:
                table.add_row(row["client"], "[red]unreachable[/red]", "-", "-", escape(row["error"]))
                continue

            state = "[yellow]syncing[/yellow]" if row["syncing"] else "[green]synced[/green]"
            if "highest" in row:
                detail = f"target block {row['highest']}"
            elif "distance" in row:
                detail = f"sync distance {row['distance']}"
            else:
                detail = ""
            table.add_row(row["client"], state, str(row["peers"]), str(row["current"]), detail)

        console.print(table)

    if not all(row["reachable"] for row in rows):
        ctx.exit(1)
