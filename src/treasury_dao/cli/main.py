#!/usr/bin/env python3
"""
Treasury DAO command line.

Runs the node and the dashboard, seeds demo data, and drives governance
(propose, vote, finalize) against a running node.
"""

from __future__ import annotations

import json
import logging
import sys
from datetime import datetime
from typing import Any, Optional

import click
from rich import box
from rich.console import Console
from rich.table import Table

from ..client import DAOClient
from ..core.config import ConfigurationError, DAOConfig, load_config
from ..core.exceptions import DAOError
from ..core.logging_config import setup_logging
from ..core.units import format_units, parse_units

logger = logging.getLogger(__name__)
console = Console()


def _handle_cli_error(exc: Exception, exit_code: int = 1) -> None:
    """Centralized CLI error handler for consistent messaging/exit codes."""
    logger.debug("CLI error: %s", exc, exc_info=True)
    code = getattr(exc, "code", None)
    suffix = f" [dim]({code})[/]" if code else ""
    console.print(f"[bold red]Error:[/] {exc}{suffix}")
    sys.exit(exit_code)


def _client(ctx: click.Context, require_account: bool = False) -> DAOClient:
    client: DAOClient = ctx.obj["client"]
    if require_account and not client.account:
        _handle_cli_error(click.UsageError("--account (or DAO_ACCOUNT) is required"))
    return client


def _emit(ctx: click.Context, data: Any) -> bool:
    """Print raw JSON when --json was given; returns True if it did."""
    if ctx.obj.get("json_output"):
        click.echo(json.dumps(data, indent=2))
        return True
    return False


def _proposal_status(proposal: dict[str, Any]) -> str:
    return "[green]APPROVED[/]" if proposal.get("finalized") else "[yellow]IN PROGRESS[/]"


@click.group()
@click.option("--config", "config_path", type=click.Path(dir_okay=False), help="YAML config file")
@click.option("--node", envvar="DAO_NODE_URL", help="Node API URL")
@click.option("--account", envvar="DAO_ACCOUNT", help="Account acting as requester")
@click.option("--api-key", envvar="DAO_API_KEY", help="Node API key")
@click.option("--json", "json_output", is_flag=True, help="Print raw JSON")
@click.pass_context
def cli(
    ctx: click.Context,
    config_path: Optional[str],
    node: Optional[str],
    account: Optional[str],
    api_key: Optional[str],
    json_output: bool,
):
    """Token-weighted governance over a shared treasury."""
    try:
        config = load_config(config_path)
    except ConfigurationError as exc:
        _handle_cli_error(exc)
    # Client commands keep the console quiet; servers log at the configured level.
    level = config.log_level if ctx.invoked_subcommand in ("serve", "dashboard") else "WARNING"
    setup_logging(level=level, log_file=config.log_file, environment=config.environment)

    ctx.ensure_object(dict)
    ctx.obj["config"] = config
    ctx.obj["json_output"] = json_output
    ctx.obj.setdefault(
        "client",
        DAOClient(node or config.node_url, account=account, api_key=api_key),
    )


# ==================== Servers ====================


@cli.command()
@click.option("--host", default=None, help="Bind address")
@click.option("--port", default=None, type=int, help="Bind port")
@click.pass_context
def serve(ctx: click.Context, host: Optional[str], port: Optional[int]):
    """Deploy a local DAO and serve the node API."""
    from ..api.node_api import create_app

    config: DAOConfig = ctx.obj["config"]
    app = create_app(config=config)
    deployment = app.config["DEPLOYMENT"]
    console.print(f"[bold cyan]Token deployed to:[/] {deployment.token.address}")
    console.print(f"[bold cyan]DAO deployed to:[/] {deployment.dao.address}")
    app.run(host=host or config.node_host, port=port or config.node_port, debug=False)


@cli.command()
@click.option("--port", default=None, type=int, help="Bind port")
@click.pass_context
def dashboard(ctx: click.Context, port: Optional[int]):
    """Serve the web dashboard against the node."""
    from ..dashboard.governance_ui import create_dashboard_app

    config: DAOConfig = ctx.obj["config"]
    client = _client(ctx)
    app = create_dashboard_app(client, default_account=client.account)
    app.run(host="127.0.0.1", port=port or config.dashboard_port, debug=False)


@cli.command()
@click.pass_context
def seed(ctx: click.Context):
    """Populate a fresh node with demo proposals."""
    from ..seed import seed as run_seed

    try:
        result = run_seed(_client(ctx), echo=click.echo)
    except (DAOError, ValueError) as exc:
        _handle_cli_error(exc)
    if _emit(ctx, result.__dict__):
        return
    console.print(
        f"[green]Seeded[/] {len(result.finalized)} finalized and "
        f"{len(result.open)} open proposal(s)"
    )


# ==================== Queries ====================


@cli.command()
@click.pass_context
def info(ctx: click.Context):
    """Show treasury balance, quorum and proposal count."""
    try:
        data = _client(ctx).info()
    except DAOError as exc:
        _handle_cli_error(exc)
    if _emit(ctx, data):
        return

    table = Table(title="Treasury DAO", box=box.ROUNDED, show_header=False)
    table.add_column("Field", style="cyan")
    table.add_column("Value", style="white")
    table.add_row("DAO", data["address"])
    table.add_row("Token", f"{data.get('token_symbol', '')} {data['token']}")
    table.add_row("Treasury Balance", f"{format_units(int(data['treasury_balance']))} ETH")
    table.add_row("Quorum", format_units(int(data["quorum"])))
    table.add_row("Proposals", str(data["proposal_count"]))
    console.print(table)


@cli.group()
def proposals():
    """List and inspect proposals."""
    pass


@proposals.command("list")
@click.pass_context
def list_proposals(ctx: click.Context):
    """List all proposals."""
    try:
        client = _client(ctx)
        items = client.list_proposals()
        quorum = client.quorum()
    except DAOError as exc:
        _handle_cli_error(exc)
    if _emit(ctx, items):
        return
    if not items:
        console.print("[yellow]No proposals found[/]")
        return

    table = Table(title=f"Proposals ({len(items)})", box=box.ROUNDED)
    table.add_column("#", style="cyan", no_wrap=True)
    table.add_column("Name", style="white", max_width=40)
    table.add_column("Recipient", style="dim")
    table.add_column("Amount", justify="right")
    table.add_column("Status")
    table.add_column("Votes", justify="right")
    for prop in items:
        table.add_row(
            str(prop["id"]),
            prop["name"],
            prop["recipient"],
            format_units(int(prop["amount"])),
            _proposal_status(prop),
            f"{format_units(int(prop['votes']))} / {format_units(quorum)}",
        )
    console.print(table)


@proposals.command("show")
@click.argument("proposal_id", type=int)
@click.pass_context
def show_proposal(ctx: click.Context, proposal_id: int):
    """Show one proposal."""
    client = _client(ctx)
    try:
        prop = client.get_proposal(proposal_id, voter=client.account)
    except DAOError as exc:
        _handle_cli_error(exc)
    if _emit(ctx, prop):
        return

    created = datetime.fromtimestamp(prop["created_at"]).strftime("%Y-%m-%d %H:%M:%S")
    console.print(f"[bold]Proposal {prop['id']}:[/] {prop['name']}")
    console.print(f"  Recipient: {prop['recipient']}")
    console.print(f"  Amount:    {format_units(int(prop['amount']))} ETH")
    console.print(f"  Votes:     {format_units(int(prop['votes']))}")
    console.print(f"  Status:    {_proposal_status(prop)}")
    console.print(f"  Proposer:  {prop['proposer']}")
    console.print(f"  Created:   {created}")
    if "has_voted" in prop:
        console.print(f"  You voted: {'yes' if prop['has_voted'] else 'no'}")


@cli.command()
@click.option("--since", default=0, type=int, help="Only events after this sequence number")
@click.pass_context
def events(ctx: click.Context, since: int):
    """Show the governance event log."""
    try:
        entries = _client(ctx).events(since=since)
    except DAOError as exc:
        _handle_cli_error(exc)
    if _emit(ctx, entries):
        return

    table = Table(title="Events", box=box.SIMPLE)
    table.add_column("Seq", style="cyan", justify="right")
    table.add_column("Event", style="green")
    table.add_column("Args")
    for entry in entries:
        args = ", ".join(f"{k}={v}" for k, v in entry["args"].items())
        table.add_row(str(entry["sequence"]), entry["name"], args)
    console.print(table)


# ==================== Commands ====================


@cli.command()
@click.argument("name")
@click.argument("amount")
@click.argument("recipient")
@click.pass_context
def propose(ctx: click.Context, name: str, amount: str, recipient: str):
    """Propose sending AMOUNT (whole units) from the treasury to RECIPIENT."""
    try:
        base_amount = parse_units(amount)
    except ValueError as exc:
        raise click.BadParameter(str(exc), param_hint="AMOUNT")
    try:
        prop = _client(ctx, require_account=True).create_proposal(name, base_amount, recipient)
    except DAOError as exc:
        _handle_cli_error(exc)
    if _emit(ctx, prop):
        return
    console.print(f"[green]Proposal {prop['id']} created[/]")


@cli.command()
@click.argument("proposal_id", type=int)
@click.pass_context
def vote(ctx: click.Context, proposal_id: int):
    """Vote on a proposal with the account's full token balance."""
    try:
        prop = _client(ctx, require_account=True).vote(proposal_id)
    except DAOError as exc:
        _handle_cli_error(exc)
    if _emit(ctx, prop):
        return
    console.print(
        f"[green]Vote recorded on proposal {proposal_id}[/] "
        f"(total {format_units(int(prop['votes']))})"
    )


@cli.command()
@click.argument("proposal_id", type=int)
@click.pass_context
def finalize(ctx: click.Context, proposal_id: int):
    """Finalize a proposal that reached quorum and pay the recipient."""
    try:
        prop = _client(ctx, require_account=True).finalize_proposal(proposal_id)
    except DAOError as exc:
        _handle_cli_error(exc)
    if _emit(ctx, prop):
        return
    console.print(f"[green]Proposal {proposal_id} finalized[/]")


def main():
    return cli(obj={})


if __name__ == "__main__":
    sys.exit(main() or 0)
