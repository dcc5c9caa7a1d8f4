"""
Round Trip CLI
==============
Typer + Rich front end for planning and submitting round trips.

Commands:
    round-trip plan   --pool <amm id> --base <mint> --quote <mint> --owner <wallet> --amount-in N ...
    round-trip submit --pool <amm id> --base <mint> --quote <mint> --amount-in N ...
    round-trip volume --pool <amm id> --base <mint> --quote <mint> --amount-in N --count 3 ...
"""

from typing import Optional

import typer
from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from solana.rpc.api import Client
from solders.pubkey import Pubkey
from spl.token.instructions import get_associated_token_address

from config.settings import Settings
from round_trip.execution.account_layout import RpcBalanceReader
from round_trip.execution.errors import SwapError
from round_trip.execution.host import ReadOnlyHost
from round_trip.execution.orchestrator import SwapOrchestrator
from round_trip.execution.pool_fetcher import RaydiumPoolFetcher
from round_trip.execution.schemas import AccountLeg, SwapRequest, VenueRef, describe_instruction
from round_trip.execution.submitter import RoundTripSubmitter, batch_summary, load_keypair


app = typer.Typer(
    name="round-trip",
    help="Atomic round-trip swaps against Raydium AMM v4 pools",
    rich_markup_mode="rich",
)

console = Console()


def _resolve_venue(pool_id: str) -> VenueRef:
    fetcher = RaydiumPoolFetcher()
    pool = fetcher.get_pool_by_id(pool_id)
    if pool is None:
        console.print(f"[bold red]❌ Pool {pool_id} not found at {fetcher.api_url}[/bold red]")
        raise typer.Exit(1)
    try:
        return fetcher.to_venue(pool)
    except ValueError as e:
        console.print(f"[bold red]❌ {e}[/bold red]")
        raise typer.Exit(1)


def _print_instruction(title: str, ix) -> None:
    view = describe_instruction(ix)
    table = Table(title=f"{title}  (program {view['program_id']})", show_lines=False)
    table.add_column("#", justify="right", style="dim")
    table.add_column("Account")
    table.add_column("W", justify="center")
    table.add_column("S", justify="center")
    for i, meta in enumerate(view["accounts"]):
        table.add_row(
            str(i),
            meta["pubkey"],
            "✓" if meta["is_writable"] else "",
            "✓" if meta["is_signer"] else "",
        )
    console.print(table)
    console.print(f"[dim]data:[/dim] {view['data']}\n")


@app.command()
def plan(
    pool: str = typer.Option(..., "--pool", help="Raydium AMM id"),
    base: str = typer.Option(..., "--base", help="Mint spent by the buy leg"),
    quote: str = typer.Option(..., "--quote", help="Mint received by the buy leg"),
    owner: str = typer.Option(..., "--owner", help="Wallet owning the token accounts"),
    amount_in: int = typer.Option(..., "--amount-in", min=1),
    min_out_buy: int = typer.Option(..., "--min-out-buy", min=1),
    min_out_sell: int = typer.Option(..., "--min-out-sell", min=1),
):
    """
    Dry run: check balances and print both leg instructions without sending.
    """
    venue = _resolve_venue(pool)
    owner_key = Pubkey.from_string(owner)
    leg = AccountLeg(
        source=get_associated_token_address(owner_key, Pubkey.from_string(base)),
        destination=get_associated_token_address(owner_key, Pubkey.from_string(quote)),
        owner=owner_key,
    )

    host = ReadOnlyHost(RpcBalanceReader(Client(Settings.RPC_URL), missing_as_zero=True))
    orchestrator = SwapOrchestrator(host, dry_run=True)

    try:
        result = orchestrator.execute(amount_in, min_out_buy, min_out_sell, venue, leg)
    except SwapError as e:
        console.print(f"[bold red]❌ {e}[/bold red]")
        raise typer.Exit(1)
    except LookupError as e:
        console.print(f"[bold red]❌ Cannot read balances: {e}[/bold red]")
        raise typer.Exit(1)

    buy_ix, sell_ix = result.instructions
    _print_instruction("BUY", buy_ix)
    _print_instruction("SELL", sell_ix)


@app.command()
def submit(
    pool: str = typer.Option(..., "--pool", help="Raydium AMM id"),
    base: str = typer.Option(..., "--base", help="Mint spent by the buy leg"),
    quote: str = typer.Option(..., "--quote", help="Mint received by the buy leg"),
    amount_in: int = typer.Option(..., "--amount-in", min=1),
    min_out_buy: int = typer.Option(..., "--min-out-buy", min=1),
    min_out_sell: int = typer.Option(..., "--min-out-sell", min=1),
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip confirmation"),
    program_id: Optional[str] = typer.Option(None, "--program-id", help="Round-trip program override"),
):
    """
    Send a round trip through the on-chain program (uses PRIVATE_KEY from .env).
    """
    if not Settings.PRIVATE_KEY:
        console.print("[bold red]❌ PRIVATE_KEY is not set[/bold red]")
        raise typer.Exit(1)

    venue = _resolve_venue(pool)
    request = SwapRequest(amount_in, min_out_buy, min_out_sell)

    console.print(Panel.fit(
        f"[bold cyan]🔁 Round Trip[/bold cyan]\n"
        f"Cluster: {Settings.CLUSTER} | Pool: {pool}\n"
        f"amount_in={amount_in} min_out_buy={min_out_buy} min_out_sell={min_out_sell}",
        border_style="cyan",
    ))

    if not yes and not typer.confirm("Send transaction?", default=False):
        console.print("[yellow]Aborted.[/yellow]")
        raise typer.Exit(0)

    submitter = RoundTripSubmitter(
        Client(Settings.RPC_URL),
        load_keypair(Settings.PRIVATE_KEY),
        program_id=Pubkey.from_string(program_id) if program_id else None,
    )

    try:
        result = submitter.submit(request, venue, Pubkey.from_string(base), Pubkey.from_string(quote))
    except SwapError as e:
        console.print(f"[bold red]❌ {e}[/bold red]")
        raise typer.Exit(1)

    if not result.success:
        console.print(f"[bold red]❌ {result.error}[/bold red]")
        for line in result.logs:
            console.print(f"[dim]{line}[/dim]")
        raise typer.Exit(1)

    console.print(f"[bold green]✅ Sent:[/bold green] {result.signature}")


@app.command()
def volume(
    pool: str = typer.Option(..., "--pool", help="Raydium AMM id"),
    base: str = typer.Option(..., "--base", help="Mint spent by the buy leg"),
    quote: str = typer.Option(..., "--quote", help="Mint received by the buy leg"),
    amount_in: int = typer.Option(..., "--amount-in", min=1),
    min_out_buy: int = typer.Option(..., "--min-out-buy", min=1),
    min_out_sell: int = typer.Option(..., "--min-out-sell", min=1),
    count: int = typer.Option(3, "--count", "-n", min=1, help="Number of round trips"),
    delay: Optional[float] = typer.Option(None, "--delay", min=0.0, help="Seconds between round trips"),
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip confirmation"),
    program_id: Optional[str] = typer.Option(None, "--program-id", help="Round-trip program override"),
):
    """
    Send several identical round trips in a row and summarize the outcome.
    """
    if not Settings.PRIVATE_KEY:
        console.print("[bold red]❌ PRIVATE_KEY is not set[/bold red]")
        raise typer.Exit(1)

    venue = _resolve_venue(pool)
    request = SwapRequest(amount_in, min_out_buy, min_out_sell)

    console.print(Panel.fit(
        f"[bold cyan]📊 Volume Batch[/bold cyan]\n"
        f"Cluster: {Settings.CLUSTER} | Pool: {pool}\n"
        f"{count} x amount_in={amount_in} min_out_buy={min_out_buy} min_out_sell={min_out_sell}",
        border_style="cyan",
    ))

    if not yes and not typer.confirm(f"Send {count} transactions?", default=False):
        console.print("[yellow]Aborted.[/yellow]")
        raise typer.Exit(0)

    submitter = RoundTripSubmitter(
        Client(Settings.RPC_URL),
        load_keypair(Settings.PRIVATE_KEY),
        program_id=Pubkey.from_string(program_id) if program_id else None,
    )

    try:
        results = submitter.run_batch(
            request, venue, Pubkey.from_string(base), Pubkey.from_string(quote), count, delay
        )
    except SwapError as e:
        console.print(f"[bold red]❌ {e}[/bold red]")
        raise typer.Exit(1)

    table = Table(title="Volume Batch")
    table.add_column("#", justify="right", style="dim")
    table.add_column("Result")
    table.add_column("Signature / Error")
    for i, result in enumerate(results, 1):
        if result.success:
            table.add_row(str(i), "[green]✅[/green]", result.signature or "")
        else:
            table.add_row(str(i), "[red]❌[/red]", result.error or "")
    console.print(table)

    summary = batch_summary(results)
    console.print(
        f"Total: {summary['total']} | "
        f"[green]Succeeded: {summary['succeeded']}[/green] | "
        f"[red]Failed: {summary['failed']}[/red] | "
        f"Success rate: {summary['success_rate']:.1f}%"
    )

    if summary["succeeded"] == 0:
        raise typer.Exit(1)


if __name__ == "__main__":
    app()
