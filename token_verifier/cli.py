"""CLI interface for the token verifier."""

import asyncio
import json
import logging
from typing import Optional

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from .address import validate_address
from .chains import CHAINS
from .config import Config
from .engine import create_engine
from .models import RiskLevel, VerificationRequest, VerificationResult
from .report import compare_verifications, verification_report

app = typer.Typer(
    name="token-verifier",
    help="Token risk verification for EVM chains",
)
console = Console()
err_console = Console(stderr=True)

RISK_COLORS = {
    RiskLevel.LOW: "green",
    RiskLevel.MEDIUM: "yellow",
    RiskLevel.HIGH: "orange3",
    RiskLevel.CRITICAL: "red",
}


def setup_logging(verbose: bool):
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=err_console, rich_tracebacks=True)],
        force=True,
    )


def parse_chain_ids(chains: Optional[str]) -> Optional[list[int]]:
    if not chains:
        return None
    try:
        return [int(part) for part in chains.split(",") if part.strip()]
    except ValueError:
        raise typer.BadParameter(f"Expected comma-separated chain ids, got '{chains}'")


def load_config() -> Config:
    config = Config.from_env()
    for issue in config.validate():
        err_console.print(f"[yellow]Config: {issue}[/yellow]")
    return config


async def _run_requests(config: Config, requests: list[VerificationRequest]) -> list[VerificationResult]:
    async with create_engine(config) as engine:
        return await engine.verify_batch(requests)


def print_decision(result: VerificationResult):
    decision = result.decision
    analysis = result.chain_analysis

    if analysis is not None:
        color = RISK_COLORS[analysis.risk_level]
        console.print(
            f"Score: [{color}]{analysis.overall_score}/100 {analysis.risk_level.value}[/{color}]"
        )

    verdict = "[bold green]SAFE[/bold green]" if decision.is_safe else "[bold red]UNSAFE[/bold red]"
    console.print(f"Verdict: {verdict}")
    console.print(f"Can automate: {'yes' if decision.can_automate else 'no'}")
    console.print(f"Requires approval: {'yes' if decision.requires_approval else 'no'}")
    console.print(f"Reason: {decision.reason}")

    if decision.risks:
        console.print("\n[bold]Risks:[/bold]")
        for risk in decision.risks:
            console.print(f"  • {risk}")


def print_cross_chain(result: VerificationResult):
    info = result.cross_chain_analysis
    if info is None:
        return

    table = Table(show_header=True, header_style="bold", title="Cross-chain")
    table.add_column("Chain")
    table.add_column("Found")
    table.add_column("Risk")
    table.add_column("Note")

    for record in info.per_chain_results:
        if record.analysis is not None:
            color = RISK_COLORS[record.analysis.risk_level]
            risk = f"[{color}]{record.analysis.risk_level.value} ({record.analysis.overall_score})[/{color}]"
        else:
            risk = "-"
        table.add_row(
            record.chain_name,
            "yes" if record.exists else "no",
            risk,
            record.error or "",
        )

    console.print(table)
    for rec in info.recommendations:
        console.print(f"  • {rec}")


@app.command()
def verify(
    address: str = typer.Argument(..., help="Token contract address"),
    chain_id: Optional[int] = typer.Option(None, help="Chain id (defaults to DEFAULT_CHAIN_ID)"),
    cross_chain: bool = typer.Option(False, "--cross-chain", help="Also check other chains"),
    chains: Optional[str] = typer.Option(None, help="Comma-separated chain ids for --cross-chain"),
    as_json: bool = typer.Option(False, "--json", help="Print the result as JSON"),
    full: bool = typer.Option(False, "--full", help="Print the full text report"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Debug logging"),
):
    """Verify a token and print the automation decision."""
    setup_logging(verbose)
    config = load_config()

    request = VerificationRequest(
        token_address=address,
        chain_id=chain_id or config.default_chain_id,
        cross_chain=cross_chain,
        chain_ids=parse_chain_ids(chains),
    )
    result = asyncio.run(_run_requests(config, [request]))[0]

    if as_json:
        typer.echo(json.dumps(result.to_dict(), indent=2))
        return

    if full:
        console.print(verification_report(result), markup=False, highlight=False)
        return

    console.print(f"[bold green]Token verification[/bold green] {address}")
    print_decision(result)
    print_cross_chain(result)


@app.command()
def batch(
    addresses: list[str] = typer.Argument(..., help="Token contract addresses"),
    chain_id: Optional[int] = typer.Option(None, help="Chain id (defaults to DEFAULT_CHAIN_ID)"),
    as_json: bool = typer.Option(False, "--json", help="Print results as JSON"),
    as_report: bool = typer.Option(False, "--report", help="Print the plain-text comparison"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Debug logging"),
):
    """Verify several tokens concurrently and compare them."""
    setup_logging(verbose)
    config = load_config()

    requests = [
        VerificationRequest(token_address=a, chain_id=chain_id or config.default_chain_id)
        for a in addresses
    ]
    results = asyncio.run(_run_requests(config, requests))

    if as_json:
        typer.echo(json.dumps([r.to_dict() for r in results], indent=2))
        return

    if as_report:
        console.print(compare_verifications(results), markup=False, highlight=False)
        return

    table = Table(show_header=True, header_style="bold")
    table.add_column("Token")
    table.add_column("Score")
    table.add_column("Risk")
    table.add_column("Safe")
    table.add_column("Automate")

    for result in results:
        analysis = result.chain_analysis
        if analysis is not None:
            color = RISK_COLORS[analysis.risk_level]
            score = str(analysis.overall_score)
            risk = f"[{color}]{analysis.risk_level.value}[/{color}]"
        else:
            score, risk = "-", "-"
        table.add_row(
            result.request.token_address,
            score,
            risk,
            "[green]yes[/green]" if result.decision.is_safe else "[red]no[/red]",
            "yes" if result.decision.can_automate else "no",
        )

    console.print(table)
    safe = sum(1 for r in results if r.decision.is_safe)
    automatable = sum(1 for r in results if r.decision.can_automate)
    console.print(f"Safe: {safe}/{len(results)} | Can automate: {automatable}/{len(results)}")


@app.command("chains")
def list_chains():
    """List supported chains."""
    table = Table(show_header=True, header_style="bold")
    table.add_column("Chain ID")
    table.add_column("Name")
    table.add_column("Explorer")

    for chain in CHAINS.values():
        table.add_row(str(chain.chain_id), chain.name, chain.explorer_url)

    console.print(table)


@app.command("check-address")
def check_address(
    address: str = typer.Argument(..., help="Address to validate"),
    scheme: str = typer.Option("legacy", help="Checksum scheme (legacy, eip55)"),
):
    """Validate an address without touching the network."""
    validation = validate_address(address, scheme)

    if validation.is_valid:
        console.print(f"[green]Valid[/green] {validation.normalized}")
    else:
        console.print("[red]Invalid address[/red]")
    for error in validation.errors:
        console.print(f"  [red]✗[/red] {error}")
    for warning in validation.warnings:
        console.print(f"  [yellow]![/yellow] {warning}")

    if not validation.is_valid:
        raise typer.Exit(code=1)


if __name__ == "__main__":
    app()
