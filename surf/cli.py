from __future__ import annotations
import asyncio
import logging
import signal
from pathlib import Path
from typing import List, Optional

import anyio
import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.progress import BarColumn, MofNCompleteColumn, Progress, SpinnerColumn, TextColumn
from rich.table import Table

from .config import Settings
from .errors import InvalidScanParameters
from .export import KINDS
from .http_client import build_client
from .prober import Prober
from .resolver import build_resolver
from .scanner import Scanner
from .service import SCAN_COMPLETE, SCAN_PROGRESS, ScanService
from .state import ScanRegistry, ScanResults
from .utils import load_domains

app = typer.Typer(no_args_is_help=True)
console = Console()
logger = logging.getLogger("surf")


@app.callback()
def main() -> None:
    """Find hosts that resolve but do not answer over HTTP(S): blind SSRF candidates."""


def setup_logging(level: str) -> None:
    logger.setLevel(level.upper())
    if not any(isinstance(h, RichHandler) for h in logger.handlers):
        logger.addHandler(RichHandler(console=console, rich_tracebacks=True, show_path=False, log_time_format="[%X]"))


async def run_scan(domains: list[str], settings: Settings, outdir: Path, prepend_protocol: bool) -> ScanResults:
    """Run one scan to completion (or Ctrl-C), then write the internal, external and combined lists."""
    done = anyio.Event()
    async with build_client(settings) as client:
        scanner = Scanner(
            Prober(client, settings.PROBE_SCHEMES),
            build_resolver(settings.DNS_SERVERS),
            registry=ScanRegistry(settings.RESULT_TTL_S),
        )
        with Progress(
            SpinnerColumn(),
            TextColumn("[progress.description]{task.description}"),
            BarColumn(),
            MofNCompleteColumn(),
            TextColumn("[dim]{task.fields[current]}"),
            console=console,
        ) as p:
            bar = p.add_task(description="Probing…", total=len(domains), current="")

            def on_event(name: str, payload: dict) -> None:
                if name == SCAN_PROGRESS:
                    shown = payload["currentDomains"][:3]
                    more = len(payload["currentDomains"]) - len(shown)
                    p.update(bar, completed=payload["current"], current=", ".join(shown) + (f" +{more}" if more > 0 else ""))
                elif name == SCAN_COMPLETE:
                    done.set()

            service = ScanService(scanner, on_event)
            scan_id = service.start_scan(domains, settings.TIMEOUT_MS, settings.MAX_CONCURRENCY)

            loop = asyncio.get_running_loop()
            try:
                loop.add_signal_handler(signal.SIGINT, service.cancel_scan, scan_id)
            except (NotImplementedError, RuntimeError):
                logger.debug("SIGINT handler unavailable; Ctrl-C will abort without partial results")
            try:
                await done.wait()
            finally:
                try:
                    loop.remove_signal_handler(signal.SIGINT)
                except (NotImplementedError, RuntimeError):
                    pass

        results = service.get_scan_results(scan_id)
        if results.cancelled:
            console.print("[yellow]Scan cancelled[/], waiting for in-flight probes to settle…")
        await scanner.join(scan_id)

        for kind in KINDS:
            path = service.export_to_file(scan_id, kind, prepend_protocol, outdir)
            console.print(f"[green]✔[/] {kind}: [bold]{path}[/]")
    return results


def render_summary(results: ScanResults) -> Table:
    table = Table(title=f"SSRF candidates ({results.total_domains} domains scanned)")
    table.add_column("Host")
    table.add_column("Class")
    table.add_column("Addresses")
    for host, ips in results.internal_hosts.items():
        table.add_row(host, "[red]internal[/]", ", ".join(ips))
    for host, ips in results.external_hosts.items():
        table.add_row(host, "[cyan]external[/]", ", ".join(ips))
    return table


@app.command()
def scan(
    domains: Path = typer.Option(..., exists=True, readable=True, help="File with one domain per line"),
    timeout_ms: Optional[int] = typer.Option(None, help="Per-scheme probe timeout in milliseconds"),
    concurrency: Optional[int] = typer.Option(None, help="Domains processed at once"),
    outdir: Optional[Path] = typer.Option(None, help="Directory for exported lists"),
    prepend_protocol: bool = typer.Option(False, help="Write https:// and http:// URLs instead of bare hosts"),
    dns_server: Optional[List[str]] = typer.Option(None, help="Query these nameservers instead of the OS resolver"),
    log_level: Optional[str] = typer.Option(None),
):
    s = Settings()
    if timeout_ms is not None:
        s.TIMEOUT_MS = timeout_ms
    if concurrency is not None:
        s.MAX_CONCURRENCY = concurrency
    if dns_server:
        s.DNS_SERVERS = list(dns_server)
    if log_level:
        s.LOG_LEVEL = log_level
    setup_logging(s.LOG_LEVEL)

    targets = load_domains(domains)
    if not targets:
        console.print("[bold red]No domains provided.")
        raise typer.Exit(1)

    console.rule("[bold cyan]surf")
    console.print(f"Domains: [bold]{len(targets)}[/] | Timeout: [bold]{s.TIMEOUT_MS}ms[/] | Concurrency: [bold]{s.MAX_CONCURRENCY}[/]")
    console.print(f"Resolver: [bold]{', '.join(s.DNS_SERVERS) or 'system'}[/]\n")
    try:
        results = asyncio.run(run_scan(targets, s, outdir or Path(s.OUTDIR), prepend_protocol))
    except InvalidScanParameters as e:
        console.print(f"[bold red]{e}")
        raise typer.Exit(2)

    console.print(render_summary(results))
    console.rule("[bold green]Done")
    console.print(
        f"internal=[bold]{len(results.internal)}[/] external=[bold]{len(results.external)}[/] "
        f"failed=[bold]{len(results.failed)}[/] total=[bold]{results.total_domains}[/]"
    )
