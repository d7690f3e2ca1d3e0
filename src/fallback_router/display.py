"""Terminal display — Rich-based formatting for routing output.

Renders routing results, the backend catalog, and probe results.
Credentials are never rendered; only whether a backend is configured.

Typical usage::

    from fallback_router.display import render_result

    render_result(result)
"""

from __future__ import annotations

from rich.console import Console
from rich.markdown import Markdown
from rich.panel import Panel
from rich.table import Table

from fallback_router.config import Config
from fallback_router.router import ProbeResult
from fallback_router.types import BackendCandidate, RoutingResult

console = Console()


def _format_latency(latency_ms: int | None) -> str:
    if latency_ms is None:
        return "—"
    return f"{latency_ms / 1000:.1f}s"


def render_result(result: RoutingResult, *, target: Console | None = None) -> None:
    """Render a routing result as a panel with a metadata footer.

    Args:
        result: Result to display.
        target: Console to print to. Defaults to the module console.
    """
    out = target or console
    if result.ok:
        border = "yellow" if result.used_fallback else "green"
        title = f"[bold]{result.backend}[/bold] · {result.model}"
    else:
        border = "red"
        title = f"[bold red]{result.status.value}[/bold red]"

    parts = [f"attempt {result.attempt_count}"]
    if result.latency_ms is not None:
        parts.append(_format_latency(result.latency_ms))
    if result.token_count is not None:
        parts.append(f"{result.token_count:,} tokens")

    out.print()
    out.print(
        Panel(
            Markdown(result.text),
            title=title,
            subtitle=f"[dim]{' | '.join(parts)}[/dim]",
            border_style=border,
            padding=(1, 2),
        )
    )
    out.print()


def render_backends(
    catalog: list[BackendCandidate],
    status: dict[str, bool],
    *,
    target: Console | None = None,
) -> None:
    """Render the backend catalog in priority order.

    Args:
        catalog: Resolved catalog from ``Config.resolve_catalog()``.
        status: Backend id → configured flag.
        target: Console to print to. Defaults to the module console.
    """
    out = target or console
    table = Table(show_header=True, padding=(0, 1))
    table.add_column("#", justify="right", style="dim")
    table.add_column("Backend", style="bold", no_wrap=True)
    table.add_column("Adapter")
    table.add_column("Model", style="dim")
    table.add_column("Endpoint", style="dim")
    table.add_column("Configured")

    for position, candidate in enumerate(catalog, start=1):
        configured = status.get(candidate.backend_id, False)
        table.add_row(
            str(position),
            candidate.backend_id,
            candidate.adapter.value,
            candidate.model,
            candidate.base_url,
            "[green]✓[/green]" if configured else "[dim]✗[/dim]",
        )

    out.print()
    out.print(table)
    out.print()


def render_config_show(config: Config, *, target: Console | None = None) -> None:
    """Render the effective configuration without key values.

    Args:
        config: Configuration to display.
        target: Console to print to. Defaults to the module console.
    """
    out = target or console
    table = Table(show_header=False, padding=(0, 1))
    table.add_column("Setting", style="bold")
    table.add_column("Value")
    table.add_row("timeout", f"{config.timeout:g}s")
    table.add_row("max_tokens", str(config.max_tokens))
    table.add_row("temperature", f"{config.temperature:g}")
    table.add_row("site_url", config.site_url)
    table.add_row("app_name", config.app_name)
    for backend_id, url in sorted(config.endpoints.items()):
        table.add_row(f"endpoint.{backend_id}", url)
    for backend_id, model in sorted(config.models.items()):
        table.add_row(f"model.{backend_id}", model)

    out.print()
    out.print(table)
    out.print()


def render_probes(results: list[ProbeResult], *, target: Console | None = None) -> None:
    """Render probe results as a Rich table.

    Args:
        results: One ProbeResult per probed backend.
        target: Console to print to. Defaults to the module console.
    """
    out = target or console
    table = Table(show_header=True, padding=(0, 1))
    table.add_column("Requested", style="bold")
    table.add_column("Answered by")
    table.add_column("Model", style="dim")
    table.add_column("Attempt", justify="right")
    table.add_column("Latency", justify="right")
    table.add_column("Status", no_wrap=True)

    for probe in results:
        result = probe.result
        if probe.used_requested:
            status_str = "[green]✓[/green]"
        elif result.ok:
            status_str = "[yellow]fallback[/yellow]"
        else:
            status_str = f"[red]✗ {result.status.value}[/red]"
        table.add_row(
            probe.backend,
            result.backend,
            result.model,
            str(result.attempt_count),
            _format_latency(probe.latency_ms),
            status_str,
        )

    out.print()
    out.print(table)
    out.print()
