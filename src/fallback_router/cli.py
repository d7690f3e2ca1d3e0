"""CLI entry point for the fallback router.

Provides the ``fallback-router`` command with subcommands for sending
prompts through the fallback chain, inspecting the backend catalog,
probing backends, and managing configuration.

Typical usage::

    fallback-router ask "Summarize the plot of Hamlet" --backend groq
    fallback-router ask "List three wineries" --preset extract --output json
    fallback-router backends
    fallback-router probe groq google
"""

from __future__ import annotations

import asyncio
import json
import logging
import sys

import click
from rich.console import Console
from rich.logging import RichHandler

from fallback_router import __version__
from fallback_router.config import (
    BACKEND_IDS,
    CONFIG_PATH,
    configured_backends,
    env_sourced_endpoints,
    env_sourced_providers,
    load_config,
    write_config,
)
from fallback_router.display import (
    render_backends,
    render_config_show,
    render_probes,
    render_result,
)
from fallback_router.presets import PRESETS
from fallback_router.router import ProbeResult, Router

console = Console(stderr=True)


def _configure_logging(verbose: bool) -> None:
    """Send library logs to stderr through Rich.

    Args:
        verbose: If True, log at DEBUG; otherwise WARNING.
    """
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, show_path=False)],
        force=True,
    )
    # httpx logs every request at INFO; keep it out unless asked.
    logging.getLogger("httpx").setLevel(logging.DEBUG if verbose else logging.WARNING)


def _require_backend(name: str) -> str:
    if name not in BACKEND_IDS:
        raise click.BadParameter(
            f"'{name}' is not a known backend. Choose from: {', '.join(BACKEND_IDS)}."
        )
    return name


@click.group()
@click.version_option(version=__version__, prog_name="fallback-router")
@click.option("--verbose", "-v", is_flag=True, default=False, help="Enable debug logging.")
def main(verbose: bool) -> None:
    """Multi-backend text generation with ordered fallback.

    Sends a prompt to the first configured backend in priority order and
    falls back to the next one whenever a backend is unconfigured,
    times out, or errors.
    """
    _configure_logging(verbose)


@main.command()
@click.argument("prompt")
@click.option("--system", "system_prompt", default=None, help="System instruction to prepend.")
@click.option("--backend", default=None, help="Backend to try first (e.g. groq).")
@click.option("--model", default=None, help="Model override for the preferred backend.")
@click.option(
    "--max-tokens",
    default=None,
    type=click.IntRange(1),
    help="Maximum output tokens (default: from config, 500).",
)
@click.option(
    "--temperature",
    default=None,
    type=click.FloatRange(0.0, 2.0),
    help="Sampling temperature (default: from config, 0.7).",
)
@click.option(
    "--preset",
    type=click.Choice(sorted(PRESETS), case_sensitive=False),
    default=None,
    help="Use a preset's backend and defaults. Explicit options still win.",
)
@click.option(
    "--output",
    type=click.Choice(["terminal", "json"], case_sensitive=False),
    default="terminal",
    help="Output format (default: terminal).",
)
def ask(
    prompt: str,
    system_prompt: str | None,
    backend: str | None,
    model: str | None,
    max_tokens: int | None,
    temperature: float | None,
    preset: str | None,
    output: str,
) -> None:
    """Send PROMPT through the fallback chain.

    Exits 1 when no backend produced a response.

    Args:
        prompt: User message text.
        system_prompt: Optional system instruction.
        backend: Preferred backend id.
        model: Model override for the preferred backend.
        max_tokens: Output bound.
        temperature: Sampling temperature.
        preset: Preset name supplying defaults.
        output: Output format choice.
    """
    if backend is not None:
        _require_backend(backend)

    if preset is not None:
        chosen = PRESETS[preset.lower()]
        backend = backend or chosen.preferred_backend
        if model is None and backend == chosen.preferred_backend:
            model = chosen.model
        max_tokens = max_tokens if max_tokens is not None else chosen.max_tokens
        temperature = temperature if temperature is not None else chosen.temperature

    router = Router(load_config())
    result = asyncio.run(
        router.route(
            [{"role": "user", "content": prompt}],
            system_prompt=system_prompt,
            preferred_backend=backend,
            model=model,
            max_tokens=max_tokens,
            temperature=temperature,
        )
    )

    if output == "json":
        click.echo(json.dumps(result.to_dict(), indent=2))
    else:
        render_result(result)

    if not result.ok:
        sys.exit(1)


@main.command()
def backends() -> None:
    """List backends in priority order and whether each is configured."""
    cfg = load_config()
    render_backends(cfg.resolve_catalog(), configured_backends(cfg))


async def _run_probes(router: Router, names: list[str]) -> list[ProbeResult]:
    """Probe each backend in turn over one shared connection pool.

    Args:
        router: Router to probe with.
        names: Backend ids to probe.

    Returns:
        One ProbeResult per backend, in the same order.
    """
    async with router:
        return [await router.probe(name) for name in names]


@main.command()
@click.argument("names", nargs=-1)
def probe(names: tuple[str, ...]) -> None:
    """Probe backends with a one-word prompt.

    Probes NAMES, or every configured backend if none are given. Exits 1
    if any probed backend did not answer itself.
    """
    cfg = load_config()
    status = configured_backends(cfg)
    targets = [_require_backend(n) for n in names] or [b for b, ok in status.items() if ok]

    if not targets:
        console.print(
            "[red bold]Error:[/red bold] No backends configured.\n"
            "Set a backend API key (e.g. GROQ_API_KEY) environment variable\n"
            f"or configure keys in {CONFIG_PATH}"
        )
        sys.exit(1)

    console.print(f"[dim]Probing {len(targets)} backend(s)...[/dim]")
    results = asyncio.run(_run_probes(Router(cfg), targets))
    render_probes(results)

    if not all(r.used_requested for r in results):
        sys.exit(1)


@main.group()
def config() -> None:
    """Manage configuration."""


@config.command()
def path() -> None:
    """Print the configuration file path."""
    click.echo(CONFIG_PATH)


@config.command("show")
def config_show() -> None:
    """Display effective configuration (key values are never shown)."""
    cfg = load_config()
    render_config_show(cfg)
    render_backends(cfg.resolve_catalog(), configured_backends(cfg))


@config.command("set-key")
@click.argument("backend")
@click.argument("key")
def set_key(backend: str, key: str) -> None:
    """Store KEY for BACKEND in the configuration file."""
    _require_backend(backend)
    cfg = load_config()
    env_provs = env_sourced_providers()
    if backend in env_provs:
        console.print(
            f"[yellow]Note:[/yellow] {backend} also has a key in the environment, "
            "which takes precedence."
        )
        env_provs.discard(backend)
    cfg.providers[backend] = key
    write_config(cfg, env_providers=env_provs, env_endpoints=env_sourced_endpoints())
    console.print(f"[dim]Saved {backend} key to {CONFIG_PATH}[/dim]")


if __name__ == "__main__":
    main()
