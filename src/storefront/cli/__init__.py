"""CLI commands for the storefront cache.

Provides command-line interface using Typer:
- storefront-cache invalidate: Delete keys matching a pattern
- storefront-cache inspect: Show age and freshness of an entry
- storefront-cache ping: Check Redis connectivity
- storefront-cache metrics: Dump Prometheus metrics

Usage:
    storefront-cache --help
    storefront-cache invalidate "storefront:products:*"
    storefront-cache --log-level debug --console-logs ping
"""

import typer

from storefront.cli.cache_cmd import inspect, invalidate, metrics, ping
from storefront.config import settings
from storefront.observability.logging import configure_logging

# Main CLI application
app = typer.Typer(
    name="storefront-cache",
    help="Storefront cache: inspect and invalidate the Redis read-through cache",
    no_args_is_help=True,
)

app.command("invalidate")(invalidate)
app.command("inspect")(inspect)
app.command("ping")(ping)
app.command("metrics")(metrics)


@app.callback()
def callback(
    log_level: str = typer.Option(settings.log_level, "--log-level", "-l", help="Log level"),
    json_logs: bool = typer.Option(
        settings.log_json,
        "--json-logs/--console-logs",
        help="Emit JSON logs instead of console lines",
    ),
) -> None:
    """Storefront cache: inspect and invalidate the Redis read-through cache."""
    configure_logging(json_format=json_logs, level=log_level)


def main() -> None:
    """Entry point for the CLI."""
    app()


if __name__ == "__main__":
    main()
