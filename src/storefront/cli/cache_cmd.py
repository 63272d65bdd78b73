"""Operator commands for the Redis read-through cache.

Usage:
    storefront-cache invalidate "storefront:products:*"
    storefront-cache inspect storefront:product:42 --ttl 60 --stale-time 10
    storefront-cache ping
    storefront-cache metrics
"""

from __future__ import annotations

import asyncio
import time
from typing import TYPE_CHECKING, Any, Awaitable, Callable, TypeVar

import typer
from rich.console import Console

from storefront.cache.coordinator import CacheCoordinator
from storefront.cache.entry import CacheEntry, Freshness
from storefront.cache.errors import CachePayloadError
from storefront.cache.lock import CacheLock
from storefront.cache.redis import create_redis, health_check
from storefront.config import settings
from storefront.observability.metrics import get_metrics

if TYPE_CHECKING:
    from redis.asyncio import Redis

console = Console()

R = TypeVar("R")

_FRESHNESS_STYLE = {
    Freshness.FRESH: "green",
    Freshness.STALE: "yellow",
    Freshness.EXPIRED: "red",
}


def _with_client(url: str | None, action: Callable[[Redis], Awaitable[R]]) -> R:
    """Run an async action against a short-lived Redis client."""

    async def runner() -> R:
        client = create_redis(url)
        try:
            return await action(client)
        finally:
            await client.aclose()

    return asyncio.run(runner())


def invalidate(
    pattern: str = typer.Argument(..., help="Glob pattern, e.g. 'storefront:products:*'"),
    redis_url: str | None = typer.Option(None, "--redis-url", help="Override REDIS_URL"),
) -> None:
    """Delete every cache key matching PATTERN."""

    async def action(client: Redis) -> int:
        return await CacheCoordinator(client).invalidate_cache(pattern)

    deleted = _with_client(redis_url, action)
    console.print(f"[green]Deleted {deleted} key(s)[/green] matching {pattern}")


def inspect(
    key: str = typer.Argument(..., help="Cache key to inspect"),
    ttl: int = typer.Option(
        settings.products_list_ttl, "--ttl", "-t", help="Fresh window in seconds"
    ),
    stale_time: int = typer.Option(
        settings.catalog_stale_time, "--stale-time", "-s", help="Stale window in seconds"
    ),
    redis_url: str | None = typer.Option(None, "--redis-url", help="Override REDIS_URL"),
) -> None:
    """Show the age and freshness of a cached entry."""

    async def action(client: Redis) -> tuple[Any, int, str | None]:
        data = await client.get(key)
        expires_in = await client.ttl(key)
        owner = await CacheLock(client, key).owner()
        return data, expires_in, owner

    data, expires_in, owner = _with_client(redis_url, action)

    if data is None:
        console.print(f"[yellow]No entry for[/yellow] {key}")
        raise typer.Exit(code=1)

    try:
        entry = CacheEntry.from_bytes(key, data)
    except CachePayloadError as e:
        console.print(f"[red]Malformed entry:[/red] {e}")
        raise typer.Exit(code=1) from None

    now_ms = int(time.time() * 1000)
    state = entry.freshness(now_ms, ttl, stale_time)
    style = _FRESHNESS_STYLE[state]

    console.print(f"[bold]Key:[/bold]        {key}")
    console.print(f"[bold]State:[/bold]      [{style}]{state.value}[/{style}]")
    console.print(f"[bold]Age:[/bold]        {entry.age_ms(now_ms) / 1000:.1f}s")
    console.print(f"[bold]Expires in:[/bold] {expires_in}s")
    console.print(f"[bold]Lock holder:[/bold] {owner or '-'}")


def ping(
    redis_url: str | None = typer.Option(None, "--redis-url", help="Override REDIS_URL"),
) -> None:
    """Check that Redis is reachable."""
    if _with_client(redis_url, health_check):
        console.print("[green]Redis is reachable[/green]")
        return

    console.print("[red]Redis is unreachable[/red] (reads will fall back to the database)")
    raise typer.Exit(code=1)


def metrics() -> None:
    """Print cache metrics in Prometheus exposition format."""
    typer.echo(get_metrics().generate_latest().decode())
