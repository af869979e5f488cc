"""Panel commands: connectivity and rate-limit state."""

from __future__ import annotations

import typer
from rich.console import Console

from helium.client.errors import error_handler
from helium.commands._common import FormatOpt, KeyOpt, PanelOpt, UrlOpt, make_client
from helium.output.formatter import output

app = typer.Typer(name="panel", help="Panel health and API rate-limit status.")
console = Console()


@app.command()
@error_handler
def health(
    panel: PanelOpt = None,
    url: UrlOpt = None,
    api_key: KeyOpt = None,
    fmt: FormatOpt = "table",
) -> None:
    """Probe the panel API. Exits 2 when it is unreachable."""
    with make_client(panel, url, api_key) as client:
        status = client.health_check()
    output(status, fmt, kv=True, title="Panel Health")
    if not status.healthy:
        raise typer.Exit(2)


@app.command("rate-limit")
@error_handler
def rate_limit(
    panel: PanelOpt = None,
    url: UrlOpt = None,
    api_key: KeyOpt = None,
    fmt: FormatOpt = "table",
) -> None:
    """Make one request and show the rate-limit headers it returned."""
    with make_client(panel, url, api_key) as client:
        client.request("GET", "/users", params={"per_page": 1})
        info = client.get_rate_limit_info()
    data = {
        "remaining": info.remaining if info.remaining is not None else "unknown",
        "reset_at": info.reset_at.isoformat() if info.reset_at else "unknown",
    }
    output(data, fmt, kv=True, title="Rate Limit")
