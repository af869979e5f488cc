"""Config commands: panel profiles and renewal policy."""

from __future__ import annotations

from typing import Annotated, Optional

import typer
from rich.console import Console
from rich.prompt import Confirm, Prompt

from helium.client.errors import error_handler
from helium.client.panel import PanelClient
from helium.commands import _common
from helium.commands._common import FormatOpt
from helium.config.models import PanelProfile
from helium.output.formatter import output

app = typer.Typer(name="config", help="Manage panel profiles and Helium configuration.")
console = Console()


def _mask(secret: str) -> str:
    return secret[:8] + "..." if len(secret) > 8 else "***"


@app.command()
@error_handler
def init() -> None:
    """Interactive setup wizard: create your first panel profile."""
    mgr = _common.get_manager()
    console.print("[bold]Helium Setup Wizard[/]\n")

    name = Prompt.ask("Profile name", default="default")
    url = Prompt.ask("Panel URL (e.g. https://panel.example.com)")
    api_key = Prompt.ask("Application API key (ptla_...)", default=None)
    verify_ssl = Confirm.ask("Verify SSL certificates?", default=True)

    profile = PanelProfile(
        name=name, url=url, api_key=api_key or None, verify_ssl=verify_ssl,
    )
    mgr.add_profile(profile)
    console.print(f"\n[green]Profile '{name}' saved and set as default.[/]")
    console.print(f"Config file: {mgr.config_path}")


@app.command()
@error_handler
def add(
    name: Annotated[str, typer.Argument(help="Profile name")],
    url: Annotated[str, typer.Option("--url", "-u", help="Panel URL")],
    api_key: Annotated[Optional[str], typer.Option("--api-key", "-k", help="Application API key")] = None,
    no_verify_ssl: Annotated[bool, typer.Option("--no-verify-ssl", help="Disable SSL verification")] = False,
    timeout: Annotated[Optional[float], typer.Option("--timeout", help="Request timeout in seconds")] = None,
    max_retries: Annotated[Optional[int], typer.Option("--max-retries", help="Retries on 429/5xx")] = None,
    cache_ttl: Annotated[Optional[int], typer.Option("--cache-ttl", help="Read cache TTL in seconds")] = None,
    set_default: Annotated[bool, typer.Option("--default", help="Set as default profile")] = False,
) -> None:
    """Add a panel profile."""
    mgr = _common.get_manager()
    overrides = {
        key: value
        for key, value in (("timeout", timeout), ("max_retries", max_retries), ("cache_ttl", cache_ttl))
        if value is not None
    }
    profile = PanelProfile(
        name=name, url=url, api_key=api_key, verify_ssl=not no_verify_ssl, **overrides,
    )
    mgr.add_profile(profile)
    if set_default:
        mgr.set_default(name)
    console.print(f"[green]Profile '{name}' added.[/]")


@app.command("list")
@error_handler
def list_profiles(fmt: FormatOpt = "table") -> None:
    """List all configured profiles."""
    mgr = _common.get_manager()
    profiles = mgr.config.profiles
    if not profiles:
        console.print("[yellow]No profiles configured. Run 'helium config init' to get started.[/]")
        return

    default = mgr.config.default_profile
    rows = [
        [name, p.url, "api key" if p.auth_configured else "none", "*" if name == default else ""]
        for name, p in profiles.items()
    ]
    output(
        {"profiles": [p.model_dump(exclude={"api_key"}) for p in profiles.values()]},
        fmt,
        columns=["Name", "URL", "Auth", "Default"],
        rows=rows,
        title="Panel Profiles",
    )


@app.command()
@error_handler
def show(
    name: Annotated[str, typer.Argument(help="Profile name")],
    fmt: FormatOpt = "table",
) -> None:
    """Show profile details."""
    profile = _common.get_manager().get_profile(name)
    if not profile:
        console.print(f"[red]Profile '{name}' not found.[/]")
        raise typer.Exit(1)

    data = profile.model_dump(exclude_none=True)
    if "api_key" in data:
        data["api_key"] = _mask(data["api_key"])
    output(data, fmt, kv=True, title=f"Profile: {name}")


@app.command("set-default")
@error_handler
def set_default(
    name: Annotated[str, typer.Argument(help="Profile name to set as default")],
) -> None:
    """Set the default panel profile."""
    if _common.get_manager().set_default(name):
        console.print(f"[green]Default profile set to '{name}'.[/]")
    else:
        console.print(f"[red]Profile '{name}' not found.[/]")
        raise typer.Exit(1)


@app.command()
@error_handler
def test(
    name: Annotated[Optional[str], typer.Argument(help="Profile name (uses default if omitted)")] = None,
) -> None:
    """Test connectivity to a panel."""
    profile = _common.get_manager().resolve_panel(profile_name=name)
    console.print(f"Testing connection to [bold]{profile.url}[/]...")

    with PanelClient(profile) as client:
        health = client.health_check()
    if not health.healthy:
        console.print(f"[red]Connection failed:[/] {health.message}")
        raise typer.Exit(2)
    console.print(f"[green]Connected![/] {health.message}")


@app.command()
@error_handler
def remove(
    name: Annotated[str, typer.Argument(help="Profile name to remove")],
    force: Annotated[bool, typer.Option("--force", help="Skip confirmation")] = False,
) -> None:
    """Remove a panel profile."""
    mgr = _common.get_manager()
    if not mgr.get_profile(name):
        console.print(f"[red]Profile '{name}' not found.[/]")
        raise typer.Exit(1)

    if not force and not Confirm.ask(f"Remove profile '{name}'?"):
        console.print("Cancelled.")
        return

    mgr.remove_profile(name)
    console.print(f"[green]Profile '{name}' removed.[/]")


@app.command()
@error_handler
def renewal(
    enabled: Annotated[Optional[bool], typer.Option("--enabled/--disabled", help="Turn the renewal system on or off")] = None,
    renewal_period: Annotated[Optional[int], typer.Option("--renewal-period", help="Days added per renewal")] = None,
    grace_period: Annotated[Optional[int], typer.Option("--grace-period", help="Days tolerated after expiry")] = None,
    deletion_period: Annotated[Optional[int], typer.Option("--deletion-period", help="Days suspended before deletion (0 = never)")] = None,
    renewal_cost: Annotated[Optional[int], typer.Option("--renewal-cost", help="Coins per renewal")] = None,
    auto_suspend: Annotated[Optional[bool], typer.Option("--auto-suspend/--no-auto-suspend")] = None,
    auto_renewal: Annotated[Optional[bool], typer.Option("--auto-renewal/--no-auto-renewal")] = None,
    fmt: FormatOpt = "table",
) -> None:
    """Show or change the renewal policy."""
    mgr = _common.get_manager()
    changes = {
        "enabled": enabled,
        "renewal_period": renewal_period,
        "grace_period": grace_period,
        "deletion_period": deletion_period,
        "renewal_cost": renewal_cost,
        "auto_suspend": auto_suspend,
        "auto_renewal": auto_renewal,
    }
    if any(v is not None for v in changes.values()):
        settings = mgr.update_renewal(**changes)
        console.print("[green]Renewal settings updated.[/]")
    else:
        settings = mgr.config.renewal
    output(settings, fmt, kv=True, title="Renewal Settings")
