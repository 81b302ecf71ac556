"""
Tableside CLI.

Command-line interface for database setup and order maintenance.

    python backend/cli.py init-db
    python backend/cli.py reconcile-tables 7
    python backend/cli.py backfill-tickets 7
    python backend/cli.py issue-token 12 7 --role CAPTAIN
"""

import sys
import time
from pathlib import Path

# Add backend to path for imports
sys.path.insert(0, str(Path(__file__).parent))

import httpx
import typer
from rich.console import Console
from rich.table import Table as RichTable

app = typer.Typer(
    name="tableside",
    help="Tableside order engine CLI",
    add_completion=False,
)
console = Console()


# =============================================================================
# Database Commands
# =============================================================================

@app.command()
def init_db():
    """Create all tables that do not exist yet."""
    from shared.infrastructure.db import engine
    from rest_api.models import Base

    console.print(f"[blue]Creating tables on: {engine.url.render_as_string(hide_password=True)}[/blue]")
    try:
        Base.metadata.create_all(bind=engine)
    except Exception as e:
        console.print(f"[red]✗ Table creation failed: {e}[/red]")
        raise typer.Exit(1)
    console.print("[green]✓ Tables created/verified[/green]")


# =============================================================================
# Order Maintenance Commands
# =============================================================================

@app.command()
def reconcile_tables(
    vendor_id: int = typer.Argument(..., help="Restaurant (vendor) id"),
):
    """Recompute every table's availability from the orders sitting on it."""
    from shared.infrastructure.db import get_db_context, safe_commit
    from rest_api.services.domain import TableLockService

    with get_db_context() as db:
        results = TableLockService(db).refresh_vendor_tables(vendor_id)
        safe_commit(db)

    table = RichTable(title=f"Tables of vendor {vendor_id}")
    table.add_column("Table id", style="cyan")
    table.add_column("Available", style="green")
    table.add_column("Changed", style="yellow")
    for result in results:
        table.add_row(
            str(result.table_id),
            "yes" if result.is_active else "no",
            "✓" if result.changed else "",
        )
    console.print(table)
    changed = sum(1 for r in results if r.changed)
    console.print(f"[green]✓ {len(results)} tables reconciled, {changed} changed[/green]")


@app.command()
def backfill_tickets(
    vendor_id: int = typer.Argument(..., help="Restaurant (vendor) id"),
):
    """Issue kitchen tickets for accepted dine-in orders that are missing one."""
    from shared.infrastructure.db import get_db_context
    from rest_api.services.domain import KitchenTicketService

    with get_db_context() as db:
        issued = KitchenTicketService(db).backfill_vendor(vendor_id)
    console.print(f"[green]✓ {issued} kitchen tickets issued[/green]")


# =============================================================================
# Auth Commands
# =============================================================================

@app.command()
def issue_token(
    user_id: int = typer.Argument(..., help="Staff user id (sub claim)"),
    vendor_id: int = typer.Argument(..., help="Restaurant (vendor) id"),
    role: list[str] = typer.Option(["VENDOR"], "--role", "-r", help="Role claim (repeatable)"),
    ttl_minutes: int = typer.Option(60, help="Token lifetime in minutes"),
):
    """Sign a staff access token (development and smoke tests)."""
    from shared.config.constants import Roles
    from shared.security.auth import sign_jwt

    unknown = [r for r in role if r not in Roles.ALL]
    if unknown:
        console.print(f"[red]Unknown role(s): {', '.join(unknown)}. Valid: {', '.join(Roles.ALL)}[/red]")
        raise typer.Exit(1)

    token = sign_jwt(
        {"sub": str(user_id), "vendor_id": vendor_id, "roles": role},
        ttl_seconds=ttl_minutes * 60,
    )
    console.print(token, soft_wrap=True)


# =============================================================================
# Health Commands
# =============================================================================

@app.command()
def health(
    base_url: str = typer.Option("http://localhost:8000", help="REST API base URL"),
):
    """Check the running API."""
    table = RichTable(title="Service Health")
    table.add_column("Endpoint", style="cyan")
    table.add_column("Status", style="green")
    table.add_column("Response Time", style="yellow")

    with httpx.Client(timeout=5.0) as client:
        for path in ("/api/health", "/api/health/detailed"):
            try:
                start = time.time()
                response = client.get(f"{base_url}{path}")
                elapsed = (time.time() - start) * 1000
                if response.status_code == 200:
                    table.add_row(path, "✓ Healthy", f"{elapsed:.0f}ms")
                else:
                    table.add_row(path, f"✗ Status {response.status_code}", f"{elapsed:.0f}ms")
            except httpx.HTTPError as e:
                table.add_row(path, f"✗ {type(e).__name__}", "-")

    console.print(table)


if __name__ == "__main__":
    app()
