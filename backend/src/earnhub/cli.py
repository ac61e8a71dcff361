"""Command-line interface for EarnHub."""

from typing import Annotated

import typer
from rich.console import Console
from rich.table import Table

from earnhub.auth.local import LocalAuthService
from earnhub.errors import EarnHubError
from earnhub.logging_config import configure_logging, get_logger
from earnhub.settings import settings
from earnhub.storage.db import Database
from earnhub.storage.models import MAX_INTEGER
from earnhub.withdrawals.service import WithdrawalService

# Configure logging
configure_logging()
logger = get_logger(__name__)

# Create Typer app
app = typer.Typer(
    name="earnhub",
    help="EarnHub - balances, referrals, daily rewards and withdrawals",
    no_args_is_help=True,
)

# Rich console for pretty output
console = Console()


def _database() -> Database:
    return Database(settings.database_url)


@app.command("init")
def init_database() -> None:
    """Initialize the database and create tables."""
    console.print("[bold blue]Initializing database...[/bold blue]")
    _database().create_tables()
    console.print("[bold green]✓[/bold green] Database initialized successfully")


@app.command("serve")
def serve(
    host: Annotated[str, typer.Option("--host", help="Bind address")] = settings.host,
    port: Annotated[int, typer.Option("--port", "-p", help="Listening port")] = settings.port,
    reload: Annotated[bool, typer.Option("--reload", help="Reload on code changes")] = False,
) -> None:
    """Run the web server."""
    import uvicorn

    console.print(f"[bold blue]Server running on port {port}[/bold blue]")
    uvicorn.run("earnhub.api.main:create_app", factory=True, host=host, port=port, reload=reload)


@app.command("create-admin")
def create_admin(
    email: Annotated[str, typer.Option("--email", "-e", help="Admin email")],
    password: Annotated[str, typer.Option(prompt=True, hide_input=True, confirmation_prompt=True)],
    username: Annotated[str, typer.Option("--username", "-u", help="Admin name")] = "admin",
) -> None:
    """Create an admin account."""
    db = _database()
    db.create_tables()
    try:
        with db.session() as session:
            admin = LocalAuthService(settings).register_admin(session, username, email, password)
    except EarnHubError as e:
        console.print(f"[bold red]✗[/bold red] {e.message}")
        raise typer.Exit(code=1)

    console.print(f"[bold green]✓[/bold green] Admin created with ID: [bold]{admin.id}[/bold]")


@app.command("users")
def list_users() -> None:
    """List all user accounts."""
    with _database().session() as session:
        users = WithdrawalService(session).list_users()

        if not users:
            console.print("[yellow]No users found[/yellow]")
            return

        table = Table(title="Users")
        table.add_column("ID", style="cyan")
        table.add_column("Username")
        table.add_column("Email")
        table.add_column("Balance", justify="right", style="green")
        table.add_column("Referral code")
        table.add_column("Referred by")
        table.add_column("Last claim")

        for user in users:
            table.add_row(
                str(user.id),
                user.username,
                user.email,
                str(user.balance),
                user.referral_code,
                user.referred_by or "-",
                user.last_claim.strftime("%Y-%m-%d %H:%M") if user.last_claim else "never",
            )

    console.print(table)


@app.command("withdrawals")
def list_withdrawals() -> None:
    """List withdrawal requests."""
    with _database().session() as session:
        withdrawals = WithdrawalService(session).list_withdrawals()

        if not withdrawals:
            console.print("[yellow]No withdrawals found[/yellow]")
            return

        table = Table(title="Withdrawals")
        table.add_column("ID", style="cyan")
        table.add_column("User")
        table.add_column("Amount", justify="right")
        table.add_column("Card")
        table.add_column("Status")
        table.add_column("Requested")

        for withdrawal in withdrawals:
            status_style = "green" if withdrawal.status.value == "Approved" else "yellow"
            table.add_row(
                str(withdrawal.id),
                str(withdrawal.user_id),
                str(withdrawal.amount),
                withdrawal.masked_card_number,
                f"[{status_style}]{withdrawal.status.value}[/{status_style}]",
                withdrawal.created_at.strftime("%Y-%m-%d %H:%M"),
            )

    console.print(table)


@app.command("approve")
def approve(
    withdrawal_id: Annotated[int, typer.Argument(min=1, max=MAX_INTEGER, help="Withdrawal ID to approve")],
) -> None:
    """Approve a pending withdrawal."""
    try:
        with _database().session() as session:
            withdrawal = WithdrawalService(session).approve_withdrawal(withdrawal_id)
    except EarnHubError as e:
        console.print(f"[red]{e.message}[/red]")
        raise typer.Exit(code=1)

    console.print(f"[bold green]✓[/bold green] Withdrawal {withdrawal.id} is {withdrawal.status.value}")


def main() -> None:
    app()


if __name__ == "__main__":
    main()
