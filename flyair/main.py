"""
FlyAir command line interface.

Commands:
- init-db: Create (or recreate) the database tables
- create-admin: Create an administrator account
- serve: Run the API with the Flask development server
- send-test-email: Push one message through the notification queue
"""

import logging

import typer
from rich import box
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from .database.config import DatabaseConfig
from .exceptions import FlyAirError
from .models import RegisterRequest
from .services import EmailMessage, EmailSender, NotificationDispatcher, Outbox, Services
from .utils.config import get_config
from .utils.logging_config import configure_logging

app = typer.Typer(help="FlyAir flight booking backend")
console = Console()
logger = logging.getLogger(__name__)


def _bootstrap(database_url=None):
    config = get_config()
    configure_logging(config.log_level)
    db_config = DatabaseConfig(database_url=database_url or config.database_url)
    return config, db_config


@app.command("init-db")
def init_db(
    drop: bool = typer.Option(False, "--drop", help="Drop existing tables first"),
    database_url: str = typer.Option(None, "--database-url", help="Override DATABASE_URL"),
):
    """Create the database tables."""
    _, db_config = _bootstrap(database_url)
    if not db_config.test_connection():
        console.print(f"[red]✗ Cannot connect to {db_config.get_connection_info()['database_url']}[/red]")
        raise typer.Exit(code=1)
    if drop:
        db_config.drop_tables()
        console.print("[yellow]Existing tables dropped[/yellow]")
    db_config.create_tables()

    info = db_config.get_connection_info()
    table = Table(title="Database", box=box.ROUNDED)
    table.add_column("Setting", style="cyan")
    table.add_column("Value", style="white")
    for key, value in info.items():
        table.add_row(key, str(value))
    console.print(table)
    console.print("[green]✓[/green] Tables created")


@app.command("create-admin")
def create_admin(
    username: str = typer.Option(..., "--username", "-u", prompt=True),
    email: str = typer.Option(..., "--email", "-e", prompt=True),
    password: str = typer.Option(..., "--password", "-p", prompt=True, hide_input=True, confirmation_prompt=True),
    first_name: str = typer.Option("Admin", "--first-name"),
    last_name: str = typer.Option("User", "--last-name"),
):
    """Create the first administrator account."""
    config, db_config = _bootstrap()
    db_config.create_tables()

    try:
        request = RegisterRequest(
            username=username,
            email=email,
            password=password,
            first_name=first_name,
            last_name=last_name,
        )
        with db_config.session_scope() as session:
            result = Services(session, config, outbox=Outbox()).auth.register_admin(request)
    except FlyAirError as e:
        console.print(f"[red]✗ {e.message}[/red]")
        raise typer.Exit(code=1)

    console.print(Panel(
        f"[bold]{result.user.username}[/bold] <{result.user.email}>",
        title="[green]Admin created[/green]",
        box=box.ROUNDED,
    ))


@app.command()
def serve(
    host: str = typer.Option("127.0.0.1", "--host", "-h"),
    port: int = typer.Option(5000, "--port", "-p"),
):
    """Run the API on the Flask development server."""
    from .api import create_app

    config, db_config = _bootstrap()
    db_config.create_tables()
    flask_app = create_app(config=config, db_config=db_config, start_dispatcher=True)

    console.print(Panel(
        f"[bold cyan]FlyAir API[/bold cyan] on http://{host}:{port}/api\n"
        f"Mail delivery: {'SMTP ' + config.smtp_host if config.mail_enabled else 'disabled (logged only)'}",
        box=box.DOUBLE,
    ))
    flask_app.run(host=host, port=port, debug=config.debug, use_reloader=False)


@app.command("send-test-email")
def send_test_email(
    to: str = typer.Option(..., "--to", help="Recipient address"),
):
    """Send one message through the notification queue with the current SMTP settings."""
    config = get_config()
    configure_logging(config.log_level)

    dispatcher = NotificationDispatcher(EmailSender(config), max_attempts=config.notification_max_attempts)
    dispatcher.enqueue(EmailMessage(
        to=to,
        subject="FlyAir - Test email",
        html="<p>Your FlyAir mail settings work.</p>",
    ))

    sent = 0
    failed = 0
    while dispatcher.get_queue_length() > 0:
        batch_sent, batch_failed = dispatcher.process_queue()
        sent += batch_sent
        failed += batch_failed

    if sent:
        console.print(f"[green]✓[/green] Sent to {to}")
    else:
        console.print(f"[red]✗ Delivery failed after {failed} attempt(s)[/red]")
        raise typer.Exit(code=1)


if __name__ == "__main__":
    app()
