#!/usr/bin/env python3
"""
NoteVault CLI.

Primary entry point for all application operations.
Use --service to select what to run, --action to control lifecycle.

Usage:
    python cli.py --help
    python cli.py --service server --verbose
    python cli.py --service server --action stop
    python cli.py --service sweep-trash --verbose
    python cli.py --service create-user --email ada@example.com --name Ada --password s3cret!
    python cli.py --service config
"""

import asyncio
import os
import signal
import subprocess
import sys
from pathlib import Path

import click
import structlog

PROJECT_ROOT = Path(__file__).parent
sys.path.insert(0, str(PROJECT_ROOT))

from notevault.backend.core.logging import get_logger, setup_logging

LONG_RUNNING_SERVICES = {"server", "worker", "scheduler"}


def validate_project_root() -> Path:
    """Validate that we're running from the project root."""
    if not (PROJECT_ROOT / ".project_root").exists():
        click.echo(
            click.style("Error: .project_root not found. Run from project root.", fg="red"),
            err=True,
        )
        sys.exit(1)
    return PROJECT_ROOT


def _find_process_on_port(port: int) -> list[int]:
    """Find PIDs listening on a port."""
    result = subprocess.run(
        ["lsof", "-ti", f":{port}"],
        capture_output=True, text=True,
    )
    pids = result.stdout.strip().split("\n")
    return [int(p) for p in pids if p.strip()]


def _service_stop(logger, service: str, port: int) -> None:
    """Stop a running service by finding its process on the port."""
    pids = _find_process_on_port(port)
    if not pids:
        click.echo(f"No {service} running on port {port}.")
        return

    for pid in pids:
        os.kill(pid, signal.SIGINT)
        logger.info("Sent SIGINT", extra={"service": service, "pid": pid, "port": port})

    click.echo(f"{service.title()} on port {port} stopped (PID: {', '.join(str(p) for p in pids)}).")


def _service_status(logger, service: str, port: int) -> None:
    """Check if a service is running on a port."""
    pids = _find_process_on_port(port)
    if pids:
        click.echo(f"{service.title()} is running on port {port} (PID: {', '.join(str(p) for p in pids)}).")
    else:
        click.echo(f"{service.title()} is not running on port {port}.")


def _get_service_port(port: int | None) -> int:
    """Get the port from argument or config."""
    if port is not None:
        return port
    from notevault.backend.core.config import get_app_config
    return get_app_config().application.server.port


def _fail(logger, message: str, error: Exception | None = None) -> None:
    """Log, print in red and exit with status 1."""
    logger.error(message, extra={"error": str(error) if error else None})
    detail = f": {error}" if error else ""
    click.echo(click.style(f"Error: {message}{detail}", fg="red"), err=True)
    sys.exit(1)


@click.command()
@click.option(
    "--service", "-s",
    type=click.Choice([
        "server", "worker", "scheduler", "sweep-trash",
        "create-user", "sync-user", "migrate", "config", "info",
    ]),
    default="info",
    help="Service or command to run.",
)
@click.option(
    "--action", "-a",
    type=click.Choice(["start", "stop", "restart", "status"]),
    default="start",
    help="Lifecycle action for long-running services (server, worker, scheduler).",
)
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose output (INFO level logging).")
@click.option("--debug", "-d", is_flag=True, help="Enable debug output (DEBUG level logging).")
@click.option("--host", default=None, help="Server host.")
@click.option("--port", default=None, type=int, help="Server port.")
@click.option("--reload", is_flag=True, help="Enable auto-reload (server only).")
@click.option("--workers", default=1, type=int, help="Number of worker processes.")
@click.option(
    "--retention-days",
    default=None,
    type=click.IntRange(min=1),
    help="Override trash retention (sweep-trash only).",
)
@click.option("--email", default=None, help="Email address (create-user, sync-user).")
@click.option("--name", default=None, help="Display name (create-user, sync-user).")
@click.option("--password", default=None, help="Password (create-user only).")
@click.option("--admin", is_flag=True, help="Create the user with the admin role.")
@click.option("--provider", default=None, help="Identity provider (sync-user only).")
@click.option("--uid", default=None, help="Provider user id (sync-user only).")
@click.option(
    "--migrate-action",
    type=click.Choice(["upgrade", "downgrade", "current", "history", "autogenerate"]),
    default="current",
    help="Migration action.",
)
@click.option("--revision", default="head", help="Target revision for upgrade/downgrade.")
@click.option("-m", "--message", default=None, help="Migration message (for autogenerate).")
def main(
    service: str,
    action: str,
    verbose: bool,
    debug: bool,
    host: str | None,
    port: int | None,
    reload: bool,
    workers: int,
    retention_days: int | None,
    email: str | None,
    name: str | None,
    password: str | None,
    admin: bool,
    provider: str | None,
    uid: str | None,
    migrate_action: str,
    revision: str,
    message: str | None,
) -> None:
    """
    NoteVault CLI.

    Use --service to select what to run. For long-running services
    (server, worker, scheduler), use --action to control lifecycle
    (start/stop/restart/status).

    \b
    Examples:
        python cli.py --service server --verbose
        python cli.py --service server --action restart --port 8099
        python cli.py --service worker --workers 2
        python cli.py --service scheduler --verbose
        python cli.py --service sweep-trash --retention-days 7
        python cli.py --service create-user --email a@b.c --name Ada --password pw123456 --admin
        python cli.py --service sync-user --provider github --uid 42 --email a@b.c --name Ada
        python cli.py --service migrate --migrate-action upgrade
        python cli.py --service migrate --migrate-action autogenerate -m "add reminders"
        python cli.py --service config
    """
    validate_project_root()

    if debug:
        log_level = "DEBUG"
    elif verbose:
        log_level = "INFO"
    else:
        log_level = "WARNING"

    setup_logging(level=log_level, format_type="console")

    structlog.contextvars.bind_contextvars(source="cli")

    logger = get_logger(__name__)

    logger.debug("CLI invoked", extra={"service": service, "action": action, "log_level": log_level})

    if service in LONG_RUNNING_SERVICES and action != "start":
        service_port = _get_service_port(port)

        if action == "stop":
            _service_stop(logger, service, service_port)
            return
        elif action == "status":
            _service_status(logger, service, service_port)
            return
        elif action == "restart":
            _service_stop(logger, service, service_port)
            import time
            time.sleep(2)

    if service == "server":
        run_server(logger, host, port, reload)
    elif service == "worker":
        run_worker(logger, workers)
    elif service == "scheduler":
        run_scheduler(logger)
    elif service == "sweep-trash":
        sweep_trash(logger, retention_days)
    elif service == "create-user":
        create_user(logger, email, name, password, admin)
    elif service == "sync-user":
        sync_user(logger, provider, uid, email, name)
    elif service == "migrate":
        run_migrations(logger, migrate_action, revision, message)
    elif service == "config":
        show_config(logger)
    elif service == "info":
        show_info(logger)


def run_server(logger, host: str | None, port: int | None, reload: bool) -> None:
    """Start the FastAPI server."""
    from notevault.backend.core.config import get_app_config

    try:
        server_config = get_app_config().application.server
    except Exception as e:
        _fail(logger, "Could not load config/settings/application.yaml", e)

    server_host = host or server_config.host
    server_port = port or server_config.port

    logger.info(
        "Starting server",
        extra={"host": server_host, "port": server_port, "reload": reload},
    )

    cmd = [
        sys.executable, "-m", "uvicorn",
        "notevault.backend.main:app",
        "--host", server_host,
        "--port", str(server_port),
    ]

    if reload:
        cmd.append("--reload")

    click.echo(f"Starting server at http://{server_host}:{server_port}")
    click.echo("Press Ctrl+C to stop\n")

    try:
        subprocess.run(cmd, check=True)
    except KeyboardInterrupt:
        logger.info("Server stopped")
    except subprocess.CalledProcessError as e:
        logger.error("Server failed to start", extra={"exit_code": e.returncode})
        sys.exit(e.returncode)


def _check_redis_config(logger) -> None:
    try:
        from notevault.backend.core.config import get_redis_url
        redis_url = get_redis_url()
        logger.debug("Redis configured", extra={"redis_url": redis_url.split("@")[-1]})
    except Exception as e:
        _fail(logger, "Redis not configured", e)


def run_worker(logger, workers: int) -> None:
    """Start the Taskiq background task worker."""
    logger.info("Starting background task worker", extra={"workers": workers})
    _check_redis_config(logger)

    cmd = [
        sys.executable, "-m", "taskiq",
        "worker",
        "notevault.backend.tasks.broker:broker",
        "--workers", str(workers),
    ]

    click.echo(f"Starting Taskiq worker with {workers} worker(s)")
    click.echo("Press Ctrl+C to stop\n")

    try:
        subprocess.run(cmd, check=True)
    except KeyboardInterrupt:
        logger.info("Worker stopped")
    except subprocess.CalledProcessError as e:
        logger.error("Worker failed to start", extra={"exit_code": e.returncode})
        sys.exit(e.returncode)


def run_scheduler(logger) -> None:
    """Start the Taskiq scheduler for the cron-based trash sweep."""
    logger.info("Starting task scheduler")
    _check_redis_config(logger)

    try:
        from notevault.backend.core.config import get_app_config
        from notevault.backend.tasks.scheduled import scheduled_tasks

        if not get_app_config().features.trash_sweep_enabled:
            click.echo(click.style("Trash sweep is disabled in features.yaml.", fg="yellow"))

        click.echo("Scheduled tasks:")
        for task_name, config in scheduled_tasks().items():
            schedule = config["schedule"][0].get("cron", "N/A")
            click.echo(f"  - {task_name}: {schedule}")
        click.echo()
    except Exception as e:
        _fail(logger, "Failed to load scheduled tasks", e)

    cmd = [
        sys.executable, "-m", "taskiq",
        "scheduler",
        "notevault.backend.tasks.scheduler:scheduler",
    ]

    click.echo("Starting Taskiq scheduler")
    click.echo("WARNING: Run only ONE scheduler instance to avoid duplicate task execution")
    click.echo("Press Ctrl+C to stop\n")

    try:
        subprocess.run(cmd, check=True)
    except KeyboardInterrupt:
        logger.info("Scheduler stopped")
    except subprocess.CalledProcessError as e:
        logger.error("Scheduler failed to start", extra={"exit_code": e.returncode})
        sys.exit(e.returncode)


async def _run_sweep(retention_days: int | None) -> dict:
    from notevault.backend.core.database import dispose_engine
    from notevault.backend.tasks.scheduled import purge_stale_trash

    try:
        return await purge_stale_trash(retention_days)
    finally:
        await dispose_engine()


def sweep_trash(logger, retention_days: int | None) -> None:
    """Run the stale trash sweep once, in process, without Redis."""
    try:
        summary = asyncio.run(_run_sweep(retention_days))
    except Exception as e:
        _fail(logger, "Trash sweep failed", e)

    click.echo(
        f"Deleted {summary['deleted_notes']} note(s) trashed more than "
        f"{summary['retention_days']} day(s) ago; "
        f"purged {summary['attachments_purged']} attachment file(s)."
    )


async def _with_user_service(call):
    """Run call(UserService) in its own committed session."""
    from notevault.backend.core.database import dispose_engine, get_session_factory
    from notevault.backend.services.user import UserService

    try:
        async with get_session_factory()() as session:
            try:
                user = await call(UserService(session))
                await session.commit()
            except Exception:
                await session.rollback()
                raise
        return user
    finally:
        await dispose_engine()


async def _create_user(email: str, name: str, password: str | None, admin: bool):
    from notevault.backend.models.user import UserRole

    role = UserRole.ADMIN if admin else UserRole.USER
    return await _with_user_service(
        lambda users: users.create_user(email=email, name=name, password=password, role=role)
    )


async def _sync_user(provider: str, uid: str, name: str, email: str):
    return await _with_user_service(
        lambda users: users.upsert_federated_user(provider, uid, name, email)
    )


def _run_user_command(logger, coro):
    from notevault.backend.core.exceptions import ApplicationError, ValidationError

    try:
        return asyncio.run(coro)
    except ValidationError as e:
        for error in e.errors:
            click.echo(click.style(f"  {error['field']}: {error['message']}", fg="red"), err=True)
        _fail(logger, "User is invalid")
    except ApplicationError as e:
        _fail(logger, e.message)


def create_user(
    logger,
    email: str | None,
    name: str | None,
    password: str | None,
    admin: bool,
) -> None:
    """Create a password user from the command line."""
    if not email or not name:
        _fail(logger, "--email and --name are required for create-user")
    if password is None:
        password = click.prompt("Password", hide_input=True, confirmation_prompt=True)

    user = _run_user_command(logger, _create_user(email, name, password, admin))

    logger.info("User created", extra={"user_id": user.id, "role": user.role.value})
    click.echo(f"Created {user.role.value} {user.email} (id: {user.id})")


def sync_user(
    logger,
    provider: str | None,
    uid: str | None,
    email: str | None,
    name: str | None,
) -> None:
    """Create or refresh the user signed in through an identity provider."""
    if not provider or not uid or not email or not name:
        _fail(logger, "--provider, --uid, --email and --name are required for sync-user")

    user = _run_user_command(logger, _sync_user(provider, uid, name, email))

    logger.info("Federated user synced", extra={"user_id": user.id, "provider": provider})
    click.echo(f"Synced {user.email} from {provider} (id: {user.id})")


def show_config(logger) -> None:
    """Display loaded configuration."""
    click.echo("Application Configuration:\n")

    try:
        from notevault.backend.core.config import get_app_config

        app_config = get_app_config()
        sections = [
            ("Application Settings", app_config.application),
            ("Database Settings", app_config.database),
            ("Logging Settings", app_config.logging),
            ("Feature Flags", app_config.features),
            ("Security Settings", app_config.security),
            ("Concurrency Settings", app_config.concurrency),
            ("Note Settings", app_config.notes),
        ]
        for title, section in sections:
            click.echo(f"{title} (from YAML):")
            click.echo("-" * 40)
            for key, value in section.model_dump().items():
                if isinstance(value, dict):
                    click.echo(f"  {key}:")
                    for k, v in value.items():
                        click.echo(f"    {k}: {v}")
                else:
                    click.echo(f"  {key}: {value}")
            click.echo()

        logger.info("Configuration displayed successfully")

    except Exception as e:
        _fail(logger, "Failed to load configuration", e)


def run_migrations(
    logger,
    migrate_action: str,
    revision: str,
    message: str | None,
) -> None:
    """Run database migrations using Alembic."""
    logger.info(
        "Running migrations",
        extra={"action": migrate_action, "revision": revision},
    )

    alembic_ini = PROJECT_ROOT / "alembic.ini"

    if not alembic_ini.exists():
        _fail(logger, "alembic.ini not found")

    cmd = [sys.executable, "-m", "alembic", "-c", str(alembic_ini)]

    if migrate_action == "upgrade":
        cmd.extend(["upgrade", revision])
        click.echo(f"Upgrading database to revision: {revision}")
    elif migrate_action == "downgrade":
        cmd.extend(["downgrade", revision])
        click.echo(f"Downgrading database to revision: {revision}")
    elif migrate_action == "current":
        cmd.append("current")
        click.echo("Showing current database revision...")
    elif migrate_action == "history":
        cmd.extend(["history", "--verbose"])
        click.echo("Showing migration history...")
    elif migrate_action == "autogenerate":
        if not message:
            _fail(logger, "--message/-m required for autogenerate")
        cmd.extend(["revision", "--autogenerate", "-m", message])
        click.echo(f"Generating migration: {message}")

    click.echo()

    try:
        result = subprocess.run(cmd, cwd=PROJECT_ROOT)
        if result.returncode != 0:
            logger.error("Migration failed", extra={"exit_code": result.returncode})
            sys.exit(result.returncode)
        logger.info("Migration completed successfully")
    except FileNotFoundError:
        _fail(logger, "alembic not found. Install with: pip install alembic")


def show_info(logger) -> None:
    """Display application information."""
    click.echo("NoteVault")
    click.echo("=" * 40)

    try:
        from notevault.backend.core.config import get_app_config
        application = get_app_config().application
        click.echo(f"Name: {application.name}")
        click.echo(f"Version: {application.version}")
        click.echo(f"Description: {application.description}")
    except Exception as e:
        _fail(logger, "Could not load application.yaml configuration", e)

    click.echo()
    click.echo("Services (--service):")
    click.echo("  server         FastAPI server")
    click.echo("  worker         Background task worker")
    click.echo("  scheduler      Task scheduler (nightly trash sweep)")
    click.echo("  sweep-trash    Purge stale trash once, in process")
    click.echo("  create-user    Create a password user (--admin for admins)")
    click.echo("  sync-user      Create or refresh a federated user")
    click.echo("  migrate        Database migrations")
    click.echo("  config         Display configuration")
    click.echo("  info           Show this information")
    click.echo()
    click.echo("Lifecycle actions (--action, for long-running services):")
    click.echo("  start          Start the service (default)")
    click.echo("  stop           Stop a running service")
    click.echo("  restart        Stop then start")
    click.echo("  status         Check if running")
    click.echo()
    click.echo("Options:")
    click.echo("  --verbose, -v  Enable INFO level logging")
    click.echo("  --debug, -d    Enable DEBUG level logging")

    logger.debug("Info displayed")


if __name__ == "__main__":
    main()
