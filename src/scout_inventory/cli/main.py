import asyncio
import logging
from enum import Enum

import typer

from ..backends import factory
from ..backends.document import DocumentBackend
from ..backends.relational import RelationalBackend
from ..common.domains import Role
from ..core import config, errors
from ..core.logging_config import setup_logging
from ..features.auth import service as auth_service
from ..features.auth.schemas import UserRegister
from ..features.migration.service import MigrationUtility, PhaseReport

logger = logging.getLogger(__name__)

app = typer.Typer(name="scout-inventory", help="CLI for managing Scout Inventory data.")


@app.callback()
def main(
    log_level: str = typer.Option(config.LOG_LEVEL, help="Log level for the scout_inventory logger."),
):
    setup_logging(level=log_level.upper())


class Phase(str, Enum):
    ALL = "all"
    INVENTORY = "inventory"
    REQUESTS = "requests"


def _echo_report(report: PhaseReport) -> None:
    colour = typer.colors.GREEN if not report.failed else typer.colors.YELLOW
    typer.secho(
        f"{report.phase}: {report.summary()} migrated, {report.failed} failed.", fg=colour
    )
    for failure in report.failures:
        typer.echo(f"  - {failure}")


# Migration and document store setup
@app.command("migrate")
def migrate_command(
    phase: Phase = typer.Option(Phase.ALL, help="Which records to copy."),
):
    """Copies records from the relational database into the document store."""
    asyncio.run(_migrate(phase))


async def _migrate(phase: Phase):
    try:
        source = await RelationalBackend.connect(config.DATABASE_URL)
    except errors.BackendConnectionError as e:
        typer.secho(f"Error: {e.message}", fg=typer.colors.RED)
        raise typer.Exit(code=1)
    try:
        async with factory.BackendSession("document") as destination:
            utility = MigrationUtility(source, destination)
            if phase == Phase.INVENTORY:
                reports = [await utility.migrate_inventory()]
            elif phase == Phase.REQUESTS:
                reports = [await utility.migrate_requests()]
            else:
                reports = await utility.run()
    except errors.BackendConnectionError as e:
        typer.secho(f"Error: {e.message}", fg=typer.colors.RED)
        raise typer.Exit(code=1)
    finally:
        await source.close()

    for report in reports:
        _echo_report(report)


@app.command("setup-document-store")
def setup_document_store_command(
    seed: bool = typer.Option(True, "--seed/--no-seed", help="Insert sample records into empty collections."),
):
    """Creates the document store indexes and optionally seeds sample data."""
    asyncio.run(_setup_document_store(seed))


async def _setup_document_store(seed: bool):
    try:
        async with factory.BackendSession("document") as backend:
            if not isinstance(backend, DocumentBackend):
                typer.secho("Error: the document backend is not available.", fg=typer.colors.RED)
                raise typer.Exit(code=1)
            await backend.ensure_indexes()
            typer.echo("Indexes created.")
            if seed:
                counts = await backend.seed_samples()
                for collection, count in counts.items():
                    typer.echo(f"{collection}: {count} documents")
    except errors.BackendConnectionError as e:
        typer.secho(f"Error: {e.message}", fg=typer.colors.RED)
        raise typer.Exit(code=1)
    typer.secho("Document store is ready.", fg=typer.colors.GREEN)


# User management commands
user_app = typer.Typer(name="users", help="Manage user profiles.")
app.add_typer(user_app)


@user_app.command("create-admin")
def create_admin_user_command(
    email: str = typer.Option(..., prompt=True, help="Email for the new admin."),
    full_name: str = typer.Option(..., prompt=True, help="Display name for the new admin."),
    password: str = typer.Option(..., prompt=True, hide_input=True, confirmation_prompt=True, help="Password for the new admin.")
):
    """Creates a new admin profile."""
    asyncio.run(_create_admin_user(email, full_name, password))


async def _create_admin_user(email: str, full_name: str, password: str):
    async with factory.BackendSession() as backend:
        typer.echo(f"Attempting to create admin user: {full_name} ({email})...")
        try:
            user_in = UserRegister(email=email, full_name=full_name, password=password)
            profile = await auth_service.register_profile(backend, user_in, role=Role.ADMIN)
        except errors.ValidationError as e:
            typer.secho(f"Error: {e.message}", fg=typer.colors.RED)
            raise typer.Exit(code=1)
        except ValueError as e:
            typer.secho(f"Error: {e}", fg=typer.colors.RED)
            raise typer.Exit(code=1)
        typer.secho(f"Admin user '{profile.email}' created successfully with ID: {profile.user_id}", fg=typer.colors.GREEN)


async def _find_profile(backend, email: str):
    profile = await backend.find_profile_by_email(email)
    if profile is None:
        typer.secho(f"Error: User with email '{email}' not found.", fg=typer.colors.RED)
        raise typer.Exit(code=1)
    return profile


@user_app.command("promote-to-admin")
def promote_user_to_admin_command(
    email: str = typer.Argument(..., help="The email of the user to promote to admin.")
):
    """Promotes an existing user to the admin role."""
    asyncio.run(_promote_user_to_admin(email))


async def _promote_user_to_admin(email: str):
    async with factory.BackendSession() as backend:
        typer.echo(f"Attempting to promote user '{email}' to admin...")
        profile = await _find_profile(backend, email)
        if profile.role == Role.ADMIN:
            typer.secho(f"User '{email}' is already an admin.", fg=typer.colors.YELLOW)
            return
        if not profile.is_active:
            typer.secho(f"Error: User '{email}' is currently inactive. Activate the user before promoting to admin.", fg=typer.colors.RED)
            raise typer.Exit(code=1)
        await backend.update_profile(profile.user_id, {"role": Role.ADMIN})
        typer.secho(f"User '{email}' has been successfully promoted to admin.", fg=typer.colors.GREEN)


@user_app.command("disable-user")
def disable_user_account_command(
    email: str = typer.Argument(..., help="The email of the user to disable.")
):
    """Disables an existing user's account."""
    asyncio.run(_set_user_active(email, False))


@user_app.command("enable-user")
def enable_user_account_command(
    email: str = typer.Argument(..., help="The email of the user to enable.")
):
    """Enables an existing user's account."""
    asyncio.run(_set_user_active(email, True))


async def _set_user_active(email: str, active: bool):
    state = "active" if active else "inactive"
    async with factory.BackendSession() as backend:
        typer.echo(f"Attempting to make user account '{email}' {state}...")
        profile = await _find_profile(backend, email)
        if profile.is_active == active:
            typer.secho(f"User '{email}' is already {state}.", fg=typer.colors.YELLOW)
            return
        await backend.update_profile(profile.user_id, {"is_active": active})
        typer.secho(f"User account '{email}' is now {state}.", fg=typer.colors.GREEN)


if __name__ == "__main__":
    app()
