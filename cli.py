"""CLI commands for wedding invite management."""

import asyncio

import typer
import uvicorn

from src.config.database import create_engine, create_session_maker, upgrade_database
from src.config.logging import setup_logging
from src.config.settings import settings
from src.invites.dtos import InviteDTO, InviteRepositoryError
from src.invites.repository.read_models import SqlInviteReadModel
from src.invites.repository.write_models import SqlInviteWriteModel

app = typer.Typer(help="CLI commands for wedding invite management")


@app.command()
def serve(
    host: str = typer.Option(settings.app_host, "--host", help="Interface to bind"),
    port: int = typer.Option(settings.app_port, "--port", "-p", help="Port to listen on"),
):
    """Run the API server. SIGINT/SIGTERM drain in-flight requests before exiting."""
    uvicorn.run(
        "src.main:create_app",
        factory=True,
        host=host,
        port=port,
        log_level="debug" if settings.debug else "info",
        timeout_graceful_shutdown=settings.SHUTDOWN_GRACE_PERIOD,
    )


@app.command()
def migrate(
    alembic_ini: str = typer.Option("alembic.ini", "--config", "-c", help="Path to alembic.ini"),
):
    """Upgrade the database schema to the latest revision."""
    async def _migrate():
        engine = create_engine(settings.database_url)
        try:
            await upgrade_database(engine, alembic_ini)
        finally:
            await engine.dispose()

    setup_logging(settings.debug)
    asyncio.run(_migrate())
    typer.secho("Database is up to date.", fg=typer.colors.GREEN)


@app.command()
def create_invite(
    name: str = typer.Argument(..., help="Display name of the invited party"),
    invite_id: str = typer.Option(None, "--id", help="Invite id, a random UUID when left out"),
    greeting: str = typer.Option("", "--greeting", "-g", help="Greeting shown on the invite"),
    lang: str = typer.Option("en", "--lang", "-l", help="Language code of the invite"),
    max_adults: int = typer.Option(2, "--max-adults", help="Number of adults invited"),
    max_children: int = typer.Option(0, "--max-children", help="Number of children invited"),
):
    """Create an invite. Invites are never created through the API."""
    async def _create_invite():
        engine = create_engine(settings.database_url)
        try:
            write_model = SqlInviteWriteModel(create_session_maker(engine))
            return await write_model.create_invite(
                InviteDTO(
                    id=invite_id or "",
                    name=name,
                    greeting=greeting,
                    lang=lang,
                    max_adults=max_adults,
                    max_children=max_children,
                )
            )
        finally:
            await engine.dispose()

    try:
        invite = asyncio.run(_create_invite())
    except InviteRepositoryError as e:
        typer.secho(str(e), fg=typer.colors.RED)
        raise typer.Exit(1)

    typer.secho("Invite created!", fg=typer.colors.GREEN)
    typer.secho(f"  ID: {invite.id}", fg=typer.colors.CYAN)
    typer.secho(f"  Name: {invite.name}", fg=typer.colors.BLUE)
    typer.secho(f"  Adults: {invite.max_adults}  Children: {invite.max_children}", fg=typer.colors.BLUE)


@app.command()
def list_attendees(
    invite_id: str = typer.Argument(..., help="Invite id"),
):
    """List the attendees registered under an invite."""
    async def _list_attendees():
        engine = create_engine(settings.database_url)
        try:
            read_model = SqlInviteReadModel(create_session_maker(engine))
            return await read_model.get_attendees_for_invite(invite_id)
        finally:
            await engine.dispose()

    try:
        attendees = asyncio.run(_list_attendees())
    except InviteRepositoryError as e:
        typer.secho(str(e), fg=typer.colors.RED)
        raise typer.Exit(1)

    if not attendees:
        typer.secho("No attendees yet", fg=typer.colors.YELLOW)
        return

    for attendee in attendees:
        label = " (child)" if attendee.is_child else ""
        inactive = "" if attendee.active else " [inactive]"
        typer.secho(f"  - {attendee.name}{label}, {attendee.age}{inactive}", fg=typer.colors.BLUE)
        typer.secho(f"    {attendee.email or 'N/A'} / {attendee.phone or 'N/A'}", fg=typer.colors.CYAN)


if __name__ == "__main__":
    app()
