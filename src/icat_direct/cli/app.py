import asyncio
import logging
from typing import Annotated

import typer

from icat_direct.cli import common
from icat_direct.cli.count import count_app
from icat_direct.cli.listing import list_app, lookup_app

app = typer.Typer(
    name="icat-direct",
    help="icat-direct CLI — query ICAT listings and permissions directly.",
    no_args_is_help=True,
    context_settings={"help_option_names": ["-h", "--help"]},
)

app.add_typer(count_app, name="count")
app.add_typer(list_app, name="list")
app.add_typer(lookup_app, name="lookup")


@app.callback()
def _configure(
    verbose: Annotated[bool, typer.Option("--verbose", "-v", help="Log queries at DEBUG level.")] = False,
) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


@app.command("ping")
def ping() -> None:
    """Check that the ICAT database accepts connections."""
    db = common.get_database()

    async def _run() -> bool:
        try:
            return await db.ping()
        finally:
            await db.dispose()

    if asyncio.run(_run()):
        common.console.print("[green]ICAT database is reachable.[/green]")
    else:
        common.console.print("[red]ICAT database is not reachable.[/red]")
        raise typer.Exit(1)


def main() -> None:
    app()
