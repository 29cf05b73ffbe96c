import logging
import sys
from typing import Annotated

import typer

from litekit import config, script
from litekit.functions import IP_FUNCS
from litekit.store import Database, backup, close, compile_options, open_db, pragmas, version

from .errors import error_feedback

app = typer.Typer(no_args_is_help=True, add_completion=False)


def _open(ctx: typer.Context, path: str) -> Database:
    cfg = ctx.obj or config.DEFAULTS
    return open_db(
        path,
        require_exists=cfg["require_exists"],
        query=cfg["query"],
        driver=cfg["driver"],
        funcs=IP_FUNCS,
    )


@app.callback()
@error_feedback
def common_options_callback(
    ctx: typer.Context,
    debug: bool = typer.Option(False, "--debug", help="Log connect hooks and statements."),
):
    """SQLite toolkit: run scripts, back up live databases, inspect pragmas.

    Defaults come from ~/.litekit/config.yaml (or $LITEKIT_CONFIG)."""
    cfg = config.load_config()
    if debug or cfg["debug"]:
        logging.basicConfig(level=logging.DEBUG, format="[litekit] %(name)s: %(message)s")
    ctx.obj = cfg


@app.command("run")
@error_feedback
def run_cmd(
    ctx: typer.Context,
    db: str = typer.Argument(..., help="Database file"),
    source: str = typer.Argument("-", help="Script file, '-' for stdin"),
    echo: Annotated[
        bool | None, typer.Option("--echo/--no-echo", help="Echo statements before running")
    ] = None,
):
    """Run a script of SQL statements and dot directives."""
    if echo is None:
        echo = ctx.obj["echo"]
    database = _open(ctx, db)
    try:
        if source == "-":
            script.commands(database, sys.stdin.read(), echo=echo)
        else:
            script.run_file(database, source, echo=echo)
    finally:
        close(database)


@app.command("backup")
@error_feedback
def backup_cmd(
    ctx: typer.Context,
    db: str = typer.Argument(..., help="Database to back up"),
    dest: str = typer.Argument(..., help="Destination file (replaced)"),
    step: Annotated[int | None, typer.Option("--step", help="Pages per step")] = None,
    quiet_output: bool = typer.Option(False, "--quiet", "-q", help="Suppress progress output."),
):
    """Online backup of a database while it stays open."""
    database = _open(ctx, db)
    try:
        session = backup(
            database,
            dest,
            step=step if step is not None else ctx.obj["backup_step"],
            out=None if quiet_output else sys.stdout,
        )
    finally:
        close(database)
    if not quiet_output:
        typer.echo(f"✓ Backed up {session.pagecount} pages to {dest}")


@app.command("pragmas")
@error_feedback
def pragmas_cmd(ctx: typer.Context, db: str = typer.Argument(..., help="Database file")):
    """Show the current value of common pragmas."""
    database = _open(ctx, db)
    try:
        pragmas(database, sys.stdout)
    finally:
        close(database)


@app.command("tables")
@error_feedback
def tables_cmd(ctx: typer.Context, db: str = typer.Argument(..., help="Database file")):
    """List tables in name order."""
    database = _open(ctx, db)
    try:
        script.commands(database, ".tables\n")
    finally:
        close(database)


@app.command("compile-options")
@error_feedback
def compile_options_cmd(ctx: typer.Context, db: str = typer.Argument(..., help="Database file")):
    """List SQLite compile-time options."""
    database = _open(ctx, db)
    try:
        compile_options(database, sys.stdout)
    finally:
        close(database)


@app.command("version")
def version_cmd():
    """Show the linked SQLite library version."""
    lib_version, number, source_id = version()
    typer.echo(f"sqlite {lib_version} ({number})")
    typer.echo(source_id)


def main() -> None:
    """Entry point for litekit command."""
    app()
