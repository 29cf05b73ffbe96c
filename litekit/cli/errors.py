"""CLI error handling: report failures on stderr instead of tracebacks."""

import sqlite3
from functools import wraps

import typer
from click.exceptions import Exit

from litekit.errors import LiteError


def error_feedback(f):
    """Wrap command to catch exceptions and report them before exiting.

    Script, backup and connect errors already carry the failing statement or
    file, so they are echoed as-is; everything exits with status 1.
    """

    @wraps(f)
    def wrapper(*args, **kwargs):
        try:
            return f(*args, **kwargs)
        except (SystemExit, Exit):
            raise
        except LiteError as e:
            typer.echo(f"Error: {e}", err=True)
            raise typer.Exit(1) from e
        except sqlite3.Error as e:
            typer.echo(f"Database error: {e}", err=True)
            raise typer.Exit(1) from e
        except OSError as e:
            typer.echo(f"File error: {e}", err=True)
            raise typer.Exit(1) from e
        except (ValueError, TypeError) as e:
            typer.echo(f"Invalid input: {e}", err=True)
            raise typer.Exit(1) from e

    return wrapper
