"""Run shell-style SQL scripts against an open database.

A script is SQL text as it would be typed into the sqlite3 shell: statements
end with `;` at end of line, `CREATE TRIGGER ... END;` bodies span several
lines, and a few dot directives are understood:

    .echo <bool>    echo each statement before running it
    .read <path>    run another script file with the current settings
    .print <text>   write text (one layer of quotes removed)
    .tables         list tables in name order

Directives are only recognised between statements, never inside a trigger
body, where a line such as `.print x` is plain trigger text. One trailing `;`
is dropped from a directive argument, so `.print done;` writes `done`.
"""

import enum
import logging
import re
import sqlite3
import sys
from pathlib import Path
from typing import TextIO

from litekit.errors import ScriptError
from litekit.store.connection import Database, RowHandler

logger = logging.getLogger(__name__)

_BLOCK_COMMENT = re.compile(r"/\*.*?\*/", re.DOTALL)
_LINE_COMMENT = re.compile(r"[ \t]*--[^\n]*")
_TRIGGER_START = re.compile(r"CREATE\s+(?:TEMP\s+|TEMPORARY\s+)?TRIGGER\b", re.IGNORECASE)
_TRIGGER_END = re.compile(r"END\s*;", re.IGNORECASE)
_SELECT = re.compile(r"\s*SELECT\b", re.IGNORECASE)

_TRUE = {"1", "t", "T", "TRUE", "true", "True", "on", "ON"}

_MAX_DEPTH = 32

TABLES_QUERY = "SELECT name FROM sqlite_master WHERE type='table' ORDER BY name"


class State(enum.Enum):
    NORMAL = "normal"
    IN_TRIGGER = "in_trigger"


def strip_comments(text: str) -> str:
    """Remove /* block */ and -- line comments. Quoted text is not special-cased."""
    return _LINE_COMMENT.sub("", _BLOCK_COMMENT.sub("", text))


def split_statements(text: str) -> list[str]:
    """Split a completed unit on statement boundaries, respecting quoted `;`."""
    statements = []
    start = 0
    for i, ch in enumerate(text):
        if ch == ";" and sqlite3.complete_statement(text[start : i + 1]):
            stmt = text[start : i + 1].strip()
            if stmt != ";":
                statements.append(stmt)
            start = i + 1
    rest = text[start:].strip()
    if rest:
        statements.append(rest)
    return statements


def parse_bool(value: str) -> bool:
    return value.strip() in _TRUE


def unquote(text: str) -> str:
    """Strip one layer of matching surrounding quotes."""
    if len(text) >= 2 and text[0] == text[-1] and text[0] in "\"'":
        return text[1:-1]
    return text


class ScriptRunner:
    """Finite-state interpreter for one buffer of script text.

    Args:
        db: Open database handle statements run against
        echo: Write `CMD> <statement>` to `out` before running each statement
        out: Output sink for echo, .print, .tables and default row output
        row_handler: Called per SELECT result row; column names on the first row only
    """

    def __init__(
        self,
        db: Database,
        echo: bool = False,
        out: TextIO | None = None,
        row_handler: RowHandler | None = None,
        depth: int = 0,
    ):
        self.db = db
        self.echo = echo
        self.out = out if out is not None else sys.stdout
        self.row_handler = row_handler or self.show_row
        self.depth = depth
        self.state = State.NORMAL
        self.pending: list[str] = []
        self.executed = 0

    def run(self, buffer: str) -> int:
        """Interpret `buffer`, returning the number of statements executed.

        The first failing statement or directive stops the run; earlier
        statements stay applied.
        """
        for raw in strip_comments(buffer).splitlines():
            line = raw.strip()
            if line:
                self.feed(line)
        self.finish()
        return self.executed

    def feed(self, line: str) -> None:
        if self.state is State.IN_TRIGGER:
            self.pending.append(line)
            if _TRIGGER_END.match(line):
                self.state = State.NORMAL
                self._dispatch_trigger()
            return

        if line.startswith("."):
            self._directive(line)
            return

        if not self.pending and _TRIGGER_START.match(line):
            self.pending.append(line)
            if line.endswith(";") and sqlite3.complete_statement(line):
                self._dispatch_trigger()
            else:
                self.state = State.IN_TRIGGER
            return

        self.pending.append(line)
        text = "\n".join(self.pending)
        if line.endswith(";") and sqlite3.complete_statement(text):
            self.pending = []
            for stmt in split_statements(text):
                self.dispatch(stmt)

    def finish(self) -> None:
        """Flush input left over at end of buffer."""
        if self.state is State.IN_TRIGGER:
            unit = "\n".join(self.pending)
            self.pending = []
            self.state = State.NORMAL
            raise ScriptError(
                f"unterminated trigger: {unit}", statement=unit, filename=self._filename()
            )
        if self.pending:
            text = "\n".join(self.pending)
            self.pending = []
            for stmt in split_statements(text):
                self.dispatch(stmt)

    def _dispatch_trigger(self) -> None:
        unit = "\n".join(self.pending)
        self.pending = []
        # statements trailing END; on the same line run on their own
        for stmt in split_statements(unit):
            self.dispatch(stmt)

    def dispatch(self, stmt: str) -> None:
        """Run one statement unit through the row or side-effect path."""
        if self.echo:
            print(f"CMD> {stmt}", file=self.out)
        select = bool(_SELECT.match(stmt))
        try:
            if select:
                self.db.query(stmt, self.row_handler)
            else:
                self.db.execute(stmt)
        except sqlite3.Error as e:
            filename = self._filename()
            kind = "SELECT" if select else "EXEC"
            raise ScriptError(
                f"{kind} QUERY: {stmt} FILE: {filename} ERROR: {e}",
                statement=stmt,
                filename=filename,
            ) from e
        self.executed += 1
        logger.debug(f"executed: {stmt}")

    def show_row(self, columns: list[str] | None, row: tuple) -> None:
        if columns is not None:
            print("\t".join(columns), file=self.out)
        print("\t".join("" if v is None else str(v) for v in row), file=self.out)

    def _directive(self, line: str) -> None:
        if line.endswith(";"):
            line = line[:-1].rstrip()
        keyword, _, arg = line[1:].partition(" ")
        handler = getattr(self, f"_dot_{keyword}", None)
        if not keyword or handler is None:
            raise ScriptError(f"unknown directive: {line}", statement=line)
        handler(arg.strip())

    def _dot_echo(self, arg: str) -> None:
        self.echo = parse_bool(arg)

    def _dot_print(self, arg: str) -> None:
        print(unquote(arg), file=self.out)

    def _dot_tables(self, arg: str) -> None:
        def show(_columns, row):
            print(row[0], file=self.out)

        try:
            self.db.query(TABLES_QUERY, show)
        except sqlite3.Error as e:
            raise ScriptError(f"table error: {e}", filename=self._filename()) from e

    def _dot_read(self, arg: str) -> None:
        if not arg:
            raise ScriptError(".read requires a file name", statement=".read")
        if self.depth >= _MAX_DEPTH:
            raise ScriptError(f"read file: {arg}, error: .read nested too deeply")
        inner = ScriptRunner(
            self.db, self.echo, self.out, self.row_handler, depth=self.depth + 1
        )
        try:
            self.executed += inner.run_file(arg)
        except OSError as e:
            raise ScriptError(f"read file: {arg}, error: {e}") from e
        except ScriptError as e:
            self.executed += inner.executed
            raise ScriptError(
                f"read file: {arg}, error: {e}", statement=e.statement, filename=e.filename
            ) from e

    def run_file(self, path: str | Path) -> int:
        return self.run(Path(path).read_text())

    def _filename(self) -> str:
        try:
            return self.db.filename or self.db.dsn
        except sqlite3.Error:
            return self.db.dsn


def commands(
    db: Database,
    buffer: str,
    echo: bool = False,
    out: TextIO | None = None,
    row_handler: RowHandler | None = None,
) -> int:
    """Interpret a buffer of script text against `db` (shell emulation)."""
    return ScriptRunner(db, echo, out, row_handler).run(buffer)


def run_file(
    db: Database,
    path: str | Path,
    echo: bool = False,
    out: TextIO | None = None,
    row_handler: RowHandler | None = None,
) -> int:
    """Emulate `.read FILE`."""
    return ScriptRunner(db, echo, out, row_handler).run_file(path)
