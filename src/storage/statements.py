"""
Textual INSERT statements for the recovery log.

Each statement is self-contained SQL on exactly one physical line:
literal values only, no references to earlier statements, so the log
can be replayed from an empty store one line at a time.
"""

import math
import re
from datetime import datetime
from typing import Any, Sequence

NULL_TOKEN = "NULL"
TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S.%f"

# C0 controls and DEL never appear raw in a statement
_CONTROL_CHARS = re.compile(r"[\x00-\x1f\x7f]")


def _quote_plain(text: str) -> str:
    return "'" + text.replace("'", "''") + "'"


def quote_text(text: str) -> str:
    """
    Quote a text literal, doubling embedded single quotes.

    Control characters (newline, carriage return, NUL, ...) are spliced
    in with chr() so the literal stays on one line and parses:
    "a\\nb" renders as 'a' || chr(10) || 'b'.
    """
    if not _CONTROL_CHARS.search(text):
        return _quote_plain(text)

    parts = []
    position = 0
    for match in _CONTROL_CHARS.finditer(text):
        if match.start() > position:
            parts.append(_quote_plain(text[position:match.start()]))
        parts.append(f"chr({ord(match.group())})")
        position = match.end()
    if position < len(text):
        parts.append(_quote_plain(text[position:]))

    return "(" + " || ".join(parts) + ")"


def render_literal(value: Any) -> str:
    """Render a Python value as a SQL literal."""
    if value is None:
        return NULL_TOKEN
    if isinstance(value, bool):
        return "TRUE" if value else "FALSE"
    if isinstance(value, int):
        return str(value)
    if isinstance(value, float):
        if not math.isfinite(value):
            raise ValueError(f"Cannot render non-finite number: {value}")
        return repr(value)
    if isinstance(value, datetime):
        return _quote_plain(value.strftime(TIMESTAMP_FORMAT))
    return quote_text(str(value))


def build_insert(table: str, columns: Sequence[str], values: Sequence[Any]) -> str:
    """
    Build a single INSERT statement.

    >>> build_insert("sensor_data", ["key_name", "value"], ["temp", None])
    "INSERT INTO sensor_data (key_name, value) VALUES ('temp', NULL);"
    """
    if len(columns) != len(values):
        raise ValueError(
            f"Column/value mismatch for {table}: {len(columns)} columns, {len(values)} values"
        )
    rendered = ", ".join(render_literal(v) for v in values)
    return f"INSERT INTO {table} ({', '.join(columns)}) VALUES ({rendered});"


def split_statements(text: str) -> list[str]:
    """
    Split log text into one entry per non-blank line.

    Lines are returned as written, torn fragments included; deciding
    whether a line is a complete statement is left to the replayer.
    """
    return [line for line in text.split("\n") if line.strip()]


def is_complete_insert(line: str, tables: Sequence[str]) -> bool:
    """True for a whole single-line INSERT into one of the given tables."""
    return any(
        line.startswith(f"INSERT INTO {table} (") for table in tables
    ) and line.endswith(");")
