"""
dbdiff/sql_codec.py
-------------------
Renders Python values and identifiers as MySQL literals.

Every generated statement embeds its values directly (no ``%s``
placeholders) so the output can be reviewed and pasted into a client.

Design Decisions:
    * ``escape_value`` (DML path) only doubles single quotes.  Backslashes
      are left alone; changing that would change the generated SQL that
      existing scripts and tests compare against.
    * ``escape_string`` (DDL free text: comments, default literals) doubles
      quotes *and* backslashes.
    * The defaults rendered as bare keywords are an explicit enum rather
      than ad-hoc string checks.
    * Binary, SET and TIME values coming back from the driver are turned into
      the server's text form before they are compared or rendered.
"""
from __future__ import annotations

import datetime
import decimal
from enum import Enum
from typing import Any

NULL_LITERAL = "NULL"


class BareDefault(str, Enum):
    """DEFAULT literals emitted as SQL keywords rather than quoted strings."""
    CURRENT_TIMESTAMP = "CURRENT_TIMESTAMP"
    NULL = "NULL"

    @classmethod
    def contains(cls, value: str) -> bool:
        return any(value == member.value for member in cls)


def _time_text(value: datetime.timedelta) -> str:
    """MySQL ``TIME`` text: ``[-]HH:MM:SS[.ffffff]`` with hours past 24 allowed."""
    sign = "-" if value < datetime.timedelta(0) else ""
    value = abs(value)
    total = value.days * 86400 + value.seconds
    text = f"{sign}{total // 3600:02d}:{total % 3600 // 60:02d}:{total % 60:02d}"
    if value.microseconds:
        text += f".{value.microseconds:06d}"
    return text


def normalize_value(value: Any) -> Any:
    """
    Convert driver values to the server's text form where ``str()`` would not
    produce it.

    * ``bytes`` / ``bytearray`` → UTF-8 text
    * ``set`` (SET columns)      → sorted, comma-joined members
    * ``timedelta`` (TIME)       → ``HH:MM:SS[.ffffff]``

    Anything else is returned unchanged.
    """
    if isinstance(value, (bytes, bytearray)):
        return bytes(value).decode("utf-8", errors="replace")
    if isinstance(value, (set, frozenset)):
        return ",".join(sorted(str(normalize_value(m)) for m in value))
    if isinstance(value, datetime.timedelta):
        return _time_text(value)
    return value


def stringify(value: Any) -> str:
    """Text form used for row comparison and primary-key composites."""
    return str(normalize_value(value))


def quote_identifier(name: str) -> str:
    """Backtick-quote a table / column / index name."""
    return f"`{name}`"


def quote_identifiers(names: list[str] | tuple[str, ...]) -> str:
    """Comma-join backtick-quoted names."""
    return ", ".join(quote_identifier(n) for n in names)


def escape_value(value: Any) -> str:
    """
    Render *value* as a SQL literal.

    * ``None``                  → ``NULL``
    * ``bool``                  → ``1`` / ``0``
    * ``int`` / ``float`` / ``Decimal`` → bare number
    * anything else             → stringified, ``'`` doubled, single-quoted

    Examples::

        escape_value(None)       →  NULL
        escape_value(True)       →  1
        escape_value(42)         →  42
        escape_value("O'Brien")  →  'O''Brien'
    """
    if value is None:
        return NULL_LITERAL
    # bool is an int subclass; check it first.
    if isinstance(value, bool):
        return "1" if value else "0"
    if isinstance(value, (int, float, decimal.Decimal)):
        return str(value)
    text = stringify(value).replace("'", "''")
    return f"'{text}'"


def escape_string(text: str) -> str:
    """Escape free text (comments, defaults) for embedding inside ``'...'``."""
    return text.replace("'", "''").replace("\\", "\\\\")


def render_default(value: str) -> str:
    """Render a ``DEFAULT`` clause for a column definition."""
    if BareDefault.contains(value):
        return f"DEFAULT {value}"
    return f"DEFAULT '{escape_string(value)}'"
