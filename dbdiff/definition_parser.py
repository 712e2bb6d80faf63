"""
dbdiff/definition_parser.py
---------------------------
Loads :class:`TableDefinition` objects from definition files.

Two formats are accepted:

JSON (``.json``): one table object or a list of them::

    {"name": "users",
     "columns": [{"name": "id", "type": "INT", "nullable": false,
                  "primary_key": true, "auto_increment": true}],
     "indexes": [{"name": "idx_email", "columns": ["email"], "unique": true}]}

Plain text (anything else)::

    Table: users
      id          INT NOT NULL AUTO_INCREMENT PRIMARY KEY
      email       VARCHAR(255) NOT NULL UNIQUE COMMENT 'login'
      created_at  DATETIME DEFAULT CURRENT_TIMESTAMP
      # comments are ignored (lines starting with # or --)
      INDEX idx_created (created_at)
      UNIQUE INDEX uk_email_created (email, created_at)

Design Decisions:
    * The text parser is a pure function over the file contents.
    * Regex is kept minimal; full SQL parsing is out of scope.
    * Duplicate table definitions: last wins.  Duplicate column names: last wins.
"""
from __future__ import annotations

import json
import re
from pathlib import Path
from typing import Any

from logger import get_logger
from models.table_definition import ColumnDefinition, IndexDefinition, TableDefinition

log = get_logger(__name__)

_TABLE_RE = re.compile(r"^\s*Table\s*:\s*(\w+)\s*$", re.IGNORECASE)
_INDEX_RE = re.compile(r"^\s*(UNIQUE\s+)?(?:INDEX|KEY)\s+(\w+)\s*\(([^)]*)\)\s*$", re.IGNORECASE)
_COL_RE = re.compile(r"^\s*[`'\"]?(\w+)[`'\"]?\s+(.+)")
_COMMENT_RE = re.compile(r"^\s*(#|--)")
_TYPE_RE = re.compile(r"^(\w+)(?:\((\d+)(\s*,\s*\d+)?\))?")
_DEFAULT_RE = re.compile(r"DEFAULT\s+('(?:[^']|'')*'|\"[^\"]*\"|[\w.\-]+)", re.IGNORECASE)
_COLUMN_COMMENT_RE = re.compile(r"COMMENT\s+'((?:[^']|'')*)'", re.IGNORECASE)


class DefinitionParseError(Exception):
    """Raised when a definition file cannot be read or is fundamentally invalid."""


def parse_column_definition(col_name: str, definition: str) -> ColumnDefinition:
    """
    Extract a :class:`ColumnDefinition` from a raw definition string.

    Args:
        col_name:   Column name.
        definition: e.g. ``"VARCHAR(255) NOT NULL DEFAULT 'x'"``.

    Raises:
        DefinitionParseError: If no type keyword can be found.
    """
    type_match = _TYPE_RE.match(definition.strip())
    if not type_match:
        raise DefinitionParseError(f"Column '{col_name}': no type in {definition!r}")

    upper = definition.upper()
    default_value: str | None = None
    default_match = _DEFAULT_RE.search(definition)
    if default_match:
        raw = default_match.group(1)
        if raw[:1] in ("'", '"'):
            default_value = raw[1:-1].replace("''", "'")
        else:
            default_value = raw.upper() if raw.upper() in ("NULL", "CURRENT_TIMESTAMP") else raw

    comment_match = _COLUMN_COMMENT_RE.search(definition)
    # Strip quoted text before keyword checks so comments cannot set flags.
    bare = _COLUMN_COMMENT_RE.sub("", upper)
    bare = _DEFAULT_RE.sub("", bare)

    if type_match.group(3):
        # Precision and scale do not fit in ``length``; keep them in the type.
        col_type, length = type_match.group(0).upper().replace(" ", ""), 0
    else:
        col_type, length = type_match.group(1).upper(), int(type_match.group(2) or 0)

    return ColumnDefinition(
        name=col_name,
        type=col_type,
        length=length,
        nullable="NOT NULL" not in bare,
        default_value=default_value,
        auto_increment="AUTO_INCREMENT" in bare,
        primary_key="PRIMARY KEY" in bare,
        unique="UNIQUE" in bare,
        comment=comment_match.group(1).replace("''", "'") if comment_match else "",
    )


def parse_definition_text(text: str, source: str = "<text>") -> list[TableDefinition]:
    """Parse the plain-text block format into table definitions."""
    tables: dict[str, tuple[dict[str, ColumnDefinition], list[IndexDefinition]]] = {}
    current: str | None = None
    errors: list[str] = []

    for line_num, line in enumerate(text.splitlines(), start=1):
        stripped = line.strip()
        if not stripped or _COMMENT_RE.match(stripped):
            continue

        table_match = _TABLE_RE.match(stripped)
        if table_match:
            current = table_match.group(1)
            if current in tables:
                log.debug("Duplicate table definition '%s' at line %d, overwriting.", current, line_num)
            tables[current] = ({}, [])
            continue

        if current is None:
            log.debug("Line %d is outside any Table block, skipped: %s", line_num, stripped)
            continue

        columns, indexes = tables[current]
        index_match = _INDEX_RE.match(stripped)
        if index_match:
            cols = tuple(c.strip(" `") for c in index_match.group(3).split(",") if c.strip())
            indexes.append(IndexDefinition(
                name=index_match.group(2), columns=cols, unique=bool(index_match.group(1)),
            ))
            continue

        col_match = _COL_RE.match(stripped)
        if not col_match:
            errors.append(f"Line {line_num}: unrecognised column syntax → {stripped!r}")
            continue
        try:
            columns[col_match.group(1)] = parse_column_definition(col_match.group(1), col_match.group(2))
        except DefinitionParseError as exc:
            errors.append(f"Line {line_num}: {exc}")

    if errors:
        raise DefinitionParseError(f"Invalid definitions in {source}:\n  " + "\n  ".join(errors))

    return [
        TableDefinition(name=name, columns=tuple(cols.values()), indexes=tuple(idx))
        for name, (cols, idx) in tables.items()
    ]


def load_table_definitions(file_path: str | Path) -> list[TableDefinition]:
    """
    Load table definitions from a ``.json`` or plain-text file.

    Raises:
        DefinitionParseError: If the file cannot be read or parsed.
    """
    path = Path(file_path)
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise DefinitionParseError(f"Cannot read definition file '{path}': {exc}") from exc

    if path.suffix.lower() == ".json":
        try:
            data: Any = json.loads(text)
            items = data if isinstance(data, list) else [data]
            definitions = [TableDefinition.from_dict(d) for d in items]
        except (json.JSONDecodeError, KeyError, TypeError) as exc:
            raise DefinitionParseError(f"Invalid JSON definition '{path}': {exc}") from exc
    else:
        definitions = parse_definition_text(text, source=str(path))

    log.info("Loaded %d table definition(s) from '%s'.", len(definitions), path.name)
    return definitions
