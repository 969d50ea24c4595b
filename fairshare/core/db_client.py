"""SQLite client for the insight store.

Records are plain dicts keyed by column name, with the integer primary key
exposed as a string "id". Filters use a small PocketBase-style syntax:

    space_id = "s1" && status = "pending" && created_at > "2026-01-01T00:00:00.000000Z"

Comparisons support =, !=, >, <, >=, <= and ~ (substring LIKE). A condition
may also be a parenthesized group of comparisons joined with ||.
"""

import asyncio
import json
import logging
import re
import threading
from datetime import datetime
from pathlib import Path
from typing import Any

import aiosqlite

from fairshare.core.config import settings


logger = logging.getLogger(__name__)

_IDENTIFIER_RE = re.compile(r"[A-Za-z_][A-Za-z0-9_]*")
_COMPARISON_RE = re.compile(r"""(\w+)\s*(!=|>=|<=|=|>|<|~)\s*(['"])([^'"]*)\3""")
_SORT_RE = re.compile(r"([A-Za-z_][A-Za-z0-9_]*)(?:\s+(ASC|DESC))?", re.IGNORECASE)
_DEFAULT_SORT = "id ASC"

FilterParam = str


def sanitize_param(value: str | int | float | bool | None) -> str:
    """Escape a value for embedding inside a double-quoted filter literal."""
    return json.dumps(str(value))[1:-1]


def get_db_path(db_path: str | None = None) -> Path:
    """Resolve the SQLite file path, defaulting to settings.sqlite_db_path."""
    return Path(db_path or settings.sqlite_db_path).resolve()


def _checked_collection(collection: str) -> str:
    if not _IDENTIFIER_RE.fullmatch(collection):
        msg = f"Invalid collection name: {collection}. Only letters, digits and underscores are allowed."
        raise ValueError(msg)
    return collection


def _literal(raw: str, *, like: bool = False) -> FilterParam:
    """Bind a quoted filter literal as text; column affinity handles numeric columns."""
    if like:
        return "%" + raw.replace("%", "\\%").replace("_", "\\_") + "%"
    return raw


def _row_id(collection: str, record_id: str) -> int:
    try:
        return int(record_id)
    except (TypeError, ValueError):
        msg = f"Record not found in {collection}: {record_id}"
        raise KeyError(msg) from None


def _comparison(expression: str) -> tuple[str, FilterParam]:
    match = _COMPARISON_RE.fullmatch(expression.strip())
    if match is None:
        msg = f"Invalid filter syntax: {expression}"
        raise ValueError(msg)

    column, operator, _, raw = match.groups()
    if operator == "~":
        return f"{column} LIKE ? ESCAPE '\\'", _literal(raw, like=True)
    return f"{column} {operator} ?", _literal(raw)


def _top_level_conditions(filter_query: str) -> list[str]:
    """Split on && outside parentheses."""
    conditions = []
    depth = 0
    start = 0
    index = 0
    while index < len(filter_query):
        char = filter_query[index]
        if char == "(":
            depth += 1
        elif char == ")":
            depth -= 1
        elif depth == 0 and filter_query.startswith("&&", index):
            conditions.append(filter_query[start:index].strip())
            start = index + 2
            index += 1
        index += 1
    conditions.append(filter_query[start:].strip())
    return [c for c in conditions if c]


def parse_filter(filter_query: str) -> tuple[str, list[FilterParam]]:
    """Translate a filter expression into a WHERE clause body and its parameters.

    Returns:
        ("", []) for an empty filter

    Raises:
        ValueError: If a condition cannot be parsed
    """
    clauses: list[str] = []
    params: list[FilterParam] = []

    for condition in _top_level_conditions(filter_query):
        if condition.startswith("(") and condition.endswith(")"):
            alternatives = [_comparison(part) for part in condition[1:-1].split("||")]
            clauses.append("(" + " OR ".join(sql for sql, _ in alternatives) + ")")
            params.extend(value for _, value in alternatives)
        else:
            sql, value = _comparison(condition)
            clauses.append(sql)
            params.append(value)

    return " AND ".join(clauses), params


def _order_by(sort: str) -> str:
    if not sort:
        return _DEFAULT_SORT
    match = _SORT_RE.fullmatch(sort.strip())
    if match is None:
        logger.warning("Ignoring invalid sort expression %r", sort)
        return _DEFAULT_SORT
    column, direction = match.groups()
    return f"{column} {(direction or 'ASC').upper()}"


def _column_value(value: Any) -> Any:
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, dict | list):
        return json.dumps(value)
    return value


def _records(cursor: aiosqlite.Cursor, rows: list[tuple[Any, ...]]) -> list[dict[str, Any]]:
    columns = [column[0] for column in cursor.description]
    records = []
    for row in rows:
        record = dict(zip(columns, row, strict=True))
        record["id"] = str(record["id"])
        records.append(record)
    return records


def _store_failure(action: str, collection: str, error: Exception, **context: Any) -> RuntimeError:
    logger.error("%s failed for %s: %s", action, collection, error, extra={"collection": collection, **context})
    return RuntimeError(f"Failed to {action} {collection}: {error}")


# One connection per (thread, event loop, file); aiosqlite connections are loop-bound.
# The owning loop is kept so a new loop that reuses a dead loop's id never gets its connection.
_connections: dict[tuple[int, int, str], tuple[asyncio.AbstractEventLoop, aiosqlite.Connection]] = {}
_connections_lock = asyncio.Lock()


def _connection_key(db_path: str | None) -> tuple[int, int, str]:
    return threading.get_ident(), id(asyncio.get_running_loop()), str(get_db_path(db_path))


async def get_connection(*, db_path: str | None = None) -> aiosqlite.Connection:
    """Return the cached connection for this thread, loop and file, opening it on first use."""
    loop = asyncio.get_running_loop()
    key = _connection_key(db_path)

    async with _connections_lock:
        cached = _connections.get(key)
        if cached is not None:
            owner, conn = cached
            if owner is loop and not owner.is_closed():
                return conn
            # Stale entry from a closed loop
            del _connections[key]
            logger.info("Dropped stale SQLite connection", extra={"db_path": key[2]})

        path = Path(key[2])
        path.parent.mkdir(parents=True, exist_ok=True)
        conn = await aiosqlite.connect(path)
        await conn.execute("PRAGMA journal_mode = WAL")
        _connections[key] = (loop, conn)
        logger.info("Opened SQLite insight store", extra={"db_path": key[2]})
        return conn


async def close_connection(*, db_path: str | None = None) -> None:
    """Close and forget the cached connection for this thread, loop and file."""
    key = _connection_key(db_path)
    async with _connections_lock:
        cached = _connections.pop(key, None)
    if cached is None:
        return
    _, conn = cached
    try:
        await conn.close()
    except (aiosqlite.Error, RuntimeError) as e:
        logger.warning("Error closing SQLite connection: %s", e, extra={"db_path": key[2]})
    else:
        logger.info("Closed SQLite insight store", extra={"db_path": key[2]})


async def create_record(*, collection: str, data: dict[str, Any]) -> dict[str, Any]:
    """Insert a record and return it as stored, including its new id.

    Raises:
        RuntimeError: If the insert fails, e.g. a missing table or a violated constraint
    """
    try:
        table = _checked_collection(collection)
        conn = await get_connection()
        columns = ", ".join(data)
        placeholders = ", ".join("?" * len(data))
        cursor = await conn.execute(
            f"INSERT INTO {table} ({columns}) VALUES ({placeholders})",  # noqa: S608 - table name is checked
            [_column_value(v) for v in data.values()],
        )
        await conn.commit()
        record = await get_record(collection=table, record_id=str(cursor.lastrowid))
    except aiosqlite.OperationalError as e:
        if "no such table" in str(e):
            logger.error("Insight store table %s is missing", collection)
            msg = f"Table '{collection}' does not exist. Call init_db() first."
            raise RuntimeError(msg) from e
        raise _store_failure("create record in", collection, e) from e
    except Exception as e:
        raise _store_failure("create record in", collection, e) from e

    logger.debug("Created record %s", record["id"], extra={"collection": collection})
    return record


async def get_record(*, collection: str, record_id: str) -> dict[str, Any]:
    """Fetch one record by id.

    Raises:
        KeyError: If no record has this id (ids that are not integers never exist)
        RuntimeError: If the query fails
    """
    row_id = _row_id(collection, record_id)
    try:
        table = _checked_collection(collection)
        conn = await get_connection()
        cursor = await conn.execute(f"SELECT * FROM {table} WHERE id = ?", (row_id,))  # noqa: S608
        row = await cursor.fetchone()
    except Exception as e:
        raise _store_failure("get record from", collection, e, record_id=record_id) from e

    if row is None:
        msg = f"Record not found in {collection}: {record_id}"
        raise KeyError(msg)
    return _records(cursor, [row])[0]


async def update_record(*, collection: str, record_id: str, data: dict[str, Any]) -> dict[str, Any]:
    """Apply `data` to an existing record and return the updated record.

    Raises:
        ValueError: If `data` is empty
        KeyError: If no record has this id
        RuntimeError: If the update fails
    """
    if not data:
        msg = "Empty update payload"
        raise ValueError(msg)

    row_id = _row_id(collection, record_id)
    try:
        table = _checked_collection(collection)
        conn = await get_connection()
        assignments = ", ".join(f"{column} = ?" for column in data)
        cursor = await conn.execute(
            f"UPDATE {table} SET {assignments} WHERE id = ?",  # noqa: S608 - table name is checked
            [*(_column_value(v) for v in data.values()), row_id],
        )
        await conn.commit()
    except Exception as e:
        raise _store_failure("update record in", collection, e, record_id=record_id) from e

    if cursor.rowcount == 0:
        msg = f"Record not found in {collection}: {record_id}"
        raise KeyError(msg)

    logger.debug("Updated record %s", record_id, extra={"collection": collection, "fields": sorted(data)})
    return await get_record(collection=collection, record_id=record_id)


async def list_records(
    *,
    collection: str,
    page: int = 1,
    per_page: int = 50,
    filter_query: str = "",
    sort: str = "",
) -> list[dict[str, Any]]:
    """List one page of records matching `filter_query`, ordered by `sort` (`column [ASC|DESC]`).

    Raises:
        RuntimeError: If the filter is invalid or the query fails
    """
    try:
        table = _checked_collection(collection)
        conn = await get_connection()
        where, params = parse_filter(filter_query)
        sql = f"SELECT * FROM {table}"  # noqa: S608 - table name is checked
        if where:
            sql += f" WHERE {where}"
        sql += f" ORDER BY {_order_by(sort)} LIMIT ? OFFSET ?"
        cursor = await conn.execute(sql, [*params, per_page, (page - 1) * per_page])
        rows = await cursor.fetchall()
    except Exception as e:
        raise _store_failure("list records from", collection, e, filter_query=filter_query) from e

    return _records(cursor, list(rows))


async def get_first_record(*, collection: str, filter_query: str) -> dict[str, Any] | None:
    """Return the first record matching the filter, or None."""
    records = await list_records(collection=collection, filter_query=filter_query, per_page=1)
    return records[0] if records else None
