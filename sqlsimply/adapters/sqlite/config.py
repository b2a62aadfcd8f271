"""SQLite connection configuration and connection-string parsing."""

import re
from contextlib import contextmanager
from typing import TYPE_CHECKING, Any, Optional, TypedDict, cast
from urllib.parse import quote

from typing_extensions import NotRequired

from sqlsimply.adapters.sqlite.driver import SqliteConnection
from sqlsimply.exceptions import ImproperConfigurationError
from sqlsimply.utils.logging import get_logger

if TYPE_CHECKING:
    from collections.abc import Generator, Mapping

__all__ = ("SqliteConfig", "SqliteConnectionParams", "parse_connection_string")

logger = get_logger("adapters.sqlite.config")

MEMORY_DATABASE = ":memory:"

_SEGMENT_PATTERN = re.compile(
    r"""\s*(?P<key>[^=;]+?)\s*=\s*(?P<value>"(?:[^"]|"")*"|'(?:[^']|'')*'|[^;]*?)\s*(?:;|$)"""
)

_DATABASE_KEYS = frozenset({"datasource", "filename"})
_TIMEOUT_KEYS = frozenset({"defaulttimeout", "commandtimeout"})
_MODES = {"readwritecreate": "rwc", "readwrite": "rw", "readonly": "ro", "memory": "memory"}
_CACHES = {"default": None, "private": "private", "shared": "shared"}
_TRUE_VALUES = frozenset({"true", "yes", "1", "on"})
_FALSE_VALUES = frozenset({"false", "no", "0", "off"})


class SqliteConnectionParams(TypedDict, total=False):
    """SQLite connection parameters."""

    database: NotRequired[str]
    timeout: NotRequired[float]
    detect_types: NotRequired[int]
    isolation_level: "NotRequired[Optional[str]]"
    check_same_thread: NotRequired[bool]
    cached_statements: NotRequired[int]
    uri: NotRequired[bool]
    foreign_keys: "NotRequired[Optional[bool]]"


def _unquote(value: str) -> str:
    if len(value) >= 2 and value[0] == value[-1] and value[0] in {'"', "'"}:
        quote_char = value[0]
        return value[1:-1].replace(quote_char * 2, quote_char)
    return value


def _parse_bool(key: str, value: str) -> bool:
    normalized = value.strip().lower()
    if normalized in _TRUE_VALUES:
        return True
    if normalized in _FALSE_VALUES:
        return False
    msg = f"Invalid boolean value {value!r} for connection string keyword {key!r}"
    raise ImproperConfigurationError(msg)


def _parse_choice(key: str, value: str, choices: "Mapping[str, Optional[str]]") -> "Optional[str]":
    normalized = value.strip().replace(" ", "").lower()
    if normalized not in choices:
        msg = f"Invalid value {value!r} for connection string keyword {key!r}"
        raise ImproperConfigurationError(msg)
    return choices[normalized]


def _build_uri(database: str, mode: "Optional[str]", cache: "Optional[str]") -> str:
    if database in {"", MEMORY_DATABASE}:
        database = MEMORY_DATABASE
        mode = None if mode == "memory" else mode
    query = "&".join(f"{name}={option}" for name, option in (("mode", mode), ("cache", cache)) if option)
    path = quote(database, safe="/:\\")
    return f"file:{path}?{query}" if query else f"file:{path}"


def parse_connection_string(connection_string: str) -> SqliteConnectionParams:
    """Parse an ADO-style SQLite connection string.

    Understands ``Data Source`` (alias ``DataSource`` and ``Filename``),
    ``Mode`` (``ReadWriteCreate``, ``ReadWrite``, ``ReadOnly``, ``Memory``),
    ``Cache`` (``Default``, ``Private``, ``Shared``), ``Foreign Keys`` and
    ``Default Timeout``/``Command Timeout``. ``Pooling`` is accepted and ignored.
    A string without any ``=`` is taken to be a bare database path.

    Args:
        connection_string: Connection string such as ``"Data Source=app.db;Mode=ReadOnly"``.

    Raises:
        ImproperConfigurationError: If a keyword is unknown or has an invalid value.

    Returns:
        Connection parameters for :func:`sqlite3.connect`.
    """
    text = connection_string.strip()
    if not text:
        msg = "Connection string must not be empty"
        raise ImproperConfigurationError(msg)
    if "=" not in text:
        return {"database": text}

    params: SqliteConnectionParams = {}
    database: Optional[str] = None
    mode: Optional[str] = None
    cache: Optional[str] = None

    position = 0
    while position < len(text):
        if text[position] in "; \t":
            position += 1
            continue
        match = _SEGMENT_PATTERN.match(text, position)
        if match is None or match.end() == position:
            msg = f"Malformed connection string near {text[position:]!r}"
            raise ImproperConfigurationError(msg)
        position = match.end()
        raw_key = match.group("key").strip()
        compact_key = "".join(raw_key.lower().split())
        value = _unquote(match.group("value"))

        if compact_key in _DATABASE_KEYS:
            database = value
        elif compact_key == "mode":
            mode = _parse_choice(raw_key, value, _MODES)
        elif compact_key == "cache":
            cache = _parse_choice(raw_key, value, _CACHES)
        elif compact_key == "foreignkeys":
            params["foreign_keys"] = _parse_bool(raw_key, value) if value.strip() else None
        elif compact_key in _TIMEOUT_KEYS:
            try:
                params["timeout"] = float(value)
            except ValueError as e:
                msg = f"Invalid timeout {value!r} for connection string keyword {raw_key!r}"
                raise ImproperConfigurationError(msg) from e
        elif compact_key == "pooling":
            logger.debug("Ignoring connection string keyword %r; connections are not pooled", raw_key)
        elif compact_key == "password":
            msg = "Encrypted databases are not supported by the sqlite3 driver"
            raise ImproperConfigurationError(msg)
        else:
            msg = f"Unknown connection string keyword {raw_key!r}"
            raise ImproperConfigurationError(msg)

    if database is None:
        database = MEMORY_DATABASE if mode == "memory" else ""
    if not database and mode != "memory":
        msg = "Connection string must name a database with 'Data Source'"
        raise ImproperConfigurationError(msg)

    if mode is None and cache is None:
        params["database"] = database
    else:
        params["database"] = _build_uri(database, mode, cache)
        params["uri"] = True
    return params


class SqliteConfig:
    """SQLite configuration.

    Connections are created unopened and unpooled. The builder's execution
    verbs open them; the caller closes them, usually through
    :meth:`provide_connection`.
    """

    def __init__(
        self,
        connection_string: Optional[str] = None,
        *,
        connection_config: "Optional[SqliteConnectionParams | dict[str, Any]]" = None,
    ) -> None:
        """Initialize SQLite configuration.

        Args:
            connection_string: ADO-style connection string, see :func:`parse_connection_string`.
            connection_config: Explicit connection parameters; these win over the connection string.
        """
        params: dict[str, Any] = dict(parse_connection_string(connection_string)) if connection_string else {}
        params.update(connection_config or {})
        params.setdefault("database", MEMORY_DATABASE)
        params.setdefault("isolation_level", None)

        database_path = str(params["database"])
        if database_path.startswith("file:") and not params.get("uri"):
            logger.debug(
                "Database URI detected (%s) but uri=True not set. Auto-enabling URI mode.",
                database_path,
            )
            params["uri"] = True

        self.connection_string = connection_string
        self.connection_config = cast("SqliteConnectionParams", params)

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(database={self.connection_config.get('database')!r})"

    def create_connection(self) -> SqliteConnection:
        """Create an unopened connection handle.

        Returns:
            A new connection; the caller owns it and must close it.
        """
        return SqliteConnection(self.connection_config)

    @contextmanager
    def provide_connection(self) -> "Generator[SqliteConnection, None, None]":
        """Provide a connection that is closed on every exit path.

        Yields:
            SqliteConnection: An unopened connection.
        """
        connection = self.create_connection()
        try:
            yield connection
        finally:
            connection.close()
