"""Relational storage for contact form submissions.

This module wraps an SQLAlchemy async engine. PostgreSQL (asyncpg) is the
production backend; any other async SQLAlchemy URL, such as
``sqlite+aiosqlite``, works the same way.
"""

import logging
import ssl
from datetime import datetime
from typing import Any

from sqlalchemy import DateTime, Integer, Text, func, insert, select, text
from sqlalchemy.engine import URL, make_url
from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

from contact_relay.api.errors import StorageError
from contact_relay.api.models import ContactMessage, isoformat_utc

logger = logging.getLogger(__name__)

DEFAULT_LIST_LIMIT = 200

LOCAL_HOSTS = frozenset({"localhost", "127.0.0.1", "::1"})


class Base(DeclarativeBase):
    pass


class ContactMessageRow(Base):
    """Row in the ``contact_messages`` table."""

    __tablename__ = "contact_messages"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(Text, nullable=False)
    email: Mapped[str] = mapped_column(Text, nullable=False)
    message: Mapped[str] = mapped_column(Text, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now()
    )


_COLUMNS = (
    ContactMessageRow.id,
    ContactMessageRow.name,
    ContactMessageRow.email,
    ContactMessageRow.message,
    ContactMessageRow.created_at,
)


def _to_record(row: Any) -> ContactMessage:
    return ContactMessage(
        id=int(row.id),
        name=row.name,
        email=row.email,
        message=row.message,
        created_at=isoformat_utc(row.created_at),
    )


POSTGRES_SCHEMES = ("postgres://", "postgresql://")

# libpq style TLS options that asyncpg does not accept as URL parameters
SSL_QUERY_KEYS = ("sslmode", "ssl")

VERIFIED_SSL_MODES = frozenset({"verify-ca", "verify-full"})
DISABLED_SSL_MODES = frozenset({"disable", "false", "0", "off"})


def _is_postgres(url: URL) -> bool:
    return url.get_backend_name() in ("postgres", "postgresql")


def _requested_ssl_mode(url: URL) -> str | None:
    for key in SSL_QUERY_KEYS:
        value = url.query.get(key)
        if isinstance(value, tuple):
            value = value[-1] if value else None
        if value:
            return value.lower()
    return None


def normalize_database_url(database_url: str) -> str:
    """Select the asyncpg driver for plain PostgreSQL URLs.

    TLS options in the query string (``sslmode``, ``ssl``) are removed;
    ``build_connect_args`` turns them into the driver's ``ssl`` argument.

    Args:
        database_url: Connection string from the environment

    Returns:
        URL usable by ``create_async_engine``
    """
    for prefix in POSTGRES_SCHEMES:
        if database_url.startswith(prefix):
            database_url = "postgresql+asyncpg://" + database_url[len(prefix):]
            break

    url = make_url(database_url)
    if not _is_postgres(url) or not any(key in url.query for key in SSL_QUERY_KEYS):
        return database_url
    return url.difference_update_query(SSL_QUERY_KEYS).render_as_string(hide_password=False)


def build_connect_args(database_url: str) -> dict[str, Any]:
    """Return driver connect arguments for the URL.

    An explicit ``sslmode`` (or ``ssl``) query option wins: ``disable`` turns
    TLS off, ``verify-ca``/``verify-full`` verify the server certificate and
    any other mode encrypts without verification. Without one, remote
    PostgreSQL hosts use unverified TLS, which hosted providers require, and
    local hosts connect in plain text.

    Args:
        database_url: Connection string, before or after normalization

    Returns:
        Keyword arguments passed through to the DBAPI ``connect`` call
    """
    url = make_url(database_url)
    if not _is_postgres(url):
        return {}

    mode = _requested_ssl_mode(url)
    if mode in DISABLED_SSL_MODES:
        return {"ssl": False}
    if mode in VERIFIED_SSL_MODES:
        return {"ssl": ssl.create_default_context()}
    if mode is None and (url.host is None or url.host in LOCAL_HOSTS):
        return {"ssl": False}

    context = ssl.create_default_context()
    context.check_hostname = False
    context.verify_mode = ssl.CERT_NONE
    return {"ssl": context}


class ContactStore:
    """Persistence gateway for contact messages.

    Attributes:
        engine: SQLAlchemy async engine owning the connection pool
    """

    def __init__(self, engine: AsyncEngine) -> None:
        self.engine = engine

    @classmethod
    def from_url(cls, database_url: str, echo: bool = False) -> "ContactStore":
        """Create a store for a connection string.

        Args:
            database_url: ``postgres://``, ``postgresql://`` or any async
                SQLAlchemy URL
            echo: Log every SQL statement

        Returns:
            ContactStore bound to a new engine
        """
        url = normalize_database_url(database_url)
        engine = create_async_engine(
            url,
            echo=echo,
            pool_pre_ping=True,
            connect_args=build_connect_args(database_url),
        )
        return cls(engine)

    async def create_schema(self) -> None:
        """Create the ``contact_messages`` table if it does not exist."""
        try:
            async with self.engine.begin() as conn:
                await conn.run_sync(Base.metadata.create_all)
        except Exception as e:
            raise StorageError("schema creation failed") from e

    async def insert(self, name: str, email: str, message: str) -> ContactMessage:
        """Insert a message and return the stored record.

        Args:
            name: Trimmed submitter name
            email: Trimmed submitter email
            message: Trimmed message content

        Returns:
            The record with its assigned ``id`` and ``createdAt``

        Raises:
            StorageError: If the store is unreachable or rejects the insert
        """
        statement = (
            insert(ContactMessageRow)
            .values(name=name, email=email, message=message)
            .returning(*_COLUMNS)
        )
        try:
            async with self.engine.begin() as conn:
                result = await conn.execute(statement)
                row = result.one()
        except Exception as e:
            raise StorageError("insert failed") from e

        return _to_record(row)

    async def list_recent(self, limit: int = DEFAULT_LIST_LIMIT) -> list[ContactMessage]:
        """List the most recent messages, newest first.

        Args:
            limit: Maximum number of records

        Returns:
            Records ordered by creation time, then id, descending

        Raises:
            StorageError: If the store is unreachable
        """
        statement = (
            select(*_COLUMNS)
            .order_by(ContactMessageRow.created_at.desc(), ContactMessageRow.id.desc())
            .limit(limit)
        )
        try:
            async with self.engine.connect() as conn:
                result = await conn.execute(statement)
                rows = result.all()
        except Exception as e:
            raise StorageError("select failed") from e

        return [_to_record(row) for row in rows]

    async def ping(self) -> bool:
        """Probe the store with a trivial query.

        Returns:
            True if the store answered, False otherwise
        """
        try:
            async with self.engine.connect() as conn:
                await conn.execute(text("SELECT 1"))
        except Exception as e:
            logger.warning("Database ping failed: %s", e)
            return False
        return True

    async def dispose(self) -> None:
        """Close all pooled connections."""
        await self.engine.dispose()
