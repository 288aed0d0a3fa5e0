"""
SQLite-backed mail store.

Provides the durable message table plus key/value settings and account
metadata, using SQLAlchemy Core on a single local database file.

Concurrency model:
- Every call checks a connection out of the engine pool and returns it,
  so the store is safe to use from any thread (presentation, worker pool)
- WAL journaling lets interactive readers proceed while the categorization
  worker commits single-row updates
- Multi-statement writes (replace_all) run in one transaction
"""

from contextlib import contextmanager
from pathlib import Path
from typing import Iterable, Iterator, Optional, Union

import structlog
from sqlalchemy import create_engine, delete, event, func, insert, or_, select, text, update
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.engine import Engine
from sqlalchemy.exc import OperationalError, SQLAlchemyError

from neural_mail.config import Settings
from neural_mail.models.enums import Category
from neural_mail.models.mail_models import Account, Message
from neural_mail.persistence.exceptions import StorageError
from neural_mail.persistence.schema import (
    COLUMN_MIGRATIONS,
    accounts,
    emails,
    metadata,
    settings as settings_table,
)

logger = structlog.get_logger(__name__)

SIDEBAR_WIDTH_KEY = "sidebar_width"
THEME_MODE_KEY = "theme_mode"


def _configure_sqlite(dbapi_connection, connection_record) -> None:
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA journal_mode=WAL")
    cursor.execute("PRAGMA synchronous=NORMAL")
    cursor.close()


class MailStore:
    """
    Store for messages, settings and accounts.

    All operations are synchronous. Callers on an event loop must run them
    in a worker thread (``asyncio.to_thread`` / ``run_in_threadpool``).

    Search semantics: substring match on subject, sender or body, case
    insensitive for ASCII letters (SQLite ``lower()``); ``%`` and ``_`` in
    the query match literally.
    """

    DEFAULT_SIDEBAR_WIDTH = 570.0
    DEFAULT_THEME_MODE = "system"

    def __init__(
        self,
        path: Union[str, Path] = "neural-mail.db",
        busy_timeout: float = 30.0,
        engine: Optional[Engine] = None,
    ):
        """
        Initialize store.

        Args:
            path: SQLite database file (created on first connect)
            busy_timeout: Seconds a writer waits on a locked database
            engine: Pre-built engine (overrides ``path``)
        """
        self.path = str(path)
        self.engine = engine or create_engine(
            f"sqlite:///{self.path}",
            connect_args={"timeout": busy_timeout, "check_same_thread": False},
        )
        event.listen(self.engine, "connect", _configure_sqlite)

        logger.info("Mail store created", path=self.path, busy_timeout=busy_timeout)

    @classmethod
    def from_settings(cls, settings: Settings) -> "MailStore":
        return cls(settings.DATABASE_PATH)

    @contextmanager
    def _guard(self, operation: str) -> Iterator[None]:
        """Translate storage-engine failures into StorageError."""
        try:
            yield
        except SQLAlchemyError as e:
            cause = getattr(e, "orig", None) or e
            logger.error(
                "Storage operation failed",
                operation=operation,
                error_type=type(cause).__name__,
                error=str(cause),
            )
            raise StorageError(
                f"Storage error during {operation}: {cause}",
                operation=operation,
                details={"error_type": type(cause).__name__},
            ) from e

    # === Schema ===

    def init(self) -> None:
        """
        Create tables if absent and apply column migrations.

        Safe to call any number of times. Migrations that fail because the
        column already exists are ignored.
        """
        with self._guard("init"):
            metadata.create_all(self.engine, checkfirst=True)

            for statement in COLUMN_MIGRATIONS:
                try:
                    with self.engine.begin() as conn:
                        conn.execute(text(statement))
                    logger.info("Applied schema migration", statement=statement)
                except OperationalError as e:
                    if "duplicate column" not in str(e.orig).lower():
                        raise
                    logger.debug("Schema migration skipped", statement=statement, reason=str(e.orig))

        logger.info("Mail store initialized", path=self.path)

    # === Messages ===

    @staticmethod
    def _to_row(message: Message) -> dict:
        return {
            "id": message.id,
            "subject": message.subject,
            "sender": message.sender,
            "date_str": message.date_label,
            "body": message.body,
            "has_attachment": message.has_attachment,
            "category": message.category.value,
        }

    @staticmethod
    def _to_message(row) -> Message:
        return Message(
            id=row.id,
            subject=row.subject,
            sender=row.sender,
            date_label=row.date_str,
            body=row.body,
            has_attachment=bool(row.has_attachment),
            category=row.category,
        )

    def _select_messages(self, operation: str, *criteria, limit: Optional[int] = None) -> list[Message]:
        statement = select(emails).where(*criteria).order_by(emails.c.id)
        if limit is not None:
            statement = statement.limit(limit)
        with self._guard(operation), self.engine.connect() as conn:
            rows = conn.execute(statement).all()
        return [self._to_message(row) for row in rows]

    def replace_all(self, messages: Iterable[Message]) -> int:
        """
        Atomically replace every stored message with ``messages``.

        Delete and inserts share one transaction: on any failure the
        previous contents are left untouched.

        Returns:
            Number of messages stored
        """
        rows = [self._to_row(message) for message in messages]
        with self._guard("replace_all"), self.engine.begin() as conn:
            conn.execute(delete(emails))
            if rows:
                conn.execute(insert(emails), rows)

        logger.info("Replaced stored messages", count=len(rows))
        return len(rows)

    def all(self, limit: Optional[int] = None) -> list[Message]:
        """Return every message (or the first ``limit``) in scan order."""
        return self._select_messages("all", limit=limit)

    def get(self, message_id: int) -> Optional[Message]:
        found = self._select_messages("get", emails.c.id == message_id)
        return found[0] if found else None

    def search(self, query: Optional[str]) -> list[Message]:
        """
        Substring search over subject, sender and body.

        An empty or whitespace-only query returns exactly ``all()``.
        """
        if not query or not query.strip():
            return self.all()

        matches = self._select_messages(
            "search",
            or_(
                emails.c.subject.icontains(query, autoescape=True),
                emails.c.sender.icontains(query, autoescape=True),
                emails.c.body.icontains(query, autoescape=True),
            ),
        )
        logger.debug("Searched messages", query_length=len(query), matches=len(matches))
        return matches

    def by_category(self, label: Union[Category, str]) -> list[Message]:
        """Return messages whose category equals ``label`` exactly."""
        value = label.value if isinstance(label, Category) else label
        return self._select_messages("by_category", emails.c.category == value)

    def update_category(self, message_id: int, label: Union[Category, str]) -> bool:
        """
        Set the category of one message.

        Unknown ids are a no-op, not an error.

        Returns:
            True if a row was updated

        Raises:
            ValueError: ``label`` is not one of the Category values
            StorageError: storage-engine failure
        """
        category = label if isinstance(label, Category) else Category(label)
        with self._guard("update_category"), self.engine.begin() as conn:
            result = conn.execute(
                update(emails).where(emails.c.id == message_id).values(category=category.value)
            )

        updated = result.rowcount > 0
        logger.debug(
            "Updated message category" if updated else "Category update for unknown id ignored",
            message_id=message_id,
            category=category.value,
        )
        return updated

    def count(self) -> int:
        with self._guard("count"), self.engine.connect() as conn:
            return conn.execute(select(func.count()).select_from(emails)).scalar_one()

    # === Settings ===

    def get_setting(self, key: str, default: Optional[str] = None) -> Optional[str]:
        with self._guard("get_setting"), self.engine.connect() as conn:
            value = conn.execute(
                select(settings_table.c.value).where(settings_table.c.key == key)
            ).scalar_one_or_none()
        return default if value is None else value

    def set_setting(self, key: str, value: str) -> None:
        """Insert or overwrite a setting."""
        statement = sqlite_insert(settings_table).values(key=key, value=str(value))
        statement = statement.on_conflict_do_update(
            index_elements=[settings_table.c.key],
            set_={"value": statement.excluded.value},
        )
        with self._guard("set_setting"), self.engine.begin() as conn:
            conn.execute(statement)
        logger.debug("Saved setting", key=key)

    def get_sidebar_width(self) -> float:
        raw = self.get_setting(SIDEBAR_WIDTH_KEY)
        if raw is None:
            return self.DEFAULT_SIDEBAR_WIDTH
        try:
            return float(raw)
        except ValueError:
            logger.warning("Ignoring unparsable sidebar width", value=raw)
            return self.DEFAULT_SIDEBAR_WIDTH

    def set_sidebar_width(self, width: float) -> None:
        self.set_setting(SIDEBAR_WIDTH_KEY, str(float(width)))

    def get_theme_mode(self) -> str:
        return self.get_setting(THEME_MODE_KEY, self.DEFAULT_THEME_MODE)

    def set_theme_mode(self, mode: str) -> None:
        self.set_setting(THEME_MODE_KEY, mode)

    # === Accounts ===

    def save_account(self, account: Account) -> None:
        """Insert or replace account metadata."""
        values = account.model_dump(exclude={"email"})
        statement = sqlite_insert(accounts).values(email=account.email, **values)
        statement = statement.on_conflict_do_update(
            index_elements=[accounts.c.email],
            set_={name: statement.excluded[name] for name in values},
        )
        with self._guard("save_account"), self.engine.begin() as conn:
            conn.execute(statement)
        logger.info("Saved account", account=account.email)

    def list_accounts(self) -> list[Account]:
        with self._guard("list_accounts"), self.engine.connect() as conn:
            rows = conn.execute(select(accounts).order_by(accounts.c.email)).all()
        return [
            Account(
                email=row.email,
                imap_host=row.imap_host,
                imap_port=row.imap_port,
                smtp_host=row.smtp_host,
                smtp_port=row.smtp_port,
                is_demo=bool(row.is_demo),
            )
            for row in rows
        ]

    def delete_account(self, email: str) -> bool:
        with self._guard("delete_account"), self.engine.begin() as conn:
            result = conn.execute(delete(accounts).where(accounts.c.email == email))
        return result.rowcount > 0

    def close(self) -> None:
        """Dispose pooled connections."""
        self.engine.dispose()
        logger.debug("Mail store closed", path=self.path)
