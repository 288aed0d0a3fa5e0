"""
Table definitions for the local mail database.

Tables:
- emails: one row per message, category constrained by the application
- settings: key/value preferences (upsert semantics)
- accounts: mail account metadata (passwords live in the OS keyring)
"""

from sqlalchemy import Boolean, Column, Integer, MetaData, Table, Text

metadata = MetaData()

emails = Table(
    "emails",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=False),
    Column("subject", Text, nullable=False),
    Column("sender", Text, nullable=False),
    Column("date_str", Text, nullable=False),
    Column("body", Text, nullable=False),
    Column("has_attachment", Boolean, nullable=False, default=False),
    Column("category", Text, nullable=False, server_default="Inbox"),
)

settings = Table(
    "settings",
    metadata,
    Column("key", Text, primary_key=True),
    Column("value", Text, nullable=False),
)

accounts = Table(
    "accounts",
    metadata,
    Column("email", Text, primary_key=True),
    Column("imap_host", Text, nullable=False),
    Column("imap_port", Integer, nullable=False),
    Column("smtp_host", Text, nullable=True),
    Column("smtp_port", Integer, nullable=False, default=587),
    Column("is_demo", Boolean, nullable=False, default=False),
)

# Columns added after the first schema revision, applied by MailStore.init()
# on databases created before them. Adding a column that already exists fails
# and is ignored.
COLUMN_MIGRATIONS = [
    "ALTER TABLE emails ADD COLUMN category TEXT NOT NULL DEFAULT 'Inbox'",
]
