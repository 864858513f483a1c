"""Async SQLite access layer: connection lifecycle, schema bootstrap and seed data."""

import logging
from pathlib import Path
from typing import Any

import aiosqlite

from .passwords import hash_password

logger = logging.getLogger(__name__)

DEFAULT_CONTACT_INFO = [
    ("address", "Visit Us", "123 Architecture Avenue\nDesign District, DC 10001", "Our office location", 1),
    ("phone", "Call Us", "+1 (555) 123-4567", "Mon-Fri, 9:00 AM - 6:00 PM", 2),
    ("email", "Email Us", "hello@aspirearchitecture.com\ninfo@aspirearchitecture.com", "Primary contact emails", 3),
]

DEFAULT_STORIES = [
    (
        "Maria L.",
        "Architect",
        "Sustainable Design Studio",
        "Transformed My Practice",
        "The sustainable design workshop completely changed how I approach projects.",
        "workshop",
    ),
    (
        "James T.",
        "Designer",
        "Urban Innovations Ltd",
        "Career Advancement",
        "Through the mentorship program, I connected with an experienced architect who guided me.",
        "mentorship",
    ),
]


class Database:
    """Async SQLite database wrapper.

    All statements are parameterized; callers receive rows as plain dicts.
    """

    def __init__(self, db_path: Path | str) -> None:
        self.db_path = str(db_path)
        self.connection: aiosqlite.Connection | None = None
        self._columns: dict[str, tuple[str, ...]] = {}

    async def initialize(self) -> None:
        """Open connection, enable foreign keys, execute schema."""
        self.connection = await aiosqlite.connect(self.db_path)
        self.connection.row_factory = aiosqlite.Row
        schema_sql = (Path(__file__).parent / "schema.sql").read_text()
        await self.connection.executescript(schema_sql)
        await self.connection.execute("PRAGMA foreign_keys=ON")
        await self.connection.commit()
        logger.info("Database initialized at %s", self.db_path)

    async def close(self) -> None:
        if self.connection:
            await self.connection.close()
            self.connection = None

    async def __aenter__(self) -> "Database":
        await self.initialize()
        return self

    async def __aexit__(
        self, exc_type: type | None, exc_val: Exception | None, exc_tb: object
    ) -> None:
        await self.close()

    async def execute(self, sql: str, params: tuple = ()) -> aiosqlite.Cursor:
        """Execute a single SQL statement and commit."""
        assert self.connection is not None
        cursor = await self.connection.execute(sql, params)
        await self.connection.commit()
        return cursor

    async def insert(self, sql: str, params: tuple = ()) -> int:
        """Execute an INSERT and return the new row id."""
        cursor = await self.execute(sql, params)
        return cursor.lastrowid

    async def fetch_one(self, sql: str, params: tuple = ()) -> dict | None:
        assert self.connection is not None
        cursor = await self.connection.execute(sql, params)
        row = await cursor.fetchone()
        if row is None:
            return None
        return dict(row)

    async def fetch_all(self, sql: str, params: tuple = ()) -> list[dict]:
        assert self.connection is not None
        cursor = await self.connection.execute(sql, params)
        rows = await cursor.fetchall()
        return [dict(r) for r in rows]

    async def fetch_value(self, sql: str, params: tuple = ()) -> Any:
        assert self.connection is not None
        cursor = await self.connection.execute(sql, params)
        row = await cursor.fetchone()
        return None if row is None else row[0]

    async def table_columns(self, table: str) -> tuple[str, ...]:
        """Column names of *table*, cached after the first lookup."""
        if table not in self._columns:
            rows = await self.fetch_all(f"PRAGMA table_info({table})")
            if not rows:
                raise ValueError(f"Unknown table: {table}")
            self._columns[table] = tuple(row["name"] for row in rows)
        return self._columns[table]

    async def ping(self) -> bool:
        try:
            return await self.fetch_value("SELECT 1") == 1
        except (aiosqlite.Error, AssertionError) as exc:
            logger.error("Database connection check failed: %s", exc)
            return False

    # ── Seed data ─────────────────────────────────────────────────────────

    async def seed_defaults(self, admin_password: str) -> None:
        """Create the default admin account and starter content on an empty database."""
        if await self.fetch_one("SELECT id FROM admins WHERE username = ?", ("admin",)) is None:
            await self.execute(
                "INSERT INTO admins (username, password) VALUES (?, ?)",
                ("admin", hash_password(admin_password)),
            )
            logger.info("Created default admin user")

        if not await self.fetch_value("SELECT COUNT(*) FROM contact_info"):
            assert self.connection is not None
            await self.connection.executemany(
                "INSERT INTO contact_info (type, title, value, description, display_order) "
                "VALUES (?, ?, ?, ?, ?)",
                DEFAULT_CONTACT_INFO,
            )
            await self.connection.commit()

        if not await self.fetch_value("SELECT COUNT(*) FROM email_settings"):
            await self.execute(
                "INSERT INTO email_settings (recipient_email) VALUES (?)",
                ("admin@aspirearchitecture.com",),
            )

        if not await self.fetch_value("SELECT COUNT(*) FROM community_stories"):
            assert self.connection is not None
            await self.connection.executemany(
                "INSERT INTO community_stories (author_name, author_title, author_organization, "
                "story_title, story_content, category, is_featured) VALUES (?, ?, ?, ?, ?, ?, 1)",
                DEFAULT_STORIES,
            )
            await self.connection.commit()
