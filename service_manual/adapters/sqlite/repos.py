"""
SQLite repositories.

Every repository can run on its own short-lived connections or share the
connection of an open transaction, so several writes commit or roll back
together. Editions and comments are read in ``created_at, rowid`` order:
rows created at the same instant keep their insertion order.
"""

from __future__ import annotations

import json
import sqlite3
from collections.abc import Iterator
from contextlib import contextmanager
from datetime import UTC, datetime
from typing import Any
from uuid import UUID

from service_manual.domain.entities import (
    Comment,
    Edition,
    Guide,
    PersistedModel,
    Topic,
    TopicSection,
    User,
)

# -----------------------------------------------------------------------------
# Helper functions
# -----------------------------------------------------------------------------


def dict_factory(cursor: sqlite3.Cursor, row: tuple[Any, ...]) -> dict[str, Any]:
    """Convert SQLite row to dictionary."""
    return {col[0]: row[idx] for idx, col in enumerate(cursor.description)}


def format_dt(value: datetime) -> str:
    """UTC ISO string with a fixed width, so text order is time order."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=UTC)
    return value.astimezone(UTC).isoformat(timespec="microseconds")


def parse_dt(s: str) -> datetime:
    return datetime.fromisoformat(s)


def parse_uuid(s: str | None) -> UUID | None:
    return UUID(s) if s else None


def _str_or_none(value: UUID | None) -> str | None:
    return str(value) if value is not None else None


# -----------------------------------------------------------------------------
# Base SQLite Repository
# -----------------------------------------------------------------------------


class SQLiteRepoBase:
    """Base class for SQLite repositories."""

    def __init__(self, db_path: str, connection: sqlite3.Connection | None = None):
        self.db_path = db_path
        self._external_conn = connection
        # Saved inside transaction(), flagged as persisted on commit.
        self._pending: list[PersistedModel] | None = None

    def _connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self.db_path)
        conn.row_factory = dict_factory
        conn.execute("PRAGMA foreign_keys = ON;")
        return conn

    def _get_conn(self) -> sqlite3.Connection:
        """Get database connection (uses external if provided)."""
        if self._external_conn is not None:
            return self._external_conn
        return self._connect()

    def _should_close(self) -> bool:
        """Whether to close connection after use."""
        return self._external_conn is None

    def _persisted(self, model: PersistedModel) -> None:
        if self._pending is not None:
            self._pending.append(model)
        else:
            model.mark_persisted()

    @contextmanager
    def transaction(self) -> Iterator[sqlite3.Connection]:
        """
        Run the block in one transaction on this repository.

        Commits on normal exit; rolls back and re-raises if the block raises.
        Inside an outer transaction the block simply joins it. Models saved
        in the block only report ``is_persisted`` once the commit succeeds.
        """
        if self._external_conn is not None:
            yield self._external_conn
            return

        conn = self._connect()
        self._external_conn = conn
        self._pending = []
        try:
            yield conn
            conn.commit()
            for model in self._pending:
                model.mark_persisted()
        except BaseException:
            conn.rollback()
            raise
        finally:
            self._external_conn = None
            self._pending = None
            conn.close()

    def _fetch_one(self, query: str, params: tuple[Any, ...]) -> dict[str, Any] | None:
        conn = self._get_conn()
        try:
            row: dict[str, Any] | None = conn.execute(query, params).fetchone()
            return row
        finally:
            if self._should_close():
                conn.close()

    def _fetch_all(self, query: str, params: tuple[Any, ...] = ()) -> list[dict[str, Any]]:
        conn = self._get_conn()
        try:
            return conn.execute(query, params).fetchall()
        finally:
            if self._should_close():
                conn.close()

    def _write(self, statements: list[tuple[str, tuple[Any, ...]]]) -> None:
        conn = self._get_conn()
        try:
            for query, params in statements:
                conn.execute(query, params)
            if self._should_close():
                conn.commit()
        finally:
            if self._should_close():
                conn.close()


# -----------------------------------------------------------------------------
# Users
# -----------------------------------------------------------------------------


class SQLiteUserRepo(SQLiteRepoBase):
    def save(self, user: User) -> User:
        self._write(
            [
                (
                    """
                    INSERT INTO users (id, uid, name, email, permissions, created_at)
                    VALUES (?, ?, ?, ?, ?, ?)
                    ON CONFLICT(id) DO UPDATE SET
                        name=excluded.name,
                        email=excluded.email,
                        permissions=excluded.permissions
                    """,
                    (
                        str(user.id),
                        user.uid,
                        user.name,
                        user.email,
                        json.dumps(user.permissions),
                        format_dt(user.created_at),
                    ),
                )
            ]
        )
        return user

    def get_by_id(self, user_id: UUID) -> User | None:
        row = self._fetch_one("SELECT * FROM users WHERE id = ?", (str(user_id),))
        return self._map_row(row) if row else None

    def _map_row(self, row: dict[str, Any]) -> User:
        return User(
            id=UUID(row["id"]),
            uid=row["uid"],
            name=row["name"],
            email=row["email"],
            permissions=json.loads(row["permissions"]),
            created_at=parse_dt(row["created_at"]),
        )


# -----------------------------------------------------------------------------
# Guides
# -----------------------------------------------------------------------------


class SQLiteGuideRepo(SQLiteRepoBase):
    def save(self, guide: Guide) -> Guide:
        if guide.content_id is None:
            raise ValueError("Guides need a content_id before they are saved")

        # content_id is written once, on insert.
        self._write(
            [
                (
                    """
                    INSERT INTO guides (
                        id, slug, kind, content_id, topic_section_id, created_at, updated_at
                    ) VALUES (?, ?, ?, ?, ?, ?, ?)
                    ON CONFLICT(id) DO UPDATE SET
                        slug=excluded.slug,
                        kind=excluded.kind,
                        topic_section_id=excluded.topic_section_id,
                        updated_at=excluded.updated_at
                    """,
                    (
                        str(guide.id),
                        guide.slug,
                        guide.kind,
                        guide.content_id,
                        _str_or_none(guide.topic_section_id),
                        format_dt(guide.created_at),
                        format_dt(guide.updated_at),
                    ),
                )
            ]
        )
        self._persisted(guide)
        return guide

    def get_by_id(self, guide_id: UUID) -> Guide | None:
        row = self._fetch_one("SELECT * FROM guides WHERE id = ?", (str(guide_id),))
        return self._map_row(row) if row else None

    def get_by_slug(self, slug: str) -> Guide | None:
        row = self._fetch_one("SELECT * FROM guides WHERE slug = ?", (slug,))
        return self._map_row(row) if row else None

    def list_all(self) -> list[Guide]:
        rows = self._fetch_all("SELECT * FROM guides ORDER BY created_at, rowid")
        return [self._map_row(r) for r in rows]

    def list_by_section(self, section_id: UUID) -> list[Guide]:
        rows = self._fetch_all(
            "SELECT * FROM guides WHERE topic_section_id = ? ORDER BY created_at, rowid",
            (str(section_id),),
        )
        return [self._map_row(r) for r in rows]

    def delete(self, guide_id: UUID) -> None:
        gid = str(guide_id)
        self._write(
            [
                (
                    "DELETE FROM comments WHERE edition_id IN "
                    "(SELECT id FROM editions WHERE guide_id = ?)",
                    (gid,),
                ),
                ("DELETE FROM editions WHERE guide_id = ?", (gid,)),
                ("DELETE FROM guides WHERE id = ?", (gid,)),
            ]
        )

    def _map_row(self, row: dict[str, Any]) -> Guide:
        guide = Guide(
            id=UUID(row["id"]),
            slug=row["slug"],
            kind=row["kind"],
            content_id=row["content_id"],
            topic_section_id=parse_uuid(row["topic_section_id"]),
            created_at=parse_dt(row["created_at"]),
            updated_at=parse_dt(row["updated_at"]),
        )
        guide.mark_persisted()
        return guide


# -----------------------------------------------------------------------------
# Editions and comments
# -----------------------------------------------------------------------------


class SQLiteEditionRepo(SQLiteRepoBase):
    def save(self, edition: Edition) -> Edition:
        if edition.guide_id is None:
            raise ValueError("Editions must belong to a guide")

        self._write(
            [
                (
                    """
                    INSERT INTO editions (
                        id, guide_id, version, state, phase, title, description, body,
                        change_note, update_type, author_id, content_owner_id,
                        created_at, updated_at
                    ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                    ON CONFLICT(id) DO UPDATE SET
                        state=excluded.state,
                        phase=excluded.phase,
                        title=excluded.title,
                        description=excluded.description,
                        body=excluded.body,
                        change_note=excluded.change_note,
                        update_type=excluded.update_type,
                        author_id=excluded.author_id,
                        content_owner_id=excluded.content_owner_id,
                        updated_at=excluded.updated_at
                    """,
                    (
                        str(edition.id),
                        str(edition.guide_id),
                        edition.version,
                        edition.state,
                        edition.phase,
                        edition.title,
                        edition.description,
                        edition.body,
                        edition.change_note,
                        edition.update_type,
                        _str_or_none(edition.author_id),
                        _str_or_none(edition.content_owner_id),
                        format_dt(edition.created_at),
                        format_dt(edition.updated_at),
                    ),
                )
            ]
        )
        self._persisted(edition)
        return edition

    def get_by_id(self, edition_id: UUID) -> Edition | None:
        conn = self._get_conn()
        try:
            row = conn.execute("SELECT * FROM editions WHERE id = ?", (str(edition_id),)).fetchone()
            return self._map_row(conn, row) if row else None
        finally:
            if self._should_close():
                conn.close()

    def list_for_guide(self, guide_id: UUID) -> list[Edition]:
        return self._list(
            "SELECT * FROM editions WHERE guide_id = ? ORDER BY created_at, rowid",
            (str(guide_id),),
        )

    def list_lineage(self, guide_id: UUID, version: int) -> list[Edition]:
        return self._list(
            "SELECT * FROM editions WHERE guide_id = ? AND version = ? ORDER BY created_at, rowid",
            (str(guide_id), version),
        )

    def add_comment(self, comment: Comment) -> Comment:
        self._write(
            [
                (
                    "INSERT INTO comments (id, edition_id, user_id, comment, created_at) "
                    "VALUES (?, ?, ?, ?, ?)",
                    (
                        str(comment.id),
                        str(comment.edition_id),
                        str(comment.user_id),
                        comment.comment,
                        format_dt(comment.created_at),
                    ),
                )
            ]
        )
        self._persisted(comment)
        return comment

    def _list(self, query: str, params: tuple[Any, ...]) -> list[Edition]:
        conn = self._get_conn()
        try:
            rows = conn.execute(query, params).fetchall()
            return [self._map_row(conn, r) for r in rows]
        finally:
            if self._should_close():
                conn.close()

    def _comments(self, conn: sqlite3.Connection, edition_id: str) -> list[Comment]:
        rows = conn.execute(
            "SELECT * FROM comments WHERE edition_id = ? ORDER BY created_at, rowid",
            (edition_id,),
        ).fetchall()
        comments = []
        for row in rows:
            comment = Comment(
                id=UUID(row["id"]),
                edition_id=UUID(row["edition_id"]),
                user_id=UUID(row["user_id"]),
                comment=row["comment"],
                created_at=parse_dt(row["created_at"]),
            )
            comment.mark_persisted()
            comments.append(comment)
        return comments

    def _map_row(self, conn: sqlite3.Connection, row: dict[str, Any]) -> Edition:
        edition = Edition(
            id=UUID(row["id"]),
            guide_id=UUID(row["guide_id"]),
            version=row["version"],
            state=row["state"],
            phase=row["phase"],
            title=row["title"],
            description=row["description"],
            body=row["body"],
            change_note=row["change_note"],
            update_type=row["update_type"],
            author_id=parse_uuid(row["author_id"]),
            content_owner_id=parse_uuid(row["content_owner_id"]),
            comments=self._comments(conn, row["id"]),
            created_at=parse_dt(row["created_at"]),
            updated_at=parse_dt(row["updated_at"]),
        )
        edition.mark_persisted()
        return edition


# -----------------------------------------------------------------------------
# Topics and topic sections
# -----------------------------------------------------------------------------


class SQLiteTopicRepo(SQLiteRepoBase):
    def save(self, topic: Topic) -> Topic:
        self._write(
            [
                (
                    """
                    INSERT INTO topics (
                        id, path, title, description, content_id, update_type,
                        include_on_homepage, created_at, updated_at
                    ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
                    ON CONFLICT(id) DO UPDATE SET
                        path=excluded.path,
                        title=excluded.title,
                        description=excluded.description,
                        update_type=excluded.update_type,
                        include_on_homepage=excluded.include_on_homepage,
                        updated_at=excluded.updated_at
                    """,
                    (
                        str(topic.id),
                        topic.path,
                        topic.title,
                        topic.description,
                        topic.content_id,
                        topic.update_type,
                        int(topic.include_on_homepage),
                        format_dt(topic.created_at),
                        format_dt(topic.updated_at),
                    ),
                )
            ]
        )
        self._persisted(topic)
        return topic

    def get_by_id(self, topic_id: UUID) -> Topic | None:
        row = self._fetch_one("SELECT * FROM topics WHERE id = ?", (str(topic_id),))
        return self._map_topic(row) if row else None

    def get_by_path(self, path: str) -> Topic | None:
        row = self._fetch_one("SELECT * FROM topics WHERE path = ?", (path,))
        return self._map_topic(row) if row else None

    def get_topic(self, topic_id: UUID) -> Topic | None:
        return self.get_by_id(topic_id)

    def save_section(self, section: TopicSection) -> TopicSection:
        self._write(
            [
                (
                    """
                    INSERT INTO topic_sections (id, topic_id, title, description, position)
                    VALUES (?, ?, ?, ?, ?)
                    ON CONFLICT(id) DO UPDATE SET
                        topic_id=excluded.topic_id,
                        title=excluded.title,
                        description=excluded.description,
                        position=excluded.position
                    """,
                    (
                        str(section.id),
                        _str_or_none(section.topic_id),
                        section.title,
                        section.description,
                        section.position,
                    ),
                )
            ]
        )
        self._persisted(section)
        return section

    def get_section(self, section_id: UUID) -> TopicSection | None:
        row = self._fetch_one("SELECT * FROM topic_sections WHERE id = ?", (str(section_id),))
        return self._map_section(row) if row else None

    def list_sections(self, topic_id: UUID) -> list[TopicSection]:
        rows = self._fetch_all(
            "SELECT * FROM topic_sections WHERE topic_id = ? ORDER BY position, rowid",
            (str(topic_id),),
        )
        return [self._map_section(r) for r in rows]

    def _map_topic(self, row: dict[str, Any]) -> Topic:
        topic = Topic(
            id=UUID(row["id"]),
            path=row["path"],
            title=row["title"],
            description=row["description"],
            content_id=row["content_id"],
            update_type=row["update_type"],
            include_on_homepage=bool(row["include_on_homepage"]),
            created_at=parse_dt(row["created_at"]),
            updated_at=parse_dt(row["updated_at"]),
        )
        topic.mark_persisted()
        return topic

    def _map_section(self, row: dict[str, Any]) -> TopicSection:
        section = TopicSection(
            id=UUID(row["id"]),
            topic_id=parse_uuid(row["topic_id"]),
            title=row["title"],
            description=row["description"],
            position=row["position"],
        )
        section.mark_persisted()
        return section
