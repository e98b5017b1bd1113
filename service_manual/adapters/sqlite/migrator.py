"""
Schema migrations for the publisher database.

Each ``NNNN_name.sql`` file holds an up script, optionally followed by a
``-- Down`` section that is never run here. Applied files are recorded in
``schema_migrations`` and every file is applied in its own transaction.
"""

import logging
import sqlite3
from pathlib import Path

logger = logging.getLogger(__name__)

DEFAULT_MIGRATIONS_DIR = Path(__file__).parent / "migrations"
DOWN_MARKER = "-- Down"


class SQLiteMigrator:
    def __init__(self, db_path: str, migrations_dir: str | Path = DEFAULT_MIGRATIONS_DIR):
        self.db_path = db_path
        self.migrations_dir = Path(migrations_dir)

    def pending(self, conn: sqlite3.Connection) -> list[Path]:
        """Migration files not yet recorded, in filename order."""
        done = {row[0] for row in conn.execute("SELECT filename FROM schema_migrations")}
        return [p for p in sorted(self.migrations_dir.glob("*.sql")) if p.name not in done]

    def run_migrations(self) -> list[str]:
        """Apply pending migrations. Returns the filenames applied."""
        conn = sqlite3.connect(self.db_path)
        try:
            conn.execute(
                "CREATE TABLE IF NOT EXISTS schema_migrations ("
                " filename TEXT PRIMARY KEY,"
                " applied_at TEXT NOT NULL DEFAULT CURRENT_TIMESTAMP)"
            )
            applied = []
            for path in self.pending(conn):
                logger.info("Applying migration %s to %s", path.name, self.db_path)
                self._apply(conn, path)
                applied.append(path.name)
        finally:
            conn.close()

        if applied:
            logger.info("Database %s migrated (%d files)", self.db_path, len(applied))
        return applied

    def _apply(self, conn: sqlite3.Connection, path: Path) -> None:
        up_script = path.read_text().split(DOWN_MARKER, 1)[0]
        try:
            conn.executescript(f"BEGIN;\n{up_script}\n")
            conn.execute("INSERT INTO schema_migrations (filename) VALUES (?)", (path.name,))
            conn.commit()
        except sqlite3.Error as e:
            conn.rollback()
            raise RuntimeError(f"Migration {path.name} failed: {e}") from e
