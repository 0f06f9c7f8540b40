"""SQLite metadata database for tinyvcs.

This module holds every mutable piece of repository state: the commit index,
branch pointers, the active (head) branch and the staging area. Objects
themselves live in the object store; the commit index can be rebuilt from it.
"""

import sqlite3
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Dict, Iterator, List, Optional, Set, Union

from tinyvcs.constants import DB_SCHEMA_VERSION

MEMORY_DB = ":memory:"


class DatabaseError(Exception):
    """Base exception for database errors."""

    pass


class MetadataDB:
    """SQLite database manager for tinyvcs metadata.

    Schema Tables:
        - commits: Commit index with hash, parents, timestamp, message
        - branches: Branch name -> commit hash
        - staged: Path -> blob hash proposed for the next commit
        - removed: Paths whose tracking ends at the next commit
        - metadata: Schema version and the head branch slot

    Mutating methods do not commit on their own when called inside
    ``transaction()``; outside of it each call is its own transaction.

    Attributes:
        db_path: Path to the SQLite database file (or ":memory:")
        conn: Active database connection (if open)

    Example:
        >>> db = MetadataDB(Path(".tinyvcs/metadata.db"))
        >>> db.open()
        >>> db.init_schema()
        >>> with db.transaction():
        ...     db.set_branch("master", "abc123...")
        ...     db.set_head_branch("master")
    """

    def __init__(self, db_path: Union[Path, str]) -> None:
        """Initialize database manager.

        Args:
            db_path: Database file path, or ":memory:" for a private in-memory db
        """
        self.db_path = db_path if db_path == MEMORY_DB else Path(db_path)
        self.conn: Optional[sqlite3.Connection] = None
        self._wal_mode_supported: Optional[bool] = None
        self._depth = 0

    def open(self) -> None:
        """Open database connection and configure journal mode.

        Attempts to use WAL mode. Falls back to DELETE mode if WAL is not
        supported (e.g., on NFS or for in-memory databases).

        Raises:
            DatabaseError: If connection fails
        """
        if self.conn is not None:
            return  # Already open

        try:
            self.conn = sqlite3.connect(
                str(self.db_path),
                timeout=30.0,  # Wait up to 30s for locks
                isolation_level=None,  # transactions are managed explicitly
            )
            self.conn.row_factory = sqlite3.Row  # Access columns by name

            if self._wal_mode_supported is None:
                self._detect_wal_support()

            if self._wal_mode_supported:
                self.conn.execute("PRAGMA journal_mode=WAL")
            else:
                self.conn.execute("PRAGMA journal_mode=DELETE")

        except sqlite3.Error as e:
            raise DatabaseError(f"Failed to open database: {e}") from e

    def close(self) -> None:
        """Close database connection."""
        if self.conn is not None:
            self.conn.close()
            self.conn = None

    def __enter__(self) -> "MetadataDB":
        """Context manager entry."""
        self.open()
        return self

    def __exit__(self, *args: Any) -> None:
        """Context manager exit."""
        self.close()

    def _detect_wal_support(self) -> None:
        """Detect if WAL journal mode is supported."""
        try:
            cursor = self.conn.execute("PRAGMA journal_mode=WAL")  # type: ignore
            result = cursor.fetchone()
            self._wal_mode_supported = result[0].upper() == "WAL"
        except sqlite3.Error:
            self._wal_mode_supported = False

    def _connection(self) -> sqlite3.Connection:
        if self.conn is None:
            raise DatabaseError("Database not open")
        return self.conn

    @contextmanager
    def transaction(self) -> Iterator[None]:
        """Group several updates into one atomic transaction.

        Nested calls join the outermost transaction.

        Raises:
            DatabaseError: If the transaction cannot be committed
        """
        conn = self._connection()
        if self._depth == 0:
            try:
                conn.execute("BEGIN IMMEDIATE")
            except sqlite3.Error as e:
                raise DatabaseError(f"Failed to begin transaction: {e}") from e
        self._depth += 1
        try:
            yield
        except BaseException:
            self._depth -= 1
            if self._depth == 0:
                conn.execute("ROLLBACK")
            raise
        else:
            self._depth -= 1
            if self._depth == 0:
                try:
                    conn.execute("COMMIT")
                except sqlite3.Error as e:
                    conn.execute("ROLLBACK")
                    raise DatabaseError(f"Failed to commit transaction: {e}") from e

    def _execute(self, query: str, params: tuple = ()) -> sqlite3.Cursor:
        try:
            with self.transaction():
                return self._connection().execute(query, params)
        except sqlite3.Error as e:
            raise DatabaseError(f"Database update failed: {e}") from e

    def _query(self, query: str, params: tuple = ()) -> List[sqlite3.Row]:
        try:
            return self._connection().execute(query, params).fetchall()
        except sqlite3.Error as e:
            raise DatabaseError(f"Database query failed: {e}") from e

    def init_schema(self) -> None:
        """Initialize database schema.

        Creates all tables and indices. Safe to call on existing database
        (uses IF NOT EXISTS).

        Raises:
            DatabaseError: If schema creation fails
        """
        conn = self._connection()

        try:
            with self.transaction():
                conn.execute("""
                    CREATE TABLE IF NOT EXISTS metadata (
                        key TEXT PRIMARY KEY,
                        value TEXT NOT NULL
                    )
                """)

                conn.execute("""
                    CREATE TABLE IF NOT EXISTS commits (
                        id INTEGER PRIMARY KEY AUTOINCREMENT,
                        commit_hash TEXT UNIQUE NOT NULL,
                        parent_hash TEXT,
                        parent2_hash TEXT,
                        timestamp TEXT NOT NULL,
                        message TEXT NOT NULL
                    )
                """)
                conn.execute("""
                    CREATE INDEX IF NOT EXISTS idx_commits_message
                    ON commits(message)
                """)

                conn.execute("""
                    CREATE TABLE IF NOT EXISTS branches (
                        name TEXT PRIMARY KEY,
                        commit_hash TEXT NOT NULL
                    )
                """)

                conn.execute("""
                    CREATE TABLE IF NOT EXISTS staged (
                        path TEXT PRIMARY KEY,
                        blob_hash TEXT NOT NULL
                    )
                """)

                conn.execute("""
                    CREATE TABLE IF NOT EXISTS removed (
                        path TEXT PRIMARY KEY
                    )
                """)

                conn.execute(
                    "INSERT OR REPLACE INTO metadata (key, value) VALUES (?, ?)",
                    ("schema_version", str(DB_SCHEMA_VERSION)),
                )

        except sqlite3.Error as e:
            raise DatabaseError(f"Failed to initialize schema: {e}") from e

    def get_schema_version(self) -> int:
        """Get the database schema version (0 if unset)."""
        rows = self._query("SELECT value FROM metadata WHERE key = 'schema_version'")
        if not rows:
            return 0
        return int(rows[0][0])

    # Commit index

    def insert_commit(
        self,
        commit_hash: str,
        parent_hash: Optional[str],
        parent2_hash: Optional[str],
        timestamp: str,
        message: str,
    ) -> None:
        """Index a commit. Re-indexing an existing hash is a no-op.

        Args:
            commit_hash: SHA-1 hash of commit (40 hex chars)
            parent_hash: First parent hash (None for the root commit)
            parent2_hash: Second parent hash (merge commits only)
            timestamp: ISO 8601 timestamp
            message: Commit message
        """
        self._execute(
            """
            INSERT OR IGNORE INTO commits
                (commit_hash, parent_hash, parent2_hash, timestamp, message)
            VALUES (?, ?, ?, ?, ?)
            """,
            (commit_hash, parent_hash, parent2_hash, timestamp, message),
        )

    def get_commit_by_hash(self, commit_hash: str) -> Optional[Dict[str, Any]]:
        """Retrieve an indexed commit by full hash or by prefix.

        A prefix resolves to the earliest indexed commit that starts with it.

        Returns:
            Dictionary with commit data, or None if not found
        """
        if not commit_hash:
            return None

        rows = self._query(
            "SELECT * FROM commits WHERE substr(commit_hash, 1, ?) = ? ORDER BY id LIMIT 1",
            (len(commit_hash), commit_hash),
        )
        if not rows:
            return None
        return dict(rows[0])

    def find_commits_by_message(self, message: str) -> List[Dict[str, Any]]:
        """All indexed commits whose message equals ``message``, oldest first."""
        rows = self._query(
            "SELECT * FROM commits WHERE message = ? ORDER BY id",
            (message,),
        )
        return [dict(row) for row in rows]

    def get_all_commits(self) -> List[Dict[str, Any]]:
        """Every indexed commit in insertion order."""
        rows = self._query("SELECT * FROM commits ORDER BY id")
        return [dict(row) for row in rows]

    # Branches and head

    def set_branch(self, name: str, commit_hash: str) -> None:
        self._execute(
            "INSERT OR REPLACE INTO branches (name, commit_hash) VALUES (?, ?)",
            (name, commit_hash),
        )

    def get_branch(self, name: str) -> Optional[str]:
        rows = self._query("SELECT commit_hash FROM branches WHERE name = ?", (name,))
        if not rows:
            return None
        return rows[0][0]

    def delete_branch(self, name: str) -> None:
        self._execute("DELETE FROM branches WHERE name = ?", (name,))

    def get_branches(self) -> Dict[str, str]:
        """All branches as name -> commit hash, sorted by name."""
        rows = self._query("SELECT name, commit_hash FROM branches ORDER BY name")
        return {row["name"]: row["commit_hash"] for row in rows}

    def set_head_branch(self, name: str) -> None:
        self._execute(
            "INSERT OR REPLACE INTO metadata (key, value) VALUES (?, ?)",
            ("head_branch", name),
        )

    def get_head_branch(self) -> Optional[str]:
        rows = self._query("SELECT value FROM metadata WHERE key = 'head_branch'")
        if not rows:
            return None
        return rows[0][0]

    # Staging area

    def stage(self, path: str, blob_hash: str) -> None:
        self._execute(
            "INSERT OR REPLACE INTO staged (path, blob_hash) VALUES (?, ?)",
            (path, blob_hash),
        )

    def unstage(self, path: str) -> None:
        self._execute("DELETE FROM staged WHERE path = ?", (path,))

    def get_staged(self) -> Dict[str, str]:
        """Staged entries as path -> blob hash, sorted by path."""
        rows = self._query("SELECT path, blob_hash FROM staged ORDER BY path")
        return {row["path"]: row["blob_hash"] for row in rows}

    def mark_removed(self, path: str) -> None:
        self._execute("INSERT OR IGNORE INTO removed (path) VALUES (?)", (path,))

    def unmark_removed(self, path: str) -> None:
        self._execute("DELETE FROM removed WHERE path = ?", (path,))

    def get_removed(self) -> Set[str]:
        rows = self._query("SELECT path FROM removed")
        return {row["path"] for row in rows}

    def clear_staging(self) -> None:
        """Drain both staging partitions."""
        with self.transaction():
            self._execute("DELETE FROM staged")
            self._execute("DELETE FROM removed")
