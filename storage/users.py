"""
SQLite-backed cache of email -> GitHub username mappings.
Entries are written once an email has been resolved through the GitHub API and
are authoritative afterwards: a cached email is never looked up remotely again.
"""

import logging
import os
import sqlite3
import threading
import time
from contextlib import contextmanager
from typing import Any, Dict, List, Optional

from errors import StorageError

logger = logging.getLogger(__name__)

DEFAULT_DATABASE = os.getenv("USERNAMIFY_DATABASE", "sqlite://users.db")

# Applied in order; PRAGMA user_version records how many have run.
# noinspection SqlResolve
MIGRATIONS = [
    """
    CREATE TABLE IF NOT EXISTS users (
        email TEXT PRIMARY KEY NOT NULL,
        username TEXT NOT NULL,
        source TEXT NOT NULL DEFAULT 'search',
        timestamp REAL
    );
    """,
]


class CachedIdentity:
    """
    A resolved email address and the GitHub username it belongs to.
    """
    def __init__(self, email: str, username: str, source: str = "search", timestamp: Optional[float] = None):
        self.email = email
        self.username = username
        self.source = source  # search / pull_request
        self.timestamp = timestamp

    def to_dict(self) -> Dict[str, Any]:
        return {'email': self.email, 'username': self.username, 'source': self.source, 'timestamp': self.timestamp}

    def __repr__(self):
        return f"CachedIdentity(email={self.email!r}, username={self.username!r}, source={self.source!r})"


def database_path(uri: Optional[str]) -> str:
    """Turn a database URI (sqlite://users.db, sqlite::memory:) or plain path into a sqlite3 path."""
    if not uri:
        return ':memory:'
    for prefix in ('sqlite://', 'sqlite:'):
        if uri.startswith(prefix):
            uri = uri[len(prefix):]
            break
    return uri or ':memory:'


class UserCache:
    def __init__(self, path: Optional[str] = None):
        """Open (creating if missing) the user database and bring its schema up to date.

        :param path: SQLite file path, or None for in-memory.
        """
        self.path = path or ':memory:'
        try:
            self.conn = sqlite3.connect(self.path, check_same_thread=False)
        except sqlite3.Error as ex:
            raise StorageError(f"Failed to access database {self.path}: {ex}") from ex
        self._lock = threading.RLock()
        self._migrate()

    @contextmanager
    def _cursor(self, action: str):
        with self._lock:
            if self.conn is None:
                raise StorageError(f"Failed to {action}: database is closed")
            try:
                yield self.conn.cursor()
                self.conn.commit()
            except sqlite3.Error as ex:
                self.conn.rollback()
                raise StorageError(f"Failed to {action}: {ex}") from ex

    def _migrate(self):
        with self._cursor('run database migrations') as cur:
            cur.execute('PRAGMA user_version')
            version = cur.fetchone()[0]
            for index, script in enumerate(MIGRATIONS[version:], start=version + 1):
                logger.debug("Applying database migration %d to %s", index, self.path)
                cur.executescript(script)
                cur.execute(f'PRAGMA user_version = {index}')

    @property
    def schema_version(self) -> int:
        with self._cursor('read schema version') as cur:
            cur.execute('PRAGMA user_version')
            return int(cur.fetchone()[0])

    def close(self):
        with self._lock:
            if self.conn is not None:
                try:
                    self.conn.close()
                finally:
                    self.conn = None

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()

    # noinspection SqlResolve
    def get_identity(self, email: str) -> Optional[CachedIdentity]:
        with self._cursor('query users from database') as cur:
            cur.execute('SELECT email, username, source, timestamp FROM users WHERE email = ?', (email,))
            row = cur.fetchone()
        if not row:
            return None
        return CachedIdentity(*row)

    def get(self, email: str) -> Optional[str]:
        """Return the cached username for email, or None."""
        identity = self.get_identity(email)
        return identity.username if identity else None

    # noinspection SqlResolve
    def insert(self, email: str, username: str, source: str = 'search'):
        """Store email -> username. An existing entry for the same email is overwritten."""
        with self._cursor('insert user in database') as cur:
            cur.execute(
                'INSERT INTO users(email, username, source, timestamp) VALUES (?, ?, ?, ?) '
                'ON CONFLICT(email) DO UPDATE SET username = excluded.username, '
                'source = excluded.source, timestamp = excluded.timestamp',
                (email, username, source, time.time()),
            )
        logger.debug("Cached %s -> %s (%s)", email, username, source)

    # noinspection SqlResolve
    def stats(self) -> Dict[str, Any]:
        """Return basic statistics about the cache: count, oldest timestamp, newest timestamp."""
        with self._cursor('read database statistics') as cur:
            cur.execute('SELECT COUNT(1), MIN(timestamp), MAX(timestamp) FROM users')
            count, oldest, newest = cur.fetchone()
        return {'path': self.path, 'count': int(count or 0), 'oldest': oldest, 'newest': newest}

    # noinspection SqlResolve
    def list_identities(self, limit: int = 1000) -> List[CachedIdentity]:
        """Return cached identities, newest first."""
        with self._cursor('list users from database') as cur:
            cur.execute(
                'SELECT email, username, source, timestamp FROM users ORDER BY timestamp DESC, email LIMIT ?',
                (limit,),
            )
            rows = cur.fetchall()
        return [CachedIdentity(*row) for row in rows]

    # noinspection SqlResolve
    def delete(self, email: str) -> int:
        """Delete the entry for email. Returns number of rows deleted."""
        with self._cursor('delete user from database') as cur:
            cur.execute('DELETE FROM users WHERE email = ?', (email,))
            return cur.rowcount

    # noinspection SqlWithoutWhere
    def clear(self):
        """Remove every cached identity."""
        with self._cursor('clear users from database') as cur:
            cur.execute('DELETE FROM users')


def open_user_cache(uri: Optional[str] = None) -> UserCache:
    return UserCache(database_path(uri or DEFAULT_DATABASE))


__all__ = ["CachedIdentity", "UserCache", "database_path", "open_user_cache"]
