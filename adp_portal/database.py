"""
Database connection and schema management.
Supports both SQLite (local development) and PostgreSQL (production).
"""
import sqlite3
from contextlib import contextmanager

from adp_portal.config import DATABASE_PATH, DATABASE_URL, USE_POSTGRES

# PostgreSQL support
if USE_POSTGRES:
    import psycopg2
    from psycopg2.extras import RealDictCursor


class DictRow:
    """Wrapper to make psycopg2 results behave like sqlite3.Row"""
    def __init__(self, data):
        self._data = data
        self._keys = list(data.keys()) if data else []

    def __getitem__(self, key):
        if isinstance(key, int):
            return self._data[self._keys[key]]
        return self._data[key]

    def __iter__(self):
        return iter(self._data.values())

    def keys(self):
        return self._keys


def get_db_connection():
    """Create a database connection with row factory."""
    if USE_POSTGRES:
        return psycopg2.connect(DATABASE_URL)
    conn = sqlite3.connect(str(DATABASE_PATH))
    conn.row_factory = sqlite3.Row
    return conn


class PostgresCursorWrapper:
    """Wrapper to make PostgreSQL cursor behave like SQLite cursor"""
    def __init__(self, cursor):
        self._cursor = cursor

    def execute(self, query, params=None):
        # Convert SQLite ? placeholders to PostgreSQL %s
        query = query.replace('?', '%s')
        if 'INSERT OR IGNORE' in query.upper():
            query = query.replace('INSERT OR IGNORE', 'INSERT')
            query = query.rstrip().rstrip(';') + ' ON CONFLICT DO NOTHING'
        if params:
            self._cursor.execute(query, params)
        else:
            self._cursor.execute(query)
        return self

    def executemany(self, query, params_list):
        query = query.replace('?', '%s')
        for params in params_list:
            self._cursor.execute(query, params)
        return self

    def fetchone(self):
        row = self._cursor.fetchone()
        return DictRow(row) if row else None

    def fetchall(self):
        rows = self._cursor.fetchall()
        return [DictRow(row) for row in rows]

    @property
    def rowcount(self):
        return self._cursor.rowcount


class PostgresConnection:
    """Connection facade exposing the sqlite3-style cursor()."""
    def __init__(self, conn, cursor):
        self._conn = conn
        self._cursor = PostgresCursorWrapper(cursor)

    def cursor(self):
        return self._cursor

    def execute(self, *args, **kwargs):
        return self._cursor.execute(*args, **kwargs)


@contextmanager
def get_db():
    """Context manager for database connections."""
    conn = get_db_connection()
    try:
        if USE_POSTGRES:
            yield PostgresConnection(conn, conn.cursor(cursor_factory=RealDictCursor))
        else:
            yield conn
        conn.commit()
    except Exception:
        conn.rollback()
        raise
    finally:
        conn.close()


def init_database():
    """Initialize the database with all required tables."""
    with get_db() as conn:
        cursor = conn.cursor()

        # Portal users (one per role)
        cursor.execute("""
            CREATE TABLE IF NOT EXISTS users (
                id INTEGER PRIMARY KEY,
                username TEXT UNIQUE NOT NULL,
                password_hash TEXT NOT NULL,
                role TEXT NOT NULL,
                is_active INTEGER DEFAULT 1,
                created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
            )
        """)

        # Forwarded works, one JSON payload per row
        cursor.execute("""
            CREATE TABLE IF NOT EXISTS work_items (
                id TEXT PRIMARY KEY,
                position INTEGER NOT NULL,
                status TEXT,
                payload TEXT NOT NULL,
                updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
            )
        """)

        cursor.execute("CREATE INDEX IF NOT EXISTS idx_work_items_status ON work_items(status)")


# Driver errors a storage backend translates into StorageError
DB_ERRORS = (sqlite3.Error,)
if USE_POSTGRES:
    DB_ERRORS = DB_ERRORS + (psycopg2.Error,)
