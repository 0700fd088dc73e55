"""PostgreSQL store for authors and works."""
import threading
from contextlib import contextmanager
from typing import Optional, List, Dict, Any
import logging

import psycopg2
from psycopg2 import pool, sql

from olcache.models import Author, Work

logger = logging.getLogger(__name__)

WORK_COLUMNS = "w.work_id, w.title, w.description, w.subjects, w.covers"


def _like_pattern(substring: str) -> str:
    """Build an ILIKE pattern matching the literal substring."""
    escaped = (
        substring.replace("\\", "\\\\")
        .replace("%", "\\%")
        .replace("_", "\\_")
    )
    return f"%{escaped}%"


class Database:
    """PostgreSQL database with connection pooling."""

    def __init__(self, connection_string: str, min_conn: int = 1, max_conn: int = 10):
        """
        Initialize database connection pool.

        Args:
            connection_string: PostgreSQL connection string
            min_conn: Minimum connections in pool
            max_conn: Maximum connections in pool
        """
        self.connection_pool = psycopg2.pool.SimpleConnectionPool(
            min_conn,
            max_conn,
            connection_string
        )
        # Connection pinned by transaction(), per thread
        self._local = threading.local()

        if self.connection_pool:
            logger.info("Database connection pool created successfully")
        else:
            raise Exception("Failed to create connection pool")

    def _pinned(self):
        return getattr(self._local, "conn", None)

    @contextmanager
    def _connection(self):
        """Yield the transaction connection, or a pooled one that commits on exit."""
        conn = self._pinned()
        if conn is not None:
            yield conn
            return

        conn = self.connection_pool.getconn()
        try:
            yield conn
            conn.commit()
        except Exception:
            conn.rollback()
            raise
        finally:
            self.connection_pool.putconn(conn)

    @contextmanager
    def transaction(self):
        """
        Run the enclosed store calls on one connection and commit once.

        Nested calls join the outer transaction. Any exception rolls the
        whole transaction back and is re-raised.
        """
        if self._pinned() is not None:
            yield
            return

        conn = self.connection_pool.getconn()
        self._local.conn = conn
        try:
            yield
            conn.commit()
        except Exception:
            conn.rollback()
            logger.warning("Transaction rolled back")
            raise
        finally:
            self._local.conn = None
            self.connection_pool.putconn(conn)

    @contextmanager
    def savepoint(self, name: str = "entry"):
        """Roll back only the enclosed block on error (inside transaction())."""
        conn = self._pinned()
        if conn is None:
            # Each call commits on its own outside a transaction
            yield
            return

        ident = sql.Identifier(name)
        with conn.cursor() as cur:
            cur.execute(sql.SQL("SAVEPOINT {}").format(ident))
        try:
            yield
        except Exception:
            with conn.cursor() as cur:
                cur.execute(sql.SQL("ROLLBACK TO SAVEPOINT {}").format(ident))
            raise
        else:
            with conn.cursor() as cur:
                cur.execute(sql.SQL("RELEASE SAVEPOINT {}").format(ident))

    def init_schema(self):
        """Create database tables if they don't exist."""
        with self._connection() as conn:
            with conn.cursor() as cur:
                cur.execute("""
                    CREATE TABLE IF NOT EXISTS authors (
                        author_id VARCHAR(255) PRIMARY KEY,
                        seq BIGSERIAL,
                        author_name TEXT,
                        created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
                    )
                """)

                cur.execute("""
                    CREATE TABLE IF NOT EXISTS works (
                        work_id VARCHAR(255) PRIMARY KEY,
                        seq BIGSERIAL,
                        title TEXT NOT NULL,
                        description TEXT,
                        subjects TEXT[] NOT NULL DEFAULT '{}',
                        covers BIGINT[] NOT NULL DEFAULT '{}',
                        created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
                        updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
                    )
                """)

                # Many-to-many; position keeps author order per work
                cur.execute("""
                    CREATE TABLE IF NOT EXISTS work_authors (
                        work_id VARCHAR(255) REFERENCES works (work_id),
                        author_id VARCHAR(255) REFERENCES authors (author_id),
                        position INTEGER NOT NULL DEFAULT 0,
                        seq BIGSERIAL,
                        PRIMARY KEY (work_id, author_id)
                    )
                """)

                cur.execute("""
                    CREATE INDEX IF NOT EXISTS idx_authors_name_lower
                    ON authors (lower(author_name))
                """)

                cur.execute("""
                    CREATE INDEX IF NOT EXISTS idx_work_authors_author
                    ON work_authors (author_id)
                """)

                # Tables created before the insertion counter existed
                for table in ("authors", "works", "work_authors"):
                    cur.execute(sql.SQL(
                        "ALTER TABLE {} ADD COLUMN IF NOT EXISTS seq BIGSERIAL"
                    ).format(sql.Identifier(table)))

        logger.info("Database schema initialized successfully")

    def find_authors_by_name(self, substring: str) -> List[Author]:
        """
        Case-insensitive substring search on author names.

        Args:
            substring: Part of the name; empty matches every named author

        Returns:
            List of Author objects in insertion order
        """
        with self._connection() as conn:
            with conn.cursor() as cur:
                cur.execute("""
                    SELECT author_id, author_name
                    FROM authors
                    WHERE author_name ILIKE %s ESCAPE '\\'
                    ORDER BY seq
                """, (_like_pattern(substring or ""),))
                return [Author(*row) for row in cur.fetchall()]

    def list_authors(self, limit: int = 1000) -> List[Author]:
        """All stored authors (for export)."""
        with self._connection() as conn:
            with conn.cursor() as cur:
                cur.execute("""
                    SELECT author_id, author_name
                    FROM authors
                    ORDER BY seq
                    LIMIT %s
                """, (limit,))
                return [Author(*row) for row in cur.fetchall()]

    def find_author(self, author_id: str) -> Optional[Author]:
        """Get an author by key."""
        with self._connection() as conn:
            with conn.cursor() as cur:
                cur.execute("""
                    SELECT author_id, author_name FROM authors WHERE author_id = %s
                """, (author_id,))
                row = cur.fetchone()
                return Author(*row) if row else None

    def find_works_by_author(self, author_id: str) -> List[Work]:
        """
        All works linked to an author, with their full author lists.

        Args:
            author_id: Normalized author key

        Returns:
            List of Work objects in the order they were linked to the author
        """
        with self._connection() as conn:
            with conn.cursor() as cur:
                cur.execute(f"""
                    SELECT {WORK_COLUMNS}
                    FROM works w
                    JOIN work_authors wa ON wa.work_id = w.work_id
                    WHERE wa.author_id = %s
                    ORDER BY wa.seq
                """, (author_id,))
                works = [self._work_from_row(row) for row in cur.fetchall()]
                self._attach_authors(cur, works)
                return works

    def find_work(self, work_id: str) -> Optional[Work]:
        """Get a work by key, with its authors."""
        with self._connection() as conn:
            with conn.cursor() as cur:
                cur.execute(f"""
                    SELECT {WORK_COLUMNS} FROM works w WHERE w.work_id = %s
                """, (work_id,))
                row = cur.fetchone()
                if not row:
                    return None
                work = self._work_from_row(row)
                self._attach_authors(cur, [work])
                return work

    def save_author(self, author: Author) -> Author:
        """
        Insert or update an author.

        Args:
            author: Author object

        Returns:
            The stored Author
        """
        with self._connection() as conn:
            with conn.cursor() as cur:
                cur.execute("""
                    INSERT INTO authors (author_id, author_name)
                    VALUES (%s, %s)
                    ON CONFLICT (author_id) DO UPDATE SET
                        author_name = COALESCE(EXCLUDED.author_name, authors.author_name)
                    RETURNING author_id, author_name
                """, (author.author_id, author.author_name))
                return Author(*cur.fetchone())

    def save_work(self, work: Work) -> Work:
        """
        Insert or update a work and add any missing author links.

        Existing links are never removed. Linked authors must already be
        stored.

        Args:
            work: Work object

        Returns:
            The stored Work with its full author list
        """
        with self._connection() as conn:
            with conn.cursor() as cur:
                cur.execute("""
                    INSERT INTO works (
                        work_id, title, description, subjects, covers, updated_at
                    ) VALUES (%s, %s, %s, %s, %s, CURRENT_TIMESTAMP)
                    ON CONFLICT (work_id) DO UPDATE SET
                        title = EXCLUDED.title,
                        description = EXCLUDED.description,
                        subjects = EXCLUDED.subjects,
                        covers = EXCLUDED.covers,
                        updated_at = CURRENT_TIMESTAMP
                """, (
                    work.work_id, work.title, work.description,
                    list(work.subjects), list(work.covers)
                ))

                for position, author in enumerate(work.authors):
                    cur.execute("""
                        INSERT INTO work_authors (work_id, author_id, position)
                        VALUES (%s, %s, %s)
                        ON CONFLICT (work_id, author_id) DO NOTHING
                    """, (work.work_id, author.author_id, position))

                stored = Work(
                    work_id=work.work_id,
                    title=work.title,
                    description=work.description,
                    subjects=list(work.subjects),
                    covers=list(work.covers)
                )
                self._attach_authors(cur, [stored])
                return stored

    def get_stats(self) -> Dict[str, Any]:
        """Get database statistics."""
        with self._connection() as conn:
            with conn.cursor() as cur:
                cur.execute("SELECT COUNT(*) FROM authors")
                author_count = cur.fetchone()[0]

                cur.execute("SELECT COUNT(*) FROM works")
                work_count = cur.fetchone()[0]

                cur.execute("SELECT COUNT(*) FROM work_authors")
                link_count = cur.fetchone()[0]

                return {
                    "total_authors": author_count,
                    "total_works": work_count,
                    "author_work_links": link_count
                }

    @staticmethod
    def _work_from_row(row) -> Work:
        work_id, title, description, subjects, covers = row
        return Work(
            work_id=work_id,
            title=title,
            description=description,
            subjects=list(subjects or []),
            covers=[int(c) for c in covers or []]
        )

    @staticmethod
    def _attach_authors(cur, works: List[Work]):
        """Load author links for the given works in one query."""
        if not works:
            return
        by_id = {w.work_id: w for w in works}
        cur.execute("""
            SELECT wa.work_id, a.author_id, a.author_name
            FROM work_authors wa
            JOIN authors a ON a.author_id = wa.author_id
            WHERE wa.work_id = ANY(%s)
            ORDER BY wa.work_id, wa.position, a.author_id
        """, (list(by_id),))
        for work_id, author_id, author_name in cur.fetchall():
            by_id[work_id].authors.append(Author(author_id, author_name))

    def close(self):
        """Close all connections in the pool."""
        if self.connection_pool:
            self.connection_pool.closeall()
            logger.info("Database connection pool closed")

    def __enter__(self):
        """Context manager entry."""
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        """Context manager exit."""
        self.close()
