"""Self-healing schema migration, run on every startup.

Every step is idempotent: tables are created only when missing, and older
Postgres databases are brought forward column by column.
"""

import logging

from sqlalchemy import inspect, text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError

import models  # noqa: F401  registers the tables on Base.metadata
from database import Base

logger = logging.getLogger(__name__)

ADD_MISSING_COLUMNS = [
    "ALTER TABLE books ADD COLUMN IF NOT EXISTS cover_url TEXT",
    "ALTER TABLE books ADD COLUMN IF NOT EXISTS published_year INTEGER",
    "ALTER TABLE books ADD COLUMN IF NOT EXISTS gutenberg_id VARCHAR(20)",
    "ALTER TABLE books ADD COLUMN IF NOT EXISTS read_url TEXT",
    # gutenberg_id was an INTEGER in early databases
    "ALTER TABLE books ALTER COLUMN gutenberg_id TYPE VARCHAR(20) USING gutenberg_id::text",
]

DROP_REMOVED_COLUMNS = [
    "ALTER TABLE books DROP COLUMN IF EXISTS buy_url",
    "ALTER TABLE books DROP COLUMN IF EXISTS isbn",
]

DEDUPLICATE_BOOKS = """
    DELETE FROM books a USING books b
    WHERE a.id < b.id AND a.title = b.title AND a.author = b.author
"""

ENSURE_TITLE_AUTHOR_CONSTRAINT = """
    DO $$ BEGIN
      IF EXISTS (SELECT 1 FROM pg_constraint WHERE conname = 'books_title_author_key') THEN
        ALTER TABLE books DROP CONSTRAINT books_title_author_key;
      END IF;
      IF NOT EXISTS (SELECT 1 FROM pg_constraint WHERE conname = 'unique_title_author') THEN
        ALTER TABLE books ADD CONSTRAINT unique_title_author UNIQUE (title, author);
      END IF;
    END $$
"""

ENSURE_INDEXES = [
    "CREATE INDEX IF NOT EXISTS idx_books_title ON books(title)",
    "CREATE INDEX IF NOT EXISTS idx_books_author ON books(author)",
    "CREATE INDEX IF NOT EXISTS idx_reviews_book_id ON reviews(book_id)",
    "CREATE INDEX IF NOT EXISTS idx_reviews_user_id ON reviews(user_id)",
    "CREATE INDEX IF NOT EXISTS idx_reading_list_user_id ON reading_lists(user_id)",
]


def _rename_summary_column(conn) -> bool:
    """Rename the legacy books.summary column; returns True if it did."""
    columns = {column["name"] for column in inspect(conn).get_columns("books")}
    if "summary" not in columns or "description" in columns:
        return False
    conn.execute(text("ALTER TABLE books RENAME COLUMN summary TO description"))
    logger.info("Migrated books.summary to books.description")
    return True


def _upgrade_postgres(engine: Engine) -> None:
    with engine.begin() as conn:
        for statement in ADD_MISSING_COLUMNS + DROP_REMOVED_COLUMNS:
            conn.execute(text(statement))

        _rename_summary_column(conn)
        conn.execute(text("ALTER TABLE books ADD COLUMN IF NOT EXISTS description TEXT NOT NULL DEFAULT ''"))

        removed = conn.execute(text(DEDUPLICATE_BOOKS)).rowcount
        if removed:
            logger.info("Removed %s duplicate books", removed)
        conn.execute(text(ENSURE_TITLE_AUTHOR_CONSTRAINT))

        for statement in ENSURE_INDEXES:
            conn.execute(text(statement))


def run_migrations(engine: Engine) -> bool:
    """Bring the schema up to date. Returns False if any step failed."""
    logger.info("Checking database schema...")
    try:
        Base.metadata.create_all(bind=engine)
        if engine.dialect.name == "postgresql":
            _upgrade_postgres(engine)
    except SQLAlchemyError:
        # Startup continues; /health reports the database state
        logger.exception("Migration failed")
        return False

    logger.info("Database schema is up to date.")
    return True
