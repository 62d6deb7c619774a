import os
import sqlite3
import tempfile

from dotenv import load_dotenv

# Load .env before reading LIBRARY_DB_FILE below.
load_dotenv()

# Default database file.
# Priority:
# 1) LIBRARY_DB_FILE
# 2) per-process temp file
DATABASE_FILE = (
    os.environ.get("LIBRARY_DB_FILE")
    or os.path.join(tempfile.gettempdir(), f"lending_{os.getpid()}.db")
)


def get_db_connection() -> sqlite3.Connection:
    """Open a connection to the current DATABASE_FILE."""
    conn = sqlite3.connect(DATABASE_FILE)
    conn.row_factory = sqlite3.Row
    conn.execute("PRAGMA foreign_keys = ON;")
    return conn


def create_tables() -> None:
    """Create the lending tables if they do not exist yet."""
    conn = get_db_connection()
    try:
        cursor = conn.cursor()
        cursor.execute("""
            CREATE TABLE IF NOT EXISTS authors (
                id TEXT PRIMARY KEY,
                first_name TEXT NOT NULL,
                last_name TEXT NOT NULL,
                biography TEXT
            )
        """)
        cursor.execute("""
            CREATE TABLE IF NOT EXISTS books (
                id TEXT PRIMARY KEY,
                isbn TEXT NOT NULL UNIQUE,
                title TEXT NOT NULL,
                author_id TEXT NOT NULL,
                publication_year INTEGER NOT NULL,
                genre TEXT NOT NULL,
                is_available INTEGER NOT NULL DEFAULT 1,
                FOREIGN KEY (author_id) REFERENCES authors(id)
            )
        """)
        cursor.execute("""
            CREATE TABLE IF NOT EXISTS members (
                id TEXT PRIMARY KEY,
                member_number TEXT NOT NULL UNIQUE,
                first_name TEXT NOT NULL,
                last_name TEXT NOT NULL,
                email TEXT NOT NULL,
                date_of_birth TEXT NOT NULL,
                registration_date TEXT NOT NULL,
                is_active INTEGER NOT NULL DEFAULT 1
            )
        """)
        cursor.execute("""
            CREATE TABLE IF NOT EXISTS loans (
                id TEXT PRIMARY KEY,
                member_id TEXT NOT NULL,
                loan_date TEXT NOT NULL,
                return_date TEXT,
                status TEXT NOT NULL,
                FOREIGN KEY (member_id) REFERENCES members(id) ON DELETE CASCADE
            )
        """)
        # position keeps items in the order they were added
        cursor.execute("""
            CREATE TABLE IF NOT EXISTS loan_items (
                loan_id TEXT NOT NULL,
                position INTEGER NOT NULL,
                book_id TEXT NOT NULL,
                due_date TEXT NOT NULL,
                actual_return_date TEXT,
                is_returned INTEGER NOT NULL DEFAULT 0,
                PRIMARY KEY (loan_id, position),
                FOREIGN KEY (loan_id) REFERENCES loans(id) ON DELETE CASCADE
            )
        """)
        cursor.execute("CREATE INDEX IF NOT EXISTS idx_books_genre ON books(genre)")
        cursor.execute("CREATE INDEX IF NOT EXISTS idx_loans_member ON loans(member_id)")
        conn.commit()
    finally:
        conn.close()


def initialize_database(db_file: str | None = None) -> None:
    """Point the module at ``db_file`` (if given) and make sure the schema exists."""
    global DATABASE_FILE
    if db_file:
        DATABASE_FILE = db_file
    create_tables()
