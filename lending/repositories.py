"""sqlite3-backed repositories for the lending aggregates.

Every public method opens its own connection, so instances hold no state and
the last writer wins per aggregate. The ``update`` methods also accept an open
connection, in which case the caller owns the commit. sqlite failures surface
as StorageError.
"""

from __future__ import annotations

import logging
import sqlite3
from contextlib import contextmanager
from datetime import date, datetime
from functools import wraps
from typing import List, Optional
from uuid import UUID

from lending import database
from lending.author import Author
from lending.book import Book
from lending.enums import Genre
from lending.errors import InvalidInputError, StorageError
from lending.loan import Loan, LoanItem
from lending.loan_date import LoanDate
from lending.member import Member

logger = logging.getLogger(__name__)


def _storage_errors(func):
    @wraps(func)
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except sqlite3.Error as e:
            logger.error(f"Storage failure in {func.__qualname__}: {e}")
            raise StorageError(f"Storage operation failed: {func.__name__}") from e
    return wrapper


@contextmanager
def _writing(conn: Optional[sqlite3.Connection]):
    """Use the caller's connection as is, or open one and commit on exit."""
    if conn is not None:
        yield conn
        return
    own = database.get_db_connection()
    try:
        yield own
        own.commit()
    finally:
        own.close()


class BookRepository:
    _COLUMNS = "id, isbn, title, author_id, publication_year, genre, is_available"

    @_storage_errors
    def find_by_id(self, book_id: UUID) -> Optional[Book]:
        conn = database.get_db_connection()
        try:
            row = conn.execute(
                f"SELECT {self._COLUMNS} FROM books WHERE id = ?", (str(book_id),)
            ).fetchone()
            return Book.from_dict(dict(row)) if row else None
        finally:
            conn.close()

    @_storage_errors
    def find_all(self) -> List[Book]:
        conn = database.get_db_connection()
        try:
            rows = conn.execute(f"SELECT {self._COLUMNS} FROM books ORDER BY title").fetchall()
            return [Book.from_dict(dict(row)) for row in rows]
        finally:
            conn.close()

    @_storage_errors
    def find_available_by_genre(self, genre: Genre | str) -> List[Book]:
        conn = database.get_db_connection()
        try:
            rows = conn.execute(
                f"SELECT {self._COLUMNS} FROM books WHERE is_available = 1 AND genre = ? ORDER BY title",
                (Genre(genre).value,),
            ).fetchall()
            return [Book.from_dict(dict(row)) for row in rows]
        finally:
            conn.close()

    @_storage_errors
    def add(self, book: Book) -> None:
        conn = database.get_db_connection()
        try:
            conn.execute(
                f"INSERT INTO books ({self._COLUMNS}) VALUES (?, ?, ?, ?, ?, ?, ?)",
                (str(book.id), book.isbn, book.title, str(book.author_id),
                 book.publication_year, book.genre.value, int(book.is_available)),
            )
            conn.commit()
        except sqlite3.IntegrityError as e:
            raise InvalidInputError(
                [{"field": "isbn", "message": f"Book with ISBN {book.isbn} already exists or author is unknown."}]
            ) from e
        finally:
            conn.close()

    @_storage_errors
    def update(self, book: Book, conn: Optional[sqlite3.Connection] = None) -> None:
        with _writing(conn) as c:
            c.execute(
                """
                UPDATE books SET isbn = ?, title = ?, author_id = ?, publication_year = ?,
                                 genre = ?, is_available = ?
                WHERE id = ?
                """,
                (book.isbn, book.title, str(book.author_id), book.publication_year,
                 book.genre.value, int(book.is_available), str(book.id)),
            )

    @_storage_errors
    def delete(self, book: Book) -> None:
        conn = database.get_db_connection()
        try:
            conn.execute("DELETE FROM books WHERE id = ?", (str(book.id),))
            conn.commit()
        finally:
            conn.close()


class AuthorRepository:

    @_storage_errors
    def find_by_id(self, author_id: UUID) -> Optional[Author]:
        conn = database.get_db_connection()
        try:
            row = conn.execute(
                "SELECT id, first_name, last_name, biography FROM authors WHERE id = ?",
                (str(author_id),),
            ).fetchone()
            return Author.from_dict(dict(row)) if row else None
        finally:
            conn.close()

    @_storage_errors
    def find_all(self) -> List[Author]:
        conn = database.get_db_connection()
        try:
            rows = conn.execute(
                "SELECT id, first_name, last_name, biography FROM authors ORDER BY last_name, first_name"
            ).fetchall()
            return [Author.from_dict(dict(row)) for row in rows]
        finally:
            conn.close()

    @_storage_errors
    def add(self, author: Author) -> None:
        conn = database.get_db_connection()
        try:
            conn.execute(
                "INSERT INTO authors (id, first_name, last_name, biography) VALUES (?, ?, ?, ?)",
                (str(author.id), author.first_name, author.last_name, author.biography),
            )
            conn.commit()
        finally:
            conn.close()


class MemberRepository:
    """Members are stored together with their loans and loan items."""

    _COLUMNS = ("id, member_number, first_name, last_name, email, date_of_birth, "
                "registration_date, is_active")

    @_storage_errors
    def find_by_id(self, member_id: UUID) -> Optional[Member]:
        conn = database.get_db_connection()
        try:
            row = conn.execute(
                f"SELECT {self._COLUMNS} FROM members WHERE id = ?", (str(member_id),)
            ).fetchone()
            return self._load(conn, row) if row else None
        finally:
            conn.close()

    @_storage_errors
    def find_by_number(self, member_number: str) -> Optional[Member]:
        conn = database.get_db_connection()
        try:
            row = conn.execute(
                f"SELECT {self._COLUMNS} FROM members WHERE member_number = ?", (member_number.strip(),)
            ).fetchone()
            return self._load(conn, row) if row else None
        finally:
            conn.close()

    @_storage_errors
    def find_all(self) -> List[Member]:
        conn = database.get_db_connection()
        try:
            rows = conn.execute(f"SELECT {self._COLUMNS} FROM members ORDER BY member_number").fetchall()
            return [self._load(conn, row) for row in rows]
        finally:
            conn.close()

    @_storage_errors
    def add(self, member: Member) -> None:
        conn = database.get_db_connection()
        try:
            conn.execute(
                f"INSERT INTO members ({self._COLUMNS}) VALUES (?, ?, ?, ?, ?, ?, ?, ?)",
                self._member_row(member),
            )
            self._write_loans(conn, member)
            conn.commit()
        except sqlite3.IntegrityError as e:
            raise InvalidInputError(
                [{"field": "member_number", "message": f"Member number {member.member_number} already exists."}]
            ) from e
        finally:
            conn.close()

    @_storage_errors
    def update(self, member: Member, conn: Optional[sqlite3.Connection] = None) -> None:
        row = self._member_row(member)
        with _writing(conn) as c:
            c.execute(
                """
                UPDATE members SET member_number = ?, first_name = ?, last_name = ?, email = ?,
                                   date_of_birth = ?, registration_date = ?, is_active = ?
                WHERE id = ?
                """,
                row[1:] + row[:1],
            )
            c.execute("DELETE FROM loans WHERE member_id = ?", (str(member.id),))
            self._write_loans(c, member)

    @staticmethod
    def _member_row(member: Member) -> tuple:
        return (
            str(member.id), member.member_number, member.first_name, member.last_name,
            member.email, member.date_of_birth.isoformat(), member.registration_date.isoformat(),
            int(member.is_active),
        )

    @staticmethod
    def _write_loans(conn: sqlite3.Connection, member: Member) -> None:
        for loan in member.loans:
            conn.execute(
                "INSERT INTO loans (id, member_id, loan_date, return_date, status) VALUES (?, ?, ?, ?, ?)",
                (str(loan.id), str(member.id), loan.loan_date.isoformat(),
                 loan.return_date.isoformat() if loan.return_date else None, loan.status.value),
            )
            conn.executemany(
                """
                INSERT INTO loan_items (loan_id, position, book_id, due_date, actual_return_date, is_returned)
                VALUES (?, ?, ?, ?, ?, ?)
                """,
                [
                    (str(loan.id), position, str(item.book_id), item.due_date.isoformat(),
                     item.actual_return_date.isoformat() if item.actual_return_date else None,
                     int(item.is_returned))
                    for position, item in enumerate(loan.items)
                ],
            )

    @staticmethod
    def _load(conn: sqlite3.Connection, row: sqlite3.Row) -> Member:
        data = dict(row)
        loans = []
        loan_rows = conn.execute(
            "SELECT id, loan_date, return_date, status FROM loans WHERE member_id = ? ORDER BY loan_date, rowid",
            (data["id"],),
        ).fetchall()
        for loan_row in loan_rows:
            item_rows = conn.execute(
                """
                SELECT book_id, due_date, actual_return_date, is_returned
                FROM loan_items WHERE loan_id = ? ORDER BY position
                """,
                (loan_row["id"],),
            ).fetchall()
            loans.append(Loan(
                member_id=UUID(data["id"]),
                loan_date=LoanDate.from_iso(loan_row["loan_date"]),
                id=UUID(loan_row["id"]),
                status=loan_row["status"],
                return_date=LoanDate.from_iso(loan_row["return_date"]) if loan_row["return_date"] else None,
                items=[LoanItem.from_dict(dict(r)) for r in item_rows],
            ))
        return Member(
            member_number=data["member_number"],
            first_name=data["first_name"],
            last_name=data["last_name"],
            email=data["email"],
            date_of_birth=date.fromisoformat(data["date_of_birth"]),
            registration_date=datetime.fromisoformat(data["registration_date"]),
            is_active=bool(data["is_active"]),
            id=UUID(data["id"]),
            loans=loans,
        )
