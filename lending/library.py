from __future__ import annotations

import logging
import sqlite3
from contextlib import contextmanager
from dataclasses import asdict, dataclass
from datetime import date, timedelta
from typing import Any, List, Optional
from uuid import UUID

from config import settings
from lending import database
from lending.author import Author
from lending.book import Book
from lending.constants import MAX_LOAN_DAYS
from lending.enums import Genre, LoanStatus
from lending.errors import InvalidInputError, NotFoundError, StorageError
from lending.events import BookBorrowedEvent
from lending.loan import Loan
from lending.loan_date import LoanDate
from lending.member import Member
from lending.repositories import AuthorRepository, BookRepository, MemberRepository
from lending.services.notification_service import EmailService, LoggingEmailService
from lending.validators import (
    normalize_isbn,
    validate_borrow_request,
    validate_new_book,
    validate_new_member,
)

logger = logging.getLogger(__name__)


@dataclass
class BookDetails:
    """Read model for a single book with the author name flattened in."""
    id: str
    isbn: str
    title: str
    author_name: Optional[str]
    publication_year: int
    genre: str
    is_available: bool

    def to_dict(self) -> dict:
        return asdict(self)


def _to_uuid(value: Any, field: str = "id") -> UUID:
    if isinstance(value, UUID):
        return value
    try:
        return UUID(str(value).strip())
    except ValueError:
        raise InvalidInputError([{"field": field, "message": f"{field} must be a valid UUID."}]) from None


class Library:
    """Orchestrates the lending use cases on top of the repositories."""

    def __init__(self, db_file: Optional[str] = None,
                 notifier: Optional[EmailService] = None) -> None:
        database.initialize_database(db_file or settings.db_file)
        self.books = BookRepository()
        self.authors = AuthorRepository()
        self.members = MemberRepository()
        self.notifier = notifier or LoggingEmailService()

    # ------------------------- Catalog ------------------------- #
    def add_author(self, first_name: str, last_name: str, biography: Optional[str] = None) -> Author:
        errors = []
        if not first_name or not first_name.strip():
            errors.append({"field": "first_name", "message": "first_name is required."})
        if not last_name or not last_name.strip():
            errors.append({"field": "last_name", "message": "last_name is required."})
        if errors:
            raise InvalidInputError(errors)
        author = Author(first_name, last_name, biography)
        self.authors.add(author)
        return author

    def get_author(self, author_id: Any) -> Author:
        author = self.authors.find_by_id(_to_uuid(author_id))
        if author is None:
            raise NotFoundError("Author", author_id)
        return author

    def list_authors(self) -> List[Author]:
        return self.authors.find_all()

    def add_book(self, isbn: str, title: str, author_id: Any, publication_year: int,
                 genre: Genre | str) -> Book:
        errors = validate_new_book(isbn, title, publication_year)
        try:
            genre = Genre(genre)
        except ValueError:
            errors.append({"field": "genre", "message": f"Unknown genre: {genre}"})
        if errors:
            raise InvalidInputError(errors)
        author = self.get_author(author_id)
        book = Book(normalize_isbn(isbn), title, author.id, int(publication_year), genre)
        self.books.add(book)
        return book

    def get_book_details(self, book_id: Any) -> BookDetails:
        book = self.books.find_by_id(_to_uuid(book_id))
        if book is None:
            raise NotFoundError("Book", book_id)
        author = self.authors.find_by_id(book.author_id)
        return BookDetails(
            id=str(book.id),
            isbn=book.isbn,
            title=book.title,
            author_name=author.full_name if author else None,
            publication_year=book.publication_year,
            genre=book.genre.value,
            is_available=book.is_available,
        )

    def available_books(self, genre: Genre | str) -> List[Book]:
        return self.books.find_available_by_genre(genre)

    # ------------------------- Members ------------------------- #
    def register_member(self, member_number: str, first_name: str, last_name: str, email: str,
                        date_of_birth: date) -> Member:
        errors = validate_new_member(member_number, email)
        if errors:
            raise InvalidInputError(errors)
        member = Member(member_number, first_name, last_name, email, date_of_birth)
        self.members.add(member)
        return member

    def get_member(self, member_id: Any) -> Member:
        member = self.members.find_by_id(_to_uuid(member_id))
        if member is None:
            raise NotFoundError("Member", member_id)
        return member

    def deactivate_member(self, member_id: Any) -> Member:
        member = self.get_member(member_id)
        member.deactivate()
        self.members.update(member)
        logger.info(f"Member deactivated: member={member.id}, open_loans={len(member.active_loans)}")
        return member

    # ------------------------- Lending ------------------------- #
    def borrow_book(self, book_id: Any, member_id: Any, due_date: Optional[date] = None,
                    today: Optional[date] = None) -> Loan:
        """Open a loan for ``member_id`` holding ``book_id`` and notify the member."""
        errors = validate_borrow_request(book_id, member_id)
        if errors:
            raise InvalidInputError(errors)

        book = self.books.find_by_id(_to_uuid(book_id))
        if book is None:
            raise NotFoundError("Book", book_id)
        member = self.get_member(member_id)

        today = today or date.today()
        due = due_date or today + timedelta(days=settings.default_loan_days)
        if not today <= due <= today + timedelta(days=MAX_LOAN_DAYS):
            raise InvalidInputError([{
                "field": "due_date",
                "message": f"Due date must be within {MAX_LOAN_DAYS} days of the loan date.",
            }])

        loan = member.borrow_loan(LoanDate(today, today=today))
        loan.add_item(book, LoanDate(due, today=today))

        with self._unit_of_work() as conn:
            self.books.update(book, conn=conn)
            self.members.update(member, conn=conn)
        logger.info(f"Loan opened: loan={loan.id}, member={member.id}, book={book.id}, due={due}")

        for event in book.pull_events():
            self._notify_borrowed(member, event, due)
        return loan

    def return_book(self, book_id: Any, member_id: Any, today: Optional[date] = None) -> Loan:
        """Return ``book_id`` on the member's open loan and put it back on the shelf."""
        errors = validate_borrow_request(book_id, member_id)
        if errors:
            raise InvalidInputError(errors)

        book = self.books.find_by_id(_to_uuid(book_id))
        if book is None:
            raise NotFoundError("Book", book_id)
        member = self.get_member(member_id)
        loan = member.find_loan_for_book(book.id)
        if loan is None:
            raise NotFoundError("Open loan for book", book.id)

        today = today or date.today()
        returned_on = LoanDate(today, today=today)
        if loan.status == LoanStatus.OVERDUE:
            self._return_overdue_item(loan, book.id, returned_on, today)
        else:
            loan.return_item(book.id, returned_on)
        book.return_book()

        with self._unit_of_work() as conn:
            self.books.update(book, conn=conn)
            self.members.update(member, conn=conn)
        logger.info(f"Book returned: loan={loan.id}, book={book.id}, loan_status={loan.status.value}")
        return loan

    def mark_overdue_loans(self, as_of: Optional[date] = None) -> int:
        """Flag every Active loan holding an item past its due date."""
        marked = 0
        for member in self.members.find_all():
            changed = False
            for loan in member.active_loans:
                if loan.overdue_items(as_of):
                    loan.mark_overdue()
                    marked += 1
                    changed = True
            if changed:
                self.members.update(member)
        logger.info(f"Overdue sweep finished: {marked} loan(s) marked")
        return marked

    @staticmethod
    def _return_overdue_item(loan: Loan, book_id: UUID, returned_on: LoanDate, today: date) -> None:
        # Overdue loans skip Loan.return_item, which only accepts Active loans.
        loan.item_for(book_id).mark_returned(returned_on)
        if all(i.is_returned for i in loan.items):
            loan.close(today)
        logger.info(f"Overdue item returned: loan={loan.id}, book={book_id}, fine={loan.fine_due(today):.2f}")

    @contextmanager
    def _unit_of_work(self):
        """Yield one connection for several repository writes; commit once at the end."""
        conn = database.get_db_connection()
        try:
            yield conn
            conn.commit()
        except sqlite3.Error as e:
            conn.rollback()
            raise StorageError("Could not commit the lending changes.") from e
        except Exception:
            conn.rollback()
            raise
        finally:
            conn.close()

    def _notify_borrowed(self, member: Member, event: BookBorrowedEvent, due: date) -> None:
        try:
            self.notifier.send_email(
                member.email,
                "Book Borrowed",
                f"You have borrowed the book: {event.title}. Please return it by {due.isoformat()}.",
            )
        except Exception as e:
            # The loan is already stored; a failed notification does not undo it.
            logger.error(f"Failed to send borrow notification to {member.email}: {e}")
