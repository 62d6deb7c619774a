from __future__ import annotations

import logging
from typing import List
from uuid import UUID, uuid4

from lending.enums import Genre
from lending.errors import InvalidStateError
from lending.events import BookBorrowedEvent

logger = logging.getLogger(__name__)


class Book:
    """A single catalog item. Refers to its author by id only."""

    def __init__(self, isbn: str, title: str, author_id: UUID, publication_year: int,
                 genre: Genre | str, is_available: bool = True, id: UUID | None = None) -> None:
        self.id = id or uuid4()
        self.isbn = isbn.strip()
        self.title = title.strip()
        self.author_id = author_id
        self.publication_year = int(publication_year)
        self.genre = Genre(genre)
        self.is_available = is_available
        self._events: List[BookBorrowedEvent] = []

    def borrow(self, member_id: UUID) -> BookBorrowedEvent:
        """Take the book off the shelf for ``member_id``."""
        if not self.is_available:
            raise InvalidStateError(
                f"Book '{self.title}' (ISBN: {self.isbn}) is not available for borrowing.",
                details={"book_id": str(self.id)},
            )
        self.is_available = False
        event = BookBorrowedEvent(book_id=self.id, title=self.title, member_id=member_id)
        self._events.append(event)
        logger.info(f"Book borrowed: book={self.id}, member={member_id}")
        return event

    def return_book(self) -> None:
        if self.is_available:
            raise InvalidStateError(
                f"Book '{self.title}' (ISBN: {self.isbn}) is already available.",
                details={"book_id": str(self.id)},
            )
        self.is_available = True

    def update_details(self, title: str, genre: Genre | str, publication_year: int) -> None:
        self.title = title
        self.genre = Genre(genre)
        self.publication_year = publication_year

    def pull_events(self) -> List[BookBorrowedEvent]:
        """Return recorded events and forget them."""
        events, self._events = self._events, []
        return events

    def __str__(self) -> str:  # pragma: no cover - string formatting trivial
        return f"{self.title} (ISBN: {self.isbn})"

    def to_dict(self) -> dict:
        return {
            "id": str(self.id),
            "isbn": self.isbn,
            "title": self.title,
            "author_id": str(self.author_id),
            "publication_year": self.publication_year,
            "genre": self.genre.value,
            "is_available": self.is_available,
        }

    @staticmethod
    def from_dict(data: dict) -> "Book":
        # sqlite hands booleans back as 0/1
        return Book(
            isbn=data["isbn"],
            title=data["title"],
            author_id=UUID(str(data["author_id"])),
            publication_year=data["publication_year"],
            genre=data["genre"],
            is_available=bool(data.get("is_available", True)),
            id=UUID(str(data["id"])),
        )
