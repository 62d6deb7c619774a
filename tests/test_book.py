from uuid import uuid4

import pytest

from lending.author import Author
from lending.book import Book
from lending.enums import Genre
from lending.errors import InvalidStateError
from lending.events import BookBorrowedEvent


def test_borrow_marks_book_unavailable(book):
    member_id = uuid4()
    event = book.borrow(member_id)

    assert book.is_available is False
    assert isinstance(event, BookBorrowedEvent)
    assert event.book_id == book.id
    assert event.member_id == member_id
    assert event.title == "The Hobbit"


def test_borrow_unavailable_book_fails(book):
    book.borrow(uuid4())
    with pytest.raises(InvalidStateError, match="not available"):
        book.borrow(uuid4())


def test_return_book(book):
    book.borrow(uuid4())
    book.return_book()
    assert book.is_available is True


def test_return_available_book_fails(book):
    with pytest.raises(InvalidStateError, match="already available"):
        book.return_book()


def test_update_details(book):
    book.update_details("The Hobbit, or There and Back Again", Genre.CHILDREN, 1938)
    assert book.title == "The Hobbit, or There and Back Again"
    assert book.genre is Genre.CHILDREN
    assert book.publication_year == 1938
    assert book.is_available is True


def test_pull_events_drains_recorded_events(book):
    book.borrow(uuid4())
    events = book.pull_events()
    assert len(events) == 1
    assert book.pull_events() == []


def test_from_dict_reads_sqlite_flags(book):
    data = book.to_dict()
    data["is_available"] = 0
    restored = Book.from_dict(data)
    assert restored.id == book.id
    assert restored.is_available is False
    assert restored.genre is Genre.FANTASY


def test_author_biography_and_name():
    author = Author("J.R.R.", "Tolkien")
    original_id = author.id
    author.update_biography("Philologist")
    assert author.biography == "Philologist"
    assert author.full_name == "J.R.R. Tolkien"
    assert author.id == original_id
    with pytest.raises(AttributeError):
        author.id = uuid4()
