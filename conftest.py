from datetime import date
from uuid import uuid4

import pytest

from lending.book import Book
from lending.enums import Genre
from lending.library import Library
from lending.member import Member
from lending.services.notification_service import OutboxEmailService


@pytest.fixture
def outbox():
    return OutboxEmailService()


@pytest.fixture
def lib(tmp_path, request, outbox):
    # A fresh database file per test
    db_file = str(tmp_path / f"test_{request.node.name}.db")
    yield Library(db_file=db_file, notifier=outbox)


@pytest.fixture
def book():
    return Book("9780306406157", "The Hobbit", uuid4(), 1937, Genre.FANTASY)


@pytest.fixture
def member():
    return Member("M-0001", "Ada", "Lovelace", "ada@example.com", date(1990, 12, 10))


@pytest.fixture
def catalog(lib):
    """An author, two books and an active member stored in ``lib``."""
    author = lib.add_author("Jane", "Austen", "English novelist")
    pride = lib.add_book("9780141439518", "Pride and Prejudice", author.id, 1813, "Romance")
    emma = lib.add_book("9780306406157", "Emma", author.id, 1815, "Romance")
    member = lib.register_member("M-1000", "Grace", "Hopper", "grace@example.com", date(1985, 5, 1))
    return {"author": author, "pride": pride, "emma": emma, "member": member}
