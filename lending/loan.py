from __future__ import annotations

import logging
from datetime import date
from typing import Iterable, List, Optional, Tuple
from uuid import UUID, uuid4

from lending.book import Book
from lending.constants import OVERDUE_FINE_PER_DAY
from lending.enums import LoanStatus
from lending.errors import InvalidStateError, NotFoundError
from lending.events import BookBorrowedEvent
from lending.loan_date import LoanDate

logger = logging.getLogger(__name__)


def _as_loan_date(value: LoanDate | date) -> LoanDate:
    return value if isinstance(value, LoanDate) else LoanDate(value)


class LoanItem:
    """One borrowed book within a loan."""

    def __init__(self, book_id: UUID, due_date: LoanDate, actual_return_date: Optional[LoanDate] = None,
                 is_returned: bool = False) -> None:
        self.book_id = book_id
        self.due_date = due_date
        self.actual_return_date = actual_return_date
        self.is_returned = is_returned

    def mark_returned(self, actual_return_date: LoanDate) -> None:
        if self.is_returned:
            raise InvalidStateError(
                "Loan item is already marked as returned.",
                details={"book_id": str(self.book_id)},
            )
        self.is_returned = True
        self.actual_return_date = actual_return_date

    def days_overdue(self, as_of: date | None = None) -> int:
        """Days past the due date, counted up to the return (or ``as_of``)."""
        if self.is_returned and self.actual_return_date is not None:
            end = self.actual_return_date.to_date()
        else:
            end = as_of or date.today()
        return max(0, (end - self.due_date.to_date()).days)

    def to_dict(self) -> dict:
        return {
            "book_id": str(self.book_id),
            "due_date": self.due_date.isoformat(),
            "actual_return_date": self.actual_return_date.isoformat() if self.actual_return_date else None,
            "is_returned": self.is_returned,
        }

    @staticmethod
    def from_dict(data: dict) -> "LoanItem":
        returned_on = data.get("actual_return_date")
        return LoanItem(
            book_id=UUID(str(data["book_id"])),
            due_date=LoanDate.from_iso(data["due_date"]),
            actual_return_date=LoanDate.from_iso(returned_on) if returned_on else None,
            is_returned=bool(data.get("is_returned", False)),
        )


class Loan:
    """A member's borrowing transaction; owns its LoanItems.

    Status moves Active -> Overdue (``mark_overdue``) or Active -> Closed
    (``close`` or the last item coming back). Closed is terminal.
    """

    def __init__(self, member_id: UUID, loan_date: LoanDate, id: UUID | None = None,
                 status: LoanStatus | str = LoanStatus.ACTIVE, return_date: Optional[LoanDate] = None,
                 items: Iterable[LoanItem] | None = None) -> None:
        self.id = id or uuid4()
        self.member_id = member_id
        self.loan_date = loan_date
        self.return_date = return_date
        self.status = LoanStatus(status)
        self._items: List[LoanItem] = list(items or [])

    @property
    def items(self) -> Tuple[LoanItem, ...]:
        return tuple(self._items)

    def add_item(self, book: Book, due_date: LoanDate | date) -> BookBorrowedEvent:
        if self.status != LoanStatus.ACTIVE:
            raise InvalidStateError(
                f"Cannot add items to a loan with status {self.status.value}.",
                details={"loan_id": str(self.id)},
            )
        if not book.is_available:
            raise InvalidStateError(
                f"Book '{book.title}' is not available for loan.",
                details={"book_id": str(book.id)},
            )
        due = _as_loan_date(due_date)
        event = book.borrow(self.member_id)
        self._items.append(LoanItem(book.id, due))
        return event

    def item_for(self, book_id: UUID) -> Optional[LoanItem]:
        """The unreturned item for ``book_id``, else its first item, else None."""
        matches = [i for i in self._items if i.book_id == book_id]
        return next((i for i in matches if not i.is_returned), matches[0] if matches else None)

    def return_item(self, book_id: UUID, actual_return_date: LoanDate | date) -> None:
        item = self.item_for(book_id)
        if item is None:
            raise NotFoundError("Loan item", book_id)
        if self.status != LoanStatus.ACTIVE:
            raise InvalidStateError(
                f"Cannot return items for a loan with status {self.status.value}.",
                details={"loan_id": str(self.id)},
            )
        item.mark_returned(_as_loan_date(actual_return_date))
        if all(i.is_returned for i in self._items):
            self.close()

    def close(self, today: date | None = None) -> None:
        if self.status == LoanStatus.CLOSED:
            raise InvalidStateError("Loan is already closed.", details={"loan_id": str(self.id)})
        self.status = LoanStatus.CLOSED
        self.return_date = LoanDate(today or date.today(), today=today)
        logger.info(f"Loan closed: loan={self.id}, member={self.member_id}")

    def mark_overdue(self) -> None:
        if self.status == LoanStatus.ACTIVE:
            self.status = LoanStatus.OVERDUE
            logger.info(f"Loan marked overdue: loan={self.id}, member={self.member_id}")

    def holds_book(self, book_id: UUID) -> bool:
        return any(i.book_id == book_id and not i.is_returned for i in self._items)

    def overdue_items(self, as_of: date | None = None) -> List[LoanItem]:
        return [i for i in self._items if not i.is_returned and i.days_overdue(as_of) > 0]

    def fine_due(self, as_of: date | None = None) -> float:
        days = sum(i.days_overdue(as_of) for i in self._items)
        return round(days * OVERDUE_FINE_PER_DAY, 2)

    def to_dict(self) -> dict:
        return {
            "id": str(self.id),
            "member_id": str(self.member_id),
            "loan_date": self.loan_date.isoformat(),
            "return_date": self.return_date.isoformat() if self.return_date else None,
            "status": self.status.value,
            "items": [i.to_dict() for i in self._items],
        }
