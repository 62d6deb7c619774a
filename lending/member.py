from __future__ import annotations

from datetime import date, datetime
from typing import Iterable, List, Optional, Tuple
from uuid import UUID, uuid4

from lending.constants import MAX_ACTIVE_LOANS
from lending.enums import LoanStatus
from lending.errors import InvalidStateError
from lending.loan import Loan
from lending.loan_date import LoanDate


class Member:
    """A registered library member. Owns the loans opened through ``borrow_loan``."""

    def __init__(self, member_number: str, first_name: str, last_name: str, email: str,
                 date_of_birth: date, registration_date: datetime | None = None,
                 is_active: bool = True, id: UUID | None = None,
                 loans: Iterable[Loan] | None = None) -> None:
        self.id = id or uuid4()
        self.member_number = member_number.strip()
        self.first_name = first_name.strip()
        self.last_name = last_name.strip()
        self.email = email.strip()
        self.date_of_birth = date_of_birth
        self.registration_date = registration_date or datetime.now()
        self.is_active = is_active
        self._loans: List[Loan] = list(loans or [])

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}"

    @property
    def loans(self) -> Tuple[Loan, ...]:
        return tuple(self._loans)

    @property
    def active_loans(self) -> List[Loan]:
        return [loan for loan in self._loans if loan.status == LoanStatus.ACTIVE]

    def borrow_loan(self, loan_date: LoanDate) -> Loan:
        """Open a new loan for this member."""
        if not self.is_active:
            raise InvalidStateError(
                "Inactive members cannot borrow books.", details={"member_id": str(self.id)}
            )
        if len(self.active_loans) >= MAX_ACTIVE_LOANS:
            raise InvalidStateError(
                f"Member cannot have more than {MAX_ACTIVE_LOANS} active loans at a time.",
                details={"member_id": str(self.id), "active_loans": len(self.active_loans)},
            )
        loan = Loan(self.id, loan_date)
        self._loans.append(loan)
        return loan

    def deactivate(self) -> None:
        # Outstanding loans stay open.
        self.is_active = False

    def find_loan_for_book(self, book_id: UUID) -> Optional[Loan]:
        """The open (Active or Overdue) loan still holding ``book_id``."""
        for loan in self._loans:
            if loan.status in (LoanStatus.ACTIVE, LoanStatus.OVERDUE) and loan.holds_book(book_id):
                return loan
        return None

    def to_dict(self) -> dict:
        return {
            "id": str(self.id),
            "member_number": self.member_number,
            "first_name": self.first_name,
            "last_name": self.last_name,
            "email": self.email,
            "date_of_birth": self.date_of_birth.isoformat(),
            "registration_date": self.registration_date.isoformat(),
            "is_active": self.is_active,
            "loans": [loan.to_dict() for loan in self._loans],
        }
