from __future__ import annotations

from datetime import date, datetime, timedelta
from functools import total_ordering

from lending.errors import OutOfRangeError


MAX_DAYS_AHEAD = timedelta(days=365)


@total_ordering
class LoanDate:
    """Calendar date used for loan, due and return dates.

    A new LoanDate must lie between today and one year (365 days) from today,
    inclusive.
    Values read back from storage go through ``restore`` instead, since a
    stored loan date legitimately ages into the past.
    """

    __slots__ = ("_date",)

    def __init__(self, value: date, today: date | None = None) -> None:
        if isinstance(value, datetime):
            value = value.date()
        today = today or date.today()
        if value < today:
            raise OutOfRangeError("loan_date", value, "Loan date cannot be in the past.")
        if value > today + MAX_DAYS_AHEAD:
            raise OutOfRangeError(
                "loan_date", value, "Loan date cannot be more than one year in the future."
            )
        self._date = value

    @classmethod
    def restore(cls, value: date) -> "LoanDate":
        """Rebuild a persisted date without the range check."""
        obj = cls.__new__(cls)
        obj._date = value.date() if isinstance(value, datetime) else value
        return obj

    @classmethod
    def from_date(cls, value: date, today: date | None = None) -> "LoanDate":
        return cls(value, today=today)

    @classmethod
    def from_iso(cls, value: str) -> "LoanDate":
        return cls.restore(date.fromisoformat(value))

    @classmethod
    def today(cls) -> "LoanDate":
        return cls(date.today())

    @property
    def date(self) -> date:
        return self._date

    def to_date(self) -> date:
        return self._date

    def isoformat(self) -> str:
        return self._date.isoformat()

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, LoanDate):
            return NotImplemented
        return self._date == other._date

    def __lt__(self, other: "LoanDate") -> bool:
        if not isinstance(other, LoanDate):
            return NotImplemented
        return self._date < other._date

    def __hash__(self) -> int:
        return hash(self._date)

    def __str__(self) -> str:
        return self._date.isoformat()

    def __repr__(self) -> str:
        return f"LoanDate({self._date.isoformat()})"
