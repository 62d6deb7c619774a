from enum import Enum


class LoanStatus(str, Enum):
    ACTIVE = "Active"
    OVERDUE = "Overdue"
    RETURNED = "Returned"  # reserved; loans that finish go straight to CLOSED
    CLOSED = "Closed"


class Genre(str, Enum):
    FICTION = "Fiction"
    NON_FICTION = "NonFiction"
    MYSTERY = "Mystery"
    ROMANCE = "Romance"
    FANTASY = "Fantasy"
    SCIENCE_FICTION = "ScienceFiction"
    BIOGRAPHY = "Biography"
    HISTORY = "History"
    POETRY = "Poetry"
    CHILDREN = "Children"
