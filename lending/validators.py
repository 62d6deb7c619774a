import re
from typing import Any, Dict, List, Optional
from uuid import UUID

from pydantic import EmailStr, TypeAdapter, ValidationError

_email_adapter = TypeAdapter(EmailStr)


def normalize_isbn(raw: Optional[str]) -> str:
    if raw is None:
        return ""
    return re.sub(r"[^0-9Xx]", "", raw).upper()


def is_valid_isbn(isbn: Optional[str]) -> bool:
    """ISBN-10 / ISBN-13 checksum check; hyphens and spaces are ignored."""
    s = normalize_isbn(isbn)
    if len(s) == 10:
        if not s[:-1].isdigit():
            return False
        total = sum(i * int(ch) for i, ch in enumerate(s[:-1], 1))
        check = s[-1]
        check_val = 10 if check == "X" else int(check)
        return (total + 10 * check_val) % 11 == 0
    if len(s) == 13 and s.isdigit():
        total = sum((1 if i % 2 == 0 else 3) * int(ch) for i, ch in enumerate(s[:-1]))
        return (10 - (total % 10)) % 10 == int(s[-1])
    return False


def is_valid_email(email: Optional[str]) -> bool:
    if not email:
        return False
    try:
        _email_adapter.validate_python(email.strip())
    except ValidationError:
        return False
    return True


def _check_uuid(field: str, value: Any, errors: List[Dict[str, str]]) -> None:
    if value is None or (isinstance(value, str) and not value.strip()):
        errors.append({"field": field, "message": f"{field} is required."})
        return
    try:
        parsed = value if isinstance(value, UUID) else UUID(str(value).strip())
    except ValueError:
        errors.append({"field": field, "message": f"{field} must be a valid UUID."})
        return
    if parsed.int == 0:
        errors.append({"field": field, "message": f"{field} must not be the empty UUID."})


def validate_borrow_request(book_id: Any, member_id: Any) -> List[Dict[str, str]]:
    """Check the ids of a borrow/return request.

    Returns a list of ``{"field", "message"}`` dicts; empty when valid.
    """
    errors: List[Dict[str, str]] = []
    _check_uuid("bookId", book_id, errors)
    _check_uuid("memberId", member_id, errors)
    return errors


def validate_new_book(isbn: Optional[str], title: Optional[str], publication_year: Any) -> List[Dict[str, str]]:
    errors: List[Dict[str, str]] = []
    if not is_valid_isbn(isbn):
        errors.append({"field": "isbn", "message": "Invalid ISBN format."})
    if not title or not title.strip():
        errors.append({"field": "title", "message": "title is required."})
    try:
        int(publication_year)
    except (TypeError, ValueError):
        errors.append({"field": "publication_year", "message": "publication_year must be an integer."})
    return errors


def validate_new_member(member_number: Optional[str], email: Optional[str]) -> List[Dict[str, str]]:
    errors: List[Dict[str, str]] = []
    if not member_number or not member_number.strip():
        errors.append({"field": "member_number", "message": "member_number is required."})
    if not is_valid_email(email):
        errors.append({"field": "email", "message": "A valid email is required."})
    return errors
