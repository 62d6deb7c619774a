from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from uuid import UUID


@dataclass(frozen=True)
class BookBorrowedEvent:
    """Recorded when a book leaves the shelf; forwarded to notifications."""

    book_id: UUID
    title: str
    member_id: UUID
    borrowed_at: datetime = field(default_factory=datetime.now)
