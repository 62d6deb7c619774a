from __future__ import annotations

from uuid import UUID, uuid4


class Author:
    """A book author. The id is fixed at construction."""

    def __init__(self, first_name: str, last_name: str, biography: str | None = None,
                 id: UUID | None = None) -> None:
        self._id = id or uuid4()
        self.first_name = first_name.strip()
        self.last_name = last_name.strip()
        self.biography = biography

    @property
    def id(self) -> UUID:
        return self._id

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}"

    def update_biography(self, biography: str) -> None:
        self.biography = biography

    def __str__(self) -> str:  # pragma: no cover - string formatting trivial
        return self.full_name

    def to_dict(self) -> dict:
        return {
            "id": str(self.id),
            "first_name": self.first_name,
            "last_name": self.last_name,
            "biography": self.biography,
        }

    @staticmethod
    def from_dict(data: dict) -> "Author":
        return Author(
            first_name=data["first_name"],
            last_name=data["last_name"],
            biography=data.get("biography"),
            id=UUID(str(data["id"])),
        )
