from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum
from typing import List, Optional


class BookInstanceStatus(str, Enum):
    AVAILABLE = "Available"
    MAINTENANCE = "Maintenance"
    LOANED = "Loaned"
    RESERVED = "Reserved"


def format_date_med(value: Optional[date]) -> str:
    """Format a date like 'Jul 12, 1817'; empty string when absent."""
    if value is None:
        return ""
    return f"{value:%b} {value.day}, {value.year}"


def _parse_date(value) -> Optional[date]:
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return datetime.fromisoformat(value).date()


def _iso(value: Optional[date]) -> Optional[str]:
    return value.isoformat() if value else None


@dataclass
class Author:
    """A person who wrote one or more books."""

    first_name: str
    family_name: str
    date_of_birth: Optional[date] = None
    date_of_death: Optional[date] = None
    id: Optional[str] = None

    @property
    def name(self) -> str:
        """'family_name, first_name', or empty when either part is missing."""
        if self.first_name and self.family_name:
            return f"{self.family_name}, {self.first_name}"
        return ""

    @property
    def url(self) -> str:
        return f"/catalog/author/{self.id}"

    @property
    def lifespan(self) -> str:
        born = format_date_med(self.date_of_birth)
        died = format_date_med(self.date_of_death)
        return f"{born} - {died}" if born or died else ""

    @property
    def date_of_birth_yyyy_mm_dd(self) -> str:
        return _iso(self.date_of_birth) or ""

    @property
    def date_of_death_yyyy_mm_dd(self) -> str:
        return _iso(self.date_of_death) or ""

    def to_document(self) -> dict:
        return {
            "first_name": self.first_name,
            "family_name": self.family_name,
            "date_of_birth": _iso(self.date_of_birth),
            "date_of_death": _iso(self.date_of_death),
        }

    @staticmethod
    def from_document(data: dict) -> "Author":
        return Author(
            first_name=data.get("first_name", ""),
            family_name=data.get("family_name", ""),
            date_of_birth=_parse_date(data.get("date_of_birth")),
            date_of_death=_parse_date(data.get("date_of_death")),
            id=data.get("_id"),
        )


@dataclass
class Genre:
    name: str
    id: Optional[str] = None

    @property
    def url(self) -> str:
        return f"/catalog/genre/{self.id}"

    def to_document(self) -> dict:
        return {"name": self.name}

    @staticmethod
    def from_document(data: dict) -> "Genre":
        return Genre(name=data.get("name", ""), id=data.get("_id"))


@dataclass
class Book:
    """A catalogued title. ``author`` and ``genre`` hold identities, not records."""

    title: str
    author: str
    summary: str
    isbn: str
    genre: List[str] = field(default_factory=list)
    id: Optional[str] = None

    def __post_init__(self) -> None:
        # genre is a set of references; keep first-seen order
        self.genre = list(dict.fromkeys(self.genre))

    @property
    def url(self) -> str:
        return f"/catalog/book/{self.id}"

    def to_document(self) -> dict:
        return {
            "title": self.title,
            "author": self.author,
            "summary": self.summary,
            "isbn": self.isbn,
            "genre": list(self.genre),
        }

    @staticmethod
    def from_document(data: dict) -> "Book":
        return Book(
            title=data.get("title", ""),
            author=data.get("author", ""),
            summary=data.get("summary", ""),
            isbn=data.get("isbn", ""),
            genre=data.get("genre") or [],
            id=data.get("_id"),
        )


@dataclass
class BookInstance:
    """A physical copy of a book that can be borrowed."""

    book: str
    imprint: str
    status: BookInstanceStatus = BookInstanceStatus.MAINTENANCE
    due_back: date = field(default_factory=date.today)
    id: Optional[str] = None

    @property
    def url(self) -> str:
        return f"/catalog/bookinstance/{self.id}"

    @property
    def due_back_formatted(self) -> str:
        return format_date_med(self.due_back)

    @property
    def due_back_yyyy_mm_dd(self) -> str:
        return _iso(self.due_back) or ""

    def to_document(self) -> dict:
        return {
            "book": self.book,
            "imprint": self.imprint,
            "status": BookInstanceStatus(self.status).value,
            "due_back": _iso(self.due_back),
        }

    @staticmethod
    def from_document(data: dict) -> "BookInstance":
        return BookInstance(
            book=data.get("book", ""),
            imprint=data.get("imprint", ""),
            status=BookInstanceStatus(data.get("status") or BookInstanceStatus.MAINTENANCE.value),
            due_back=_parse_date(data.get("due_back")) or date.today(),
            id=data.get("_id"),
        )
