"""View models handed to the presentation layer.

Workflows end in one of two outcomes: a ``ViewModel`` naming the template
to render with its context, or a ``Redirect``. ``present`` turns a context
into plain JSON-ready data, adding the derived values (urls, names,
lifespans) that are never stored on the records themselves.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from typing import Any, Dict, List, Optional, Union

from local_library.models import Author, Book, BookInstance, Genre
from local_library.validators import FieldError


@dataclass
class ViewModel:
    template: str
    context: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict:
        return {"template": self.template, "context": present(self.context)}


@dataclass
class Redirect:
    url: str


Outcome = Union[ViewModel, Redirect]


@dataclass
class GenreChoice:
    """A genre as offered in the book form, with its checkbox state."""

    genre: Genre
    is_selected: bool = False


@dataclass
class PopulatedBook:
    book: Book
    author: Optional[Author] = None
    genres: List[Genre] = field(default_factory=list)


@dataclass
class PopulatedInstance:
    instance: BookInstance
    book: Optional[Book] = None


def genre_choices(genres: List[Genre], selected: List[str]) -> List[GenreChoice]:
    chosen = set(selected)
    return [GenreChoice(genre=genre, is_selected=genre.id in chosen) for genre in genres]


def _present_author(author: Author) -> dict:
    return {
        "id": author.id,
        "first_name": author.first_name,
        "family_name": author.family_name,
        "date_of_birth": author.date_of_birth_yyyy_mm_dd,
        "date_of_death": author.date_of_death_yyyy_mm_dd,
        "name": author.name,
        "lifespan": author.lifespan,
        "url": author.url,
    }


def _present_instance(instance: BookInstance) -> dict:
    return {
        "id": instance.id,
        "book": instance.book,
        "imprint": instance.imprint,
        "status": present(instance.status),
        "due_back": instance.due_back_yyyy_mm_dd,
        "due_back_formatted": instance.due_back_formatted,
        "url": instance.url,
    }


def present(value: Any) -> Any:
    """Recursively convert records and view shapes to JSON-ready data."""
    if isinstance(value, Author):
        return _present_author(value)
    if isinstance(value, Genre):
        return {"id": value.id, "name": value.name, "url": value.url}
    if isinstance(value, Book):
        return {
            "id": value.id,
            "title": value.title,
            "author": value.author,
            "summary": value.summary,
            "isbn": value.isbn,
            "genre": list(value.genre),
            "url": value.url,
        }
    if isinstance(value, BookInstance):
        return _present_instance(value)
    if isinstance(value, PopulatedBook):
        data = present(value.book)
        data["author"] = present(value.author)
        data["genre"] = present(value.genres)
        return data
    if isinstance(value, PopulatedInstance):
        data = present(value.instance)
        data["book"] = present(value.book)
        return data
    if isinstance(value, GenreChoice):
        return {**present(value.genre), "checked": value.is_selected}
    if isinstance(value, FieldError):
        return {"param": value.field, "msg": value.message, "value": present(value.value)}
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, date):
        return value.isoformat()
    if isinstance(value, dict):
        return {key: present(item) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return [present(item) for item in value]
    return value
