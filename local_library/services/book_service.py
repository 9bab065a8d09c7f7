import logging
from typing import Any, List, Mapping, Optional

from local_library.composer import ReadComposer
from local_library.database import DocumentStore
from local_library.errors import NotFoundError
from local_library.models import Author, Book, Genre
from local_library.validators import BookForm, FieldError, validate_form
from local_library.views import Outcome, Redirect, ViewModel, genre_choices

logger = logging.getLogger(__name__)

BOOK_LIST_URL = "/catalog/books"


class BookService:
    """Book workflows, including the catalog home page summary."""

    def __init__(self, store: DocumentStore) -> None:
        self.store = store
        self.composer = ReadComposer(store)

    async def index(self) -> ViewModel:
        counts = await self.composer.index_counts()
        return ViewModel("index", {"title": "Local Library Home", **counts})

    async def list(self) -> ViewModel:
        books = await self.composer.book_list()
        return ViewModel("book_list", {"title": "Book List", "book_list": books})

    async def detail(self, book_id: str) -> ViewModel:
        book, instances = await self.composer.book_with_instances(book_id)
        if book is None:
            raise NotFoundError("Book", book_id)
        return ViewModel("book_detail", {"title": book.book.title, "book": book, "book_instances": instances})

    # ------------------------- Form helpers ------------------------- #
    @staticmethod
    def _candidate(values: Mapping[str, Any], book_id: Optional[str] = None) -> Book:
        return Book(
            title=values["title"],
            author=values["author"],
            summary=values["summary"],
            isbn=values["isbn"],
            genre=values["genre"],
            id=book_id,
        )

    @staticmethod
    def _form(title: str, book: Book, authors: List[Author], genres: List[Genre],
              errors: Optional[List[FieldError]] = None) -> ViewModel:
        context = {
            "title": title,
            "authors": authors,
            "genres": genre_choices(genres, book.genre),
            "book": book,
        }
        if errors:
            context["errors"] = errors
        return ViewModel("book_form", context)

    # ------------------------- Create ------------------------- #
    async def create_get(self) -> ViewModel:
        authors, genres = await self.composer.book_form_reference()
        return ViewModel("book_form", {
            "title": "Create Book",
            "authors": authors,
            "genres": genre_choices(genres, []),
        })

    async def create_post(self, data: Mapping[str, Any]) -> Outcome:
        result = validate_form(data, BookForm)
        book = self._candidate(result.values)

        if not result.is_valid:
            authors, genres = await self.composer.book_form_reference()
            return self._form("Create Book", book, authors, genres, result.errors)

        book.id = await self.store.insert("books", book.to_document())
        logger.info(f"Book created: {book.id} ({book.title})")
        return Redirect(book.url)

    # ------------------------- Update ------------------------- #
    async def update_get(self, book_id: str) -> ViewModel:
        book, authors, genres = await self.composer.book_form_with_target(book_id)
        if book is None:
            raise NotFoundError("Book", book_id)
        return self._form("Update Book", book, authors, genres)

    async def update_post(self, book_id: str, data: Mapping[str, Any]) -> Outcome:
        result = validate_form(data, BookForm)
        book = self._candidate(result.values, book_id)

        if not result.is_valid:
            authors, genres = await self.composer.book_form_reference()
            return self._form("Update Book", book, authors, genres, result.errors)

        if not await self.store.replace("books", book_id, book.to_document()):
            raise NotFoundError("Book", book_id)
        logger.info(f"Book updated: {book_id} ({book.title})")
        return Redirect(book.url)

    # ------------------------- Delete ------------------------- #
    async def delete_get(self, book_id: str) -> Outcome:
        book, instances = await self.composer.book_with_instances(book_id)
        if book is None and not instances:
            return Redirect(BOOK_LIST_URL)
        return ViewModel("book_delete", {"title": "Delete Book", "book": book, "book_instances": instances})

    async def delete_post(self, book_id: str) -> Outcome:
        book, instances = await self.composer.book_with_instances(book_id)
        if instances:
            logger.info(f"Delete of book {book_id} blocked by {len(instances)} copy(ies)")
            return ViewModel("book_delete", {"title": "Delete Book", "book": book, "book_instances": instances})

        if book is not None:
            await self.store.delete("books", book_id)
            logger.info(f"Book deleted: {book_id}")
        return Redirect(BOOK_LIST_URL)
