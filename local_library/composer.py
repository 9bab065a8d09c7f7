"""Read composition for catalog views.

Every method issues its independent lookups together with
``asyncio.gather`` and joins the results in memory. Lookups are read-only,
so they may complete in any order; the first failure propagates.
"""
import asyncio
import logging
from typing import Dict, List, Optional, Tuple

from local_library.database import DocumentStore
from local_library.models import Author, Book, BookInstance, BookInstanceStatus, Genre
from local_library.views import PopulatedBook, PopulatedInstance

logger = logging.getLogger(__name__)

BOOK_SUMMARY_FIELDS = ("title", "summary")


class ReadComposer:
    """Gathers the records a view needs from the store."""

    def __init__(self, store: DocumentStore) -> None:
        self.store = store

    # ------------------------- Index ------------------------- #
    async def index_counts(self) -> Dict[str, int]:
        books, instances, available, authors, genres = await asyncio.gather(
            self.store.count("books"),
            self.store.count("bookinstances"),
            self.store.count("bookinstances", {"status": BookInstanceStatus.AVAILABLE.value}),
            self.store.count("authors"),
            self.store.count("genres"),
        )
        return {
            "book_count": books,
            "book_instance_count": instances,
            "book_instance_available_count": available,
            "author_count": authors,
            "genre_count": genres,
        }

    # ------------------------- Single records ------------------------- #
    async def get_author(self, author_id: str) -> Optional[Author]:
        doc = await self.store.find_by_id("authors", author_id)
        return Author.from_document(doc) if doc else None

    async def get_genre(self, genre_id: str) -> Optional[Genre]:
        doc = await self.store.find_by_id("genres", genre_id)
        return Genre.from_document(doc) if doc else None

    async def get_book(self, book_id: str) -> Optional[Book]:
        doc = await self.store.find_by_id("books", book_id)
        return Book.from_document(doc) if doc else None

    # ------------------------- Lists ------------------------- #
    async def all_authors(self) -> List[Author]:
        docs = await self.store.find("authors", sort="family_name")
        return [Author.from_document(doc) for doc in docs]

    async def all_genres(self) -> List[Genre]:
        docs = await self.store.find("genres", sort="name")
        return [Genre.from_document(doc) for doc in docs]

    async def all_books(self) -> List[Book]:
        docs = await self.store.find("books", sort="title")
        return [Book.from_document(doc) for doc in docs]

    async def book_list(self) -> List[PopulatedBook]:
        """All books by title, each with its author resolved."""
        docs = await self.store.find("books", sort="title", projection=("title", "author"))
        author_ids = {doc.get("author") for doc in docs if doc.get("author")}
        authors = {
            doc["_id"]: Author.from_document(doc)
            for doc in await self.store.find_by_ids("authors", author_ids)
        }
        return [
            PopulatedBook(book=Book.from_document(doc), author=authors.get(doc.get("author")))
            for doc in docs
        ]

    async def bookinstance_list(self) -> List[PopulatedInstance]:
        docs = await self.store.find("bookinstances")
        book_ids = {doc.get("book") for doc in docs if doc.get("book")}
        books = {
            doc["_id"]: Book.from_document(doc)
            for doc in await self.store.find_by_ids("books", book_ids)
        }
        return [
            PopulatedInstance(instance=BookInstance.from_document(doc), book=books.get(doc.get("book")))
            for doc in docs
        ]

    async def books_referencing(self, field: str, doc_id: str) -> List[Book]:
        """Books whose ``field`` points at ``doc_id`` (title and summary only)."""
        docs = await self.store.find("books", {field: doc_id}, projection=BOOK_SUMMARY_FIELDS)
        return [Book.from_document(doc) for doc in docs]

    async def instances_of(self, book_id: str) -> List[BookInstance]:
        docs = await self.store.find("bookinstances", {"book": book_id})
        return [BookInstance.from_document(doc) for doc in docs]

    # ------------------------- Joined views ------------------------- #
    async def populate_book(self, book: Book) -> PopulatedBook:
        author_doc, genre_docs = await asyncio.gather(
            self.store.find_by_id("authors", book.author),
            self.store.find_by_ids("genres", book.genre),
        )
        by_id = {doc["_id"]: Genre.from_document(doc) for doc in genre_docs}
        return PopulatedBook(
            book=book,
            author=Author.from_document(author_doc) if author_doc else None,
            genres=[by_id[genre_id] for genre_id in book.genre if genre_id in by_id],
        )

    async def book_with_instances(self, book_id: str) -> Tuple[Optional[PopulatedBook], List[BookInstance]]:
        book, instances = await asyncio.gather(
            self.get_book(book_id),
            self.instances_of(book_id),
        )
        if book is None:
            return None, instances
        return await self.populate_book(book), instances

    async def author_with_books(self, author_id: str) -> Tuple[Optional[Author], List[Book]]:
        author, books = await asyncio.gather(
            self.get_author(author_id),
            self.books_referencing("author", author_id),
        )
        return author, books

    async def genre_with_books(self, genre_id: str) -> Tuple[Optional[Genre], List[Book]]:
        genre, books = await asyncio.gather(
            self.get_genre(genre_id),
            self.books_referencing("genre", genre_id),
        )
        return genre, books

    async def bookinstance_detail(self, instance_id: str) -> Optional[PopulatedInstance]:
        doc = await self.store.find_by_id("bookinstances", instance_id)
        if doc is None:
            return None
        instance = BookInstance.from_document(doc)
        return PopulatedInstance(instance=instance, book=await self.get_book(instance.book))

    # ------------------------- Form reference data ------------------------- #
    async def book_form_reference(self) -> Tuple[List[Author], List[Genre]]:
        authors, genres = await asyncio.gather(self.all_authors(), self.all_genres())
        return authors, genres

    async def book_form_with_target(self, book_id: str) -> Tuple[Optional[Book], List[Author], List[Genre]]:
        book, authors, genres = await asyncio.gather(
            self.get_book(book_id),
            self.all_authors(),
            self.all_genres(),
        )
        return book, authors, genres

    async def bookinstance_form_with_target(self, instance_id: str) -> Tuple[Optional[BookInstance], List[Book]]:
        doc, books = await asyncio.gather(
            self.store.find_by_id("bookinstances", instance_id),
            self.all_books(),
        )
        return (BookInstance.from_document(doc) if doc else None), books
