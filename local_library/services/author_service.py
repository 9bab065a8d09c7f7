import logging
from typing import Any, Mapping

from local_library.composer import ReadComposer
from local_library.database import DocumentStore
from local_library.errors import NotFoundError, WorkflowNotImplemented
from local_library.models import Author
from local_library.validators import AuthorForm, validate_form
from local_library.views import Outcome, Redirect, ViewModel

logger = logging.getLogger(__name__)

AUTHOR_LIST_URL = "/catalog/authors"


class AuthorService:
    """Author workflows. Editing an existing author is not offered."""

    def __init__(self, store: DocumentStore) -> None:
        self.store = store
        self.composer = ReadComposer(store)

    async def list(self) -> ViewModel:
        authors = await self.composer.all_authors()
        return ViewModel("author_list", {"title": "Author List", "author_list": authors})

    async def detail(self, author_id: str) -> ViewModel:
        author, books = await self.composer.author_with_books(author_id)
        if author is None:
            raise NotFoundError("Author", author_id)
        return ViewModel("author_detail", {"title": "Author Detail", "author": author, "author_books": books})

    # ------------------------- Create ------------------------- #
    async def create_get(self) -> ViewModel:
        return ViewModel("author_form", {"title": "Create Author"})

    async def create_post(self, data: Mapping[str, Any]) -> Outcome:
        result = validate_form(data, AuthorForm)
        author = Author(
            first_name=result.values["first_name"],
            family_name=result.values["family_name"],
            date_of_birth=result.values["date_of_birth"],
            date_of_death=result.values["date_of_death"],
        )

        if not result.is_valid:
            return ViewModel("author_form", {"title": "Create Author", "author": author, "errors": result.errors})

        # Authors may share a name, every valid submission is a new record.
        author.id = await self.store.insert("authors", author.to_document())
        logger.info(f"Author created: {author.id} ({author.name})")
        return Redirect(author.url)

    # ------------------------- Update ------------------------- #
    async def update_get(self, author_id: str) -> ViewModel:
        raise WorkflowNotImplemented(f"Author update GET: {author_id}")

    async def update_post(self, author_id: str, data: Mapping[str, Any]) -> Outcome:
        raise WorkflowNotImplemented(f"Author update POST: {author_id}")

    # ------------------------- Delete ------------------------- #
    async def delete_get(self, author_id: str) -> Outcome:
        author, books = await self.composer.author_with_books(author_id)
        if author is None and not books:
            return Redirect(AUTHOR_LIST_URL)
        return ViewModel("author_delete", {"title": "Delete Author", "author": author, "author_books": books})

    async def delete_post(self, author_id: str) -> Outcome:
        author, books = await self.composer.author_with_books(author_id)
        if books:
            logger.info(f"Delete of author {author_id} blocked by {len(books)} book(s)")
            return ViewModel("author_delete", {"title": "Delete Author", "author": author, "author_books": books})

        if author is not None:
            await self.store.delete("authors", author_id)
            logger.info(f"Author deleted: {author_id}")
        return Redirect(AUTHOR_LIST_URL)
