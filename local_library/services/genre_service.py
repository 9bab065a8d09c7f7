import logging
from typing import Any, Mapping

from local_library.composer import ReadComposer
from local_library.database import DocumentStore
from local_library.errors import NotFoundError
from local_library.models import Genre
from local_library.validators import GenreForm, validate_form
from local_library.views import Outcome, Redirect, ViewModel

logger = logging.getLogger(__name__)

GENRE_LIST_URL = "/catalog/genres"


class GenreService:
    """Genre workflows: listing, detail, create, update and guarded delete."""

    def __init__(self, store: DocumentStore) -> None:
        self.store = store
        self.composer = ReadComposer(store)

    async def list(self) -> ViewModel:
        genres = await self.composer.all_genres()
        return ViewModel("genre_list", {"title": "Genre List", "genre_list": genres})

    async def detail(self, genre_id: str) -> ViewModel:
        genre, books = await self.composer.genre_with_books(genre_id)
        if genre is None:
            raise NotFoundError("Genre", genre_id)
        return ViewModel("genre_detail", {"title": "Genre Detail", "genre": genre, "genre_books": books})

    # ------------------------- Create ------------------------- #
    async def create_get(self) -> ViewModel:
        return ViewModel("genre_form", {"title": "Create Genre"})

    async def create_post(self, data: Mapping[str, Any]) -> Outcome:
        result = validate_form(data, GenreForm)
        genre = Genre(name=result.values["name"])

        if not result.is_valid:
            return ViewModel("genre_form", {"title": "Create Genre", "genre": genre, "errors": result.errors})

        # Same name in any letter case counts as the same genre.
        existing = await self.store.find_one("genres", {"name": genre.name}, case_insensitive=True)
        if existing:
            found = Genre.from_document(existing)
            logger.info(f"Genre '{genre.name}' already exists as {found.id}, redirecting")
            return Redirect(found.url)

        genre.id = await self.store.insert("genres", genre.to_document())
        logger.info(f"Genre created: {genre.id} ({genre.name})")
        return Redirect(genre.url)

    # ------------------------- Update ------------------------- #
    async def update_get(self, genre_id: str) -> ViewModel:
        genre = await self.composer.get_genre(genre_id)
        if genre is None:
            raise NotFoundError("Genre", genre_id)
        return ViewModel("genre_form", {"title": "Update Genre", "genre": genre})

    async def update_post(self, genre_id: str, data: Mapping[str, Any]) -> Outcome:
        result = validate_form(data, GenreForm)
        genre = Genre(name=result.values["name"], id=genre_id)

        if not result.is_valid:
            return ViewModel("genre_form", {"title": "Update Genre", "genre": genre, "errors": result.errors})

        # TODO: this lookup is case-sensitive while create_post's is not; align once the intended rule is settled.
        matches = await self.store.find("genres", {"name": genre.name})
        other = next((doc for doc in matches if doc["_id"] != genre_id), None)
        if other:
            found = Genre.from_document(other)
            logger.info(f"Genre '{genre.name}' already exists as {found.id}, update of {genre_id} skipped")
            return Redirect(found.url)

        if not await self.store.replace("genres", genre_id, genre.to_document()):
            raise NotFoundError("Genre", genre_id)
        logger.info(f"Genre updated: {genre_id} ({genre.name})")
        return Redirect(genre.url)

    # ------------------------- Delete ------------------------- #
    async def delete_get(self, genre_id: str) -> Outcome:
        genre, books = await self.composer.genre_with_books(genre_id)
        if genre is None and not books:
            return Redirect(GENRE_LIST_URL)
        return ViewModel("genre_delete", {"title": "Delete Genre", "genre": genre, "genre_books": books})

    async def delete_post(self, genre_id: str) -> Outcome:
        genre, books = await self.composer.genre_with_books(genre_id)
        if books:
            logger.info(f"Delete of genre {genre_id} blocked by {len(books)} book(s)")
            return ViewModel("genre_delete", {"title": "Delete Genre", "genre": genre, "genre_books": books})

        if genre is not None:
            await self.store.delete("genres", genre_id)
            logger.info(f"Genre deleted: {genre_id}")
        return Redirect(GENRE_LIST_URL)
