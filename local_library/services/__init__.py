"""Catalog workflows, one service per entity.

Each service takes the document store it works against and returns
view models or redirects for the HTTP layer to turn into responses.
"""
from local_library.services.author_service import AuthorService
from local_library.services.book_service import BookService
from local_library.services.bookinstance_service import BookInstanceService
from local_library.services.genre_service import GenreService

__all__ = ["AuthorService", "BookService", "BookInstanceService", "GenreService"]
