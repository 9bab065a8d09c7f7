import logging
from datetime import date
from typing import Any, List, Mapping, Optional

from local_library.composer import ReadComposer
from local_library.database import DocumentStore
from local_library.errors import NotFoundError
from local_library.models import Book, BookInstance, BookInstanceStatus
from local_library.validators import BookInstanceForm, FieldError, validate_form
from local_library.views import Outcome, Redirect, ViewModel

logger = logging.getLogger(__name__)

BOOKINSTANCE_LIST_URL = "/catalog/bookinstances"
STATUS_CHOICES = [status.value for status in BookInstanceStatus]


class BookInstanceService:
    def __init__(self, store: DocumentStore) -> None:
        self.store = store
        self.composer = ReadComposer(store)

    async def list(self) -> ViewModel:
        instances = await self.composer.bookinstance_list()
        return ViewModel("bookinstance_list", {"title": "Book Instance List", "bookinstance_list": instances})

    async def detail(self, instance_id: str) -> ViewModel:
        instance = await self.composer.bookinstance_detail(instance_id)
        if instance is None:
            raise NotFoundError("Book copy", instance_id)
        title = instance.book.title if instance.book else ""
        return ViewModel("bookinstance_detail", {"title": f"Book: {title}", "bookinstance": instance})

    # ------------------------- Form helpers ------------------------- #
    @staticmethod
    def _candidate(values: Mapping[str, Any], instance_id: Optional[str] = None) -> BookInstance:
        status = values["status"]
        return BookInstance(
            book=values["book"],
            imprint=values["imprint"],
            # an invalid status is reported as an error; the form shows the default
            status=BookInstanceStatus(status) if status in STATUS_CHOICES else BookInstanceStatus.MAINTENANCE,
            due_back=values["due_back"] or date.today(),
            id=instance_id,
        )

    @staticmethod
    def _form(title: str, books: List[Book], instance: Optional[BookInstance] = None,
              errors: Optional[List[FieldError]] = None) -> ViewModel:
        context = {
            "title": title,
            "book_list": books,
            "status_choices": STATUS_CHOICES,
            "selected_book": instance.book if instance else None,
        }
        if instance is not None:
            context["bookinstance"] = instance
        if errors:
            context["errors"] = errors
        return ViewModel("bookinstance_form", context)

    # ------------------------- Create ------------------------- #
    async def create_get(self) -> ViewModel:
        books = await self.composer.all_books()
        return self._form("Create BookInstance", books)

    async def create_post(self, data: Mapping[str, Any]) -> Outcome:
        result = validate_form(data, BookInstanceForm)
        instance = self._candidate(result.values)

        if not result.is_valid:
            books = await self.composer.all_books()
            return self._form("Create BookInstance", books, instance, result.errors)

        instance.id = await self.store.insert("bookinstances", instance.to_document())
        logger.info(f"Book copy created: {instance.id} of book {instance.book}")
        return Redirect(instance.url)

    # ------------------------- Update ------------------------- #
    async def update_get(self, instance_id: str) -> ViewModel:
        instance, books = await self.composer.bookinstance_form_with_target(instance_id)
        if instance is None:
            raise NotFoundError("Book copy", instance_id)
        return self._form("Update BookInstance", books, instance)

    async def update_post(self, instance_id: str, data: Mapping[str, Any]) -> Outcome:
        result = validate_form(data, BookInstanceForm)
        instance = self._candidate(result.values, instance_id)

        if not result.is_valid:
            books = await self.composer.all_books()
            return self._form("Update BookInstance", books, instance, result.errors)

        if not await self.store.replace("bookinstances", instance_id, instance.to_document()):
            raise NotFoundError("Book copy", instance_id)
        logger.info(f"Book copy updated: {instance_id}")
        return Redirect(instance.url)

    # ------------------------- Delete ------------------------- #
    async def delete_get(self, instance_id: str) -> Outcome:
        instance = await self.composer.bookinstance_detail(instance_id)
        if instance is None:
            return Redirect(BOOKINSTANCE_LIST_URL)
        return ViewModel("bookinstance_delete", {"title": "Delete BookInstance", "bookinstance": instance})

    async def delete_post(self, instance_id: str) -> Outcome:
        if await self.store.delete("bookinstances", instance_id):
            logger.info(f"Book copy deleted: {instance_id}")
        return Redirect(BOOKINSTANCE_LIST_URL)
