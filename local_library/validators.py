"""Form validation and sanitization.

Each submitted form is described by a pydantic model. ``validate_form``
runs the model over the raw fields, turns every ``ValidationError`` entry
into a ``FieldError`` carrying the form's own wording, and always returns
the sanitized values so a rejected form can be shown again with what the
user typed.

Text is trimmed and HTML-escaped before the length and character limits
are checked, so the limits hold for the stored value.
"""
import html
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any, ClassVar, Dict, List, Mapping, Optional, Type, get_args, get_origin

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from local_library.models import BookInstanceStatus

ALPHANUMERIC = r"^[A-Za-z0-9]+$"


class TextValidator:
    """Field-level sanitizers shared by the form models."""

    @staticmethod
    def escape(text: str) -> str:
        return html.escape(text, quote=True)

    @staticmethod
    def clean(value: Any) -> Any:
        """Trim and escape text; anything else is left to the field type."""
        if isinstance(value, str):
            return TextValidator.escape(value.strip())
        return value

    @staticmethod
    def parse_iso_date(text: str) -> date:
        """Parse an ISO-8601 date or datetime string; raises ValueError."""
        return datetime.fromisoformat(text).date()

    @staticmethod
    def normalize_many(value: Any) -> List[str]:
        """Checkbox groups arrive absent, as one value, or as a list."""
        if value is None:
            return []
        if isinstance(value, (list, tuple, set, frozenset)):
            return [str(item) for item in value]
        return [str(value)]


def is_blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


class CatalogForm(BaseModel):
    """Base for submitted forms.

    ``messages`` maps a field to its error wording, keyed by pydantic error
    type with ``"*"`` as the fallback for that field.
    """

    model_config = ConfigDict(str_strip_whitespace=True)

    messages: ClassVar[Dict[str, Dict[str, str]]] = {}

    @classmethod
    def message_for(cls, name: str, error_type: str, default: str) -> str:
        table = cls.messages.get(name, {})
        return table.get(error_type) or table.get("*") or default


class GenreForm(CatalogForm):
    name: str = Field(min_length=3, max_length=100)

    messages: ClassVar[Dict[str, Dict[str, str]]] = {
        "name": {
            "string_too_long": "Genre name must not exceed 100 characters",
            "*": "Genre name must contain at least 3 characters",
        },
    }

    @field_validator("name", mode="before")
    @classmethod
    def clean_text(cls, value: Any) -> Any:
        return TextValidator.clean(value)


class AuthorForm(CatalogForm):
    first_name: str = Field(min_length=1, max_length=100, pattern=ALPHANUMERIC)
    family_name: str = Field(min_length=1, max_length=100, pattern=ALPHANUMERIC)
    date_of_birth: Optional[date] = None
    date_of_death: Optional[date] = None

    messages: ClassVar[Dict[str, Dict[str, str]]] = {
        "first_name": {
            "string_too_long": "First name must not exceed 100 characters.",
            "string_pattern_mismatch": "First name has non-alphanumeric characters.",
            "*": "First name must be specified.",
        },
        "family_name": {
            "string_too_long": "Family name must not exceed 100 characters.",
            "string_pattern_mismatch": "Family name has non-alphanumeric characters.",
            "*": "Family name must be specified.",
        },
        "date_of_birth": {"*": "Invalid date of birth"},
        "date_of_death": {"*": "Invalid date of death"},
    }

    @field_validator("first_name", "family_name", mode="before")
    @classmethod
    def clean_text(cls, value: Any) -> Any:
        return TextValidator.clean(value)

    @field_validator("date_of_birth", "date_of_death", mode="before")
    @classmethod
    def blank_date_is_absent(cls, value: Any) -> Any:
        return None if is_blank(value) else value


class BookForm(CatalogForm):
    title: str = Field(min_length=1)
    author: str = Field(min_length=1)
    summary: str = Field(min_length=1)
    isbn: str = Field(min_length=1)
    genre: List[str] = Field(default_factory=list)

    messages: ClassVar[Dict[str, Dict[str, str]]] = {
        "title": {"*": "Title must not be empty."},
        "author": {"*": "Author must not be empty."},
        "summary": {"*": "Summary must not be empty."},
        "isbn": {"*": "ISBN must not be empty"},
    }

    @field_validator("title", "author", "summary", "isbn", mode="before")
    @classmethod
    def clean_text(cls, value: Any) -> Any:
        return TextValidator.clean(value)

    @field_validator("genre", mode="before")
    @classmethod
    def as_list(cls, value: Any) -> List[str]:
        return [TextValidator.escape(item) for item in TextValidator.normalize_many(value)]


class BookInstanceForm(CatalogForm):
    book: str = Field(min_length=1)
    imprint: str = Field(min_length=1)
    status: BookInstanceStatus = BookInstanceStatus.MAINTENANCE
    due_back: date = Field(default_factory=date.today)

    messages: ClassVar[Dict[str, Dict[str, str]]] = {
        "book": {"*": "Book must be specified"},
        "imprint": {"*": "Imprint must be specified"},
        "status": {"*": "Invalid status"},
        "due_back": {"*": "Invalid date"},
    }

    @field_validator("book", "imprint", mode="before")
    @classmethod
    def clean_text(cls, value: Any) -> Any:
        return TextValidator.clean(value)

    @field_validator("status", mode="before")
    @classmethod
    def default_status(cls, value: Any) -> Any:
        return BookInstanceStatus.MAINTENANCE if is_blank(value) else value

    @field_validator("due_back", mode="before")
    @classmethod
    def default_due_back(cls, value: Any) -> Any:
        return date.today() if is_blank(value) else value


@dataclass(frozen=True)
class FieldError:
    field: str
    message: str
    value: Any = None


@dataclass
class ValidationResult:
    values: Dict[str, Any] = field(default_factory=dict)
    errors: List[FieldError] = field(default_factory=list)

    @property
    def is_valid(self) -> bool:
        return not self.errors


def _echo(form: Type[CatalogForm], data: Mapping[str, Any]) -> Dict[str, Any]:
    """Sanitized raw values of a rejected form, for showing it again."""
    values: Dict[str, Any] = {}
    for name, info in form.model_fields.items():
        raw = data.get(name)
        if get_origin(info.annotation) is list:
            values[name] = [TextValidator.escape(item) for item in TextValidator.normalize_many(raw)]
        elif date in (info.annotation, *get_args(info.annotation)):
            try:
                values[name] = None if is_blank(raw) else TextValidator.parse_iso_date(str(raw).strip())
            except ValueError:
                values[name] = None
        else:
            values[name] = "" if raw is None else TextValidator.clean(str(raw))
    return values


def validate_form(data: Mapping[str, Any], form: Type[CatalogForm]) -> ValidationResult:
    """Validate ``data`` against ``form``; every failing field is reported, in field order."""
    try:
        model = form.model_validate(dict(data))
    except ValidationError as exc:
        values = _echo(form, data)
        errors = []
        for error in exc.errors():
            name = str(error["loc"][0])
            message = form.message_for(name, error["type"], error["msg"])
            errors.append(FieldError(name, message, values.get(name)))
        return ValidationResult(values, errors)
    return ValidationResult(model.model_dump())
