from datetime import date

from local_library.models import Author, Book, BookInstance, BookInstanceStatus, Genre, format_date_med


def test_author_name_family_then_first():
    author = Author("Pat", "Doe")
    assert author.name == "Doe, Pat"


def test_author_name_empty_when_part_missing():
    assert Author("", "Doe").name == ""
    assert Author("Pat", "").name == ""


def test_lifespan_empty_without_dates():
    assert Author("Pat", "Doe").lifespan == ""


def test_lifespan_birth_only():
    author = Author("Pat", "Doe", date_of_birth=date(1980, 1, 1))
    assert author.lifespan == "Jan 1, 1980 - "


def test_lifespan_both_dates():
    author = Author("Henry", "Thoreau", date_of_birth=date(1817, 7, 12), date_of_death=date(1862, 5, 6))
    assert author.lifespan == "Jul 12, 1817 - May 6, 1862"


def test_lifespan_is_derived_not_stored():
    author = Author("Pat", "Doe", date_of_birth=date(1980, 1, 1))
    doc = author.to_document()
    assert "lifespan" not in doc
    assert "name" not in doc
    assert doc["date_of_birth"] == "1980-01-01"
    assert doc["date_of_death"] is None


def test_author_form_dates():
    author = Author("Pat", "Doe", date_of_birth=date(1980, 1, 1))
    assert author.date_of_birth_yyyy_mm_dd == "1980-01-01"
    assert author.date_of_death_yyyy_mm_dd == ""


def test_urls_use_identity():
    assert Author("A", "B", id="a1").url == "/catalog/author/a1"
    assert Genre("Poetry", id="g1").url == "/catalog/genre/g1"
    assert Book("T", "a1", "S", "123", id="b1").url == "/catalog/book/b1"
    assert BookInstance("b1", "Imprint", id="i1").url == "/catalog/bookinstance/i1"


def test_book_genre_behaves_as_set():
    book = Book("T", "a1", "S", "123", genre=["g1", "g2", "g1"])
    assert book.genre == ["g1", "g2"]


def test_book_from_document_without_genre():
    book = Book.from_document({"_id": "b1", "title": "T", "author": "a1", "summary": "S", "isbn": "1"})
    assert book.genre == []
    assert book.id == "b1"


def test_bookinstance_defaults():
    instance = BookInstance("b1", "Penguin")
    assert instance.status is BookInstanceStatus.MAINTENANCE
    assert instance.due_back == date.today()


def test_bookinstance_from_document():
    instance = BookInstance.from_document({
        "_id": "i1", "book": "b1", "imprint": "Penguin", "status": "Loaned", "due_back": "2024-03-05",
    })
    assert instance.status is BookInstanceStatus.LOANED
    assert instance.due_back == date(2024, 3, 5)
    assert instance.due_back_formatted == "Mar 5, 2024"


def test_format_date_med_none():
    assert format_date_med(None) == ""
