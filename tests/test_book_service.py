import asyncio

import pytest

from local_library.errors import NotFoundError
from local_library.services import BookService
from local_library.views import Redirect, ViewModel


@pytest.fixture
def catalog(store):
    author_id = asyncio.run(store.insert("authors", {"first_name": "Pat", "family_name": "Doe"}))
    genre_ids = [
        asyncio.run(store.insert("genres", {"name": name}))
        for name in ("Fantasy", "Poetry", "Drama")
    ]
    return {"author": author_id, "genres": genre_ids}


def _form(author_id, **extra):
    data = {"title": "The Book", "author": author_id, "summary": "About things.", "isbn": "9780000000001"}
    data.update(extra)
    return data


def _id_from(outcome):
    return outcome.url.rsplit("/", 1)[-1]


def test_create_and_detail_round_trip_genres(store, catalog):
    g1, g2, _ = catalog["genres"]
    service = BookService(store)

    outcome = asyncio.run(service.create_post(_form(catalog["author"], genre=[g1, g2])))
    assert isinstance(outcome, Redirect)

    view = asyncio.run(service.detail(_id_from(outcome)))
    book = view.context["book"]
    assert view.template == "book_detail"
    assert view.context["title"] == "The Book"
    assert book.author.name == "Doe, Pat"
    assert {g.id for g in book.genres} == {g1, g2}
    assert {g.name for g in book.genres} == {"Fantasy", "Poetry"}
    assert view.context["book_instances"] == []


@pytest.mark.parametrize("genre, expected_count", [(None, 0), ("single", 1), ("many", 3)])
def test_create_genre_field_shapes(store, catalog, genre, expected_count):
    data = _form(catalog["author"])
    if genre == "single":
        data["genre"] = catalog["genres"][0]
    elif genre == "many":
        data["genre"] = list(catalog["genres"])

    outcome = asyncio.run(BookService(store).create_post(data))

    doc = asyncio.run(store.find_by_id("books", _id_from(outcome)))
    assert len(doc["genre"]) == expected_count


def test_create_invalid_marks_selected_genres(store, catalog):
    g1 = catalog["genres"][0]
    outcome = asyncio.run(BookService(store).create_post({"author": catalog["author"], "genre": g1}))

    assert isinstance(outcome, ViewModel)
    assert outcome.template == "book_form"
    assert len(outcome.context["errors"]) == 3
    checked = {choice.genre.id: choice.is_selected for choice in outcome.context["genres"]}
    assert checked[g1] is True
    assert sum(checked.values()) == 1
    assert [a.name for a in outcome.context["authors"]] == ["Doe, Pat"]
    assert asyncio.run(store.count("books")) == 0


def test_create_get_offers_reference_data(store, catalog):
    view = asyncio.run(BookService(store).create_get())
    assert [choice.genre.name for choice in view.context["genres"]] == ["Drama", "Fantasy", "Poetry"]
    assert not any(choice.is_selected for choice in view.context["genres"])


def test_detail_missing(store):
    with pytest.raises(NotFoundError):
        asyncio.run(BookService(store).detail("missing"))


def test_update_get_marks_current_genres(store, catalog):
    g1, _, g3 = catalog["genres"]
    service = BookService(store)
    book_id = _id_from(asyncio.run(service.create_post(_form(catalog["author"], genre=[g1, g3]))))

    view = asyncio.run(service.update_get(book_id))

    assert view.context["title"] == "Update Book"
    selected = {choice.genre.id for choice in view.context["genres"] if choice.is_selected}
    assert selected == {g1, g3}


def test_update_replaces_genres(store, catalog):
    g1, g2, g3 = catalog["genres"]
    service = BookService(store)
    book_id = _id_from(asyncio.run(service.create_post(_form(catalog["author"], genre=[g1, g2]))))

    outcome = asyncio.run(service.update_post(book_id, _form(catalog["author"], title="Renamed", genre=g3)))

    assert outcome == Redirect(f"/catalog/book/{book_id}")
    doc = asyncio.run(store.find_by_id("books", book_id))
    assert doc["title"] == "Renamed"
    assert doc["genre"] == [g3]


def test_update_clears_genres_when_none_checked(store, catalog):
    service = BookService(store)
    book_id = _id_from(asyncio.run(service.create_post(_form(catalog["author"], genre=catalog["genres"]))))

    asyncio.run(service.update_post(book_id, _form(catalog["author"])))

    assert asyncio.run(store.find_by_id("books", book_id))["genre"] == []


def test_update_missing_book(store, catalog):
    with pytest.raises(NotFoundError):
        asyncio.run(BookService(store).update_post("missing", _form(catalog["author"])))


def test_list_sorted_with_authors(store, catalog):
    service = BookService(store)
    asyncio.run(service.create_post(_form(catalog["author"], title="Zebra")))
    asyncio.run(service.create_post(_form(catalog["author"], title="Apple")))

    view = asyncio.run(service.list())
    assert [entry.book.title for entry in view.context["book_list"]] == ["Apple", "Zebra"]
    assert all(entry.author.name == "Doe, Pat" for entry in view.context["book_list"])


def test_delete_blocked_by_copies(store, catalog):
    service = BookService(store)
    book_id = _id_from(asyncio.run(service.create_post(_form(catalog["author"]))))
    asyncio.run(store.insert("bookinstances", {"book": book_id, "imprint": "Penguin", "status": "Loaned"}))

    view = asyncio.run(service.delete_get(book_id))
    assert view.template == "book_delete"
    assert len(view.context["book_instances"]) == 1

    outcome = asyncio.run(service.delete_post(book_id))

    assert isinstance(outcome, ViewModel)
    assert outcome.template == "book_delete"
    assert outcome.context["book"].book.id == book_id
    assert [copy.imprint for copy in outcome.context["book_instances"]] == ["Penguin"]
    assert asyncio.run(store.count("books")) == 1
    assert asyncio.run(store.count("bookinstances")) == 1


def test_delete_book_without_copies(store, catalog):
    service = BookService(store)
    book_id = _id_from(asyncio.run(service.create_post(_form(catalog["author"]))))

    assert asyncio.run(service.delete_post(book_id)) == Redirect("/catalog/books")
    assert asyncio.run(store.count("books")) == 0


def test_delete_missing_book_redirects(store):
    assert asyncio.run(BookService(store).delete_get("missing")) == Redirect("/catalog/books")
    assert asyncio.run(BookService(store).delete_post("missing")) == Redirect("/catalog/books")


def test_index_counts(store, catalog):
    book_id = _id_from(asyncio.run(BookService(store).create_post(_form(catalog["author"]))))
    asyncio.run(store.insert("bookinstances", {"book": book_id, "imprint": "A", "status": "Available"}))
    asyncio.run(store.insert("bookinstances", {"book": book_id, "imprint": "B", "status": "Loaned"}))

    view = asyncio.run(BookService(store).index())

    assert view.template == "index"
    assert view.context["book_count"] == 1
    assert view.context["book_instance_count"] == 2
    assert view.context["book_instance_available_count"] == 1
    assert view.context["author_count"] == 1
    assert view.context["genre_count"] == 3
