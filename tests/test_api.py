import asyncio


def test_health(client):
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "healthy"


def test_catalog_index(client):
    response = client.get("/catalog")
    assert response.status_code == 200
    body = response.json()
    assert body["template"] == "index"
    assert body["context"]["book_count"] == 0


def test_genre_create_redirects_to_detail(client, store):
    response = client.post("/catalog/genre/create", data={"name": "Fantasy"}, follow_redirects=False)
    assert response.status_code == 303
    location = response.headers["location"]
    assert location.startswith("/catalog/genre/")

    detail = client.get(location)
    assert detail.status_code == 200
    assert detail.json()["context"]["genre"]["name"] == "Fantasy"


def test_genre_create_case_variant_goes_to_existing(client, store):
    first = client.post("/catalog/genre/create", data={"name": "Fantasy"}, follow_redirects=False)
    second = client.post("/catalog/genre/create", data={"name": "FANTASY"}, follow_redirects=False)
    assert second.headers["location"] == first.headers["location"]
    assert asyncio.run(store.count("genres")) == 1


def test_genre_create_invalid_shows_errors(client):
    response = client.post("/catalog/genre/create", data={"name": "x"})
    assert response.status_code == 200
    body = response.json()
    assert body["template"] == "genre_form"
    assert body["context"]["errors"][0]["msg"] == "Genre name must contain at least 3 characters"


def test_missing_detail_is_404(client):
    response = client.get("/catalog/book/doesnotexist")
    assert response.status_code == 404
    assert response.json()["template"] == "error"
    assert response.json()["context"]["message"] == "Book not found"


def test_author_update_not_implemented(client):
    assert client.get("/catalog/author/abc/update").status_code == 501
    assert client.post("/catalog/author/abc/update", data={"first_name": "A"}).status_code == 501


def test_book_create_with_checkbox_genres(client, store):
    author_id = asyncio.run(store.insert("authors", {"first_name": "Pat", "family_name": "Doe"}))
    g1 = asyncio.run(store.insert("genres", {"name": "Fantasy"}))
    g2 = asyncio.run(store.insert("genres", {"name": "Poetry"}))

    response = client.post("/catalog/book/create", data={
        "title": "The Book", "author": author_id, "summary": "S", "isbn": "123", "genre": [g1, g2],
    }, follow_redirects=False)
    assert response.status_code == 303

    detail = client.get(response.headers["location"]).json()["context"]["book"]
    assert detail["author"]["name"] == "Doe, Pat"
    assert {g["name"] for g in detail["genre"]} == {"Fantasy", "Poetry"}


def test_author_delete_blocked_then_allowed(client, store):
    author_id = asyncio.run(store.insert("authors", {"first_name": "Pat", "family_name": "Doe"}))
    book_id = asyncio.run(store.insert("books", {
        "title": "B", "author": author_id, "summary": "S", "isbn": "1", "genre": [],
    }))

    blocked = client.post(f"/catalog/author/{author_id}/delete", follow_redirects=False)
    assert blocked.status_code == 200
    assert blocked.json()["template"] == "author_delete"
    assert [b["title"] for b in blocked.json()["context"]["author_books"]] == ["B"]

    client.post(f"/catalog/book/{book_id}/delete", follow_redirects=False)
    allowed = client.post(f"/catalog/author/{author_id}/delete", follow_redirects=False)
    assert allowed.status_code == 303
    assert allowed.headers["location"] == "/catalog/authors"


def test_author_detail_presents_derived_fields(client, store):
    response = client.post("/catalog/author/create", data={
        "first_name": "Pat", "family_name": "Doe", "date_of_birth": "1980-01-01",
    }, follow_redirects=False)
    author = client.get(response.headers["location"]).json()["context"]["author"]
    assert author["name"] == "Doe, Pat"
    assert author["lifespan"] == "Jan 1, 1980 - "
    assert author["url"] == response.headers["location"]


def test_bookinstance_form_lists_status_choices(client):
    body = client.get("/catalog/bookinstance/create").json()
    assert body["context"]["status_choices"] == ["Available", "Maintenance", "Loaned", "Reserved"]


def test_book_delete_blocked_by_copies(client, store):
    book_id = asyncio.run(store.insert("books", {
        "title": "B", "author": "a1", "summary": "S", "isbn": "1", "genre": [],
    }))
    asyncio.run(store.insert("bookinstances", {"book": book_id, "imprint": "Penguin", "status": "Loaned"}))

    response = client.post(f"/catalog/book/{book_id}/delete", follow_redirects=False)

    assert response.status_code == 200
    assert response.json()["template"] == "book_delete"
    assert [c["imprint"] for c in response.json()["context"]["book_instances"]] == ["Penguin"]
    assert asyncio.run(store.count("bookinstances")) == 1
