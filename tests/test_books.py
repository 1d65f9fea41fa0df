from datetime import datetime, timedelta


def test_create_book(client, book_payload):
    r = client.post("/api/books", json=book_payload())
    assert r.status_code == 201
    body = r.json()
    assert body["success"] is True
    assert body["message"] == "Book created successfully"
    data = body["data"]
    assert data["title"] == "The Left Hand of Darkness"
    assert data["genre"] == "FICTION"
    assert data["available"] is True
    assert "createdAt" in data and "updatedAt" in data


def test_create_book_defaults_genre_and_trims(client, book_payload):
    payload = book_payload(title="  Dune  ")
    del payload["genre"]
    del payload["available"]
    r = client.post("/api/books", json=payload)
    assert r.status_code == 201
    data = r.json()["data"]
    assert data["title"] == "Dune"
    assert data["genre"] == "FICTION"
    assert data["available"] is True


def test_create_book_validation_error(client, book_payload):
    r = client.post("/api/books", json=book_payload(title="ab", copies=0, genre="POETRY"))
    assert r.status_code == 400
    body = r.json()
    assert body["success"] is False
    assert body["error"]["name"] == "ValidationError"
    failed = {tuple(issue["loc"])[-1] for issue in body["error"]["issues"]}
    assert {"title", "copies", "genre"} <= failed


def test_duplicate_isbn_rejected(client, create_book, book_payload):
    create_book()
    r = client.post("/api/books", json=book_payload(title="Another Title"))
    assert r.status_code == 400
    body = r.json()
    assert body["message"] == "Failed to create book"
    assert body["error"]["name"] == "DuplicateKey"


def test_read_book(client, create_book):
    book = create_book()
    r = client.get(f"/api/books/{book['id']}")
    assert r.status_code == 200
    assert r.json()["message"] == "Book retrieved successfully"
    assert r.json()["data"]["isbn"] == book["isbn"]


def test_read_missing_book(client):
    r = client.get("/api/books/999")
    assert r.status_code == 404
    assert r.json()["success"] is False


def test_list_sorted_by_title_desc(client, create_book):
    for i, title in enumerate(["Middlemarch", "Beloved", "Ulysses"]):
        create_book(title=title, isbn=f"978000000000{i}")
    r = client.get("/api/books", params={"sortBy": "title", "sort": "desc"})
    assert r.status_code == 200
    titles = [b["title"] for b in r.json()["data"]]
    assert titles == ["Ulysses", "Middlemarch", "Beloved"]


def test_list_filter_by_genre(client, create_book):
    create_book(isbn="9780000000001", genre="HISTORY")
    create_book(isbn="9780000000002", genre="SCIENCE")
    create_book(isbn="9780000000003", genre="HISTORY")
    r = client.get("/api/books", params={"filter": "HISTORY"})
    body = r.json()
    assert [b["genre"] for b in body["data"]] == ["HISTORY", "HISTORY"]
    assert body["meta"]["totalItems"] == 2


def test_list_pagination_meta(client, create_book):
    for i in range(5):
        create_book(isbn=f"978111111111{i}", title=f"Volume {i}")
    r = client.get("/api/books", params={"limit": 2, "page": 3})
    body = r.json()
    assert body["message"] == "Books retrieved successfully"
    assert body["meta"] == {
        "totalPages": 3,
        "totalItems": 5,
        "currentPage": 3,
        "totalItemsPerPage": 2,
    }
    assert [b["title"] for b in body["data"]] == ["Volume 4"]


def test_list_rejects_unknown_sort_field(client):
    r = client.get("/api/books", params={"sortBy": "price"})
    assert r.status_code == 400
    assert r.json()["message"] == "Error retrieving books details"


def test_update_book(client, create_book, book_payload):
    book = create_book()
    r = client.put(f"/api/books/{book['id']}",
                   json=book_payload(title="The Dispossessed", copies=7))
    assert r.status_code == 200
    data = r.json()["data"]
    assert data["title"] == "The Dispossessed"
    assert data["copies"] == 7


def test_update_book_isbn_clash(client, create_book, book_payload):
    create_book(isbn="9780000000001")
    other = create_book(isbn="9780000000002")
    r = client.put(f"/api/books/{other['id']}", json=book_payload(isbn="9780000000001"))
    assert r.status_code == 400
    assert r.json()["message"] == "Failed to update the book details"


def test_delete_book(client, create_book):
    book = create_book()
    r = client.delete(f"/api/books/{book['id']}")
    assert r.status_code == 200
    assert r.json() == {"success": True, "message": "Book deleted successfully", "data": None}
    assert client.get(f"/api/books/{book['id']}").status_code == 404


def test_delete_missing_book(client):
    r = client.delete("/api/books/42")
    assert r.status_code == 404
    assert r.json()["message"] == "Failed to delete book details"


def test_list_empty_query_values_mean_defaults(client, create_book):
    create_book(isbn="9780000000001", genre="HISTORY")
    create_book(isbn="9780000000002", genre="SCIENCE")
    r = client.get("/api/books?filter=&sort=asc&sortBy=&limit=&page=")
    assert r.status_code == 200
    body = r.json()
    assert body["meta"]["totalItems"] == 2
    assert body["meta"]["currentPage"] == 1
    assert body["meta"]["totalItemsPerPage"] == 10


def test_list_rejects_unknown_genre(client):
    r = client.get("/api/books", params={"filter": "POETRY"})
    assert r.status_code == 400
    assert r.json()["error"]["name"] == "InvalidGenre"


def test_list_any_sort_other_than_asc_is_descending(client, create_book):
    for i, title in enumerate(["Middlemarch", "Beloved", "Ulysses"]):
        create_book(title=title, isbn=f"978000000000{i}")
    r = client.get("/api/books", params={"sortBy": "title", "sort": "DOWN"})
    assert r.status_code == 200
    assert [b["title"] for b in r.json()["data"]] == ["Ulysses", "Middlemarch", "Beloved"]


def test_timestamps_are_utc(client, create_book):
    book = create_book()
    created = datetime.fromisoformat(book["createdAt"].replace("Z", "+00:00"))
    assert created.utcoffset() == timedelta(0)
