from uuid import uuid4

import pytest
from fastapi.testclient import TestClient

import api as api_module


@pytest.fixture
def client(lib):
    api_module.app.dependency_overrides[api_module.get_library] = lambda: lib
    try:
        yield TestClient(api_module.app)
    finally:
        api_module.app.dependency_overrides.clear()


def test_health(client):
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "healthy"
    assert response.json()["timestamp"].endswith("+00:00")


def test_get_book(client, catalog):
    response = client.get(f"/books/{catalog['pride'].id}")
    assert response.status_code == 200
    body = response.json()
    assert body["title"] == "Pride and Prejudice"
    assert body["author_name"] == "Jane Austen"
    assert body["is_available"] is True


def test_get_book_not_found(client):
    response = client.get(f"/books/{uuid4()}")
    assert response.status_code == 404


def test_get_book_with_malformed_id(client):
    response = client.get("/books/not-a-uuid")
    assert response.status_code == 400
    assert response.json()["detail"]["errors"][0]["field"] == "book_id"


def test_borrow_book(client, catalog, outbox):
    payload = {"bookId": str(catalog["pride"].id), "memberId": str(catalog["member"].id)}
    response = client.post("/books/borrow", json=payload)
    assert response.status_code == 204
    assert response.content == b""
    assert client.get(f"/books/{catalog['pride'].id}").json()["is_available"] is False
    assert len(outbox.outbox) == 1


def test_borrow_unavailable_book_is_bad_request(client, catalog):
    payload = {"bookId": str(catalog["pride"].id), "memberId": str(catalog["member"].id)}
    client.post("/books/borrow", json=payload)
    response = client.post("/books/borrow", json=payload)
    assert response.status_code == 400
    assert "not available" in response.json()["detail"]["error"]


def test_borrow_validation_errors(client):
    response = client.post("/books/borrow", json={"bookId": "nope"})
    assert response.status_code == 400
    fields = [e["field"] for e in response.json()["detail"]["errors"]]
    assert fields == ["bookId", "memberId"]


def test_borrow_without_body(client):
    response = client.post("/books/borrow")
    assert response.status_code == 400


def test_borrow_unknown_member(client, catalog):
    payload = {"bookId": str(catalog["pride"].id), "memberId": str(uuid4())}
    response = client.post("/books/borrow", json=payload)
    assert response.status_code == 404


def test_borrow_unexpected_error_hides_details(client, lib, monkeypatch, catalog):
    def boom(*args, **kwargs):
        raise RuntimeError("database exploded")

    monkeypatch.setattr(lib, "borrow_book", boom)
    payload = {"bookId": str(catalog["pride"].id), "memberId": str(catalog["member"].id)}
    response = client.post("/books/borrow", json=payload)
    assert response.status_code == 500
    assert response.json() == {"detail": {"error": "An unexpected error occurred."}}


def test_return_book(client, catalog):
    payload = {"bookId": str(catalog["pride"].id), "memberId": str(catalog["member"].id)}
    assert client.post("/books/return", json=payload).status_code == 404
    client.post("/books/borrow", json=payload)
    assert client.post("/books/return", json=payload).status_code == 204
    assert client.get(f"/books/{catalog['pride'].id}").json()["is_available"] is True


def test_authors(client, catalog):
    response = client.get("/authors")
    assert response.status_code == 200
    assert [a["full_name"] for a in response.json()] == ["Jane Austen"]

    author_id = catalog["author"].id
    response = client.get(f"/authors/{author_id}")
    assert response.status_code == 200
    assert response.json()["biography"] == "English novelist"

    assert client.get(f"/authors/{uuid4()}").status_code == 404
