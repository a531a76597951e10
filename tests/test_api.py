from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from item_catalog.main import create_app

from conftest import JPEG_BYTES, hashed_name, make_settings


def _post_item(client: TestClient, name="jacket", category="fashion", image=JPEG_BYTES):
    files = {"image": ("photo.jpg", image, "image/jpeg")} if image is not None else None
    return client.post("/items", data={"name": name, "category": category}, files=files)


def test_hello(client: TestClient):
    res = client.get("/")
    assert res.status_code == 200
    assert res.json() == {"message": "Hello, world!"}


def test_health(client: TestClient):
    res = client.get("/health")
    assert res.status_code == 200
    assert res.json()["status"] == "ok"


def test_add_item_and_list(client: TestClient):
    res = _post_item(client)
    assert res.status_code == 200
    assert res.json() == {
        "item": {"id": 1, "name": "jacket", "category": "fashion", "image_name": hashed_name(JPEG_BYTES)}
    }

    res = client.get("/items")
    assert res.status_code == 200
    assert res.json() == {
        "items": [{"id": 1, "name": "jacket", "category": "fashion", "image_name": hashed_name(JPEG_BYTES)}]
    }


def test_list_items_empty(client: TestClient):
    assert client.get("/items").json() == {"items": []}


@pytest.mark.parametrize(
    "kwargs,field",
    [
        ({"name": ""}, "name"),
        ({"category": ""}, "category"),
        ({"image": None}, "image"),
        ({"image": b""}, "image"),
    ],
)
def test_add_item_validation(client: TestClient, kwargs, field):
    res = _post_item(client, **kwargs)
    assert res.status_code == 400
    body = res.json()
    assert body["error"]["code"] == "VALIDATION_ERROR"
    assert body["error"]["details"] == {"field": field}
    assert client.get("/items").json() == {"items": []}


def test_get_item(client: TestClient):
    _post_item(client, name="jacket")
    _post_item(client, name="coat", image=b"other")
    res = client.get("/items/2")
    assert res.status_code == 200
    assert res.json()["name"] == "coat"


def test_get_item_not_found(client: TestClient):
    res = client.get("/items/42")
    assert res.status_code == 404
    assert res.json()["error"]["code"] == "NOT_FOUND"


def test_get_item_bad_id(client: TestClient):
    assert client.get("/items/abc").status_code == 422


def test_search(client: TestClient):
    for name in ("Jacket", "jackets", "Coat"):
        _post_item(client, name=name)
    res = client.get("/search", params={"keyword": "jack"})
    assert res.status_code == 200
    assert [it["name"] for it in res.json()["items"]] == ["Jacket", "jackets"]


def test_search_requires_keyword(client: TestClient):
    res = client.get("/search")
    assert res.status_code == 400
    assert res.json()["error"]["code"] == "VALIDATION_ERROR"


def test_get_stored_image(client: TestClient):
    name = _post_item(client).json()["item"]["image_name"]
    res = client.get(f"/images/{name}")
    assert res.status_code == 200
    assert res.content == JPEG_BYTES
    assert res.headers["content-type"] == "image/jpeg"


def test_missing_image_serves_default(client: TestClient):
    default = client.get("/images/default.jpg")
    assert default.status_code == 200
    res = client.get("/images/missing.jpg")
    assert res.status_code == 200
    assert res.content == default.content


def test_image_extension_rejected(client: TestClient):
    res = client.get("/images/x.png")
    assert res.status_code == 400
    assert res.json()["error"]["code"] == "INVALID_EXTENSION"


def test_image_traversal_rejected(client: TestClient):
    res = client.get("/images/..%2F..%2Fetc%2Fpasswd")
    assert res.status_code == 400
    assert res.json()["error"]["code"] == "INVALID_PATH"


def test_categories(client: TestClient):
    _post_item(client, category="fashion")
    _post_item(client, category="food")
    _post_item(client, category="fashion")
    assert client.get("/categories").json() == {"items": ["fashion", "food"]}


def test_request_id_is_echoed(client: TestClient):
    res = client.get("/", headers={"x-request-id": "abc123"})
    assert res.headers["x-request-id"] == "abc123"


def test_error_envelope_carries_request_id(client: TestClient):
    res = client.get("/items/42", headers={"x-request-id": "rid-1"})
    assert res.json()["request_id"] == "rid-1"


def test_strict_mode_unknown_category_is_server_error(tmp_path):
    app = create_app(make_settings(tmp_path, auto_create_categories=False))
    with TestClient(app) as client:
        res = _post_item(client, category="unheard-of")
        assert res.status_code == 500
        assert res.json()["error"]["code"] == "CATEGORY_NOT_FOUND"
        assert client.get("/items").json() == {"items": []}

        res = _post_item(client, category="fashion")  # seeded at startup
        assert res.status_code == 200


def test_json_store_end_to_end(tmp_path):
    app = create_app(make_settings(tmp_path, item_store="json"))
    with TestClient(app) as client:
        _post_item(client, name="jacket")
        _post_item(client, name="Coat", image=b"coat")
        assert [it["name"] for it in client.get("/items").json()["items"]] == ["jacket", "Coat"]
        assert client.get("/items/2").json()["name"] == "Coat"
        assert client.get("/search", params={"keyword": "COAT"}).json()["items"][0]["id"] == 2
    assert (tmp_path / "db" / "items.json").is_file()


def test_image_name_with_null_byte_rejected(client: TestClient):
    res = client.get("/images/a%00b.jpg")
    assert res.status_code == 400
    assert res.json()["error"]["code"] == "INVALID_PATH"


def test_image_directory_serves_default(client: TestClient, tmp_path):
    (tmp_path / "images" / "album.jpg").mkdir()
    default = client.get("/images/default.jpg")
    res = client.get("/images/album.jpg")
    assert res.status_code == 200
    assert res.content == default.content


def test_get_item_id_beyond_integer_range(client: TestClient):
    res = client.get("/items/99999999999999999999")
    assert res.status_code == 404
    assert res.json()["error"]["code"] == "NOT_FOUND"


def test_module_app_uses_default_settings():
    from fastapi import FastAPI

    from item_catalog import main
    from item_catalog.services.repository import SqlItemRepository
    from item_catalog.settings import settings

    assert isinstance(main.app, FastAPI)
    assert main.app.state.settings is settings
    assert isinstance(main.app.state.repository, SqlItemRepository)
    assert main.app.state.image_store.image_dir == settings.image_dir


def test_engine_creates_database_directory_on_first_connect(tmp_path):
    from sqlalchemy import text

    from item_catalog.db import make_engine

    db_dir = tmp_path / "nested" / "db"
    engine = make_engine(f"sqlite:///{db_dir / 'app.sqlite3'}")
    assert not db_dir.exists()
    with engine.connect() as conn:
        conn.execute(text("SELECT 1"))
    assert db_dir.is_dir()
    engine.dispose()
