from __future__ import annotations

import hashlib
from pathlib import Path

import pytest
from fastapi.testclient import TestClient

from item_catalog.db import init_db, make_engine
from item_catalog.main import create_app
from item_catalog.services.images import ImageStore
from item_catalog.services.repository import JsonItemRepository, SqlItemRepository
from item_catalog.settings import Settings

# Not a decodable JPEG; the store never looks inside the bytes.
JPEG_BYTES = b"\xff\xd8\xff\xe0" + b"jacket-photo" * 16 + b"\xff\xd9"


def hashed_name(data: bytes) -> str:
    return hashlib.sha256(data).hexdigest() + ".jpg"


@pytest.fixture
def image_dir(tmp_path: Path) -> Path:
    return tmp_path / "images"


@pytest.fixture
def image_store(image_dir: Path) -> ImageStore:
    return ImageStore(image_dir)


@pytest.fixture
def engine(tmp_path: Path):
    eng = make_engine(f"sqlite:///{tmp_path / 'db' / 'test.sqlite3'}")
    init_db(eng)
    yield eng
    eng.dispose()


@pytest.fixture
def repo(engine) -> SqlItemRepository:
    return SqlItemRepository(engine)


@pytest.fixture
def strict_repo(engine) -> SqlItemRepository:
    return SqlItemRepository(engine, auto_create_categories=False)


@pytest.fixture
def json_repo(tmp_path: Path) -> JsonItemRepository:
    return JsonItemRepository(tmp_path / "db" / "items.json")


def make_settings(tmp_path: Path, **overrides) -> Settings:
    values = dict(
        database_url=f"sqlite:///{tmp_path / 'db' / 'app.sqlite3'}",
        items_json_path=tmp_path / "db" / "items.json",
        item_store="sql",
        auto_create_categories=True,
        auto_create_tables=True,
        image_dir=tmp_path / "images",
        front_url="http://localhost:3000",
    )
    values.update(overrides)
    return Settings(**values)


@pytest.fixture
def client(tmp_path: Path):
    with TestClient(create_app(make_settings(tmp_path))) as c:
        yield c
