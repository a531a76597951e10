"""
Item repository: durable item records and their categories.

Two interchangeable implementations sit behind ``ItemRepository``:

  - ``SqlItemRepository``: normalized ``categories`` / ``items`` tables. The
    category is resolved (or lazily created) in the same transaction as the
    item insert, so an item never points at a missing category.
  - ``JsonItemRepository``: a single JSON array file with the category kept as
    a plain string. Every write replaces the file atomically.

``make_repository`` picks one from settings. All operations are synchronous,
raise ``item_catalog.errors`` types and accept an optional ``cancel`` event.
"""
from __future__ import annotations

import json
import os
import tempfile
import threading
from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path
from typing import Any, List, Optional, Union

from sqlalchemy import String, func
from sqlalchemy.engine import Engine
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlmodel import Session, col, select

from item_catalog.db import IMMEDIATE
from item_catalog.errors import (
    CategoryNotFound,
    ItemNotFound,
    StorageError,
    ValidationInputMissing,
)
from item_catalog.models import Category, Item
from item_catalog.util.cancel import check_cancelled
from item_catalog.util.text import normalize_label


@dataclass(frozen=True)
class CatalogItem:
    """An item as seen by callers: category is the display name, not its id."""
    id: int
    name: str
    category: str
    image_name: str


def _require(value: Optional[str], field_name: str) -> str:
    if value is None or not str(value).strip():
        raise ValidationInputMissing(field_name)
    return value


class ItemRepository(ABC):
    @abstractmethod
    def insert(
        self, name: str, category: str, image_name: str, *, cancel: Optional[threading.Event] = None
    ) -> CatalogItem:
        """Persist a new item and return it with id and canonical category filled in."""

    @abstractmethod
    def load_items(self, *, cancel: Optional[threading.Event] = None) -> List[CatalogItem]:
        """All items in insertion order."""

    @abstractmethod
    def get_item_by_id(self, item_id: int, *, cancel: Optional[threading.Event] = None) -> CatalogItem:
        """Item with the given stored id; raises ItemNotFound."""

    @abstractmethod
    def search_items_by_name(
        self, keyword: str, *, cancel: Optional[threading.Event] = None
    ) -> List[CatalogItem]:
        """Items whose name contains ``keyword`` ignoring case. Empty keyword matches all."""

    @abstractmethod
    def list_categories(self, *, cancel: Optional[threading.Event] = None) -> List[str]:
        """Known category names in creation order."""


# ---- SQL-backed ----

# signed 64-bit INTEGER range
SQL_MIN_ID = -(2 ** 63)
SQL_MAX_ID = 2 ** 63 - 1


class SqlItemRepository(ItemRepository):
    def __init__(self, engine: Engine, auto_create_categories: bool = True):
        self.engine = engine
        self.auto_create_categories = auto_create_categories

    def _select_items(self):
        return (
            select(Item.id, Item.name, Category.name.label("category"), Item.image_name)
            .join(Category, Category.id == Item.category_id)
            .order_by(Item.id)
        )

    def _fetch(self, operation: str, stmt, cancel: Optional[threading.Event]) -> List[CatalogItem]:
        check_cancelled(cancel, operation)
        try:
            with Session(self.engine) as session:
                rows = session.exec(stmt).all()
        except SQLAlchemyError as e:
            raise StorageError(operation, e) from e
        return [CatalogItem(id=r[0], name=r[1], category=r[2], image_name=r[3]) for r in rows]

    def _resolve_category(self, session: Session, label: str) -> Category:
        category = session.exec(select(Category).where(Category.name == label)).first()
        if category is not None:
            return category
        if not self.auto_create_categories:
            raise CategoryNotFound(label)
        try:
            with session.begin_nested():
                category = Category(name=label)
                session.add(category)
        except IntegrityError:
            # another writer created it between our lookup and insert
            category = session.exec(select(Category).where(Category.name == label)).one()
        return category

    def _add_item(self, session: Session, name: str, category_id: int, image_name: str) -> Item:
        item = Item(name=name, category_id=category_id, image_name=image_name)
        session.add(item)
        session.flush()
        return item

    def insert(
        self, name: str, category: str, image_name: str, *, cancel: Optional[threading.Event] = None
    ) -> CatalogItem:
        _require(name, "name")
        label = normalize_label(_require(category, "category"))
        _require(image_name, "image_name")
        check_cancelled(cancel, "insert")

        try:
            with Session(self.engine) as session:
                # take the write lock before reading the category
                session.connection(execution_options={IMMEDIATE: True})
                cat = self._resolve_category(session, label)
                item = self._add_item(session, name, cat.id, image_name)
                out = CatalogItem(id=item.id, name=item.name, category=cat.name, image_name=item.image_name)
                check_cancelled(cancel, "insert")
                session.commit()
        except SQLAlchemyError as e:
            raise StorageError("insert", e) from e
        return out

    def load_items(self, *, cancel: Optional[threading.Event] = None) -> List[CatalogItem]:
        return self._fetch("load_items", self._select_items(), cancel)

    def get_item_by_id(self, item_id: int, *, cancel: Optional[threading.Event] = None) -> CatalogItem:
        if not SQL_MIN_ID <= item_id <= SQL_MAX_ID:
            # cannot be bound as an INTEGER, so no row can have it
            check_cancelled(cancel, "get_item_by_id")
            raise ItemNotFound(item_id)
        rows = self._fetch("get_item_by_id", self._select_items().where(Item.id == item_id), cancel)
        if not rows:
            raise ItemNotFound(item_id)
        return rows[0]

    def search_items_by_name(
        self, keyword: str, *, cancel: Optional[threading.Event] = None
    ) -> List[CatalogItem]:
        keyword = keyword or ""
        if self.engine.dialect.name == "sqlite":
            folded = func.casefold(Item.name, type_=String)
            stmt = self._select_items().where(folded.contains(keyword.casefold(), autoescape=True))
        else:
            stmt = self._select_items().where(col(Item.name).icontains(keyword, autoescape=True))
        return self._fetch("search_items_by_name", stmt, cancel)

    def list_categories(self, *, cancel: Optional[threading.Event] = None) -> List[str]:
        check_cancelled(cancel, "list_categories")
        try:
            with Session(self.engine) as session:
                return list(session.exec(select(Category.name).order_by(Category.id)).all())
        except SQLAlchemyError as e:
            raise StorageError("list_categories", e) from e


# ---- JSON-backed ----

class JsonItemRepository(ItemRepository):
    """
    File layout: a JSON array of ``{"id", "name", "category", "image"}`` objects.

    Writers hold a process-local lock for the whole read-modify-write cycle and
    publish with write-temp + fsync + os.replace; readers never see a partial file.
    """

    def __init__(self, path: Union[str, Path]):
        self.path = Path(path)
        self._lock = threading.Lock()

    def _load(self, operation: str) -> List[CatalogItem]:
        try:
            with self.path.open("r", encoding="utf-8") as f:
                raw = json.load(f)
        except FileNotFoundError:
            return []
        except (OSError, ValueError) as e:
            raise StorageError(operation, e) from e

        if not isinstance(raw, list):
            raise StorageError(operation, ValueError(f"{self.path}: expected a JSON array"))
        try:
            return [
                CatalogItem(id=int(r["id"]), name=r["name"], category=r["category"], image_name=r["image"])
                for r in raw
            ]
        except (KeyError, TypeError, ValueError) as e:
            raise StorageError(operation, e) from e

    def _dump(self, items: List[CatalogItem]) -> None:
        records: List[dict[str, Any]] = [
            {"id": it.id, "name": it.name, "category": it.category, "image": it.image_name} for it in items
        ]
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(dir=self.path.parent, prefix=f".{self.path.name}.", suffix=".tmp")
        tmp = Path(tmp_name)
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(records, f, ensure_ascii=False, indent=2)
                f.flush()
                os.fsync(f.fileno())
            os.replace(tmp, self.path)
        finally:
            tmp.unlink(missing_ok=True)

    def insert(
        self, name: str, category: str, image_name: str, *, cancel: Optional[threading.Event] = None
    ) -> CatalogItem:
        _require(name, "name")
        label = normalize_label(_require(category, "category"))
        _require(image_name, "image_name")
        check_cancelled(cancel, "insert")

        with self._lock:
            items = self._load("insert")
            next_id = max((it.id for it in items), default=0) + 1
            item = CatalogItem(id=next_id, name=name, category=label, image_name=image_name)
            check_cancelled(cancel, "insert")
            try:
                self._dump(items + [item])
            except OSError as e:
                raise StorageError("insert", e) from e
        return item

    def load_items(self, *, cancel: Optional[threading.Event] = None) -> List[CatalogItem]:
        check_cancelled(cancel, "load_items")
        return self._load("load_items")

    def get_item_by_id(self, item_id: int, *, cancel: Optional[threading.Event] = None) -> CatalogItem:
        check_cancelled(cancel, "get_item_by_id")
        for it in self._load("get_item_by_id"):
            if it.id == item_id:
                return it
        raise ItemNotFound(item_id)

    def search_items_by_name(
        self, keyword: str, *, cancel: Optional[threading.Event] = None
    ) -> List[CatalogItem]:
        check_cancelled(cancel, "search_items_by_name")
        needle = (keyword or "").casefold()
        return [it for it in self._load("search_items_by_name") if needle in it.name.casefold()]

    def list_categories(self, *, cancel: Optional[threading.Event] = None) -> List[str]:
        check_cancelled(cancel, "list_categories")
        return list(dict.fromkeys(it.category for it in self._load("list_categories")))


def make_repository(settings, engine: Optional[Engine] = None) -> ItemRepository:
    """Build the repository selected by ``settings.item_store`` (``sql`` or ``json``)."""
    kind = (settings.item_store or "sql").lower()
    if kind == "json":
        return JsonItemRepository(settings.items_json_path)
    if kind == "sql":
        if engine is None:
            from item_catalog.db import make_engine

            engine = make_engine(settings.database_url)
        return SqlItemRepository(engine, auto_create_categories=settings.auto_create_categories)
    raise ValueError(f"unknown ITEM_STORE: {settings.item_store!r} (expected 'sql' or 'json')")
