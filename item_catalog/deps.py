from __future__ import annotations

from fastapi import Request

from item_catalog.services.images import ImageStore
from item_catalog.services.repository import ItemRepository


def get_repository(request: Request) -> ItemRepository:
    return request.app.state.repository


def get_image_store(request: Request) -> ImageStore:
    return request.app.state.image_store
