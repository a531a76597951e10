from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, File, Form, Query, UploadFile

from item_catalog.deps import get_image_store, get_repository
from item_catalog.schemas import AddItemResponse, HelloDTO, ItemDTO, ItemListDTO
from item_catalog.services.images import ImageStore
from item_catalog.services.repository import ItemRepository
from item_catalog.util.errors import api_error, missing_field

MAX_IMAGE_BYTES = 10 * 1024 * 1024  # 10MB

router = APIRouter()


@router.get("/", response_model=HelloDTO)
def hello():
    return HelloDTO(message="Hello, world!")


@router.get("/items", response_model=ItemListDTO)
def list_items(repo: ItemRepository = Depends(get_repository)):
    return ItemListDTO(items=[ItemDTO.model_validate(it) for it in repo.load_items()])


@router.post("/items", response_model=AddItemResponse)
def add_item(
    name: str = Form(""),
    category: str = Form(""),
    image: Optional[UploadFile] = File(None),
    repo: ItemRepository = Depends(get_repository),
    images: ImageStore = Depends(get_image_store),
):
    if not name.strip():
        raise missing_field("name")
    if not category.strip():
        raise missing_field("category")
    if image is None:
        raise missing_field("image")

    data = image.file.read(MAX_IMAGE_BYTES + 1)
    if not data:
        raise missing_field("image")
    if len(data) > MAX_IMAGE_BYTES:
        raise api_error(413, "FILE_TOO_LARGE", f"file too large (>{MAX_IMAGE_BYTES} bytes)")

    image_name = images.store(data)
    item = repo.insert(name, category, image_name)
    return AddItemResponse(item=ItemDTO.model_validate(item))


@router.get("/items/{item_id}", response_model=ItemDTO)
def get_item(item_id: int, repo: ItemRepository = Depends(get_repository)):
    return ItemDTO.model_validate(repo.get_item_by_id(item_id))


@router.get("/search", response_model=ItemListDTO)
def search_items(
    keyword: str = Query(""),
    repo: ItemRepository = Depends(get_repository),
):
    if not keyword:
        raise missing_field("keyword")
    return ItemListDTO(items=[ItemDTO.model_validate(it) for it in repo.search_items_by_name(keyword)])
