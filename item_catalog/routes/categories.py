from __future__ import annotations

from fastapi import APIRouter, Depends

from item_catalog.deps import get_repository
from item_catalog.schemas import CategoryListDTO
from item_catalog.services.repository import ItemRepository

router = APIRouter()


@router.get("/categories", response_model=CategoryListDTO)
def list_categories(repo: ItemRepository = Depends(get_repository)):
    return CategoryListDTO(items=repo.list_categories())
