from __future__ import annotations

from typing import List

from pydantic import BaseModel, ConfigDict


class HelloDTO(BaseModel):
    message: str


class ItemDTO(BaseModel):
    model_config = ConfigDict(from_attributes=True)
    id: int
    name: str
    category: str
    image_name: str


class ItemListDTO(BaseModel):
    items: List[ItemDTO]


class AddItemResponse(BaseModel):
    item: ItemDTO


class CategoryListDTO(BaseModel):
    items: List[str]
