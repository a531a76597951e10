from __future__ import annotations

import logging

from fastapi import APIRouter, Depends
from fastapi.responses import FileResponse

from item_catalog.deps import get_image_store
from item_catalog.services.images import ImageStore

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/images/{filename:path}")
def get_image(filename: str, images: ImageStore = Depends(get_image_store)):
    # InvalidPath / InvalidExtension propagate to the CatalogError handler (400)
    path = images.resolve(filename)
    if path == images.default_path and filename != path.name:
        logger.debug(f"image not found, serving default: {filename}")
    return FileResponse(path, media_type="image/jpeg")
