from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path


def _env(name: str, default: str) -> str:
    v = os.environ.get(name)
    return v if v is not None and v != "" else default


@dataclass(frozen=True)
class Settings:
    # Store
    database_url: str = _env("DATABASE_URL", "sqlite:///./db/mercari.sqlite3")
    items_json_path: Path = Path(_env("ITEMS_JSON_PATH", "./db/items.json"))
    item_store: str = _env("ITEM_STORE", "sql")  # sql / json

    # true: unknown category labels are created on first use; false: must be seeded
    auto_create_categories: bool = _env("AUTO_CREATE_CATEGORIES", "true").lower() in ("1", "true", "yes")

    # Dev convenience: create tables on startup (prod uses Alembic)
    auto_create_tables: bool = _env("AUTO_CREATE_TABLES", "true").lower() in ("1", "true", "yes")

    # Images
    image_dir: Path = Path(_env("IMAGE_DIR", "./images")).resolve()

    # Web
    app_name: str = _env("APP_NAME", "item-catalog-api")
    front_url: str = _env("FRONT_URL", "http://localhost:3000")  # comma-separated, "*" for dev
    port: int = int(_env("PORT", "9000"))
    log_level: str = _env("LOG_LEVEL", "INFO")


settings = Settings()
