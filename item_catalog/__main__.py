from __future__ import annotations

import logging

import uvicorn

from item_catalog.settings import settings


def main() -> None:
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    uvicorn.run("item_catalog.main:app", host="0.0.0.0", port=settings.port)


if __name__ == "__main__":
    main()
