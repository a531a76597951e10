from __future__ import annotations

from fastapi import HTTPException

from item_catalog.errors import ValidationInputMissing


def api_error(status_code: int, code: str, message: str, details=None) -> HTTPException:
    """
    HTTPException with a structured detail payload; main.py wraps it into the error envelope.
    """
    return HTTPException(status_code=status_code, detail={"code": code, "message": message, "details": details})


def missing_field(field_name: str) -> HTTPException:
    err = ValidationInputMissing(field_name)
    return api_error(err.status_code, err.code, err.message, err.details)
