"""Translate reward engine errors into HTTP responses."""

from __future__ import annotations

from typing import NoReturn

from fastapi import HTTPException

from snapbag_api.services.errors import RewardEngineError


def error_detail(error: RewardEngineError) -> dict[str, str]:
    return {"code": error.code, "message": error.message}


def raise_http_error(error: RewardEngineError) -> NoReturn:
    raise HTTPException(status_code=error.status_code, detail=error_detail(error)) from error
