from __future__ import annotations

import time
from typing import Any, Dict

from fastapi import APIRouter

from form_builder_service.store import get_store

router = APIRouter(tags=["health"])


@router.get("/health")
async def health() -> Dict[str, Any]:
    return {
        "ok": True,
        "service": "form-builder-service",
        "store": type(get_store()).__name__,
        "ts": int(time.time() * 1000),
    }
