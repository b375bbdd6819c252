from __future__ import annotations

from typing import Any, Dict

from fastapi import APIRouter, Depends

from form_builder_service.api.deps import get_db
from form_builder_service.forms import embed_view
from form_builder_service.store import FormStore

router = APIRouter(prefix="/api/embed", tags=["embed"])


@router.get("/{form_id}")
def embed(form_id: str, store: FormStore = Depends(get_db)) -> Dict[str, Any]:
    return {"ok": True, "form": embed_view(store, form_id)}
