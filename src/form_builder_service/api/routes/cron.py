from __future__ import annotations

import hmac
from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends
from fastapi.security import HTTPAuthorizationCredentials

from form_builder_service.api.deps import bearer, get_db
from form_builder_service.closures import check_closures
from form_builder_service.config import get_settings
from form_builder_service.errors import Unauthorized
from form_builder_service.store import FormStore

router = APIRouter(prefix="/api/cron", tags=["cron"])


@router.get("/check-closures")
def check_form_closures(
    creds: Optional[HTTPAuthorizationCredentials] = Depends(bearer),
    store: FormStore = Depends(get_db),
) -> Dict[str, Any]:
    secret = get_settings().cron_secret
    if secret:
        given = creds.credentials if creds else ""
        if not hmac.compare_digest(given.encode("utf-8"), secret.encode("utf-8")):
            raise Unauthorized("Unauthorized")
    return {"ok": True, **check_closures(store)}
