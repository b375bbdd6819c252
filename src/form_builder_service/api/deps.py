from __future__ import annotations

import logging
from typing import Optional

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from form_builder_service.auth import user_from_token
from form_builder_service.errors import Unauthorized
from form_builder_service.store import FormStore, Record, get_store

logger = logging.getLogger(__name__)

bearer = HTTPBearer(auto_error=False)


def get_db() -> FormStore:
    return get_store()


def optional_user(
    creds: Optional[HTTPAuthorizationCredentials] = Depends(bearer),
    store: FormStore = Depends(get_db),
) -> Optional[Record]:
    """The caller, or None for anonymous requests. A bad token counts as anonymous."""
    if creds is None or not creds.credentials:
        return None
    try:
        return user_from_token(store, creds.credentials)
    except Unauthorized as e:
        logger.info("ignoring bearer token: %s", e.message)
        return None


def current_user(
    creds: Optional[HTTPAuthorizationCredentials] = Depends(bearer),
    store: FormStore = Depends(get_db),
) -> Record:
    if creds is None or not creds.credentials:
        raise Unauthorized("Unauthorized")
    return user_from_token(store, creds.credentials)
