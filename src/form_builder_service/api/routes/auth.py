from __future__ import annotations

from typing import Any, Dict

from fastapi import APIRouter, Depends

from form_builder_service import auth
from form_builder_service.api.deps import current_user, get_db
from form_builder_service.schemas import SignInRequest, SignUpRequest
from form_builder_service.store import FormStore, Record

router = APIRouter(prefix="/api/auth", tags=["auth"])


@router.post("/signup", status_code=201)
def signup(body: SignUpRequest, store: FormStore = Depends(get_db)) -> Dict[str, Any]:
    return {"ok": True, **auth.sign_up(store, email=body.email, password=body.password, name=body.name)}


@router.post("/signin")
def signin(body: SignInRequest, store: FormStore = Depends(get_db)) -> Dict[str, Any]:
    return {"ok": True, **auth.sign_in(store, email=body.email, password=body.password)}


@router.get("/me")
def me(user: Record = Depends(current_user)) -> Dict[str, Any]:
    return {"ok": True, "user": auth.public_user(user)}
