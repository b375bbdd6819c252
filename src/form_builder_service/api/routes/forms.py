from __future__ import annotations

import time
from typing import Any, AsyncIterator, Dict, Optional

import anyio
from fastapi import APIRouter, Body, Depends, Query, Request
from fastapi.responses import StreamingResponse

from form_builder_service import forms
from form_builder_service.access import require_member
from form_builder_service.api.deps import current_user, get_db, optional_user
from form_builder_service.api.utils import sse, sse_comment, sse_padding
from form_builder_service.auth import user_from_token
from form_builder_service.config import env_int
from form_builder_service.realtime import form_channel, get_broker
from form_builder_service.store import FormStore, Record

router = APIRouter(prefix="/api/forms", tags=["forms"])


@router.post("")
def create_form(
    body: Dict[str, Any] = Body(default_factory=dict),
    store: FormStore = Depends(get_db),
    user: Optional[Record] = Depends(optional_user),
) -> Dict[str, Any]:
    form = forms.create_form(store, body, user)
    return {"ok": True, "id": form["id"]}


@router.get("/my-forms")
def my_forms(store: FormStore = Depends(get_db), user: Record = Depends(current_user)) -> Dict[str, Any]:
    return {"ok": True, **forms.my_forms(store, user)}


@router.get("/{form_id}")
def get_form(form_id: str, store: FormStore = Depends(get_db)) -> Dict[str, Any]:
    return {"ok": True, "form": forms.public_form(store, form_id)}


@router.put("/{form_id}")
@router.patch("/{form_id}")
def update_form(
    form_id: str,
    body: Dict[str, Any] = Body(default_factory=dict),
    store: FormStore = Depends(get_db),
    user: Optional[Record] = Depends(optional_user),
) -> Dict[str, Any]:
    return {"ok": True, "form": forms.update_form(store, form_id, body, user)}


@router.delete("/{form_id}")
def delete_form(
    form_id: str,
    store: FormStore = Depends(get_db),
    user: Optional[Record] = Depends(optional_user),
) -> Dict[str, Any]:
    forms.delete_form(store, form_id, user)
    return {"ok": True}


@router.post("/{form_id}/sync")
def sync_form(
    form_id: str,
    body: Dict[str, Any] = Body(default_factory=dict),
    store: FormStore = Depends(get_db),
    user: Optional[Record] = Depends(optional_user),
) -> Dict[str, Any]:
    return {"ok": True, "form": forms.sync_form(store, form_id, body, user)}


@router.get("/{form_id}/events")
async def form_events(
    form_id: str,
    request: Request,
    token: Optional[str] = Query(default=None),
    store: FormStore = Depends(get_db),
    user: Optional[Record] = Depends(optional_user),
) -> StreamingResponse:
    """
    Streaming endpoint (SSE) for the form's real-time channel.

    EventSource cannot send headers, so the bearer token may also be passed as `?token=`.
    """

    def _authorize() -> None:
        caller = user if user is not None or not token else user_from_token(store, token)
        require_member(store, form_id, caller)

    await anyio.to_thread.run_sync(_authorize)
    channel = form_channel(form_id)
    heartbeat = max(1, env_int("FORM_API_SSE_HEARTBEAT_SEC", 15))

    async def gen() -> AsyncIterator[str]:
        yield sse_padding(2048)
        yield sse("open", {"channel": channel, "ts": int(time.time() * 1000)})
        async for message in get_broker().stream(channel, heartbeat_sec=heartbeat):
            if await request.is_disconnected():
                break
            if message is None:
                yield sse_comment("keep-alive")
                continue
            yield sse(message["event"], message["data"])

    return StreamingResponse(
        gen(),
        media_type="text/event-stream",
        headers={
            "Cache-Control": "no-cache",
            "Connection": "keep-alive",
            "X-Accel-Buffering": "no",
        },
    )
