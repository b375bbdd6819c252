from __future__ import annotations

from typing import Any, Dict

import anyio
from fastapi import APIRouter, Body, File, UploadFile
from fastapi.responses import JSONResponse
from starlette.status import HTTP_500_INTERNAL_SERVER_ERROR

from form_builder_service import generation
from form_builder_service.errors import BadRequest
from form_builder_service.forms import parse_body
from form_builder_service.schemas import (
    ChatRequest,
    GenerateFromUrlRequest,
    GenerateFromVoiceRequest,
    GenerateRequest,
    InlineAssistRequest,
)

router = APIRouter(prefix="/api/ai", tags=["ai"])

MAX_IMPORT_BYTES = 5 * 1024 * 1024


def _respond(result: Dict[str, Any]) -> JSONResponse:
    """`{ok: false}` results from the generator are server-side failures."""
    if result.get("ok") is False:
        body = {"message": result.get("error") or "Form generation failed", **result}
        return JSONResponse(status_code=HTTP_500_INTERNAL_SERVER_ERROR, content=body)
    return JSONResponse(content=result)


@router.post("/generate")
async def generate(body: Dict[str, Any] = Body(default_factory=dict)) -> JSONResponse:
    req = parse_body(GenerateRequest, body)
    result = await anyio.to_thread.run_sync(lambda: generation.generate_form(req.prompt, source="prompt"))
    return _respond(result)


@router.post("/generate-from-voice")
async def generate_from_voice(body: Dict[str, Any] = Body(default_factory=dict)) -> JSONResponse:
    req = parse_body(GenerateFromVoiceRequest, body)
    result = await anyio.to_thread.run_sync(lambda: generation.generate_from_transcript(req.transcript))
    return _respond(result)


@router.post("/generate-from-url")
async def generate_from_url(body: Dict[str, Any] = Body(default_factory=dict)) -> JSONResponse:
    req = parse_body(GenerateFromUrlRequest, body)
    result = await anyio.to_thread.run_sync(lambda: generation.generate_from_url(req.url))
    return _respond(result)


@router.post("/inline")
async def inline(body: Dict[str, Any] = Body(default_factory=dict)) -> JSONResponse:
    req = parse_body(InlineAssistRequest, body)
    context = req.context.model_dump(by_alias=True)
    result = await anyio.to_thread.run_sync(lambda: generation.inline_assist(req.action, context))
    return _respond(result)


@router.post("/chat")
async def chat(body: Dict[str, Any] = Body(default_factory=dict)) -> JSONResponse:
    req = parse_body(ChatRequest, body)
    history = [m.model_dump() for m in req.history]
    form_context = req.form_context.model_dump(by_alias=True)
    result = await anyio.to_thread.run_sync(lambda: generation.chat_edit(req.message, history, form_context))
    return _respond(result)


@router.post("/import-file")
async def import_file(file: UploadFile = File(...)) -> JSONResponse:
    content = await file.read()
    if len(content) > MAX_IMPORT_BYTES:
        raise BadRequest("File is too large (max 5MB)")
    filename = file.filename or "upload"
    result = await anyio.to_thread.run_sync(lambda: generation.import_file(filename, content, file.content_type))
    return _respond(result)
