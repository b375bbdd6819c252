from __future__ import annotations

import json
import logging
import time
import uuid
from typing import Any, Dict, Iterable, List, Optional, Tuple
from urllib.parse import parse_qsl, urlencode

from starlette.types import ASGIApp, Message, Receive, Scope, Send

from form_builder_service.config import env_bool, env_int

logger = logging.getLogger("api.http")

Headers = Iterable[Tuple[bytes, bytes]]

_SENSITIVE_KEYS = {
    "authorization",
    "cookie",
    "set-cookie",
    "x-api-key",
    "api_key",
    "apikey",
    "access_token",
    "refresh_token",
    "accesstoken",
    "refreshtoken",
    "token",
    "code",
    "secret",
    "password",
    "passwordhash",
    "edittoken",
    "x-webhook-signature",
    "openai_api_key",
    "groq_api_key",
    "resend_api_key",
    "supabase_service_role_key",
}


def _redact(value: Any) -> Any:
    if isinstance(value, dict):
        out: Dict[str, Any] = {}
        for k, v in value.items():
            if str(k).lower() in _SENSITIVE_KEYS:
                out[k] = "***"
            else:
                out[k] = _redact(v)
        return out
    if isinstance(value, list):
        return [_redact(v) for v in value]
    return value


def _redact_query(query: str) -> str:
    pairs = parse_qsl(query, keep_blank_values=True)
    return urlencode([(k, "***" if k.lower() in _SENSITIVE_KEYS else v) for k, v in pairs])


def _header(headers: Optional[Headers], name: bytes) -> str:
    for k, v in headers or []:
        if k.lower() == name:
            return v.decode("latin-1", errors="replace")
    return ""


def _decode_headers(headers: Optional[Headers]) -> Dict[str, str]:
    out: Dict[str, str] = {}
    for k, v in headers or []:
        key = k.decode("latin-1", errors="replace").lower()
        out[key] = "***" if key in _SENSITIVE_KEYS else v.decode("latin-1", errors="replace")
    return out


def _parse_body(content_type: str, body: bytes) -> Any:
    ct = (content_type or "").lower()
    if "application/json" in ct:
        try:
            return _redact(json.loads(body.decode("utf-8", errors="replace")))
        except ValueError:
            return body.decode("utf-8", errors="replace")
    if "multipart/form-data" in ct:
        return "<multipart>"
    if "text/event-stream" in ct:
        return "<event-stream>"
    if "application/x-www-form-urlencoded" in ct:
        return _redact_query(body.decode("utf-8", errors="replace"))
    if ct.startswith("text/"):
        return body.decode("utf-8", errors="replace")
    if not body:
        return ""
    return "<binary>"


class _BodyCapture:
    """First `limit` bytes of a streamed body."""

    def __init__(self, limit: int) -> None:
        self.limit = limit
        self.buf = bytearray()
        self.truncated = False
        self.enabled = limit > 0

    def feed(self, chunk: bytes) -> None:
        if not chunk or not self.enabled or self.truncated:
            return
        remaining = self.limit - len(self.buf)
        if remaining > 0:
            self.buf.extend(chunk[:remaining])
        if len(chunk) > remaining:
            self.truncated = True

    def describe(self, content_type: str, headers: Dict[str, str]) -> Dict[str, Any]:
        return {
            "content_type": content_type,
            "headers": headers,
            "body": _parse_body(content_type, bytes(self.buf)) if self.limit else "",
            "body_truncated": self.truncated,
        }


class HttpLoggingMiddleware:
    """
    One JSON line per request on the `api.http` logger, with secrets redacted.

    The request id comes from `X-Request-Id` when the caller sends one and is echoed back on the
    response. Event-stream bodies are never buffered.
    """

    def __init__(
        self,
        app: ASGIApp,
        *,
        log_headers: bool,
        max_body_bytes: int,
    ) -> None:
        self.app = app
        self.log_headers = log_headers
        self.max_body_bytes = max(0, max_body_bytes)

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope.get("type") != "http":
            await self.app(scope, receive, send)
            return

        started_at = time.perf_counter()
        req_headers_list: List[Tuple[bytes, bytes]] = list(scope.get("headers") or [])
        request_id = _header(req_headers_list, b"x-request-id") or uuid.uuid4().hex[:12]
        req_ct = _header(req_headers_list, b"content-type")

        req_body = _BodyCapture(self.max_body_bytes)
        res_body = _BodyCapture(self.max_body_bytes)
        res_headers_list: List[Tuple[bytes, bytes]] = []
        res_status: Optional[int] = None
        res_ct = ""

        async def receive_wrapped() -> Message:
            message = await receive()
            if message.get("type") == "http.request":
                req_body.feed(message.get("body") or b"")
            return message

        async def send_wrapped(message: Message) -> None:
            nonlocal res_status, res_headers_list, res_ct
            if message.get("type") == "http.response.start":
                res_status = int(message.get("status") or 0)
                res_headers_list = list(message.get("headers") or [])
                res_ct = _header(res_headers_list, b"content-type")
                if "text/event-stream" in res_ct.lower():
                    res_body.enabled = False
                message = {**message, "headers": [*res_headers_list, (b"x-request-id", request_id.encode("latin-1"))]}
            elif message.get("type") == "http.response.body":
                res_body.feed(message.get("body") or b"")
            await send(message)

        err: Optional[BaseException] = None
        try:
            await self.app(scope, receive_wrapped, send_wrapped)
        except BaseException as e:  # noqa: BLE001 - log then re-raise
            err = e
            raise
        finally:
            method = str(scope.get("method") or "").upper()
            path = str(scope.get("path") or "")
            dur_ms = int((time.perf_counter() - started_at) * 1000)
            record: Dict[str, Any] = {
                "id": request_id,
                "method": method,
                "path": path,
                "query": _redact_query((scope.get("query_string") or b"").decode("latin-1", errors="ignore")),
                "status": res_status,
                "dur_ms": dur_ms,
                "request": req_body.describe(req_ct, _decode_headers(req_headers_list) if self.log_headers else {}),
                "response": res_body.describe(res_ct, _decode_headers(res_headers_list) if self.log_headers else {}),
            }
            if err is not None:
                record["error"] = {"type": type(err).__name__, "message": str(err)}

            try:
                logger.info(json.dumps(record, ensure_ascii=False, separators=(",", ":"), default=str))
            except (TypeError, ValueError):
                logger.info("%s %s %s status=%s dur_ms=%s", request_id, method, path, res_status, dur_ms)


def install_http_logging(app: Any) -> bool:
    """
    Enable request/response logging via env vars.

    - `FORM_API_HTTP_LOG=1` enables middleware
    - `FORM_API_HTTP_LOG_HEADERS=1` logs request/response headers (redacted)
    - `FORM_API_HTTP_LOG_BODY_MAX_BYTES=4096` caps body bytes captured per request/response
    """
    if not env_bool("FORM_API_HTTP_LOG", default=False):
        return False
    log_headers = env_bool("FORM_API_HTTP_LOG_HEADERS", default=False)
    max_body_bytes = env_int("FORM_API_HTTP_LOG_BODY_MAX_BYTES", 4096)
    app.add_middleware(HttpLoggingMiddleware, log_headers=log_headers, max_body_bytes=max_body_bytes)
    return True
