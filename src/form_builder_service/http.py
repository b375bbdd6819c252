"""
Outbound HTTP client factory.

Every outbound call (Resend, Slack, Discord, webhooks, URL fetches) goes through `client()`, so
tests can route traffic to an `httpx.MockTransport` with `set_transport`.
"""

from __future__ import annotations

from typing import Optional

import httpx

USER_AGENT = "Form-Builder/1.0"

_transport: Optional[httpx.BaseTransport] = None


def set_transport(transport: Optional[httpx.BaseTransport]) -> None:
    global _transport
    _transport = transport


def client(timeout: float = 10.0) -> httpx.Client:
    return httpx.Client(
        timeout=timeout,
        transport=_transport,
        follow_redirects=True,
        headers={"User-Agent": USER_AGENT},
    )
