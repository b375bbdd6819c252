"""
Serverless entrypoint (Vercel): exposes the ASGI `app`.
"""

from __future__ import annotations

import sys
from pathlib import Path

_src = Path(__file__).resolve().parents[1] / "src"
if _src.is_dir() and str(_src) not in sys.path:
    sys.path.insert(0, str(_src))

from form_builder_service.api.main import app  # noqa: E402

__all__ = ["app"]
