"""
DSPy LM resolution from environment variables.

    DSPY_PROVIDER            groq (default) | openai
    DSPY_MODEL_LOCK          fallback model (default openai/gpt-oss-20b)
    DSPY_MODEL               requested model
    DSPY_TEMPERATURE         default 0.7
    DSPY_MAX_TOKENS          default 2000
    DSPY_LLM_TIMEOUT_SEC     default 20
    DSPY_TRACK_USAGE=true    record token usage on predictions
"""

from __future__ import annotations

import os
from typing import Any, Dict, Optional

import dspy

from form_builder_service.config import env_bool, env_float, env_int

_API_KEYS = {"groq": "GROQ_API_KEY", "openai": "OPENAI_API_KEY"}


def _prefixed_model(provider: str, model_name: str) -> str:
    p = str(provider or "").strip().lower()
    m = str(model_name or "").strip()
    if not p:
        return m
    if m.startswith(f"{p}/"):
        return m
    return f"{p}/{m}"


def make_dspy_lm() -> Optional[Dict[str, str]]:
    """
    Return `{provider, model, modelName}` with a LiteLLM provider-prefixed model, or None when the
    provider is unknown or its API key is missing.
    """
    provider = (os.getenv("DSPY_PROVIDER") or "groq").strip().lower()
    locked_model = os.getenv("DSPY_MODEL_LOCK") or "openai/gpt-oss-20b"
    model_name = str(os.getenv("DSPY_MODEL") or locked_model).strip()

    key_name = _API_KEYS.get(provider)
    if not key_name or not os.getenv(key_name):
        return None
    return {"provider": provider, "model": _prefixed_model(provider, model_name), "modelName": model_name}


def build_lm(cfg: Dict[str, str]) -> Any:
    return dspy.LM(
        model=cfg["model"],
        temperature=env_float("DSPY_TEMPERATURE", 0.7),
        max_tokens=env_int("DSPY_MAX_TOKENS", 2000),
        timeout=env_float("DSPY_LLM_TIMEOUT_SEC", 20.0),
        num_retries=0,
    )


def track_usage() -> bool:
    return env_bool("DSPY_TRACK_USAGE")


__all__ = ["build_lm", "make_dspy_lm", "track_usage"]
