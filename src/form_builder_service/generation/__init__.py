"""
AI form generation (DSPy), builder assists, and deterministic form import.
"""

from form_builder_service.generation.assist import chat_edit, inline_assist
from form_builder_service.generation.pipeline import (
    generate_form,
    generate_from_transcript,
    generate_from_url,
    import_file,
)

__all__ = [
    "chat_edit",
    "generate_form",
    "generate_from_transcript",
    "generate_from_url",
    "import_file",
    "inline_assist",
]
