from __future__ import annotations

import dspy

from form_builder_service.generation.signatures import FormContextSignature, FormGenerationSignature


class FormGeneratorProgram(dspy.Module):
    """
    Two-step DSPy program: analyse the brief, then write the form against that analysis.
    """

    def __init__(self) -> None:
        super().__init__()
        self.analyze = dspy.Predict(FormContextSignature)
        self.generate = dspy.Predict(FormGenerationSignature)

    def forward(self, *, brief: str, source: str = "prompt"):  # type: ignore[override]
        context = self.analyze(brief=brief, source=source)
        context_json = str(getattr(context, "context_json", "") or "{}")
        form = self.generate(brief=brief, context_json=context_json)
        return dspy.Prediction(context_json=context_json, form_json=str(getattr(form, "form_json", "") or ""))


__all__ = ["FormGeneratorProgram"]
