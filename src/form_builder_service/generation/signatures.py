from __future__ import annotations

import dspy


class FormContextSignature(dspy.Signature):
    """
    Read a short brief for a form and describe what the form is for before any field is written.

    Work out the purpose, the intended audience, the domain, the kind of form (contact, survey,
    registration, application, feedback, quiz, order...), the tone, and how long it should be.
    List the fields the form cannot do without and the ones that would add real insight.

    Return ONLY a JSON object (no prose, no markdown):
    {"purpose": str, "audience": str, "domain": str, "formType": str, "tone": str,
     "complexity": "simple" | "moderate" | "detailed",
     "essentialFields": [str], "insightfulFields": [str]}
    """

    brief: str = dspy.InputField(desc="What the form should collect, in the user's words or page text.")
    source: str = dspy.InputField(desc="Where the brief came from: prompt, voice, url or file.")

    context_json: str = dspy.OutputField(desc="JSON object describing the form's purpose. Output ONLY JSON.")


class FormGenerationSignature(dspy.Signature):
    """
    Write a complete, ready-to-publish form from a brief and its analysed context.

    Rules:
    - Between 3 and 15 fields; keep simple forms short.
    - Field types: short-answer, long-answer, email, phone, url, number, multiple-choice,
      checkboxes, dropdown, date, time, file, star-rating, slider.
    - Choice fields (multiple-choice, checkboxes, dropdown) carry 2-8 options as plain strings.
    - Use helpful placeholders and short helpText where it clarifies the question.
    - Mark only what the form truly needs as required.
    - `validation` is optional: {"minLength"?, "maxLength"?, "min"?, "max"?, "pattern"?}.

    Return ONLY a JSON object (no prose, no markdown, no code fences):
    {"title": str, "fields": [{"id": str, "label": str, "type": str, "required": bool,
      "placeholder"?: str, "helpText"?: str, "options"?: [str], "validation"?: {...}}]}
    """

    brief: str = dspy.InputField(desc="What the form should collect.")
    context_json: str = dspy.InputField(desc="JSON context produced by the analysis step.")

    form_json: str = dspy.OutputField(desc="JSON object with `title` and `fields`. Output ONLY JSON.")


class FieldAssistSignature(dspy.Signature):
    """
    You are an expert form designer and UX specialist helping with one field of a form.

    Carry out the task exactly as described in `instructions`, using the field and form details in
    `context_json`. Suggestions must be professional, specific to the field, and usable as-is.

    Return ONLY the JSON object whose shape the instructions give (no prose, no markdown).
    """

    action: str = dspy.InputField(desc="Assist action name, e.g. improve-question or generate-options.")
    instructions: str = dspy.InputField(desc="What to produce and the exact JSON shape to return.")
    context_json: str = dspy.InputField(desc="JSON with fieldLabel, fieldType, options, formTitle and related details.")

    result_json: str = dspy.OutputField(desc="JSON object in the requested shape. Output ONLY JSON.")


class FormChatSignature(dspy.Signature):
    """
    You are a form builder assistant. Read the current form and the conversation, then answer the
    user's latest message and apply the changes they ask for.

    Capabilities: add fields, update field properties (label, type, required, options, placeholder,
    helpText), delete fields, reorder fields, rename the form, and configure quiz answers
    (correctAnswer, points, explanation). Questions about form best practice get an answer and no
    modifications.

    Understand references by number ("field 2", 1-based), by label ("the email field"), by
    position ("the last one"), and "this field" for the selected field. Multi-step and batch
    requests ("make all fields required") become one modification per affected field. When a
    reference is ambiguous, ask one clarifying question instead of guessing.

    Field types: short-answer, long-answer, email, phone, url, number, currency, multiple-choice,
    checkboxes, dropdown, multiselect, checkbox, date, time, file, star-rating, slider.
    Choice fields always carry sensible options.

    Return ONLY a JSON object (no prose, no markdown):
    {"message": str,
     "modifications"?: [
       {"action": "add", "field": {"label", "type", "required"?, "placeholder"?, "helpText"?,
                                   "options"?, "quizConfig"?}}
       | {"action": "update", "fieldId": str, "field": {...changed properties}}
       | {"action": "delete", "fieldId": str}
       | {"action": "reorder", "fieldId": str, "newIndex": int}
       | {"action": "quiz-config", "fieldId": str,
          "quizConfig": {"correctAnswer"?, "points"?, "explanation"?}}],
     "newTitle"?: str}
    Use the exact field ids from the form state. Include `modifications` only for real changes.
    """

    form_state: str = dspy.InputField(desc="Current title and numbered field list with ids.")
    history_json: str = dspy.InputField(desc="Earlier turns as a JSON list of {role, content}.")
    message: str = dspy.InputField(desc="The user's latest message.")

    reply_json: str = dspy.OutputField(desc="JSON object with `message` and optional changes. Output ONLY JSON.")


__all__ = ["FieldAssistSignature", "FormChatSignature", "FormContextSignature", "FormGenerationSignature"]
