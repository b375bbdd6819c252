from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


class ValidationRule(BaseModel):
    model_config = ConfigDict(extra="allow", populate_by_name=True)

    type: Literal["minLength", "maxLength", "pattern", "min", "max", "custom"]
    value: Optional[Any] = None
    message: Optional[str] = None


class ConditionalRule(BaseModel):
    model_config = ConfigDict(extra="allow", populate_by_name=True)

    id: Optional[str] = None
    source_field_id: str = Field(alias="sourceFieldId")
    operator: Literal["equals", "notEquals", "contains", "greaterThan", "lessThan", "isEmpty", "isNotEmpty"]
    value: Optional[Any] = None
    action: Literal["show", "hide"] = "show"
    logic_operator: Literal["AND", "OR"] = Field(default="AND", alias="logicOperator")


class QuizFieldConfig(BaseModel):
    model_config = ConfigDict(extra="allow", populate_by_name=True)

    correct_answer: Optional[Any] = Field(default=None, alias="correctAnswer")
    points: float = 1
    explanation: Optional[str] = None
    case_sensitive: bool = Field(default=False, alias="caseSensitive")
    match_type: Literal["exact", "contains"] = Field(default="exact", alias="matchType")
    accept_partial_credit: bool = Field(default=False, alias="acceptPartialCredit")


class QuizModeConfig(BaseModel):
    model_config = ConfigDict(extra="allow", populate_by_name=True)

    enabled: bool = False
    passing_score: float = Field(default=70, alias="passingScore")
    show_results: bool = Field(default=True, alias="showResults")


class FieldConfig(BaseModel):
    """
    One form field as stored in `forms.fields`.

    `type` is open-ended: unknown types are kept and treated as free text.
    """

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    id: str
    label: str = ""
    type: str = "text"
    required: bool = False
    options: Optional[List[str]] = None
    placeholder: Optional[str] = None
    help_text: Optional[str] = Field(default=None, alias="helpText")
    validation: List[ValidationRule] = Field(default_factory=list)
    conditional_logic: List[ConditionalRule] = Field(default_factory=list, alias="conditionalLogic")
    step_id: Optional[str] = Field(default=None, alias="stepId")
    order: Optional[int] = None
    file_config: Optional[Dict[str, Any]] = Field(default=None, alias="fileConfig")
    quiz_config: Optional[QuizFieldConfig] = Field(default=None, alias="quizConfig")

    @field_validator("options", mode="before")
    @classmethod
    def _coerce_options(cls, v: Any) -> Any:
        if v is None:
            return None
        if isinstance(v, list):
            return [str(o) for o in v if o is not None]
        return v


def dump_fields(fields: List[FieldConfig]) -> List[Dict[str, Any]]:
    return [f.model_dump(by_alias=True, exclude_none=True, mode="json") for f in fields]


class _FormContent(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    title: Optional[str] = None
    fields: Optional[List[FieldConfig]] = None
    styling: Optional[Dict[str, Any]] = None
    notifications: Optional[Dict[str, Any]] = None
    multi_step_config: Optional[Dict[str, Any]] = Field(default=None, alias="multiStepConfig")
    conversational_mode: Optional[bool] = Field(default=None, alias="conversationalMode")
    quiz_mode: Optional[QuizModeConfig] = Field(default=None, alias="quizMode")
    limit_one_response: Optional[bool] = Field(default=None, alias="limitOneResponse")
    save_and_edit: Optional[bool] = Field(default=None, alias="saveAndEdit")

    def changes(self) -> Dict[str, Any]:
        """Explicitly-set keys only, camelCase, ready for the store."""
        out = self.model_dump(by_alias=True, exclude_unset=True, mode="json")
        if self.fields is not None:
            out["fields"] = dump_fields(self.fields)
        if self.quiz_mode is not None:
            out["quizMode"] = self.quiz_mode.model_dump(by_alias=True)
        return out


class FormUpdateRequest(_FormContent):
    pass


class _Schedule(BaseModel):
    opens_at: Optional[datetime] = Field(default=None, alias="opensAt")
    closes_at: Optional[datetime] = Field(default=None, alias="closesAt")

    @model_validator(mode="after")
    def _check_window(self):  # type: ignore[no-untyped-def]
        if self.opens_at and self.closes_at and _as_utc(self.opens_at) >= _as_utc(self.closes_at):
            raise ValueError("opensAt must be before closesAt")
        return self


def _as_utc(dt: datetime) -> datetime:
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


class FormCreateRequest(_FormContent, _Schedule):
    translations: Optional[Dict[str, Any]] = None
    template_id: Optional[str] = Field(default=None, alias="templateId")
    is_closed: Optional[bool] = Field(default=None, alias="isClosed")
    closed_message: Optional[str] = Field(default=None, alias="closedMessage")


class FormSyncRequest(_FormContent, _Schedule):
    is_closed: Optional[bool] = Field(default=None, alias="isClosed")
    closed_message: Optional[str] = Field(default=None, alias="closedMessage")
