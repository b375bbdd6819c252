from __future__ import annotations

from typing import Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field


class SignUpRequest(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    email: str = ""
    password: str = ""
    name: Optional[str] = None


class SignInRequest(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    email: str = ""
    password: str = ""


class CollaboratorInviteRequest(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    email: str = ""
    role: Literal["EDITOR", "VIEWER"] = "EDITOR"


class GoogleSheetsConfigRequest(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    form_id: str = Field(alias="formId")
    spreadsheet_id: str = Field(default="", alias="spreadsheetId")
    sheet_name: str = Field(default="Form Responses", alias="sheetName")
    enabled: bool = True


class NotionConfigRequest(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    form_id: str = Field(alias="formId")
    api_key: str = Field(default="", alias="apiKey")
    database_id: Optional[str] = Field(default=None, alias="databaseId")
    enabled: bool = True


class GenerateRequest(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    prompt: str = Field(min_length=1, max_length=4000)


class GenerateFromVoiceRequest(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    transcript: str = Field(min_length=1, max_length=20000)


class GenerateFromUrlRequest(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    url: str = Field(min_length=1, max_length=2048)


class PrivacyDeleteOptions(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    delete_submissions: bool = Field(default=False, alias="deleteSubmissions")
    delete_forms: bool = Field(default=False, alias="deleteForms")
    delete_account: bool = Field(default=False, alias="deleteAccount")
    confirm_email: Optional[str] = Field(default=None, alias="confirmEmail")


class PrivacyRequest(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    action: str = ""
    options: PrivacyDeleteOptions = Field(default_factory=PrivacyDeleteOptions)


class FieldSummary(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    label: str = ""
    type: str = "short-answer"


class InlineAssistContext(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    field_label: Optional[str] = Field(default=None, alias="fieldLabel")
    field_type: Optional[str] = Field(default=None, alias="fieldType")
    current_value: Optional[str] = Field(default=None, alias="currentValue")
    options: List[str] = Field(default_factory=list)
    correct_answer: Optional[Union[str, List[str]]] = Field(default=None, alias="correctAnswer")
    form_title: Optional[str] = Field(default=None, alias="formTitle")
    form_context: Optional[str] = Field(default=None, alias="formContext")
    target_language: Optional[str] = Field(default=None, alias="targetLanguage")
    other_fields: List[FieldSummary] = Field(default_factory=list, alias="otherFields")


class InlineAssistRequest(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    action: str = ""
    context: InlineAssistContext = Field(default_factory=InlineAssistContext)


class ChatMessage(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    role: Literal["user", "assistant"] = "user"
    content: str = ""


class ChatFormContext(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    title: str = "Untitled Form"
    fields: List[Dict[str, Any]] = Field(default_factory=list)
    selected_field_id: Optional[str] = Field(default=None, alias="selectedFieldId")


class ChatRequest(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    message: str = Field(min_length=1, max_length=4000)
    history: List[ChatMessage] = Field(default_factory=list, max_length=50)
    form_context: ChatFormContext = Field(default_factory=ChatFormContext, alias="formContext")
