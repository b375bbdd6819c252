from form_builder_service.schemas.forms import (  # noqa: F401
    ConditionalRule,
    FieldConfig,
    FormCreateRequest,
    FormSyncRequest,
    FormUpdateRequest,
    QuizFieldConfig,
    QuizModeConfig,
    ValidationRule,
)
from form_builder_service.schemas.requests import (  # noqa: F401
    ChatRequest,
    CollaboratorInviteRequest,
    GenerateFromUrlRequest,
    GenerateFromVoiceRequest,
    GenerateRequest,
    GoogleSheetsConfigRequest,
    InlineAssistRequest,
    NotionConfigRequest,
    PrivacyDeleteOptions,
    PrivacyRequest,
    SignInRequest,
    SignUpRequest,
)
