from form_builder_service.api.routes import (
    ai,
    auth,
    collaborators,
    cron,
    embed,
    forms,
    health,
    integrations,
    privacy,
    submissions,
    uploads,
)

ROUTERS = [
    health.router,
    auth.router,
    forms.router,
    submissions.router,
    collaborators.router,
    integrations.router,
    ai.router,
    privacy.router,
    uploads.router,
    cron.router,
    embed.router,
]

__all__ = ["ROUTERS"]
