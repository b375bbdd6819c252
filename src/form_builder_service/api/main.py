from __future__ import annotations

import logging

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.status import HTTP_422_UNPROCESSABLE_ENTITY, HTTP_500_INTERNAL_SERVER_ERROR

from form_builder_service.api.http_logging import install_http_logging
from form_builder_service.api.routes import ROUTERS
from form_builder_service.api.utils import error_body
from form_builder_service.config import get_settings, load_env_files
from form_builder_service.errors import ApiError

logger = logging.getLogger("api")


def create_app() -> FastAPI:
    load_env_files()
    settings = get_settings()

    app = FastAPI(title="form-builder-service")

    @app.exception_handler(ApiError)
    async def _api_error_handler(request: Request, exc: ApiError) -> JSONResponse:
        body = error_body(exc.code, exc.message, prefix="api", details=jsonable_encoder(exc.details) if exc.details is not None else None)
        log = logger.error if exc.status_code >= 500 else logger.info
        log("[api] %s %s requestId=%s path=%s msg=%s", exc.status_code, exc.code, body["requestId"], request.url.path, exc.message)
        return JSONResponse(status_code=exc.status_code, content=body)

    @app.exception_handler(RequestValidationError)
    async def _validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
        errors = jsonable_encoder(exc.errors())
        body = error_body("validation_error", "Request body did not match expected schema.", prefix="val", details=errors)
        # Keep server logs useful without dumping full bodies.
        logger.info("[api] 422 validation_error requestId=%s path=%s errors=%s", body["requestId"], request.url.path, errors)
        return JSONResponse(status_code=HTTP_422_UNPROCESSABLE_ENTITY, content=body)

    @app.exception_handler(Exception)
    async def _unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
        body = error_body("internal_error", "Unhandled server error.", prefix="err")
        logger.exception("[api] 500 internal_error requestId=%s path=%s", body["requestId"], request.url.path)
        return JSONResponse(status_code=HTTP_500_INTERNAL_SERVER_ERROR, content=body)

    if settings.cors_origins:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=settings.cors_origins,
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
        )
    install_http_logging(app)

    for router in ROUTERS:
        app.include_router(router)
    return app


app = create_app()
