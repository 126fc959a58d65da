from __future__ import annotations

import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from fastapi.templating import Jinja2Templates
from starlette.exceptions import HTTPException as StarletteHTTPException

from intakeform.blobs import LocalBlobStore
from intakeform.config import Settings, ensure_dirs
from intakeform.errors import IntakeError, ValidationError
from intakeform.routes.api import router as api_router
from intakeform.routes.public import router as public_router
from intakeform.routes.submissions import router as submissions_router
from intakeform.storage import init_storage

logger = logging.getLogger(__name__)


async def handle_intake_error(request: Request, exc: IntakeError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
    else:
        logger.info(
            "%s %s -> %d: %s",
            request.method,
            request.url.path,
            exc.status_code,
            exc.message,
        )
    body: dict[str, object] = {"error": exc.message}
    if isinstance(exc, ValidationError) and exc.details:
        body["details"] = exc.details
    return JSONResponse(body, status_code=exc.status_code)


async def handle_http_error(
    request: Request, exc: StarletteHTTPException
) -> JSONResponse:
    return JSONResponse(
        {"error": str(exc.detail)}, status_code=exc.status_code, headers=exc.headers
    )


async def handle_request_validation(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    return JSONResponse({"error": "Invalid request"}, status_code=400)


async def handle_unexpected(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse({"error": "Internal server error"}, status_code=500)


def create_app(settings: Settings | None = None) -> FastAPI:
    settings = settings or Settings()
    ensure_dirs(settings)
    storage = init_storage(settings)

    app = FastAPI(
        title="Intake Forms",
        openapi_tags=[
            {"name": "api/forms", "description": "REST API: forms"},
            {"name": "api/submissions", "description": "REST API: submissions"},
            {"name": "public", "description": "Uploads and client entry document"},
            {"name": "system", "description": "System"},
        ],
    )

    app.state.storage = storage
    app.state.settings = settings
    app.state.blobs = LocalBlobStore(settings.upload_dir)
    app.state.templates = Jinja2Templates(directory=str(settings.client_dir))

    app.add_exception_handler(IntakeError, handle_intake_error)
    app.add_exception_handler(StarletteHTTPException, handle_http_error)
    app.add_exception_handler(RequestValidationError, handle_request_validation)
    app.add_exception_handler(Exception, handle_unexpected)

    app.include_router(api_router)
    app.include_router(submissions_router)
    # catch-all entry document route goes last
    app.include_router(public_router)

    return app
