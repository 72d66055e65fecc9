"""FastAPI app factory for the project intake API."""

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from project_intake.api.projects import router as projects_router
from project_intake.errors import IntakeError

NO_STORE_HEADERS = {"cache-control": "no-store"}


async def intake_error_handler(request: Request, exc: IntakeError) -> JSONResponse:
    """Render pipeline failures as ``{"error", "kind"}`` bodies with the error's status."""

    return JSONResponse(exc.to_dict(), status_code=exc.status_code, headers=NO_STORE_HEADERS)


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Reject malformed JSON and schema-invalid bodies before the pipeline runs."""

    errors = exc.errors()
    if any(error.get("type") == "json_invalid" for error in errors):
        message = "Request body must be valid JSON."
    else:
        message = "Invalid request payload."
    return JSONResponse({"error": message, "kind": "input_invalid"}, status_code=400, headers=NO_STORE_HEADERS)


def create_app() -> FastAPI:
    """Create and configure the FastAPI application.

    Returns:
        Configured FastAPI instance.
    """
    app = FastAPI(title="Project Intake API", version="0.1")
    app.include_router(projects_router)
    app.add_exception_handler(IntakeError, intake_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)

    @app.middleware("http")
    async def no_store_middleware(request: Request, call_next):
        response = await call_next(request)
        response.headers.setdefault("cache-control", "no-store")
        return response

    return app


# For uvicorn, expose `app` at module level
app = create_app()
