from fastapi import FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
import logging

from ..schemas.common import json_response

logger = logging.getLogger(__name__)

VALIDATION_MESSAGE = "Erreur de validation des champs"

def field_errors(exc: RequestValidationError) -> dict:
    """Map each invalid field to its first error message.

    ``("body", "objectives", 0, "title")`` is reported under ``objectives``.
    """
    errors = {}
    for error in exc.errors():
        location = [str(part) for part in error.get("loc", ()) if part not in ("body", "query", "path")]
        field = location[0] if location else "unknown"
        errors.setdefault(field, error.get("msg", "Invalid value"))
    return errors

async def validation_error_handler(request: Request, exc: RequestValidationError):
    errors = field_errors(exc)
    logger.info(f"Rejected {request.method} {request.url.path}: invalid {', '.join(sorted(errors))}")
    return JSONResponse(
        status_code=400,
        content=json_response(VALIDATION_MESSAGE, False, {"errors": errors})
    )

async def not_found_handler(request: Request, exc: HTTPException):
    # Routes raise 404 with a specific detail; keep it
    detail = getattr(exc, "detail", None)
    if detail and detail != "Not Found":
        return JSONResponse(status_code=404, content={"detail": detail})

    return JSONResponse(
        status_code=404,
        content={
            "error": "Not Found",
            "message": "The requested resource was not found",
            "path": str(request.url.path)
        }
    )

async def internal_error_handler(request: Request, exc: Exception):
    logger.error(f"Internal server error on {request.method} {request.url.path}: {str(exc)}")
    return JSONResponse(
        status_code=500,
        content={
            "error": "Internal Server Error",
            "message": "An unexpected error occurred"
        }
    )

def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_exception_handler(404, not_found_handler)
    app.add_exception_handler(500, internal_error_handler)
