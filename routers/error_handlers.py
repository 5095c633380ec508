# routers/error_handlers.py
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
import logging

logger = logging.getLogger("errors")


def _error(status_code: int, message) -> JSONResponse:
    return JSONResponse({"status_code": status_code, "message": message}, status_code=status_code)


# ---------------------------------------------------------
# 404 / 403 / any StarletteHTTPException
# ---------------------------------------------------------
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    return _error(exc.status_code, exc.detail)


# ---------------------------------------------------------
# Validation Errors (422)
# ---------------------------------------------------------
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    logger.debug("Invalid request to %s: %s", request.url.path, exc.errors())
    return _error(422, "Invalid request. Please check your input.")


# ---------------------------------------------------------
# I/O failures while writing or cleaning sitemap files (500)
# ---------------------------------------------------------
async def os_error_handler(request: Request, exc: OSError):
    logger.error(f"❌ Sitemap I/O failure on {request.url.path}: {exc}", exc_info=exc)
    return _error(500, "Failed to write sitemap files")


# ---------------------------------------------------------
# Generic Exception Handler (500)
# ---------------------------------------------------------
async def generic_exception_handler(request: Request, exc: Exception):
    logger.error(f"⚠️ Unhandled Server Error: {exc}", exc_info=exc)
    return _error(500, "Internal Server Error")


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(OSError, os_error_handler)
    app.add_exception_handler(Exception, generic_exception_handler)
