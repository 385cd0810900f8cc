"""
Error taxonomy and JSON error handlers
"""
from __future__ import annotations

from typing import Any, Optional

import structlog
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from slowapi.errors import RateLimitExceeded
from starlette.exceptions import HTTPException

from quizrush.services.logging import log_api_request

logger = structlog.get_logger()


class QuizRushError(Exception):
    status_code = 500
    message = "Internal server error"

    def __init__(self, message: Optional[str] = None, details: Any = None):
        super().__init__(message or self.message)
        self.message = message or self.message
        self.details = details


class ProviderError(QuizRushError):
    """A call to the LLM, OCR or identity provider failed"""
    message = "Provider request failed"


class ParseError(QuizRushError):
    """Provider reply was not valid JSON after unwrapping"""
    message = "Failed to parse provider response"

    def __init__(self, raw_text: str, message: Optional[str] = None, details: Any = None):
        super().__init__(message, details)
        self.raw_text = raw_text


class OCRError(QuizRushError):
    message = "OCR processing failed"


class OCRTimeoutError(QuizRushError):
    status_code = 504
    message = "Timed out waiting for OCR result"


def error_body(message: str, details: Any = None) -> dict:
    body = {"error": message}
    if details is not None:
        body["details"] = details
    return body


async def quizrush_error_handler(request: Request, exc: QuizRushError):
    log_api_request(request, error=exc)
    return JSONResponse(status_code=exc.status_code, content=error_body(exc.message, exc.details))


async def http_error_handler(request: Request, exc: HTTPException):
    if exc.status_code >= 500:
        log_api_request(request, error=exc)
    return JSONResponse(status_code=exc.status_code, content=error_body(str(exc.detail)), headers=exc.headers)


async def validation_error_handler(request: Request, exc: RequestValidationError):
    errors = [
        {"field": ".".join(str(p) for p in err.get("loc", ())), "message": err.get("msg")}
        for err in exc.errors()
    ]
    return JSONResponse(status_code=400, content=error_body("Invalid request", errors))


async def rate_limit_error_handler(request: Request, exc: RateLimitExceeded):
    logger.warning("rate_limit_exceeded", client_ip=request.client.host if request.client else "unknown", limit=exc.detail)
    return JSONResponse(
        status_code=429,
        content=error_body(f"Rate limit exceeded: {exc.detail}. Please try again later."),
    )


async def unhandled_error_handler(request: Request, exc: Exception):
    logger.exception("unhandled_error", path=request.url.path)
    return JSONResponse(status_code=500, content=error_body("Internal server error"))


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(QuizRushError, quizrush_error_handler)
    app.add_exception_handler(HTTPException, http_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_exception_handler(RateLimitExceeded, rate_limit_error_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)
