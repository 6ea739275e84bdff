# trainer_portal/errors.py
from __future__ import annotations

from typing import Optional

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException


class PortalError(Exception):
    code = "ERROR"
    status_code = 400

    def __init__(self, message: str, code: Optional[str] = None):
        super().__init__(message)
        self.message = message
        if code:
            self.code = code

    def to_detail(self) -> dict:
        return {"code": self.code, "message": self.message}


class ValidationError(PortalError):
    """Malformed or out-of-range feedback fields."""

    code = "VALIDATION_ERROR"
    status_code = 422


class NotFoundError(PortalError):
    code = "NOT_FOUND"
    status_code = 404


class FeedbackNotAllowedError(PortalError):
    """
    A submission arrived while the user is not eligible.
    `code` is the eligibility reason (no_plan / too_soon / too_soon_since_last).
    """

    status_code = 409


class TransientDeliveryError(PortalError):
    """An email could not be handed to the provider. Never retried in-run."""

    code = "DELIVERY_FAILED"
    status_code = 502


class InfrastructureError(PortalError):
    """Database unreachable or similar. Fatal to a reminder run."""

    code = "INFRASTRUCTURE"
    status_code = 503


async def portal_error_handler(request: Request, exc: PortalError):
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.to_detail()})


async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    headers = getattr(exc, "headers", None)
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.detail}, headers=headers)


def install_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(PortalError, portal_error_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
