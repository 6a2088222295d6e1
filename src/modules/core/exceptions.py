"""Error taxonomy and the DRF exception handler.

Every failure that can reach a caller is classified by a stable ``code``
and an HTTP status.  Domain errors are raised by services and
repositories; the API layer never builds error payloads by hand.  The
``exception_handler`` below renders all of them in one envelope::

    {
        "success": false,
        "type": "client_error",
        "errors": [{"code": "insufficient_stock", "detail": "...", "attr": null}]
    }

Server-side failures always degrade to a generic message.  Internal
details are logged, never returned.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional

import structlog
from django.core.exceptions import PermissionDenied as DjangoPermissionDenied
from django.http import Http404
from rest_framework import exceptions as drf_exceptions
from rest_framework import status
from rest_framework.response import Response
from rest_framework.views import exception_handler as drf_exception_handler

logger = structlog.get_logger(__name__)

GENERIC_SERVER_ERROR = "Something went wrong."


class DomainError(Exception):
    """Base class for classified, caller-visible failures."""

    code = "error"
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = "The request could not be processed."

    def __init__(self, detail: Optional[str] = None) -> None:
        self.detail = detail or self.default_detail
        super().__init__(self.detail)

    @property
    def public_detail(self) -> str:
        return self.detail


class InvalidInput(DomainError):
    """Missing or malformed fields, bad enum values."""

    code = "invalid_input"
    default_detail = "Invalid input."


class ResourceNotFound(DomainError):
    code = "not_found"
    status_code = status.HTTP_404_NOT_FOUND
    default_detail = "Resource not found."


class Forbidden(DomainError):
    """Role or ownership check failed."""

    code = "forbidden"
    status_code = status.HTTP_403_FORBIDDEN
    default_detail = "You do not have permission to perform this action."


class StorageFailure(DomainError):
    """The underlying store failed.

    The message passed in is kept for logs only; callers always see the
    generic server error.
    """

    code = "storage_failure"
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_detail = GENERIC_SERVER_ERROR

    @property
    def public_detail(self) -> str:
        return GENERIC_SERVER_ERROR


# ---------------------------------------------------------------------------
# DRF exception handler
# ---------------------------------------------------------------------------


def exception_handler(exc: Exception, context: Dict[str, Any]) -> Response:
    """Render every exception raised in a DRF view as the standard envelope."""
    if isinstance(exc, DomainError):
        return _domain_error_response(exc, context)

    if isinstance(exc, Http404):
        exc = drf_exceptions.NotFound()
    elif isinstance(exc, DjangoPermissionDenied):
        exc = drf_exceptions.PermissionDenied()

    response = drf_exception_handler(exc, context)
    if response is None:
        logger.exception(
            "api.unhandled_exception",
            view=_view_name(context),
            error_type=type(exc).__name__,
        )
        return _envelope(
            errors=[{"code": "error", "detail": GENERIC_SERVER_ERROR, "attr": None}],
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        )

    if isinstance(exc, drf_exceptions.ValidationError):
        errors = _flatten_validation_errors(exc.get_full_details())
    else:
        codes = exc.get_codes()
        errors = [
            {
                "code": codes if isinstance(codes, str) else exc.default_code,
                "detail": str(exc.detail),
                "attr": None,
            }
        ]

    response.data = _body(errors, response.status_code)
    return response


def _domain_error_response(exc: DomainError, context: Dict[str, Any]) -> Response:
    log = logger.bind(view=_view_name(context), code=exc.code)
    if exc.status_code >= 500:
        log.error("api.server_error", error=str(exc))
    else:
        log.info("api.client_error", detail=exc.public_detail)
    return _envelope(
        errors=[{"code": exc.code, "detail": exc.public_detail, "attr": None}],
        status_code=exc.status_code,
    )


def _flatten_validation_errors(
    details: Any, attr: Optional[str] = None
) -> List[Dict[str, Any]]:
    """Turn DRF's nested ``get_full_details()`` output into a flat list."""
    if isinstance(details, dict) and {"message", "code"} <= set(details):
        return [
            {
                "code": str(details["code"]),
                "detail": str(details["message"]),
                "attr": attr,
            }
        ]
    errors: List[Dict[str, Any]] = []
    if isinstance(details, dict):
        for key, value in details.items():
            if key == "non_field_errors":
                child = attr
            else:
                child = f"{attr}.{key}" if attr else str(key)
            errors.extend(_flatten_validation_errors(value, child))
    elif isinstance(details, list):
        for index, value in enumerate(details):
            nested = isinstance(value, (dict, list)) and not (
                isinstance(value, dict) and {"message", "code"} <= set(value)
            )
            child = f"{attr}.{index}" if nested and attr else attr
            errors.extend(_flatten_validation_errors(value, child))
    return errors


def _body(errors: List[Dict[str, Any]], status_code: int) -> Dict[str, Any]:
    return {
        "success": False,
        "type": "server_error" if status_code >= 500 else "client_error",
        "errors": errors,
    }


def _envelope(errors: List[Dict[str, Any]], status_code: int) -> Response:
    return Response(_body(errors, status_code), status=status_code)


def _view_name(context: Dict[str, Any]) -> Optional[str]:
    view = context.get("view")
    return type(view).__name__ if view is not None else None
