"""
Translation of domain errors into HTTP responses.

Installed as ``REST_FRAMEWORK["EXCEPTION_HANDLER"]``. Domain errors and
rate-limited submissions get a ``{"status", "error", "detail"}`` body; DRF's
own exceptions keep the stock handling; anything else is logged and left to
propagate as a 500.
"""

from __future__ import annotations

import logging
from http import HTTPStatus

from django_ratelimit.exceptions import Ratelimited
from rest_framework.response import Response
from rest_framework.views import exception_handler

from questionbank_app.surveys.exceptions import (
    ForbiddenError,
    NotFoundError,
    SurveyServiceError,
    ValidationError,
)

logger = logging.getLogger(__name__)

STATUS_BY_ERROR = {
    NotFoundError: HTTPStatus.NOT_FOUND,
    ValidationError: HTTPStatus.BAD_REQUEST,
    ForbiddenError: HTTPStatus.FORBIDDEN,
}


def _error_response(status: HTTPStatus, detail: str) -> Response:
    return Response(
        {"status": status.value, "error": status.phrase, "detail": detail},
        status=status.value,
    )


def api_exception_handler(exc, context):
    if isinstance(exc, Ratelimited):
        logger.warning("Submission rate limit hit")
        return _error_response(
            HTTPStatus.TOO_MANY_REQUESTS, "Too many submissions, try again later"
        )

    if isinstance(exc, SurveyServiceError):
        status = next(
            (code for kind, code in STATUS_BY_ERROR.items() if isinstance(exc, kind)),
            HTTPStatus.BAD_REQUEST,
        )
        logger.info("%s: %s", type(exc).__name__, exc)
        return _error_response(status, str(exc))

    response = exception_handler(exc, context)
    if response is None:
        view = context.get("view")
        logger.exception(
            "Unhandled error in %s", type(view).__name__ if view else "API view"
        )
    return response
