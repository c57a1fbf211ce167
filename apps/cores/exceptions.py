import logging

from django.conf import settings
from django.core.exceptions import PermissionDenied as DjangoPermissionDenied
from django.core.exceptions import ValidationError as DjangoValidationError
from django.http import Http404
from rest_framework import exceptions, status
from rest_framework.response import Response
from rest_framework.views import exception_handler

logger = logging.getLogger(__name__)


class NotFound(exceptions.NotFound):
    """A project, stage, ticket, negotiation or user does not exist."""


class InvalidState(exceptions.APIException):
    """The operation is not allowed from the record's current status."""

    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = "Operation not allowed in the current state."
    default_code = "invalid_state"


class Forbidden(exceptions.PermissionDenied):
    """Role or ownership mismatch."""


class ValidationFailure(exceptions.ValidationError):
    """Malformed input, carries field level detail."""


def api_exception_handler(exc, context):
    """
    DRF exception handler.

    Known API errors keep DRF's response shape. Django's own exceptions are
    mapped onto their API equivalents. Anything else is logged and reported
    as a generic 500; the underlying message is only exposed with DEBUG on.
    """
    if isinstance(exc, DjangoValidationError):
        detail = exc.message_dict if hasattr(exc, "error_dict") else exc.messages
        exc = ValidationFailure(detail=detail)
    elif isinstance(exc, Http404):
        exc = NotFound()
    elif isinstance(exc, DjangoPermissionDenied):
        exc = Forbidden()

    response = exception_handler(exc, context)
    if response is not None:
        return response

    view = context.get("view")
    logger.exception(
        "Unhandled error in %s", view.__class__.__name__ if view else "unknown view"
    )

    payload = {"detail": "Internal server error"}
    if settings.DEBUG:
        payload["error"] = str(exc)
    return Response(payload, status=status.HTTP_500_INTERNAL_SERVER_ERROR)
