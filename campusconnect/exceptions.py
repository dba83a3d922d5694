"""
Rejections raised by the membership workflow, admin moderation and
notification services.

Every error is a DRF ``APIException`` so services can raise it directly and
views let it propagate to ``api_exception_handler``.
"""
from rest_framework import status
from rest_framework.exceptions import APIException
from rest_framework.views import exception_handler


class WorkflowError(APIException):
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = "The request could not be completed."
    default_code = "workflow_error"


class ValidationError(WorkflowError):
    """Missing or malformed input. The caller can fix and resend."""
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = "Invalid input."
    default_code = "validation_error"


class AuthorizationError(WorkflowError):
    """The caller lacks the relationship (owner, author, recipient) the operation needs."""
    status_code = status.HTTP_403_FORBIDDEN
    default_detail = "You are not allowed to perform this action."
    default_code = "authorization_error"


class NotFoundError(WorkflowError):
    status_code = status.HTTP_404_NOT_FOUND
    default_detail = "Not found."
    default_code = "not_found"


class ConflictError(WorkflowError):
    """A state invariant would be violated (duplicate name, already a member, wrong status)."""
    status_code = status.HTTP_409_CONFLICT
    default_detail = "Conflict with the current state."
    default_code = "conflict"


def api_exception_handler(exc, context):
    """
    Render workflow errors as {"error": ..., "code": ...}.
    Everything else keeps DRF's default shape.
    """
    response = exception_handler(exc, context)

    if response is not None and isinstance(exc, WorkflowError):
        response.data = {
            "error": str(exc.detail),
            "code": exc.default_code,
        }

    return response
