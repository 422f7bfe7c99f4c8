import logging

from rest_framework import status
from rest_framework.exceptions import APIException
from rest_framework.response import Response
from rest_framework.views import exception_handler

logger = logging.getLogger(__name__)


# --- Domain Exceptions ---


class SelfActionError(APIException):
    """Raised when a user targets themself with a social action (follow, notify)."""

    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = "You cannot perform this action on yourself."
    default_code = "self_action"


class AlreadyFollowingError(APIException):
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = "You are already following this user."
    default_code = "already_following"


class NotFollowingError(APIException):
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = "You are not following this user."
    default_code = "not_following"


class UpstreamServiceError(APIException):
    """
    Raised when a third-party API (RAWG) fails.

    The upstream status code is mirrored when the service answered;
    network failures and timeouts map to 503.
    """

    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    default_detail = "Unable to reach the upstream service."
    default_code = "upstream_error"

    def __init__(self, error, message, status_code=None):
        super().__init__(detail=message)
        if status_code is not None:
            self.status_code = status_code
        self.error = error
        self.message = message


# --- Exception Handler ---


def api_exception_handler(exc, context):
    """
    Wrap DRF's default handler so every error body carries its status code.

    UpstreamServiceError keeps the `{error, message, status}` shape clients of
    the games proxy expect. Anything DRF doesn't recognise is logged and turned
    into a generic 500 instead of leaking a traceback.
    """
    if isinstance(exc, UpstreamServiceError):
        return Response(
            {"error": exc.error, "message": exc.message, "status": exc.status_code},
            status=exc.status_code,
        )

    response = exception_handler(exc, context)

    if response is None:
        view = context.get("view")
        logger.exception(
            "Unhandled error in %s", getattr(view, "__name__", view.__class__.__name__)
        )
        return Response(
            {
                "detail": "Internal server error.",
                "status_code": status.HTTP_500_INTERNAL_SERVER_ERROR,
            },
            status=status.HTTP_500_INTERNAL_SERVER_ERROR,
        )

    if isinstance(response.data, dict):
        response.data["status_code"] = response.status_code
    return response
