"""Error taxonomy for subscription management.

The missing-permission case is detected by an exact match on the error code
AND the verbatim message CloudWatch Logs returns when the destination Lambda
has no resource policy allowing ``logs.amazonaws.com`` to invoke it. The API
offers no dedicated error code for this, so the message text is part of the
contract with the service. Do not loosen the match: other
``InvalidParameterException`` failures (bad filter pattern, bad role) must not
be treated as permission problems.
"""

from typing import Optional

from botocore.exceptions import ClientError

MISSING_PERMISSION_CODE = "InvalidParameterException"
MISSING_PERMISSION_MESSAGE = (
    "Could not execute the lambda function. "
    "Make sure you have given CloudWatch Logs permission to execute your function."
)


class AutoSubscribeError(Exception):
    """Base class for errors raised by the subscription core."""

    def __init__(self, message: str, log_group_name: Optional[str] = None):
        super().__init__(message)
        self.log_group_name = log_group_name


class SelectionError(AutoSubscribeError):
    """Fetching tags or evaluating eligibility failed."""


class StateReadError(AutoSubscribeError):
    """Reading the current subscription destination failed."""


class InvalidEventError(AutoSubscribeError):
    """A creation notification did not carry a log group name."""


def is_missing_invoke_permission(exc: BaseException) -> bool:
    """Return True only for the exact missing-invoke-permission signature."""
    if not isinstance(exc, ClientError):
        return False
    error = exc.response.get("Error", {})
    return (
        error.get("Code") == MISSING_PERMISSION_CODE
        and error.get("Message") == MISSING_PERMISSION_MESSAGE
    )


def error_kind(exc: BaseException) -> str:
    """Classify an exception for the sweep report."""
    if isinstance(exc, SelectionError):
        return "selection"
    if isinstance(exc, StateReadError):
        return "state_read"
    if is_missing_invoke_permission(exc):
        return "missing_invoke_permission"
    return "subscription"
