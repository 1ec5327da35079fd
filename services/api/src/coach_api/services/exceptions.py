"""Errors raised by the quota and entitlement services.

Route handlers let these propagate; the application renders them through a
single exception handler using ``status_code`` and ``message``.
"""

from uuid import UUID


class UsageLimitsError(Exception):
    """Base class for quota subsystem failures."""

    status_code: int = 500
    message: str = "Internal Server Error"

    def __init__(self, message: str | None = None):
        if message is not None:
            self.message = message
        super().__init__(self.message)


class UserNotFoundError(UsageLimitsError):
    """The target account does not exist."""

    status_code = 404
    message = "User not found"

    def __init__(self, user_id: UUID):
        self.user_id = user_id
        super().__init__()


class UsageRecordNotFoundError(UsageLimitsError):
    """No usage row exists yet for the user (increment never creates one)."""

    status_code = 404
    message = "Usage limits not found"

    def __init__(self, user_id: UUID):
        self.user_id = user_id
        super().__init__()


class InvalidActionTypeError(UsageLimitsError):
    """The requested action is not one of the tracked actions."""

    status_code = 400
    message = "Invalid type. Must be email, coaching, or difficult_conversation"

    def __init__(self, action: object):
        self.action = action
        super().__init__()


class StorageFailureError(UsageLimitsError):
    """The underlying persistence call failed.

    The message stays generic; the original error is chained as ``__cause__``
    and logged where it was caught.
    """

    status_code = 500
    message = "Storage operation failed"
