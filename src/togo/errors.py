"""
Error taxonomy

Every failure a caller can observe is a TogoError with a stable
(kind, message) pair. The delivery layer maps public_kind().http_status onto
its responses and shows public_message() to end users.
"""

from enum import Enum
from http import HTTPStatus
from typing import Optional


class ErrorKind(str, Enum):
    """Kinds of failure, valued by their stable wire name"""

    INVALID_ARGUMENT = "invalid argument"
    UNAUTHENTICATED = "unauthenticated"
    PERMISSION_DENIED = "permission denied"
    NOT_FOUND = "not found"
    ALREADY_EXISTS = "already exists"
    RESOURCE_EXHAUSTED = "resource exhausted"
    INTERNAL = "internal server error"

    @property
    def http_status(self) -> int:
        return _HTTP_STATUS[self]


_HTTP_STATUS = {
    ErrorKind.INVALID_ARGUMENT: HTTPStatus.BAD_REQUEST,
    ErrorKind.UNAUTHENTICATED: HTTPStatus.UNAUTHORIZED,
    ErrorKind.PERMISSION_DENIED: HTTPStatus.FORBIDDEN,
    ErrorKind.NOT_FOUND: HTTPStatus.NOT_FOUND,
    ErrorKind.ALREADY_EXISTS: HTTPStatus.CONFLICT,
    ErrorKind.RESOURCE_EXHAUSTED: HTTPStatus.TOO_MANY_REQUESTS,
    ErrorKind.INTERNAL: HTTPStatus.INTERNAL_SERVER_ERROR,
}


class TogoError(Exception):
    """Base class for all errors raised by togo services"""

    kind: ErrorKind = ErrorKind.INTERNAL

    def __init__(self, message: Optional[str] = None):
        self.message = message or self.kind.value
        super().__init__(self.message)

    def public_message(self) -> str:
        """Message safe to show to the end user"""
        return self.message

    def public_kind(self) -> ErrorKind:
        """Kind safe to show to the end user"""
        return self.kind

    def to_dict(self) -> dict:
        return {"kind": self.public_kind().value, "message": self.public_message()}

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.message!r})"


class InvalidArgumentError(TogoError):
    kind = ErrorKind.INVALID_ARGUMENT


class UnauthenticatedError(TogoError):
    kind = ErrorKind.UNAUTHENTICATED


class PermissionDeniedError(TogoError):
    kind = ErrorKind.PERMISSION_DENIED


class NotFoundError(TogoError):
    kind = ErrorKind.NOT_FOUND


class AlreadyExistsError(TogoError):
    kind = ErrorKind.ALREADY_EXISTS


class ResourceExhaustedError(TogoError):
    kind = ErrorKind.RESOURCE_EXHAUSTED


class InternalError(TogoError):
    kind = ErrorKind.INTERNAL

    def public_message(self) -> str:
        # Storage details stay in the logs
        return ErrorKind.INTERNAL.value


class TaskAccessError(TogoError):
    """
    Mixin for task lookups that must not reveal whether the task exists

    Both "no such task" and "someone else's task" render the same public
    kind and message; kind still tells the service layer which one happened.
    """

    def __init__(self, task_id: int, message: Optional[str] = None):
        self.task_id = task_id
        super().__init__(message or f"task with id {task_id} not found")

    def public_kind(self) -> ErrorKind:
        return ErrorKind.NOT_FOUND

    def public_message(self) -> str:
        return f"task with id {self.task_id} not found"


class TaskNotFoundError(TaskAccessError, NotFoundError):
    pass


class TaskPermissionDeniedError(TaskAccessError, PermissionDeniedError):
    pass
