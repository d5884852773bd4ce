from __future__ import annotations

from llm_playground.constants import ERROR_MESSAGE_KEYS


class PlaygroundError(Exception):
    """Base class for every error the playground surfaces to the user.

    ``code`` is a short machine-readable identifier and ``message_key`` the
    i18n key a front end translates; ``describe()`` gives the plain text shown
    when no translator is available.
    """

    code = "playground_error"
    message_key = ERROR_MESSAGE_KEYS["api_request_error"]

    def describe(self) -> str:
        detail = str(self)
        return f"{self.code}: {detail}" if detail else self.code


class DuplicateIdError(PlaygroundError):
    code = "duplicate_id"


class MessageNotFoundError(PlaygroundError):
    code = "message_not_found"


class InvalidTransitionError(PlaygroundError):
    code = "invalid_transition"


class StreamClosedError(PlaygroundError):
    code = "stream_closed"


class JsonParseError(PlaygroundError):
    code = "json_parse_error"
    message_key = ERROR_MESSAGE_KEYS["json_parse_error"]


class InvalidTabError(PlaygroundError):
    code = "invalid_tab"


class RequestInProgressError(PlaygroundError):
    code = "request_in_progress"


class NetworkError(PlaygroundError):
    code = "network"
    message_key = ERROR_MESSAGE_KEYS["network_error"]

    def __init__(self, message: str = "", *, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code

    def describe(self) -> str:
        if self.status_code is not None:
            return f"{self.code} (HTTP {self.status_code}): {self}"
        return super().describe()


class CopyFailedError(PlaygroundError):
    code = "copy_failed"
    message_key = ERROR_MESSAGE_KEYS["copy_failed"]


class CopyHttpsRequiredError(PlaygroundError):
    code = "copy_https_required"
    message_key = ERROR_MESSAGE_KEYS["copy_https_required"]


class InvalidMessageTypeError(PlaygroundError):
    code = "invalid_message_type"
    message_key = ERROR_MESSAGE_KEYS["invalid_message_type"]


CANCELLED_DESCRIPTION = "cancelled: request aborted by user"


def describe_error(error_info: object) -> str:
    """Turn anything passed to ``MessageStore.fail`` into user-visible text."""
    if isinstance(error_info, PlaygroundError):
        return error_info.describe()
    if isinstance(error_info, BaseException):
        detail = str(error_info)
        name = type(error_info).__name__
        return f"{name}: {detail}" if detail else name
    if isinstance(error_info, dict):
        code = str(error_info.get("code", "error"))
        message = error_info.get("message")
        if code == "cancelled" and not message:
            return CANCELLED_DESCRIPTION
        return f"{code}: {message}" if message else code
    if error_info is None:
        return "error"
    return str(error_info)
