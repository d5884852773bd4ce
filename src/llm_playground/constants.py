from __future__ import annotations

from enum import StrEnum


class MessageStatus(StrEnum):
    LOADING = "loading"
    INCOMPLETE = "incomplete"
    COMPLETE = "complete"
    ERROR = "error"


class MessageRole(StrEnum):
    USER = "user"
    ASSISTANT = "assistant"
    SYSTEM = "system"


class DebugTab(StrEnum):
    PREVIEW = "preview"
    REQUEST = "request"
    RESPONSE = "response"


IN_FLIGHT_STATUSES = frozenset({MessageStatus.LOADING, MessageStatus.INCOMPLETE})

CHAT_COMPLETIONS_PATH = "/pg/chat/completions"
USER_MODELS_PATH = "/api/user/models"
USER_GROUPS_PATH = "/api/user/self/groups"

STORAGE_KEY_CONFIG = "playground_config"
STORAGE_KEY_MESSAGES = "playground_messages"

THINK_OPEN_TAG = "<think>"
THINK_CLOSE_TAG = "</think>"

# Tunable inputs that can be switched off individually.
TUNABLE_PARAMETERS = (
    "temperature",
    "top_p",
    "max_tokens",
    "frequency_penalty",
    "presence_penalty",
    "seed",
)

DEFAULT_PARAMETER_ENABLED = {
    "temperature": True,
    "top_p": True,
    "max_tokens": False,
    "frequency_penalty": True,
    "presence_penalty": True,
    "seed": False,
}

# i18n keys; the front end owns translation.
ERROR_MESSAGE_KEYS = {
    "no_text_content": "playground.error.noTextContent",
    "invalid_message_type": "playground.error.invalidMessageType",
    "copy_failed": "playground.error.copyFailed",
    "copy_https_required": "playground.error.copyHttpsRequired",
    "browser_not_supported": "playground.error.browserNotSupported",
    "json_parse_error": "playground.error.jsonParseError",
    "api_request_error": "playground.error.apiRequestError",
    "network_error": "playground.error.networkError",
}

DEFAULT_MESSAGE_USER_KEY = "playground.defaultMessageUser"
DEFAULT_MESSAGE_ASSISTANT_KEY = "playground.defaultMessageAssistant"
DEFAULT_MESSAGES_CREATED_AT = 1715676751919
