from __future__ import annotations

import copy
import time
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any
from uuid import uuid4

from llm_playground.constants import (
    DEFAULT_MESSAGE_ASSISTANT_KEY,
    DEFAULT_MESSAGE_USER_KEY,
    DEFAULT_MESSAGES_CREATED_AT,
    DEFAULT_PARAMETER_ENABLED,
    TUNABLE_PARAMETERS,
    MessageRole,
    MessageStatus,
)
from llm_playground.errors import InvalidMessageTypeError


def now_ms() -> int:
    return int(time.time() * 1000)


def new_message_id() -> str:
    return str(uuid4())


@dataclass
class Message:
    id: str
    role: MessageRole
    content: str = ""
    reasoning_content: str = ""
    is_reasoning_expanded: bool = True
    status: MessageStatus = MessageStatus.LOADING
    created_at: int = field(default_factory=now_ms)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "role": str(self.role),
            "createdAt": self.created_at,
            "content": self.content,
            "reasoningContent": self.reasoning_content,
            "isReasoningExpanded": self.is_reasoning_expanded,
            "status": str(self.status),
        }

    @classmethod
    def from_dict(cls, data: object) -> Message:
        if not isinstance(data, dict):
            raise InvalidMessageTypeError(f"message must be an object, got {type(data).__name__}")
        try:
            role = MessageRole(data.get("role"))
        except ValueError:
            raise InvalidMessageTypeError(f"unsupported message role: {data.get('role')!r}") from None
        content = data.get("content", "")
        if not isinstance(content, str):
            raise InvalidMessageTypeError(f"message content must be text, got {type(content).__name__}")
        message_id = data.get("id")
        if not isinstance(message_id, str) or not message_id:
            raise InvalidMessageTypeError("message id must be a non-empty string")
        try:
            status = MessageStatus(data.get("status", MessageStatus.COMPLETE))
        except ValueError:
            raise InvalidMessageTypeError(f"unsupported message status: {data.get('status')!r}") from None
        # Older stored logs used "createAt".
        created_at = data.get("createdAt", data.get("createAt", 0))
        return cls(
            id=message_id,
            role=role,
            content=content,
            reasoning_content=str(data.get("reasoningContent") or ""),
            is_reasoning_expanded=bool(data.get("isReasoningExpanded", True)),
            status=status,
            created_at=int(created_at or 0),
        )


def default_messages(translate: Callable[[str], str] | None = None) -> list[Message]:
    """Example exchange shown in a fresh playground."""
    user_text = translate(DEFAULT_MESSAGE_USER_KEY) if translate else "Hello"
    assistant_text = (
        translate(DEFAULT_MESSAGE_ASSISTANT_KEY) if translate else "Hello! How can I help you today?"
    )
    return [
        Message(
            id="2",
            role=MessageRole.USER,
            content=user_text,
            status=MessageStatus.COMPLETE,
            created_at=DEFAULT_MESSAGES_CREATED_AT,
        ),
        Message(
            id="3",
            role=MessageRole.ASSISTANT,
            content=assistant_text,
            reasoning_content="",
            is_reasoning_expanded=False,
            status=MessageStatus.COMPLETE,
            created_at=DEFAULT_MESSAGES_CREATED_AT,
        ),
    ]


@dataclass
class RequestInputs:
    model: str = "gpt-4o"
    group: str = ""
    temperature: float | None = 0.7
    top_p: float | None = 1
    max_tokens: int | None = 4096
    frequency_penalty: float | None = 0
    presence_penalty: float | None = 0
    seed: int | None = None
    stream: bool = True
    image_enabled: bool = False
    image_urls: list[str] = field(default_factory=lambda: [""])


# Storage key -> attribute name for RequestInputs.
_INPUT_KEYS = {
    "model": "model",
    "group": "group",
    "temperature": "temperature",
    "top_p": "top_p",
    "max_tokens": "max_tokens",
    "frequency_penalty": "frequency_penalty",
    "presence_penalty": "presence_penalty",
    "seed": "seed",
    "stream": "stream",
    "imageEnabled": "image_enabled",
    "imageUrls": "image_urls",
}


def input_attribute(name: str) -> str:
    """Resolve an input name in either storage or attribute spelling."""
    if name in _INPUT_KEYS:
        return _INPUT_KEYS[name]
    if name in _INPUT_KEYS.values():
        return name
    raise ValueError(f"Unknown request input: {name!r}")


@dataclass
class RequestConfig:
    inputs: RequestInputs = field(default_factory=RequestInputs)
    parameter_enabled: dict[str, bool] = field(default_factory=lambda: dict(DEFAULT_PARAMETER_ENABLED))
    system_prompt: str = ""
    show_debug_panel: bool = False
    custom_request_mode: bool = False
    custom_request_body: str = ""

    def copy(self) -> RequestConfig:
        return copy.deepcopy(self)

    def to_dict(self) -> dict[str, Any]:
        return {
            "inputs": {key: copy.deepcopy(getattr(self.inputs, attr)) for key, attr in _INPUT_KEYS.items()},
            "parameterEnabled": {name: bool(self.parameter_enabled.get(name, False)) for name in TUNABLE_PARAMETERS},
            "systemPrompt": self.system_prompt,
            "showDebugPanel": self.show_debug_panel,
            "customRequestMode": self.custom_request_mode,
            "customRequestBody": self.custom_request_body,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> RequestConfig:
        """Merge a stored config over the defaults; unknown keys are ignored."""
        config = cls()
        raw_inputs = data.get("inputs")
        if isinstance(raw_inputs, dict):
            for key, attr in _INPUT_KEYS.items():
                if key in raw_inputs:
                    setattr(config.inputs, attr, copy.deepcopy(raw_inputs[key]))
        if not isinstance(config.inputs.image_urls, list) or not config.inputs.image_urls:
            config.inputs.image_urls = [""]
        raw_enabled = data.get("parameterEnabled")
        if isinstance(raw_enabled, dict):
            for name in TUNABLE_PARAMETERS:
                if name in raw_enabled:
                    config.parameter_enabled[name] = bool(raw_enabled[name])
        config.system_prompt = str(data.get("systemPrompt", config.system_prompt) or "")
        config.show_debug_panel = bool(data.get("showDebugPanel", config.show_debug_panel))
        config.custom_request_mode = bool(data.get("customRequestMode", config.custom_request_mode))
        config.custom_request_body = str(data.get("customRequestBody", config.custom_request_body) or "")
        return config
