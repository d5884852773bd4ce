from __future__ import annotations

import json
from collections.abc import Callable

from loguru import logger

from llm_playground.constants import STORAGE_KEY_CONFIG, STORAGE_KEY_MESSAGES
from llm_playground.errors import InvalidMessageTypeError, JsonParseError
from llm_playground.models import Message, RequestConfig, default_messages
from llm_playground.storage.store import SlotStore


class PlaygroundPersistence:
    def __init__(
        self,
        store: SlotStore,
        *,
        translate: Callable[[str], str] | None = None,
        defaults: RequestConfig | None = None,
    ):
        self._store = store
        self._translate = translate
        self._defaults = defaults.copy() if defaults is not None else RequestConfig()

    def default_config(self) -> RequestConfig:
        """Config used when nothing usable is stored."""
        return self._defaults.copy()

    def load_config(self) -> RequestConfig:
        raw = self._store.read(STORAGE_KEY_CONFIG)
        if raw is None:
            return self.default_config()
        try:
            data = json.loads(raw)
        except json.JSONDecodeError as ex:
            raise JsonParseError(f"stored {STORAGE_KEY_CONFIG} is not valid JSON: {ex.msg}") from ex
        if not isinstance(data, dict):
            raise JsonParseError(f"stored {STORAGE_KEY_CONFIG} must be a JSON object")
        return RequestConfig.from_dict(data)

    def save_config(self, config: RequestConfig) -> None:
        self._store.write(STORAGE_KEY_CONFIG, json.dumps(config.to_dict(), ensure_ascii=False))
        logger.debug(f"Saved {STORAGE_KEY_CONFIG}")

    def load_messages(self) -> list[Message]:
        raw = self._store.read(STORAGE_KEY_MESSAGES)
        if raw is None:
            return default_messages(self._translate)
        try:
            items = json.loads(raw)
        except json.JSONDecodeError as ex:
            raise JsonParseError(f"stored {STORAGE_KEY_MESSAGES} is not valid JSON: {ex.msg}") from ex
        if not isinstance(items, list):
            raise InvalidMessageTypeError(f"stored {STORAGE_KEY_MESSAGES} must be a list")
        return [Message.from_dict(item) for item in items]

    def save_messages(self, messages: list[Message]) -> None:
        self._store.write(
            STORAGE_KEY_MESSAGES,
            json.dumps([m.to_dict() for m in messages], ensure_ascii=False),
        )

    def clear(self) -> None:
        self._store.delete(STORAGE_KEY_CONFIG)
        self._store.delete(STORAGE_KEY_MESSAGES)
