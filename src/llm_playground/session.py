from __future__ import annotations

import asyncio
import json
from collections.abc import AsyncIterator, Callable, Iterable
from contextlib import aclosing
from typing import Any, Protocol, runtime_checkable

from loguru import logger

from llm_playground.config_store import ConfigStore
from llm_playground.constants import IN_FLIGHT_STATUSES, MessageRole
from llm_playground.debug_panel import DebugPanelController
from llm_playground.errors import (
    JsonParseError,
    PlaygroundError,
    RequestInProgressError,
)
from llm_playground.message_store import MessageStore
from llm_playground.models import Message, RequestConfig, default_messages, new_message_id, now_ms
from llm_playground.request_builder import RequestBuilder
from llm_playground.storage.persistence import PlaygroundPersistence
from llm_playground.transport import extract_message_content


@runtime_checkable
class ChatTransport(Protocol):
    def stream_chat(
        self,
        payload: dict,
        *,
        on_raw_line: Callable[[str], None] | None = None,
    ) -> AsyncIterator[str]:
        """Yield content fragments of a streamed completion, in order."""
        ...

    async def complete_chat(self, payload: dict) -> tuple[dict, str]:
        """Non-streaming completion. Returns (parsed body, raw body text)."""
        ...

    async def list_models(self) -> list[str]: ...

    async def list_groups(self) -> dict[str, Any]: ...


class PlaygroundSession:
    """One playground session: config, message log, debug views and transport.

    At most one exchange runs at a time. ``submit`` while another exchange is
    in flight raises ``RequestInProgressError``; ``cancel`` aborts the running
    one and leaves its reply in ``error``.
    """

    def __init__(
        self,
        transport: ChatTransport,
        *,
        persistence: PlaygroundPersistence | None = None,
        config: RequestConfig | None = None,
        messages: Iterable[Message] | None = None,
        id_factory: Callable[[], str] = new_message_id,
        on_message_update: Callable[[Message], None] | None = None,
    ):
        self._transport = transport
        self._persistence = persistence
        self._id_factory = id_factory
        self._on_message_update = on_message_update
        self.load_errors: list[PlaygroundError] = []

        if config is None:
            config = self._load_config()
        if messages is None:
            messages = self._load_messages()

        self.config_store = ConfigStore(config, on_change=self._save_config)
        self.message_store = MessageStore(messages, on_change=self._save_messages)
        self.request_builder = RequestBuilder(self.config_store)
        self.debug_panel = DebugPanelController()
        self.models: list[str] = []
        self.groups: dict[str, Any] = {}

        self._stream_task: asyncio.Task | None = None
        self._abort_requested = False
        self._interrupt_restored_messages()

    @property
    def busy(self) -> bool:
        return self._stream_task is not None or self.message_store.in_flight is not None

    async def submit(self, text: str) -> Message:
        """Send ``text`` as a user message and stream the assistant reply.

        Returns the assistant message, which ends in ``complete`` or ``error``.
        A malformed custom request body raises ``JsonParseError`` before
        anything is appended or sent.
        """
        if self.busy:
            logger.warning("Submission rejected: a request is already in progress")
            raise RequestInProgressError("a request is already in progress")
        if not text.strip():
            raise ValueError("Cannot submit an empty message")

        payload = self.request_builder.preview(self.message_store.history(), text)

        user_message = self.message_store.append(
            Message(id=self._id_factory(), role=MessageRole.USER, content=text, created_at=now_ms())
        )
        self.message_store.complete(user_message.id)
        assistant = self.message_store.append(
            Message(id=self._id_factory(), role=MessageRole.ASSISTANT, created_at=now_ms())
        )
        self.debug_panel.record_preview(payload)
        self.debug_panel.record_request(payload)

        self._abort_requested = False
        task = asyncio.create_task(self._run_exchange(assistant.id, payload))
        self._stream_task = task
        try:
            await task
        except asyncio.CancelledError:
            self._fail_if_in_flight(assistant.id, {"code": "cancelled"})
            if not self._abort_requested:
                raise
        finally:
            self._stream_task = None
            self._abort_requested = False
        return self.message_store.get(assistant.id)

    def cancel(self) -> bool:
        task = self._stream_task
        if task is None or task.done():
            return False
        logger.info("Cancelling in-flight request")
        self._abort_requested = True
        task.cancel()
        return True

    def enable_custom_request_mode(self) -> None:
        """Switch to custom mode, seeding an empty body with the current payload."""
        snapshot = self.config_store.snapshot()
        if not snapshot.custom_request_body.strip():
            payload = self.request_builder.preview(self.message_store.history())
            self.config_store.set_custom_request_body(json.dumps(payload, indent=2, ensure_ascii=False))
        self.config_store.set_custom_request_mode(True)

    def disable_custom_request_mode(self) -> None:
        self.config_store.set_custom_request_mode(False)

    def update_preview(self, draft: str = "") -> dict | None:
        try:
            payload = self.request_builder.preview(self.message_store.history(), draft)
        except JsonParseError as ex:
            logger.warning(f"Preview unavailable: {ex}")
            payload = None
        self.debug_panel.record_preview(payload)
        return payload

    def clear_messages(self) -> None:
        self.message_store.clear()
        self.debug_panel.record_preview(None)

    async def refresh_models(self) -> list[str]:
        self.models = await self._transport.list_models()
        current = self.config_store.snapshot().inputs.model
        if self.models and current not in self.models:
            logger.info(f"Model {current!r} not available; switching to {self.models[0]!r}")
            self.config_store.update_input("model", self.models[0])
        return self.models

    async def refresh_groups(self) -> dict[str, Any]:
        self.groups = await self._transport.list_groups()
        current = self.config_store.snapshot().inputs.group
        if current and current not in self.groups:
            logger.info(f"Group {current!r} not available; using the default group")
            self.config_store.update_input("group", "")
        return self.groups

    async def _run_exchange(self, message_id: str, payload: dict) -> None:
        with logger.contextualize(exchange=message_id):
            await self._stream_reply(message_id, payload)

    async def _stream_reply(self, message_id: str, payload: dict) -> None:
        try:
            if payload.get("stream", False):
                stream = self._transport.stream_chat(payload, on_raw_line=self.debug_panel.record_response_line)
                async with aclosing(stream):
                    async for fragment in stream:
                        self._notify(self.message_store.apply_fragment(message_id, fragment))
            else:
                body, raw = await self._transport.complete_chat(payload)
                self.debug_panel.record_response(raw)
                content = extract_message_content(body)
                if content:
                    self._notify(self.message_store.apply_fragment(message_id, content))
            self._notify(self.message_store.complete(message_id))
        except PlaygroundError as ex:
            logger.error(f"Request failed: {ex.describe()}")
            self._fail_if_in_flight(message_id, ex)
        except Exception as ex:
            logger.exception(f"Unexpected error during request: {ex}")
            self._fail_if_in_flight(message_id, ex)

    def _fail_if_in_flight(self, message_id: str, error_info: object) -> None:
        if self.message_store.get(message_id).status in IN_FLIGHT_STATUSES:
            self._notify(self.message_store.fail(message_id, error_info))

    def _notify(self, message: Message) -> None:
        if self._on_message_update is not None:
            self._on_message_update(message)

    def _interrupt_restored_messages(self) -> None:
        while (message_id := self.message_store.in_flight) is not None:
            logger.warning(f"Restored message {message_id} was still in flight; marking as error")
            self.message_store.fail(message_id, {"code": "interrupted", "message": "reply was interrupted"})

    def _load_config(self) -> RequestConfig:
        if self._persistence is None:
            return RequestConfig()
        try:
            return self._persistence.load_config()
        except PlaygroundError as ex:
            logger.warning(f"Ignoring stored config: {ex.describe()}")
            self.load_errors.append(ex)
            return self._persistence.default_config()

    def _load_messages(self) -> list[Message]:
        if self._persistence is None:
            return default_messages()
        try:
            return self._persistence.load_messages()
        except PlaygroundError as ex:
            logger.warning(f"Ignoring stored messages: {ex.describe()}")
            self.load_errors.append(ex)
            return default_messages()

    def _save_config(self, config: RequestConfig) -> None:
        if self._persistence is not None:
            self._persistence.save_config(config)

    def _save_messages(self) -> None:
        # Mid-stream fragments are not written; the terminal transition is.
        if self._persistence is None or self.message_store.in_flight is not None:
            return
        self._persistence.save_messages(self.message_store.messages)
