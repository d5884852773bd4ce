from __future__ import annotations

from collections.abc import Callable, Iterable, Iterator

from loguru import logger

from llm_playground.constants import IN_FLIGHT_STATUSES, MessageStatus
from llm_playground.errors import (
    DuplicateIdError,
    InvalidTransitionError,
    MessageNotFoundError,
    describe_error,
)
from llm_playground.models import Message
from llm_playground.stream_assembler import StreamAssembler


class MessageStore:
    """Ordered message log with a status state machine per message.

    loading -> incomplete -> complete, and any in-flight status -> error.
    Messages in ``complete`` or ``error`` are never mutated again.
    """

    def __init__(
        self,
        messages: Iterable[Message] = (),
        *,
        on_change: Callable[[], None] | None = None,
    ):
        self._messages: list[Message] = []
        self._by_id: dict[str, Message] = {}
        self._assemblers: dict[str, StreamAssembler] = {}
        self._on_change = on_change
        for message in messages:
            self._insert(message)

    def __len__(self) -> int:
        return len(self._messages)

    def __iter__(self) -> Iterator[Message]:
        return iter(list(self._messages))

    def __contains__(self, message_id: object) -> bool:
        return message_id in self._by_id

    @property
    def messages(self) -> list[Message]:
        return list(self._messages)

    @property
    def in_flight(self) -> str | None:
        for message in reversed(self._messages):
            if message.status in IN_FLIGHT_STATUSES:
                return message.id
        return None

    def get(self, message_id: str) -> Message:
        message = self._by_id.get(message_id)
        if message is None:
            raise MessageNotFoundError(f"no message with id {message_id!r}")
        return message

    def assembler(self, message_id: str) -> StreamAssembler | None:
        return self._assemblers.get(message_id)

    def append(self, message: Message) -> Message:
        self._insert(message)
        logger.debug(f"Message appended: id={message.id}, role={message.role}, status={message.status}")
        self._changed()
        return message

    def apply_fragment(self, message_id: str, fragment: str) -> Message:
        message = self.get(message_id)
        self._require_in_flight(message, "apply a fragment to")

        assembler = self._assemblers.get(message_id)
        if assembler is None:
            assembler = self._new_assembler(message)
            self._assemblers[message_id] = assembler

        assembler.feed(fragment)
        message.content = assembler.content
        message.reasoning_content = assembler.reasoning_content
        if message.status == MessageStatus.LOADING:
            message.status = MessageStatus.INCOMPLETE
            logger.debug(f"Message {message_id}: loading -> incomplete")
        self._changed()
        return message

    def complete(self, message_id: str) -> Message:
        message = self.get(message_id)
        self._require_in_flight(message, "complete")

        assembler = self._assemblers.pop(message_id, None)
        if assembler is not None:
            assembler.finish()
            message.content = assembler.content
            message.reasoning_content = assembler.reasoning_content

        logger.debug(f"Message {message_id}: {message.status} -> complete")
        message.status = MessageStatus.COMPLETE
        self._changed()
        return message

    def fail(self, message_id: str, error_info: object) -> Message:
        message = self.get(message_id)
        self._require_in_flight(message, "fail")

        assembler = self._assemblers.pop(message_id, None)
        if assembler is not None:
            assembler.discard()

        message.content = describe_error(error_info)
        logger.debug(f"Message {message_id}: {message.status} -> error ({message.content})")
        message.status = MessageStatus.ERROR
        self._changed()
        return message

    def history(self) -> list[Message]:
        """Completed messages, in order, that make up the next request's context."""
        return [m for m in self._messages if m.status == MessageStatus.COMPLETE]

    def clear(self) -> None:
        in_flight = self.in_flight
        if in_flight is not None:
            raise InvalidTransitionError(f"cannot clear while message {in_flight!r} is in flight")
        self._messages.clear()
        self._by_id.clear()
        self._assemblers.clear()
        self._changed()

    def to_list(self) -> list[dict]:
        return [m.to_dict() for m in self._messages]

    @classmethod
    def from_list(cls, items: Iterable[object], **kwargs) -> MessageStore:
        return cls((Message.from_dict(item) for item in items), **kwargs)

    def _insert(self, message: Message) -> None:
        if message.id in self._by_id:
            raise DuplicateIdError(f"message id {message.id!r} already exists")
        self._messages.append(message)
        self._by_id[message.id] = message

    def _new_assembler(self, message: Message) -> StreamAssembler:
        def collapse_reasoning() -> None:
            message.is_reasoning_expanded = False

        # Restored in-flight messages may already hold text; fragments extend it.
        return StreamAssembler(
            on_reasoning_started=collapse_reasoning,
            content=message.content,
            reasoning_content=message.reasoning_content,
        )

    def _require_in_flight(self, message: Message, action: str) -> None:
        if message.status not in IN_FLIGHT_STATUSES:
            raise InvalidTransitionError(
                f"cannot {action} message {message.id!r} in status {message.status}"
            )

    def _changed(self) -> None:
        if self._on_change is not None:
            self._on_change()
