from __future__ import annotations

from collections.abc import Callable
from typing import Literal

from llm_playground.constants import THINK_CLOSE_TAG, THINK_OPEN_TAG
from llm_playground.errors import StreamClosedError

SegmentKind = Literal["content", "reasoning"]


def _partial_tag_suffix(text: str, tag: str) -> int:
    """Length of the longest suffix of ``text`` that is a proper prefix of ``tag``."""
    for size in range(min(len(text), len(tag) - 1), 0, -1):
        if tag.startswith(text[-size:]):
            return size
    return 0


class StreamAssembler:
    """Split streamed text into visible content and ``<think>`` reasoning.

    Fragments may cut a tag anywhere, so a trailing partial tag is held back
    until later fragments resolve it. Only balanced spans count as reasoning:
    an opening tag still unclosed when ``finish()`` runs is flushed, tag
    included, as literal content. Matching is non-greedy, so a nested opening
    tag inside a span is reasoning text and a closing tag with no open span
    is content.
    """

    def __init__(
        self,
        *,
        open_tag: str = THINK_OPEN_TAG,
        close_tag: str = THINK_CLOSE_TAG,
        on_reasoning_started: Callable[[], None] | None = None,
        content: str = "",
        reasoning_content: str = "",
    ):
        self._open_tag = open_tag
        self._close_tag = close_tag
        self._on_reasoning_started = on_reasoning_started
        self._buffer = ""
        self._in_reasoning = False
        # Offset in the buffer before which the close tag is known to be absent.
        self._search_from = 0
        self._segments: list[tuple[SegmentKind, str]] = []
        # Text already on the message before this assembler took over; not part of segments.
        self._content_parts: list[str] = [content] if content else []
        self._reasoning_parts: list[str] = [reasoning_content] if reasoning_content else []
        self._reasoning_started = bool(reasoning_content)
        self._finished = False

    @property
    def content(self) -> str:
        return "".join(self._content_parts)

    @property
    def reasoning_content(self) -> str:
        return "".join(self._reasoning_parts)

    @property
    def pending_reasoning(self) -> str:
        """Text of the currently open span, for live display only."""
        if not self._in_reasoning:
            return ""
        keep = _partial_tag_suffix(self._buffer, self._close_tag)
        return self._buffer[: len(self._buffer) - keep]

    @property
    def segments(self) -> list[tuple[SegmentKind, str]]:
        return list(self._segments)

    @property
    def finished(self) -> bool:
        return self._finished

    def feed(self, fragment: str) -> None:
        if self._finished:
            raise StreamClosedError("cannot feed a finished stream")
        if not fragment:
            return
        self._buffer += fragment
        self._scan()

    def finish(self) -> None:
        if self._finished:
            return
        if self._in_reasoning:
            self._emit("content", self._open_tag + self._buffer)
        else:
            self._emit("content", self._buffer)
        self._buffer = ""
        self._in_reasoning = False
        self._search_from = 0
        self._finished = True

    def discard(self) -> None:
        """Drop buffered partial state without emitting it and close the stream."""
        self._buffer = ""
        self._in_reasoning = False
        self._search_from = 0
        self._finished = True

    def _scan(self) -> None:
        while True:
            if self._in_reasoning:
                idx = self._buffer.find(self._close_tag, self._search_from)
                if idx == -1:
                    self._search_from = max(0, len(self._buffer) - len(self._close_tag) + 1)
                    return
                self._emit("reasoning", self._buffer[:idx])
                self._buffer = self._buffer[idx + len(self._close_tag):]
                self._in_reasoning = False
                self._search_from = 0
                continue

            idx = self._buffer.find(self._open_tag)
            if idx == -1:
                keep = _partial_tag_suffix(self._buffer, self._open_tag)
                self._emit("content", self._buffer[: len(self._buffer) - keep])
                self._buffer = self._buffer[len(self._buffer) - keep:]
                return
            self._emit("content", self._buffer[:idx])
            self._buffer = self._buffer[idx + len(self._open_tag):]
            self._in_reasoning = True
            self._search_from = 0

    def _emit(self, kind: SegmentKind, text: str) -> None:
        if not text:
            return
        if self._segments and self._segments[-1][0] == kind:
            self._segments[-1] = (kind, self._segments[-1][1] + text)
        else:
            self._segments.append((kind, text))

        if kind == "content":
            self._content_parts.append(text)
            return

        self._reasoning_parts.append(text)
        if not self._reasoning_started:
            self._reasoning_started = True
            if self._on_reasoning_started is not None:
                self._on_reasoning_started()
