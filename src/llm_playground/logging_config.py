import sys
from pathlib import Path
from typing import Any, Protocol, runtime_checkable

from loguru import logger

# Console shares the terminal with streamed replies; WARNING unless a consumer overrides it.
_CONSOLE_DEFAULT_LEVEL = "WARNING"

# Every record carries the REPL session label and the id of the exchange's reply, if any.
_CONTEXT_FORMAT = "{extra[session]}/{extra[exchange]}"


@runtime_checkable
class LogConsumer(Protocol):
    def register(self, level: str) -> None: ...
    def describe(self, level: str) -> str: ...


class ConsoleLogConsumer:
    def register(self, level: str) -> None:
        logger.add(
            sys.stderr,
            level=level,
            colorize=True,
            format=f"<level>{{level:<8}}</level> <magenta>[{_CONTEXT_FORMAT}]</magenta> <level>{{message}}</level>",
        )

    def describe(self, level: str) -> str:
        return f"console (stderr, {level})"


class FileLogConsumer:
    def __init__(self, path: str = "playground.log", rotation: str = "5 MB", retention: int = 3):
        self._path = path
        self._rotation = rotation
        self._retention = retention

    def register(self, level: str) -> None:
        Path(self._path).parent.mkdir(parents=True, exist_ok=True)
        logger.add(
            self._path,
            level=level,
            format=f"{{time:YYYY-MM-DD HH:mm:ss.SSS}} | {{level:<8}} | {_CONTEXT_FORMAT} | {{name}}:{{line}} - {{message}}",
            rotation=self._rotation,
            retention=self._retention,
            encoding="utf-8",
        )

    def describe(self, level: str) -> str:
        return f"file ({self._path}, {level})"


class JsonLinesLogConsumer:
    """One JSON object per record, for replaying an exchange outside the REPL."""

    def __init__(self, path: str = "playground.jsonl", rotation: str = "20 MB"):
        self._path = path
        self._rotation = rotation

    def register(self, level: str) -> None:
        Path(self._path).parent.mkdir(parents=True, exist_ok=True)
        logger.add(self._path, level=level, serialize=True, rotation=self._rotation, encoding="utf-8")

    def describe(self, level: str) -> str:
        return f"jsonl ({self._path}, {level})"


_CONSUMER_TYPES: dict[str, type] = {
    "console": ConsoleLogConsumer,
    "file": FileLogConsumer,
    "jsonl": JsonLinesLogConsumer,
}

_DEFAULT_CONSUMERS = [
    {"type": "console", "level": _CONSOLE_DEFAULT_LEVEL},
    {"type": "file"},
]


def setup_logging(
    level: str = "INFO",
    consumers: list[dict[str, Any]] | None = None,
    *,
    session_label: str = "-",
) -> list[str]:
    """Replace all sinks with the configured consumers.

    ``consumers`` entries look like ``{"type": "file", "level": "DEBUG", "path": ...}``;
    keys other than ``type`` and ``level`` go to the consumer's constructor.
    Unknown types are skipped with a warning. Returns one description per
    registered consumer, for the startup banner.
    """
    logger.remove()
    logger.configure(extra={"session": session_label, "exchange": "-"})

    descriptions: list[str] = []
    for entry in _DEFAULT_CONSUMERS if consumers is None else consumers:
        sink_type = entry.get("type", "")
        consumer_cls = _CONSUMER_TYPES.get(sink_type)
        if consumer_cls is None:
            logger.warning(f"Unknown log consumer type: {sink_type!r}")
            continue

        sink_level = entry.get("level", level)
        consumer = consumer_cls(**{k: v for k, v in entry.items() if k not in ("type", "level")})
        consumer.register(sink_level)
        descriptions.append(consumer.describe(sink_level))

    return descriptions
