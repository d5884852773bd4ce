from __future__ import annotations

from dataclasses import dataclass, field

from llm_playground.constants import DebugTab
from llm_playground.errors import InvalidTabError
from llm_playground.models import now_ms


@dataclass
class DebugData:
    preview: dict | None = None
    request: dict | None = None
    response: str = ""
    timestamp: int | None = None
    response_lines: list[str] = field(default_factory=list)


class DebugPanelController:
    def __init__(self, active: DebugTab | str = DebugTab.PREVIEW):
        self._active = DebugTab.PREVIEW
        self.data = DebugData()
        self.select(active)

    @property
    def active(self) -> DebugTab:
        return self._active

    def select(self, tab: DebugTab | str) -> DebugTab:
        try:
            self._active = DebugTab(tab)
        except ValueError:
            raise InvalidTabError(
                f"unknown debug tab {tab!r}; expected one of: {', '.join(t.value for t in DebugTab)}"
            ) from None
        return self._active

    def record_preview(self, payload: dict | None) -> None:
        self.data.preview = payload

    def record_request(self, payload: dict) -> None:
        self.data.request = payload
        self.data.response = ""
        self.data.response_lines = []
        self.data.timestamp = now_ms()

    def record_response_line(self, line: str) -> None:
        self.data.response_lines.append(line)
        self.data.response = "\n".join(self.data.response_lines)

    def record_response(self, body: str) -> None:
        self.data.response_lines = [body]
        self.data.response = body

    def current_view(self) -> dict | str | None:
        if self._active == DebugTab.PREVIEW:
            return self.data.preview
        if self._active == DebugTab.REQUEST:
            return self.data.request
        return self.data.response
