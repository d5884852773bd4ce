from __future__ import annotations

from collections.abc import Awaitable, Callable


class CommandRouter:
    def __init__(
        self,
        *,
        on_help: Callable[[], Awaitable[None]],
        on_debug: Callable[[str], Awaitable[None]],
        on_set: Callable[[str], Awaitable[None]],
        on_toggle_parameter: Callable[[str], Awaitable[None]],
        on_system: Callable[[str], Awaitable[None]],
        on_custom: Callable[[str], Awaitable[None]],
        on_image: Callable[[str], Awaitable[None]],
        on_models: Callable[[], Awaitable[None]],
        on_groups: Callable[[], Awaitable[None]],
        on_clear: Callable[[], Awaitable[None]],
        on_unknown: Callable[[str], None],
    ) -> None:
        self._on_help = on_help
        self._on_debug = on_debug
        self._on_set = on_set
        self._on_toggle_parameter = on_toggle_parameter
        self._on_system = on_system
        self._on_custom = on_custom
        self._on_image = on_image
        self._on_models = on_models
        self._on_groups = on_groups
        self._on_clear = on_clear
        self._on_unknown = on_unknown

    async def try_handle(self, user_message: str) -> bool:
        trimmed = user_message.strip()
        if not trimmed.startswith("/"):
            return False

        if trimmed == "/help":
            await self._on_help()
            return True
        if trimmed == "/models":
            await self._on_models()
            return True
        if trimmed == "/groups":
            await self._on_groups()
            return True
        if trimmed == "/clear":
            await self._on_clear()
            return True
        if trimmed.startswith("/debug"):
            await self._on_debug(trimmed)
            return True
        if trimmed.startswith("/set"):
            await self._on_set(trimmed)
            return True
        if trimmed.startswith(("/enable", "/disable")):
            await self._on_toggle_parameter(trimmed)
            return True
        if trimmed.startswith("/system"):
            await self._on_system(trimmed)
            return True
        if trimmed.startswith("/custom"):
            await self._on_custom(trimmed)
            return True
        if trimmed.startswith("/image"):
            await self._on_image(trimmed)
            return True

        self._on_unknown(trimmed)
        return True
