from __future__ import annotations

from collections.abc import Callable
from typing import Any

from loguru import logger

from llm_playground.constants import TUNABLE_PARAMETERS
from llm_playground.models import RequestConfig, input_attribute


_FLOAT_INPUTS = frozenset({"temperature", "top_p", "frequency_penalty", "presence_penalty"})
_INT_INPUTS = frozenset({"max_tokens", "seed"})
_BOOL_INPUTS = frozenset({"stream", "image_enabled"})


def _coerce_input(attr: str, value: Any) -> Any:
    """Check ``value`` against the type of input ``attr``; raises ValueError."""
    if attr == "image_urls":
        if isinstance(value, str):
            value = [value]
        if not isinstance(value, (list, tuple)):
            raise ValueError(f"image_urls must be a list of URLs, got {type(value).__name__}")
        return [str(url) for url in value] or [""]
    if attr in _BOOL_INPUTS:
        if not isinstance(value, bool):
            raise ValueError(f"{attr} must be true or false, got {value!r}")
        return value
    if attr in _FLOAT_INPUTS or attr in _INT_INPUTS:
        if value is None:
            return None
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise ValueError(f"{attr} must be a number, got {value!r}")
        if attr in _INT_INPUTS:
            if isinstance(value, float) and not value.is_integer():
                raise ValueError(f"{attr} must be a whole number, got {value!r}")
            return int(value)
        return value
    # Numbers typed at the REPL arrive parsed; model and group names are text.
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return str(value)
    if not isinstance(value, str):
        raise ValueError(f"{attr} must be text, got {value!r}")
    return value


class ConfigStore:
    """Owns the session's RequestConfig and every edit made to it.

    Readers get deep copies from ``snapshot()``, so a built request can never
    alias live state.
    """

    def __init__(
        self,
        config: RequestConfig | None = None,
        *,
        on_change: Callable[[RequestConfig], None] | None = None,
    ):
        self._config = config.copy() if config is not None else RequestConfig()
        self._on_change = on_change

    def snapshot(self) -> RequestConfig:
        return self._config.copy()

    @property
    def custom_request_mode(self) -> bool:
        return self._config.custom_request_mode

    @property
    def show_debug_panel(self) -> bool:
        return self._config.show_debug_panel

    def update_input(self, name: str, value: Any) -> None:
        attr = input_attribute(name)
        value = _coerce_input(attr, value)
        setattr(self._config.inputs, attr, value)
        logger.debug(f"Config input {attr} set to {value!r}")
        self._changed()

    def update_inputs(self, **values: Any) -> None:
        # Validate everything first so a bad value leaves the config untouched.
        coerced = {}
        for name, value in values.items():
            attr = input_attribute(name)
            coerced[attr] = _coerce_input(attr, value)
        for attr, value in coerced.items():
            setattr(self._config.inputs, attr, value)
        self._changed()

    def set_parameter_enabled(self, name: str, enabled: bool) -> None:
        if name not in TUNABLE_PARAMETERS:
            raise ValueError(
                f"Unknown tunable parameter: {name!r}. Supported: {', '.join(TUNABLE_PARAMETERS)}"
            )
        self._config.parameter_enabled[name] = bool(enabled)
        logger.debug(f"Parameter {name} {'enabled' if enabled else 'disabled'}")
        self._changed()

    def toggle_parameter(self, name: str) -> bool:
        enabled = not self._config.parameter_enabled.get(name, False)
        self.set_parameter_enabled(name, enabled)
        return enabled

    def set_system_prompt(self, prompt: str) -> None:
        self._config.system_prompt = prompt
        self._changed()

    def set_show_debug_panel(self, show: bool) -> None:
        self._config.show_debug_panel = bool(show)
        self._changed()

    def set_custom_request_mode(self, enabled: bool) -> None:
        self._config.custom_request_mode = bool(enabled)
        self._changed()

    def set_custom_request_body(self, body: str) -> None:
        self._config.custom_request_body = body
        self._changed()

    def set_image_enabled(self, enabled: bool) -> None:
        self._config.inputs.image_enabled = bool(enabled)
        self._changed()

    def add_image_url(self, url: str) -> None:
        urls = [u for u in self._config.inputs.image_urls if u.strip()]
        urls.append(url)
        self._config.inputs.image_urls = urls
        self._changed()

    def reset(self) -> None:
        self._config = RequestConfig()
        logger.info("Request config reset to defaults")
        self._changed()

    def replace(self, config: RequestConfig) -> None:
        self._config = config.copy()
        self._changed()

    def _changed(self) -> None:
        if self._on_change is not None:
            self._on_change(self.snapshot())
