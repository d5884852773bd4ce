from __future__ import annotations

import json
import os
from dataclasses import dataclass
from pathlib import Path


@dataclass
class RuntimeEnv:
    api_key: str
    user_id: str | None

    def auth_headers(self) -> dict[str, str]:
        headers: dict[str, str] = {}
        if self.api_key:
            headers["Authorization"] = f"Bearer {self.api_key}"
        if self.user_id:
            headers["New-Api-User"] = self.user_id
        return headers


@dataclass
class AppConfig:
    base_url: str
    default_model: str
    request_timeout_seconds: float
    retry_attempts: int
    retry_wait_seconds: float
    persistence_enabled: bool
    storage_path: str
    log_level: str
    log_consumers: list | None


def load_json_config(path: Path | None = None) -> dict:
    config_path = path or Path.cwd() / "config.json"
    if config_path.exists():
        with open(config_path) as f:
            return json.load(f)
    return {}


def _to_bool(value: object, default: bool = False) -> bool:
    if value is None:
        return default
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in {"1", "true", "yes", "on"}:
            return True
        if lowered in {"0", "false", "no", "off"}:
            return False
    return bool(value)


def parse_app_config(config: dict) -> AppConfig:
    return AppConfig(
        base_url=str(config.get("BaseUrl", "http://localhost:3000")).rstrip("/"),
        default_model=str(config.get("DefaultModel", "")).strip(),
        request_timeout_seconds=float(config.get("RequestTimeoutSeconds", 120)),
        retry_attempts=int(config.get("RetryAttempts", 3)),
        retry_wait_seconds=float(config.get("RetryWaitSeconds", 1.0)),
        persistence_enabled=_to_bool(config.get("PersistenceEnabled", True), default=True),
        storage_path=str(config.get("StoragePath", ".llm_playground/playground.db")),
        log_level=config.get("LogLevel", "INFO"),
        log_consumers=config.get("LogConsumers"),
    )


def resolve_runtime_env() -> RuntimeEnv:
    return RuntimeEnv(
        api_key=os.environ.get("PLAYGROUND_API_KEY", ""),
        user_id=os.environ.get("PLAYGROUND_USER_ID") or None,
    )
