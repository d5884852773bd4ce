from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path

from loguru import logger

from llm_playground.app_config import AppConfig, RuntimeEnv
from llm_playground.logging_config import setup_logging
from llm_playground.models import Message, RequestConfig
from llm_playground.session import PlaygroundSession
from llm_playground.storage import PlaygroundPersistence, SlotStore
from llm_playground.transport import PlaygroundClient


@dataclass
class AppRuntime:
    session: PlaygroundSession
    client: PlaygroundClient
    slot_store: SlotStore | None
    log_descriptions: list[str]

    async def close(self) -> None:
        await self.client.aclose()
        if self.slot_store is not None:
            self.slot_store.close()


def bootstrap_runtime(
    app: AppConfig,
    env: RuntimeEnv,
    *,
    on_message_update: Callable[[Message], None] | None = None,
) -> AppRuntime:
    log_descriptions = setup_logging(level=app.log_level, consumers=app.log_consumers, session_label="repl")

    client = PlaygroundClient(
        app.base_url,
        headers=env.auth_headers(),
        timeout=app.request_timeout_seconds,
        retry_attempts=app.retry_attempts,
        retry_wait_seconds=app.retry_wait_seconds,
    )

    defaults = RequestConfig()
    if app.default_model:
        defaults.inputs.model = app.default_model

    slot_store: SlotStore | None = None
    persistence: PlaygroundPersistence | None = None
    if app.persistence_enabled:
        db_path = Path(app.storage_path)
        if not db_path.is_absolute():
            db_path = Path.cwd() / db_path
        slot_store = SlotStore(str(db_path))
        persistence = PlaygroundPersistence(slot_store, defaults=defaults)
        logger.info(f"Playground state stored in {db_path}")

    # With persistence, DefaultModel only seeds a store that has no saved config.
    session = PlaygroundSession(
        client,
        persistence=persistence,
        config=None if persistence is not None else defaults,
        on_message_update=on_message_update,
    )

    return AppRuntime(
        session=session,
        client=client,
        slot_store=slot_store,
        log_descriptions=log_descriptions,
    )
