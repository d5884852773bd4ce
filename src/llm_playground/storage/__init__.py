from llm_playground.storage.persistence import PlaygroundPersistence
from llm_playground.storage.store import SlotStore

__all__ = [
    "PlaygroundPersistence",
    "SlotStore",
]
