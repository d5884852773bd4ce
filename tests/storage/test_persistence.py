from llm_playground.constants import STORAGE_KEY_CONFIG, STORAGE_KEY_MESSAGES, MessageRole, MessageStatus
from llm_playground.errors import InvalidMessageTypeError, JsonParseError
from llm_playground.models import Message, RequestConfig, default_messages
from llm_playground.storage import PlaygroundPersistence
from tests.storage.base import SlotStoreTestCase


class PlaygroundPersistenceTests(SlotStoreTestCase):
    def test_empty_store_gives_defaults(self) -> None:
        self.assertEqual(RequestConfig(), self._persistence.load_config())
        self.assertEqual(default_messages(), self._persistence.load_messages())

    def test_default_messages_use_translator(self) -> None:
        persistence = PlaygroundPersistence(self._store, translate=lambda key: key.upper())
        messages = persistence.load_messages()
        self.assertEqual("PLAYGROUND.DEFAULTMESSAGEUSER", messages[0].content)

    def test_config_round_trip(self) -> None:
        config = RequestConfig(system_prompt="You are terse.", show_debug_panel=True)
        config.inputs.model = "deepseek-r1"
        config.parameter_enabled["max_tokens"] = True
        self._persistence.save_config(config)
        self.assertEqual(config, self._persistence.load_config())

    def test_messages_round_trip(self) -> None:
        messages = [
            Message(id="u", role=MessageRole.USER, content="q", status=MessageStatus.COMPLETE, created_at=1),
            Message(
                id="a",
                role=MessageRole.ASSISTANT,
                content="ans",
                reasoning_content="why",
                is_reasoning_expanded=False,
                status=MessageStatus.COMPLETE,
                created_at=2,
            ),
        ]
        self._persistence.save_messages(messages)
        self.assertEqual(messages, self._persistence.load_messages())

    def test_malformed_config(self) -> None:
        for raw in ("{not json", "[1]"):
            with self.subTest(raw=raw):
                self._store.write(STORAGE_KEY_CONFIG, raw)
                with self.assertRaises(JsonParseError):
                    self._persistence.load_config()

    def test_malformed_messages(self) -> None:
        self._store.write(STORAGE_KEY_MESSAGES, "[{")
        with self.assertRaises(JsonParseError):
            self._persistence.load_messages()

        self._store.write(STORAGE_KEY_MESSAGES, '{"id": "x"}')
        with self.assertRaises(InvalidMessageTypeError):
            self._persistence.load_messages()

        self._store.write(STORAGE_KEY_MESSAGES, '[{"id": "x", "role": "user", "content": {"text": "hi"}}]')
        with self.assertRaises(InvalidMessageTypeError):
            self._persistence.load_messages()

    def test_clear_removes_both_slots(self) -> None:
        self._persistence.save_config(RequestConfig())
        self._persistence.save_messages([])
        self._persistence.clear()
        self.assertEqual([], self._store.keys())
