import json
import unittest

from llm_playground.constants import (
    DEFAULT_MESSAGE_ASSISTANT_KEY,
    DEFAULT_MESSAGE_USER_KEY,
    DEFAULT_MESSAGES_CREATED_AT,
    MessageRole,
    MessageStatus,
)
from llm_playground.errors import InvalidMessageTypeError
from llm_playground.models import (
    Message,
    RequestConfig,
    default_messages,
    input_attribute,
)


class MessageTests(unittest.TestCase):
    def test_new_message_defaults(self) -> None:
        message = Message(id="m", role=MessageRole.ASSISTANT)
        self.assertEqual(MessageStatus.LOADING, message.status)
        self.assertTrue(message.is_reasoning_expanded)
        self.assertEqual("", message.content)
        self.assertGreater(message.created_at, 0)

    def test_to_dict_uses_stored_key_names(self) -> None:
        message = Message(id="m", role=MessageRole.USER, content="hi", status=MessageStatus.COMPLETE, created_at=5)
        self.assertEqual(
            {
                "id": "m",
                "role": "user",
                "createdAt": 5,
                "content": "hi",
                "reasoningContent": "",
                "isReasoningExpanded": True,
                "status": "complete",
            },
            message.to_dict(),
        )

    def test_from_dict_accepts_legacy_timestamp_and_missing_status(self) -> None:
        message = Message.from_dict({"id": "1", "role": "assistant", "content": "x", "createAt": 99})
        self.assertEqual(99, message.created_at)
        self.assertEqual(MessageStatus.COMPLETE, message.status)

    def test_from_dict_rejects_bad_entries(self) -> None:
        bad = [
            "not a dict",
            {"id": "1", "role": "tool", "content": ""},
            {"id": "1", "role": "user", "content": [{"type": "text"}]},
            {"id": "", "role": "user", "content": ""},
            {"id": "1", "role": "user", "content": "", "status": "pending"},
        ]
        for item in bad:
            with self.subTest(item=item):
                with self.assertRaises(InvalidMessageTypeError):
                    Message.from_dict(item)


class DefaultMessagesTests(unittest.TestCase):
    def test_english_defaults(self) -> None:
        messages = default_messages()
        self.assertEqual(["2", "3"], [m.id for m in messages])
        self.assertEqual([MessageRole.USER, MessageRole.ASSISTANT], [m.role for m in messages])
        self.assertTrue(all(m.status == MessageStatus.COMPLETE for m in messages))
        self.assertTrue(all(m.created_at == DEFAULT_MESSAGES_CREATED_AT for m in messages))

    def test_translator_receives_keys(self) -> None:
        messages = default_messages(lambda key: f"<{key}>")
        self.assertEqual(f"<{DEFAULT_MESSAGE_USER_KEY}>", messages[0].content)
        self.assertEqual(f"<{DEFAULT_MESSAGE_ASSISTANT_KEY}>", messages[1].content)

    def test_each_call_returns_fresh_objects(self) -> None:
        first = default_messages()
        first[0].content = "edited"
        self.assertNotEqual("edited", default_messages()[0].content)


class RequestConfigTests(unittest.TestCase):
    def test_json_round_trip(self) -> None:
        config = RequestConfig(system_prompt="sys", custom_request_body='{"a": 1}')
        config.inputs.seed = 3
        config.inputs.image_urls = ["https://example.com/i.png"]
        config.parameter_enabled["seed"] = True
        restored = RequestConfig.from_dict(json.loads(json.dumps(config.to_dict())))
        self.assertEqual(config, restored)

    def test_from_dict_merges_over_defaults(self) -> None:
        restored = RequestConfig.from_dict(
            {"inputs": {"model": "m", "unknown": 1}, "parameterEnabled": {"max_tokens": True}, "other": 2}
        )
        defaults = RequestConfig()
        self.assertEqual("m", restored.inputs.model)
        self.assertEqual(defaults.inputs.temperature, restored.inputs.temperature)
        self.assertTrue(restored.parameter_enabled["max_tokens"])
        self.assertTrue(restored.parameter_enabled["temperature"])
        self.assertEqual("", restored.system_prompt)

    def test_from_dict_restores_image_slot(self) -> None:
        restored = RequestConfig.from_dict({"inputs": {"imageUrls": []}})
        self.assertEqual([""], restored.inputs.image_urls)

    def test_copy_is_deep(self) -> None:
        config = RequestConfig()
        clone = config.copy()
        clone.inputs.image_urls.append("x")
        clone.parameter_enabled["seed"] = True
        self.assertEqual(RequestConfig(), config)


class InputAttributeTests(unittest.TestCase):
    def test_resolves_both_spellings(self) -> None:
        self.assertEqual("image_enabled", input_attribute("imageEnabled"))
        self.assertEqual("image_enabled", input_attribute("image_enabled"))
        self.assertEqual("top_p", input_attribute("top_p"))

    def test_unknown_name(self) -> None:
        with self.assertRaises(ValueError):
            input_attribute("systemPrompt")


if __name__ == "__main__":
    unittest.main()
