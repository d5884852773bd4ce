import json
import unittest

from llm_playground.config_store import ConfigStore
from llm_playground.constants import MessageRole, MessageStatus
from llm_playground.errors import JsonParseError
from llm_playground.models import Message, RequestConfig
from llm_playground.request_builder import RequestBuilder, build_payload, parse_custom_body


def _history() -> list[Message]:
    return [
        Message(id="u1", role=MessageRole.USER, content="Hi", status=MessageStatus.COMPLETE),
        Message(id="a1", role=MessageRole.ASSISTANT, content="Hello!", status=MessageStatus.COMPLETE),
        Message(id="u2", role=MessageRole.USER, content="Describe this", status=MessageStatus.COMPLETE),
    ]


class BuildPayloadTests(unittest.TestCase):
    def test_default_config_payload(self) -> None:
        payload = build_payload(RequestConfig(), _history())
        self.assertEqual("gpt-4o", payload["model"])
        self.assertEqual("", payload["group"])
        self.assertTrue(payload["stream"])
        self.assertEqual(0.7, payload["temperature"])
        self.assertEqual(1, payload["top_p"])
        self.assertEqual(0, payload["frequency_penalty"])
        self.assertEqual(0, payload["presence_penalty"])
        self.assertNotIn("max_tokens", payload)
        self.assertNotIn("seed", payload)
        self.assertEqual(
            [
                {"role": "user", "content": "Hi"},
                {"role": "assistant", "content": "Hello!"},
                {"role": "user", "content": "Describe this"},
            ],
            payload["messages"],
        )

    def test_disabled_parameter_is_never_included(self) -> None:
        config = RequestConfig()
        config.inputs.max_tokens = 128
        config.parameter_enabled["max_tokens"] = False
        self.assertNotIn("max_tokens", build_payload(config, []))

        config.parameter_enabled["max_tokens"] = True
        self.assertEqual(128, build_payload(config, [])["max_tokens"])

    def test_enabled_parameter_without_value_is_omitted(self) -> None:
        config = RequestConfig()
        config.parameter_enabled["seed"] = True
        self.assertNotIn("seed", build_payload(config, []))
        config.inputs.seed = 11
        self.assertEqual(11, build_payload(config, [])["seed"])

    def test_system_prompt_leads_messages(self) -> None:
        config = RequestConfig(system_prompt="Be brief.")
        messages = build_payload(config, _history())["messages"]
        self.assertEqual({"role": "system", "content": "Be brief."}, messages[0])
        self.assertEqual(4, len(messages))

    def test_blank_system_prompt_is_skipped(self) -> None:
        config = RequestConfig(system_prompt="   \n")
        messages = build_payload(config, _history())["messages"]
        self.assertEqual("user", messages[0]["role"])

    def test_only_completed_messages_are_sent(self) -> None:
        history = _history() + [
            Message(id="a2", role=MessageRole.ASSISTANT, content="network", status=MessageStatus.ERROR),
            Message(id="a3", role=MessageRole.ASSISTANT, content="par", status=MessageStatus.INCOMPLETE),
        ]
        messages = build_payload(RequestConfig(), history)["messages"]
        self.assertEqual(["Hi", "Hello!", "Describe this"], [m["content"] for m in messages])

    def test_images_attach_to_last_user_message(self) -> None:
        config = RequestConfig()
        config.inputs.image_enabled = True
        config.inputs.image_urls = ["https://example.com/a.png", "  ", "https://example.com/b.png"]
        messages = build_payload(config, _history())["messages"]
        self.assertEqual("Hi", messages[0]["content"])
        self.assertEqual(
            [
                {"type": "text", "text": "Describe this"},
                {"type": "image_url", "image_url": {"url": "https://example.com/a.png"}},
                {"type": "image_url", "image_url": {"url": "https://example.com/b.png"}},
            ],
            messages[2]["content"],
        )

    def test_images_ignored_when_disabled(self) -> None:
        config = RequestConfig()
        config.inputs.image_urls = ["https://example.com/a.png"]
        messages = build_payload(config, _history())["messages"]
        self.assertEqual("Describe this", messages[2]["content"])

    def test_custom_body_is_sent_as_is(self) -> None:
        config = RequestConfig(custom_request_mode=True, custom_request_body='{"model": "x", "extra": [1, 2]}')
        self.assertEqual({"model": "x", "extra": [1, 2]}, build_payload(config, _history()))

    def test_build_is_pure(self) -> None:
        config = RequestConfig(system_prompt="s")
        history = _history()
        before_config = json.dumps(config.to_dict(), sort_keys=True)
        before_history = [m.to_dict() for m in history]
        first = build_payload(config, history)
        first["messages"].append({"role": "user", "content": "mutated"})
        second = build_payload(config, history)
        self.assertEqual(4, len(second["messages"]))
        self.assertEqual(before_config, json.dumps(config.to_dict(), sort_keys=True))
        self.assertEqual(before_history, [m.to_dict() for m in history])


class ParseCustomBodyTests(unittest.TestCase):
    def test_malformed_json(self) -> None:
        with self.assertRaises(JsonParseError) as ctx:
            parse_custom_body("{bad json")
        self.assertEqual("json_parse_error", ctx.exception.code)

    def test_non_object_json(self) -> None:
        for body in ("[1, 2]", '"text"', "42", "null"):
            with self.subTest(body=body):
                with self.assertRaises(JsonParseError):
                    parse_custom_body(body)


class RequestBuilderTests(unittest.TestCase):
    def test_bad_custom_body_fails_and_leaves_config_unchanged(self) -> None:
        store = ConfigStore()
        store.set_custom_request_mode(True)
        store.set_custom_request_body("{bad json")
        before = store.snapshot()
        builder = RequestBuilder(store)
        with self.assertRaises(JsonParseError):
            builder.build(_history())
        self.assertEqual(before, store.snapshot())

    def test_preview_appends_draft_as_user_message(self) -> None:
        builder = RequestBuilder(ConfigStore())
        payload = builder.preview(_history(), "next question")
        self.assertEqual({"role": "user", "content": "next question"}, payload["messages"][-1])
        self.assertEqual(4, len(payload["messages"]))

    def test_preview_ignores_blank_draft(self) -> None:
        builder = RequestBuilder(ConfigStore())
        self.assertEqual(builder.build(_history()), builder.preview(_history(), "  "))

    def test_build_reads_latest_config(self) -> None:
        store = ConfigStore()
        builder = RequestBuilder(store)
        store.update_input("model", "claude-3")
        self.assertEqual("claude-3", builder.build([])["model"])


if __name__ == "__main__":
    unittest.main()
