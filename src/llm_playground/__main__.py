import asyncio
import contextlib
import json
import signal
import sys

from dotenv import load_dotenv
from loguru import logger

from llm_playground.app_config import load_json_config, parse_app_config, resolve_runtime_env
from llm_playground.bootstrap import AppRuntime, bootstrap_runtime
from llm_playground.commands.router import CommandRouter
from llm_playground.constants import DebugTab
from llm_playground.errors import PlaygroundError
from llm_playground.models import Message
from llm_playground.services.playground_view import PlaygroundView

_HELP = """\
Commands:
  /help                     show this help
  /debug [preview|request|response]   show a debug view (selects it first if given)
  /set <param> <value>      set an input (model, group, temperature, top_p, max_tokens,
                            frequency_penalty, presence_penalty, seed, stream)
  /enable <param>           include a tunable parameter in requests
  /disable <param>          omit a tunable parameter from requests
  /system <text>            set the system prompt (empty to clear)
  /custom on|off|<json>     toggle custom request mode or replace the custom body
  /image on|off|<url>       toggle image inputs or add an image URL
  /models                   list available models
  /groups                   list available groups
  /clear                    clear the conversation
Press Ctrl+C while a reply is streaming to cancel it."""


def _parse_value(raw: str) -> object:
    try:
        return json.loads(raw)
    except json.JSONDecodeError:
        return raw


class _StreamPrinter:
    def __init__(self) -> None:
        self._printed = 0
        self._message_id: str | None = None

    def __call__(self, message: Message) -> None:
        if message.id != self._message_id:
            self._message_id = message.id
            self._printed = 0
        if message.status == "error":
            return
        text = message.content[self._printed:]
        if text:
            print(text, end="", flush=True)
            self._printed = len(message.content)


async def _run_repl(runtime: AppRuntime, view: PlaygroundView) -> None:
    session = runtime.session

    async def on_help() -> None:
        print(_HELP)

    async def on_debug(command: str) -> None:
        parts = command.split(maxsplit=1)
        if len(parts) > 1:
            session.debug_panel.select(parts[1].strip())
        if session.debug_panel.active == DebugTab.PREVIEW:
            session.update_preview()
        for line in view.format_debug_view(session.debug_panel.active, session.debug_panel.current_view()):
            print(line)

    async def on_set(command: str) -> None:
        parts = command.split(maxsplit=2)
        if len(parts) < 3:
            for line in view.format_config_lines(session.config_store.snapshot()):
                print(line)
            return
        session.config_store.update_input(parts[1], _parse_value(parts[2]))
        print(f"{parts[1]} = {parts[2]}")

    async def on_toggle_parameter(command: str) -> None:
        parts = command.split(maxsplit=1)
        if len(parts) < 2:
            print("Usage: /enable <param> or /disable <param>")
            return
        session.config_store.set_parameter_enabled(parts[1].strip(), parts[0] == "/enable")

    async def on_system(command: str) -> None:
        session.config_store.set_system_prompt(command[len("/system"):].strip())

    async def on_custom(command: str) -> None:
        arg = command[len("/custom"):].strip()
        if arg == "on":
            session.enable_custom_request_mode()
            print(session.config_store.snapshot().custom_request_body)
        elif arg == "off":
            session.disable_custom_request_mode()
        elif arg:
            session.config_store.set_custom_request_body(arg)
        else:
            print(f"Custom request mode: {'on' if session.config_store.custom_request_mode else 'off'}")

    async def on_image(command: str) -> None:
        arg = command[len("/image"):].strip()
        if arg in ("on", "off"):
            session.config_store.set_image_enabled(arg == "on")
        elif arg:
            session.config_store.add_image_url(arg)
        else:
            print("Usage: /image on|off|<url>")

    async def on_models() -> None:
        for model in await session.refresh_models():
            print(f"  - {model}")

    async def on_groups() -> None:
        for name, info in (await session.refresh_groups()).items():
            desc = info.get("desc", "") if isinstance(info, dict) else info
            print(f"  - {name}: {desc}")

    async def on_clear() -> None:
        session.clear_messages()
        print("Conversation cleared.")

    def on_unknown(command: str) -> None:
        print(f"Unknown command: {command} (try /help)")

    router = CommandRouter(
        on_help=on_help,
        on_debug=on_debug,
        on_set=on_set,
        on_toggle_parameter=on_toggle_parameter,
        on_system=on_system,
        on_custom=on_custom,
        on_image=on_image,
        on_models=on_models,
        on_groups=on_groups,
        on_clear=on_clear,
        on_unknown=on_unknown,
    )

    loop = asyncio.get_running_loop()

    while True:
        try:
            user_input = input("you> ")
        except (EOFError, KeyboardInterrupt):
            break

        trimmed = user_input.strip()
        if trimmed in ("exit", "quit"):
            break
        if not trimmed:
            continue

        try:
            if await router.try_handle(trimmed):
                continue

            print("assistant> ", end="", flush=True)
            with contextlib.suppress(NotImplementedError):
                loop.add_signal_handler(signal.SIGINT, session.cancel)
            try:
                reply = await session.submit(trimmed)
            finally:
                with contextlib.suppress(NotImplementedError):
                    loop.remove_signal_handler(signal.SIGINT)
            if reply.status == "error":
                print(reply.content, end="")
            print("\n")
            if reply.reasoning_content:
                print(f"(reasoning: {len(reply.reasoning_content)} chars)\n")
        except PlaygroundError as ex:
            print(view.format_error(ex))
        except ValueError as ex:
            print(view.format_error(ex))
        except Exception as ex:
            logger.error(f"Unhandled error: {ex}")


async def main() -> None:
    load_dotenv()

    app = parse_app_config(load_json_config())
    env = resolve_runtime_env()
    printer = _StreamPrinter()
    runtime = bootstrap_runtime(app, env, on_message_update=printer)
    view = PlaygroundView(line_prefix="")

    print(f"llm-playground ({app.base_url}) - type 'exit' to quit, '/help' for commands")
    for line in view.format_config_lines(runtime.session.config_store.snapshot()):
        print(line)
    for error in runtime.session.load_errors:
        print(view.format_error(error))
    if runtime.log_descriptions:
        print(f"Logging: {', '.join(runtime.log_descriptions)}")
    print()

    try:
        await _run_repl(runtime, view)
    finally:
        await runtime.close()
        logger.info("Playground closed")


def run() -> None:
    try:
        asyncio.run(main())
    except KeyboardInterrupt:
        sys.exit(130)


if __name__ == "__main__":
    run()
