import asyncio
import sys

from dotenv import load_dotenv
from loguru import logger

from codegpt_chat.app_config import load_json_config, parse_app_config, resolve_runtime_env
from codegpt_chat.bootstrap import bootstrap_runtime, shutdown_runtime
from codegpt_chat.chat_shell import ChatShell


async def main() -> None:
    load_dotenv()

    app = parse_app_config(load_json_config())
    env = resolve_runtime_env(app.provider_name)

    try:
        runtime = await bootstrap_runtime(app, env)
    except ValueError as ex:
        logger.error(str(ex))
        sys.exit(1)

    shell = ChatShell(runtime.store)

    print("codegpt-chat (type 'exit' to quit, '/help' for commands)")
    print(f"Provider: {app.provider_name} | Persistence: {app.persistence}")
    if runtime.log_descriptions:
        print(f"Logging: {', '.join(runtime.log_descriptions)}")
    print()
    shell.print_welcome()

    try:
        while not shell.signed_out:
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
                await shell.handle(trimmed)
                print()
            except Exception as ex:
                logger.error(f"Unhandled error: {ex}")
    finally:
        await shutdown_runtime(runtime)


def run() -> None:
    asyncio.run(main())


if __name__ == "__main__":
    run()
