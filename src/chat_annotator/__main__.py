import asyncio
import contextlib
import sys

from dotenv import load_dotenv
from loguru import logger

from chat_annotator.app_config import load_json_config, parse_app_config
from chat_annotator.bootstrap import bootstrap_runtime
from chat_annotator.shell import AnnotatorShell


async def main() -> None:
    load_dotenv()

    try:
        app = parse_app_config(load_json_config())
    except (ValueError, TypeError) as ex:
        print(f"Invalid config.json: {ex}", file=sys.stderr)
        sys.exit(1)

    runtime = bootstrap_runtime(app)
    shell = AnnotatorShell(runtime)

    print("chat-annotator (type 'exit' to quit, '/help' for commands)")
    print(f"Store: {app.store_db_path}")
    if runtime.log_descriptions:
        print(f"Logging: {', '.join(runtime.log_descriptions)}")
    print()

    watcher_task = asyncio.create_task(runtime.watcher.run())
    try:
        while True:
            try:
                user_input = await asyncio.to_thread(input, "notes> ")
            except (EOFError, KeyboardInterrupt):
                break

            trimmed = user_input.strip()
            if trimmed in ("exit", "quit"):
                break
            if not trimmed:
                continue

            try:
                if not await shell.router.try_handle(trimmed):
                    print("  Commands start with '/'. Try /help.")
            except Exception as ex:
                logger.error(f"Unhandled error: {ex}")
    finally:
        watcher_task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await watcher_task
        runtime.close()


if __name__ == "__main__":
    asyncio.run(main())
