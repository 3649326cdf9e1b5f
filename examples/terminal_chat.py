"""Minimal terminal front end for the companion chat core."""

import asyncio

from companion_core.api.service import get_default_orchestrator, start_conversation


def render(conversation, message):
    speaker = "You" if message.role == "user" else "Companion"
    print(f"{speaker}: {message.content}")


async def main():
    orchestrator = get_default_orchestrator()
    conversation = start_conversation()
    for message in conversation.messages:
        render(conversation, message)
    conversation.subscribe(render)

    loop = asyncio.get_running_loop()
    while True:
        text = await loop.run_in_executor(None, input, "> ")
        if text.strip() in {"/quit", "/exit"}:
            break
        task = asyncio.create_task(orchestrator.submit(conversation, text))
        await asyncio.sleep(0)
        if orchestrator.pending:
            print("Thinking...")
        await task


if __name__ == "__main__":
    try:
        asyncio.run(main())
    except (KeyboardInterrupt, EOFError):
        pass
