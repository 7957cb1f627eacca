"""CLI demonstration of routing, transfer and the task queue."""
from __future__ import annotations

import asyncio
import sys
from typing import NoReturn

from swarm.config import Config
from swarm.core.errors import InvalidTransferTarget
from swarm.core.models import Message
from swarm.observability.logging import setup_logging
from swarm.runtime import build_runtime


async def main() -> None:
    config = Config.from_env()
    setup_logging(config.log_level, config.log_format)
    runtime = build_runtime(config)
    await runtime.start()

    reply = await runtime.transfer.process_message(Message.from_user("help"))
    print(f"[{runtime.transfer.current_agent_name()}] {reply.content}")

    handoff = await runtime.transfer.transfer("greeter", "haiku", Message.from_user("autumn servers"))
    print(f"Transferred to {handoff.metadata.transfer_target if handoff.metadata else '?'}")
    await runtime.transfer.set_current_agent("haiku")

    try:
        await runtime.transfer.transfer("greeter", "git", Message.from_user("status"))
    except InvalidTransferTarget as exc:
        print(f"Rejected: {exc}")

    task = await runtime.intake.submit("fix critical security vulnerability in login", "user")
    print(f"Queued task {task.id} priority={task.priority.value} project={task.project}")

    await runtime.processors["user"].run_once()
    for stored in await runtime.store.find_all():
        print(f"- {stored.description} ({stored.status.value})")

    await runtime.stop()


def run() -> NoReturn:
    asyncio.run(main())
    sys.exit(0)


if __name__ == "__main__":
    run()
