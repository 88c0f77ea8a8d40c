#!/usr/bin/env python3
"""Filter a JSON dump of chat messages and stage the daily updates."""
import asyncio
import json
import sys
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from activity_ledger.core.config import settings
from activity_ledger.db.database import create_engine, create_session_maker
from activity_ledger.normalizers.chat import pending_messages_from_chat
from activity_ledger.services.message_queue_service import MessageQueueService


async def stage(path: Path) -> None:
    data = json.loads(path.read_text(encoding="utf-8"))
    messages = data.get("messages", []) if isinstance(data, dict) else data

    batch = pending_messages_from_chat(messages, settings.chat_min_message_length)
    print(f"Read {len(messages)} messages from {path}")
    print(f"  {len(batch.messages)} qualify, {batch.discarded} discarded, "
          f"{len(batch.malformed)} malformed")

    engine = create_engine()
    try:
        async with create_session_maker(engine)() as db:
            result = await MessageQueueService(db).enqueue(batch.messages)
    finally:
        await engine.dispose()

    print(f"Staged {result.inserted} new messages "
          f"({result.received - result.inserted} were already staged)")


if __name__ == "__main__":
    import argparse

    parser = argparse.ArgumentParser(description="Stage chat daily-update messages")
    parser.add_argument("file", type=Path, help="JSON list of chat messages")
    args = parser.parse_args()

    asyncio.run(stage(args.file))
