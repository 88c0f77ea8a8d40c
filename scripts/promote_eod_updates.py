#!/usr/bin/env python3
"""Promote staged chat messages into daily update activities."""
import asyncio
import sys
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from activity_ledger.db.database import create_engine, create_session_maker
from activity_ledger.services.message_queue_service import MessageQueueService
from activity_ledger.services.promotion_service import PromotionService


async def show_queue() -> None:
    engine = create_engine()
    try:
        async with create_session_maker(engine)() as db:
            groups = await MessageQueueService(db).list_pending_grouped_by_author()
    finally:
        await engine.dispose()

    print("\n=== Staged Messages ===")
    if not groups:
        print("Queue is empty")
    for group in groups:
        first = group.messages[0].timestamp.date()
        last = group.messages[-1].timestamp.date()
        print(f"  {group.author_alias}: {len(group.messages)} messages ({first} .. {last})")


async def promote() -> None:
    engine = create_engine()
    try:
        async with create_session_maker(engine)() as db:
            result = await PromotionService(db).promote_pending_messages()
    finally:
        await engine.dispose()

    print("\n=== Promotion Summary ===")
    print(f"Messages promoted:    {result.processed}")
    print(f"Daily updates written: {result.activities}")
    print(f"Messages skipped:     {result.skipped}")
    if result.unmatched_aliases:
        print("Unmatched aliases (messages left staged):")
        for alias in result.unmatched_aliases:
            print(f"  - {alias}")


if __name__ == "__main__":
    import argparse

    parser = argparse.ArgumentParser(description="Promote staged chat messages")
    parser.add_argument(
        "--show-queue",
        action="store_true",
        help="Only list what is staged, don't promote",
    )
    args = parser.parse_args()

    asyncio.run(show_queue() if args.show_queue else promote())
