#!/usr/bin/env python3
"""Export week, month and year leaderboards as JSON files."""
import asyncio
import json
import sys
from datetime import UTC, datetime
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from activity_ledger.core.config import settings
from activity_ledger.db.database import create_engine, create_session_maker
from activity_ledger.services.activity_service import ActivityService
from activity_ledger.services.leaderboard_service import LeaderboardService, Period, TimeWindow


async def export(output_dir: Path) -> None:
    output_dir.mkdir(parents=True, exist_ok=True)
    now = datetime.now(UTC)

    engine = create_engine()
    try:
        async with create_session_maker(engine)() as db:
            service = LeaderboardService(db)
            for period in Period:
                window = TimeWindow.for_period(period, now)
                entries = await service.compute_leaderboard(window)
                top = await service.compute_top_contributors_by_activity(
                    window, settings.top_contributor_activities
                )
                payload = {
                    "period": period.value,
                    "start": window.start.isoformat(),
                    "end": window.end.isoformat(),
                    "generated_at": now.isoformat(),
                    "entries": [e.model_dump(mode="json") for e in entries],
                    "top_contributors": {
                        name: [e.model_dump(mode="json") for e in ranked]
                        for name, ranked in top.items()
                    },
                }
                path = output_dir / f"{period.value}.json"
                path.write_text(json.dumps(payload, indent=2), encoding="utf-8")
                print(f"  {period.value}: {len(entries)} contributors -> {path}")

            activities = await ActivityService(db).get_activities_by_definitions(
                settings.top_contributor_activities
            )
            path = output_dir / "activities.json"
            path.write_text(
                json.dumps([a.model_dump(mode="json") for a in activities], indent=2),
                encoding="utf-8",
            )
            print(f"  activities: {len(activities)} records -> {path}")
    finally:
        await engine.dispose()

    print("Export complete!")


if __name__ == "__main__":
    import argparse

    parser = argparse.ArgumentParser(description="Export leaderboards to JSON")
    parser.add_argument(
        "--output-dir",
        type=Path,
        default=Path(settings.export_dir),
        help=f"Directory to write into (default: {settings.export_dir})",
    )
    args = parser.parse_args()

    asyncio.run(export(args.output_dir))
