#!/usr/bin/env python3
"""
Import activities from JSON files into the ledger.

Files hold either canonical activity records or raw version-control events
(pull requests, issues, comments, commits) that are normalized first.
Imports always use the REPLACE policy, so re-running an import is safe.
"""
import asyncio
import json
import sys
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from activity_ledger.api.schemas.activity import ActivityRecord
from activity_ledger.core.exceptions import StorageFailure
from activity_ledger.db.database import create_engine, create_session_maker
from activity_ledger.normalizers import (
    NormalizationResult,
    activities_from_comments,
    activities_from_commits,
    activities_from_issues,
    activities_from_pull_requests,
    find_duplicate_slugs,
)
from activity_ledger.services.activity_service import ActivityService, ConflictPolicy
from activity_ledger.services.contributor_service import ContributorService

NORMALIZERS = {
    "pull_requests": activities_from_pull_requests,
    "issues": activities_from_issues,
    "comments": activities_from_comments,
    "commits": activities_from_commits,
}


def load_items(path: Path, key: str | None = None) -> list[dict]:
    """Read a JSON list, or the list under ``key`` of a JSON object."""
    data = json.loads(path.read_text(encoding="utf-8"))
    if isinstance(data, dict):
        data = data.get(key or "activities", [])
    if not isinstance(data, list):
        raise ValueError(f"{path} does not contain a list")
    return data


def normalize_file(path: Path, kind: str, repo: str | None) -> NormalizationResult:
    if kind == "activities":
        return NormalizationResult(
            activities=[ActivityRecord.model_validate(item) for item in load_items(path)]
        )
    return NORMALIZERS[kind](load_items(path, kind), repo)


async def import_files(paths: list[Path], kind: str, repo: str | None) -> int:
    result = NormalizationResult()
    for path in paths:
        file_result = normalize_file(path, kind, repo)
        print(
            f"  {path}: {len(file_result.activities)} activities, "
            f"{file_result.dropped} malformed events dropped"
        )
        result = result + file_result

    duplicates = find_duplicate_slugs(result.activities)
    if duplicates:
        print(f"  {len(duplicates)} slugs appear more than once; the last record wins")

    engine = create_engine()
    try:
        async with create_session_maker(engine)() as db:
            try:
                upserted = await ActivityService(db).upsert_activities(
                    result.activities, ConflictPolicy.REPLACE
                )
            except StorageFailure as exc:
                print(f"\nImport failed: {exc}")
                print(f"  {exc.committed} activities were committed before the failure")
                return 1

            bots = 0
            if result.bot_logins:
                bots = await ContributorService(db).update_bot_roles(result.bot_logins)
    finally:
        await engine.dispose()

    print("\n=== Import Summary ===")
    print(f"Activities upserted: {upserted.affected} in {upserted.batches} batches")
    print(f"Activities rejected: {upserted.rejected}")
    print(f"Malformed events:    {result.dropped}")
    print(f"Bot roles updated:   {bots}")
    return 0


if __name__ == "__main__":
    import argparse

    parser = argparse.ArgumentParser(description="Import activities into the ledger")
    parser.add_argument("files", nargs="+", type=Path, help="JSON files to import")
    parser.add_argument(
        "--kind",
        choices=["activities", *NORMALIZERS],
        default="activities",
        help="What the files contain (default: canonical activity records)",
    )
    parser.add_argument(
        "--repo",
        help="Repository name used in slugs; required for pull requests, issues and comments",
    )
    args = parser.parse_args()

    if args.kind in ("pull_requests", "issues", "comments") and not args.repo:
        parser.error(f"--repo is required for --kind {args.kind}")

    sys.exit(asyncio.run(import_files(args.files, args.kind, args.repo)))
