"""Repair malformed media keys across the whole ``movies`` collection.

Applies the same rules as ``POST /api/movies/fix-keys/{id}`` to every movie.

Usage (module mode):
    python -m scripts.repair_movie_keys [--dry-run]

Environment / settings are taken from :pydata:`cinestream.core.config.settings`.
"""

from __future__ import annotations

import argparse
import asyncio
import logging
from dataclasses import dataclass, field
from typing import List

from cinestream.core.config import settings
from cinestream.db.astra_client import get_collection
from cinestream.models.movie import normalize_media_keys
from cinestream.services import movie_service
from cinestream.utils.key_repair import repair_movie_keys

logger = logging.getLogger(__name__)
logging.basicConfig(level=logging.INFO, format="%(levelname)s %(message)s")


@dataclass
class RepairReport:  # noqa: D401 – simple container
    scanned: int = 0
    repaired: int = 0
    skipped: int = 0
    fixes: List[str] = field(default_factory=list)


async def repair_all_movies(*, dry_run: bool = False) -> RepairReport:
    """Scan every movie and repair its keys (or only report with *dry_run*)."""

    if not all([settings.ASTRA_DB_API_ENDPOINT, settings.ASTRA_DB_APPLICATION_TOKEN]):
        raise RuntimeError("Astra DB settings missing; cannot run key repair.")

    db_table = await get_collection(movie_service.MOVIES_COLLECTION_NAME)
    cursor = db_table.find(
        filter={},
        projection={"videoUrls": 1, "posterKey": 1, "thumbnailKey": 1},
    )
    docs = await cursor.to_list()

    report = RepairReport()
    for doc in docs:
        report.scanned += 1
        movie_id = doc.get("_id")
        if not movie_id:
            report.skipped += 1
            continue

        if dry_run:
            _, fixes = repair_movie_keys(normalize_media_keys(doc))
        else:
            _, fixes = await movie_service.fix_movie_keys(movie_id, db_table=db_table)

        if fixes:
            report.repaired += 1
            report.fixes.extend(f"{movie_id}: {fix}" for fix in fixes)
            for fix in fixes:
                logger.info("%s%s: %s", "[DRY-RUN] " if dry_run else "", movie_id, fix)

    logger.info(
        "Key repair complete. Scanned: %d | repaired: %d | skipped: %d",
        report.scanned,
        report.repaired,
        report.skipped,
    )
    return report


# ---------------------------------------------------------------------------
# CLI entry-point
# ---------------------------------------------------------------------------


def _main():  # noqa: D401
    parser = argparse.ArgumentParser(
        description="Repair malformed media keys on every movie"
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Report the fixes without writing them",
    )

    args = parser.parse_args()

    asyncio.run(repair_all_movies(dry_run=args.dry_run))


if __name__ == "__main__":
    _main()
