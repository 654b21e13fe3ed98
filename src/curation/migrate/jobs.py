# src/curation/migrate/jobs.py
"""Retroactive tag migrations over every stored listing.

Both jobs read, then write, one record at a time. A failure on one record
is logged and counted and the run carries on; nothing is retried. Both are
safe to re-run: regeneration is deterministic and the patch skips records
that already carry the tag.
"""

import logging
from dataclasses import dataclass
from typing import Callable, Iterator, List, Protocol

from curation.tags.generator import TagGenerator

logger = logging.getLogger(__name__)

OPEN_HOUSE_TAG = '#OpenHouse'


class ListingStore(Protocol):
    """Record store the migrations read from and write to (see curation.db.Database).

    Rows come back raw and are decoded per record, so a corrupt row counts
    as one failure instead of ending the run.
    """

    def iter_listing_rows(self, page_size: int = 100) -> Iterator[dict]:
        ...

    def decode_listing(self, row: dict) -> dict:
        ...

    def update_listing_tags(self, listing_id: str, tags: List[str]) -> None:
        ...


@dataclass
class MigrationResult:
    """Outcome counts for one migration run."""

    succeeded: int = 0
    failed: int = 0
    skipped: int = 0

    @property
    def total(self) -> int:
        return self.succeeded + self.failed + self.skipped

    @property
    def status(self) -> str:
        """run_log status: 'partial' when any record failed."""
        return 'partial' if self.failed else 'success'


def has_paid_open_house(listing: dict) -> bool:
    return bool(listing.get('open_house_paid'))


def regenerate_all_tags(
    store: ListingStore,
    generator: TagGenerator,
    page_size: int = 100,
) -> MigrationResult:
    """
    Recompute and overwrite tags for every stored listing.

    Args:
        store: Listing record store
        generator: Tag generator holding the current rule table
        page_size: Listings fetched per page

    Returns:
        MigrationResult with succeeded/failed counts
    """
    logger.info("Starting tag regeneration for all listings")
    result = MigrationResult()

    for row in store.iter_listing_rows(page_size=page_size):
        listing_id = row.get('id')
        try:
            listing = store.decode_listing(row)
            tags = generator.generate_tags(
                city=listing.get('city'),
                price=listing.get('price'),
                bedrooms=listing.get('bedrooms'),
                title=listing.get('title') or '',
                description=listing.get('description'),
                listing_type=listing.get('listing_type'),
            )
            store.update_listing_tags(listing_id, tags)
            result.succeeded += 1
            logger.info(f"Updated tags for listing {listing_id}: {tags}")

        except Exception as e:
            result.failed += 1
            logger.error(f"Failed to update listing {listing_id}: {e}")
            continue

    logger.info(
        f"Tag regeneration complete: {result.succeeded} updated, {result.failed} failed"
    )
    return result


def patch_tag(
    store: ListingStore,
    tag: str = OPEN_HOUSE_TAG,
    predicate: Callable[[dict], bool] = has_paid_open_house,
    page_size: int = 100,
) -> MigrationResult:
    """
    Append one tag to every listing matching predicate, if not already present.

    The appended tag is not subject to the generator's tag limit.

    Args:
        store: Listing record store
        tag: Literal tag to add, e.g. '#OpenHouse'
        predicate: Selects listings that should carry the tag
        page_size: Listings fetched per page

    Returns:
        MigrationResult; listings already tagged count as skipped
    """
    logger.info(f"Starting {tag} patch")
    result = MigrationResult()

    for row in store.iter_listing_rows(page_size=page_size):
        listing_id = row.get('id')
        try:
            listing = store.decode_listing(row)
            if not predicate(listing):
                continue

            tags = list(listing.get('tags') or [])
            if tag in tags:
                result.skipped += 1
                logger.debug(f"Skipped listing {listing_id}: already has {tag}")
                continue

            tags.append(tag)
            store.update_listing_tags(listing_id, tags)
            result.succeeded += 1
            logger.info(f"Added {tag} to listing {listing_id}")

        except Exception as e:
            result.failed += 1
            logger.error(f"Failed to patch listing {listing_id}: {e}")
            continue

    logger.info(
        f"{tag} patch complete: {result.succeeded} updated, "
        f"{result.skipped} skipped, {result.failed} failed"
    )
    return result
