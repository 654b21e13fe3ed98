# tests/test_migrations.py
"""Tests for retroactive tag migration jobs."""

from unittest.mock import MagicMock

from curation.migrate.jobs import (
    OPEN_HOUSE_TAG,
    MigrationResult,
    has_paid_open_house,
    patch_tag,
    regenerate_all_tags,
)
from curation.tags.generator import TagGenerator


class FlakyStore:
    """In-memory store whose writes fail for chosen ids."""

    def __init__(self, listings, fail_ids=()):
        self.listings = {listing['id']: dict(listing) for listing in listings}
        self.fail_ids = set(fail_ids)
        self.writes = []

    def iter_listing_rows(self, page_size=100):
        for listing_id in sorted(self.listings):
            yield dict(self.listings[listing_id])

    def decode_listing(self, row):
        return dict(row)

    def update_listing_tags(self, listing_id, tags):
        if listing_id in self.fail_ids:
            raise RuntimeError("write rejected")
        self.listings[listing_id]['tags'] = list(tags)
        self.writes.append(listing_id)


class TestMigrationResult:
    """Test outcome counters."""

    def test_status(self):
        assert MigrationResult(succeeded=3).status == 'success'
        assert MigrationResult(succeeded=2, failed=1).status == 'partial'

    def test_total(self):
        assert MigrationResult(succeeded=2, failed=1, skipped=4).total == 7


class TestRegenerateAllTags:
    """Test full tag regeneration."""

    def test_overwrites_with_generated_tags(self, db, sample_listings):
        db.upsert_listings(sample_listings)
        generator = TagGenerator()

        result = regenerate_all_tags(db, generator, page_size=2)

        assert result.succeeded == 3
        assert result.failed == 0
        for listing in sample_listings:
            expected = generator.generate_tags(
                city=listing['city'],
                price=listing['price'],
                bedrooms=listing['bedrooms'],
                title=listing['title'],
                description=listing['description'],
                listing_type=listing['listing_type'],
            )
            assert db.get_listing(listing['id'])['tags'] == expected

    def test_stale_tags_replaced(self, db, sample_listings):
        db.upsert_listings(sample_listings)
        regenerate_all_tags(db, TagGenerator())
        assert '#Old' not in db.get_listing('home-2')['tags']
        assert db.get_listing('home-2')['tags'][:2] == ['#WinterPark', '#Over500K']

    def test_idempotent(self, db, sample_listings):
        db.upsert_listings(sample_listings)
        generator = TagGenerator()

        regenerate_all_tags(db, generator)
        first = {listing['id']: listing['tags'] for listing in db.iter_listings()}
        regenerate_all_tags(db, generator)
        second = {listing['id']: listing['tags'] for listing in db.iter_listings()}

        assert first == second

    def test_failure_counted_and_run_continues(self, sample_listings):
        store = FlakyStore(sample_listings, fail_ids={'home-2'})
        result = regenerate_all_tags(store, TagGenerator())

        assert result.succeeded == 2
        assert result.failed == 1
        assert result.status == 'partial'
        assert store.writes == ['home-1', 'home-3']

    def test_corrupt_row_counted_and_run_continues(self, db, sample_listings):
        """A row whose stored tags can't be decoded fails alone."""
        db.upsert_listings(sample_listings)
        db.execute("UPDATE listings SET tags = 'not json' WHERE id = 'home-1'")

        result = regenerate_all_tags(db, TagGenerator(), page_size=2)

        assert result.failed == 1
        assert result.succeeded == 2
        assert result.status == 'partial'
        assert db.get_listing('home-2')['tags'][:2] == ['#WinterPark', '#Over500K']
        assert db.get_listing('home-3')['tags'][:2] == ['#Tampa', '#ForLease']

    def test_empty_store(self, db):
        result = regenerate_all_tags(db, TagGenerator())
        assert result.total == 0


class TestPatchTag:
    """Test the targeted #OpenHouse patch."""

    def test_predicate(self):
        assert has_paid_open_house({'open_house_paid': True})
        assert not has_paid_open_house({'open_house_paid': False})
        assert not has_paid_open_house({})

    def test_adds_tag_to_paid_listings(self, db, sample_listings):
        db.upsert_listings(sample_listings)
        result = patch_tag(db)

        assert result.succeeded == 1
        assert result.skipped == 1
        assert result.failed == 0
        assert db.get_listing('home-1')['tags'] == [OPEN_HOUSE_TAG]
        # Unpaid listing untouched
        assert db.get_listing('home-2')['tags'] == ['#Old']
        # Already tagged: not duplicated
        assert db.get_listing('home-3')['tags'] == [OPEN_HOUSE_TAG]

    def test_appends_past_tag_limit(self, db, sample_listings):
        full = ['#Tampa', '#Under400K', '#Waterfront', '#Vacation', '#Pool']
        db.upsert_listings([dict(sample_listings[0], tags=full)])
        patch_tag(db)
        assert db.get_listing('home-1')['tags'] == full + [OPEN_HOUSE_TAG]

    def test_rerun_skips(self, db, sample_listings):
        db.upsert_listings(sample_listings)
        patch_tag(db)
        result = patch_tag(db)
        assert result.succeeded == 0
        assert result.skipped == 2

    def test_custom_tag_and_predicate(self, db, sample_listings):
        db.upsert_listings(sample_listings)
        result = patch_tag(
            db,
            tag='#Featured',
            predicate=lambda listing: listing['city'] == 'Tampa',
        )
        assert result.succeeded == 1
        assert db.get_listing('home-3')['tags'] == ['#OpenHouse', '#Featured']

    def test_corrupt_row_counted(self, db, sample_listings):
        """A row whose stored tags aren't a JSON list fails alone."""
        db.upsert_listings(sample_listings)
        db.execute("UPDATE listings SET tags = '{\"a\": 1}' WHERE id = 'home-3'")

        result = patch_tag(db)

        assert result.failed == 1
        assert result.succeeded == 1
        assert db.get_listing('home-1')['tags'] == [OPEN_HOUSE_TAG]

    def test_failure_counted(self, sample_listings):
        store = FlakyStore(sample_listings, fail_ids={'home-1'})
        result = patch_tag(store)
        assert result.failed == 1
        assert result.skipped == 1
        assert result.succeeded == 0

    def test_predicate_error_counted(self):
        """An exception from the predicate is isolated to its record."""
        store = MagicMock()
        store.iter_listing_rows.return_value = iter([{'id': 'a'}, {'id': 'b', 'tags': []}])
        store.decode_listing.side_effect = dict
        predicate = MagicMock(side_effect=[ValueError("bad record"), True])

        result = patch_tag(store, predicate=predicate)

        assert result.failed == 1
        assert result.succeeded == 1
        store.update_listing_tags.assert_called_once_with('b', [OPEN_HOUSE_TAG])
