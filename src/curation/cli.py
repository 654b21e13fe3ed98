# src/curation/cli.py
"""CLI commands for listing curation."""

import json
import logging
import os
from pathlib import Path
from typing import Optional

import click
import yaml
from dotenv import load_dotenv

from curation.db import Database
from curation.migrate.jobs import OPEN_HOUSE_TAG, patch_tag, regenerate_all_tags
from curation.moderate.verdict import Blocked, FlaggedForReview
from curation.pipeline import ListingCurator

# Load .env file
load_dotenv()

# Set up logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
)
logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = 'config.yml'


def load_config(config_path: Optional[str] = None) -> dict:
    """Load configuration from YAML file.

    With no path, config.yml is used if present, otherwise built-in
    defaults apply. An explicit path must exist.

    Values can be overridden via environment variables:
    - CURATION_ALLOWED_DOMAINS: Override moderation.allowed_domains (comma separated)
    - CURATION_MAX_TAGS: Override tags.max_tags
    """
    config = {}

    path = Path(config_path or DEFAULT_CONFIG_PATH)
    if path.exists():
        try:
            with open(path) as f:
                config = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise click.ClickException(f"Invalid YAML in config file: {e}")

        if config is None:
            raise click.ClickException("Config file is empty")
        if not isinstance(config, dict):
            raise click.ClickException("Config file must be a mapping")
    elif config_path:
        raise click.ClickException(f"Config file not found: {config_path}")

    # Override with environment variables
    if os.environ.get('CURATION_ALLOWED_DOMAINS'):
        domains = [d.strip() for d in os.environ['CURATION_ALLOWED_DOMAINS'].split(',') if d.strip()]
        config.setdefault('moderation', {})['allowed_domains'] = domains
    if os.environ.get('CURATION_MAX_TAGS'):
        config.setdefault('tags', {})['max_tags'] = int(os.environ['CURATION_MAX_TAGS'])

    return config


def _load_listings_file(path: str) -> list:
    """Read a JSON or YAML list of listing dicts."""
    with open(path) as f:
        if path.lower().endswith('.json'):
            data = json.load(f)
        else:
            data = yaml.safe_load(f)

    if isinstance(data, dict):
        data = data.get('listings', [])
    if not isinstance(data, list):
        raise click.ClickException(f"Expected a list of listings in {path}")
    return data


@click.group()
@click.option('--config', '-c', default=None, help='Path to config file (default: config.yml if present)')
@click.option('--db', default='data/listings.db', help='Path to database')
@click.option('--verbose', '-v', is_flag=True, help='Enable verbose output')
@click.pass_context
def cli(ctx, config, db, verbose):
    """Listing curation: moderation, discovery tags and tag migrations."""
    ctx.ensure_object(dict)
    ctx.obj['config_path'] = config
    ctx.obj['db_path'] = db
    ctx.obj['verbose'] = verbose

    if verbose:
        logging.getLogger().setLevel(logging.DEBUG)


def _curator(ctx) -> ListingCurator:
    config = load_config(ctx.obj['config_path'])
    return ListingCurator.from_config(config)


@cli.command()
@click.pass_context
def status(ctx):
    """Show rule tables, listing count and last migration run."""
    curator = _curator(ctx)

    click.echo(f"Database: {ctx.obj['db_path']}")
    click.echo(f"Blocked terms: {len(curator.engine.rules.blocked_terms)}")
    click.echo(f"Flagged phrases: {len(curator.engine.rules.flagged_phrases)}")
    click.echo(f"Tag rules: {len(curator.generator.rules)} (max {curator.generator.max_tags} tags)")
    click.echo(f"Search tags: {len(curator.keyword_index.tags)}")

    with Database(ctx.obj['db_path']) as db:
        db.init_schema()
        click.echo(f"Listings: {db.count_listings():,}")

        last_run = db.get_last_successful_run()
        if last_run:
            click.echo(f"Last successful run: {last_run['completed_at']}")
            click.echo(f"  Type: {last_run['run_type']}")
            click.echo(f"  Records: {last_run.get('records_processed', 'N/A')}")
        else:
            click.echo("No successful runs yet")


@cli.command('init-db')
@click.pass_context
def init_db(ctx):
    """Create database tables."""
    with Database(ctx.obj['db_path']) as db:
        db.init_schema()
        click.echo(f"Tables: {', '.join(db.list_tables())}")


@cli.command()
@click.argument('title')
@click.option('--description', '-d', default=None, help='Listing description')
@click.pass_context
def moderate(ctx, title, description):
    """Moderate a listing title and description."""
    verdict = _curator(ctx).classify_post(title, description)

    click.echo(f"Verdict: {verdict.status}")
    reason = getattr(verdict, 'reason', None)
    if reason:
        click.echo(f"Reason: {reason}")
    if isinstance(verdict, FlaggedForReview):
        click.echo("Queued for manual review")


@cli.command('check-image')
@click.argument('path', type=click.Path(exists=True, dir_okay=False))
@click.pass_context
def check_image(ctx, path):
    """Validate an image file before upload."""
    data = Path(path).read_bytes()
    ok, error = _curator(ctx).validate_image(data, os.path.basename(path))

    if ok:
        click.echo(f"OK: {path}")
    else:
        raise click.ClickException(f"{path}: {error}")


@cli.command()
@click.argument('title')
@click.option('--description', '-d', default=None, help='Listing description')
@click.option('--city', default=None, help='City')
@click.option('--price', type=float, default=None, help='Asking price')
@click.option('--bedrooms', type=int, default=None, help='Bedroom count')
@click.option('--listing-type', default=None, help="'rental', 'lease' or 'sale'")
@click.pass_context
def tags(ctx, title, description, city, price, bedrooms, listing_type):
    """Generate discovery tags for a listing."""
    result = _curator(ctx).generate_tags(
        city=city,
        price=price,
        bedrooms=bedrooms,
        title=title,
        description=description,
        listing_type=listing_type,
    )
    click.echo(' '.join(result) if result else '(no tags)')


@cli.command()
@click.argument('query')
@click.pass_context
def search(ctx, query):
    """Resolve a search query to tag names."""
    matches = sorted(_curator(ctx).find_matching_tags(query))
    if not matches:
        click.echo("No matching tags")
        return
    for tag in matches:
        click.echo(f"#{tag}")


@cli.command()
@click.pass_context
def keywords(ctx):
    """List every searchable keyword (autocomplete vocabulary)."""
    for keyword in _curator(ctx).all_keywords():
        click.echo(keyword)


@cli.command('import-listings')
@click.argument('path', type=click.Path(exists=True, dir_okay=False))
@click.option('--tag/--no-tag', default=True, help='Generate tags for listings without any')
@click.pass_context
def import_listings(ctx, path, tag):
    """Load listings from a JSON or YAML file into the database.

    Listings whose text is blocked by moderation are not imported.
    """
    curator = _curator(ctx)
    listings = _load_listings_file(path)

    accepted = []
    rejected = 0
    for listing in listings:
        verdict = curator.classify_post(listing.get('title') or '', listing.get('description'))
        if isinstance(verdict, Blocked):
            rejected += 1
            logger.warning(f"Skipping listing {listing.get('id')}: {verdict.reason}")
            continue

        if tag and not listing.get('tags'):
            listing = dict(listing)
            listing['tags'] = curator.generate_tags(
                city=listing.get('city'),
                price=listing.get('price'),
                bedrooms=listing.get('bedrooms'),
                title=listing.get('title') or '',
                description=listing.get('description'),
                listing_type=listing.get('listing_type'),
            )
        accepted.append(listing)

    with Database(ctx.obj['db_path']) as db:
        db.init_schema()
        written = db.upsert_listings(accepted)

    click.echo(f"Imported {written:,} listings ({rejected} blocked)")


def _run_migration(ctx, run_type: str, job):
    """Run a migration job with run_log bookkeeping."""
    db = Database(ctx.obj['db_path'])
    db.init_schema()
    run_id = db.start_run(run_type, 'cli')

    try:
        result = job(db)
        db.complete_run(
            run_id,
            status=result.status,
            records_processed=result.total,
            records_updated=result.succeeded,
            records_failed=result.failed,
        )
        return result

    except Exception as e:
        logger.exception(f"{run_type} failed")
        db.complete_run(run_id, status='failed', error_message=str(e))
        raise click.ClickException(f"{run_type} failed: {e}")

    finally:
        db.close()


@cli.command()
@click.option('--page-size', default=100, help='Listings fetched per page')
@click.pass_context
def retag(ctx, page_size):
    """Regenerate tags for every stored listing with the current rules."""
    curator = _curator(ctx)
    result = _run_migration(
        ctx,
        'retag',
        lambda db: regenerate_all_tags(db, curator.generator, page_size=page_size),
    )
    click.echo(f"Updated: {result.succeeded}")
    click.echo(f"Failed: {result.failed}")


@cli.command('patch-tag')
@click.option('--tag', default=OPEN_HOUSE_TAG, help='Tag to add to listings with a paid open house')
@click.option('--page-size', default=100, help='Listings fetched per page')
@click.pass_context
def patch_tag_command(ctx, tag, page_size):
    """Add a tag to every listing with a paid open house."""
    if not tag.startswith('#'):
        tag = f"#{tag}"
    result = _run_migration(
        ctx,
        'patch_tag',
        lambda db: patch_tag(db, tag=tag, page_size=page_size),
    )
    click.echo(f"Updated: {result.succeeded}")
    click.echo(f"Skipped: {result.skipped}")
    click.echo(f"Failed: {result.failed}")


if __name__ == '__main__':
    cli()
