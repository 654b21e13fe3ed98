# src/curation/tags/generator.py
"""Auto-generate discovery hashtags for property listings."""

import logging
from typing import List, Optional, Sequence, Tuple

from curation.tags.rules import DEFAULT_TAG_RULES, Price, TagRule

logger = logging.getLogger(__name__)

MAX_TAGS = 5

RENTAL_LISTING_TYPES = {'rental', 'lease'}
LEASE_TAG = '#ForLease'

# Ascending (upper bound, tag) ladder; prices at or above the last bound get OVER_TOP_TAG
PRICE_BUCKETS: Tuple[Tuple[int, str], ...] = (
    (100_000, '#Under100K'),
    (200_000, '#Under200K'),
    (300_000, '#Under300K'),
    (400_000, '#Under400K'),
    (500_000, '#Under500K'),
    (1_000_000, '#Over500K'),
    (5_000_000, '#Over1M'),
    (10_000_000, '#Over5M'),
)
OVER_TOP_TAG = '#Over10M'

LARGE_PROPERTY_BEDROOMS = 4
LARGE_PROPERTY_TAG = '#LargeProperty'
STUDIO_BEDROOMS = 1
STUDIO_TAG = '#Studio'


def city_tag(city: Optional[str]) -> Optional[str]:
    """'Winter Park' -> '#WinterPark', "Coeur d'Alene" -> '#CoeurdAlene'."""
    if not city:
        return None
    clean = city.replace(' ', '').replace('-', '').replace("'", '')
    return f"#{clean}" if clean else None


def price_tag(price: Optional[Price]) -> Optional[str]:
    """Return the single price bucket tag for a sale price, or None if unknown."""
    if price is None:
        return None
    for upper, tag in PRICE_BUCKETS:
        if price < upper:
            return tag
    return OVER_TOP_TAG


def is_rental(listing_type: Optional[str]) -> bool:
    return bool(listing_type) and listing_type.strip().lower() in RENTAL_LISTING_TYPES


def bedroom_tag(bedrooms: Optional[int]) -> Optional[str]:
    if bedrooms is None:
        return None
    if bedrooms >= LARGE_PROPERTY_BEDROOMS:
        return LARGE_PROPERTY_TAG
    if bedrooms <= STUDIO_BEDROOMS:
        return STUDIO_TAG
    return None


class TagGenerator:
    """Evaluates an ordered rule table against one listing at a time."""

    def __init__(self, rules: Sequence[TagRule] = DEFAULT_TAG_RULES, max_tags: int = MAX_TAGS):
        self.rules = tuple(rules)
        self.max_tags = max_tags

    def generate_tags(
        self,
        city: Optional[str],
        price: Optional[Price],
        bedrooms: Optional[int],
        title: str,
        description: Optional[str] = None,
        listing_type: Optional[str] = None,
    ) -> List[str]:
        """
        Generate hashtags for a property listing.

        Order: city, lease/price bucket, rule table (declaration order),
        bedroom size tag. Every rule is evaluated; only the first max_tags
        tags are kept, so city and price are never truncated away.

        Args:
            city: City name (optional)
            price: Asking price (optional)
            bedrooms: Bedroom count (optional)
            title: Listing title
            description: Listing description (optional)
            listing_type: 'rental', 'lease', or anything else for a sale

        Returns:
            Up to max_tags tags like ['#Orlando', '#Under300K', '#Pool']
        """
        tags: List[str] = []

        tag = city_tag(city)
        if tag:
            tags.append(tag)

        if is_rental(listing_type):
            tags.append(LEASE_TAG)
        else:
            tag = price_tag(price)
            if tag:
                tags.append(tag)

        text = f"{title or ''} {description or ''}".lower()

        for rule in self.rules:
            if rule.matches(text, price) and rule.tag not in tags:
                tags.append(rule.tag)

        tag = bedroom_tag(bedrooms)
        if tag:
            tags.append(tag)

        if len(tags) > self.max_tags:
            logger.debug(f"Dropping tags past limit {self.max_tags}: {tags[self.max_tags:]}")
        return tags[:self.max_tags]
