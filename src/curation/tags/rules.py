# src/curation/tags/rules.py
"""Discovery tag rule definitions.

Supports two modes:
1. Config-driven: Load the rule table from the `tags.rules` section of config.yml
2. Fallback: Use the default rule table below

Rule order matters: only the first few matching tags survive truncation,
so declaration order is the priority ranking.
"""

from dataclasses import dataclass
from decimal import Decimal
from itertools import product
from typing import Iterable, List, Optional, Tuple, Union

Price = Union[int, float, Decimal]


@dataclass(frozen=True)
class TagRule:
    """One discovery tag and the text/price conditions that trigger it."""

    tag: str                                        # Tag emitted, e.g. '#Pool'
    phrases: Tuple[str, ...] = ()                   # Any present -> match
    combos: Tuple[Tuple[str, ...], ...] = ()        # All terms of any combo present -> match
    excludes: Tuple[str, ...] = ()                  # Any present -> suppressed
    exclude_combos: Tuple[Tuple[str, ...], ...] = ()  # All terms of any combo -> suppressed
    price_below: Optional[int] = None               # Gate: price absent or below this
    price_at_least: Optional[int] = None            # Price this high matches on its own

    def matches(self, text: str, price: Optional[Price] = None) -> bool:
        """
        Evaluate the rule against lowercased listing text and price.

        Args:
            text: Lowercased "title description" text
            price: Listing price (None if unknown)

        Returns:
            True if the tag should be emitted
        """
        if self.price_below is not None and price is not None and price >= self.price_below:
            return False

        if any(phrase in text for phrase in self.excludes):
            return False
        if any(all(term in text for term in combo) for combo in self.exclude_combos):
            return False

        if self.price_at_least is not None and price is not None and price >= self.price_at_least:
            return True

        if any(phrase in text for phrase in self.phrases):
            return True
        return any(all(term in text for term in combo) for combo in self.combos)


def _cross(*groups: Iterable[str]) -> Tuple[Tuple[str, ...], ...]:
    """Every combination taking one term from each group."""
    return tuple(product(*groups))


# Phrase groups shared by several rules

WATERFRONT_PHRASES = (
    'waterfront', 'water front', 'lakefront', 'lake front',
    'oceanfront', 'ocean front', 'riverfront', 'river front',
    'beachfront', 'beach front', 'bayfront', 'bay front', 'bay frontage',
    'dock', 'slip', 'boathouse', 'boat house',
    'intercoastal', 'intracoastal', 'boat lift', 'boat access', 'deep water',
    'direct water access', 'direct bay access', 'direct ocean access',
    'direct lake access', 'water access',
)

WATER_VIEW_PHRASES = (
    'water views', 'lake views', 'ocean views', 'river views', 'bay views',
    'views of the water',
)

DISTRESSED_PHRASES = (
    'short sale', 'foreclosure', 'bank owned', 'reo', 'pre-foreclosure',
)

UNDER_CONSTRUCTION_PHRASES = (
    'under renovation', 'under construction', 'completion in',
    'expected completion', 'anticipated completion', 'renovations underway',
)

LUXURY_ESTATE_FEATURES = (
    'library', 'home theater', 'theater room', 'media room', 'sauna',
    'steam room', 'wine cellar', 'wine room', 'elevator', 'staff quarters',
    "maid's quarters", 'prestigious', 'palatial', 'sprawling estate', 'compound',
)

LUXURY_BRANDS = (
    'miele', 'sub-zero', 'subzero', 'wolf', 'thermador', 'la cornue',
    'gaggenau', 'kallista', 'dornbracht', 'waterworks', 'lefroy brooks',
    'duravit', 'toto neorest', 'visual comfort', 'calacatta', 'statuario',
    'noir st. laurent', 'nero marquina', 'brudnizki', 'kelly wearstler',
    'peter marino',
)

CONVERSION_PHRASES = (
    'conversion', 'adaptive reuse', 'historic conversion', 'originally built',
    'originally designed', 'transformation', 'reimagined', 'reborn',
)

PRIMARY_RESIDENCE_PHRASES = (
    'elementary', 'school district', 'top-rated school', 'top rated school',
    'zoned for',
)


DEFAULT_TAG_RULES: Tuple[TagRule, ...] = (
    # Waterfront - actual water access, ahead of buyer personas
    TagRule(tag='#Waterfront', phrases=WATERFRONT_PHRASES),

    # Buyer personas
    TagRule(
        tag='#Flippers',
        phrases=('fix and flip', 'fix & flip', 'flip opportunity', 'diy', 'do it yourself'),
    ),
    TagRule(
        tag='#CashFlow',
        phrases=(
            'rental income', 'income producing', 'cash flow', 'cap rate',
            'multifamily', 'multi-family', 'two-unit', 'two unit', 'as-is', 'as is',
            'investment property', 'investor special', 'roi',
            'under renovation', 'under construction', 'completion in',
            'expected completion', 'commercial potential', 'commercial zoning',
            'mixed-use', 'mixed use', 'hotel potential', 'boutique hotel', 'motel',
            'transient lodging', 'development rights', 'commercial district',
        ),
        combos=(('renovation', 'months'), ('construction', 'timeline')),
        price_below=2_000_000,
    ),
    TagRule(
        tag='#Vacation',
        phrases=(
            'vacation-ready', 'vacation ready', 'turnkey rental', 'short-term rental',
            'short term rental', 'airbnb', 'air bnb', 'vrbo', 'vacation home',
            'vacation property', 'mountain retreat', 'resort-style amenities',
            'resort style amenities',
        ) + WATERFRONT_PHRASES + WATER_VIEW_PHRASES,
        excludes=PRIMARY_RESIDENCE_PHRASES,
        exclude_combos=_cross(('office',), ('family', 'bedroom')),
    ),
    TagRule(
        tag='#ForeverHome',
        phrases=(
            'spacious', 'family-friendly', 'family friendly', 'open floor plan',
            'bonus room', 'upgraded', 'office', 'backyard', 'back yard', 'garage',
            'family room', 'patio', 'walk-in closet', 'walk in closet', 'basement',
        ),
        excludes=DISTRESSED_PHRASES,
        price_below=2_000_000,
    ),
    TagRule(
        tag='#Lifestyle',
        phrases=(
            'trails', 'bike friendly', 'bike path', 'biking', 'hiking',
            'mountain views', 'mountains visible', 'open green space',
            'parks nearby', 'near parks', 'near open space', 'fitness friendly',
            'active community', 'golf course', 'tennis', 'lap pool',
            'fitness center', 'gym access', 'yoga studio', 'basketball court',
            'pickleball', 'sports court',
        ),
        combos=_cross(
            ('walking distance', 'walkable', 'walk to'),
            ('restaurant', 'bar', 'coffee', 'shops', 'downtown', 'neighborhood'),
        ),
    ),
    TagRule(
        tag='#StarterHome',
        phrases=(
            'updated', 'move-in ready', 'move in ready', 'affordable', 'value',
            'priced to sell', 'cozy', 'single-family', 'single family',
            'close to schools', 'good school', 'school district', 'zoned for',
            'educational excellence', 'great location', 'neighborhood',
            'open floor plan', 'low maintenance', 'easy care', 'walkable',
            'near shopping', 'near amenities',
        ),
        combos=(('coveted', 'school'),),
        price_below=750_000,
    ),
    TagRule(
        tag='#PetFriendly',
        phrases=(
            'dog-friendly', 'dog friendly', 'pet-friendly', 'pet friendly',
            'fenced backyard', 'fully fenced yard', 'room to roam', 'pet lovers',
            'dog park', 'walking trails', 'hoa allows pets', 'pets allowed',
        ),
        combos=(('large yard', 'pets'), ('private yard', 'pets')),
    ),
    TagRule(
        tag='#Luxury',
        phrases=LUXURY_BRANDS + (
            'custom-built', 'custom built', 'custom-designed', 'custom designed',
            'luxury', 'luxurious', 'lavish', 'impeccable', 'pristine', 'estate',
            'manor', 'gourmet kitchen', "chef's kitchen", 'chefs kitchen',
            'resort-style', 'resort style', 'resort-living', 'resort living',
            'panoramic views', 'breathtaking views', 'gated community',
            'designer finishes', 'high-end finishes', 'high end finishes',
            'bespoke', 'spa-like', 'home-spa', 'home spa',
            'indoor-outdoor living', 'indoor outdoor living', 'seamless indoor',
            'smart home', 'state-of-the-art', 'infinity pool', 'outdoor kitchen',
            'vaulted ceilings', 'great room', 'wine cellar', 'home theater',
            'home gym', 'grandest', 'palatial', 'meticulously', 'dazzling',
            'towering', 'once-in-a-lifetime', 'once in a lifetime',
            'private elevator', 'private terrace', 'doorman', 'library', 'penthouse',
        ),
        combos=(('residence', 'luxury'), ('residence', 'custom')),
        excludes=UNDER_CONSTRUCTION_PHRASES,
        exclude_combos=_cross(('currently being',), ('renovated', 'updated')),
        price_at_least=10_000_000,
    ),
    TagRule(
        tag='#NewConstruction',
        phrases=(
            'new construction', 'newly built', 'recently built', 'brand new home',
            'brand new construction', 'built in 2024', 'built in 2025',
            'built in 2026', '2024 construction', '2025 construction',
            '2026 construction', 'builder warranty', "builder's warranty",
            'under construction', 'spec home', 'spec house', 'to be built',
            'pre-construction', 'never lived in', 'never occupied',
        ),
        excludes=CONVERSION_PHRASES,
    ),
    TagRule(
        tag='#EscapeTheCity',
        phrases=(
            'farmhouse', 'ranch-style', 'ranch style', 'rustic charm',
            'modern country home', 'wraparound porch', 'country kitchen',
            'peaceful countryside', 'country living', 'creek on property',
            'natural pond', 'stock pond', 'lake on property', 'homestead-ready',
            'homestead ready', 'self-sufficient living', 'self sufficient living',
            'off-grid', 'off grid', 'solar panels', 'escape the city',
            'rural charm', 'rural property', 'open land', 'rolling hills',
            'room for horses', 'equestrian', 'barn included', 'pasture',
            'fenced acreage',
        ),
        combos=(
            ('pond', 'property'),
            ('well', 'septic'),
            ('barn', 'acres'),
            ('wide open views', 'acres'),
            ('garden space', 'acres'),
            ('rv parking', 'acres'),
        ),
        excludes=LUXURY_ESTATE_FEATURES,
    ),
    TagRule(
        tag='#Historic',
        phrases=(
            'historic home', 'historic district', 'registered historic',
            'historic property', 'built in 18', 'built in 19',
            'turn-of-the-century home', 'turn of the century home',
            'circa 18', 'circa 19', 'preserved architecture', 'period details',
            'original character', 'original hardwood', 'original molding',
            'original windows', 'original trim', 'historic charm',
            'historic features', 'restored historic',
        ),
    ),

    # Supplementary features
    TagRule(
        tag='#Pool',
        phrases=('pool',),
        excludes=(
            'community pool', 'pool possible', 'pool potential', 'room for pool',
            'room for a pool', 'add a pool', 'add pool', 'build a pool',
            'build pool', 'pool ready', 'space for pool', 'space for a pool',
        ),
    ),
    TagRule(
        tag='#FixerUpper',
        phrases=(
            'fixer', 'needs work', 'tlc', 'needs updating', 'handyman',
            'cosmetic update', 'bring your tools', 'sweat equity', 'vintage',
            'undeveloped', 'blank canvas', 'development opportunity', 'ground-up',
            'ground up', 'tear down', 'teardown', 'build new', 'rebuild',
            'redevelopment', 'transform', 'creative vision', 'bring your vision',
            'shaping a new vision', 'rare opportunity', 'unique opportunity',
            'once-in-lifetime', 'once in a lifetime', 'final chance',
        ),
        combos=_cross(('one of a kind',), ('opportunity', 'potential')),
    ),
    TagRule(
        tag='#ValueAdd',
        phrases=(
            'value-add', 'value add', 'opportunity to customize',
            'opportunity to update', 'opportunity to renovate',
            'customize to your taste', 'add value', 'bring your vision',
            'make it your own', 'personalize', 'development opportunity',
            'redevelopment opportunity', 'update to your standards',
            'great bones', 'good bones', 'solid bones', 'enjoyed as is or',
            'as is or reimagined',
        ),
        combos=(
            _cross(('blank canvas',), ('luxury', 'estate'))
            + (('viking', 'appliances'),)
            + _cross(
                ('designed by', 'architect'),
                ('opportunity to', 'potential to'),
                ('customize', 'update', 'renovate'),
            )
            + _cross(('reimagined', 're-imagined'), ('legacy', 'estate', 'compound'))
            + _cross(('tear down', 'build new'), ('estate',))
        ),
        excludes=('calacatta marble', 'christopher peacock', 'gaggenau'),
        exclude_combos=(
            ('sub-zero', 'wolf'),
            ('miele', 'wolf'),
            ('miele', 'sub-zero'),
            ('steam shower', 'spa'),
            ('smart home', 'ipad'),
            ('smart home', 'automation'),
            ('trophy', 'penthouse'),
            ('trophy', 'estate'),
        ),
    ),
    TagRule(tag='#GoodBones', phrases=('good bones', 'great bones', 'solid bones')),
    TagRule(
        tag='#BelowMarket',
        phrases=(
            'under market', 'below market', 'priced to sell', 'motivated seller',
            'must sell', 'reduced',
        ) + DISTRESSED_PHRASES,
    ),
    TagRule(
        tag='#Potential',
        phrases=('major potential', 'huge potential', 'lots of potential', 'great potential'),
    ),
    TagRule(tag='#Renovation', phrases=('renovat', 'remodel', 'updat', 'modern')),
)


def _as_tuple(value) -> Tuple[str, ...]:
    if value is None:
        return ()
    if isinstance(value, str):
        return (value.lower(),)
    return tuple(str(v).lower() for v in value)


def _as_combos(value) -> Tuple[Tuple[str, ...], ...]:
    if not value:
        return ()
    return tuple(_as_tuple(combo) for combo in value)


def parse_tag_rule(entry: dict) -> TagRule:
    """
    Build a TagRule from one config entry.

    Example entry:
        tag: '#Pool'
        phrases: [pool]
        excludes: [community pool]
        price_below: 2000000

    Raises:
        ValueError: if the entry has no tag or no way to match
    """
    tag = (entry or {}).get('tag')
    if not tag:
        raise ValueError(f"Tag rule missing 'tag': {entry!r}")
    if not tag.startswith('#'):
        tag = f"#{tag}"

    rule = TagRule(
        tag=tag,
        phrases=_as_tuple(entry.get('phrases')),
        combos=_as_combos(entry.get('combos')),
        excludes=_as_tuple(entry.get('excludes')),
        exclude_combos=_as_combos(entry.get('exclude_combos')),
        price_below=entry.get('price_below'),
        price_at_least=entry.get('price_at_least'),
    )
    if not rule.phrases and not rule.combos and rule.price_at_least is None:
        raise ValueError(f"Tag rule {tag} has no phrases, combos or price trigger")
    return rule


def load_tag_rules_from_config(config: dict) -> Tuple[TagRule, ...]:
    """
    Load the tag rule table from config dictionary.

    Args:
        config: Parsed config.yml dictionary

    Returns:
        Ordered rule table (defaults when config has no `tags.rules`)
    """
    tags_config = (config or {}).get('tags') or {}
    rules_config: List[dict] = tags_config.get('rules') or []
    if not rules_config:
        return DEFAULT_TAG_RULES

    return tuple(parse_tag_rule(entry) for entry in rules_config)
