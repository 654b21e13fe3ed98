# src/curation/tags/keywords.py
"""Reverse index from search terms to discovery tags.

Lets a user search "fixer" and find listings tagged #FixerUpper.
"""

from typing import Dict, FrozenSet, Iterable, List, Mapping, Set


DEFAULT_KEYWORD_MAP: Dict[str, List[str]] = {
    # Buyer persona tags
    'Flippers': [
        'flip', 'flipper', 'flippers', 'fix and flip', 'fix & flip',
        'investor', 'investment', 'flip opportunity',
    ],
    'CashFlow': [
        'cash flow', 'cashflow', 'rental income', 'income producing',
        'cap rate', 'multifamily', 'multi-family', 'investment property',
        'roi', 'return on investment', 'buy and hold',
    ],
    'Vacation': [
        'vacation', 'airbnb', 'air bnb', 'vrbo', 'short term rental',
        'short-term rental', 'vacation home', 'vacation property',
        'vacation ready', 'turnkey rental',
    ],
    'ForeverHome': [
        'forever home', 'family home', 'family friendly', 'family-friendly',
        'spacious', 'upgraded', 'move in ready', 'move-in ready',
    ],
    'Lifestyle': [
        'lifestyle', 'active lifestyle', 'outdoor', 'trails', 'hiking',
        'biking', 'fitness', 'near parks',
    ],
    'StarterHome': [
        'starter', 'starter home', 'first time buyer', 'first-time buyer',
        'affordable', 'entry level', 'entry-level',
    ],
    'EscapeTheCity': [
        'escape', 'escape the city', 'rural', 'retreat', 'country',
        'secluded', 'privacy', 'peaceful', 'quiet',
    ],
    'Historic': [
        'historic', 'historical', 'heritage', 'vintage', 'classic',
        'restored', 'character home', 'period home', 'old world',
    ],
    'Luxury': [
        'luxury', 'luxurious', 'high end', 'high-end', 'upscale',
        'premium', 'estate', 'mansion', 'exclusive', 'prestige',
        'prestigious', 'world class', 'world-class',
    ],
    'NewConstruction': [
        'new build', 'new construction', 'brand new', 'never lived in',
        'under construction', 'builder',
    ],

    # Property condition tags
    'FixerUpper': [
        'fixer', 'fixer upper', 'fixer-upper', 'needs work', 'tlc',
        'handyman special', 'handyman', 'cosmetic work', 'renovation needed',
    ],
    'ValueAdd': [
        'value add', 'value-add', 'dated', 'potential', 'upside',
        'renovate', 'update', 'cosmetic updates',
    ],
    'GoodBones': [
        'good bones', 'solid structure', 'cosmetic', 'cosmetic updates',
        'paint and carpet', 'lipstick',
    ],
    'Potential': [
        'major potential', 'huge potential', 'lots of potential', 'great potential',
    ],
    'Renovation': [
        'renovation', 'renovated', 'remodel', 'remodeled', 'updated', 'modern',
    ],

    # Special features
    'Pool': [
        'pool', 'swimming pool', 'heated pool', 'saltwater pool',
        'resort style pool', 'pool spa',
    ],
    'PetFriendly': [
        'pet', 'pet friendly', 'pet-friendly', 'dog', 'cat',
        'fenced yard', 'fenced', 'dog run',
    ],
    'Waterfront': [
        'waterfront', 'water front', 'lakefront', 'lake front',
        'oceanfront', 'ocean front', 'beachfront', 'beach front',
        'bayfront', 'bay front', 'dock', 'boat dock', 'boat slip',
    ],

    # Pricing/value tags
    'BelowMarket': [
        'below market', 'below market value', 'deal', 'steal',
        'underpriced', 'under priced', 'priced to sell', 'bargain',
    ],
    'ForLease': [
        'for lease', 'for rent', 'rental', 'lease',
    ],

    # Size tags
    'LargeProperty': [
        'large property', 'large home', 'big family home', 'four bedroom',
        '4 bedroom', '5 bedroom',
    ],
    'Studio': [
        'studio', 'one bedroom', '1 bedroom', 'efficiency',
    ],

    'OpenHouse': [
        'open house', 'open home', 'open inspection',
    ],
}


def clean_query(query: str) -> str:
    """Lowercase, trim and drop a leading '#' ('#Pool ' -> 'pool')."""
    return (query or '').strip().lower().lstrip('#').strip()


class KeywordIndex:
    """Read-only mapping from tag name (no '#') to its synonym vocabulary."""

    def __init__(self, keyword_map: Mapping[str, Iterable[str]] = DEFAULT_KEYWORD_MAP):
        self._index: Dict[str, FrozenSet[str]] = {
            tag.lstrip('#'): frozenset(s.lower() for s in synonyms)
            for tag, synonyms in keyword_map.items()
        }
        # The tag name itself always counts as a synonym when matching
        self._match_terms: Dict[str, FrozenSet[str]] = {
            tag: synonyms | {tag.lower()} for tag, synonyms in self._index.items()
        }

    @property
    def tags(self) -> List[str]:
        return list(self._index)

    def synonyms(self, tag: str) -> FrozenSet[str]:
        """Synonyms for a tag ('#Pool' or 'Pool'); empty if unknown."""
        return self._index.get(tag.lstrip('#'), frozenset())

    def find_matching_tags(self, query: str) -> Set[str]:
        """
        Resolve a free-text search to tag names.

        A tag matches if any synonym (the tag name included) contains the
        query, or the query contains any synonym. Deliberately permissive:
        short queries can match several tags.

        Args:
            query: Search text, with or without a leading '#'

        Returns:
            Set of tag names without '#', e.g. {'FixerUpper'}
        """
        term = clean_query(query)
        if not term:
            return set()

        matches = set()
        for tag, synonyms in self._match_terms.items():
            if any(term in synonym or synonym in term for synonym in synonyms):
                matches.add(tag)
        return matches

    def all_keywords(self) -> List[str]:
        """All synonyms plus tag names, de-duplicated and sorted (for autocomplete)."""
        keywords = set(self._index)
        for synonyms in self._index.values():
            keywords.update(synonyms)
        return sorted(keywords)


def load_keyword_map_from_config(config: dict) -> Dict[str, List[str]]:
    """
    Merge extra synonyms from the `keywords` section of config.yml into the defaults.

    Example:
        keywords:
          Pool: [plunge pool]
          Solar: [solar panels, solar power]
    """
    keyword_map = {tag: list(synonyms) for tag, synonyms in DEFAULT_KEYWORD_MAP.items()}
    extra = (config or {}).get('keywords') or {}
    for tag, synonyms in extra.items():
        tag = str(tag).lstrip('#')
        if isinstance(synonyms, str):
            synonyms = [synonyms]
        merged = keyword_map.setdefault(tag, [])
        for synonym in synonyms or []:
            if synonym not in merged:
                merged.append(str(synonym))
    return keyword_map
