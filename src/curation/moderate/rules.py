# src/curation/moderate/rules.py
"""Moderation term tables and thresholds.

Supports two modes:
1. Config-driven: Load tables/thresholds from the `moderation` section of config.yml
2. Fallback: Use the default tables below
"""

from dataclasses import dataclass
from typing import Tuple


# Severe profanity, slurs, explicit content, threats, discrimination (auto-block)
DEFAULT_BLOCKED_TERMS: Tuple[str, ...] = (
    # Extreme profanity
    'fuck', 'fucking', 'fucker', 'fucked', 'motherfucker',
    'cunt', 'pussy',

    # Racial slurs (partial list)
    'nigger', 'nigga', 'chink', 'spic', 'wetback', 'beaner', 'kike',
    'towelhead', 'raghead', 'gook', 'jap', 'paki',

    # Homophobic slurs
    'fag', 'faggot', 'dyke',

    # Sexual/explicit content
    'porn', 'pornography', 'xxx', 'sex tape', 'nudes',
    'onlyfans', 'escort', 'prostitute', 'hooker', 'brothel',

    # Violence & threats
    'kill you', 'murder you', 'rape', 'terrorist', 'bomb threat',
    'shoot you', 'attack you', 'death threat', 'going to kill',

    # Extreme discrimination
    'no blacks', 'no mexicans', 'no muslims', 'no jews', 'no asians',
    'whites only', 'no arabs', 'no hispanics', 'no gays',
)

# Scam, fair-housing and contact-redirect indicators (flag for review)
DEFAULT_FLAGGED_PHRASES: Tuple[str, ...] = (
    # Scam/spam
    'click here', 'free money', 'earn $$$', 'make money fast',
    'wire transfer', 'western union', 'bitcoin', 'crypto investment',
    'send money', 'cash only', 'no questions asked',

    # Fair housing violations
    'adults only', 'no children', 'no kids', 'perfect for christians',
    'perfect for families', 'mature tenants', 'no section 8',
    'no disabled', 'no handicapped',

    # Suspicious patterns
    '100% guarantee', 'limited time', 'act now', 'urgent',
    'nigerian prince', 'inheritance',

    # External redirects
    'telegram', 'whatsapp me', 'text me at', 'call me at',
    'email me at', 'dm me', 'snapchat', 'kik',
)

DEFAULT_URL_MARKERS: Tuple[str, ...] = (
    'http://', 'https://', 'www.', '.com', '.org', '.net',
    '.ru', '.tk', '.ml', '.ga',         # Suspicious TLDs
    'bit.ly', 'tinyurl', 'goo.gl',      # URL shorteners
)

# Links to our own domain are never treated as external
DEFAULT_ALLOWED_DOMAINS: Tuple[str, ...] = ('housers.app',)

CAPS_RATIO = 0.6
CAPS_MIN_LENGTH = 10

BLOCKED_MESSAGE = 'Content contains prohibited language'
EXTERNAL_LINK_MESSAGE = 'Contains external links'
FLAGGED_PHRASE_MESSAGE = 'Potential spam or fair housing violation'
EXCESSIVE_CAPS_MESSAGE = 'Excessive capitalization (spam indicator)'


@dataclass(frozen=True)
class ModerationRules:
    """Read-only moderation vocabulary and thresholds."""

    blocked_terms: Tuple[str, ...] = DEFAULT_BLOCKED_TERMS
    flagged_phrases: Tuple[str, ...] = DEFAULT_FLAGGED_PHRASES
    url_markers: Tuple[str, ...] = DEFAULT_URL_MARKERS
    allowed_domains: Tuple[str, ...] = DEFAULT_ALLOWED_DOMAINS
    caps_ratio: float = CAPS_RATIO              # Uppercase share of letters that flags
    caps_min_length: int = CAPS_MIN_LENGTH      # Caps check needs len(text) > this
    vowel_stripped_matching: bool = True        # Blocked-term rule (d), see text.variations


def _lowered(values) -> Tuple[str, ...]:
    return tuple(str(v).lower() for v in values)


def load_moderation_rules(config: dict) -> ModerationRules:
    """
    Load moderation rules from config dictionary.

    Any list present in the `moderation` section replaces the matching
    default table; absent keys keep their defaults.

    Args:
        config: Parsed config.yml dictionary

    Returns:
        ModerationRules instance
    """
    section = (config or {}).get('moderation') or {}
    if not section:
        return ModerationRules()

    defaults = ModerationRules()
    return ModerationRules(
        blocked_terms=_lowered(section.get('blocked_terms', defaults.blocked_terms)),
        flagged_phrases=_lowered(section.get('flagged_phrases', defaults.flagged_phrases)),
        url_markers=_lowered(section.get('url_markers', defaults.url_markers)),
        allowed_domains=_lowered(section.get('allowed_domains', defaults.allowed_domains)),
        caps_ratio=float(section.get('caps_ratio', defaults.caps_ratio)),
        caps_min_length=int(section.get('caps_min_length', defaults.caps_min_length)),
        vowel_stripped_matching=bool(
            section.get('vowel_stripped_matching', defaults.vowel_stripped_matching)
        ),
    )
