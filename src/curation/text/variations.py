# src/curation/text/variations.py
"""Evasive-spelling variations of banned terms and the matching policy built on them."""

from typing import Dict, List, Optional, Tuple

from curation.text.normalise import normalise_text


# Letter -> single-character stand-ins commonly used to dodge filters
SUBSTITUTES: Dict[str, Tuple[str, ...]] = {
    'a': ('@', '4'),
    'e': ('3',),
    'i': ('1', '!'),
    'o': ('0',),
    's': ('$', '5'),
    't': ('7',),
    'b': ('8',),
}

VOWELS = 'aeiou'

# Vowel-stripped matching only applies to terms at least this long...
MIN_STRIPPED_TERM_LENGTH = 4
# ...whose stripped form keeps at least this many characters
MIN_STRIPPED_FORM_LENGTH = 2


def generate_variations(term: str) -> List[str]:
    """
    Generate misspelling/evasion candidates for a banned term.

    - One variant per (letter, substitute) pair, with that letter replaced
      everywhere it occurs. Only one substitution axis at a time, so
      "bomb" gives "b0mb" and "8om8" but never "80m8".
    - Terms longer than 3 characters also yield the term minus its last
      character; longer than 4, minus its last two.

    Args:
        term: Banned term (matched case-insensitively)

    Returns:
        Ordered, de-duplicated variations, never including the term itself
    """
    term = term.lower()
    candidates = []

    seen_letters = set()
    for letter in term:
        if letter in seen_letters or letter not in SUBSTITUTES:
            continue
        seen_letters.add(letter)
        for substitute in SUBSTITUTES[letter]:
            candidates.append(term.replace(letter, substitute))

    if len(term) > 3:
        candidates.append(term[:-1])
    if len(term) > 4:
        candidates.append(term[:-2])

    variations = []
    for candidate in candidates:
        if candidate != term and candidate not in variations:
            variations.append(candidate)
    return variations


def strip_vowels(term: str) -> str:
    """Remove a, e, i, o, u from term ("fork" -> "frk")."""
    return ''.join(ch for ch in term.lower() if ch not in VOWELS)


def matches_vowel_stripped(term: str, *texts: str) -> bool:
    """
    Check whether the vowel-stripped form of term appears in any text.

    Deliberately aggressive: short consonant clusters over-match
    ("rape" -> "rp" hits "carpet"). Callers can switch it off through
    configuration.
    """
    if len(term) < MIN_STRIPPED_TERM_LENGTH:
        return False

    stripped = strip_vowels(term)
    if len(stripped) < MIN_STRIPPED_FORM_LENGTH:
        return False

    return any(stripped in text for text in texts)


def contains_term_variation(
    text: str,
    term: str,
    normalised_text: Optional[str] = None,
    vowel_stripped: bool = True,
    variations: Optional[List[str]] = None,
) -> bool:
    """
    Decide whether a banned term is present in text, allowing for evasion.

    A term counts as present if any of:
    (a) the lowercased raw text contains it
    (b) the normalised text contains the normalised term
    (c) raw or normalised text contains a generated variation
    (d) vowel-stripped match (see matches_vowel_stripped), when enabled

    Args:
        text: Raw user text
        term: Banned term
        normalised_text: Precomputed normalise_text(text), if available
        vowel_stripped: Apply rule (d)
        variations: Precomputed generate_variations(term), if available

    Returns:
        True if the term or an evasive form of it is present
    """
    raw = text.lower()
    term = term.lower()
    if normalised_text is None:
        normalised_text = normalise_text(text)

    if term in raw:
        return True

    normalised_term = normalise_text(term)
    if normalised_term and normalised_term in normalised_text:
        return True

    if variations is None:
        variations = generate_variations(term)
    for variation in variations:
        if variation in normalised_text or variation in raw:
            return True

    if vowel_stripped and matches_vowel_stripped(term, normalised_text, raw):
        return True

    return False
