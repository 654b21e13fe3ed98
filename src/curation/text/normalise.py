# src/curation/text/normalise.py
"""Text normalisation for fuzzy matching of listing text against term tables."""

from typing import Optional


# Separators deleted outright (not replaced with a space)
SEPARATORS = ' -_.*'

# Leet-speak substitutions - applied globally, after separators are removed
LEET_MAP = {
    '0': 'o',
    '1': 'i',
    '3': 'e',
    '4': 'a',
    '5': 's',
    '7': 't',
    '8': 'b',
    '$': 's',
    '@': 'a',
    '!': 'i',
}

# Longest run of one letter kept by the collapse step ("pool" keeps its "oo")
MAX_LETTER_RUN = 2

# Separator and substitution characters are disjoint, so one translate pass
# gives the same result as deleting first and substituting second.
_TRANSLATION = str.maketrans(
    ''.join(LEET_MAP.keys()),
    ''.join(LEET_MAP.values()),
    SEPARATORS,
)


def normalise_text(text: Optional[str]) -> str:
    """
    Return canonical form of text for matching.

    Steps, in order:
    - Lowercase
    - Delete separators (space, hyphen, underscore, period, asterisk)
    - Leet-speak substitutions (0->o, 1->i, 3->e, 4->a, 5->s, 7->t, 8->b,
      $->s, @->a, !->i)
    - Collapse repeated characters ("sooooo" -> "soo", "!!!" -> "ii", "222" -> "2")

    The result is only used for matching; the original text is what gets
    stored and displayed.

    Args:
        text: Raw user text (can be None)

    Returns:
        Normalised string (empty for None/empty input)
    """
    if not text:
        return ''

    return collapse_repeats(text.lower().translate(_TRANSLATION))


def collapse_repeats(text: str) -> str:
    """
    Collapse runs of identical characters.

    Letters keep at most two in a row so genuine double letters survive;
    any other character keeps one.

    Examples:
    - "aaa" -> "aa"
    - "bb" -> "bb"
    - "ccccc" -> "cc"
    - "222" -> "2"
    """
    out = []
    run = 0

    for ch in text:
        if out and out[-1] == ch:
            run += 1
        else:
            run = 1

        limit = MAX_LETTER_RUN if ch.isalpha() else 1
        if run <= limit:
            out.append(ch)

    return ''.join(out)
