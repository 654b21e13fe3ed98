# src/curation/moderate/engine.py
"""Moderation decision engine for listing titles and descriptions."""

import logging
from typing import List, Optional, Tuple

from curation.moderate.rules import (
    BLOCKED_MESSAGE,
    EXCESSIVE_CAPS_MESSAGE,
    EXTERNAL_LINK_MESSAGE,
    FLAGGED_PHRASE_MESSAGE,
    ModerationRules,
)
from curation.moderate.verdict import (
    Approved,
    Blocked,
    FlaggedForReview,
    Verdict,
)
from curation.text.normalise import normalise_text
from curation.text.variations import contains_term_variation, generate_variations

logger = logging.getLogger(__name__)


class ModerationEngine:
    """Classifies listing text as approved, blocked, or flagged for review.

    Stateless after construction: the term tables come in through
    ModerationRules and variations are precomputed once, so one engine can
    serve any number of callers.
    """

    def __init__(self, rules: Optional[ModerationRules] = None):
        self.rules = rules or ModerationRules()
        self._blocked: List[Tuple[str, List[str]]] = [
            (term, generate_variations(term)) for term in self.rules.blocked_terms
        ]

    def classify_text(self, text: str) -> Verdict:
        """
        Moderate one text field.

        Checks, first match wins:
        1. Blocked terms (including evasive spellings) -> Blocked
        2. External URL not on our own domain -> FlaggedForReview
        3. Scam / fair-housing / redirect phrase -> FlaggedForReview
        4. Excessive capitalisation -> FlaggedForReview

        Args:
            text: Raw field text

        Returns:
            Verdict for this field
        """
        if not text:
            return Approved()

        lowered = text.lower()

        if self.find_blocked_term(text) is not None:
            return Blocked(reason=BLOCKED_MESSAGE)

        if self.has_suspicious_url(lowered):
            logger.debug("Content flagged: suspicious URL")
            return FlaggedForReview(reason=EXTERNAL_LINK_MESSAGE, filtered_text=text)

        phrase = self.find_flagged_phrase(lowered)
        if phrase is not None:
            logger.debug(f"Content flagged: contains '{phrase}'")
            return FlaggedForReview(
                reason=f"{FLAGGED_PHRASE_MESSAGE}: '{phrase}'",
                filtered_text=text,
            )

        if self.is_excessive_caps(text):
            logger.debug("Content flagged: excessive capitalization")
            return FlaggedForReview(reason=EXCESSIVE_CAPS_MESSAGE, filtered_text=text)

        return Approved()

    def classify_post(self, title: str, description: Optional[str] = None) -> Verdict:
        """
        Moderate a post's title and description together.

        A block on either field wins, title first. Otherwise a flag wins,
        again title first. An empty description is skipped.

        Args:
            title: Listing title (required)
            description: Listing description (optional)

        Returns:
            Combined verdict; Blocked reasons name the field
        """
        title_verdict = self.classify_text(title)
        if isinstance(title_verdict, Blocked):
            return Blocked(reason=f"Title: {title_verdict.reason}")

        desc_verdict: Verdict = Approved()
        if description:
            desc_verdict = self.classify_text(description)
            if isinstance(desc_verdict, Blocked):
                return Blocked(reason=f"Description: {desc_verdict.reason}")

        if isinstance(title_verdict, FlaggedForReview):
            return title_verdict
        if isinstance(desc_verdict, FlaggedForReview):
            return desc_verdict

        return Approved()

    def find_blocked_term(self, text: str) -> Optional[str]:
        """Return the first blocked term present in text, or None.

        For logs and tests only - never surface the result to the submitter.
        """
        normalised = normalise_text(text)
        for term, variations in self._blocked:
            if contains_term_variation(
                text,
                term,
                normalised_text=normalised,
                vowel_stripped=self.rules.vowel_stripped_matching,
                variations=variations,
            ):
                logger.debug(f"Content blocked: matched blocked term '{term}'")
                return term
        return None

    def has_suspicious_url(self, lowered: str) -> bool:
        """Check lowercased text for external link markers."""
        if any(domain in lowered for domain in self.rules.allowed_domains):
            return False
        return any(marker in lowered for marker in self.rules.url_markers)

    def find_flagged_phrase(self, lowered: str) -> Optional[str]:
        """Return the first flagged phrase in lowercased text, or None."""
        for phrase in self.rules.flagged_phrases:
            if phrase in lowered:
                return phrase
        return None

    def is_excessive_caps(self, text: str) -> bool:
        """More than caps_ratio of letters uppercase, in text longer than caps_min_length."""
        if len(text) <= self.rules.caps_min_length:
            return False

        letters = [ch for ch in text if ch.isalpha()]
        if not letters:
            return False

        upper = sum(1 for ch in letters if ch.isupper())
        return upper / len(letters) > self.rules.caps_ratio
