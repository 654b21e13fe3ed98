# src/curation/moderate/verdict.py
"""Moderation verdicts: approved, blocked, or flagged for manual review."""

from dataclasses import dataclass
from typing import Union

APPROVED = 'approved'
BLOCKED = 'blocked'
FLAGGED = 'flagged'


@dataclass(frozen=True)
class Approved:
    """Content may be published as-is."""

    @property
    def status(self) -> str:
        return APPROVED


@dataclass(frozen=True)
class Blocked:
    """Publication refused - the submitter must edit the content."""

    reason: str     # Generic, never names the matched term

    @property
    def status(self) -> str:
        return BLOCKED


@dataclass(frozen=True)
class FlaggedForReview:
    """Publication allowed but queued for a reviewer."""

    reason: str         # Shown to the reviewer
    filtered_text: str  # Text the reviewer sees

    @property
    def status(self) -> str:
        return FLAGGED


Verdict = Union[Approved, Blocked, FlaggedForReview]


def is_approved(verdict: Verdict) -> bool:
    return isinstance(verdict, Approved)


def is_blocked(verdict: Verdict) -> bool:
    return isinstance(verdict, Blocked)


def is_flagged(verdict: Verdict) -> bool:
    return isinstance(verdict, FlaggedForReview)
