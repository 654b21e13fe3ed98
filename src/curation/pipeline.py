# src/curation/pipeline.py
"""Listing submission pipeline: moderate, validate photos, then tag."""

import logging
import os
from dataclasses import dataclass, field
from typing import List, Optional, Set, Tuple

from curation.moderate.engine import ModerationEngine
from curation.moderate.images import (
    DEFAULT_IMAGE_LIMITS,
    ImageLimits,
    load_image_limits,
    validate_image,
)
from curation.moderate.rules import load_moderation_rules
from curation.moderate.verdict import Blocked, Verdict
from curation.tags.generator import MAX_TAGS, TagGenerator
from curation.tags.keywords import KeywordIndex, load_keyword_map_from_config
from curation.tags.rules import Price, load_tag_rules_from_config

logger = logging.getLogger(__name__)


@dataclass
class ListingSubmission:
    """A listing as submitted by a user."""

    title: str
    description: Optional[str] = None
    city: Optional[str] = None
    price: Optional[Price] = None
    bedrooms: Optional[int] = None
    listing_type: Optional[str] = None
    images: List[Tuple[bytes, Optional[str]]] = field(default_factory=list)  # (data, filename)


@dataclass
class SubmissionResult:
    """Moderation verdict, photo problems and tags for one submission."""

    verdict: Verdict
    tags: List[str] = field(default_factory=list)
    image_errors: List[str] = field(default_factory=list)

    @property
    def publishable(self) -> bool:
        """Not blocked and every photo passed validation (flagged posts still publish)."""
        return not isinstance(self.verdict, Blocked) and not self.image_errors


class ListingCurator:
    """Entry point for the submission and search collaborators.

    Holds read-only rule tables, built once at startup and shared.
    """

    def __init__(
        self,
        engine: Optional[ModerationEngine] = None,
        generator: Optional[TagGenerator] = None,
        keyword_index: Optional[KeywordIndex] = None,
        image_limits: ImageLimits = DEFAULT_IMAGE_LIMITS,
    ):
        self.engine = engine or ModerationEngine()
        self.generator = generator or TagGenerator()
        self.keyword_index = keyword_index or KeywordIndex()
        self.image_limits = image_limits

    @classmethod
    def from_config(cls, config: dict) -> 'ListingCurator':
        """Build from a parsed config.yml dictionary (missing sections use defaults)."""
        tags_config = (config or {}).get('tags') or {}
        return cls(
            engine=ModerationEngine(load_moderation_rules(config)),
            generator=TagGenerator(
                rules=load_tag_rules_from_config(config),
                max_tags=int(tags_config.get('max_tags', MAX_TAGS)),
            ),
            keyword_index=KeywordIndex(load_keyword_map_from_config(config)),
            image_limits=load_image_limits(config),
        )

    def classify_post(self, title: str, description: Optional[str] = None) -> Verdict:
        return self.engine.classify_post(title, description)

    def validate_image(
        self,
        data: bytes,
        filename: Optional[str] = None,
    ) -> Tuple[bool, Optional[str]]:
        return validate_image(data, filename, limits=self.image_limits)

    def generate_tags(
        self,
        city: Optional[str],
        price: Optional[Price],
        bedrooms: Optional[int],
        title: str,
        description: Optional[str] = None,
        listing_type: Optional[str] = None,
    ) -> List[str]:
        return self.generator.generate_tags(
            city, price, bedrooms, title, description, listing_type
        )

    def find_matching_tags(self, query: str) -> Set[str]:
        return self.keyword_index.find_matching_tags(query)

    def all_keywords(self) -> List[str]:
        return self.keyword_index.all_keywords()

    def process_submission(self, submission: ListingSubmission) -> SubmissionResult:
        """
        Run a submission through moderation, photo checks and tagging.

        Blocked submissions get no tags. Flagged submissions are tagged as
        normal; the reviewer decides later.

        Args:
            submission: Listing text, attributes and photos

        Returns:
            SubmissionResult
        """
        verdict = self.classify_post(submission.title, submission.description)

        image_errors = []
        for index, (data, filename) in enumerate(submission.images, start=1):
            ok, error = self.validate_image(data, filename)
            if not ok:
                name = os.path.basename(filename) if filename else f"image {index}"
                image_errors.append(f"{name}: {error}")

        if isinstance(verdict, Blocked):
            logger.info(f"Submission blocked: {verdict.reason}")
            return SubmissionResult(verdict=verdict, image_errors=image_errors)

        tags = self.generate_tags(
            city=submission.city,
            price=submission.price,
            bedrooms=submission.bedrooms,
            title=submission.title,
            description=submission.description,
            listing_type=submission.listing_type,
        )
        logger.info(f"Submission {verdict.status}: tags={tags}")
        return SubmissionResult(verdict=verdict, tags=tags, image_errors=image_errors)
