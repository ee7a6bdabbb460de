"""Smart search and roommate compatibility capabilities.

Each capability has a local implementation (rules or a seeded random source,
no network) and a Gemini-backed one. ``build_matchers`` picks the pair named by
the ``AI_PROVIDER`` setting.
"""

from __future__ import annotations

import logging
import random
import re
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Mapping, Optional

import requests

from catalog import ListingType
from errors import UpstreamError

from .gemini import GeminiError, generate_json

logger = logging.getLogger(__name__)

AI_PROVIDERS = ("local", "gemini")


@dataclass
class SearchIntent:
    keywords: list[str] = field(default_factory=list)
    max_price: Optional[int] = None
    listing_type: Optional[ListingType] = None
    location: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            "keywords": list(self.keywords),
            "maxPrice": self.max_price,
            "listingType": self.listing_type.value if self.listing_type else None,
            "location": self.location,
        }


@dataclass(frozen=True)
class CompatibilityResult:
    score: int
    reason: str

    def to_dict(self) -> dict:
        return {"score": self.score, "reason": self.reason}


class SmartSearchParser(ABC):
    """Turns a free-text housing query into structured filters."""

    @abstractmethod
    def parse(self, query: str) -> SearchIntent:
        ...


class CompatibilityScorer(ABC):
    """Scores how well a student's bio fits a listing's household."""

    @abstractmethod
    def score(self, user_bio: str, listing_bio: str) -> CompatibilityResult:
        ...


# Local implementations

_TYPE_HINTS = (
    (ListingType.ROOMMATE_WANTED, ("roommate", "share", "people")),
    (ListingType.VACANT_ROOM, ("apartment", "studio", "private", "vacant")),
    (ListingType.COMING_SOON, ("new", "project", "building")),
)
_LOCATION_HINTS = ("campus", "north", "downtown")
_PRICE_RE = re.compile(r"\$?(\d{3,4})")


class RuleBasedSearchParser(SmartSearchParser):
    """Keyword rules: type words, a 3-4 digit budget and a few area names."""

    def parse(self, query: str) -> SearchIntent:
        lowered = query.lower()
        intent = SearchIntent(keywords=[word for word in query.split(" ") if len(word) > 3])

        for listing_type, hints in _TYPE_HINTS:
            if any(hint in lowered for hint in hints):
                intent.listing_type = listing_type
                break

        match = _PRICE_RE.search(lowered)
        if match:
            intent.max_price = int(match.group(1))

        if any(hint in lowered for hint in _LOCATION_HINTS):
            intent.location = "Near Campus"
        return intent


POSITIVE_REASONS = (
    "Your study schedules seem to align perfectly based on the description.",
    "Both of you value a quiet environment, which is a great match.",
    "You share similar interests in social activities.",
    "Your cleanliness standards appear to match the owner's expectations.",
    "Great vibe match! You both seem to be night owls.",
)
MIN_RANDOM_SCORE = 65
MAX_RANDOM_SCORE = 98


class RandomCompatibilityScorer(CompatibilityScorer):
    """Placeholder scorer: an upbeat random score and reason."""

    def __init__(self, rng: random.Random | None = None):
        self._rng = rng or random.Random()

    def score(self, user_bio: str, listing_bio: str) -> CompatibilityResult:
        return CompatibilityResult(
            score=self._rng.randint(MIN_RANDOM_SCORE, MAX_RANDOM_SCORE),
            reason=self._rng.choice(POSITIVE_REASONS),
        )


# Gemini implementations

SEARCH_PROMPT = """You extract housing search filters for a student housing site.
Return ONLY a JSON object with keys:
  "keywords": array of short strings worth matching against listing text,
  "maxPrice": integer monthly budget in dollars or null,
  "listingType": one of "VACANT_ROOM", "ROOMMATE_WANTED", "COMING_SOON" or null,
  "location": short area description or null.

Query: {query}
"""

COMPATIBILITY_PROMPT = """You judge roommate compatibility for student housing.
Compare the student's bio with the household description.
Return ONLY a JSON object: {{"score": integer 0-100, "reason": one friendly sentence}}.

Student bio: {user_bio}
Household: {listing_bio}
"""


class _GeminiCapability:
    def __init__(
        self,
        api_key: str,
        *,
        base_url: str,
        model: str,
        timeout_seconds: int = 30,
        session: requests.Session | None = None,
    ):
        self.api_key = api_key
        self.base_url = base_url
        self.model = model
        self.timeout_seconds = timeout_seconds
        self.session = session

    def _ask(self, prompt: str) -> dict:
        try:
            return generate_json(
                self.api_key,
                self.base_url,
                self.model,
                prompt,
                timeout_seconds=self.timeout_seconds,
                session=self.session,
            )
        except GeminiError as exc:
            logger.warning("Gemini request failed: %s", exc)
            raise UpstreamError() from exc


class GeminiSearchParser(_GeminiCapability, SmartSearchParser):
    def parse(self, query: str) -> SearchIntent:
        data = self._ask(SEARCH_PROMPT.format(query=query))

        keywords = data.get("keywords") or []
        if not isinstance(keywords, list):
            keywords = []
        max_price = data.get("maxPrice")
        try:
            max_price = int(max_price) if max_price is not None else None
        except (TypeError, ValueError):
            max_price = None
        try:
            listing_type = ListingType(data["listingType"]) if data.get("listingType") else None
        except ValueError:
            listing_type = None

        return SearchIntent(
            keywords=[str(k) for k in keywords if k],
            max_price=max_price,
            listing_type=listing_type,
            location=data.get("location") or None,
        )


class GeminiCompatibilityScorer(_GeminiCapability, CompatibilityScorer):
    def score(self, user_bio: str, listing_bio: str) -> CompatibilityResult:
        data = self._ask(
            COMPATIBILITY_PROMPT.format(user_bio=user_bio, listing_bio=listing_bio)
        )
        try:
            score = int(data.get("score"))
        except (TypeError, ValueError) as exc:
            raise UpstreamError() from exc
        reason = str(data.get("reason") or "").strip() or POSITIVE_REASONS[0]
        return CompatibilityResult(score=max(0, min(100, score)), reason=reason)


def build_matchers(config: Mapping) -> tuple[SmartSearchParser, CompatibilityScorer]:
    """Return the (parser, scorer) pair for the configured provider."""

    provider = (config.get("AI_PROVIDER") or "local").strip().lower()
    if provider not in AI_PROVIDERS:
        raise ValueError(
            "AI_PROVIDER must be one of: {}.".format(", ".join(AI_PROVIDERS))
        )
    if provider == "local":
        return RuleBasedSearchParser(), RandomCompatibilityScorer()

    api_key = config.get("GEMINI_API_KEY")
    if not api_key:
        raise ValueError("GEMINI_API_KEY is required when AI_PROVIDER is 'gemini'.")
    options = {
        "base_url": config.get("GEMINI_BASE_URL"),
        "model": config.get("GEMINI_MODEL"),
        "timeout_seconds": int(config.get("GEMINI_TIMEOUT", 30)),
    }
    return GeminiSearchParser(api_key, **options), GeminiCompatibilityScorer(api_key, **options)
