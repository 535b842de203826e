"""
Confidence scoring of candidate source -> target mappings.

For every legacy or uncategorized resource in a pool, each modern resource is
scored from four weighted signals:

- resource type equality (dominant)
- tag key/value overlap ratio
- name similarity (case-insensitive containment, token overlap or edit ratio)
- region equality (minor)

Scoring is pure: it reads the pool and returns suggestions, nothing is stored.
"""

import re
from dataclasses import dataclass, field
from difflib import SequenceMatcher
from typing import Any, Iterable

from migration_mapper.models import Category, Resource
from migration_mapper.util.config import ScoringSettings

REASON_TYPE = "Similar resource type and configuration"
REASON_TAGS = "Matching tags and metadata"
REASON_NAME = "Same naming pattern"
REASON_REGION = "Geographic proximity"

# Signal strength at which a reason is reported
TAG_REASON_THRESHOLD = 0.5
NAME_REASON_THRESHOLD = 0.6

# Shortest name that may count as contained in another
MIN_CONTAINED_NAME = 3

_TOKEN_SPLIT = re.compile(r"[^a-z0-9]+")


@dataclass(frozen=True)
class Suggestion:
    """A proposed source -> target match."""

    source_id: str
    target_id: str
    confidence: int
    reasons: list[str] = field(default_factory=list)

    @property
    def band(self) -> str:
        return confidence_band(self.confidence)

    def to_dict(self) -> dict[str, Any]:
        return {
            "source_id": self.source_id,
            "target_id": self.target_id,
            "confidence": self.confidence,
            "band": self.band,
            "reasons": list(self.reasons),
        }


def confidence_band(confidence: int) -> str:
    """Bucket a confidence score into high (>= 80), medium (>= 60) or low."""
    if confidence >= 80:
        return "high"
    if confidence >= 60:
        return "medium"
    return "low"


def _tokens(name: str) -> set[str]:
    return {token for token in _TOKEN_SPLIT.split(name.lower()) if token}


def name_similarity(a: str | None, b: str | None) -> float:
    """
    Return a 0..1 similarity between two resource names.

    Containment of one name in the other scores 1.0; otherwise the best of
    token Jaccard overlap and difflib's edit ratio is used.
    """
    if not a or not b:
        return 0.0
    a, b = a.lower(), b.lower()
    if a == b:
        return 1.0

    shorter, longer = sorted((a, b), key=len)
    if len(shorter) >= MIN_CONTAINED_NAME and shorter in longer:
        return 1.0

    tokens_a, tokens_b = _tokens(a), _tokens(b)
    jaccard = 0.0
    if tokens_a and tokens_b:
        jaccard = len(tokens_a & tokens_b) / len(tokens_a | tokens_b)

    return max(jaccard, SequenceMatcher(None, a, b).ratio())


def tag_overlap(a: dict[str, str], b: dict[str, str]) -> float:
    """
    Return a 0..1 overlap ratio between two tag sets.

    A shared key with an equal value counts 1, a shared key with a different
    value counts 0.5; the total is divided by the number of distinct keys.
    """
    keys = set(a) | set(b)
    if not keys:
        return 0.0
    shared = set(a) & set(b)
    score = sum(1.0 if a[k] == b[k] else 0.5 for k in shared)
    return score / len(keys)


def score_pair(
    source: Resource, target: Resource, settings: ScoringSettings | None = None
) -> tuple[int, list[str]]:
    """
    Score one source/target pair.

    Returns:
        (confidence clamped to 0..100, reasons that fired)
    """
    weights = (settings or ScoringSettings()).weights
    reasons = []

    type_signal = 1.0 if source.resource_type == target.resource_type else 0.0
    tags_signal = tag_overlap(source.tags, target.tags)
    name_signal = name_similarity(source.name, target.name)
    region_signal = 1.0 if source.region.lower() == target.region.lower() else 0.0

    if type_signal:
        reasons.append(REASON_TYPE)
    if tags_signal >= TAG_REASON_THRESHOLD:
        reasons.append(REASON_TAGS)
    if name_signal >= NAME_REASON_THRESHOLD:
        reasons.append(REASON_NAME)
    if region_signal:
        reasons.append(REASON_REGION)

    raw = (
        weights["resource_type"] * type_signal
        + weights["tags"] * tags_signal
        + weights["name"] * name_signal
        + weights["region"] * region_signal
    )
    return max(0, min(100, round(raw))), reasons


def suggest(
    pool: Iterable[Resource],
    settings: ScoringSettings | None = None,
    per_source_limit: int | None = None,
) -> list[Suggestion]:
    """
    Propose target matches for every legacy or uncategorized resource in ``pool``.

    Args:
        pool: Candidate resources (any mix of categories)
        settings: Weights and minimum confidence (defaults when None)
        per_source_limit: Keep at most this many suggestions per source

    Returns:
        Suggestions above ``min_confidence``, by descending confidence, then
        ascending target id, then ascending source id
    """
    settings = settings or ScoringSettings()
    pool = list(pool)
    sources = [r for r in pool if r.category in (Category.OLD, Category.UNCATEGORIZED)]
    targets = [r for r in pool if r.category is Category.NEW]

    suggestions = []
    for source in sources:
        scored = []
        for target in targets:
            if target.resource_id == source.resource_id:
                continue
            confidence, reasons = score_pair(source, target, settings)
            if confidence > settings.min_confidence:
                scored.append(Suggestion(source.resource_id, target.resource_id, confidence, reasons))

        if per_source_limit is not None:
            scored.sort(key=_suggestion_order)
            scored = scored[:per_source_limit]
        suggestions.extend(scored)

    suggestions.sort(key=_suggestion_order)
    return suggestions


def _suggestion_order(suggestion: Suggestion) -> tuple[int, str, str]:
    return (-suggestion.confidence, suggestion.target_id, suggestion.source_id)
