from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import List, Optional, Tuple

from .config_loader import DedupeConfig
from .models import DuplicateMatch, RecipientForDuplicateCheck
from .normalization import (
    normalize_address,
    normalize_city,
    normalize_name,
    normalize_state,
    normalize_zip,
    split_unit,
)
from .similarity import similarity

logger = logging.getLogger(__name__)

# signal strength, ordered
NONE = 0
SIMILAR = 1
SAME_BASE = 2
IDENTICAL = 3

NAME_WEIGHTS = {IDENTICAL: 40, SIMILAR: 25}
ADDRESS_WEIGHTS = {IDENTICAL: 35, SAME_BASE: 30, SIMILAR: 20}
ZIP_WEIGHT = 15
CITY_STATE_WEIGHT = 10

NAME_REASONS = {
    IDENTICAL: "Identical names",
    SIMILAR: "Very similar names",
}
ADDRESS_REASONS = {
    IDENTICAL: "Identical addresses",
    SAME_BASE: "Same street address (different unit)",
    SIMILAR: "Very similar addresses",
}
ZIP_REASON = "Same ZIP code"
CITY_STATE_REASON = "Same city and state"


@dataclass(frozen=True)
class MatchSettings:
    name_similar_threshold: float = 0.85
    address_similar_threshold: float = 0.80
    min_confidence: int = 40
    exact_confidence: int = 80

    @classmethod
    def from_config(cls, config: DedupeConfig) -> "MatchSettings":
        return cls(
            name_similar_threshold=config.name_similar_threshold,
            address_similar_threshold=config.address_similar_threshold,
            min_confidence=config.min_confidence,
            exact_confidence=config.exact_confidence,
        )


@dataclass
class MatchSignals:
    name_level: int = NONE
    address_level: int = NONE
    zip_match: bool = False
    city_state_match: bool = False
    name_similarity: float = 0.0
    address_similarity: float = 0.0
    reasons: List[str] = field(default_factory=list)

    @property
    def confidence(self) -> int:
        score = (
            NAME_WEIGHTS.get(self.name_level, 0)
            + ADDRESS_WEIGHTS.get(self.address_level, 0)
            + (ZIP_WEIGHT if self.zip_match else 0)
            + (CITY_STATE_WEIGHT if self.city_state_match else 0)
        )
        return min(score, 100)

    @property
    def has_geography(self) -> bool:
        return self.zip_match or self.city_state_match


def _full_address(recipient: RecipientForDuplicateCheck) -> str:
    parts = [recipient.address1 or "", recipient.address2 or ""]
    return normalize_address(" ".join(part for part in parts if part.strip()))


class DuplicateMatcher:
    def __init__(self, settings: Optional[MatchSettings] = None):
        self.settings = settings or MatchSettings()

    def name_signal(self, a: RecipientForDuplicateCheck, b: RecipientForDuplicateCheck):
        name_a = normalize_name(a.name)
        name_b = normalize_name(b.name)
        if not name_a or not name_b:
            return NONE, 0.0
        if name_a == name_b:
            return IDENTICAL, 1.0
        score = similarity(name_a, name_b)
        if score >= self.settings.name_similar_threshold:
            return SIMILAR, score
        return NONE, score

    def _compare_addresses(self, addr_a: str, addr_b: str) -> Tuple[int, float]:
        if not addr_a or not addr_b:
            return NONE, 0.0
        if addr_a == addr_b:
            return IDENTICAL, 1.0
        base_a, _ = split_unit(addr_a)
        base_b, _ = split_unit(addr_b)
        if base_a and base_a == base_b:
            return SAME_BASE, similarity(addr_a, addr_b)
        score = max(similarity(addr_a, addr_b), similarity(base_a, base_b))
        if score >= self.settings.address_similar_threshold:
            return SIMILAR, score
        return NONE, score

    def address_signal(self, a: RecipientForDuplicateCheck, b: RecipientForDuplicateCheck):
        signal = self._compare_addresses(_full_address(a), _full_address(b))
        line2_a = normalize_address(a.address2)
        line2_b = normalize_address(b.address2)
        if line2_a == line2_b:
            return signal
        # a differing second line must not hide a shared street
        street = self._compare_addresses(
            normalize_address(a.address1), normalize_address(b.address1)
        )
        if street[0] == IDENTICAL and line2_a and line2_b:
            street = (SAME_BASE, street[1])
        return max(signal, street)

    def compute(self, a: RecipientForDuplicateCheck, b: RecipientForDuplicateCheck) -> MatchSignals:
        signals = MatchSignals()

        signals.name_level, signals.name_similarity = self.name_signal(a, b)
        if signals.name_level:
            signals.reasons.append(NAME_REASONS[signals.name_level])

        signals.address_level, signals.address_similarity = self.address_signal(a, b)
        if signals.address_level:
            signals.reasons.append(ADDRESS_REASONS[signals.address_level])

        zip_a = normalize_zip(a.zip)
        if zip_a and zip_a == normalize_zip(b.zip):
            signals.zip_match = True
            signals.reasons.append(ZIP_REASON)

        city_a = normalize_city(a.city)
        state_a = normalize_state(a.state)
        if (
            city_a
            and state_a
            and city_a == normalize_city(b.city)
            and state_a == normalize_state(b.state)
        ):
            signals.city_state_match = True
            signals.reasons.append(CITY_STATE_REASON)

        return signals

    def classify(self, signals: MatchSignals) -> Optional[str]:
        confidence = signals.confidence
        if confidence < self.settings.min_confidence or not signals.reasons:
            return None
        if (
            signals.name_level == IDENTICAL
            and confidence > self.settings.exact_confidence
            and (
                signals.address_level == IDENTICAL
                or (signals.zip_match and signals.address_level >= SIMILAR)
            )
        ):
            return "exact"
        if signals.name_level and signals.address_level and signals.has_geography:
            return "likely"
        return "possible"

    def check(
        self, r1: RecipientForDuplicateCheck, r2: RecipientForDuplicateCheck
    ) -> Optional[DuplicateMatch]:
        if r1.id == r2.id:
            return None
        signals = self.compute(r1, r2)
        match_type = self.classify(signals)
        if match_type is None:
            return None
        logger.debug(
            "match %s~%s: %s (%d) %s",
            r1.id,
            r2.id,
            match_type,
            signals.confidence,
            ", ".join(signals.reasons),
        )
        return DuplicateMatch(
            recipient1=r1,
            recipient2=r2,
            match_type=match_type,
            confidence=signals.confidence,
            match_reasons=list(signals.reasons),
        )


_DEFAULT_MATCHER = DuplicateMatcher()


def check_duplicate(
    r1: RecipientForDuplicateCheck,
    r2: RecipientForDuplicateCheck,
    settings: Optional[MatchSettings] = None,
) -> Optional[DuplicateMatch]:
    matcher = DuplicateMatcher(settings) if settings else _DEFAULT_MATCHER
    return matcher.check(r1, r2)
