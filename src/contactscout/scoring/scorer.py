"""
Candidate scoring for target acquisition.

A score is a signed integer built from five signals:

  exact name match      strongest single signal (person-centric hit)
  company match         exact name, or substring in either direction
  title match           precise TitleMatcher against the likely titles
  email quality         verified > guessed/likely > anything else
  spam penalty          indicators x per-indicator penalty, subtracted

The weights live in an immutable ScoringWeights value handed to the scorer at
construction. Its validator enforces the ordering the controller relies on:
one spam indicator outweighs every positive bonus combined, and an exact name
match outranks any candidate without one.
"""
from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, ConfigDict, model_validator

from contactscout.matching.title_matcher import TitleMatcher
from contactscout.models.candidate import (
    EMAIL_STATUS_GUESSED,
    EMAIL_STATUS_LIKELY,
    EMAIL_STATUS_VERIFIED,
    Candidate,
    PoolEntry,
    ScoredCandidate,
    TargetSpec,
)
from contactscout.scoring.spam import count_spam_indicators


class ScoringWeights(BaseModel):
    model_config = ConfigDict(frozen=True)

    exact_name_match: int = 500
    company_exact_match: int = 250
    company_partial_match: int = 150
    title_match: int = 100
    email_verified: int = 40
    email_guessed: int = 20
    spam_penalty_per_indicator: int = 1000

    @model_validator(mode="after")
    def _check_ordering(self) -> "ScoringWeights":
        if self.spam_penalty_per_indicator <= self.max_positive_total:
            raise ValueError(
                "spam_penalty_per_indicator must exceed the sum of all positive bonuses "
                f"({self.spam_penalty_per_indicator} <= {self.max_positive_total})"
            )
        others = self.company_exact_match + self.title_match + self.email_verified
        if self.exact_name_match <= others:
            raise ValueError(
                "exact_name_match must exceed company + title + email bonuses combined "
                f"({self.exact_name_match} <= {others})"
            )
        if self.company_exact_match <= self.company_partial_match:
            raise ValueError("company_exact_match must exceed company_partial_match")
        if self.email_verified <= self.email_guessed:
            raise ValueError("email_verified must exceed email_guessed")
        if self.title_match + self.email_verified >= self.company_partial_match:
            # name + title + email must stay below the high-confidence bar
            raise ValueError("company_partial_match must exceed title_match + email_verified")
        if min(self.company_partial_match, self.email_guessed) < 0:
            raise ValueError("bonuses must not be negative")
        return self

    @property
    def max_positive_total(self) -> int:
        return self.exact_name_match + self.company_exact_match + self.title_match + self.email_verified

    @property
    def high_confidence_threshold(self) -> int:
        """Exact name plus at least a partial company match."""
        return self.exact_name_match + self.company_partial_match


class CandidateScorer:
    """Pure scoring of candidates against a TargetSpec."""

    def __init__(self, weights: Optional[ScoringWeights] = None) -> None:
        self.weights = weights or ScoringWeights()
        self._matchers: dict[tuple[str, ...], TitleMatcher] = {}

    @property
    def high_confidence_threshold(self) -> int:
        return self.weights.high_confidence_threshold

    def score(self, candidate: Candidate, target: TargetSpec) -> int:
        w = self.weights
        total = 0

        total += self._name_score(candidate, target.person_name)
        total += self._company_score(candidate, target.company_name)
        if self._matcher_for(target.likely_titles).matches(candidate.title):
            total += w.title_match
        total += self._email_score(candidate.email_status)
        total -= count_spam_indicators(candidate) * w.spam_penalty_per_indicator

        return total

    def score_entry(self, entry: PoolEntry, target: TargetSpec) -> ScoredCandidate:
        """Score a pending entry; an already-scored entry is returned as-is."""
        if isinstance(entry, ScoredCandidate):
            return entry
        return ScoredCandidate(candidate=entry.candidate, score=self.score(entry.candidate, target))

    # ------------------------------------------------------------------
    # Signals
    # ------------------------------------------------------------------

    def _name_score(self, candidate: Candidate, person_name: Optional[str]) -> int:
        if not person_name or not person_name.strip() or not candidate.name:
            return 0
        if candidate.name.strip().lower() == person_name.strip().lower():
            return self.weights.exact_name_match
        return 0

    def _company_score(self, candidate: Candidate, company_name: str) -> int:
        org = (candidate.organization_name or "").strip().lower()
        target = (company_name or "").strip().lower()
        if not org or not target:
            return 0
        if org == target:
            return self.weights.company_exact_match
        if target in org or org in target:
            return self.weights.company_partial_match
        return 0

    def _email_score(self, status: Optional[str]) -> int:
        status = (status or "").strip().lower()
        if status == EMAIL_STATUS_VERIFIED:
            return self.weights.email_verified
        if status in (EMAIL_STATUS_GUESSED, EMAIL_STATUS_LIKELY):
            return self.weights.email_guessed
        return 0

    def _matcher_for(self, titles: tuple[str, ...]) -> TitleMatcher:
        key = tuple(titles)
        matcher = self._matchers.get(key)
        if matcher is None:
            matcher = TitleMatcher.from_titles(key)
            self._matchers[key] = matcher
        return matcher
