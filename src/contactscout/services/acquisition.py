"""
Target acquisition; find one reachable decision-maker's email at a company.

Phases (one run, strictly sequential):

  0. Precondition           no verified company domain -> abort, return None
  1. Intelligence           ask for likely job titles; fall back to a fixed list
  2. Person-centric         keyword search on the person's name (no company
                            filter), seniority-restricted, paged until empty
  3. High-confidence gate   best person-centric score >= threshold -> skip 4
  4. Role-centric           search by company domain + likely titles
  5. Scoring                score the pool, stable sort, highest first
  6. Enrichment             walk the pool; a record that already carries an
                            email costs nothing; otherwise enrich one candidate
                            at a time and stop at the first usable email

Enrichment is billed per call, so nothing here runs concurrently: scoring
decides the order and each call is awaited before the next one is considered.

Page-fetch and enrichment failures never abort a run; they count as an empty
page or an unusable candidate. Running out of candidates is a normal outcome
(None), not an error.
"""
from __future__ import annotations

import logging
from typing import Optional, Protocol, Sequence

import httpx
from pydantic import BaseModel, ConfigDict

from contactscout.agents.title_intelligence import GroqTitleIntelligence, TitleIntelligence
from contactscout.config import Settings, get_settings
from contactscout.models.candidate import (
    Candidate,
    Contact,
    PendingCandidate,
    PoolEntry,
    ScoredCandidate,
    TargetSpec,
)
from contactscout.models.progress import (
    AcquisitionPhase,
    ProgressCallback,
    ProgressEvent,
    ProgressLevel,
)
from contactscout.scoring.scorer import CandidateScorer
from contactscout.services.people_search import PeopleSearchClient, PeopleSearchError

logger = logging.getLogger(__name__)

FALLBACK_TITLES: tuple[str, ...] = (
    "CEO",
    "CTO",
    "VP of Engineering",
    "Engineering Manager",
    "Head of Engineering",
)

DEFAULT_SENIORITIES: tuple[str, ...] = (
    "owner", "founder", "c_suite", "partner", "vp", "head", "director",
)

_LOG_LEVELS = {
    "info": logging.INFO,
    "success": logging.INFO,
    "warning": logging.WARNING,
    "error": logging.ERROR,
}

# Failures that count as "this step contributed nothing"
_STEP_ERRORS = (PeopleSearchError, httpx.HTTPError)


class PeopleSearch(Protocol):
    """The subset of PeopleSearchClient the controller depends on."""

    async def search_people_by_keyword(
        self, keyword: str, seniorities: Sequence[str], page: int = 1
    ) -> list[Candidate]: ...

    async def search_people_by_organization(
        self, domain: str, titles: Sequence[str], seniorities: Sequence[str], page: int = 1
    ) -> list[Candidate]: ...

    async def enrich_person(self, person_id: str) -> Optional[Candidate]: ...


class AcquisitionConfig(BaseModel):
    """Tunable cost/recall constants for one controller."""
    model_config = ConfigDict(frozen=True)

    seniorities: tuple[str, ...] = DEFAULT_SENIORITIES
    person_search_max_pages: int = 1
    role_search_max_pages: int = 1
    fallback_titles: tuple[str, ...] = FALLBACK_TITLES
    max_enrichment_calls: Optional[int] = None   # None = walk the whole pool

    @classmethod
    def from_settings(cls, settings: Optional[Settings] = None) -> "AcquisitionConfig":
        s = settings or get_settings()
        return cls(
            seniorities=tuple(s.acquisition_seniorities),
            person_search_max_pages=s.acquisition_person_search_max_pages,
            role_search_max_pages=s.acquisition_role_search_max_pages,
            max_enrichment_calls=s.acquisition_max_enrichment_calls,
        )


class AcquisitionController:
    """
    Runs the multi-phase search -> score -> enrich strategy for one target.

    Collaborators are injected: a people-search client, an optional title
    intelligence source (None -> always use the fallback titles), a scorer and
    an optional progress observer.
    """

    def __init__(
        self,
        client: PeopleSearch,
        *,
        intelligence: Optional[TitleIntelligence] = None,
        scorer: Optional[CandidateScorer] = None,
        config: Optional[AcquisitionConfig] = None,
        on_progress: Optional[ProgressCallback] = None,
    ) -> None:
        self.client = client
        self.intelligence = intelligence
        self.scorer = scorer or CandidateScorer()
        self.config = config or AcquisitionConfig()
        self.on_progress = on_progress
        self.phase = AcquisitionPhase.IDLE

    async def run(self, target: TargetSpec) -> Optional[Contact]:
        domain = (target.company_domain or "").strip()
        if not domain:
            self._enter(AcquisitionPhase.PRECONDITION_FAILED)
            self._emit(
                "error",
                f"ABORT: no verified company domain for '{target.company_name}'. "
                "Target acquisition requires a domain; refusing to guess one.",
            )
            self._enter(AcquisitionPhase.DONE)
            return None

        person_name = (target.person_name or "").strip() or None
        target = target.model_copy(update={"company_domain": domain, "person_name": person_name})

        self._enter(AcquisitionPhase.INTELLIGENCE_GATHERING)
        titles = await self._gather_titles(target)
        target = target.model_copy(update={"likely_titles": tuple(titles)})

        pool: list[PoolEntry] = []
        high_confidence = False

        if person_name:
            self._enter(AcquisitionPhase.PERSON_CENTRIC_SEARCH)
            person_hits = await self._person_centric_search(person_name)
            scored = [self.scorer.score_entry(PendingCandidate(candidate=c), target) for c in person_hits]
            pool.extend(scored)
            if scored:
                best = max(scored, key=lambda s: s.score)
                if best.score >= self.scorer.high_confidence_threshold:
                    high_confidence = True
                    self._enter(AcquisitionPhase.HIGH_CONFIDENCE_FOUND)
                    self._emit(
                        "success",
                        f"High-confidence match: {best.candidate.label()} scored {best.score} "
                        f"(threshold {self.scorer.high_confidence_threshold}); skipping role-centric search",
                    )
                else:
                    self._emit(
                        "info",
                        f"Best person-centric score {best.score} is below threshold "
                        f"{self.scorer.high_confidence_threshold}",
                    )
        else:
            self._emit("info", "No target person supplied; skipping person-centric search")

        if not high_confidence:
            self._enter(AcquisitionPhase.ROLE_CENTRIC_SEARCH)
            role_hits = await self._role_centric_search(domain, target.likely_titles)
            pool.extend(PendingCandidate(candidate=c) for c in role_hits)

        self._enter(AcquisitionPhase.SCORING)
        ranked = self._rank(pool, target)
        if not ranked:
            self._emit("warning", "No candidates found in any search phase")
            self._enter(AcquisitionPhase.DONE)
            return None
        self._emit("info", f"Ranked {len(ranked)} candidate(s); top score {ranked[0].score}")

        self._enter(AcquisitionPhase.ITERATIVE_ENRICHMENT)
        contact = await self._enrich_in_order(ranked)

        self._enter(AcquisitionPhase.DONE)
        return contact

    # ------------------------------------------------------------------
    # Phases
    # ------------------------------------------------------------------

    async def _gather_titles(self, target: TargetSpec) -> list[str]:
        fallback = list(self.config.fallback_titles)
        if self.intelligence is None:
            self._emit("warning", f"No intelligence source configured; using fallback titles: {', '.join(fallback)}")
            return fallback
        try:
            titles = await self.intelligence.get_likely_titles(target.person_name, target.company_name)
        except Exception as e:  # any collaborator failure -> fallback list
            logger.debug("Intelligence source failed", exc_info=True)
            self._emit("warning", f"Intelligence gathering failed ({e}); using fallback titles")
            return fallback

        titles = [t.strip() for t in titles or [] if t and t.strip()]
        if not titles:
            self._emit("warning", "Intelligence source returned no titles; using fallback titles")
            return fallback
        self._emit("success", f"Likely titles: {', '.join(titles)}")
        return titles

    async def _person_centric_search(self, person_name: str) -> list[Candidate]:
        found: list[Candidate] = []
        for page in range(1, self.config.person_search_max_pages + 1):
            self._emit("info", f"Person-centric search for '{person_name}', page {page}")
            try:
                batch = await self.client.search_people_by_keyword(person_name, self.config.seniorities, page)
            except _STEP_ERRORS as e:
                self._emit("warning", f"Person-centric page {page} failed: {e}")
                batch = []
            if not batch:
                self._emit("info", f"Page {page} returned no results; stopping person-centric search")
                break
            self._emit("info", f"Page {page}: {len(batch)} candidate(s)")
            found.extend(batch)
        return found

    async def _role_centric_search(self, domain: str, titles: Sequence[str]) -> list[Candidate]:
        found: list[Candidate] = []
        for page in range(1, self.config.role_search_max_pages + 1):
            self._emit("info", f"Role-centric search at {domain} for {len(titles)} title(s), page {page}")
            try:
                batch = await self.client.search_people_by_organization(
                    domain, list(titles), self.config.seniorities, page
                )
            except _STEP_ERRORS as e:
                self._emit("warning", f"Role-centric page {page} failed: {e}")
                batch = []
            if not batch:
                self._emit("info", f"Page {page} returned no results; stopping role-centric search")
                break
            self._emit("info", f"Page {page}: {len(batch)} candidate(s)")
            found.extend(batch)
        return found

    def _rank(self, pool: list[PoolEntry], target: TargetSpec) -> list[ScoredCandidate]:
        """Dedupe by id (first seen wins), score pending entries, stable-sort by score."""
        seen_ids: set[str] = set()
        scored: list[ScoredCandidate] = []
        for entry in pool:
            cid = entry.candidate.id
            if cid is not None:
                if cid in seen_ids:
                    continue
                seen_ids.add(cid)
            scored.append(self.scorer.score_entry(entry, target))
        return sorted(scored, key=lambda s: s.score, reverse=True)

    async def _enrich_in_order(self, ranked: list[ScoredCandidate]) -> Optional[Contact]:
        calls = 0
        limit = self.config.max_enrichment_calls
        budget_spent = False

        for position, entry in enumerate(ranked, start=1):
            candidate = entry.candidate

            if candidate.has_usable_email:
                self._emit(
                    "success",
                    f"#{position} {candidate.label()} already carries an email; no enrichment needed",
                )
                return Contact.from_candidate(candidate)

            if not candidate.id:
                self._emit("warning", f"#{position} {candidate.label()} has no id; cannot enrich, skipping")
                continue

            # Past the budget only candidates that already carry an email can still win
            if limit is not None and calls >= limit:
                if not budget_spent:
                    budget_spent = True
                    self._emit(
                        "warning",
                        f"Enrichment budget of {limit} call(s) spent; only checking candidates that carry an email",
                    )
                continue

            self._emit("info", f"Enriching #{position} {candidate.label()} (score {entry.score})")
            calls += 1
            try:
                enriched = await self.client.enrich_person(candidate.id)
            except _STEP_ERRORS as e:
                self._emit("warning", f"Enrichment failed for {candidate.label()}: {e}")
                continue

            if enriched is not None and enriched.has_usable_email:
                contact = Contact.from_candidate(_merge(candidate, enriched))
                self._emit("success", f"Target acquired: {contact.name} <{contact.email}> after {calls} enrichment call(s)")
                return contact

            self._emit("info", f"No usable email for {candidate.label()}; trying next candidate")

        self._emit("warning", f"Candidate pool exhausted after {calls} enrichment call(s); no contact found")
        return None

    # ------------------------------------------------------------------
    # Progress
    # ------------------------------------------------------------------

    def _enter(self, phase: AcquisitionPhase) -> None:
        self.phase = phase
        logger.debug("Acquisition phase -> %s", phase.value)

    def _emit(self, level: ProgressLevel, message: str) -> None:
        logger.log(_LOG_LEVELS[level], "[%s] %s", self.phase.value, message)
        if self.on_progress is not None:
            self.on_progress(ProgressEvent(phase=self.phase, level=level, message=message))


def _merge(original: Candidate, enriched: Candidate) -> Candidate:
    """Enriched values win; fields the enrichment left blank keep the search result's."""
    merged = {
        field: getattr(enriched, field) if getattr(enriched, field) is not None else getattr(original, field)
        for field in Candidate.model_fields
    }
    return Candidate(**merged)


async def find_contact(
    person_name: Optional[str],
    company_name: str,
    company_domain: Optional[str],
    on_progress: Optional[ProgressCallback] = None,
    *,
    settings: Optional[Settings] = None,
) -> Optional[Contact]:
    """
    Run one target acquisition with collaborators built from settings.

    Returns the Contact found, or None (no domain, or no usable email found).
    A missing domain returns None before any HTTP or AI call is made.
    """
    target = TargetSpec(person_name=person_name, company_name=company_name, company_domain=company_domain)
    s = settings or get_settings()
    intelligence = GroqTitleIntelligence.from_settings(s) if s.groq_api_key else None
    async with PeopleSearchClient.from_settings(s) as client:
        controller = AcquisitionController(
            client,
            intelligence=intelligence,
            config=AcquisitionConfig.from_settings(s),
            on_progress=on_progress,
        )
        return await controller.run(target)

