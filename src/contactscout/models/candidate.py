"""
Candidate, contact and target data models.

A Candidate is one raw person record as returned by a people-search call. It is
frozen: scoring reads it, nothing rewrites it. A Contact is the only thing an
acquisition run hands back, and it can only be built from a Candidate that
carries a real (unlocked) email address.

Pool entries are a small sum type:
  PendingCandidate   found, not yet scored
  ScoredCandidate    scored once; never rescored
"""
from __future__ import annotations

from typing import Optional, Union

from pydantic import BaseModel, ConfigDict

# Apollo returns this address in place of an email it has not unlocked yet.
LOCKED_EMAIL_SENTINEL = "email_not_unlocked@domain.com"

EMAIL_STATUS_VERIFIED = "verified"
EMAIL_STATUS_GUESSED = "guessed"
EMAIL_STATUS_LIKELY = "likely"
EMAIL_STATUS_UNAVAILABLE = "unavailable"


def is_usable_email(email: Optional[str]) -> bool:
    """True if `email` is present, non-blank and not the locked placeholder."""
    if not email or not email.strip():
        return False
    return email.strip().lower() != LOCKED_EMAIL_SENTINEL


class Candidate(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: Optional[str] = None
    name: Optional[str] = None
    title: Optional[str] = None
    organization_name: Optional[str] = None
    organization_employee_count: Optional[int] = None   # None = unknown, 0 = explicit zero
    email: Optional[str] = None
    email_status: Optional[str] = None
    seniority: Optional[str] = None
    linkedin_url: Optional[str] = None

    @property
    def has_usable_email(self) -> bool:
        return is_usable_email(self.email)

    def label(self) -> str:
        """Short human-readable description used in progress messages."""
        return f"{self.name or '<no name>'} ({self.title or 'no title'} @ {self.organization_name or 'unknown org'})"


class PendingCandidate(BaseModel):
    model_config = ConfigDict(frozen=True)

    candidate: Candidate


class ScoredCandidate(BaseModel):
    model_config = ConfigDict(frozen=True)

    candidate: Candidate
    score: int


PoolEntry = Union[PendingCandidate, ScoredCandidate]


class Contact(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: Optional[str] = None
    name: Optional[str] = None
    title: Optional[str] = None
    email: str
    email_status: Optional[str] = None
    organization_name: Optional[str] = None
    seniority: Optional[str] = None
    linkedin_url: Optional[str] = None

    @classmethod
    def from_candidate(cls, candidate: Candidate) -> "Contact":
        if not candidate.has_usable_email:
            raise ValueError(
                f"Cannot build a Contact from {candidate.label()}: no usable email"
            )
        return cls(
            id=candidate.id,
            name=candidate.name,
            title=candidate.title,
            email=candidate.email.strip(),
            email_status=candidate.email_status,
            organization_name=candidate.organization_name,
            seniority=candidate.seniority,
            linkedin_url=candidate.linkedin_url,
        )


class Organization(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: Optional[str] = None
    name: str
    primary_domain: Optional[str] = None
    estimated_num_employees: Optional[int] = None


class TargetSpec(BaseModel):
    """
    What one acquisition run is looking for.

    `company_domain` may be None at construction time; the controller refuses
    to search without it. `likely_titles` is filled in during intelligence
    gathering (or from the fallback list).
    """
    model_config = ConfigDict(frozen=True)

    person_name: Optional[str] = None
    company_name: str
    company_domain: Optional[str] = None
    likely_titles: tuple[str, ...] = ()
