"""
Apollo.io people-search client.

Thin request/response mapping over four Apollo endpoints:

  POST /mixed_companies/search     company search by name
  POST /mixed_people/search        person search (keyword, or domain + titles)
  GET  /people/match               person lookup by id
  POST /people/enrich              person enrichment by id (billed per call)

Every call carries a fixed timeout. Timeouts, transport errors and non-200
responses are raised internally as PeopleSearchError and surfaced to callers
as "zero results" (an empty list or None). Nothing is retried in this layer;
an enrichment retry is a second bill.
"""
from __future__ import annotations

import logging
from typing import Any, Optional, Sequence

import httpx
from pydantic import ValidationError

from contactscout.config import Settings, get_settings
from contactscout.models.candidate import Candidate, Organization

logger = logging.getLogger(__name__)

_COMPANY_SEARCH_PATH = "/mixed_companies/search"
_PEOPLE_SEARCH_PATH = "/mixed_people/search"
_PERSON_MATCH_PATH = "/people/match"
_PERSON_ENRICH_PATH = "/people/enrich"


class PeopleSearchError(Exception):
    """Raised when a people-search request fails, times out or is rejected."""


class PeopleSearchClient:
    """
    Async Apollo.io client.

    Use as an async context manager so the underlying httpx.AsyncClient is
    closed. An already-configured `http_client` may be injected (tests, shared
    connection pools); the caller then owns its lifetime.
    """

    def __init__(
        self,
        api_key: Optional[str],
        *,
        base_url: str = "https://api.apollo.io/v1",
        timeout: float = 30.0,
        per_page: int = 10,
        http_client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        self.api_key = api_key
        self.per_page = per_page
        self._owns_client = http_client is None
        self._client = http_client or httpx.AsyncClient(
            base_url=base_url,
            timeout=timeout,
            headers={
                "Content-Type": "application/json",
                "Cache-Control": "no-cache",
                "X-Api-Key": api_key or "",
            },
        )

    @classmethod
    def from_settings(cls, settings: Optional[Settings] = None) -> "PeopleSearchClient":
        s = settings or get_settings()
        return cls(
            s.apollo_api_key,
            base_url=s.apollo_base_url,
            timeout=s.http_timeout_seconds,
            per_page=s.acquisition_per_page,
        )

    async def __aenter__(self) -> "PeopleSearchClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    def is_enabled(self) -> bool:
        return bool(self.api_key)

    # ------------------------------------------------------------------
    # Company search
    # ------------------------------------------------------------------

    async def search_company(self, name: str) -> Optional[Organization]:
        """
        Find the organization best matching `name`.

        Selection, in priority order:
          1. exact case-insensitive name match
          2. largest headcount among names containing `name`
          3. largest headcount among all results
        """
        try:
            data = await self._post(_COMPANY_SEARCH_PATH, {"q_organization_name": name})
        except PeopleSearchError as e:
            logger.warning("Company search for %r failed: %s", name, e)
            return None

        orgs = [_parse_organization(o) for o in data.get("organizations") or []]
        orgs = [o for o in orgs if o is not None]
        if not orgs:
            logger.info("Company search for %r returned no organizations", name)
            return None
        return select_best_organization(name, orgs)

    # ------------------------------------------------------------------
    # People search
    # ------------------------------------------------------------------

    async def search_people_by_keyword(
        self,
        keyword: str,
        seniorities: Sequence[str],
        page: int = 1,
    ) -> list[Candidate]:
        """Free-text person search. Deliberately carries no company filter."""
        payload = {
            "q_keywords": keyword,
            "person_seniorities": list(seniorities),
            "page": page,
            "per_page": self.per_page,
        }
        return await self._search_people(payload, f"keyword={keyword!r} page={page}")

    async def search_people_by_organization(
        self,
        domain: str,
        titles: Sequence[str],
        seniorities: Sequence[str],
        page: int = 1,
    ) -> list[Candidate]:
        """Person search restricted to one company domain and a set of titles."""
        payload = {
            "q_organization_domains": domain,
            "person_titles": list(titles),
            "person_seniorities": list(seniorities),
            "page": page,
            "per_page": self.per_page,
        }
        return await self._search_people(payload, f"domain={domain!r} page={page}")

    async def _search_people(self, payload: dict, description: str) -> list[Candidate]:
        try:
            data = await self._post(_PEOPLE_SEARCH_PATH, payload)
        except PeopleSearchError as e:
            logger.warning("People search (%s) failed: %s", description, e)
            return []
        people = data.get("people") or []
        logger.debug("People search (%s) returned %d record(s)", description, len(people))
        candidates = [_safe_parse_person(p) for p in people]
        return [c for c in candidates if c is not None]

    # ------------------------------------------------------------------
    # Lookup / enrichment
    # ------------------------------------------------------------------

    async def get_person(self, person_id: str) -> Optional[Candidate]:
        """Look up one person by id."""
        try:
            data = await self._get(_PERSON_MATCH_PATH, {"id": person_id})
        except PeopleSearchError as e:
            logger.warning("Person lookup for %s failed: %s", person_id, e)
            return None
        return _safe_parse_person(data.get("person"))

    async def enrich_person(self, person_id: str) -> Optional[Candidate]:
        """
        Reveal the email for one person.

        The lookup endpoint is tried first: when it already returns a usable
        email the enrichment POST is skipped.
        """
        person = await self.get_person(person_id)
        if person is not None and person.has_usable_email:
            return person

        try:
            data = await self._post(_PERSON_ENRICH_PATH, {"id": person_id})
        except PeopleSearchError as e:
            logger.warning("Enrichment for %s failed: %s", person_id, e)
            return None
        return _safe_parse_person(data.get("person"))

    # ------------------------------------------------------------------
    # Transport
    # ------------------------------------------------------------------

    async def _post(self, path: str, payload: dict) -> dict:
        return await self._request("POST", path, json=payload)

    async def _get(self, path: str, params: dict) -> dict:
        return await self._request("GET", path, params=params)

    async def _request(self, method: str, path: str, **kwargs: Any) -> dict:
        try:
            resp = await self._client.request(method, path, **kwargs)
        except httpx.TimeoutException as e:
            raise PeopleSearchError(f"Request timed out: {e}") from e
        except httpx.RequestError as e:
            raise PeopleSearchError(f"Network error: {e}") from e

        if resp.status_code == 401:
            raise PeopleSearchError("Apollo API key is invalid.")
        if resp.status_code == 429:
            raise PeopleSearchError("Apollo rate limit exceeded (HTTP 429).")
        if resp.status_code != 200:
            raise PeopleSearchError(f"Apollo returned HTTP {resp.status_code}")

        try:
            data = resp.json()
        except ValueError as e:
            raise PeopleSearchError(f"Apollo returned non-JSON body: {e}") from e
        if not isinstance(data, dict):
            raise PeopleSearchError(f"Unexpected Apollo response type: {type(data).__name__}")
        return data


# ---------------------------------------------------------------------------
# Response mapping
# ---------------------------------------------------------------------------


def select_best_organization(name: str, orgs: Sequence[Organization]) -> Optional[Organization]:
    """Apply the exact -> substring -> headcount tie-break to company search results."""
    if not orgs:
        return None
    query = name.strip().lower()

    for org in orgs:
        if org.name.strip().lower() == query:
            return org

    def headcount(org: Organization) -> int:
        return org.estimated_num_employees or 0

    keyword_matches = [o for o in orgs if query and query in o.name.lower()]
    if keyword_matches:
        return max(keyword_matches, key=headcount)
    return max(orgs, key=headcount)


def _parse_organization(data: Any) -> Optional[Organization]:
    if not isinstance(data, dict) or not data.get("name"):
        return None
    return Organization(
        id=_str_or_none(data.get("id")),
        name=str(data["name"]),
        primary_domain=data.get("primary_domain") or None,
        estimated_num_employees=_int_or_none(data.get("estimated_num_employees")),
    )


def _safe_parse_person(data: Any) -> Optional[Candidate]:
    """Like _parse_person, but a malformed record is logged and skipped."""
    if not isinstance(data, dict):
        return None
    try:
        return _parse_person(data)
    except ValidationError as e:
        logger.warning("Skipping malformed person record %r: %s", data.get("id"), e)
        return None


def _parse_person(data: dict) -> Candidate:
    """Map an Apollo person record onto a Candidate."""
    org = data.get("organization") if isinstance(data.get("organization"), dict) else {}

    name = data.get("name")
    if not name:
        parts = [data.get("first_name") or "", data.get("last_name") or ""]
        name = " ".join(p for p in parts if p).strip() or None

    return Candidate(
        id=_str_or_none(data.get("id")),
        name=name,
        title=data.get("title") or None,
        organization_name=org.get("name") or data.get("organization_name") or None,
        organization_employee_count=_int_or_none(org.get("estimated_num_employees")),
        email=data.get("email") or None,
        email_status=data.get("email_status") or None,
        seniority=data.get("seniority") or None,
        linkedin_url=data.get("linkedin_url") or None,
    )


def _int_or_none(value: Any) -> Optional[int]:
    if value is None or isinstance(value, bool):
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


def _str_or_none(value: Any) -> Optional[str]:
    return str(value) if value not in (None, "") else None
