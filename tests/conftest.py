from typing import Optional

import pytest

from contactscout.models.candidate import Candidate
from contactscout.services.people_search import PeopleSearchError


def make_candidate(**overrides) -> Candidate:
    """A clean, spam-free candidate at Acme Robotics unless overridden."""
    fields = {
        "id": "p1",
        "name": "Jane Doe",
        "title": "CTO",
        "organization_name": "Acme Robotics",
        "organization_employee_count": 250,
        "email": None,
        "email_status": None,
    }
    fields.update(overrides)
    return Candidate(**fields)


class FakePeopleSearch:
    """
    In-memory stand-in for PeopleSearchClient with call logs.

    keyword_pages / org_pages: list of pages (page 1 first); a page may be an
    Exception instance, which is raised instead of returned.
    enrichments: person id -> Candidate, None, or an Exception to raise.
    """

    def __init__(self, keyword_pages=None, org_pages=None, enrichments=None):
        self.keyword_pages = keyword_pages or []
        self.org_pages = org_pages or []
        self.enrichments = enrichments or {}
        self.keyword_calls: list[tuple] = []
        self.org_calls: list[tuple] = []
        self.enrich_calls: list[str] = []

    async def search_people_by_keyword(self, keyword, seniorities, page=1):
        self.keyword_calls.append((keyword, tuple(seniorities), page))
        return self._page(self.keyword_pages, page)

    async def search_people_by_organization(self, domain, titles, seniorities, page=1):
        self.org_calls.append((domain, tuple(titles), tuple(seniorities), page))
        return self._page(self.org_pages, page)

    async def enrich_person(self, person_id) -> Optional[Candidate]:
        self.enrich_calls.append(person_id)
        result = self.enrichments.get(person_id)
        if isinstance(result, Exception):
            raise result
        return result

    @staticmethod
    def _page(pages, page):
        if page > len(pages):
            return []
        result = pages[page - 1]
        if isinstance(result, Exception):
            raise result
        return list(result)


class FakeIntelligence:
    def __init__(self, titles=None, error: Optional[Exception] = None):
        self.titles = titles or []
        self.error = error
        self.calls: list[tuple] = []

    async def get_likely_titles(self, person_name, company_name):
        self.calls.append((person_name, company_name))
        if self.error is not None:
            raise self.error
        return list(self.titles)


@pytest.fixture
def search_error():
    return PeopleSearchError("Request timed out: read timeout")
