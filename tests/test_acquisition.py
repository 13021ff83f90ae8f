import httpx
import pytest

from conftest import FakeIntelligence, FakePeopleSearch, make_candidate
from contactscout.models.candidate import LOCKED_EMAIL_SENTINEL, Candidate, TargetSpec
from contactscout.models.progress import AcquisitionPhase, ProgressRecorder
from contactscout.services.acquisition import (
    FALLBACK_TITLES,
    AcquisitionConfig,
    AcquisitionController,
)

DOMAIN = "acme.io"


def _target(person="Jane Doe", domain=DOMAIN):
    return TargetSpec(person_name=person, company_name="Acme Robotics", company_domain=domain)


def _controller(client, intelligence=None, config=None):
    recorder = ProgressRecorder()
    controller = AcquisitionController(
        client,
        intelligence=intelligence or FakeIntelligence(["CTO", "VP of Engineering"]),
        config=config,
        on_progress=recorder,
    )
    return controller, recorder


# ---------------------------------------------------------------------------
# Precondition
# ---------------------------------------------------------------------------


@pytest.mark.parametrize("domain", [None, "", "   "])
async def test_missing_domain_aborts_without_any_call(domain):
    client = FakePeopleSearch(keyword_pages=[[make_candidate()]])
    intelligence = FakeIntelligence(["CTO"])
    controller, recorder = _controller(client, intelligence)

    assert await controller.run(_target(domain=domain)) is None

    assert client.keyword_calls == [] and client.org_calls == [] and client.enrich_calls == []
    assert intelligence.calls == []
    [abort] = recorder.events[:1]
    assert abort.level == "error"
    assert abort.phase is AcquisitionPhase.PRECONDITION_FAILED
    assert "ABORT" in abort.message and "domain" in abort.message
    assert controller.phase is AcquisitionPhase.DONE


# ---------------------------------------------------------------------------
# Search phases
# ---------------------------------------------------------------------------


async def test_score_exactly_at_threshold_counts_as_high_confidence():
    # exact name + partial company, no title or email bonus
    jane = make_candidate(title="Advisor", organization_name="Acme Robotics Inc", email="jane@acme.io")
    client = FakePeopleSearch(keyword_pages=[[jane]], org_pages=[[make_candidate(id="other")]])
    controller, recorder = _controller(client)

    contact = await controller.run(_target())

    assert controller.scorer.score(jane, _target().model_copy(update={"likely_titles": ("CTO",)})) == (
        controller.scorer.high_confidence_threshold
    )
    assert client.org_calls == []
    assert AcquisitionPhase.HIGH_CONFIDENCE_FOUND in recorder.phases()
    assert contact.email == "jane@acme.io"


async def test_high_confidence_person_hit_skips_role_search():
    jane = make_candidate(email=LOCKED_EMAIL_SENTINEL)
    client = FakePeopleSearch(
        keyword_pages=[[jane]],
        enrichments={"p1": make_candidate(email="jane@acme.io", email_status="verified")},
    )
    controller, recorder = _controller(client)

    contact = await controller.run(_target())

    assert contact.email == "jane@acme.io"
    assert client.org_calls == []
    assert client.enrich_calls == ["p1"]
    assert AcquisitionPhase.HIGH_CONFIDENCE_FOUND in recorder.phases()
    assert AcquisitionPhase.ROLE_CENTRIC_SEARCH not in recorder.phases()


async def test_person_search_uses_name_keyword_and_seniorities():
    client = FakePeopleSearch()
    config = AcquisitionConfig(seniorities=("c_suite",), person_search_max_pages=3)
    controller, _ = _controller(client, config=config)

    await controller.run(_target(person="  Jane Doe "))

    assert client.keyword_calls == [("Jane Doe", ("c_suite",), 1)]


async def test_pagination_stops_at_first_empty_page():
    a, b = make_candidate(id="a", name="Ann Poe"), make_candidate(id="b", name="Bo Roe")
    client = FakePeopleSearch(keyword_pages=[[a], [b], [], [make_candidate(id="never")]])
    config = AcquisitionConfig(person_search_max_pages=5, role_search_max_pages=1)
    controller, _ = _controller(client, config=config)

    await controller.run(_target())

    assert [call[2] for call in client.keyword_calls] == [1, 2, 3]
    assert "never" not in client.enrich_calls


async def test_low_confidence_person_hit_runs_role_search_with_titles():
    namesake = make_candidate(id="x", organization_name="Globex")   # name matches, company does not
    client = FakePeopleSearch(keyword_pages=[[namesake]], org_pages=[[]])
    config = AcquisitionConfig(seniorities=("vp",))
    controller, _ = _controller(client, FakeIntelligence(["CTO", "CEO"]), config)

    await controller.run(_target())

    assert client.org_calls == [(DOMAIN, ("CTO", "CEO"), ("vp",), 1)]


async def test_no_person_hits_and_failed_intelligence_uses_fallback_titles():
    client = FakePeopleSearch(keyword_pages=[[]], org_pages=[[]])
    controller, recorder = _controller(client, FakeIntelligence(error=RuntimeError("quota exceeded")))

    assert await controller.run(_target()) is None

    assert len(client.org_calls) == 1
    assert client.org_calls[0][1] == FALLBACK_TITLES
    assert any("fallback" in m for m in recorder.messages("warning"))


async def test_no_intelligence_source_uses_fallback_titles():
    client = FakePeopleSearch(org_pages=[[]])
    controller = AcquisitionController(client)

    await controller.run(_target(person=None))

    assert client.keyword_calls == []
    assert client.org_calls[0][1] == FALLBACK_TITLES


async def test_page_failure_counts_as_empty_page(search_error):
    cto = make_candidate(id="c", name="Chris Cto", email="chris@acme.io")
    client = FakePeopleSearch(keyword_pages=[search_error], org_pages=[[cto]])
    controller, recorder = _controller(client)

    contact = await controller.run(_target())

    assert contact.email == "chris@acme.io"
    assert any("failed" in m for m in recorder.messages("warning"))


async def test_httpx_error_from_client_is_contained():
    client = FakePeopleSearch(keyword_pages=[[]], org_pages=[httpx.ConnectError("down")])
    controller, _ = _controller(client)

    assert await controller.run(_target()) is None


# ---------------------------------------------------------------------------
# Enrichment order and credit discipline
# ---------------------------------------------------------------------------


async def test_enrichment_follows_score_order_and_stops_at_first_email():
    # Scores: cto (title+company) > advisor (company) > spam (penalised)
    spam = make_candidate(id="spam", name="Test Person")
    advisor = make_candidate(id="adv", name="Al Visor", title="Advisor")
    cto = make_candidate(id="cto", name="Chris Cto", title="CTO", email_status="verified")
    client = FakePeopleSearch(
        keyword_pages=[[]],
        org_pages=[[spam, advisor, cto]],
        enrichments={
            "cto": None,
            "adv": make_candidate(id="adv", name="Al Visor", title="Advisor", email="al@acme.io"),
            "spam": make_candidate(id="spam", email="x@acme.io"),
        },
    )
    controller, _ = _controller(client)

    contact = await controller.run(_target())

    assert client.enrich_calls == ["cto", "adv"]
    assert contact.email == "al@acme.io"
    assert contact.name == "Al Visor"


async def test_candidate_with_real_email_is_never_enriched():
    carrier = make_candidate(id="c1", name="Chris Cto", email="chris@acme.io", email_status="guessed")
    client = FakePeopleSearch(keyword_pages=[[]], org_pages=[[carrier]])
    controller, _ = _controller(client)

    contact = await controller.run(_target())

    assert contact.email == "chris@acme.io"
    assert client.enrich_calls == []


async def test_locked_email_is_not_accepted_without_enrichment():
    locked = make_candidate(id="c1", name="Chris Cto", email=LOCKED_EMAIL_SENTINEL)
    client = FakePeopleSearch(
        keyword_pages=[[]],
        org_pages=[[locked]],
        enrichments={"c1": make_candidate(id="c1", name="Chris Cto", email=LOCKED_EMAIL_SENTINEL)},
    )
    controller, recorder = _controller(client)

    assert await controller.run(_target()) is None
    assert client.enrich_calls == ["c1"]
    assert any("exhausted" in m for m in recorder.messages("warning"))


async def test_enrichment_failure_moves_to_next_candidate(search_error):
    first = make_candidate(id="a", name="Ann Poe", title="CTO")
    second = make_candidate(id="b", name="Bo Roe", title="Advisor")
    client = FakePeopleSearch(
        keyword_pages=[[]],
        org_pages=[[second, first]],
        enrichments={"a": search_error, "b": Candidate(id="b", email="bo@acme.io")},
    )
    controller, _ = _controller(client)

    contact = await controller.run(_target())

    assert client.enrich_calls == ["a", "b"]
    assert contact.email == "bo@acme.io"
    # Fields missing from the enrichment response come from the search record
    assert contact.title == "Advisor"


async def test_enrichment_budget_caps_billed_calls():
    people = [make_candidate(id=str(i), name=f"Person {i}") for i in range(5)]
    client = FakePeopleSearch(keyword_pages=[[]], org_pages=[people])
    controller, _ = _controller(client, config=AcquisitionConfig(max_enrichment_calls=2))

    assert await controller.run(_target()) is None
    assert client.enrich_calls == ["0", "1"]


async def test_spent_budget_still_accepts_a_free_email_further_down():
    a = make_candidate(id="a", name="Ann Poe", title="CTO")
    b = make_candidate(id="b", name="Bo Roe", title="CTO")
    c = make_candidate(id="c", name="Cy Hale", title="Advisor", email="cy@acme.io")
    client = FakePeopleSearch(keyword_pages=[[]], org_pages=[[a, b, c]])
    controller, recorder = _controller(client, config=AcquisitionConfig(max_enrichment_calls=1))

    contact = await controller.run(_target())

    assert client.enrich_calls == ["a"]
    assert contact.email == "cy@acme.io"
    assert any("budget" in m for m in recorder.messages("warning"))


async def test_ties_keep_discovery_order():
    people = [make_candidate(id=str(i), name=f"Person {i}", title="CTO") for i in range(3)]
    client = FakePeopleSearch(keyword_pages=[[]], org_pages=[people])
    controller, _ = _controller(client)

    await controller.run(_target())

    assert client.enrich_calls == ["0", "1", "2"]


async def test_duplicate_ids_across_phases_are_enriched_once():
    namesake = make_candidate(id="dup", organization_name="Globex")
    client = FakePeopleSearch(keyword_pages=[[namesake]], org_pages=[[namesake]])
    controller, _ = _controller(client)

    await controller.run(_target())

    assert client.enrich_calls == ["dup"]


async def test_candidates_without_id_are_skipped():
    anonymous = make_candidate(id=None, name="No Id")
    client = FakePeopleSearch(keyword_pages=[[]], org_pages=[[anonymous]])
    controller, _ = _controller(client)

    assert await controller.run(_target()) is None
    assert client.enrich_calls == []


async def test_phases_are_reported_in_order():
    client = FakePeopleSearch(keyword_pages=[[]], org_pages=[[make_candidate(email="jane@acme.io")]])
    controller, recorder = _controller(client)

    await controller.run(_target())

    assert recorder.phases() == [
        AcquisitionPhase.INTELLIGENCE_GATHERING,
        AcquisitionPhase.PERSON_CENTRIC_SEARCH,
        AcquisitionPhase.ROLE_CENTRIC_SEARCH,
        AcquisitionPhase.SCORING,
        AcquisitionPhase.ITERATIVE_ENRICHMENT,
    ]
    assert controller.phase is AcquisitionPhase.DONE


async def test_contact_carries_display_fields():
    cto = make_candidate(
        id="c1",
        name="Chris Cto",
        seniority="c_suite",
        linkedin_url="https://www.linkedin.com/in/chriscto",
    )
    client = FakePeopleSearch(
        keyword_pages=[[]],
        org_pages=[[cto]],
        enrichments={"c1": Candidate(id="c1", email="chris@acme.io", email_status="verified")},
    )
    controller, _ = _controller(client)

    contact = await controller.run(_target())

    assert contact.seniority == "c_suite"
    assert contact.linkedin_url == "https://www.linkedin.com/in/chriscto"
    assert contact.email_status == "verified"
