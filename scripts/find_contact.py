"""
Find one decision-maker's email at a company.

Usage:
    python scripts/find_contact.py "<company>" [--domain <domain>] [--person "<name>"]
    python scripts/find_contact.py "<company>" --debug          # verbose library logging

Examples:
    python scripts/find_contact.py "Anthropic" --domain anthropic.com --person "Dario Amodei"
    python scripts/find_contact.py "Belvedere Trading"            # domain resolved via Apollo

When --domain is omitted the script resolves it with an Apollo company search
before starting acquisition. Acquisition itself never guesses a domain.
"""
from __future__ import annotations

import argparse
import asyncio
import sys
import time
from pathlib import Path

# Allow running from repo root without installing the package
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from contactscout.config import get_settings
from contactscout.models.progress import ProgressEvent
from contactscout.services.acquisition import find_contact
from contactscout.services.people_search import PeopleSearchClient
from contactscout.utils.logger import setup_logger

SEP = "─" * 64

_GLYPHS = {"info": "·", "success": "✓", "warning": "⚠", "error": "✗"}


def _section(title: str) -> None:
    print(f"\n{SEP}")
    print(f"  {title}")
    print(SEP)


def _ok(label: str, value: str) -> None:
    print(f"  ✓ {label:<20} {value}")


def _warn(label: str, value: str) -> None:
    print(f"  ⚠ {label:<20} {value}")


def _fail(label: str, value: str) -> None:
    print(f"  ✗ {label:<20} {value}")


def _print_event(event: ProgressEvent) -> None:
    print(f"  {_GLYPHS.get(event.level, '·')} [{event.phase.value}] {event.message}")


async def resolve_domain(client: PeopleSearchClient, company: str) -> str | None:
    """Caller-side domain resolution: best Apollo organization's primary domain."""
    org = await client.search_company(company)
    if org is None:
        return None
    _ok("Organization", f"{org.name} ({org.estimated_num_employees or '?'} employees)")
    return org.primary_domain


async def main(company: str, domain: str | None, person: str | None) -> int:
    print(f"\n{'═' * 64}")
    print(f"  contactscout: Target Acquisition")
    print(f"{'═' * 64}")

    settings = get_settings()
    async with PeopleSearchClient.from_settings(settings) as client:
        if not client.is_enabled():
            _fail("Config", "APOLLO_API_KEY is not set")
            return 1

        _section("STEP 1: Company Domain")
        if domain:
            _ok("Domain", f"{domain} (supplied)")
        else:
            print(f"  Resolving domain for '{company}' via Apollo company search...")
            domain = await resolve_domain(client, company)
            if domain:
                _ok("Domain", domain)
            else:
                _warn("Domain", "Could not resolve; acquisition will abort")

    _section("STEP 2: Acquire Contact")
    _ok("Company", company)
    _ok("Person", person or "Not specified")
    if not settings.groq_api_key:
        _warn("Intelligence", "GROQ_API_KEY not set; using fallback titles")
    print()

    t0 = time.perf_counter()
    contact = await find_contact(person, company, domain, _print_event, settings=settings)
    elapsed = time.perf_counter() - t0

    _section("RESULT")
    _ok("Status", f"Complete in {elapsed:.1f}s")
    if contact is None:
        _warn("Contact", "No contact with a usable email found")
        return 2

    _ok("Name", contact.name or "")
    _ok("Title", contact.title or "")
    _ok("Email", f"{contact.email} ({contact.email_status or 'unknown status'})")
    _ok("Organization", contact.organization_name or "")
    if contact.seniority:
        _ok("Seniority", contact.seniority)
    if contact.linkedin_url:
        _ok("LinkedIn", contact.linkedin_url)

    print(f"\n{'═' * 64}")
    print(f"  Done.")
    print(f"{'═' * 64}\n")
    return 0


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Find a decision-maker's email at a company.")
    parser.add_argument("company", help="Company name")
    parser.add_argument("--domain", default=None, help="Verified company domain (resolved via Apollo if omitted)")
    parser.add_argument("--person", default=None, help="Specific person to look for")
    parser.add_argument("--debug", action="store_true", help="Enable DEBUG library logging")
    args = parser.parse_args()

    # Progress events are printed directly; library logging only on request
    if args.debug:
        logger = setup_logger()
        logger.setLevel("DEBUG")
        for handler in logger.handlers:
            handler.setLevel("DEBUG")

    sys.exit(asyncio.run(main(company=args.company, domain=args.domain, person=args.person)))
