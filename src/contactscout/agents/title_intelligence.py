"""
Groq-powered likely-title intelligence.

Asks a chat model which job titles at a company are most likely to belong to
the decision-maker we are trying to reach (optionally: which titles a named
person is likely to hold there). The answer only steers search and scoring;
when this call fails the acquisition controller falls back to a fixed list of
senior titles, so every failure here surfaces as an exception rather than a
guessed default.
"""
from __future__ import annotations

import json
import re
from typing import Optional, Protocol

from groq import AsyncGroq

from contactscout.config import Settings, get_settings

MAX_TITLES = 5

_SYSTEM_PROMPT = """\
You are a B2B research assistant. You identify which job titles hold hiring and
technical decision-making authority at a company.
Always respond with valid JSON only; no prose, no markdown, no code fences.
"""

_USER_TEMPLATE = """\
Company: {company}
{person_line}
List up to {limit} job titles, most likely first, for the person we should contact
about an engineering role at this company. Use titles exactly as they would appear
on a professional profile (e.g. "CTO", "VP of Engineering").

Return a JSON object of the form:
{{"jobTitles": ["<title>", "..."]}}
"""


class TitleIntelligence(Protocol):
    async def get_likely_titles(self, person_name: Optional[str], company_name: str) -> list[str]:
        ...


class GroqTitleIntelligence:
    """TitleIntelligence backed by a Groq chat completion."""

    def __init__(self, api_key: Optional[str], model: str, client: Optional[AsyncGroq] = None) -> None:
        self.model = model
        self._client = client or AsyncGroq(api_key=api_key)

    @classmethod
    def from_settings(cls, settings: Optional[Settings] = None) -> "GroqTitleIntelligence":
        s = settings or get_settings()
        return cls(api_key=s.groq_api_key, model=s.groq_model)

    async def get_likely_titles(self, person_name: Optional[str], company_name: str) -> list[str]:
        """
        Return up to MAX_TITLES likely job titles.

        Raises:
            ValueError: If the model returns unparseable output or no titles.
        """
        person_line = f"Person of interest: {person_name}" if person_name else ""
        prompt = _USER_TEMPLATE.format(company=company_name, person_line=person_line, limit=MAX_TITLES)

        response = await self._client.chat.completions.create(
            model=self.model,
            max_tokens=256,
            temperature=0,
            messages=[
                {"role": "system", "content": _SYSTEM_PROMPT},
                {"role": "user", "content": prompt},
            ],
        )
        return parse_titles_response(response.choices[0].message.content or "")


def parse_titles_response(raw: str) -> list[str]:
    """Extract the `jobTitles` list from a model reply."""
    raw = raw.strip()
    # Strip accidental markdown code fences
    raw = re.sub(r"^```(?:json)?\s*", "", raw)
    raw = re.sub(r"\s*```$", "", raw)

    try:
        data = json.loads(raw)
    except json.JSONDecodeError as e:
        raise ValueError(f"Model returned non-JSON: {raw!r}") from e

    titles = data.get("jobTitles") if isinstance(data, dict) else None
    if not isinstance(titles, list):
        raise ValueError(f"Model reply has no jobTitles list: {raw!r}")

    cleaned: list[str] = []
    for t in titles:
        if isinstance(t, str) and t.strip() and t.strip() not in cleaned:
            cleaned.append(t.strip())
    if not cleaned:
        raise ValueError("Model returned an empty jobTitles list")
    return cleaned[:MAX_TITLES]
