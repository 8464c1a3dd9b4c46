"""
Ask the language model which Joshua Project candidate best fits a reported name.

The reply is expected in a fixed ``KEY: value`` line format. Parsing never
fails: any field the model leaves out is filled from the candidate it named
(the anchor), and failing that from a fixed default.
"""

import re
from typing import Any, Dict, Optional, Sequence

import httpx

from .config import Settings, get_settings
from .credentials import ANTHROPIC_API_KEY, CredentialProvider
from .errors import AuthError, UpstreamError, ValidationError
from .http_client import client_scope
from .logging_config import get_logger
from .models import Confidence, MatchResult, PeopleGroupCandidate, SearchQuery, to_scale

logger = get_logger(__name__)

SERVICE_NAME = "Anthropic"

SYSTEM_PROMPT = (
    "You are an expert in global peoples classification for Christian missions work, "
    "with deep knowledge of Joshua Project people group data. Your task is to match "
    "reported people group names to the correct official Joshua Project record. "
    "Be precise and follow the response format exactly."
)

REPLY_KEYS = (
    "MATCH",
    "PEOPLE_ID3",
    "COUNTRY",
    "LANGUAGE",
    "RELIGION",
    "JP_SCALE",
    "FRONTIER",
    "CONFIDENCE",
    "REASONING",
)

UNKNOWN_NAME = "Unknown"

RESPONSE_FORMAT = """Respond in exactly this format (replace bracketed values):
MATCH: [exact PeopNameInCountry from candidate list]
PEOPLE_ID3: [PeopleID3 value]
COUNTRY: [country name]
LANGUAGE: [language name]
RELIGION: [religion]
JP_SCALE: [number]
FRONTIER: [Y or N]
CONFIDENCE: [High, Medium, or Low]
REASONING: [one or two sentences explaining why this is the best match]"""


def format_candidate(index: int, c: PeopleGroupCandidate) -> str:
    return (
        f'{index}. Name: "{c.name_in_country}" (also known as "{c.name_across_countries}")'
        f" | Country: {c.country}"
        f" | Religion: {c.primary_religion}"
        f" | Language: {c.primary_language}"
        f" | PeopleID3: {c.people_id3}"
        f" | JPScale: {c.jp_scale}"
        f" | Frontier: {c.frontier}"
    )


def build_prompt(
    reported_name: str,
    country: str,
    city: str,
    religion: str,
    candidates: Sequence[PeopleGroupCandidate],
) -> str:
    context_lines = []
    if country:
        context_lines.append(f"Country: {country}")
    if city:
        context_lines.append(f"City/Region: {city}")
    if religion:
        context_lines.append(f"Religion: {religion}")

    context = "\n".join(context_lines)
    context_block = f"\nAdditional context:\n{context}" if context else ""

    candidate_list = "\n".join(
        format_candidate(i, c) for i, c in enumerate(candidates, start=1)
    )

    return (
        "I need to match a reported people group name to its official Joshua Project record.\n"
        "\n"
        f'Reported name: "{reported_name}"\n'
        f"{context_block}\n"
        "\n"
        f"Joshua Project candidates ({len(candidates)} results):\n"
        f"{candidate_list}\n"
        "\n"
        "Based on the reported name and any context provided, identify the single best "
        "matching Joshua Project people group.\n"
        "\n"
        f"{RESPONSE_FORMAT}"
    )


def extract_field(text: str, key: str) -> str:
    #line-anchored only, a key mentioned mid-sentence is ignored
    match = re.search(rf"^{re.escape(key)}:\s*(.+)$", text, re.MULTILINE)
    return match.group(1).strip() if match else ""


def coerce_confidence(raw: str) -> Confidence:
    for level in Confidence:
        if raw == level.value:
            return level
    return Confidence.LOW


def find_anchor(
    candidates: Sequence[PeopleGroupCandidate],
    people_id3: str,
    matched_name: str,
) -> Optional[PeopleGroupCandidate]:
    #first candidate satisfying either test wins, id matches get no priority
    for c in candidates:
        if c.people_id3 == people_id3 or c.name_in_country == matched_name:
            return c
    return None


def parse_response(text: str, candidates: Sequence[PeopleGroupCandidate]) -> MatchResult:
    fields = {key: extract_field(text, key) for key in REPLY_KEYS}
    logger.debug(f"Parsed reply keys present: {[k for k, v in fields.items() if v]}")

    matched_name = fields["MATCH"]
    people_id3 = fields["PEOPLE_ID3"]
    confidence = coerce_confidence(fields["CONFIDENCE"])

    anchor = find_anchor(candidates, people_id3, matched_name)
    if anchor is None:
        logger.info("Model reply did not name any candidate, using defaults for missing fields")

    #only ids from this round's candidates may be reported
    if people_id3 and people_id3 not in {c.people_id3 for c in candidates}:
        logger.warning(f"Model returned unknown PeopleID3 {people_id3!r}, discarding it")
        people_id3 = ""

    def pick(value: str, attr: str) -> str:
        if value:
            return value
        if anchor is not None:
            return getattr(anchor, attr)
        return ""

    jp_scale = to_scale(fields["JP_SCALE"])
    if not jp_scale and anchor is not None:
        jp_scale = anchor.jp_scale

    return MatchResult(
        matched_name=pick(matched_name, "name_in_country") or UNKNOWN_NAME,
        people_id3=pick(people_id3, "people_id3"),
        country=pick(fields["COUNTRY"], "country"),
        language=pick(fields["LANGUAGE"], "primary_language"),
        religion=pick(fields["RELIGION"], "primary_religion"),
        jp_scale=jp_scale,
        frontier=pick(fields["FRONTIER"], "frontier"),
        confidence=confidence,
        reasoning=fields["REASONING"],
    )


def build_request_body(prompt: str, settings: Settings) -> Dict[str, Any]:
    return {
        "model": settings.anthropic_model,
        "max_tokens": settings.max_tokens,
        "system": SYSTEM_PROMPT,
        "messages": [
            {"role": "user", "content": prompt},
        ],
    }


def reply_text(data: Any) -> str:
    try:
        text = data["content"][0]["text"]
    except (KeyError, IndexError, TypeError):
        return ""
    return text if isinstance(text, str) else ""


def error_message(response: httpx.Response) -> str:
    try:
        message = response.json()["error"]["message"]
    except (ValueError, KeyError, TypeError):
        message = None
    return message if message else response.reason_phrase


async def find_best_match(
    query: SearchQuery,
    candidates: Sequence[PeopleGroupCandidate],
    *,
    credentials: CredentialProvider,
    client: Optional[httpx.AsyncClient] = None,
    settings: Optional[Settings] = None,
) -> MatchResult:
    settings = settings or get_settings()

    if not candidates:
        raise ValidationError("No Joshua Project candidates found to match against.")

    api_key = credentials.get(ANTHROPIC_API_KEY)
    if not api_key:
        raise AuthError("Anthropic API key not set.")

    prompt = build_prompt(query.reported_name, query.country, query.city, query.religion, candidates)
    headers = {
        "content-type": "application/json",
        "x-api-key": api_key,
        "anthropic-version": settings.anthropic_version,
        "anthropic-dangerous-direct-browser-access": "true",
    }

    logger.info(f"Asking {settings.anthropic_model} to choose among {len(candidates)} candidates")
    try:
        async with client_scope(client, settings) as http:
            response = await http.post(
                settings.anthropic_api_url,
                json=build_request_body(prompt, settings),
                headers=headers,
            )
    except httpx.RequestError as e:
        logger.error(f"Anthropic request failed: {e.__class__.__name__}")
        raise UpstreamError(SERVICE_NAME, 0, str(e)) from e

    if not response.is_success:
        logger.warning(f"Anthropic returned {response.status_code}")
        raise UpstreamError(SERVICE_NAME, response.status_code, error_message(response))

    try:
        data = response.json()
    except ValueError:
        logger.warning("Anthropic response body was not JSON, parsing as empty reply")
        data = None

    result = parse_response(reply_text(data), candidates)
    logger.info(f"Matched '{result.matched_name}' ({result.people_id3 or 'no id'}) with {result.confidence.value} confidence")
    return result
