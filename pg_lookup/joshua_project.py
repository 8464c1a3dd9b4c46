from typing import List, Optional, Tuple

import httpx

from .config import Settings, get_settings
from .countries import resolve_country_code
from .credentials import JP_API_KEY, CredentialProvider
from .errors import AuthError, UpstreamError
from .http_client import client_scope
from .logging_config import get_logger
from .models import PeopleGroupCandidate

logger = get_logger(__name__)

SERVICE_NAME = "Joshua Project"

#fixed by the api contract, results are never paged past this
CANDIDATE_LIMIT = 50

JP_FIELDS = "|".join([
    "PeopleID3",
    "PeopNameInCountry",
    "PeopNameAcrossCountries",
    "Ctry",
    "ROG3",
    "PrimaryReligion",
    "PrimaryLanguageName",
    "JPScale",
    "Frontier",
])


def first_search_token(reported_name: str) -> Optional[str]:
    #only the first word is searched, broader matching for imprecise name variants
    words = (reported_name or "").split()
    return words[0] if words else None


def build_query_params(
    api_key: str,
    reported_name: str,
    country: str,
) -> List[Tuple[str, str]]:
    params = [
        ("api_key", api_key),
        ("limit", str(CANDIDATE_LIMIT)),
        ("fields", JP_FIELDS),
    ]

    name_search = first_search_token(reported_name)
    if name_search:
        params.append(("name_search", name_search))

    if country and country.strip():
        code = resolve_country_code(country)
        if code:
            params.append(("countries", code))
        else:
            logger.info(f"Country '{country.strip()}' not recognised, searching all countries")

    return params


async def fetch_candidates(
    reported_name: str,
    country: str,
    *,
    credentials: CredentialProvider,
    client: Optional[httpx.AsyncClient] = None,
    settings: Optional[Settings] = None,
) -> List[PeopleGroupCandidate]:
    settings = settings or get_settings()

    api_key = credentials.get(JP_API_KEY)
    if not api_key:
        raise AuthError("Joshua Project API key not set.")

    params = build_query_params(api_key, reported_name, country)
    url = f"{settings.jp_api_base.rstrip('/')}/people_groups.json"
    logger.info(
        f"Searching Joshua Project: name_search={dict(params).get('name_search')!r}, "
        f"countries={dict(params).get('countries')!r}"
    )

    try:
        async with client_scope(client, settings) as http:
            response = await http.get(
                url,
                params=params,
                headers={"X-Requested-With": "XMLHttpRequest"},
            )
    except httpx.RequestError as e:
        logger.error(f"Joshua Project request failed: {e.__class__.__name__}")
        raise UpstreamError(SERVICE_NAME, 0, str(e)) from e

    if not response.is_success:
        logger.warning(f"Joshua Project returned {response.status_code}")
        raise UpstreamError(SERVICE_NAME, response.status_code, response.text)

    try:
        data = response.json()
    except ValueError as e:
        raise UpstreamError(SERVICE_NAME, response.status_code, response.text) from e

    if not isinstance(data, list):
        logger.warning("Joshua Project response was not a list, treating as no results")
        return []

    candidates = [PeopleGroupCandidate.model_validate(row) for row in data if isinstance(row, dict)]
    logger.info(f"Joshua Project returned {len(candidates)} candidates")
    return candidates
