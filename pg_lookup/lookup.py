from typing import Optional

import httpx

from .config import Settings, get_settings
from .credentials import CredentialProvider
from .errors import EmptyResultError, LookupFailure, ValidationError
from .joshua_project import fetch_candidates
from .logging_config import get_logger
from .match_resolver import find_best_match
from .models import LookupOutcome, SearchQuery

logger = get_logger(__name__)

NO_CANDIDATES_MESSAGE = (
    "No people groups found in Joshua Project matching that search. "
    "Try a shorter or different name."
)

#run one search round: fetch candidates, then let the model pick one
async def run_lookup(
    query: SearchQuery,
    *,
    credentials: CredentialProvider,
    client: Optional[httpx.AsyncClient] = None,
    settings: Optional[Settings] = None,
) -> LookupOutcome:
    settings = settings or get_settings()

    if not query.reported_name.strip():
        raise ValidationError("A reported people group name is required.")

    logger.info(f"Lookup started for '{query.reported_name}'")
    try:
        candidates = await fetch_candidates(
            query.reported_name,
            query.country,
            credentials=credentials,
            client=client,
            settings=settings,
        )

        if not candidates:
            raise EmptyResultError(NO_CANDIDATES_MESSAGE)

        result = await find_best_match(
            query,
            candidates,
            credentials=credentials,
            client=client,
            settings=settings,
        )
    except LookupFailure as e:
        logger.warning(f"Lookup for '{query.reported_name}' failed: {e.message}")
        raise

    return LookupOutcome(
        reported_name=query.reported_name,
        candidate_count=len(candidates),
        result=result,
    )
