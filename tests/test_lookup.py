import pytest

from pg_lookup.errors import EmptyResultError, UpstreamError, ValidationError
from pg_lookup.lookup import NO_CANDIDATES_MESSAGE, run_lookup
from pg_lookup.models import Confidence, SearchQuery
from tests.conftest import ANTHROPIC_HOST, JP_HOST


@pytest.mark.asyncio
async def test_lookup_round_trip(make_client, credentials, settings):
    client, transport = make_client()

    async with client:
        outcome = await run_lookup(SearchQuery(reported_name="Hazara", country="Afghanistan"),
                                   credentials=credentials, client=client, settings=settings)

    assert outcome.reported_name == "Hazara"
    assert outcome.candidate_count == 1
    assert outcome.result.people_id3 == "105780"
    assert outcome.result.confidence is Confidence.HIGH
    assert len(transport.of_host(JP_HOST)) == 1
    assert len(transport.of_host(ANTHROPIC_HOST)) == 1


@pytest.mark.asyncio
async def test_zero_candidates_never_reach_the_model(make_client, credentials, settings):
    client, transport = make_client(jp_rows=[])

    async with client:
        with pytest.raises(EmptyResultError) as exc_info:
            await run_lookup(SearchQuery(reported_name="Nobody"),
                             credentials=credentials, client=client, settings=settings)

    assert exc_info.value.message == NO_CANDIDATES_MESSAGE
    assert transport.of_host(ANTHROPIC_HOST) == []


@pytest.mark.asyncio
async def test_blank_name_makes_no_requests(make_client, credentials, settings):
    client, transport = make_client()

    async with client:
        with pytest.raises(ValidationError):
            await run_lookup(SearchQuery(reported_name="   "),
                             credentials=credentials, client=client, settings=settings)

    assert transport.requests == []


@pytest.mark.asyncio
async def test_upstream_failure_propagates(make_client, credentials, settings):
    client, transport = make_client(jp_status=500, jp_body="Internal Server Error")

    async with client:
        with pytest.raises(UpstreamError):
            await run_lookup(SearchQuery(reported_name="Hazara"),
                             credentials=credentials, client=client, settings=settings)

    assert transport.of_host(ANTHROPIC_HOST) == []
