import json
from typing import Callable, List

import httpx
import pytest

from pg_lookup.config import Settings
from pg_lookup.credentials import ANTHROPIC_API_KEY, JP_API_KEY, MemoryCredentialStore
from pg_lookup.models import PeopleGroupCandidate

JP_HOST = "api.joshuaproject.net"
ANTHROPIC_HOST = "api.anthropic.com"

HAZARA_ROW = {
    "PeopleID3": "105780",
    "PeopNameInCountry": "Hazara",
    "PeopNameAcrossCountries": "Hazara",
    "Ctry": "Afghanistan",
    "ROG3": "AF",
    "PrimaryReligion": "Islam",
    "PrimaryLanguageName": "Hazaragi",
    "JPScale": 1,
    "Frontier": "Y",
}

PASHTUN_ROW = {
    "PeopleID3": "114262",
    "PeopNameInCountry": "Pashtun, Northern",
    "PeopNameAcrossCountries": "Pashtun, Northern",
    "Ctry": "Afghanistan",
    "ROG3": "AF",
    "PrimaryReligion": "Islam",
    "PrimaryLanguageName": "Pashto, Northern",
    "JPScale": 1,
    "Frontier": "Y",
}

FULL_REPLY = """MATCH: Hazara
PEOPLE_ID3: 105780
COUNTRY: Afghanistan
LANGUAGE: Hazaragi
RELIGION: Islam
JP_SCALE: 1
FRONTIER: Y
CONFIDENCE: High
REASONING: The reported name is an exact match for the Hazara of Afghanistan."""


def anthropic_reply(text: str) -> dict:
    return {
        "id": "msg_test",
        "type": "message",
        "role": "assistant",
        "content": [{"type": "text", "text": text}],
    }


@pytest.fixture
def settings() -> Settings:
    return Settings(_env_file=None)


@pytest.fixture
def credentials() -> MemoryCredentialStore:
    return MemoryCredentialStore({JP_API_KEY: "jp-test-key", ANTHROPIC_API_KEY: "sk-ant-test"})


@pytest.fixture
def hazara() -> PeopleGroupCandidate:
    return PeopleGroupCandidate.model_validate(HAZARA_ROW)


@pytest.fixture
def pashtun() -> PeopleGroupCandidate:
    return PeopleGroupCandidate.model_validate(PASHTUN_ROW)


class RecordingTransport:
    """Routes requests by host to canned responses and keeps every request it sees."""

    def __init__(self, jp_rows=None, reply_text: str = FULL_REPLY,
                 jp_status: int = 200, anthropic_status: int = 200,
                 jp_body=None, anthropic_body=None):
        self.jp_rows = [HAZARA_ROW] if jp_rows is None else jp_rows
        self.reply_text = reply_text
        self.jp_status = jp_status
        self.anthropic_status = anthropic_status
        self.jp_body = jp_body
        self.anthropic_body = anthropic_body
        self.requests: List[httpx.Request] = []

    def of_host(self, host: str) -> List[httpx.Request]:
        return [r for r in self.requests if r.url.host == host]

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if request.url.host == JP_HOST:
            if self.jp_body is not None:
                return httpx.Response(self.jp_status, text=self.jp_body)
            return httpx.Response(self.jp_status, json=self.jp_rows)

        if request.url.host == ANTHROPIC_HOST:
            if self.anthropic_body is not None:
                return httpx.Response(self.anthropic_status, json=self.anthropic_body)
            return httpx.Response(self.anthropic_status, json=anthropic_reply(self.reply_text))

        return httpx.Response(404, text="unexpected host")


@pytest.fixture
def make_client() -> Callable[..., tuple]:
    def _make(**kwargs):
        transport = RecordingTransport(**kwargs)
        client = httpx.AsyncClient(transport=httpx.MockTransport(transport))
        return client, transport
    return _make


def sent_json(request: httpx.Request) -> dict:
    return json.loads(request.content)
