from contextlib import asynccontextmanager
from typing import Annotated, Any, Optional

import httpx
from fastapi import Depends, FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response

from .config import Settings, get_settings
from .credentials import (
    ANTHROPIC_API_KEY,
    JP_API_KEY,
    CredentialProvider,
    open_credential_store,
    save_keys,
)
from .errors import AuthError, EmptyResultError, LookupFailure, UpstreamError, ValidationError
from .http_client import build_client
from .logging_config import get_logger, setup_logging
from .lookup import run_lookup
from .models import KeysStatus, KeysUpdate, SearchQuery

__version__ = "0.1.0"

logger = get_logger(__name__)

JSON_MEDIA_TYPE = "application/json; charset=utf-8"
NO_STORE = {"Cache-Control": "no-store"}

STATUS_FOR_ERROR = {
    AuthError: 401,
    ValidationError: 422,
    EmptyResultError: 404,
    UpstreamError: 502,
}


def json_response(content: Any, status_code: int = 200) -> JSONResponse:
    return JSONResponse(
        content=content,
        status_code=status_code,
        media_type=JSON_MEDIA_TYPE,
        headers=NO_STORE,
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings = get_settings()
    setup_logging(settings.log_level)
    app.state.credentials = open_credential_store(settings.credential_db_path)
    async with build_client(settings) as client:
        app.state.http_client = client
        logger.info("People group lookup ready")
        yield
    logger.info("People group lookup stopped")


app = FastAPI(title="People Group Lookup", version=__version__, lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=get_settings().cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"]
)


def get_credentials(request: Request) -> CredentialProvider:
    return request.app.state.credentials


def get_http_client(request: Request) -> Optional[httpx.AsyncClient]:
    return getattr(request.app.state, "http_client", None)


Credentials = Annotated[CredentialProvider, Depends(get_credentials)]
HttpClient = Annotated[Optional[httpx.AsyncClient], Depends(get_http_client)]
AppSettings = Annotated[Settings, Depends(get_settings)]


@app.exception_handler(LookupFailure)
async def lookup_failure_handler(request: Request, exc: LookupFailure) -> JSONResponse:
    status_code = STATUS_FOR_ERROR.get(type(exc), 500)
    return json_response({"detail": exc.message}, status_code=status_code)


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    messages = []
    for error in exc.errors():
        #drop the "body"/"query" prefix, keep the field path
        location = ".".join(str(part) for part in error.get("loc", ())[1:])
        message = error.get("msg", "Invalid value")
        messages.append(f"{location}: {message}" if location else message)

    return json_response({"detail": "; ".join(messages) or "Invalid request."}, status_code=422)


def keys_status(credentials: CredentialProvider) -> KeysStatus:
    jp = credentials.get(JP_API_KEY) is not None
    anthropic = credentials.get(ANTHROPIC_API_KEY) is not None
    return KeysStatus(jp_api_key=jp, anthropic_api_key=anthropic, ready=jp and anthropic)


@app.get("/")
def manifest(credentials: Credentials) -> JSONResponse:
    payload = {
        "name": "People Group Lookup",
        "description": "Match a reported people group name to its Joshua Project record",
        "version": __version__,
        "keys_set": credentials.has_all(),
    }
    return json_response(payload)


@app.get("/healthy")
def health() -> JSONResponse:
    return json_response({"status": "ok"})


@app.get("/keys")
def get_keys(credentials: Credentials) -> JSONResponse:
    return json_response(keys_status(credentials).model_dump())


@app.put("/keys")
def put_keys(body: KeysUpdate, credentials: Credentials) -> JSONResponse:
    save_keys(credentials, body.jp_api_key, body.anthropic_api_key)
    logger.info("API keys saved")
    return json_response(keys_status(credentials).model_dump())


@app.delete("/keys", status_code=204)
def delete_keys(credentials: Credentials) -> Response:
    credentials.clear()
    logger.info("API keys cleared")
    return Response(status_code=204, headers=NO_STORE)


async def _lookup(
    query: SearchQuery,
    credentials: CredentialProvider,
    client: Optional[httpx.AsyncClient],
    settings: Settings,
) -> JSONResponse:
    outcome = await run_lookup(query, credentials=credentials, client=client, settings=settings)
    return json_response(outcome.model_dump(mode="json"))


@app.post("/lookup")
async def lookup_post(
    query: SearchQuery,
    credentials: Credentials,
    client: HttpClient,
    settings: AppSettings,
) -> JSONResponse:
    return await _lookup(query, credentials, client, settings)


#http://127.0.0.1:8000/lookup?name=Hazara&country=Afghanistan
@app.get("/lookup")
async def lookup_get(
    credentials: Credentials,
    client: HttpClient,
    settings: AppSettings,
    name: str = "",
    country: str = "",
    city: str = "",
    religion: str = "",
) -> JSONResponse:
    query = SearchQuery(reported_name=name, country=country, city=city, religion=religion)
    return await _lookup(query, credentials, client, settings)


def run() -> None:
    import uvicorn

    uvicorn.run("pg_lookup.main:app", host="127.0.0.1", port=8000)
