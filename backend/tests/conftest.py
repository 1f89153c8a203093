from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any

import httpx
import pytest
from fastapi.testclient import TestClient

from garden_gateway.auth import IdentityVerifier
from garden_gateway.config import Settings
from garden_gateway.main import create_app
from garden_gateway.ratelimit import build_limiter
from garden_gateway.services.data_store import SupabaseDataStore
from garden_gateway.services.search_cache import SearchCache
from garden_gateway.services.species_client import SpeciesLookupClient
from garden_gateway.services.weather_client import WeatherClient

SUPABASE_URL = "https://db.example.test"
SERVICE_KEY = "service-role-key"
TREFLE_TOKEN = "trefle-token"
OPENWEATHER_KEY = "openweather-key"

ALICE_TOKEN = "token-alice"
BOB_TOKEN = "token-bob"
ALICE = "user-alice"
BOB = "user-bob"


class FakeClock:
    def __init__(self, now: float = 1_000.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakeIdentityService:
    """Stands in for GET /auth/v1/user."""

    def __init__(self) -> None:
        self.users = {ALICE_TOKEN: ALICE, BOB_TOKEN: BOB}
        self.calls = 0
        self.fail_with: int | Exception | None = None
        self.transport = httpx.MockTransport(self.handle)

    def handle(self, request: httpx.Request) -> httpx.Response:
        self.calls += 1
        if isinstance(self.fail_with, Exception):
            raise self.fail_with
        if self.fail_with is not None:
            return httpx.Response(self.fail_with, json={"msg": "upstream down"})
        assert request.headers["apikey"] == SERVICE_KEY
        token = request.headers.get("Authorization", "").removeprefix("Bearer ")
        user_id = self.users.get(token)
        if user_id is None:
            return httpx.Response(401, json={"msg": "invalid JWT"})
        return httpx.Response(200, json={"id": user_id, "aud": "authenticated"})


class FakePostgrest:
    """In-memory PostgREST: equality filters, select, order, insert, delete."""

    def __init__(self) -> None:
        self.tables: dict[str, list[dict[str, Any]]] = {"user_plants": [], "user_tasks": []}
        self.requests: list[httpx.Request] = []
        self.fail_with: int | None = None
        self._next_id = 1
        self.transport = httpx.MockTransport(self.handle)

    def handle(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.fail_with is not None:
            return httpx.Response(self.fail_with, json={"message": "relation does not exist"})

        table = request.url.path.rsplit("/", 1)[-1]
        rows = self.tables.setdefault(table, [])
        params = dict(request.url.params)
        select = params.pop("select", None)
        order = params.pop("order", None)
        filters = {column: value.removeprefix("eq.") for column, value in params.items()}

        def matches(row: dict[str, Any]) -> bool:
            return all(str(row.get(column)) == value for column, value in filters.items())

        if request.method == "GET":
            found = [row for row in rows if matches(row)]
            if order:
                column, _, direction = order.partition(".")
                found.sort(key=lambda row: row.get(column), reverse=direction == "desc")
            columns = select.split(",") if select else None
            if columns:
                found = [{column: row.get(column) for column in columns} for row in found]
            return httpx.Response(200, json=found)
        if request.method == "POST":
            for new_row in json.loads(request.content):
                row = dict(new_row)
                if table == "user_tasks":
                    row["id"] = self._next_id
                    row["created_at"] = f"2025-01-01T00:00:{self._next_id:02d}+00:00"
                    self._next_id += 1
                rows.append(row)
            return httpx.Response(201)
        if request.method == "DELETE":
            self.tables[table] = [row for row in rows if not matches(row)]
            return httpx.Response(204)
        return httpx.Response(405)


class FakeTrefle:
    def __init__(self) -> None:
        self.calls: list[httpx.Request] = []
        self.species = [
            {
                "id": 1,
                "common_name": "Tomato",
                "scientific_name": "Solanum lycopersicum",
                "image_url": "https://img.example.test/tomato.jpg",
                "family": "Solanaceae",
            },
            {"id": 2, "common_name": None, "scientific_name": "Solanum peruvianum"},
        ]
        self.fail_with: int | Exception | None = None
        self.transport = httpx.MockTransport(self.handle)

    def handle(self, request: httpx.Request) -> httpx.Response:
        self.calls.append(request)
        if isinstance(self.fail_with, Exception):
            raise self.fail_with
        if self.fail_with is not None:
            return httpx.Response(self.fail_with, text="quota exceeded for token trefle-token")
        return httpx.Response(200, json={"data": self.species, "meta": {"total": len(self.species)}})


class FakeOpenWeather:
    def __init__(self) -> None:
        self.calls: list[httpx.Request] = []
        self.daily_entries = 10
        self.fail_with: int | Exception | None = None
        self.transport = httpx.MockTransport(self.handle)

    def handle(self, request: httpx.Request) -> httpx.Response:
        self.calls.append(request)
        if isinstance(self.fail_with, Exception):
            raise self.fail_with
        if self.fail_with is not None:
            return httpx.Response(self.fail_with, json={"cod": 401, "message": "Invalid API key"})
        return httpx.Response(
            200,
            json={
                "lat": float(request.url.params["lat"]),
                "lon": float(request.url.params["lon"]),
                "current": {"temp": 18.5, "humidity": 60},
                "daily": [{"dt": 1_700_000_000 + day * 86_400, "temp": {"day": 20 + day}} for day in range(self.daily_entries)],
            },
        )


@dataclass
class Gateway:
    client: TestClient
    identity: FakeIdentityService
    db: FakePostgrest
    trefle: FakeTrefle
    weather: FakeOpenWeather
    clock: FakeClock
    cache: SearchCache
    settings: Settings

    def as_user(self, token: str) -> dict[str, str]:
        return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def settings(tmp_path) -> Settings:
    return Settings(
        environment="test",
        supabase_url=SUPABASE_URL,
        supabase_service_role_key=SERVICE_KEY,
        trefle_api_token=TREFLE_TOKEN,
        openweather_api_key=OPENWEATHER_KEY,
        static_dir=str(tmp_path / "dist"),
        log_level="WARNING",
        log_json=False,
    )


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def gateway(settings: Settings, clock: FakeClock) -> Gateway:
    identity = FakeIdentityService()
    db = FakePostgrest()
    trefle = FakeTrefle()
    weather = FakeOpenWeather()
    cache = SearchCache(ttl_seconds=300, clock=clock)
    app = create_app(
        settings,
        identity_verifier=IdentityVerifier(SUPABASE_URL, SERVICE_KEY, transport=identity.transport),
        data_store=SupabaseDataStore(SUPABASE_URL, SERVICE_KEY, transport=db.transport),
        species_client=SpeciesLookupClient(TREFLE_TOKEN, transport=trefle.transport),
        weather_client=WeatherClient(OPENWEATHER_KEY, transport=weather.transport),
        search_cache=cache,
        rate_limiter=build_limiter(max_requests=1_000),
    )
    return Gateway(
        client=TestClient(app),
        identity=identity,
        db=db,
        trefle=trefle,
        weather=weather,
        clock=clock,
        cache=cache,
        settings=settings,
    )
