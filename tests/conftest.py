from __future__ import annotations

import copy
import json
import re
import uuid
from pathlib import Path
from typing import Any, Callable

import httpx
import pytest
from fastapi.testclient import TestClient
from postgrest.exceptions import APIError

from api import deps
from api.main import app
from api.rate_limit import api_limiter, login_limiter
from streamia_backend.catalog.cache import TTLCache
from streamia_backend.catalog.resolver import CatalogResolver
from streamia_backend.db.store import StoreHandle
from streamia_backend.integrations.pexels.client import PexelsClientError
from streamia_backend.mail.mailer import LoggingMailer
from streamia_backend.settings import get_settings

REPO_ROOT = Path(__file__).resolve().parents[1]

# Mirrors the unique constraints in supabase/migrations/0001_streamia_core.sql.
UNIQUE_KEYS: dict[str, list[tuple[str, ...]]] = {
    "accounts": [("email",)],
    "movies": [("external_id",)],
    "favorites": [("account_id", "movie_id")],
    "ratings": [("account_id", "movie_id")],
}

STRONG_PASSWORD = "Str0ng!Pass"

UUID_TEXT = re.compile(r"^[0-9a-fA-F]{8}-(?:[0-9a-fA-F]{4}-){3}[0-9a-fA-F]{12}$")


# --- In-memory Supabase ---


class _FakeResponse:
    def __init__(self, data: list[dict[str, Any]]) -> None:
        self.data = data
        self.error = None


def _like_to_regex(pattern: str) -> re.Pattern[str]:
    out = []
    chars = iter(pattern)
    for ch in chars:
        if ch == "\\":
            out.append(re.escape(next(chars, "\\")))
        elif ch == "%":
            out.append(".*")
        elif ch == "_":
            out.append(".")
        else:
            out.append(re.escape(ch))
    return re.compile("".join(out), re.IGNORECASE | re.DOTALL)


def _same(left: Any, right: Any) -> bool:
    if left is None or right is None:
        return False
    return str(left) == str(right)


class _FakeQuery:
    def __init__(self, db: "FakeSupabase", table: str) -> None:
        self._db = db
        self._table = table
        self._action = "select"
        self._payload: Any = None
        self._filters: list[Callable[[dict[str, Any]], bool]] = []
        self._order: tuple[str, bool] | None = None
        self._limit: int | None = None
        self._bad_uuid: str | None = None

    # builder verbs
    def select(self, *_columns: str) -> "_FakeQuery":
        self._action = "select"
        return self

    def insert(self, payload: Any) -> "_FakeQuery":
        self._action = "insert"
        self._payload = payload
        return self

    def update(self, payload: dict[str, Any]) -> "_FakeQuery":
        self._action = "update"
        self._payload = payload
        return self

    def delete(self) -> "_FakeQuery":
        self._action = "delete"
        return self

    # filters
    def eq(self, column: str, value: Any) -> "_FakeQuery":
        if column == "id" and not UUID_TEXT.match(str(value)):
            self._bad_uuid = str(value)
        self._filters.append(lambda row: _same(row.get(column), value))
        return self

    def in_(self, column: str, values: list[Any]) -> "_FakeQuery":
        wanted = {str(v) for v in values}
        self._filters.append(lambda row: row.get(column) is not None and str(row.get(column)) in wanted)
        return self

    def ilike(self, column: str, pattern: str) -> "_FakeQuery":
        regex = _like_to_regex(pattern)
        self._filters.append(lambda row: row.get(column) is not None and regex.fullmatch(str(row[column])) is not None)
        return self

    def gt(self, column: str, value: Any) -> "_FakeQuery":
        self._filters.append(lambda row: row.get(column) is not None and str(row[column]) > str(value))
        return self

    def order(self, column: str, *, desc: bool = False) -> "_FakeQuery":
        self._order = (column, desc)
        return self

    def limit(self, count: int) -> "_FakeQuery":
        self._limit = count
        return self

    def execute(self) -> _FakeResponse:
        self._db.calls.append((self._table, self._action))
        if self._db.unreachable:
            raise httpx.ConnectError("connection refused")
        if self._bad_uuid is not None:
            raise APIError(
                {
                    "code": "22P02",
                    "message": f'invalid input syntax for type uuid: "{self._bad_uuid}"',
                    "details": None,
                    "hint": None,
                }
            )
        handler = getattr(self, f"_execute_{self._action}")
        return _FakeResponse(handler())

    # actions
    def _matching(self) -> list[tuple[int, dict[str, Any]]]:
        rows = self._db.tables.setdefault(self._table, [])
        return [(i, row) for i, row in enumerate(rows) if all(f(row) for f in self._filters)]

    def _execute_select(self) -> list[dict[str, Any]]:
        matched = self._matching()
        if self._order is not None:
            column, desc = self._order
            matched.sort(key=lambda pair: (str(pair[1].get(column) or ""), pair[0]), reverse=desc)
        rows = [copy.deepcopy(row) for _, row in matched]
        return rows[: self._limit] if self._limit is not None else rows

    def _execute_insert(self) -> list[dict[str, Any]]:
        items = self._payload if isinstance(self._payload, list) else [self._payload]
        inserted = []
        for item in items:
            row = dict(item)
            row.setdefault("id", str(uuid.uuid4()))
            self._db.check_unique(self._table, row)
            self._db.tables.setdefault(self._table, []).append(row)
            inserted.append(copy.deepcopy(row))
        return inserted

    def _execute_update(self) -> list[dict[str, Any]]:
        updated = []
        for _, row in self._matching():
            candidate = {**row, **self._payload}
            self._db.check_unique(self._table, candidate, ignore_id=row["id"])
            row.update(self._payload)
            updated.append(copy.deepcopy(row))
        return updated

    def _execute_delete(self) -> list[dict[str, Any]]:
        matched = self._matching()
        doomed = {i for i, _ in matched}
        rows = self._db.tables.setdefault(self._table, [])
        self._db.tables[self._table] = [row for i, row in enumerate(rows) if i not in doomed]
        return [copy.deepcopy(row) for _, row in matched]


class FakeSupabase:
    """Enough of the supabase-py query builder for the repositories."""

    def __init__(self) -> None:
        self.tables: dict[str, list[dict[str, Any]]] = {}
        self.unreachable = False
        self.calls: list[tuple[str, str]] = []

    def table(self, name: str) -> _FakeQuery:
        return _FakeQuery(self, name)

    def rows(self, name: str) -> list[dict[str, Any]]:
        return self.tables.get(name, [])

    def writes(self) -> list[tuple[str, str]]:
        return [call for call in self.calls if call[1] != "select"]

    def check_unique(self, table: str, row: dict[str, Any], *, ignore_id: str | None = None) -> None:
        for columns in UNIQUE_KEYS.get(table, []):
            key = tuple(row.get(c) for c in columns)
            if any(v is None for v in key):
                continue
            for existing in self.tables.get(table, []):
                if existing.get("id") == ignore_id:
                    continue
                if tuple(existing.get(c) for c in columns) == key:
                    raise APIError(
                        {
                            "code": "23505",
                            "message": f"duplicate key value violates unique constraint on {table}",
                            "details": None,
                            "hint": None,
                        }
                    )


# --- Fake Pexels provider ---


class FakePexelsProvider:
    def __init__(self, videos: list[Any]) -> None:
        self.videos = videos
        self.fail = False
        self.calls = 0
        self.configured = True

    def popular_videos(self, *, per_page: int = 15, page: int = 1) -> list[Any]:
        self.calls += 1
        if self.fail:
            raise PexelsClientError("Pexels request failed with HTTP 503.", status_code=503)
        return copy.deepcopy(self.videos[:per_page])


def load_pexels_fixture() -> dict[str, Any]:
    path = REPO_ROOT / "tests" / "fixtures" / "pexels" / "popular_videos_sample.json"
    return json.loads(path.read_text(encoding="utf-8"))


# --- Fixtures ---


def _clear_caches() -> None:
    get_settings.cache_clear()
    for getter in (
        deps.get_popular_cache,
        deps.get_pexels_client,
        deps.get_catalog_resolver,
        deps.get_token_issuer,
        deps.get_mailer,
    ):
        getter.cache_clear()
    login_limiter.reset()
    api_limiter.reset()


@pytest.fixture(autouse=True)
def _test_env(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setenv("APP_ENV", "test")
    monkeypatch.setenv("JWT_SECRET", "test-secret-key")
    monkeypatch.setenv("RATE_LIMIT_ENABLED", "false")
    monkeypatch.setenv("FRONTEND_URL", "http://frontend.test")
    for name in ("SUPABASE_URL", "SUPABASE_SERVICE_ROLE_KEY", "PEXELS_API_KEY", "SMTP_HOST"):
        monkeypatch.delenv(name, raising=False)
    _clear_caches()
    yield
    _clear_caches()


@pytest.fixture
def fake_db() -> FakeSupabase:
    return FakeSupabase()


@pytest.fixture
def fake_provider() -> FakePexelsProvider:
    return FakePexelsProvider(load_pexels_fixture()["videos"])


@pytest.fixture
def resolver(fake_provider: FakePexelsProvider) -> CatalogResolver:
    return CatalogResolver(fake_provider, TTLCache(60), page_size=15)


@pytest.fixture
def mailer() -> LoggingMailer:
    return LoggingMailer()


@pytest.fixture
def client(fake_db: FakeSupabase, resolver: CatalogResolver, mailer: LoggingMailer):
    """Test client wired to the in-memory store, fake Pexels and a recording mailer."""
    app.dependency_overrides[deps.get_store_handle] = lambda: StoreHandle.connected(fake_db)
    app.dependency_overrides[deps.get_catalog_resolver] = lambda: resolver
    app.dependency_overrides[deps.get_mailer] = lambda: mailer
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def make_account(client: TestClient):
    """Register and log in an account; returns the user, token and auth headers."""

    def _make(email: str = "ana@example.com", *, first_name: str = "Ana", password: str = STRONG_PASSWORD) -> dict:
        register = client.post(
            "/api/users/register",
            json={
                "firstName": first_name,
                "lastName": "Tester",
                "age": 30,
                "email": email,
                "password": password,
                "confirmPassword": password,
            },
        )
        assert register.status_code == 201, register.text
        login = client.post("/api/users/login", json={"email": email, "password": password})
        assert login.status_code == 200, login.text
        token = login.json()["token"]
        return {
            "user": login.json()["user"],
            "token": token,
            "headers": {"Authorization": f"Bearer {token}"},
        }

    return _make
