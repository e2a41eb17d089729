from __future__ import annotations

from types import SimpleNamespace
from typing import Any

from httpx import ASGITransport, AsyncClient

from app.main import app

INTERNAL_TOKEN = "internal-secret"


class _FakeSessionContext:
    def __init__(self, session: object) -> None:
        self._session = session

    async def __aenter__(self) -> object:
        return self._session

    async def __aexit__(self, exc_type, exc, tb) -> bool:
        return False


class FakeSessionFactory:
    def __init__(self) -> None:
        self.session = object()
        self.begin_calls = 0

    def begin(self) -> _FakeSessionContext:
        self.begin_calls += 1
        return _FakeSessionContext(self.session)

    def __call__(self) -> _FakeSessionContext:
        return _FakeSessionContext(self.session)


def ladder_settings(**overrides: Any) -> SimpleNamespace:
    values: dict[str, Any] = {
        "internal_api_token": INTERNAL_TOKEN,
        "internal_api_allowlist": "127.0.0.1/32",
        "internal_api_trusted_proxies": "",
    }
    values.update(overrides)
    return SimpleNamespace(**values)


def internal_headers(*, player_id: object | None = None, admin: bool = False) -> dict[str, str]:
    headers = {"X-Internal-Token": INTERNAL_TOKEN}
    if player_id is not None:
        headers["X-Player-Id"] = str(player_id)
    if admin:
        headers["X-Admin"] = "true"
    return headers


async def send(method: str, url: str, **kwargs: Any):
    async with AsyncClient(
        transport=ASGITransport(app=app, client=("127.0.0.1", 8080)),
        base_url="http://testserver",
    ) as client:
        return await client.request(method, url, **kwargs)
