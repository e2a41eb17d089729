from __future__ import annotations

from types import SimpleNamespace

import pytest
from fastapi.testclient import TestClient

from app import main as app_main


def _settings(*, enable_openapi_docs: bool) -> SimpleNamespace:
    return SimpleNamespace(
        log_level="INFO",
        app_env="test",
        enable_openapi_docs=enable_openapi_docs,
    )


@pytest.mark.parametrize(
    ("enabled", "expected_status"),
    [(True, 200), (False, 404)],
)
def test_openapi_docs_follow_settings(monkeypatch, enabled: bool, expected_status: int) -> None:
    monkeypatch.setattr(app_main, "get_settings", lambda: _settings(enable_openapi_docs=enabled))
    client = TestClient(app_main.create_app())

    for path in ("/docs", "/redoc", "/openapi.json"):
        assert client.get(path).status_code == expected_status


def test_openapi_schema_lists_ladder_routes(monkeypatch) -> None:
    monkeypatch.setattr(app_main, "get_settings", lambda: _settings(enable_openapi_docs=True))
    client = TestClient(app_main.create_app())

    paths = client.get("/openapi.json").json()["paths"]

    assert "/internal/ladder/rounds/{round_id}/close" in paths
    assert "/internal/ladder/tournaments/{tournament_id}/rankings" in paths
    assert "/internal/ladder/groups/{group_id}/schedule" in paths
