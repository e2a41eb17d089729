from __future__ import annotations

import pytest

from app.api.routes import internal_ladder, internal_ladder_players
from tests.api.ladder_helpers import FakeSessionFactory, ladder_settings


@pytest.fixture
def fake_sessions(monkeypatch) -> FakeSessionFactory:
    factory = FakeSessionFactory()
    for module in (internal_ladder, internal_ladder_players):
        monkeypatch.setattr(module, "get_settings", lambda: ladder_settings())
        monkeypatch.setattr(module, "SessionLocal", factory)
    return factory
