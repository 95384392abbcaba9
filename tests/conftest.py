from __future__ import annotations

import dataclasses
import json
from pathlib import Path
from types import SimpleNamespace
from typing import Any

import pytest
from fastapi.testclient import TestClient

from bistro import config as config_module
from bistro.db import sqlite as db
from bistro.services import images, receipt_pdf


class FakeCompletions:
    """Stands in for client.chat.completions; replies are consumed in order."""

    def __init__(self, replies: list[Any]):
        self.replies = list(replies)
        self.calls: list[dict[str, Any]] = []

    def create(self, **kwargs):
        self.calls.append(kwargs)
        reply = self.replies.pop(0) if self.replies else ""
        if isinstance(reply, Exception):
            raise reply
        if not isinstance(reply, str):
            reply = json.dumps(reply)
        return SimpleNamespace(choices=[SimpleNamespace(message=SimpleNamespace(content=reply))])


class FakeImages:
    def __init__(self, b64: str | None = None, url: str | None = None):
        self.b64 = b64
        self.url = url
        self.calls: list[dict[str, Any]] = []

    def generate(self, **kwargs):
        self.calls.append(kwargs)
        return SimpleNamespace(data=[SimpleNamespace(b64_json=self.b64, url=self.url)])


class FakeClient:
    def __init__(self, replies: list[Any] | None = None, image_b64: str | None = None):
        self.completions = FakeCompletions(replies or [])
        self.chat = SimpleNamespace(completions=self.completions)
        self.images = FakeImages(b64=image_b64)


@pytest.fixture
def tmp_settings(tmp_path: Path, monkeypatch):
    """Point every module that touches disk at a throwaway directory."""
    s = dataclasses.replace(
        config_module.settings,
        db_path=str(tmp_path / "data" / "products.sqlite"),
        uploads_dir=str(tmp_path / "uploads"),
        export_dir=str(tmp_path / "exports"),
        server_url="http://testserver",
        image_max_width=1280,
    )
    for module in (db, images, receipt_pdf):
        monkeypatch.setattr(module, "settings", s)
    db.init_db()
    return s


@pytest.fixture
def ai_config():
    return dataclasses.replace(
        config_module.AIConfig.from_settings(config_module.settings),
        api_key="test-key",
    )


@pytest.fixture
def client(tmp_settings):
    from bistro.web.main import app

    original = app.state.ai_config
    with TestClient(app) as c:
        yield c
    app.state.ai_config = original
    app.dependency_overrides.clear()


@pytest.fixture
def fake_ai(client, ai_config):
    """Enable AI routes with a fake provider; set `.completions.replies` per test."""
    from bistro.web.main import app, get_ai_client

    fake = FakeClient()
    app.state.ai_config = ai_config
    app.dependency_overrides[get_ai_client] = lambda: fake
    return fake


@pytest.fixture
def make_product(tmp_settings):
    def _make(**overrides) -> dict[str, Any]:
        data = {
            "name": "Salmon Bowl",
            "category": "Lunch",
            "price": 18.99,
            "description": "Grilled salmon with rice and avocado",
        }
        data.update(overrides)
        ok, product = db.create_product(data)
        assert ok, product
        return product

    return _make


@pytest.fixture
def fake_client():
    return FakeClient()
