"""Shared fixtures for the copy-check tests."""

from types import SimpleNamespace

import pytest
from fastapi.testclient import TestClient

from copycheck import models, ratelimit
from copycheck.main import app
from copycheck.schemas import Brand, Constraints, CopyCheckRequest


class FakeCompletions:
    """Stands in for ``client.chat.completions``; replies are consumed in order."""

    def __init__(self, replies):
        self.replies = list(replies)
        self.calls = []

    async def create(self, **kwargs):
        self.calls.append(kwargs)
        reply = self.replies.pop(0)
        if isinstance(reply, Exception):
            raise reply
        message = SimpleNamespace(content=reply)
        return SimpleNamespace(choices=[SimpleNamespace(message=message)])


def make_fake_client(*replies):
    completions = FakeCompletions(replies)
    return SimpleNamespace(chat=SimpleNamespace(completions=completions))


@pytest.fixture(autouse=True)
def _isolate(monkeypatch):
    monkeypatch.delenv("OPENAI_API_KEY", raising=False)
    monkeypatch.delenv("OPENAI_MODEL", raising=False)
    monkeypatch.setattr(models, "_client", None)
    monkeypatch.setattr(models, "_client_settings", None)
    ratelimit.get_limiter().reset()


@pytest.fixture
def client():
    return TestClient(app)


@pytest.fixture
def fake_model(monkeypatch):
    """Installs a fake OpenAI client answering with ``replies``; returns its completions."""

    def install(*replies):
        fake = make_fake_client(*replies)
        monkeypatch.setattr(models, "get_client", lambda: fake)
        return fake.chat.completions

    return install


def make_request(text="Hello world", max_chars=280, **kwargs) -> CopyCheckRequest:
    constraints = Constraints(
        max_chars=max_chars,
        max_hashtags=kwargs.pop("max_hashtags", None),
        require_cta=kwargs.pop("require_cta", False),
    )
    brand = Brand(
        banned_words=kwargs.pop("banned_words", []),
        required_phrases=kwargs.pop("required_phrases", []),
    )
    return CopyCheckRequest(
        text=text,
        platform=kwargs.pop("platform", "Instagram"),
        asset_type=kwargs.pop("asset_type", "Design"),
        constraints=constraints,
        brand=brand,
    )
