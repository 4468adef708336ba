"""Pytest configuration and fixtures."""

import pytest

from secretfriend import create_app
from secretfriend.extensions import db
from secretfriend.services.stores import DrawStore, JsonFileDrawStore, SqlDrawStore, StoreError


TEST_CONFIG = {
    "TESTING": True,
    "SECRET_KEY": "test-secret",
    "SQLALCHEMY_DATABASE_URI": "sqlite://",
    "WTF_CSRF_ENABLED": False,
    "DRAW_STORE": "sql",
    "PUBLIC_BASE_URL": "",
    "WHATSAPP_COUNTRY_CODE": "55",
    "ASSIGNMENT_ENC_KEY": "",
    # caplog listens on the root logger
    "LOG_PROPAGATE": True,
}


class FailingStore(DrawStore):
    """Store whose writes always fail and which never finds anything."""

    def __init__(self):
        super().__init__()
        self.saved = []

    def save(self, draw):
        self.saved.append(draw)
        raise StoreError("disk full")

    def find_by_id(self, draw_id):
        return None

    def find_by_token(self, token):
        return None

    def mark_sent(self, token):
        return False

    def mark_opened(self, token):
        return False

    def list_draws(self):
        return []


def _make_app(store=None):
    app = create_app(TEST_CONFIG, store=store)
    ctx = app.app_context()
    ctx.push()
    db.create_all()
    return app, ctx


def _teardown(ctx):
    db.session.remove()
    db.drop_all()
    ctx.pop()


@pytest.fixture
def app():
    app, ctx = _make_app()
    yield app
    _teardown(ctx)


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def json_app(tmp_path):
    app, ctx = _make_app(store=JsonFileDrawStore(tmp_path / "data" / "draws.json"))
    yield app
    _teardown(ctx)


@pytest.fixture
def failing_app():
    app, ctx = _make_app(store=FailingStore())
    yield app
    _teardown(ctx)


@pytest.fixture(params=["sql", "json"])
def make_store(request, app, tmp_path):
    """Factory building either store kind; `ttl` is passed through."""
    def factory(ttl=None):
        if request.param == "sql":
            return SqlDrawStore(ttl=ttl)
        return JsonFileDrawStore(tmp_path / "draws.json", ttl=ttl)
    factory.kind = request.param
    return factory


@pytest.fixture
def store(make_store):
    return make_store()


@pytest.fixture
def three_people():
    return [
        {"name": "Ana", "contact": "111"},
        {"name": "Bruno", "contact": "222"},
        {"name": "Clara", "contact": "333"},
    ]
