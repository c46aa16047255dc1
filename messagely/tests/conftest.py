import os

# Keep the module-level app in messagely.main off the production database
os.environ.setdefault('DATABASE_URL', 'sqlite+aiosqlite:///./messagely-test.db')

import pytest  # noqa: E402
import pytest_asyncio  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402

from messagely import crud  # noqa: E402
from messagely.config import Settings  # noqa: E402
from messagely.main import create_app  # noqa: E402
from messagely.models import init_models  # noqa: E402

USERS = [
    {'username': 'alice', 'password': 'alicepass', 'first_name': 'Alice', 'last_name': 'Anderson', 'phone': '+14155550000'},
    {'username': 'bob', 'password': 'bobpass', 'first_name': 'Bob', 'last_name': 'Brown', 'phone': '+14155551111'},
    {'username': 'carol', 'password': 'carolpass', 'first_name': 'Carol', 'last_name': 'Clark', 'phone': '+14155552222'},
]


def public(user: dict) -> dict:
    return {k: v for k, v in user.items() if k != 'password'}


@pytest.fixture
def settings(tmp_path):
    return Settings(
        database_url=f"sqlite+aiosqlite:///{tmp_path / 'messagely.db'}",
        secret_key='test-secret',
        bcrypt_work_factor=4,
    )


@pytest_asyncio.fixture
async def app(settings):
    app = create_app(settings)
    await init_models(app.state.engine)
    yield app
    await app.state.engine.dispose()


@pytest.fixture
def db(app):
    return app.state.db


@pytest.fixture
def pwd_ctx(app):
    return app.state.pwd_ctx


@pytest.fixture
def tokens(app):
    return app.state.tokens


@pytest_asyncio.fixture
async def client(app):
    async with AsyncClient(transport=ASGITransport(app=app), base_url='http://test') as ac:
        yield ac


@pytest_asyncio.fixture
async def users(db, pwd_ctx):
    """alice, bob and carol registered through the credential store."""
    for user in USERS:
        await crud.register(db, pwd_ctx, **user)
    return {u['username']: u for u in USERS}


@pytest.fixture
def auth(tokens):
    def _headers(username: str) -> dict:
        return {'Authorization': f'Bearer {tokens.issue(username)}'}
    return _headers
