# tests/conftest.py

import os
import tempfile
from datetime import datetime

# окружение до импорта posapp: отдельная база и логи во временном каталоге
_TMP_DIR = tempfile.mkdtemp(prefix="posapp-tests-")
os.environ["DATABASE_URL"] = f"sqlite+aiosqlite:///{os.path.join(_TMP_DIR, 'test.db')}"
os.environ["LOG_DIR"] = os.path.join(_TMP_DIR, "log")
os.environ["LOG_PRINT"] = "0"
os.environ["TIMEZONE"] = "UTC"

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from posapp.main import app
from posapp.utils.database import AsyncSessionLocal, Base, engine
from posapp.utils.order_id import SequenceOrderIdGenerator

from helpers import FIXED_NOW, FrozenClock, sale_payload


@pytest_asyncio.fixture
async def client():
    """HTTP-клиент поверх приложения с запущенным lifespan и чистой базой."""
    async with app.router.lifespan_context(app):
        app.state.clock = FrozenClock(FIXED_NOW)
        app.state.id_generator = SequenceOrderIdGenerator()
        async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
            yield ac
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.drop_all)


@pytest.fixture
def clock(client) -> FrozenClock:
    return app.state.clock


@pytest_asyncio.fixture
async def db_session(client):
    async with AsyncSessionLocal() as session:
        yield session


@pytest.fixture
def place_order(client, clock):
    """Создаёт заказ через API в момент `at` и возвращает его данные."""

    async def _place(at: datetime = FIXED_NOW, **kwargs) -> dict:
        clock.now = at
        response = await client.post("/orders", json=sale_payload(**kwargs))
        assert response.status_code in (200, 201), response.text
        return response.json()["data"]

    return _place
