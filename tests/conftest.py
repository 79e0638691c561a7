import random
from datetime import datetime, timedelta

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine

from telugu_learning.database import get_db, init_db
from telugu_learning.main import app
from telugu_learning.routes import games
from telugu_learning.routes.deps import get_rng
from telugu_learning.schemas.letters import LetterEntry
from telugu_learning.services.catalog_service import LetterCatalog, load_catalog
from telugu_learning.services.progress_store import ProgressStore


class FakeClock:
    """Callable clock that only moves when told to"""

    def __init__(self, start: datetime):
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> datetime:
        self.now += timedelta(**kwargs)
        return self.now


def make_letter(letter_id: str, transliteration: str, tier: int = 1, category: str = "consonant") -> LetterEntry:
    return LetterEntry(
        id=letter_id,
        glyph=f"<{letter_id}>",
        transliteration=transliteration,
        category=category,
        difficulty_tier=tier
    )


@pytest.fixture
def catalog() -> LetterCatalog:
    return load_catalog()


@pytest.fixture
def rng() -> random.Random:
    return random.Random(1234)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock(datetime(2024, 3, 10, 9, 30, 0))


@pytest.fixture
async def engine(tmp_path):
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'test.db'}")
    await init_db(engine)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(engine, expire_on_commit=False)


@pytest.fixture
async def db(session_factory):
    async with session_factory() as session:
        yield session


@pytest.fixture
def store(db) -> ProgressStore:
    return ProgressStore(db)


@pytest.fixture
async def client(session_factory, rng):
    async def override_get_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_rng] = lambda: rng
    games._sessions.clear()
    games._last_seen.clear()

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as c:
        yield c

    app.dependency_overrides.clear()
    games._sessions.clear()
    games._last_seen.clear()
