from __future__ import annotations

from pathlib import Path

import pytest

from quill.core.database import build_engine, build_session_factory, init_db
from quill.models import User
from quill.services.user_service import insert_user


@pytest.fixture
async def engine(tmp_path: Path):
    engine = build_engine(f"sqlite+aiosqlite:///{tmp_path / 'quill.db'}", echo=False)
    await init_db(engine)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return build_session_factory(engine)


@pytest.fixture
async def db(session_factory):
    async with session_factory() as session:
        yield session


@pytest.fixture
async def author(db) -> User:
    result = await insert_user(db, {"username": "alice", "email": "alice@example.com"})
    return result.unwrap()


@pytest.fixture
async def reader(db) -> User:
    result = await insert_user(db, {"username": "bob", "email": "bob@example.com", "is_member": True})
    return result.unwrap()
