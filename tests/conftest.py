"""Shared fixtures: a file-backed SQLite ledger and a scripted inference provider."""

import asyncio
from typing import Any, Optional

import pytest
from sqlalchemy import event
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine
from sqlalchemy.pool import NullPool

from journal.app.core.cache import reset_store
from journal.app.db.base import Base
from journal.app.db.crud import apply_subscription_state, create_user
from journal.app.db import models  # noqa: F401 - import to register models
from journal.app.providers.base import BaseProvider
from journal.app.services.completion_cache import reset_completion_cache


def _sqlite_url_from_absolute_path(path: str) -> str:
    return f"sqlite+aiosqlite:////{path.lstrip('/')}"


@pytest.fixture
def engine(tmp_path):
    engine = create_async_engine(
        _sqlite_url_from_absolute_path(str(tmp_path / "journal_test.db")),
        poolclass=NullPool,
        connect_args={"timeout": 30},
    )

    # Take the write lock at BEGIN so concurrent writers queue instead of
    # failing on lock upgrade.
    @event.listens_for(engine.sync_engine, "connect")
    def do_connect(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(engine.sync_engine, "begin")
    def do_begin(conn):
        conn.exec_driver_sql("BEGIN IMMEDIATE")

    async def init_db() -> None:
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    asyncio.run(init_db())
    yield engine
    asyncio.run(engine.dispose())


@pytest.fixture
def session_maker(engine):
    return async_sessionmaker(engine, expire_on_commit=False, autoflush=False)


@pytest.fixture
def add_user(session_maker):
    """Async factory creating a user, optionally moved to another tier/balance."""

    async def _add_user(
        user_id: str = "user-1",
        tier: str = "free",
        remaining: Optional[int] = None,
        total: Optional[int] = None,
        **values: Any,
    ):
        async with session_maker() as session:
            user = await create_user(session, user_id, f"{user_id}@example.com", name="Reader")
            updates = dict(values)
            if tier != "free":
                updates["tier"] = tier
            if total is not None:
                updates["ai_credits_total"] = total
            if remaining is not None:
                updates["ai_credits_remaining"] = remaining
            if updates:
                await apply_subscription_state(session, user_id, updates)
            return user

    return _add_user


@pytest.fixture(autouse=True)
def reset_singletons():
    reset_store()
    reset_completion_cache()
    yield
    reset_store()
    reset_completion_cache()


class ScriptedProvider(BaseProvider):
    """Returns queued contents in order; queued exceptions are raised instead."""

    def __init__(self, responses: list):
        super().__init__("http://scripted.provider", "test-key")
        self.responses = responses
        self.calls: list[dict] = []

    async def chat_completion(self, payload: dict) -> dict:
        self.calls.append(payload)
        item = self.responses.pop(0)
        if isinstance(item, BaseException):
            raise item
        return {"choices": [{"message": {"role": "assistant", "content": item}}]}

    async def health_check(self, timeout: float = 2.0) -> bool:
        return True


@pytest.fixture
def scripted_provider():
    return ScriptedProvider


# A complete Czech summary: well over 200 characters, ends with a period.
COMPLETE_CS = (
    "Kniha sleduje osud mladého učitele, který přichází do malé horské vesnice "
    "a postupně odhaluje tajemství jejích obyvatel. Autor staví příběh na kontrastu "
    "mezi tichou přírodou a napětím mezi lidmi. Hlavní postavy jsou vykresleny "
    "s porozuměním a jejich rozhodnutí mají jasné důsledky. Dílo se zabývá tématy "
    "viny, odpuštění a hledání domova. Závěr nechává čtenáři prostor k zamyšlení "
    "nad tím, co znamená patřit někam."
)

STUDY_GUIDE_CS = (
    "# Horská vesnice\n\n"
    "## Základní informace\n\n"
    "Román z poloviny dvacátého století zasazený do odlehlé horské krajiny.\n\n"
    "## Děj\n\n"
    "Mladý učitel přichází do vesnice a postupně odhaluje minulost jejích obyvatel.\n\n"
    "## Témata a motivy\n\n"
    "Vina, odpuštění a hledání domova provázejí celé dílo od začátku do konce."
)


@pytest.fixture
def complete_cs():
    return COMPLETE_CS


@pytest.fixture
def study_guide_cs():
    return STUDY_GUIDE_CS
