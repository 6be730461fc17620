from collections.abc import Callable, Iterator
from decimal import Decimal

import pytest
from sqlalchemy.engine import Engine
from sqlmodel import Session, SQLModel

from ..core.config import Settings
from ..core.db import create_engine_for_url
from ..services import LedgerService


@pytest.fixture
def settings() -> Settings:
    return Settings(
        lock_timeout_ms=5000,
        transfer_max_attempts=3,
        transfer_retry_backoff_ms=1,
    )


@pytest.fixture
def engine(tmp_path, settings: Settings) -> Iterator[Engine]:
    test_db = tmp_path / "ledger.db"
    engine = create_engine_for_url(f"sqlite:///{test_db}", settings.lock_timeout_ms)
    SQLModel.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def make_service(engine: Engine, settings: Settings) -> Iterator[Callable[..., LedgerService]]:
    sessions: list[Session] = []

    def _make(**kwargs) -> LedgerService:
        session = Session(engine)
        sessions.append(session)
        return LedgerService(session, settings=settings, **kwargs)

    yield _make

    for session in sessions:
        session.close()


@pytest.fixture
def service(make_service: Callable[..., LedgerService]) -> LedgerService:
    return make_service()


@pytest.fixture
def balance_of(engine: Engine, settings: Settings) -> Callable[[str], Decimal]:
    """Read a balance through a fresh session, independent of the code under test."""

    def _balance(account_id: str) -> Decimal:
        with Session(engine) as session:
            return LedgerService(session, settings=settings).get_account(account_id).balance

    return _balance
