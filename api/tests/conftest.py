import pytest
from sqlalchemy.pool import StaticPool
from sqlmodel import create_engine
from fastapi.testclient import TestClient

from studywithme.core.database import init_db
from studywithme.main import create_app
from studywithme.services.event_service import EventEmitter
from studywithme.services.flashcard_service import FlashcardService
from studywithme.services.quiz_service import QuizService
from studywithme.services.reward_service import RewardService
from studywithme.services.storage_service import SnapshotStorage

# 2026-01-01T00:00:00Z
START_MS = 1767225600000


class FakeClock:
    """Controllable epoch-millisecond clock."""

    def __init__(self, now: int = START_MS):
        self.now = now

    def __call__(self) -> int:
        return self.now

    def advance(self, ms: int) -> None:
        self.now += ms


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    init_db(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def storage(engine):
    return SnapshotStorage(engine)


@pytest.fixture
def rewards(storage, clock):
    return RewardService(storage, clock=clock)


@pytest.fixture
def flashcard_service(storage, rewards, clock):
    return FlashcardService(storage, events=EventEmitter("flashcards"), rewards=rewards, clock=clock)


@pytest.fixture
def quiz_service(storage, rewards, clock):
    return QuizService(storage, events=EventEmitter("quizzes"), rewards=rewards, clock=clock)


@pytest.fixture
def client(engine, clock):
    app = create_app(bind=engine, clock=clock)
    with TestClient(app) as test_client:
        yield test_client
