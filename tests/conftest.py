"""Shared pytest fixtures for bet-settlement-api tests."""
import sys
from pathlib import Path
from datetime import date, timedelta
from typing import Generator
import uuid

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, Session

# Add project root to Python path
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from tests.factories import final_game, make_bet, make_game, make_leg, store_games


@pytest.fixture(scope="function")
def db_engine(tmp_path):
    """
    Engine on a throwaway sqlite file.

    A file (rather than :memory:) lets lookups running in worker threads open
    their own connections and still see the same data.
    """
    from betsettle.models import Base

    engine = create_engine(
        f"sqlite:///{tmp_path / 'bets.db'}",
        connect_args={"check_same_thread": False}
    )
    Base.metadata.create_all(bind=engine)

    yield engine

    engine.dispose()


@pytest.fixture(scope="function")
def session_factory(db_engine) -> sessionmaker:
    return sessionmaker(bind=db_engine)


@pytest.fixture(scope="function")
def db_session(session_factory) -> Generator[Session, None, None]:
    """Create fresh test database session with an isolated database."""
    session = session_factory()

    yield session

    session.close()


@pytest.fixture
def sample_games(db_session: Session):
    """
    A small NFL slate stored in the test database.

    - g1: BUF BILLS @ KC CHIEFS, final 24-20
    - g2: PHI EAGLES @ DAL COWBOYS, final 17-27
    - g3: GB PACKERS @ SF 49ERS, in progress
    """
    games = [
        final_game("g1", "KC CHIEFS", "BUF BILLS", 24, 20, date(2024, 1, 21)),
        final_game("g2", "DAL COWBOYS", "PHI EAGLES", 17, 27, date(2024, 1, 14)),
        make_game("g3", "SF 49ERS", "GB PACKERS", date(2024, 1, 20), 14, 10, period=3, clock="8:12"),
    ]
    store_games(db_session, games)
    return games


@pytest.fixture
def recent_game(db_session: Session):
    """A final game dated yesterday, for lookups anchored on the real clock."""
    game = final_game(
        "recent1", "NY JETS", "MIA DOLPHINS", 21, 13,
        game_date=date.today() - timedelta(days=1),
    )
    store_games(db_session, [game])
    return game


@pytest.fixture
def stored_bets(db_session: Session, sample_games):
    """
    Bets for two bettors stored in the test database.

    sydney: moneyline KC (Won), spread DAL -3.5 (Lost), 2-leg parlay (Won)
    jordan: total over 44 on g1 (Push), moneyline on an unmatched game
    """
    from betsettle.repositories import BetRepository

    parlay_id = str(uuid.uuid4())
    repo = BetRepository(db_session)
    repo.add(make_bet("moneyline", "KC", stake=100, odds=-110, game_id="g1", id="b1"))
    repo.add(make_bet("spread", "DAL", stake=50, odds=-110, line=-3.5, game_id="g2", id="b2"))
    repo.add(
        make_bet("parlay", "parlay", stake=20, odds=264, game_id=None, parlay_id=parlay_id, id="b3"),
        [
            make_leg(parlay_id, "moneyline", "KC", -110, game_id="g1"),
            make_leg(parlay_id, "moneyline", "PHI", -110, game_id="g2"),
        ],
    )
    repo.add(make_bet("total", "over", stake=40, odds=-110, line=44, game_id="g1", bettor="jordan", id="b4"))
    repo.add(make_bet("moneyline", "NYG", stake=25, odds=150, game_id=None, bettor="jordan", id="b5"))
    db_session.commit()
    return parlay_id


@pytest.fixture
def test_client(db_session):
    """
    Create FastAPI TestClient with a fresh database for each test.

    The app lifespan is not entered, so nothing touches the configured
    DATABASE_URL; every request uses the test session.

    Usage:
        def test_endpoint(test_client):
            response = test_client.get("/api/bets")
            assert response.status_code == 200
    """
    from fastapi.testclient import TestClient
    from betsettle.main import app
    from betsettle.core.database import get_db

    def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    client = TestClient(app)

    yield client

    app.dependency_overrides.clear()
