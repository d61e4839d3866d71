import os
from typing import Any, Dict, List, Optional, Sequence

# Keep app startup away from the on-disk default database
os.environ.setdefault("DATABASE_URL", "sqlite:///:memory:")

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402
from sqlmodel import Session, SQLModel, create_engine  # noqa: E402

from courtdraw.database import get_session  # noqa: E402
from courtdraw.main import app  # noqa: E402
from courtdraw.models.team import Team  # noqa: E402
from courtdraw.models.tournament import Tournament  # noqa: E402
from courtdraw.services.tournament_service import merge_settings  # noqa: E402

TEST_DATABASE_URL = "sqlite:///:memory:"

# ============================================================================
# Test Database Setup with StaticPool
# ============================================================================
# 1. Use sqlite:///:memory: with StaticPool so ALL sessions share same DB
# 2. check_same_thread=False required for TestClient/threaded access
# 3. All models MUST be imported before create_all() (see session_fixture)
# 4. App dependency overridden to use test_engine (see client_fixture)
test_engine = create_engine(
    TEST_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)


def override_get_session():
    """Override session to use test engine"""
    with Session(test_engine) as session:
        yield session


@pytest.fixture(name="session", scope="function")
def session_fixture():
    """Provide a test database session

    With StaticPool + :memory:, all sessions share the same database and data
    persists across tests in the same run. Tests scope their queries by
    tournament id.
    """
    from courtdraw.models.group import Group, GroupTeam  # noqa: F401
    from courtdraw.models.match import Match, MatchSet  # noqa: F401
    from courtdraw.models.standing import Standing  # noqa: F401

    SQLModel.metadata.create_all(test_engine)

    with Session(test_engine) as session:
        yield session


@pytest.fixture(name="client")
def client_fixture(session: Session):
    """Provide a test client with overridden database session"""
    app.dependency_overrides[get_session] = override_get_session

    with TestClient(app) as client:
        yield client

    app.dependency_overrides.clear()


@pytest.fixture
def make_tournament(session: Session):
    """
    Factory: persist a tournament with ``team_count`` teams named "Team 1".."Team N".

    ``seeds`` (optional) gives each team's seed in creation order; None entries
    leave a team unseeded.
    """

    def _make(
        tournament_format: str,
        team_count: int,
        settings: Optional[Dict[str, Any]] = None,
        seeds: Optional[Sequence[Optional[int]]] = None,
        status: str = "registration",
    ):
        tournament = Tournament(
            name=f"{tournament_format} x{team_count}",
            format=tournament_format,
            status=status,
            max_teams=max(team_count, 2),
            settings=merge_settings(settings),
        )
        session.add(tournament)
        session.commit()
        session.refresh(tournament)

        teams: List[Team] = []
        for i in range(team_count):
            seed = seeds[i] if seeds is not None else None
            team = Team(tournament_id=tournament.id, name=f"Team {i + 1}", seed=seed)
            session.add(team)
            teams.append(team)
        session.commit()
        for team in teams:
            session.refresh(team)
        return tournament, teams

    return _make
