import pytest
from unittest.mock import MagicMock
from fastapi.testclient import TestClient

from dota_cup.main import app
from dota_cup.routes.dependencies import (
    get_bracket_service,
    get_current_user_id,
    get_team_service,
    get_tournament_service,
    get_user_service,
)
from dota_cup.services.bracket_service import BracketService
from dota_cup.services.team_service import TeamService
from dota_cup.services.tournament_service import TournamentService
from dota_cup.services.user_service import UserService

MOCK_USER_ID = "organizer_123"


@pytest.fixture
def client():
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def logged_in():
    """Overrides the session lookup; tests may change the returned id."""
    state = {"user_id": MOCK_USER_ID}
    app.dependency_overrides[get_current_user_id] = lambda: state["user_id"]
    return state


@pytest.fixture
def mock_tournament_service():
    mock = MagicMock(spec=TournamentService)
    app.dependency_overrides[get_tournament_service] = lambda: mock
    return mock


@pytest.fixture
def mock_bracket_service():
    mock = MagicMock(spec=BracketService)
    app.dependency_overrides[get_bracket_service] = lambda: mock
    return mock


@pytest.fixture
def mock_user_service():
    mock = MagicMock(spec=UserService)
    app.dependency_overrides[get_user_service] = lambda: mock
    return mock


@pytest.fixture
def mock_team_service():
    mock = MagicMock(spec=TeamService)
    app.dependency_overrides[get_team_service] = lambda: mock
    return mock
