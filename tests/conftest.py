import itertools
import os
import tempfile

_tmp_dir = tempfile.mkdtemp(prefix="zk_memory_tests_")
os.environ["DATABASE_URL"] = f"sqlite+aiosqlite:///{os.path.join(_tmp_dir, 'test.sqlite3')}"
os.environ["PEPPER_DATA"] = "test-pepper"
os.environ["PROOF_VERIFIER"] = "accept_all"
os.environ["DECK_SIZE"] = "4"
os.environ["GAME_HUB"] = "log"
os.environ["LOG_LEVEL"] = "DEBUG"

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402

from zk_memory.authentication.basic_authentication import BasicAuthentication  # noqa: E402
from zk_memory.client.deck import CommittedDeck  # noqa: E402
from zk_memory.dependencies import get_game_hub  # noqa: E402
from zk_memory.domain.commitment import commit  # noqa: E402
from zk_memory.main import app  # noqa: E402
from zk_memory.services.game_hub import GameHub  # noqa: E402

PLAYERS = {"alice": "alice-pw", "bob": "bob-pw", "carol": "carol-pw"}


class RecordingGameHub(GameHub):
    def __init__(self):
        self.events = []

    async def start_game(self, session_id, player1, player2, player1_stake, player2_stake):
        self.events.append(("start_game", session_id, player1, player2, player1_stake, player2_stake))

    async def end_game(self, session_id, player1_won):
        self.events.append(("end_game", session_id, player1_won))

    async def game_updated(self, session_id):
        self.events.append(("game_updated", session_id))

    def named(self, name):
        return [event for event in self.events if event[0] == name]


@pytest.fixture(scope="session")
def client():
    with TestClient(app) as test_client:
        basic_auth = BasicAuthentication()
        for username, password in PLAYERS.items():
            test_client.portal.call(basic_auth.store_user_data, username, password)
        yield test_client


@pytest.fixture
def hub():
    recording_hub = RecordingGameHub()
    app.dependency_overrides[get_game_hub] = lambda: recording_hub
    yield recording_hub
    app.dependency_overrides.pop(get_game_hub, None)


_session_ids = itertools.count(1000)


@pytest.fixture
def session_id():
    return next(_session_ids)


@pytest.fixture
def committed_deck():
    deck = [0, 1, 0, 1]
    salt = "fixed-test-salt"
    return CommittedDeck(deck=deck, salt=salt, commitment=commit(deck, salt))


@pytest.fixture
def auth():
    def credentials(username):
        return (username, PLAYERS[username])

    return credentials
