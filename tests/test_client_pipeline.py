from datetime import datetime, timedelta

import pytest

from zk_memory.client.pipeline import (
    FlipRejectedError,
    PlayerSession,
    StaleStateError,
    SubmissionFailedError,
    open_game,
)
from zk_memory.client.prover import MockProofBackend
from zk_memory.client.transport import (
    AuthorityClient,
    AuthorityRejection,
    TransientTransportError,
    Transport,
)
from zk_memory.converter import DataConverter
from zk_memory.domain import memory_rules
from zk_memory.errors import GameError
from zk_memory.models.schema_models import CardState
from zk_memory.verifiers import AcceptAllVerifier


class FakeAuthority(Transport):
    """In-memory authority running the real game rules, with scripted failures.

    ``submit_failures`` entries: "lost" drops the request, "lost_reply" applies
    the flip and then drops the response.
    """

    def __init__(self, committed_deck):
        now = datetime(2026, 1, 1)
        self.game = memory_rules.new_game_session(
            7, "alice", "bob", 10, 10, committed_deck.commitment, 4, now, now + timedelta(days=1)
        )
        self.converter = DataConverter()
        self.submit_failures = []
        self.get_failures = 0
        self.submits = 0

    def get_game(self, session_id):
        if self.get_failures:
            self.get_failures -= 1
            raise TransientTransportError("read timed out")
        return self.converter.convert_schema_to_state_model(self.game)

    def submit_flip(self, session_id, player, position, revealed_value, proof, public_inputs):
        self.submits += 1
        failure = self.submit_failures.pop(0) if self.submit_failures else None
        if failure == "lost":
            raise TransientTransportError("connection reset")
        try:
            result = memory_rules.flip_card(
                self.game, player, position, revealed_value, proof, public_inputs, AcceptAllVerifier()
            )
        except GameError as e:
            raise AuthorityRejection(e.error, e.message, e.code)
        self.game = result.game
        if failure == "lost_reply":
            raise TransientTransportError("response lost")


@pytest.fixture
def authority(committed_deck):
    return FakeAuthority(committed_deck)


@pytest.fixture
def sleeps():
    return []


def make_session(authority, committed_deck, sleeps, player="alice", **kwargs):
    return PlayerSession(
        authority,
        player,
        7,
        committed_deck,
        MockProofBackend(),
        sleep=sleeps.append,
        **kwargs,
    )


def test_flip_confirms_first_and_second_card(authority, committed_deck, sleeps):
    session = make_session(authority, committed_deck, sleeps)

    outcome = session.flip(0)
    assert outcome.confirmed
    assert outcome.matched is None
    assert outcome.my_turn
    assert outcome.snapshot.flip_count == 1

    outcome = session.flip(2)
    assert outcome.confirmed
    assert outcome.matched is True
    assert outcome.revealed_value == 0
    assert outcome.my_turn
    assert sleeps == []


def test_lost_request_is_retried_with_backoff(authority, committed_deck, sleeps):
    authority.submit_failures = ["lost", "lost"]
    session = make_session(authority, committed_deck, sleeps, backoff_base=0.5)

    outcome = session.flip(0)
    assert outcome.confirmed
    assert outcome.attempts == 3
    assert authority.submits == 3
    assert sleeps == [0.5, 1.0]
    assert authority.game.flip_count == 1


def test_lost_reply_is_not_resubmitted(authority, committed_deck, sleeps):
    authority.submit_failures = ["lost_reply"]
    session = make_session(authority, committed_deck, sleeps)

    outcome = session.flip(0)
    assert outcome.confirmed
    assert authority.submits == 1
    assert authority.game.flip_count == 1
    assert authority.game.pending_flip.position == 0


def test_retry_budget_is_bounded(authority, committed_deck, sleeps):
    authority.submit_failures = ["lost"] * 5
    session = make_session(authority, committed_deck, sleeps, max_attempts=3)

    with pytest.raises(SubmissionFailedError):
        session.flip(0)
    assert authority.submits == 3
    assert authority.game.flip_count == 0


def test_unknown_outcome_is_not_retried(authority, committed_deck, sleeps):
    session = make_session(authority, committed_deck, sleeps)
    session.refresh()
    authority.submit_failures = ["lost_reply"]
    authority.get_failures = 1

    with pytest.raises(SubmissionFailedError):
        session.flip(0)
    assert authority.submits == 1


def test_turn_change_refreshes_and_asks_to_retry(authority, committed_deck, sleeps):
    bob = make_session(authority, committed_deck, sleeps, player="bob")
    bob.snapshot = bob.refresh().model_copy(update={"current_turn": "bob"})

    with pytest.raises(StaleStateError):
        bob.flip(0)
    assert bob.snapshot.current_turn == "alice"
    assert authority.submits == 1
    assert authority.game.flip_count == 0


def test_local_checks_reject_without_submitting(authority, committed_deck, sleeps):
    session = make_session(authority, committed_deck, sleeps, player="bob")
    with pytest.raises(FlipRejectedError) as exc_info:
        session.flip(0)
    assert exc_info.value.error == "NotYourTurn"
    assert exc_info.value.local

    alice = make_session(authority, committed_deck, sleeps)
    with pytest.raises(FlipRejectedError) as exc_info:
        alice.flip(4)
    assert exc_info.value.error == "InvalidPosition"

    alice.flip(0)
    alice.flip(2)
    with pytest.raises(FlipRejectedError) as exc_info:
        alice.flip(0)
    assert exc_info.value.error == "CardAlreadyMatched"
    assert authority.submits == 2


def test_authority_rejection_is_not_retried(authority, committed_deck, sleeps):
    session = make_session(authority, committed_deck, sleeps)
    session.refresh()
    # The authority already considers card 0 matched.
    authority.game = authority.game.model_copy(
        update={"cards": [CardState.matched] * 2 + [CardState.face_down] * 2}
    )
    with pytest.raises(FlipRejectedError) as exc_info:
        session.flip(0)
    assert exc_info.value.error == "CardAlreadyMatched"
    assert not exc_info.value.local
    assert authority.submits == 1


def test_unconfirmed_flip_reports_not_confirmed(authority, committed_deck, sleeps):
    session = make_session(authority, committed_deck, sleeps, confirm_polls=2, poll_interval=0.25)
    session.refresh()
    authority.get_failures = 2

    outcome = session.flip(0)
    assert not outcome.confirmed
    assert authority.submits == 1
    assert sleeps == [0.25]


def test_deck_mismatch_is_caught_locally(authority, committed_deck, sleeps):
    other_deck = committed_deck.model_copy(update={"commitment": bytes(32)})
    session = make_session(authority, other_deck, sleeps)
    with pytest.raises(FlipRejectedError) as exc_info:
        session.flip(0)
    assert exc_info.value.error == "CommitmentMismatch"


def test_game_through_http_client(client, auth, hub, session_id, committed_deck):
    alice_http = AuthorityClient("http://testserver", *auth("alice"), http=client)
    bob_http = AuthorityClient("http://testserver", *auth("bob"), http=client)

    bob_http.consent(session_id, 3)
    state = open_game(alice_http, session_id, "alice", "bob", 3, 3, committed_deck)
    assert state.current_turn == "alice"

    prover = MockProofBackend()
    alice = PlayerSession(alice_http, "alice", session_id, committed_deck, prover, sleep=lambda _: None)
    bob = PlayerSession(bob_http, "bob", session_id, committed_deck, prover, sleep=lambda _: None)

    alice.flip(0)
    outcome = alice.flip(1)
    assert outcome.matched is False
    assert not outcome.my_turn

    bob.flip(0)
    assert bob.flip(2).matched is True
    bob.flip(1)
    outcome = bob.flip(3)
    assert outcome.game_complete
    assert outcome.snapshot.winner == "player2"
    assert hub.named("end_game") == [("end_game", session_id, False)]

    with pytest.raises(AuthorityRejection) as exc_info:
        bob_http.get_game(4294967295)
    assert exc_info.value.error == "GameNotFound"
    assert exc_info.value.status_code == 404
