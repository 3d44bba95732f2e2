"""HTTP access to the game authority.

Responses are mapped to three outcomes: success, ``TransientTransportError``
(network failure, 429, 5xx: safe to retry once the flip is known not to have
landed) and ``AuthorityRejection`` (a typed game rejection; never retried
as-is).
"""

import logging
from typing import Any, Sequence

import requests

from zk_memory.models.dc_models import GameStateModel


class TransientTransportError(Exception):
    """The request may or may not have reached the authority; try again later."""


class AuthorityRejection(Exception):
    def __init__(self, error: str, message: str, code: int | None = None, status_code: int | None = None):
        self.error = error
        self.message = message
        self.code = code
        self.status_code = status_code
        super().__init__(f"{error}: {message}")


class Transport:
    def consent(self, session_id: int, stake: int) -> None:
        raise NotImplementedError

    def start_game(
        self,
        session_id: int,
        player1: str,
        player2: str,
        player1_stake: int,
        player2_stake: int,
        deck_commitment: bytes,
    ) -> GameStateModel:
        raise NotImplementedError

    def submit_flip(
        self,
        session_id: int,
        player: str,
        position: int,
        revealed_value: int,
        proof: bytes,
        public_inputs: Sequence[bytes],
    ) -> None:
        raise NotImplementedError

    def get_game(self, session_id: int) -> GameStateModel:
        raise NotImplementedError


class AuthorityClient(Transport):
    """``requests``-based client; any object with a requests-like ``request`` works as ``http``."""

    def __init__(
        self,
        base_url: str,
        username: str,
        password: str,
        timeout: float = 30.0,
        http: Any = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.auth = (username, password)
        self.timeout = timeout
        self.http = http or requests.Session()

    def _request(self, method: str, path: str, json: Any = None) -> Any:
        url = f"{self.base_url}{path}"
        try:
            response = self.http.request(method, url, json=json, auth=self.auth, timeout=self.timeout)
        except requests.RequestException as e:
            logging.warning(f"{method} {path} failed: {e}")
            raise TransientTransportError(str(e)) from e

        if response.status_code == 429 or response.status_code >= 500:
            raise TransientTransportError(f"{method} {path} returned {response.status_code}")
        if response.status_code >= 400:
            raise self._rejection(response)
        return response.json()

    @staticmethod
    def _rejection(response: Any) -> AuthorityRejection:
        try:
            detail = response.json().get("detail")
        except ValueError:
            detail = response.text
        if isinstance(detail, dict) and "error" in detail:
            return AuthorityRejection(
                error=detail["error"],
                message=detail.get("message", ""),
                code=detail.get("code"),
                status_code=response.status_code,
            )
        if response.status_code == 401:
            return AuthorityRejection("Unauthorized", str(detail), status_code=401)
        if response.status_code == 422:
            return AuthorityRejection("ValidationError", str(detail), status_code=422)
        return AuthorityRejection("HTTPError", str(detail), status_code=response.status_code)

    def consent(self, session_id, stake):
        self._request("POST", f"/games/{session_id}/consent", json={"stake": stake})

    def start_game(self, session_id, player1, player2, player1_stake, player2_stake, deck_commitment):
        body = self._request(
            "POST",
            f"/games/{session_id}/start",
            json={
                "player1": player1,
                "player2": player2,
                "player1_stake": player1_stake,
                "player2_stake": player2_stake,
                "deck_commitment": deck_commitment.hex(),
            },
        )
        return GameStateModel.model_validate(body)

    def submit_flip(self, session_id, player, position, revealed_value, proof, public_inputs):
        self._request(
            "POST",
            f"/games/{session_id}/flip",
            json={
                "player": player,
                "position": position,
                "revealed_value": revealed_value,
                "proof": proof.hex(),
                "public_inputs": [word.hex() for word in public_inputs],
            },
        )

    def get_game(self, session_id):
        return GameStateModel.model_validate(self._request("GET", f"/games/{session_id}"))
