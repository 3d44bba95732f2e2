"""Typed rejections raised by the game authority.

Every rejection leaves the stored session untouched. The numeric codes are
stable and shared with clients, which match on ``error`` / ``code`` in the
response body.
"""

from fastapi import HTTPException, status


class GameError(Exception):
    code: int = 0
    http_status: int = status.HTTP_400_BAD_REQUEST
    default_message: str = "Game error"

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)

    @property
    def error(self) -> str:
        return type(self).__name__

    def to_http_exception(self) -> HTTPException:
        return HTTPException(
            status_code=self.http_status,
            detail={"code": self.code, "error": self.error, "message": self.message},
        )


class GameNotFound(GameError):
    code = 1
    http_status = status.HTTP_404_NOT_FOUND
    default_message = "Game not found or expired."


class GameNotActive(GameError):
    code = 2
    http_status = status.HTTP_409_CONFLICT
    default_message = "This game is already complete."


class NotYourTurn(GameError):
    code = 3
    http_status = status.HTTP_409_CONFLICT
    default_message = "Not your turn."


class CardAlreadyMatched(GameError):
    code = 4
    http_status = status.HTTP_409_CONFLICT
    default_message = "Card already matched."


class InvalidProof(GameError):
    code = 5
    default_message = "Invalid proof."


class InvalidPosition(GameError):
    code = 6
    default_message = "Position out of range."


class NotPlayer(GameError):
    code = 7
    http_status = status.HTTP_403_FORBIDDEN
    default_message = "Caller is not the player named in the request."


class SelfPlay(GameError):
    code = 8
    default_message = "Player 1 and Player 2 must be different."


class SessionAlreadyExists(GameError):
    code = 9
    http_status = status.HTTP_409_CONFLICT
    default_message = "A game with this session id already exists."


class InvalidCommitment(GameError):
    code = 10
    default_message = "Deck commitment must be 32 bytes."


class MissingConsent(GameError):
    code = 11
    http_status = status.HTTP_403_FORBIDDEN
    default_message = "Player 2 has not consented to this game and stake."
