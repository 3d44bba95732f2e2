from typing import List

from zk_memory.domain.memory_rules import game_phase, winner
from zk_memory.errors import InvalidCommitment, InvalidProof
from zk_memory.models.dc_models import GameStateModel, PendingFlipModel
from zk_memory.models.schema_models import CardState, GameSessionSchema, PendingFlipSchema
from zk_memory.models.schemas import GameSession


class DataConverter:
    """This class is used to convert data between different formats."""

    def convert_row_to_schema(self, row: GameSession) -> GameSessionSchema:
        """Convert the stored row to the game aggregate used by the rules

        Args:
            row (GameSession): The game_sessions row

        Returns:
            GameSessionSchema: The game aggregate
        """
        pending_flip = None
        if row.flip_one is not None:
            pending_flip = PendingFlipSchema(position=row.flip_one, value=row.flip_one_value)

        return GameSessionSchema(
            session_id=row.session_id,
            player1=row.player1,
            player2=row.player2,
            player1_stake=row.player1_stake,
            player2_stake=row.player2_stake,
            deck_commitment=bytes.fromhex(row.deck_commitment),
            cards=[CardState(card) for card in row.cards],
            score1=row.score1,
            score2=row.score2,
            current_turn=row.current_turn,
            pending_flip=pending_flip,
            pairs_found=row.pairs_found,
            flip_count=row.flip_count,
            is_active=row.is_active,
            created_at=row.created_at,
            updated_at=row.updated_at,
            expires_at=row.expires_at,
        )

    def copy_schema_to_row(self, game: GameSessionSchema, row: GameSession) -> GameSession:
        """Write every mutable field of the aggregate onto the stored row"""
        row.cards = [card.value for card in game.cards]
        row.score1 = game.score1
        row.score2 = game.score2
        row.current_turn = game.current_turn
        row.flip_one = game.pending_flip.position if game.pending_flip else None
        row.flip_one_value = game.pending_flip.value if game.pending_flip else None
        row.pairs_found = game.pairs_found
        row.flip_count = game.flip_count
        row.is_active = game.is_active
        row.updated_at = game.updated_at
        row.expires_at = game.expires_at
        return row

    def convert_schema_to_row(self, game: GameSessionSchema) -> GameSession:
        row = GameSession(
            session_id=game.session_id,
            player1=game.player1,
            player2=game.player2,
            player1_stake=game.player1_stake,
            player2_stake=game.player2_stake,
            deck_commitment=game.deck_commitment.hex(),
            created_at=game.created_at,
        )
        return self.copy_schema_to_row(game, row)

    def convert_schema_to_state_model(self, game: GameSessionSchema) -> GameStateModel:
        """Convert the game aggregate to the read-only projection sent to clients

        Args:
            game (GameSessionSchema): The game aggregate

        Returns:
            GameStateModel: The state of the game for transmission to the client
        """
        pending_flip = None
        if game.pending_flip is not None:
            pending_flip = PendingFlipModel(
                position=game.pending_flip.position, value=game.pending_flip.value
            )
        return GameStateModel(
            session_id=game.session_id,
            player1=game.player1,
            player2=game.player2,
            player1_stake=game.player1_stake,
            player2_stake=game.player2_stake,
            deck_commitment=game.deck_commitment.hex(),
            cards=list(game.cards),
            score1=game.score1,
            score2=game.score2,
            current_turn=game.current_turn,
            pending_flip=pending_flip,
            pairs_found=game.pairs_found,
            flip_count=game.flip_count,
            is_active=game.is_active,
            phase=game_phase(game),
            winner=winner(game),
            expires_at=game.expires_at,
        )

    def decode_commitment(self, commitment_hex: str) -> bytes:
        try:
            commitment = bytes.fromhex(commitment_hex.removeprefix("0x"))
        except ValueError as e:
            raise InvalidCommitment("Deck commitment is not valid hex.") from e
        if len(commitment) != 32:
            raise InvalidCommitment()
        return commitment

    def decode_proof_payload(self, proof_hex: str, public_inputs_hex: List[str]) -> tuple[bytes, List[bytes]]:
        """Decode hex proof and public inputs; malformed encodings are proof rejections"""
        try:
            proof = bytes.fromhex(proof_hex.removeprefix("0x"))
            public_inputs = [bytes.fromhex(word.removeprefix("0x")) for word in public_inputs_hex]
        except ValueError as e:
            raise InvalidProof() from e
        return proof, public_inputs
