import argparse
import asyncio
import secrets

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBasic, HTTPBasicCredentials

from zk_memory.authentication.basic_authentication_crud import (
    CreateAuthentication,
    ReadAuthentication,
    hash_password,
)
from zk_memory.crud import CreateData
from zk_memory.db import Session
from zk_memory.models.basic_authentication_models import UserModel

security = HTTPBasic()
create_auth = CreateAuthentication()
read_auth = ReadAuthentication()


def unauthorized(reason: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=reason,
        headers={"WWW-Authenticate": "Basic"},
    )


class BasicAuthentication:
    """HTTP Basic authentication. The authenticated username is the player identity."""

    async def check_user_data(
        self, credentials: HTTPBasicCredentials = Depends(security)
    ) -> UserModel:
        """Resolve the calling player from Basic credentials

        Raises:
            HTTPException: 401 for an unknown player or a wrong password

        Returns:
            UserModel: The authenticated player
        """
        async with Session() as session:
            player = await read_auth.read_user_data(credentials.username, session)
        if player is None:
            raise unauthorized("Invalid username")

        expected = hash_password(credentials.password, player.salt)
        if not secrets.compare_digest(expected, player.hash_password):
            raise unauthorized("Invalid password")
        return player

    async def store_user_data(self, user_name: str, password: str) -> UserModel:
        async with Session() as session:
            return await create_auth.create_user_data(user_name, password, session)


def get_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Register a player who can consent to, start and play memory games"
    )
    parser.add_argument("--username", type=str, required=True, help="Player identity used in games")
    parser.add_argument("--password", type=str, required=True, help="Basic auth password")
    return parser


async def register_player(user_name: str, password: str) -> UserModel:
    await CreateData.create_table()
    return await BasicAuthentication().store_user_data(user_name, password)


if __name__ == "__main__":
    args = get_parser().parse_args()
    player = asyncio.run(register_player(args.username, args.password))
    print(f"Registered {player.username}")
