import hashlib
import logging
import secrets

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from zk_memory.config import pepper_data
from zk_memory.models.basic_authentication_models import UserModel
from zk_memory.models.schemas import UserTable

logging.getLogger("aiosqlite").setLevel(logging.WARNING)


def hash_password(password: str, salt: str) -> str:
    return hashlib.sha256((password + salt + pepper_data).encode()).hexdigest()


class CreateAuthentication:
    @staticmethod
    async def create_user_data(username: str, password: str, session: AsyncSession) -> UserModel:
        """Create user data to authenticate the user

        Args:
            username (str): The player identity
            password (str): Plain password; only the salted and peppered hash is stored

        Raises:
            ValueError: The username is already registered
        """
        salt = secrets.token_hex(8)
        new_user = UserTable(
            username=username,
            hash_password=hash_password(password, salt),
            salt=salt,
        )
        try:
            session.add(new_user)
            await session.commit()
        except IntegrityError as e:
            await session.rollback()
            logging.error(f"Error creating user data: {e}")
            raise ValueError(f"User {username!r} already exists") from e
        return UserModel(username=username, hash_password=new_user.hash_password, salt=salt)


class ReadAuthentication:
    @staticmethod
    async def read_user_data(username: str, session: AsyncSession) -> UserModel | None:
        """Read user data to get salt and password hash

        Args:
            username (str): username of the user

        Returns:
            UserModel | None: username, password hash and salt
        """
        stmt = select(UserTable).where(UserTable.username == username)
        result = await session.execute(stmt)
        result = result.scalars().first()
        if result is None:
            logging.info(f"User not found: {username}")
            return None
        return UserModel(
            username=result.username,
            hash_password=result.hash_password,
            salt=result.salt,
        )
