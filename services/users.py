import logging

from models.domain import User
from models.errors import DomainError, ErrorKind
from repositories.users import UserDirectory


logger = logging.getLogger(__name__)


class UserService:
    def __init__(self, users: UserDirectory):
        self.users = users

    async def set_is_active(self, user_id: str, is_active: bool) -> User:
        """
        POST /users/setIsActive
        Update user's isActive status
        """
        if not user_id:
            raise DomainError(ErrorKind.INVALID_INPUT, "user_id is required")

        logger.info("setting user active status", extra={"user_id": user_id, "is_active": is_active})
        return await self.users.set_is_active(user_id, is_active)
