"""
Account security operations.
"""

import logging

from core.models import User
from core.results import Check, ErrorCode, Result
from core.services.crypto_service import CryptoService

logger = logging.getLogger(__name__)


class SecurityService:
    @staticmethod
    def _set_password(user: User, new_password: str) -> User:
        user.set_password(new_password)
        user.save(update_fields=["password"])
        logger.info(f"Password changed for user {user.id}")
        return user

    @staticmethod
    def change_password(user: User, current_password: str, new_password: str) -> Result[User]:
        """
        Replace the password of ``user``.

        Returns:
            Result with the user, BAD_CREDENTIALS when ``current_password`` is
            wrong, SAME_PASSWORD when the new password equals the current one
        """
        return Result.check_with(
            user,
            [
                lambda u: Check.check_is_true(
                    CryptoService.verify_with_hash(current_password, u.password),
                    ErrorCode.BAD_CREDENTIALS,
                ),
                lambda u: Check.check_is_false(
                    current_password == new_password, ErrorCode.SAME_PASSWORD
                ),
            ],
            lambda u: SecurityService._set_password(u, new_password),
        )
