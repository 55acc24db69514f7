import logging
from datetime import datetime, timezone
from typing import Callable

from email_validator import EmailNotValidError, validate_email

from app.repositories.base import Repositories
from app.schemas.user_schema import Preferences, UserRecord
from app.core.security import hash_password, verify_password, create_access_token
from app.core.exceptions import (
    InvalidCredentialsException,
    InvalidEmailFormatException,
    InvalidOTPException,
    UnknownAccountException,
    UserAlreadyExistsException,
    WeakPasswordException,
)

logger = logging.getLogger(__name__)

MIN_PASSWORD_LENGTH = 6


def default_phone_user_name(phone: str) -> str:
    return f"User {phone[-4:]}"


class AuthService:
    def __init__(self, repos: Repositories, clock: Callable[[], datetime] | None = None):
        self.repos = repos
        self.clock = clock or (lambda: datetime.now(timezone.utc))

    async def register_user(self, email: str, password: str, name: str) -> UserRecord:
        try:
            email = validate_email(email.strip(), check_deliverability=False).normalized.lower()
        except EmailNotValidError as e:
            raise InvalidEmailFormatException(str(e))
        if len(password) < MIN_PASSWORD_LENGTH:
            raise WeakPasswordException()
        if await self.repos.users.find_by_email(email):
            raise UserAlreadyExistsException("email")

        user = await self.repos.users.insert(
            email=email,
            name=name,
            hashed_password=hash_password(password),
            preferences=Preferences(),
        )
        logger.info("Registered user %s (%s)", user.id, user.email)
        return user

    async def authenticate(self, email: str, password: str) -> UserRecord:
        user = await self.repos.users.find_by_email(email.strip().lower())
        if not user:
            logger.info("Login failed: no account for %s", email)
            raise UnknownAccountException()
        if not verify_password(password, user.hashed_password or ""):
            logger.info("Login failed: bad password for user %s", user.id)
            raise InvalidCredentialsException()
        logger.info("Login succeeded for user %s", user.id)
        return user

    async def verify_phone_code(self, phone: str, code: str) -> UserRecord:
        """Consume a one-time code and return the phone's user, creating it on first login."""
        phone = phone.strip()
        async with self.repos.transaction():
            otp = await self.repos.otps.find_valid(phone, code.strip(), self.clock())
            if otp is None:
                raise InvalidOTPException()
            # a concurrent request may have consumed it between find and delete
            if not await self.repos.otps.delete_by_id(otp.id):
                raise InvalidOTPException()

            user = await self.repos.users.find_by_phone(phone)
            if user is None:
                user = await self._create_phone_user(phone)
        return user

    async def _create_phone_user(self, phone: str) -> UserRecord:
        try:
            # savepoint: a failed insert must not abort the enclosing transaction
            async with self.repos.transaction():
                user = await self.repos.users.insert(
                    phone=phone,
                    name=default_phone_user_name(phone),
                    preferences=Preferences(),
                )
        except UserAlreadyExistsException:
            # a concurrent first login for the same phone created it
            user = await self.repos.users.find_by_phone(phone)
            if user is None:
                raise
            logger.info("Phone %s was registered concurrently; using user %s", phone, user.id)
            return user
        logger.info("Created user %s on first OTP login", user.id)
        return user

    def create_token_for_user(self, user: UserRecord) -> str:
        return create_access_token(subject=str(user.id), contact=user.contact)
