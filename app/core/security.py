from passlib.context import CryptContext
from datetime import datetime, timedelta, timezone
from jose import jwt, JWTError
from typing import Optional
from app.core.config import settings
from app.core.exceptions import TokenInvalidException
from app.schemas.auth_schema import TokenPayload
import hashlib
import logging

logger = logging.getLogger(__name__)

pwd_context = CryptContext(
    schemes=["bcrypt"],
    deprecated="auto",
    bcrypt__rounds=settings.BCRYPT_ROUNDS,
)

def hash_password(password: str) -> str:
    password_bytes = password.encode("utf-8")
    digest = hashlib.sha256(password_bytes).hexdigest()
    return pwd_context.hash(digest)

def verify_password(plain_password: str, hashed_password: str) -> bool:
    if not hashed_password:
        return False
    digest = hashlib.sha256(plain_password.encode("utf-8")).hexdigest()
    try:
        return pwd_context.verify(digest, hashed_password)
    except ValueError:
        # stored value is not a recognised hash
        return False

def create_access_token(subject: str, contact: str | None, expires_delta: Optional[timedelta] = None) -> str:
    now = datetime.now(timezone.utc)
    if expires_delta is None:
        expires_delta = timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
    to_encode = {
        "sub": str(subject),
        "contact": contact,
        "iat": now,
        "exp": now + expires_delta,
    }
    encoded_jwt = jwt.encode(to_encode, settings.SECRET_KEY, algorithm=settings.ALGORITHM)
    return encoded_jwt

def decode_access_token(token: str) -> dict:
    payload = jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
    return payload

def verify_access_token(token: str | None) -> TokenPayload:
    """Decode a bearer token, collapsing every failure into one 401."""
    if not token:
        raise TokenInvalidException()
    try:
        payload = decode_access_token(token)
    except JWTError as e:
        logger.info("Rejected token: %s", e)
        raise TokenInvalidException()
    token_data = TokenPayload(**payload)
    if not token_data.sub:
        raise TokenInvalidException()
    return token_data
