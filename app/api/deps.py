from typing import AsyncGenerator, Optional
from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from app.core.config import settings
from app.core.exceptions import TokenInvalidException, UserNotFoundException
from app.core.security import verify_access_token
from app.db.directory import Directory
from app.repositories.base import Repositories
from app.schemas.user_schema import UserRecord
from app.services.auth_services import AuthService
from app.services.chat_service import ChatService
from app.services.otp_service import OTPService

bearer_scheme = HTTPBearer(auto_error=False)


def get_directory(request: Request) -> Directory:
    return request.app.state.directory


async def get_repositories(
        directory: Directory = Depends(get_directory),
) -> AsyncGenerator[Repositories, None]:
    async with directory.session() as repos:
        yield repos


async def get_current_user(
        credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
        repos: Repositories = Depends(get_repositories),
) -> UserRecord:
    token_data = verify_access_token(credentials.credentials if credentials else None)
    try:
        user_id = token_data.user_id
    except ValueError:
        raise TokenInvalidException()

    # the token only identifies the user; profile data is always read live
    user = await repos.users.find_by_id(user_id)
    if user is None:
        raise UserNotFoundException()
    return user


def get_auth_service(repos: Repositories = Depends(get_repositories)) -> AuthService:
    return AuthService(repos)


def get_otp_service(request: Request, repos: Repositories = Depends(get_repositories)) -> OTPService:
    return OTPService(repos, request.app.state.sms_sender, development=settings.is_development)


def get_chat_service(request: Request, repos: Repositories = Depends(get_repositories)) -> ChatService:
    # same unit of work as get_current_user, so a chat holds one pooled connection
    return ChatService(request.app.state.llm_providers, repos)
