from fastapi import APIRouter, Depends

from app.api.deps import get_current_user, get_repositories
from app.core.exceptions import UserNotFoundException
from app.repositories.base import Repositories
from app.schemas.user_schema import Preferences, PreferencesUpdate, UserRecord

router = APIRouter(prefix="/users", tags=["users"])


@router.get("/me/preferences", response_model=Preferences)
async def read_preferences(current_user: UserRecord = Depends(get_current_user)):
    return current_user.preferences


@router.patch("/me/preferences", response_model=Preferences)
async def update_preferences(
    body: PreferencesUpdate,
    current_user: UserRecord = Depends(get_current_user),
    repos: Repositories = Depends(get_repositories),
):
    merged = current_user.preferences.model_copy(update=body.model_dump(exclude_unset=True, exclude_none=True))
    updated = await repos.users.update_preferences(current_user.id, merged)
    if updated is None:
        raise UserNotFoundException()
    return updated.preferences
