from pydantic import BaseModel
from datetime import datetime
from typing import Literal, Optional


class Preferences(BaseModel):
    notifications: bool = True
    voice_enabled: bool = True
    theme: Literal["light", "dark", "system"] = "system"
    ai_provider: Literal["openai", "grok"] = "openai"


class PreferencesUpdate(BaseModel):
    notifications: Optional[bool] = None
    voice_enabled: Optional[bool] = None
    theme: Optional[Literal["light", "dark", "system"]] = None
    ai_provider: Optional[Literal["openai", "grok"]] = None


class UserRecord(BaseModel):
    """A stored account. Email is kept lowercased; phone accounts have no password."""

    id: int
    email: Optional[str] = None
    phone: Optional[str] = None
    hashed_password: Optional[str] = None
    name: str
    created_at: datetime
    preferences: Preferences = Preferences()

    model_config = {
        "from_attributes": True
    }

    @property
    def contact(self) -> Optional[str]:
        return self.email or self.phone


class OneTimeCode(BaseModel):
    id: int
    phone: str
    code: str
    created_at: datetime
    expires_at: datetime
