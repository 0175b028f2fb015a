"""User profile schemas."""
from datetime import datetime
from typing import List, Optional

from pydantic import Field, field_validator

from boards.schemas.common import CamelModel, utc_aware


class UserProfile(CamelModel):
    id: str
    username: str
    display_name: str
    bio: Optional[str] = None
    avatar_url: Optional[str] = None
    home_neighborhood: Optional[str] = None
    vibe_prefs: List[str] = Field(default_factory=list)
    trust_score: float
    event_count: int = 0
    follower_count: int = 0
    following_count: int = 0
    created_at: Optional[datetime] = None

    @field_validator('created_at')
    @classmethod
    def ensure_timezone(cls, v):
        return utc_aware(v)


class MessageResponse(CamelModel):
    message: str
