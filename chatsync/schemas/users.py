from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class UserRef(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    user_id: int = Field(alias="userId")


class ConversationUserInfo(UserRef):
    nickname: str = ""
    profile_url: str = Field(default="", alias="profileURL")
    user_type: int = Field(default=0, alias="userType")
