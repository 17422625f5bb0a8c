from __future__ import annotations

from enum import IntEnum, StrEnum
from typing import Annotated, Literal

from pydantic import BaseModel, ConfigDict, Field

from chatsync.schemas.chat import ChatLog


class ConversationKind(StrEnum):
    ORDINARY = "ordinary"
    OPEN = "open"


class ConversationRef(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    kind: Literal["ordinary"] = "ordinary"
    conversation_id: int = Field(alias="channelId")


class OpenConversationRef(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    kind: Literal["open"] = "open"
    conversation_id: int = Field(alias="channelId")
    link_id: int = Field(alias="linkId")


ConversationEntry = Annotated[ConversationRef | OpenConversationRef, Field(discriminator="kind")]


class MetaType(IntEnum):
    NOTICE = 1
    GROUP = 2
    TITLE = 3
    PROFILE = 4
    TV = 5
    PRIVILEGE = 6
    TV_LIVE = 7
    PLUS_BACKGROUND = 8
    LIVE_TALK_INFO = 11
    LIVE_TALK_COUNT = 12
    OPEN_CHANNEL_CHAT = 13
    BOT = 14


class ConversationMeta(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    type: int
    revision: int = 0
    author_id: int = Field(default=0, alias="authorId")
    content: str = ""
    updated_at: int = Field(default=0, alias="updatedAt")


class ConversationInfo(BaseModel):
    """Cached snapshot of one conversation.

    Snapshots are replaced, never edited: holders of an older snapshot keep
    seeing the state they were handed.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    conversation_id: int = Field(alias="channelId")
    last_log_id: int | None = Field(default=None, alias="lastChatLogId")
    last_log: ChatLog | None = Field(default=None, alias="lastChatLog")
    meta_map: dict[int, ConversationMeta] = Field(default_factory=dict, alias="metaMap")
    user_count: int = Field(default=0, alias="activeUserCount")


class ReadMark(BaseModel):
    model_config = ConfigDict(frozen=True)

    log_id: int
