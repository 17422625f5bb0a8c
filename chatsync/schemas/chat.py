from __future__ import annotations

from enum import IntEnum

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from chatsync.core.errors import ProtocolError
from chatsync.schemas.users import UserRef


class ChatType(IntEnum):
    FEED = 0
    TEXT = 1
    PHOTO = 2
    VIDEO = 3
    CONTACT = 4
    AUDIO = 5
    STICKER = 12
    REPLY = 26


class FeedType(IntEnum):
    LOCAL_LEAVE = -1
    INVITE = 1
    LEAVE = 2
    SECRET_CHAT = 3
    OPENLINK_JOIN = 4
    OPENLINK_DELETE_LINK = 5
    OPENLINK_KICKED = 6
    CHANNEL_KICKED = 7
    CHANNEL_DELETED = 8
    RICH_CONTENT = 10
    OPEN_MANAGER_GRANT = 11
    OPEN_MANAGER_REVOKE = 12
    OPENLINK_REWRITE_FEED = 13
    DELETE_TO_ALL = 14
    OPENLINK_HAND_OVER_HOST = 15
    TEAM_CHANNEL_EVENT = 18


class ChatLog(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    log_id: int = Field(alias="logId")
    prev_log_id: int | None = Field(default=None, alias="prevId")
    conversation_id: int = Field(alias="chatId")
    author_id: int = Field(alias="authorId")
    type: int
    text: str = Field(default="", alias="message")
    attachment: str | None = None
    send_at: int = Field(default=0, alias="sendAt")
    message_id: int = Field(default=0, alias="msgId")

    @property
    def sender(self) -> UserRef:
        return UserRef(user_id=self.author_id)

    @property
    def is_feed(self) -> bool:
        return self.type == ChatType.FEED


class FeedMember(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    user_id: int = Field(alias="userId")
    nickname: str = ""


class Feed(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="allow")

    feed_type: int = Field(alias="feedType")
    members: list[FeedMember] = Field(default_factory=list)


class DeleteToAllFeed(Feed):
    log_id: int | None = Field(default=None, alias="logId")
    hidden: bool = False


def feed_from_chat(chat_log: ChatLog) -> Feed:
    """Decode the feed document carried in the text of a feed chat log."""
    try:
        feed = Feed.model_validate_json(chat_log.text)
        if feed.feed_type == FeedType.DELETE_TO_ALL:
            return DeleteToAllFeed.model_validate_json(chat_log.text)
    except ValidationError as exc:
        raise ProtocolError(code="INVALID_FEED", message=str(exc.errors()[0]["msg"])) from exc
    return feed
