from __future__ import annotations

from collections.abc import Mapping
from enum import StrEnum

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from chatsync.core.errors import ProtocolError
from chatsync.schemas.chat import ChatLog
from chatsync.schemas.conversations import ConversationKind, ConversationMeta


class PushTag(StrEnum):
    MESSAGE_POST = "MSG"
    SYSTEM_FEED_POST = "FEED"
    READ_RECEIPT = "DECUNREAD"
    META_CHANGE = "CHGMETA"
    MEMBER_LEFT = "DELMEM"
    MEMBER_JOINED = "NEWMEM"
    MESSAGE_DELETE_SYNC = "SYNCDLMSG"
    MEMBERSHIP_LEFT = "LEFT"
    MEMBERSHIP_JOINED = "SYNCJOIN"

    @classmethod
    def parse(cls, method: str) -> PushTag | None:
        try:
            return cls(method)
        except ValueError:
            return None


class PushPayload(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")


class MessagePush(PushPayload):
    conversation_id: int = Field(alias="chatId")
    log_id: int = Field(alias="logId")
    chat_log: ChatLog = Field(alias="chatLog")


class FeedPush(PushPayload):
    conversation_id: int = Field(alias="c")
    chat_log: ChatLog = Field(alias="chatLog")


class ReadReceiptPush(PushPayload):
    conversation_id: int = Field(alias="chatId")
    user_id: int = Field(alias="userId")
    watermark: int


class MetaChangePush(PushPayload):
    conversation_id: int = Field(alias="chatId")
    meta: ConversationMeta


class ChatLogPush(PushPayload):
    chat_log: ChatLog = Field(alias="chatLog")

    @property
    def conversation_id(self) -> int:
        return self.chat_log.conversation_id


class MembershipLeftPush(PushPayload):
    conversation_id: int = Field(alias="chatId")


class MembershipJoinedPush(PushPayload):
    conversation_id: int = Field(alias="c")
    link_id: int | None = Field(default=None, alias="li")

    @property
    def kind(self) -> ConversationKind:
        return ConversationKind.ORDINARY if self.link_id is None else ConversationKind.OPEN


PAYLOAD_MODELS: dict[PushTag, type[PushPayload]] = {
    PushTag.MESSAGE_POST: MessagePush,
    PushTag.SYSTEM_FEED_POST: FeedPush,
    PushTag.READ_RECEIPT: ReadReceiptPush,
    PushTag.META_CHANGE: MetaChangePush,
    PushTag.MEMBER_LEFT: ChatLogPush,
    PushTag.MEMBER_JOINED: ChatLogPush,
    PushTag.MESSAGE_DELETE_SYNC: ChatLogPush,
    PushTag.MEMBERSHIP_LEFT: MembershipLeftPush,
    PushTag.MEMBERSHIP_JOINED: MembershipJoinedPush,
}


def decode_push(tag: PushTag, data: Mapping[str, object] | PushPayload) -> PushPayload:
    model = PAYLOAD_MODELS[tag]
    if isinstance(data, model):
        return data
    if not isinstance(data, Mapping):
        raise ProtocolError(code="INVALID_PUSH", message="Push payload must be an object")

    try:
        return model.model_validate(data)
    except ValidationError as exc:
        raise ProtocolError(code="INVALID_PUSH", message=str(exc.errors()[0]["msg"])) from exc
