from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import TYPE_CHECKING

from chatsync.core.errors import ProtocolError
from chatsync.realtime.context import EventContext
from chatsync.realtime.events import ConversationEvent, EventEmitter
from chatsync.realtime.protocol import (
    ChatLogPush,
    FeedPush,
    MessagePush,
    MetaChangePush,
    PushPayload,
    PushTag,
    ReadReceiptPush,
    decode_push,
)
from chatsync.realtime.tasks import FetchPolicy, PendingTasks, fetch_once
from chatsync.schemas.chat import ChatLog, DeleteToAllFeed, Feed, FeedType, feed_from_chat
from chatsync.schemas.conversations import ConversationInfo, ReadMark
from chatsync.schemas.users import UserRef
from chatsync.services.conversation_store import ConversationStore, ConversationUpdater
from chatsync.services.session import ClientSession

if TYPE_CHECKING:
    from chatsync.services.conversation import LiveConversation

logger = logging.getLogger(__name__)


class ConversationEventRouter:
    """Applies pushes addressed to one conversation and re-emits them as events.

    Commit/emit order differs per tag and is observable by listeners:
    chat logs and meta changes are emitted before the cache is updated, read
    receipts and member changes after.
    """

    def __init__(
        self,
        conversation: LiveConversation,
        *,
        session: ClientSession,
        store: ConversationStore,
        updater: ConversationUpdater,
        events: EventEmitter,
        fetch_policy: FetchPolicy = fetch_once,
    ) -> None:
        self._conversation = conversation
        self._session = session
        self._store = store
        self._updater = updater
        self._events = events
        self._fetch_policy = fetch_policy
        self._pending = PendingTasks(f"conversation:{conversation.conversation_id}")

    @property
    def conversation_id(self) -> int:
        return self._conversation.conversation_id

    @property
    def info(self) -> ConversationInfo:
        return self._store.info

    @property
    def pending_count(self) -> int:
        return len(self._pending)

    async def wait_idle(self) -> None:
        await self._pending.wait_idle()

    def push_received(self, method: str, data: Mapping[str, object], parent_ctx: EventContext) -> None:
        tag = PushTag.parse(method)
        match tag:
            case PushTag.MESSAGE_POST:
                self._on_message(self._decode(tag, data), parent_ctx)
            case PushTag.SYSTEM_FEED_POST:
                self._on_feed(self._decode(tag, data), parent_ctx)
            case PushTag.READ_RECEIPT:
                self._on_read(self._decode(tag, data), parent_ctx)
            case PushTag.META_CHANGE:
                self._on_meta_change(self._decode(tag, data), parent_ctx)
            case PushTag.MEMBER_LEFT:
                self._on_user_left(self._decode(tag, data), parent_ctx)
            case PushTag.MEMBER_JOINED:
                self._on_user_join(self._decode(tag, data), parent_ctx)
            case PushTag.MESSAGE_DELETE_SYNC:
                self._on_message_delete(self._decode(tag, data), parent_ctx)
            case _:
                return

    def _decode(self, tag: PushTag, data: Mapping[str, object]) -> PushPayload | None:
        try:
            return decode_push(tag, data)
        except ProtocolError as exc:
            logger.debug(
                "Malformed push dropped tag=%s conversation_id=%s error=%s",
                tag.name,
                self.conversation_id,
                exc.message,
            )
            return None

    def _addressed(self, payload: PushPayload | None) -> bool:
        return payload is not None and getattr(payload, "conversation_id", None) == self.conversation_id

    def _emit(self, parent_ctx: EventContext, event: ConversationEvent, *args: object) -> None:
        EventContext(self._events, parent_ctx).emit(event, *args)

    def _on_message(self, payload: MessagePush | None, parent_ctx: EventContext) -> None:
        if not self._addressed(payload):
            return

        chat_log = payload.chat_log
        self._emit(parent_ctx, ConversationEvent.CHAT, chat_log, self._conversation)

        self._updater.update_info(last_log_id=payload.log_id, last_log=chat_log)

    def _on_feed(self, payload: FeedPush | None, parent_ctx: EventContext) -> None:
        if not self._addressed(payload):
            return

        chat_log = payload.chat_log
        self._emit(parent_ctx, ConversationEvent.CHAT, chat_log, self._conversation)

        self._updater.update_info(last_log_id=chat_log.log_id, last_log=chat_log)

    def _on_read(self, payload: ReadReceiptPush | None, parent_ctx: EventContext) -> None:
        if not self._addressed(payload):
            return

        reader = self._store.get_user(UserRef(user_id=payload.user_id))

        self._updater.update_watermark(payload.user_id, payload.watermark)

        self._emit(
            parent_ctx,
            ConversationEvent.CHAT_READ,
            ReadMark(log_id=payload.watermark),
            self._conversation,
            reader,
        )

    def _on_meta_change(self, payload: MetaChangePush | None, parent_ctx: EventContext) -> None:
        if not self._addressed(payload):
            return

        meta = payload.meta
        self._emit(parent_ctx, ConversationEvent.META_CHANGE, self._conversation, meta.type, meta)

        meta_map = dict(self.info.meta_map)
        meta_map[meta.type] = meta
        self._updater.update_info(meta_map=meta_map)

    def _on_user_left(self, payload: ChatLogPush | None, parent_ctx: EventContext) -> None:
        if not self._addressed(payload):
            return

        chat_log = payload.chat_log
        user = self._store.get_user(chat_log.sender)
        if user is None:
            return

        self._updater.remove_user(chat_log.sender)

        if not chat_log.is_feed:
            return
        feed = self._feed(chat_log)
        if feed is None:
            return

        self._emit(parent_ctx, ConversationEvent.USER_LEFT, chat_log, self._conversation, user, feed)

    def _on_user_join(self, payload: ChatLogPush | None, parent_ctx: EventContext) -> None:
        if not self._addressed(payload):
            return

        chat_log = payload.chat_log
        if not chat_log.is_feed:
            return
        feed = self._feed(chat_log)
        if feed is None:
            return

        self._pending.spawn(self._resolve_joined(chat_log, feed, parent_ctx))

    async def _resolve_joined(self, chat_log: ChatLog, feed: Feed, parent_ctx: EventContext) -> None:
        result = await self._fetch_policy(
            lambda: self._session.fetch_latest_users(self.conversation_id, [chat_log.sender])
        )
        if not result.success:
            logger.debug(
                "Joined member resolution failed conversation_id=%s user_id=%s status=%s",
                self.conversation_id,
                chat_log.author_id,
                result.status,
            )
            return

        for user in result.result or []:
            self._updater.update_user(user, user)
            self._emit(parent_ctx, ConversationEvent.USER_JOIN, chat_log, self._conversation, user, feed)

    def _on_message_delete(self, payload: ChatLogPush | None, parent_ctx: EventContext) -> None:
        if not self._addressed(payload):
            return

        chat_log = payload.chat_log
        if not chat_log.is_feed:
            return
        feed = self._feed(chat_log)
        if not isinstance(feed, DeleteToAllFeed) or feed.feed_type != FeedType.DELETE_TO_ALL:
            return

        self._emit(parent_ctx, ConversationEvent.CHAT_DELETED, chat_log, self._conversation, feed)

    def _feed(self, chat_log: ChatLog) -> Feed | None:
        try:
            return feed_from_chat(chat_log)
        except ProtocolError as exc:
            logger.debug(
                "Undecodable feed dropped conversation_id=%s log_id=%s error=%s",
                self.conversation_id,
                chat_log.log_id,
                exc.message,
            )
            return None
