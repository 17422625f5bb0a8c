from __future__ import annotations

import logging
from collections.abc import Mapping

from chatsync.core.errors import CommandResult
from chatsync.realtime.context import EventContext
from chatsync.realtime.conversation_router import ConversationEventRouter
from chatsync.realtime.events import EventEmitter
from chatsync.realtime.tasks import FetchPolicy, fetch_once
from chatsync.schemas.conversations import (
    ConversationInfo,
    ConversationKind,
    ConversationRef,
    OpenConversationRef,
)
from chatsync.schemas.users import ConversationUserInfo, UserRef
from chatsync.services.conversation_store import ConversationDataStore
from chatsync.services.session import ClientSession

logger = logging.getLogger(__name__)


class LiveConversation:
    """A tracked conversation: its cache, its event sink and its push router."""

    def __init__(
        self,
        ref: ConversationRef | OpenConversationRef,
        session: ClientSession,
        *,
        fetch_policy: FetchPolicy = fetch_once,
    ) -> None:
        self.ref = ref
        self.events = EventEmitter()
        self._session = session
        self._store = ConversationDataStore(ConversationInfo(conversation_id=ref.conversation_id))
        self._router = ConversationEventRouter(
            self,
            session=session,
            store=self._store,
            updater=self._store,
            events=self.events,
            fetch_policy=fetch_policy,
        )

    def __repr__(self) -> str:
        return f"LiveConversation(conversation_id={self.conversation_id}, kind={self.kind})"

    @property
    def conversation_id(self) -> int:
        return self.ref.conversation_id

    @property
    def kind(self) -> ConversationKind:
        return ConversationKind(self.ref.kind)

    @property
    def link_id(self) -> int | None:
        return getattr(self.ref, "link_id", None)

    @property
    def info(self) -> ConversationInfo:
        return self._store.info

    @property
    def user_count(self) -> int:
        return self._store.user_count

    def users(self) -> list[ConversationUserInfo]:
        return self._store.users()

    def get_user(self, ref: UserRef) -> ConversationUserInfo | None:
        return self._store.get_user(ref)

    def get_watermark(self, user_id: int) -> int | None:
        return self._store.get_watermark(user_id)

    def push_received(self, method: str, data: Mapping[str, object], parent_ctx: EventContext) -> None:
        self._router.push_received(method, data, parent_ctx)

    async def wait_idle(self) -> None:
        await self._router.wait_idle()

    async def load(self) -> CommandResult[ConversationInfo]:
        info_res = await self._session.fetch_conversation_info(self.ref)
        if not info_res.success or info_res.result is None:
            logger.warning(
                "Conversation info fetch failed conversation_id=%s status=%s",
                self.conversation_id,
                info_res.status,
            )
            return CommandResult.failed(info_res.status)
        self._store.set_info(info_res.result)

        members_res = await self._session.fetch_members(self.ref)
        if members_res.success:
            self._store.replace_users(members_res.result or [])
        else:
            logger.debug(
                "Conversation members fetch failed conversation_id=%s status=%s",
                self.conversation_id,
                members_res.status,
            )
        return CommandResult.ok(self._store.info)
