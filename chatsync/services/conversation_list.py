from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable, Iterable, Iterator, Mapping

from chatsync.core.errors import CommandResult
from chatsync.realtime.context import EventContext
from chatsync.realtime.conversation_list_router import ConversationListEventRouter
from chatsync.realtime.events import EventEmitter
from chatsync.realtime.tasks import FetchPolicy, fetch_once
from chatsync.schemas.conversations import ConversationKind, ConversationRef, OpenConversationRef
from chatsync.services.conversation import LiveConversation
from chatsync.services.session import ClientSession

logger = logging.getLogger(__name__)

STATUS_ALREADY_TRACKED = -409


class ConversationList:
    """Tracks the live conversations of one kind (ordinary or open)."""

    def __init__(
        self,
        session: ClientSession,
        *,
        kind: ConversationKind,
        is_tracked_elsewhere: Callable[[int], bool] | None = None,
        fetch_policy: FetchPolicy = fetch_once,
    ) -> None:
        self.kind = kind
        self.events = EventEmitter()
        self._session = session
        self._is_tracked_elsewhere = is_tracked_elsewhere
        self._fetch_policy = fetch_policy
        self._conversations: dict[int, LiveConversation] = {}
        self._router = ConversationListEventRouter(
            kind=kind,
            store=self,
            updater=self,
            events=self.events,
            fetch_policy=fetch_policy,
        )

    @property
    def size(self) -> int:
        return len(self._conversations)

    def __len__(self) -> int:
        return len(self._conversations)

    def __contains__(self, conversation_id: object) -> bool:
        return conversation_id in self._conversations

    def get(self, conversation_id: int) -> LiveConversation | None:
        return self._conversations.get(conversation_id)

    def all(self) -> Iterator[LiveConversation]:
        return iter(tuple(self._conversations.values()))

    def push_received(self, method: str, data: Mapping[str, object], parent_ctx: EventContext) -> None:
        ctx = EventContext(self.events, parent_ctx)
        for conversation in self.all():
            conversation.push_received(method, data, ctx)

        self._router.push_received(method, data, parent_ctx)

    async def add_conversation(self, ref: ConversationRef | OpenConversationRef) -> CommandResult[LiveConversation]:
        existing = self._conversations.get(ref.conversation_id)
        if existing is not None:
            return CommandResult.ok(existing)
        if self._tracked_elsewhere(ref.conversation_id):
            return CommandResult.failed(STATUS_ALREADY_TRACKED)

        conversation = self._create(ref)
        load_res = await conversation.load()
        if not load_res.success:
            return CommandResult.failed(load_res.status)

        # The join may have raced with another add for the same id.
        existing = self._conversations.get(ref.conversation_id)
        if existing is not None:
            return CommandResult.ok(existing)
        if self._tracked_elsewhere(ref.conversation_id):
            return CommandResult.failed(STATUS_ALREADY_TRACKED)

        self._conversations[ref.conversation_id] = conversation
        logger.info("Conversation added conversation_id=%s kind=%s", ref.conversation_id, self.kind)
        return CommandResult.ok(conversation)

    def remove_conversation(self, conversation: LiveConversation) -> bool:
        current = self._conversations.get(conversation.conversation_id)
        if current is not conversation:
            return False
        del self._conversations[conversation.conversation_id]
        logger.info("Conversation removed conversation_id=%s kind=%s", conversation.conversation_id, self.kind)
        return True

    async def initialize(self, refs: Iterable[ConversationRef | OpenConversationRef]) -> None:
        created: list[LiveConversation] = []
        for ref in refs:
            if ref.conversation_id in self._conversations:
                logger.warning("Duplicate conversation skipped conversation_id=%s kind=%s", ref.conversation_id, self.kind)
                continue
            conversation = self._create(ref)
            self._conversations[ref.conversation_id] = conversation
            created.append(conversation)

        results = await asyncio.gather(*(conversation.load() for conversation in created))
        failed = sum(1 for result in results if not result.success)
        logger.info("Conversation list initialized kind=%s size=%s failed_loads=%s", self.kind, self.size, failed)

    async def wait_idle(self) -> None:
        await self._router.wait_idle()
        for conversation in self.all():
            await conversation.wait_idle()

    def _tracked_elsewhere(self, conversation_id: int) -> bool:
        if self._is_tracked_elsewhere is None or not self._is_tracked_elsewhere(conversation_id):
            return False
        logger.warning(
            "Conversation already tracked by another list conversation_id=%s kind=%s",
            conversation_id,
            self.kind,
        )
        return True

    def _create(self, ref: ConversationRef | OpenConversationRef) -> LiveConversation:
        return LiveConversation(ref, self._session, fetch_policy=self._fetch_policy)
