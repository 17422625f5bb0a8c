from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import TYPE_CHECKING, Protocol

from chatsync.core.errors import CommandResult, ProtocolError
from chatsync.realtime.context import EventContext
from chatsync.realtime.events import ConversationListEvent, EventEmitter
from chatsync.realtime.protocol import (
    MembershipJoinedPush,
    MembershipLeftPush,
    PushPayload,
    PushTag,
    decode_push,
)
from chatsync.realtime.tasks import FetchPolicy, PendingTasks, fetch_once
from chatsync.schemas.conversations import ConversationKind, ConversationRef, OpenConversationRef

if TYPE_CHECKING:
    from chatsync.services.conversation import LiveConversation

logger = logging.getLogger(__name__)


class ConversationListStore(Protocol):
    def get(self, conversation_id: int) -> LiveConversation | None: ...


class ConversationListUpdater(Protocol):
    async def add_conversation(
        self,
        ref: ConversationRef | OpenConversationRef,
    ) -> CommandResult[LiveConversation]: ...

    def remove_conversation(self, conversation: LiveConversation) -> bool: ...


class ConversationListEventRouter:
    """Handles pushes that add or remove whole conversations from a list."""

    def __init__(
        self,
        *,
        kind: ConversationKind,
        store: ConversationListStore,
        updater: ConversationListUpdater,
        events: EventEmitter,
        fetch_policy: FetchPolicy = fetch_once,
    ) -> None:
        self._kind = kind
        self._store = store
        self._updater = updater
        self._events = events
        self._fetch_policy = fetch_policy
        self._pending = PendingTasks(f"list:{kind}")

    async def wait_idle(self) -> None:
        await self._pending.wait_idle()

    def push_received(self, method: str, data: Mapping[str, object], parent_ctx: EventContext) -> None:
        tag = PushTag.parse(method)
        match tag:
            case PushTag.MEMBERSHIP_LEFT:
                self._on_left(self._decode(tag, data), parent_ctx)
            case PushTag.MEMBERSHIP_JOINED:
                self._on_joined(self._decode(tag, data), parent_ctx)
            case _:
                return

    def _decode(self, tag: PushTag, data: Mapping[str, object]) -> PushPayload | None:
        try:
            return decode_push(tag, data)
        except ProtocolError as exc:
            logger.debug("Malformed push dropped tag=%s list=%s error=%s", tag.name, self._kind, exc.message)
            return None

    def _emit(self, parent_ctx: EventContext, event: ConversationListEvent, *args: object) -> None:
        EventContext(self._events, parent_ctx).emit(event, *args)

    def _on_left(self, payload: MembershipLeftPush | None, parent_ctx: EventContext) -> None:
        if payload is None:
            return

        conversation = self._store.get(payload.conversation_id)
        if conversation is None:
            return

        self._updater.remove_conversation(conversation)

        self._emit(parent_ctx, ConversationListEvent.CONVERSATION_LEFT, conversation)

    def _on_joined(self, payload: MembershipJoinedPush | None, parent_ctx: EventContext) -> None:
        if payload is None or payload.kind != self._kind:
            return

        ref: ConversationRef | OpenConversationRef
        if payload.link_id is None:
            ref = ConversationRef(conversation_id=payload.conversation_id)
        else:
            ref = OpenConversationRef(conversation_id=payload.conversation_id, link_id=payload.link_id)
        self._pending.spawn(self._resolve_joined(ref, parent_ctx))

    async def _resolve_joined(self, ref: ConversationRef | OpenConversationRef, parent_ctx: EventContext) -> None:
        result = await self._fetch_policy(lambda: self._updater.add_conversation(ref))
        if not result.success:
            logger.debug(
                "Joined conversation resolution failed conversation_id=%s status=%s",
                ref.conversation_id,
                result.status,
            )
            return

        self._emit(parent_ctx, ConversationListEvent.CONVERSATION_JOINED, result.result)
