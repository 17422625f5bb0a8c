from __future__ import annotations

import asyncio
import itertools
import logging
from collections.abc import Iterable, Iterator, Mapping

from chatsync.realtime.context import EventContext
from chatsync.realtime.events import EventEmitter
from chatsync.realtime.tasks import FetchPolicy, fetch_once
from chatsync.schemas.conversations import ConversationKind, ConversationRef, OpenConversationRef
from chatsync.services.conversation import LiveConversation
from chatsync.services.conversation_list import ConversationList
from chatsync.services.session import ClientSession

logger = logging.getLogger(__name__)


class ConversationRegistry:
    """Ordinary and open conversations behind one lookup and one push entry point.

    An id is tracked by at most one of the two lists.
    """

    def __init__(self, session: ClientSession, *, fetch_policy: FetchPolicy = fetch_once) -> None:
        self.events = EventEmitter()
        self._ordinary = ConversationList(
            session,
            kind=ConversationKind.ORDINARY,
            is_tracked_elsewhere=lambda conversation_id: conversation_id in self._open,
            fetch_policy=fetch_policy,
        )
        self._open = ConversationList(
            session,
            kind=ConversationKind.OPEN,
            is_tracked_elsewhere=lambda conversation_id: conversation_id in self._ordinary,
            fetch_policy=fetch_policy,
        )

    @property
    def size(self) -> int:
        return self._ordinary.size + self._open.size

    @property
    def ordinary(self) -> ConversationList:
        return self._ordinary

    @property
    def open(self) -> ConversationList:
        return self._open

    def get(self, conversation_id: int) -> LiveConversation | None:
        return self._ordinary.get(conversation_id) or self._open.get(conversation_id)

    def all(self) -> Iterator[LiveConversation]:
        return itertools.chain(self._ordinary.all(), self._open.all())

    def push_received(self, method: str, data: Mapping[str, object], parent_ctx: EventContext) -> None:
        ctx = EventContext(self.events, parent_ctx)

        self._ordinary.push_received(method, data, ctx)
        self._open.push_received(method, data, ctx)

    async def initialize(self, entries: Iterable[ConversationRef | OpenConversationRef] = ()) -> ConversationRegistry:
        ordinary: list[ConversationRef] = []
        open_: list[OpenConversationRef] = []
        seen: set[int] = set()
        for entry in entries:
            if entry.conversation_id in seen or self.get(entry.conversation_id) is not None:
                logger.warning("Duplicate conversation entry skipped conversation_id=%s", entry.conversation_id)
                continue
            seen.add(entry.conversation_id)
            if entry.kind == ConversationKind.OPEN:
                open_.append(entry)
            else:
                ordinary.append(entry)

        await asyncio.gather(
            self._ordinary.initialize(ordinary),
            self._open.initialize(open_),
        )
        logger.info("Conversation registry initialized ordinary=%s open=%s", self._ordinary.size, self._open.size)
        return self

    async def wait_idle(self) -> None:
        await self._ordinary.wait_idle()
        await self._open.wait_idle()
