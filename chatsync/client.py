from __future__ import annotations

import logging
from collections.abc import Iterable, Iterator, Mapping

from chatsync.core.logging import configure_logging
from chatsync.core.settings import Settings, get_settings
from chatsync.realtime.context import EventContext
from chatsync.realtime.events import EventEmitter
from chatsync.realtime.tasks import FetchPolicy, fetch_once
from chatsync.schemas.conversations import ConversationRef, OpenConversationRef
from chatsync.services.conversation import LiveConversation
from chatsync.services.registry import ConversationRegistry
from chatsync.services.session import ClientSession

logger = logging.getLogger(__name__)


class ChatClient:
    """Client scope: the root of every event context chain."""

    def __init__(self, session: ClientSession, *, fetch_policy: FetchPolicy = fetch_once) -> None:
        self.events = EventEmitter()
        self.session = session
        self.registry = ConversationRegistry(session, fetch_policy=fetch_policy)

    @property
    def conversations(self) -> Iterator[LiveConversation]:
        return self.registry.all()

    def get(self, conversation_id: int) -> LiveConversation | None:
        return self.registry.get(conversation_id)

    def push_received(self, method: str, data: Mapping[str, object]) -> None:
        logger.debug("Push received method=%s", method)
        self.registry.push_received(method, data, EventContext(self.events))

    async def initialize(self, entries: Iterable[ConversationRef | OpenConversationRef] = ()) -> ChatClient:
        await self.registry.initialize(entries)
        return self

    async def wait_idle(self) -> None:
        await self.registry.wait_idle()


def create_client(
    session: ClientSession,
    *,
    settings: Settings | None = None,
    fetch_policy: FetchPolicy = fetch_once,
) -> ChatClient:
    settings = settings or get_settings()
    configure_logging(debug=settings.debug)
    logger.info("Creating chat client app_name=%s", settings.app_name)
    return ChatClient(session, fetch_policy=fetch_policy)
