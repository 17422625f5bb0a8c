from __future__ import annotations

import logging
from collections.abc import Callable
from enum import StrEnum

logger = logging.getLogger(__name__)


class ConversationEvent(StrEnum):
    CHAT = "chat"
    CHAT_READ = "chat_read"
    META_CHANGE = "meta_change"
    USER_LEFT = "user_left"
    USER_JOIN = "user_join"
    CHAT_DELETED = "chat_deleted"


class ConversationListEvent(StrEnum):
    CONVERSATION_LEFT = "conversation_left"
    CONVERSATION_JOINED = "conversation_joined"


EventName = ConversationEvent | ConversationListEvent
Listener = Callable[..., object]

EVENT_ARGUMENTS: dict[str, tuple[str, ...]] = {
    ConversationEvent.CHAT: ("chat_log", "conversation"),
    ConversationEvent.CHAT_READ: ("read_mark", "conversation", "user"),
    ConversationEvent.META_CHANGE: ("conversation", "meta_type", "meta"),
    ConversationEvent.USER_LEFT: ("chat_log", "conversation", "user", "feed"),
    ConversationEvent.USER_JOIN: ("chat_log", "conversation", "user", "feed"),
    ConversationEvent.CHAT_DELETED: ("chat_log", "conversation", "feed"),
    ConversationListEvent.CONVERSATION_LEFT: ("conversation",),
    ConversationListEvent.CONVERSATION_JOINED: ("conversation",),
}


class EventEmitter:
    """Per-event listener registry for one scope.

    Listeners run synchronously in registration order. A failing listener is
    logged and skipped so the remaining listeners and enclosing scopes still
    receive the event.
    """

    def __init__(self) -> None:
        self._listeners: dict[str, list[Listener]] = {}

    def on(self, event: EventName | str, listener: Listener) -> Listener:
        name = _event_name(event)
        self._listeners.setdefault(name, []).append(listener)
        return listener

    def off(self, event: EventName | str, listener: Listener) -> bool:
        listeners = self._listeners.get(_event_name(event))
        if not listeners or listener not in listeners:
            return False
        listeners.remove(listener)
        return True

    def listener_count(self, event: EventName | str) -> int:
        return len(self._listeners.get(_event_name(event), ()))

    def emit(self, event: EventName | str, *args: object) -> bool:
        name = _event_name(event)
        expected = EVENT_ARGUMENTS[name]
        if len(args) != len(expected):
            raise TypeError(f"Event {name} takes {len(expected)} arguments ({', '.join(expected)}), got {len(args)}")

        listeners = list(self._listeners.get(name, ()))
        for listener in listeners:
            try:
                listener(*args)
            except Exception:
                logger.exception("Event listener failed event=%s listener=%r", name, listener)
        return bool(listeners)


def _event_name(event: EventName | str) -> str:
    name = str(event)
    if name not in EVENT_ARGUMENTS:
        raise ValueError(f"Unknown event {name!r}")
    return name
