from chatsync.realtime.context import EventContext
from chatsync.realtime.conversation_list_router import ConversationListEventRouter
from chatsync.realtime.conversation_router import ConversationEventRouter
from chatsync.realtime.events import ConversationEvent, ConversationListEvent, EventEmitter
from chatsync.realtime.protocol import PushTag

__all__ = [
    "ConversationEvent",
    "ConversationEventRouter",
    "ConversationListEvent",
    "ConversationListEventRouter",
    "EventContext",
    "EventEmitter",
    "PushTag",
]
