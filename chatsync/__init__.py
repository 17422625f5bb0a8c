from chatsync.client import ChatClient, create_client
from chatsync.core.errors import CommandResult, ProtocolError
from chatsync.realtime import ConversationEvent, ConversationListEvent, EventContext, EventEmitter, PushTag
from chatsync.services.registry import ConversationRegistry

__all__ = [
    "ChatClient",
    "CommandResult",
    "ConversationEvent",
    "ConversationListEvent",
    "ConversationRegistry",
    "EventContext",
    "EventEmitter",
    "ProtocolError",
    "PushTag",
    "create_client",
]
