from __future__ import annotations

from collections.abc import Sequence
from typing import Protocol

from chatsync.core.errors import CommandResult
from chatsync.schemas.conversations import ConversationInfo, ConversationRef, OpenConversationRef
from chatsync.schemas.users import ConversationUserInfo, UserRef


class ClientSession(Protocol):
    """Request side of the remote service, as seen by the routing core."""

    async def fetch_latest_users(
        self,
        conversation_id: int,
        users: Sequence[UserRef],
    ) -> CommandResult[list[ConversationUserInfo]]: ...

    async def fetch_conversation_info(
        self,
        ref: ConversationRef | OpenConversationRef,
    ) -> CommandResult[ConversationInfo]: ...

    async def fetch_members(
        self,
        ref: ConversationRef | OpenConversationRef,
    ) -> CommandResult[list[ConversationUserInfo]]: ...
