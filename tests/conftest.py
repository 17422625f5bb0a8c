from __future__ import annotations

import asyncio
import sys
from collections.abc import Sequence
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

from chatsync.core.errors import CommandResult
from chatsync.schemas.conversations import ConversationInfo, ConversationRef, OpenConversationRef
from chatsync.schemas.users import ConversationUserInfo, UserRef


class FakeSession:
    def __init__(self) -> None:
        self.infos: dict[int, ConversationInfo] = {}
        self.members: dict[int, list[ConversationUserInfo]] = {}
        self.latest_users: list[ConversationUserInfo] = []
        self.fail_user_fetch = False
        self.missing_conversations: set[int] = set()
        self.user_requests: list[tuple[int, list[int]]] = []
        self.gate: asyncio.Event | None = None
        self.yield_on_info = False

    async def fetch_latest_users(
        self,
        conversation_id: int,
        users: Sequence[UserRef],
    ) -> CommandResult[list[ConversationUserInfo]]:
        self.user_requests.append((conversation_id, [user.user_id for user in users]))
        if self.gate is not None:
            await self.gate.wait()
        if self.fail_user_fetch:
            return CommandResult.failed()
        return CommandResult.ok(list(self.latest_users))

    async def fetch_conversation_info(
        self,
        ref: ConversationRef | OpenConversationRef,
    ) -> CommandResult[ConversationInfo]:
        if self.yield_on_info:
            await asyncio.sleep(0)
        if ref.conversation_id in self.missing_conversations:
            return CommandResult.failed(-404)
        info = self.infos.get(ref.conversation_id, ConversationInfo(conversation_id=ref.conversation_id))
        return CommandResult.ok(info)

    async def fetch_members(
        self,
        ref: ConversationRef | OpenConversationRef,
    ) -> CommandResult[list[ConversationUserInfo]]:
        return CommandResult.ok(list(self.members.get(ref.conversation_id, [])))


@pytest.fixture()
def session() -> FakeSession:
    return FakeSession()
