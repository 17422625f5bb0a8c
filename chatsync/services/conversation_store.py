from __future__ import annotations

import logging
from collections.abc import Iterable
from typing import Protocol

from chatsync.schemas.conversations import ConversationInfo
from chatsync.schemas.users import ConversationUserInfo, UserRef

logger = logging.getLogger(__name__)


class ConversationStore(Protocol):
    @property
    def info(self) -> ConversationInfo: ...

    def get_user(self, ref: UserRef) -> ConversationUserInfo | None: ...


class ConversationUpdater(Protocol):
    def update_info(self, **changes: object) -> None: ...

    def update_watermark(self, user_id: int, log_id: int) -> None: ...

    def remove_user(self, ref: UserRef) -> bool: ...

    def update_user(self, ref: UserRef, info: ConversationUserInfo) -> None: ...


class ConversationDataStore:
    """In-memory cache of one conversation's info, members and read watermarks."""

    def __init__(self, info: ConversationInfo, users: Iterable[ConversationUserInfo] = ()) -> None:
        self._info = info
        self._users: dict[int, ConversationUserInfo] = {user.user_id: user for user in users}
        self._watermarks: dict[int, int] = {}

    @property
    def info(self) -> ConversationInfo:
        return self._info

    @property
    def user_count(self) -> int:
        return len(self._users)

    def users(self) -> list[ConversationUserInfo]:
        return list(self._users.values())

    def get_user(self, ref: UserRef) -> ConversationUserInfo | None:
        return self._users.get(ref.user_id)

    def get_watermark(self, user_id: int) -> int | None:
        return self._watermarks.get(user_id)

    def update_info(self, **changes: object) -> None:
        self._info = self._info.model_copy(update=changes)
        logger.debug(
            "Conversation info updated conversation_id=%s fields=%s",
            self._info.conversation_id,
            ",".join(sorted(changes)),
        )

    def set_info(self, info: ConversationInfo) -> None:
        self._info = info

    def update_watermark(self, user_id: int, log_id: int) -> None:
        self._watermarks[user_id] = log_id

    def remove_user(self, ref: UserRef) -> bool:
        return self._users.pop(ref.user_id, None) is not None

    def update_user(self, ref: UserRef, info: ConversationUserInfo) -> None:
        self._users[ref.user_id] = info

    def replace_users(self, users: Iterable[ConversationUserInfo]) -> None:
        self._users = {user.user_id: user for user in users}
