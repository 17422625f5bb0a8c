from __future__ import annotations

import json

import pytest

from chatsync.core.errors import CommandResult, ProtocolError
from chatsync.realtime.protocol import ChatLogPush, MembershipJoinedPush, MessagePush, PushTag, decode_push
from chatsync.schemas.chat import ChatLog, ChatType, DeleteToAllFeed, Feed, FeedType, feed_from_chat
from chatsync.schemas.conversations import ConversationKind


def _feed_chat_log(text: str) -> ChatLog:
    return ChatLog(log_id=1, conversation_id=10, author_id=5, type=ChatType.FEED, text=text)


def test_push_tag_parse_maps_unknown_methods_to_none():
    assert PushTag.parse("MSG") is PushTag.MESSAGE_POST
    assert PushTag.parse("SYNCJOIN") is PushTag.MEMBERSHIP_JOINED
    assert PushTag.parse("KICKOUT") is None


def test_decode_push_reads_wire_aliases():
    payload = decode_push(
        PushTag.MESSAGE_POST,
        {
            "chatId": 10,
            "logId": 3,
            "chatLog": {"logId": 3, "chatId": 10, "authorId": 5, "type": 1, "message": "hey", "sendAt": 1700000000},
            "noSeen": False,
        },
    )

    assert isinstance(payload, MessagePush)
    assert payload.chat_log.text == "hey"
    assert payload.chat_log.sender.user_id == 5
    assert payload.chat_log.send_at == 1700000000


def test_decode_push_rejects_invalid_payloads():
    with pytest.raises(ProtocolError) as exc_info:
        decode_push(PushTag.READ_RECEIPT, {"chatId": 10})
    assert exc_info.value.code == "INVALID_PUSH"

    with pytest.raises(ProtocolError):
        decode_push(PushTag.MEMBER_LEFT, ["not", "a", "mapping"])


def test_chat_log_push_exposes_embedded_conversation_id():
    payload = decode_push(
        PushTag.MEMBER_LEFT,
        {"chatLog": {"logId": 3, "chatId": 44, "authorId": 5, "type": 0}},
    )

    assert isinstance(payload, ChatLogPush)
    assert payload.conversation_id == 44


def test_membership_joined_kind_follows_link_id():
    ordinary = decode_push(PushTag.MEMBERSHIP_JOINED, {"c": 3})
    open_ = decode_push(
        PushTag.MEMBERSHIP_JOINED,
        {"c": 3, "li": 8, "chatLog": {"logId": 1, "chatId": 3, "authorId": 5, "type": 0}},
    )

    assert isinstance(ordinary, MembershipJoinedPush)
    assert ordinary.kind == ConversationKind.ORDINARY
    assert open_.kind == ConversationKind.OPEN
    assert open_.model_dump() == {"conversation_id": 3, "link_id": 8}


def test_feed_from_chat_decodes_delete_to_all():
    feed = feed_from_chat(_feed_chat_log(json.dumps({"feedType": 14, "logId": 99, "hidden": True})))

    assert isinstance(feed, DeleteToAllFeed)
    assert feed.feed_type == FeedType.DELETE_TO_ALL
    assert feed.log_id == 99


def test_feed_from_chat_keeps_other_feed_types_generic():
    feed = feed_from_chat(
        _feed_chat_log(json.dumps({"feedType": 4, "members": [{"userId": 7, "nickname": "dora"}]}))
    )

    assert type(feed) is Feed
    assert feed.members[0].user_id == 7


def test_feed_from_chat_rejects_non_feed_text():
    with pytest.raises(ProtocolError) as exc_info:
        feed_from_chat(_feed_chat_log("plain text"))
    assert exc_info.value.code == "INVALID_FEED"


def test_command_result_constructors():
    ok = CommandResult.ok([1, 2])
    failed = CommandResult.failed(-404)

    assert ok.success is True
    assert ok.result == [1, 2]
    assert failed.success is False
    assert failed.result is None
    assert failed.status == -404
