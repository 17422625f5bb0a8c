from __future__ import annotations

import logging

import pytest

from chatsync.realtime.context import EventContext
from chatsync.realtime.events import ConversationEvent, ConversationListEvent, EventEmitter


def test_emit_fires_local_sink_before_each_parent():
    order: list[str] = []
    client, registry, conversation = EventEmitter(), EventEmitter(), EventEmitter()
    for name, emitter in (("client", client), ("registry", registry), ("conversation", conversation)):
        emitter.on(ConversationListEvent.CONVERSATION_LEFT, lambda conv, name=name: order.append(name))

    root = EventContext(client)
    ctx = EventContext(conversation, EventContext(registry, root))
    ctx.emit(ConversationListEvent.CONVERSATION_LEFT, object())

    assert order == ["conversation", "registry", "client"]
    assert ctx.root is root
    assert root.parent is None


def test_listeners_fire_in_registration_order():
    emitter = EventEmitter()
    order: list[int] = []
    emitter.on("conversation_joined", lambda conv: order.append(1))
    emitter.on("conversation_joined", lambda conv: order.append(2))

    assert emitter.emit(ConversationListEvent.CONVERSATION_JOINED, object()) is True
    assert order == [1, 2]


def test_off_removes_listener():
    emitter = EventEmitter()
    calls: list[object] = []
    listener = emitter.on(ConversationListEvent.CONVERSATION_LEFT, calls.append)

    assert emitter.off(ConversationListEvent.CONVERSATION_LEFT, listener) is True
    assert emitter.off(ConversationListEvent.CONVERSATION_LEFT, listener) is False
    assert emitter.emit(ConversationListEvent.CONVERSATION_LEFT, object()) is False
    assert calls == []
    assert emitter.listener_count(ConversationListEvent.CONVERSATION_LEFT) == 0


def test_emit_rejects_wrong_arity_and_unknown_events():
    emitter = EventEmitter()

    with pytest.raises(TypeError):
        emitter.emit(ConversationEvent.CHAT, object())
    with pytest.raises(ValueError):
        emitter.emit("chat_typing", object())
    with pytest.raises(ValueError):
        emitter.on("chat_typing", print)


def test_failing_listener_does_not_stop_propagation(caplog):
    parent = EventEmitter()
    child = EventEmitter()
    calls: list[str] = []

    def broken(conv):
        raise RuntimeError("listener bug")

    child.on(ConversationListEvent.CONVERSATION_LEFT, broken)
    child.on(ConversationListEvent.CONVERSATION_LEFT, lambda conv: calls.append("child"))
    parent.on(ConversationListEvent.CONVERSATION_LEFT, lambda conv: calls.append("parent"))

    with caplog.at_level(logging.ERROR, logger="chatsync.realtime.events"):
        EventContext(child, EventContext(parent)).emit(ConversationListEvent.CONVERSATION_LEFT, object())

    assert calls == ["child", "parent"]
    assert "Event listener failed" in caplog.text
