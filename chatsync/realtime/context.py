from __future__ import annotations

from collections.abc import Iterator

from chatsync.realtime.events import EventEmitter, EventName


class EventContext:
    """A node in the chain of scopes an event surfaces at.

    ``emit`` fires this node's sink, then each parent's sink outwards until
    the root (client) scope.
    """

    __slots__ = ("sink", "parent")

    def __init__(self, sink: EventEmitter, parent: EventContext | None = None) -> None:
        self.sink = sink
        self.parent = parent

    @property
    def root(self) -> EventContext:
        node = self
        while node.parent is not None:
            node = node.parent
        return node

    def chain(self) -> Iterator[EventContext]:
        node: EventContext | None = self
        while node is not None:
            yield node
            node = node.parent

    def emit(self, event: EventName | str, *args: object) -> None:
        for node in self.chain():
            node.sink.emit(event, *args)
