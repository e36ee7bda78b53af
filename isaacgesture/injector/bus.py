from __future__ import annotations

from typing import Callable, List

from isaacgesture.core.types import ControlEvent

Subscriber = Callable[[ControlEvent], None]


class ControlBus:
    """
    Fan-out of interpreter events.

    The raw key emitter is one subscriber among others (recorder, tests,
    a direct viewer API client); the interpreter never knows who listens.
    """

    def __init__(self) -> None:
        self._subs: List[Subscriber] = []

    def subscribe(self, fn: Subscriber) -> Callable[[], None]:
        self._subs.append(fn)

        def unsubscribe() -> None:
            if fn in self._subs:
                self._subs.remove(fn)

        return unsubscribe

    def publish(self, ev: ControlEvent) -> None:
        for fn in list(self._subs):
            fn(ev)

    def __len__(self) -> int:
        return len(self._subs)
