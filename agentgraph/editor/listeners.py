"""Window-level pointer listeners with scoped attachment.

The editor only listens for pointer moves and releases while a gesture is
in progress. ``ListenerScope`` owns exactly one move/up handler pair and
attaches it to a ``PointerSurface`` on ``acquire`` and detaches it on
``release``.
"""

from dataclasses import dataclass
from typing import Callable

POINTER_MOVE = "pointermove"
POINTER_UP = "pointerup"

PRIMARY_BUTTON = 0


@dataclass(frozen=True)
class PointerEvent:
    client_x: float
    client_y: float
    button: int = PRIMARY_BUTTON
    # False when the press landed on a child of the canvas rather than its background
    on_background: bool = True


PointerHandler = Callable[[PointerEvent], None]


class PointerSurface:
    """Dispatches pointer events to registered listeners."""

    def __init__(self) -> None:
        self._listeners: dict[str, list[PointerHandler]] = {
            POINTER_MOVE: [],
            POINTER_UP: [],
        }

    def add_listener(self, event_type: str, handler: PointerHandler) -> None:
        self._listeners[event_type].append(handler)

    def remove_listener(self, event_type: str, handler: PointerHandler) -> None:
        if handler in self._listeners[event_type]:
            self._listeners[event_type].remove(handler)

    def listener_count(self, event_type: str | None = None) -> int:
        if event_type is not None:
            return len(self._listeners[event_type])
        return sum(len(handlers) for handlers in self._listeners.values())

    def dispatch(self, event_type: str, event: PointerEvent) -> None:
        for handler in list(self._listeners[event_type]):
            handler(event)

    def move(self, client_x: float, client_y: float) -> None:
        self.dispatch(POINTER_MOVE, PointerEvent(client_x, client_y))

    def release(self, client_x: float = 0.0, client_y: float = 0.0) -> None:
        self.dispatch(POINTER_UP, PointerEvent(client_x, client_y))


class ListenerScope:
    def __init__(
        self,
        surface: PointerSurface,
        on_move: PointerHandler,
        on_up: PointerHandler,
    ) -> None:
        self._surface = surface
        self._on_move = on_move
        self._on_up = on_up
        self._attached = False

    @property
    def attached(self) -> bool:
        return self._attached

    def acquire(self) -> None:
        if self._attached:
            return
        self._surface.add_listener(POINTER_MOVE, self._on_move)
        self._surface.add_listener(POINTER_UP, self._on_up)
        self._attached = True

    def release(self) -> None:
        if not self._attached:
            return
        self._surface.remove_listener(POINTER_MOVE, self._on_move)
        self._surface.remove_listener(POINTER_UP, self._on_up)
        self._attached = False
