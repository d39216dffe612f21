"""Pointer interaction states of the workflow editor.

Exactly one state is active at a time. Every state other than ``Idle``
holds the move/up listener pair on the pointer surface.
"""

from dataclasses import dataclass
from typing import Union

from agentgraph.editor.viewport import Point


@dataclass(frozen=True)
class Idle:
    pass


@dataclass(frozen=True)
class DraggingNode:
    local_id: str
    start: Point  # client coordinates of the press
    origin: Point  # node position at the press


@dataclass(frozen=True)
class Panning:
    start: Point
    origin: Point  # viewport offset at the press


@dataclass(frozen=True)
class DraggingEdge:
    source_key: str
    cursor: Point  # world coordinates of the floating endpoint
    hovered: str | None = None


InteractionState = Union[Idle, DraggingNode, Panning, DraggingEdge]

IDLE = Idle()
