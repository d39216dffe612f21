"""Viewport math for the workflow canvas.

Screen (client) coordinates map to world (graph) coordinates through the
canvas rectangle, the pan offset and the zoom scale:

    world = (client - rect.origin - offset) / scale
"""

from dataclasses import dataclass, replace

MIN_SCALE = 0.45
MAX_SCALE = 2.5
DEFAULT_OFFSET = 40.0

WHEEL_ZOOM_IN = 1.08
WHEEL_ZOOM_OUT = 0.92
BUTTON_ZOOM_IN = 1.12
BUTTON_ZOOM_OUT = 0.88


def clamp_scale(scale: float) -> float:
    return max(MIN_SCALE, min(MAX_SCALE, scale))


@dataclass(frozen=True)
class Point:
    x: float
    y: float


@dataclass(frozen=True)
class CanvasRect:
    """Bounding box of the canvas element in client coordinates."""

    left: float = 0.0
    top: float = 0.0
    width: float = 960.0
    height: float = 640.0

    @property
    def center(self) -> Point:
        return Point(self.left + self.width / 2, self.top + self.height / 2)


@dataclass(frozen=True)
class Viewport:
    scale: float = 1.0
    offset_x: float = DEFAULT_OFFSET
    offset_y: float = DEFAULT_OFFSET

    def to_world(self, client_x: float, client_y: float, rect: CanvasRect) -> Point:
        return Point(
            (client_x - rect.left - self.offset_x) / self.scale,
            (client_y - rect.top - self.offset_y) / self.scale,
        )

    def to_client(self, world: Point, rect: CanvasRect) -> Point:
        return Point(
            world.x * self.scale + self.offset_x + rect.left,
            world.y * self.scale + self.offset_y + rect.top,
        )

    def center_world(self, rect: CanvasRect) -> Point:
        """World point currently shown at the middle of the canvas."""
        center = rect.center
        return self.to_world(center.x, center.y, rect)

    def panned(self, offset_x: float, offset_y: float) -> "Viewport":
        return replace(self, offset_x=offset_x, offset_y=offset_y)

    def zoomed(
        self,
        factor: float,
        rect: CanvasRect,
        anchor: Point | None = None,
    ) -> "Viewport":
        """Scale by ``factor`` keeping the world point under ``anchor`` fixed.

        The anchor defaults to the canvas center. Returns ``self`` when the
        clamped scale does not change.
        """
        next_scale = clamp_scale(self.scale * factor)
        if next_scale == self.scale:
            return self
        anchor = anchor or rect.center
        world = self.to_world(anchor.x, anchor.y, rect)
        return Viewport(
            scale=next_scale,
            offset_x=anchor.x - rect.left - world.x * next_scale,
            offset_y=anchor.y - rect.top - world.y * next_scale,
        )
