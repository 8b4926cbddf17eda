"""In-process drawing surface for the office map.

A surface holds one visual group per desk shape. Groups carry the shape
identity in ``data`` so edits made on the surface can be written back into
the layout model.
"""

import logging
import math
from collections.abc import Callable

from pydantic import BaseModel

from .exceptions import SurfaceDisposedError, ValidationError
from .models import DeskShape, wrap_angle

logger = logging.getLogger(__name__)

# Below this window width the surface switches to the compact size
MOBILE_BREAKPOINT = 768
DESKTOP_SIZE = (800, 600)
MOBILE_HEIGHT = 400
MOBILE_MARGIN = 40

SELECTION_CREATED = "selection:created"
SELECTION_CLEARED = "selection:cleared"


class SurfaceRect(BaseModel):
    """Rectangle drawn inside a desk group."""

    width: float
    height: float
    fill: str


class SurfaceData(BaseModel):
    """Identity carried by a desk group."""

    id: str
    name: str
    desk_id: str | None = None


class SurfaceObject(BaseModel):
    """Desk group on a drawing surface: rectangle plus centred label."""

    data: SurfaceData
    left: float = 0.0
    top: float = 0.0
    angle: float = 0.0
    rect: SurfaceRect | None = None
    label: str = ""
    selectable: bool = True

    @classmethod
    def from_shape(cls, shape: DeskShape, fill: str | None = None, selectable: bool = True) -> "SurfaceObject":
        """Build a group from a desk shape.

        Args:
            shape: Desk shape to draw
            fill: Override the shape's fill colour
            selectable: Whether pointer selection is allowed

        Returns:
            SurfaceObject positioned like the shape
        """
        return cls(
            data=SurfaceData(id=shape.id, name=shape.name, desk_id=shape.desk_id),
            left=shape.x,
            top=shape.y,
            angle=shape.rotation,
            rect=SurfaceRect(width=shape.width, height=shape.height, fill=fill or shape.fill),
            label=shape.name,
            selectable=selectable,
        )


SelectionCallback = Callable[[SurfaceObject | None], None]


def size_for_window(window_width: int) -> tuple[int, int]:
    """Get surface (width, height) for a browser window width."""
    if window_width < MOBILE_BREAKPOINT:
        return window_width - MOBILE_MARGIN, MOBILE_HEIGHT
    return DESKTOP_SIZE


class DrawingSurface:
    """Interactive canvas holding desk groups.

    The surface is owned by whoever created it and must be disposed before a
    replacement is created.
    """

    def __init__(self, width: int = DESKTOP_SIZE[0], height: int = DESKTOP_SIZE[1], interactive: bool = True):
        self.width = width
        self.height = height
        self.interactive = interactive
        self._objects: list[SurfaceObject] = []
        self._active: SurfaceObject | None = None
        self._callbacks: dict[str, list[SelectionCallback]] = {
            SELECTION_CREATED: [],
            SELECTION_CLEARED: [],
        }
        self._disposed = False

    @property
    def disposed(self) -> bool:
        return self._disposed

    @property
    def active(self) -> SurfaceObject | None:
        """Currently selected group."""
        return self._active

    def _check(self) -> None:
        if self._disposed:
            raise SurfaceDisposedError("Drawing surface has been disposed")

    def on(self, event: str, callback: SelectionCallback) -> None:
        """Register a callback for a selection event.

        Args:
            event: ``selection:created`` or ``selection:cleared``
            callback: Called with the selected group (None when cleared)
        """
        self._check()
        if event not in self._callbacks:
            raise ValueError(f"Unknown surface event: {event}")
        self._callbacks[event].append(callback)

    def _fire(self, event: str, obj: SurfaceObject | None) -> None:
        for callback in list(self._callbacks[event]):
            callback(obj)

    def add(self, obj: SurfaceObject) -> SurfaceObject:
        """Add a group to the surface."""
        self._check()
        self._objects.append(obj)
        return obj

    def remove(self, obj: SurfaceObject) -> None:
        """Remove a group, clearing the selection if it was selected."""
        self._check()
        self._objects = [o for o in self._objects if o is not obj]
        if self._active is obj:
            self.discard_active()

    def objects(self) -> list[SurfaceObject]:
        """Get all groups in drawing order."""
        self._check()
        return list(self._objects)

    def find(self, shape_id: str) -> SurfaceObject | None:
        """Find the group carrying a shape id."""
        self._check()
        for obj in self._objects:
            if obj.data.id == shape_id:
                return obj
        return None

    def set_active(self, obj: SurfaceObject) -> None:
        """Select a group programmatically."""
        self._check()
        if not any(o is obj for o in self._objects):
            raise ValueError(f"Object {obj.data.id} is not on this surface")
        self._active = obj
        self._fire(SELECTION_CREATED, obj)

    def discard_active(self) -> None:
        """Clear the selection."""
        self._check()
        if self._active is None:
            return
        self._active = None
        self._fire(SELECTION_CLEARED, None)

    def click(self, obj: SurfaceObject | None) -> None:
        """Simulate a pointer click on a group, or on empty space when ``obj`` is None."""
        self._check()
        if obj is None or not self.interactive or not obj.selectable:
            self.discard_active()
            return
        self.set_active(obj)

    def move(self, obj: SurfaceObject, left: float, top: float) -> None:
        """Drag a group to a new position."""
        self._check()
        obj.left = left
        obj.top = top

    def rotate(self, obj: SurfaceObject, angle: float) -> None:
        """Rotate a group to an absolute angle in degrees."""
        self._check()
        obj.angle = wrap_angle(angle)

    def resize_object(self, obj: SurfaceObject, width: float, height: float) -> None:
        """Resize the rectangle inside a group."""
        self._check()
        if obj.rect is None:
            raise ValueError(f"Object {obj.data.id} has no rectangle")
        if not (math.isfinite(width) and math.isfinite(height) and width > 0 and height > 0):
            raise ValidationError(f"Desk size must be positive, got {width}x{height}")
        obj.rect.width = width
        obj.rect.height = height

    def fit_to_window(self, window_width: int) -> None:
        """Resize the surface for a browser window width."""
        self._check()
        self.width, self.height = size_for_window(window_width)
        logger.debug(f"Surface resized to {self.width}x{self.height}")

    def dispose(self) -> None:
        """Release all groups and callbacks."""
        if self._disposed:
            return
        self._objects.clear()
        self._active = None
        for callbacks in self._callbacks.values():
            callbacks.clear()
        self._disposed = True
        logger.debug("Surface disposed")
