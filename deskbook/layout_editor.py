"""Layout editor: keeps desk shapes and an owned drawing surface in sync."""

import logging
import uuid
from collections.abc import Awaitable, Callable

from pydantic import ValidationError as PydanticValidationError

from . import layout
from .backend import BookingBackend
from .exceptions import MalformedLayoutError, NoActiveOfficeError, ValidationError
from .models import DEFAULT_FILL, DeskShape, OfficeSpace
from .notifications import FlashMessages, flash_action
from .surface import SELECTION_CLEARED, SELECTION_CREATED, DrawingSurface, SurfaceObject

logger = logging.getLogger(__name__)

# Geometry of a freshly added desk
DEFAULT_X = 50.0
DEFAULT_Y = 50.0
DEFAULT_WIDTH = 100.0
DEFAULT_HEIGHT = 50.0


def _new_shape_id() -> str:
    return f"desk-{uuid.uuid4().hex}"


class LayoutEditor:
    """Editor session for one office layout at a time.

    The editor owns its drawing surface: ``open`` disposes the previous one
    before building a new one and ``close`` disposes it.
    """

    def __init__(
        self,
        backend: BookingBackend,
        flash: FlashMessages | None = None,
        surface_factory: Callable[[], DrawingSurface] = DrawingSurface,
        on_close: Callable[[], Awaitable[object]] | None = None,
        shape_id_factory: Callable[[], str] = _new_shape_id,
    ):
        """Initialize layout editor.

        Args:
            backend: Backend used to create/delete desks and store the layout
            flash: Flash message queue (default: a private queue)
            surface_factory: Creates the drawing surface for each session
            on_close: Awaited after ``close`` (e.g. refresh desk counts)
            shape_id_factory: Generates local shape ids
        """
        self.backend = backend
        self.flash = flash if flash is not None else FlashMessages()
        self._surface_factory = surface_factory
        self._on_close = on_close
        self._new_shape_id = shape_id_factory

        self.office: OfficeSpace | None = None
        self.shapes: list[DeskShape] = []
        self.selected_id: str | None = None
        self.surface: DrawingSurface | None = None

    @property
    def is_open(self) -> bool:
        return self.office is not None

    def _dispose_surface(self) -> None:
        if self.surface is not None:
            self.surface.dispose()
            self.surface = None

    def _on_selection_created(self, obj: SurfaceObject | None) -> None:
        if obj is not None:
            self.selected_id = obj.data.id

    def _on_selection_cleared(self, obj: SurfaceObject | None) -> None:
        self.selected_id = None

    def open(self, office: OfficeSpace) -> list[DeskShape]:
        """Open an office layout for editing.

        A malformed layout document opens as an empty layout and reports one
        error message.

        Args:
            office: Office space whose layout is edited

        Returns:
            The loaded desk shapes
        """
        self._dispose_surface()
        self.office = office
        self.selected_id = None

        try:
            self.shapes = layout.parse(office.layout_json)
        except MalformedLayoutError as e:
            logger.error(f"Error rendering layout of office {office.id}: {e}")
            self.flash.error("Error rendering office layout.", e)
            self.shapes = []

        self.surface = self._surface_factory()
        for shape in self.shapes:
            self.surface.add(SurfaceObject.from_shape(shape))
        self.surface.on(SELECTION_CREATED, self._on_selection_created)
        self.surface.on(SELECTION_CLEARED, self._on_selection_cleared)

        logger.info(f"Opened layout of office {office.id} with {len(self.shapes)} desks")
        return list(self.shapes)

    async def add_desk(self) -> DeskShape | None:
        """Create a desk and place its shape at the default position.

        Returns:
            The new DeskShape, or None when the action failed
        """
        return await self._add_desk()

    @flash_action(success="Desk added successfully!")
    async def _add_desk(self) -> DeskShape:
        if self.office is None or self.surface is None:
            raise NoActiveOfficeError("Open an office space before adding desks.")

        name = f"Desk {len(self.shapes) + 1}"
        desk = await self.backend.create_desk(self.office.id, name)

        shape = DeskShape(
            id=self._new_shape_id(),
            x=DEFAULT_X,
            y=DEFAULT_Y,
            width=DEFAULT_WIDTH,
            height=DEFAULT_HEIGHT,
            fill=DEFAULT_FILL,
            name=name,
            rotation=0.0,
            desk_id=desk.id,
        )
        self.shapes = [*self.shapes, shape]
        obj = self.surface.add(SurfaceObject.from_shape(shape))
        self.surface.set_active(obj)

        logger.info(f"Added {name} ({desk.id}) to office {self.office.id}")
        return shape

    async def delete_selected(self) -> DeskShape | None:
        """Delete the selected desk.

        Does nothing when no desk is selected.

        Returns:
            The removed DeskShape, or None when nothing was removed
        """
        if self.selected_id is None:
            return None
        return await self._delete_selected()

    @flash_action(success="Desk deleted successfully!")
    async def _delete_selected(self) -> DeskShape:
        if self.office is None or self.surface is None:
            raise NoActiveOfficeError("Open an office space before deleting desks.")

        selected_id = self.selected_id
        shape = next((s for s in self.shapes if s.id == selected_id), None)
        if shape is None:
            raise ValidationError(f"Selected desk {selected_id} is not part of the layout.")

        await self.backend.delete_desk(self.office.id, desk_id=shape.desk_id, name=shape.name)

        obj = self.surface.find(shape.id)
        if obj is not None:
            self.surface.remove(obj)
        self.shapes = [s for s in self.shapes if s.id != shape.id]
        self.selected_id = None

        logger.info(f"Deleted {shape.name} from office {self.office.id}")
        return shape

    def _collect_shapes(self) -> list[DeskShape]:
        """Read the surface back into desk shapes, in drawing order."""
        known = {s.id: s for s in self.shapes}
        collected = []
        for obj in self.surface.objects():
            if obj.rect is None:
                logger.warning(f"Could not find rectangle in group {obj.data.id}, dropping it")
                continue

            previous = known.get(obj.data.id)
            try:
                shape = DeskShape(
                    id=obj.data.id,
                    x=float(obj.left or 0),
                    y=float(obj.top or 0),
                    width=float(obj.rect.width),
                    height=float(obj.rect.height),
                    fill=obj.rect.fill or DEFAULT_FILL,
                    name=obj.data.name,
                    rotation=float(obj.angle or 0),
                    desk_id=obj.data.desk_id or (previous.desk_id if previous else None),
                )
            except PydanticValidationError as e:
                raise ValidationError(f"{obj.data.name} has invalid geometry: {e.error_count()} error(s)") from e
            collected.append(shape)
        return collected

    async def save_layout(self) -> list[DeskShape] | None:
        """Persist the current surface state as the office's layout document.

        Returns:
            The saved desk shapes, or None when the action failed
        """
        return await self._save_layout()

    @flash_action(success="Layout saved successfully!")
    async def _save_layout(self) -> list[DeskShape]:
        if self.office is None or self.surface is None:
            raise NoActiveOfficeError("Open an office space before saving its layout.")

        updated = self._collect_shapes()
        doc = layout.serialize(updated)
        await self.backend.update_layout(self.office.id, doc)

        self.shapes = updated
        self.office = self.office.model_copy(update={"layout_json": doc})
        logger.info(f"Saved layout of office {self.office.id} with {len(updated)} desks")
        return list(updated)

    def on_window_resize(self, window_width: int) -> None:
        """Fit the surface to a new window width; ignored without an active surface."""
        if self.surface is None:
            return
        self.surface.fit_to_window(window_width)

    async def close(self) -> None:
        """Dispose the surface, forget the office and notify the owner."""
        self._dispose_surface()
        self.office = None
        self.shapes = []
        self.selected_id = None
        if self._on_close is not None:
            await self._on_close()
