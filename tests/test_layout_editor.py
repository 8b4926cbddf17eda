"""Tests for the layout editor."""

import logging
from datetime import date

import pytest

from deskbook import layout
from deskbook.exceptions import RemoteError, SurfaceDisposedError
from deskbook.layout_editor import LayoutEditor
from deskbook.models import DeskShape, Reservation, TimeSlot
from deskbook.notifications import FlashCategory
from deskbook.surface import SurfaceObject

logger = logging.getLogger(__name__)


@pytest.fixture
def empty_office(backend):
    return backend.add_office("Annex", office_id="office-annex")


@pytest.fixture
def editor(backend, flash):
    return LayoutEditor(backend, flash=flash)


@pytest.mark.asyncio
async def test_add_move_rotate_save_reload(backend, empty_office, editor, flash):
    """Edits made on the surface survive a save and a reload."""
    editor.open(empty_office)

    shape = await editor.add_desk()
    assert shape.name == "Desk 1"
    assert (shape.x, shape.y, shape.width, shape.height) == (50.0, 50.0, 100.0, 50.0)
    assert shape.fill == "gray"
    assert editor.selected_id == shape.id

    obj = editor.surface.find(shape.id)
    editor.surface.move(obj, 120, 340)
    editor.surface.rotate(obj, 45)

    saved = await editor.save_layout()
    assert saved is not None
    assert [m.message for m in flash.active()] == ["Desk added successfully!", "Layout saved successfully!"]

    stored = await backend.get_office_space(empty_office.id)
    reloaded = LayoutEditor(backend).open(stored)

    assert len(reloaded) == 1
    desk_shape = reloaded[0]
    assert (desk_shape.x, desk_shape.y) == (120, 340)
    assert desk_shape.rotation == 45
    assert desk_shape.name == "Desk 1"
    assert desk_shape.desk_id in backend.desks


@pytest.mark.asyncio
async def test_add_desk_without_office(editor, flash):
    """Adding a desk with no open office reports an error and changes nothing."""
    result = await editor.add_desk()

    assert result is None
    assert editor.shapes == []
    assert flash.last.category == FlashCategory.ERROR
    assert flash.last.error_type == "NoActiveOfficeError"


@pytest.mark.asyncio
async def test_add_desk_backend_failure(backend, empty_office, editor, flash):
    """A failing backend leaves the layout untouched."""
    editor.open(empty_office)

    async def failing_create_desk(office_id, name):
        raise RemoteError("Failed to add desk: boom")

    backend.create_desk = failing_create_desk

    assert await editor.add_desk() is None
    assert editor.shapes == []
    assert editor.surface.objects() == []
    assert flash.last.message == "Failed to add desk: boom"


@pytest.mark.asyncio
async def test_delete_selected(backend, empty_office, editor, flash):
    """Deleting the selected desk removes it from storage and the surface."""
    editor.open(empty_office)
    shape = await editor.add_desk()

    removed = await editor.delete_selected()

    assert removed == shape
    assert editor.shapes == []
    assert editor.selected_id is None
    assert editor.surface.objects() == []
    assert shape.desk_id not in backend.desks
    assert flash.last.message == "Desk deleted successfully!"


@pytest.mark.asyncio
async def test_delete_without_selection_is_noop(empty_office, editor, flash):
    editor.open(empty_office)

    assert await editor.delete_selected() is None
    assert len(flash) == 0


@pytest.mark.asyncio
async def test_delete_unlinked_shape_by_name(backend, office, editor):
    """Shapes saved without a desk id delete the desk with the same name."""
    unlinked = DeskShape(id="s1", x=0.0, y=0.0, width=100.0, height=50.0, name="Desk 2")
    editor.open(office.model_copy(update={"layout_json": layout.serialize([unlinked])}))
    editor.surface.click(editor.surface.find("s1"))

    await editor.delete_selected()

    assert "desk-2" not in backend.desks
    assert "desk-1" in backend.desks


def test_selection_tracks_surface(empty_office, editor):
    """Selection events from the surface update the selected id."""
    shape = DeskShape(id="s1", x=0.0, y=0.0, width=100.0, height=50.0, name="Desk 1")
    editor.open(empty_office.model_copy(update={"layout_json": layout.serialize([shape])}))

    editor.surface.click(editor.surface.find("s1"))
    assert editor.selected_id == "s1"

    editor.surface.click(None)
    assert editor.selected_id is None


@pytest.mark.asyncio
async def test_save_drops_groups_without_rectangle(backend, empty_office, editor):
    """Groups missing their rectangle are left out of the saved layout."""
    editor.open(empty_office)
    await editor.add_desk()
    broken = SurfaceObject.from_shape(DeskShape(id="broken", x=0.0, y=0.0, width=1.0, height=1.0, name="Broken"))
    broken.rect = None
    editor.surface.add(broken)

    saved = await editor.save_layout()

    assert [s.name for s in saved] == ["Desk 1"]
    assert "broken" not in backend.office_spaces[empty_office.id].layout_json


@pytest.mark.asyncio
async def test_save_failure_keeps_previous_layout(backend, empty_office, editor, flash):
    editor.open(empty_office)
    await editor.add_desk()

    async def failing_update(office_id, layout_json):
        raise RemoteError("Failed to save layout: offline")

    backend.update_layout = failing_update

    assert await editor.save_layout() is None
    assert editor.office.layout_json == "[]"
    assert flash.last.category == FlashCategory.ERROR


def test_open_malformed_layout(empty_office, editor, flash):
    """A malformed document opens as an empty layout with one error."""
    shapes = editor.open(empty_office.model_copy(update={"layout_json": "not json"}))

    assert shapes == []
    assert editor.surface is not None
    assert [m.message for m in flash.active()] == ["Error rendering office layout."]


def test_open_disposes_previous_surface(empty_office, editor):
    editor.open(empty_office)
    first = editor.surface

    editor.open(empty_office)

    assert first.disposed
    assert editor.surface is not first
    with pytest.raises(SurfaceDisposedError):
        first.objects()


def test_window_resize(empty_office, editor):
    """Resizing switches between the desktop and compact surface sizes."""
    editor.on_window_resize(500)

    editor.open(empty_office)
    editor.on_window_resize(500)
    assert (editor.surface.width, editor.surface.height) == (460, 400)

    editor.on_window_resize(1280)
    assert (editor.surface.width, editor.surface.height) == (800, 600)


@pytest.mark.asyncio
async def test_close_notifies_owner(empty_office, backend):
    """Closing disposes the surface and awaits the close callback."""
    calls = []

    async def on_close():
        calls.append("closed")

    editor = LayoutEditor(backend, on_close=on_close)
    editor.open(empty_office)
    surface = editor.surface

    await editor.close()

    assert calls == ["closed"]
    assert surface.disposed
    assert not editor.is_open
    assert editor.surface is None


@pytest.mark.asyncio
async def test_save_rejects_collapsed_desk(backend, empty_office, editor, flash):
    """A desk with no width is reported instead of saved with a default size."""
    editor.open(empty_office)
    await editor.add_desk()
    saved_doc = backend.office_spaces[empty_office.id].layout_json
    shapes = list(editor.shapes)
    obj = editor.surface.objects()[0]
    obj.rect.width = 0

    assert await editor.save_layout() is None
    assert flash.last.category == FlashCategory.ERROR
    assert flash.last.error_type == "ValidationError"
    assert editor.shapes == shapes
    assert backend.office_spaces[empty_office.id].layout_json == saved_doc


@pytest.mark.asyncio
async def test_delete_desk_removes_its_bookings(backend, office, alice, editor):
    """Deleting a desk also deletes the bookings made on it."""
    for rid, desk_id in [("r1", "desk-1"), ("r2", "desk-2")]:
        backend.add_reservation(
            Reservation(
                id=rid, desk_id=desk_id, user_id=alice.id, date=date(2024, 6, 3), time_slot=TimeSlot.MORNING
            )
        )
    linked = DeskShape(id="s1", x=0.0, y=0.0, width=100.0, height=50.0, name="Desk 1", desk_id="desk-1")
    editor.open(office.model_copy(update={"layout_json": layout.serialize([linked])}))
    editor.surface.click(editor.surface.find("s1"))

    await editor.delete_selected()

    assert "desk-1" not in backend.desks
    assert "r1" not in backend.reservations
    assert "r2" in backend.reservations
