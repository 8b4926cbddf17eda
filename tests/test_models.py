"""Tests for Pydantic models."""

import logging
from datetime import date

import pytest
from pydantic import ValidationError

from deskbook.models import UNKNOWN_USER, Desk, DeskShape, Member, OfficeSpace, Reservation, TimeSlot, wrap_angle

logger = logging.getLogger(__name__)


def test_time_slot_enum():
    """Test TimeSlot enum values and labels."""
    assert TimeSlot.MORNING.value == "morning"
    assert TimeSlot.AFTERNOON.value == "afternoon"
    assert TimeSlot.FULL_DAY.value == "full_day"

    assert TimeSlot.FULL_DAY.label == "Full Day"
    assert TimeSlot("morning") is TimeSlot.MORNING


def test_time_slot_covers():
    """Full day covers both halves, halves only cover themselves."""
    assert TimeSlot.FULL_DAY.covers(TimeSlot.MORNING)
    assert TimeSlot.FULL_DAY.covers(TimeSlot.AFTERNOON)
    assert TimeSlot.MORNING.covers(TimeSlot.MORNING)
    assert not TimeSlot.MORNING.covers(TimeSlot.AFTERNOON)
    assert not TimeSlot.AFTERNOON.covers(TimeSlot.FULL_DAY)


def test_reservation_model():
    """Test Reservation model parsing and occupancy."""
    reservation = Reservation(
        id="r1",
        desk_id="desk-1",
        user_id="user-alice",
        date="2024-06-03",
        time_slot="morning",
        display_name="Alice",
    )

    assert reservation.date == date(2024, 6, 3)
    assert reservation.time_slot == TimeSlot.MORNING
    assert reservation.occupies(TimeSlot.MORNING)
    assert not reservation.occupies(TimeSlot.AFTERNOON)

    with pytest.raises(ValidationError):
        reservation.desk_id = "desk-2"


def test_member_label():
    """Members without a display name are shown as Unknown User."""
    assert Member(id="u1", display_name="Alice").label == "Alice"
    assert Member(id="u2").label == UNKNOWN_USER


def test_office_space_defaults():
    """Test OfficeSpace defaults."""
    office = OfficeSpace(id="o1", name="HQ")

    assert office.layout_json == "[]"
    assert office.desk_count is None
    assert Desk(id="d1", name="Desk 1", office_space_id="o1").office_space_id == "o1"


def test_desk_shape_model():
    """Test DeskShape validation."""
    shape = DeskShape(id="s1", x=10, y=20.5, width=100, height=50, name="Desk 1")

    assert shape.fill == "gray"
    assert shape.rotation == 0.0
    assert shape.desk_id is None
    assert shape.model_config.get("frozen", False) is True


def test_desk_shape_rotation_wraps():
    """Rotation is stored modulo 360."""
    assert DeskShape(id="s1", x=0, y=0, width=1, height=1, name="D", rotation=405.0).rotation == 45.0
    assert DeskShape(id="s1", x=0, y=0, width=1, height=1, name="D", rotation=-90.0).rotation == 270.0


@pytest.mark.parametrize(
    "angle, expected", [(0.0, 0.0), (360.0, 0.0), (-1e-20, 0.0), (-90.0, 270.0), (725.0, 5.0)]
)
def test_wrap_angle(angle, expected):
    """Wrapped angles always land in [0, 360)."""
    assert wrap_angle(angle) == expected


@pytest.mark.parametrize(
    "overrides",
    [
        {"id": ""},
        {"width": 0},
        {"height": -5},
        {"x": float("nan")},
        {"x": "10"},
        {"name": None},
    ],
)
def test_desk_shape_rejects_invalid(overrides):
    """Invalid geometry and loose types are rejected."""
    fields = {"id": "s1", "x": 0.0, "y": 0.0, "width": 10.0, "height": 10.0, "name": "Desk"}
    fields.update(overrides)

    with pytest.raises(ValidationError):
        DeskShape(**fields)
