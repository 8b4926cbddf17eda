"""Pydantic models for desks, office spaces and reservations."""

from datetime import date, datetime
from enum import Enum

from pydantic import BaseModel


class TimeSlot(str, Enum):
    """Bookable parts of a day."""

    MORNING = "morning"
    AFTERNOON = "afternoon"
    FULL_DAY = "full_day"

    @property
    def label(self) -> str:
        """Human readable name."""
        return {
            TimeSlot.MORNING: "Morning",
            TimeSlot.AFTERNOON: "Afternoon",
            TimeSlot.FULL_DAY: "Full Day",
        }[self]

    def covers(self, other: "TimeSlot") -> bool:
        """Check whether occupying this slot also occupies ``other``."""
        return self == other or self == TimeSlot.FULL_DAY


class OfficeSpace(BaseModel):
    """Office space owning a layout document and a set of desks."""

    id: str
    name: str
    layout_json: str | None = "[]"
    created_at: datetime | None = None
    desk_count: int | None = None


class Desk(BaseModel):
    """Bookable desk belonging to one office space."""

    id: str
    name: str
    office_space_id: str

    model_config = {"frozen": True}


class Reservation(BaseModel):
    """Occupancy of one desk, on one date, for one time slot."""

    id: str
    desk_id: str
    user_id: str
    date: date
    time_slot: TimeSlot
    display_name: str = ""

    model_config = {"frozen": True}

    def occupies(self, slot: TimeSlot) -> bool:
        """Check whether this reservation blocks ``slot``."""
        return self.time_slot.covers(slot)
