"""Pydantic models for deskbook.

This module exports all models from the component-specific submodules.
You can import from specific modules:
    from deskbook.models.booking import Reservation, TimeSlot
    from deskbook.models.layout import DeskShape

Or from the main models module:
    from deskbook.models import Reservation, DeskShape, Member
"""

# Common models
from .common import UNKNOWN_USER, Member

# Booking models
from .booking import Desk, OfficeSpace, Reservation, TimeSlot

# Layout models
from .layout import DEFAULT_FILL, DeskShape, wrap_angle

__all__ = [
    # Common models
    "Member",
    "UNKNOWN_USER",
    # Booking models
    "Desk",
    "OfficeSpace",
    "Reservation",
    "TimeSlot",
    # Layout models
    "DeskShape",
    "DEFAULT_FILL",
    "wrap_angle",
]
