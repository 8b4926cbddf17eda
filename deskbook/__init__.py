"""Deskbook - Desk booking for shared office spaces."""

__version__ = "0.1.0"

# Controllers
from .board import BoardState, BookingBoard, MapTile
from .layout_editor import LayoutEditor
from .offices import OfficeDirectory

# Backends
from .backend import BookingBackend, MemoryBackend
from .supabase import AsyncSupabaseClient, SupabaseClient

# Engine
from .availability import CellAvailability, cancel_booking, evaluate, submit_booking
from .surface import DrawingSurface, SurfaceObject

# Caching
from .cache import CacheBackend, DisplayNameCache, FileCache, MemoryCache, NullCache

# Notifications
from .notifications import FlashCategory, FlashMessage, FlashMessages

# Exceptions
from .exceptions import (
    AuthenticationError,
    ConflictError,
    DeskBookingError,
    MalformedLayoutError,
    NoActiveOfficeError,
    NotAuthenticatedError,
    OwnershipError,
    RemoteError,
    SlotConflictError,
    SurfaceDisposedError,
    UnexpectedError,
    ValidationError,
)

# Models
from .models import Desk, DeskShape, Member, OfficeSpace, Reservation, TimeSlot

# Utilities
from .utils import build_url, date_window

__all__ = [
    # Version
    "__version__",
    # Controllers
    "BookingBoard",
    "BoardState",
    "MapTile",
    "LayoutEditor",
    "OfficeDirectory",
    # Backends
    "BookingBackend",
    "MemoryBackend",
    "SupabaseClient",
    "AsyncSupabaseClient",
    # Engine
    "CellAvailability",
    "evaluate",
    "submit_booking",
    "cancel_booking",
    "DrawingSurface",
    "SurfaceObject",
    # Caching
    "CacheBackend",
    "NullCache",
    "MemoryCache",
    "FileCache",
    "DisplayNameCache",
    # Notifications
    "FlashCategory",
    "FlashMessage",
    "FlashMessages",
    # Models
    "Member",
    "OfficeSpace",
    "Desk",
    "Reservation",
    "TimeSlot",
    "DeskShape",
    # Exceptions
    "DeskBookingError",
    "ValidationError",
    "NoActiveOfficeError",
    "ConflictError",
    "SlotConflictError",
    "AuthenticationError",
    "NotAuthenticatedError",
    "OwnershipError",
    "RemoteError",
    "MalformedLayoutError",
    "SurfaceDisposedError",
    "UnexpectedError",
    # Utilities
    "build_url",
    "date_window",
]
