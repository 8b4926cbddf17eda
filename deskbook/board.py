"""Booking board: desks of one office over a rolling seven-day window."""

import logging
from datetime import date
from enum import Enum

from pydantic import BaseModel

from . import layout
from .availability import CellAvailability, cancel_booking, evaluate, submit_booking
from .backend import BookingBackend
from .cache import DisplayNameCache, MemoryCache
from .exceptions import DeskBookingError, MalformedLayoutError, UnexpectedError, ValidationError
from .models import Desk, DeskShape, Member, OfficeSpace, Reservation, TimeSlot
from .notifications import UNEXPECTED_ERROR_MESSAGE, FlashMessages, flash_action
from .utils import date_window

logger = logging.getLogger(__name__)

UNKNOWN_USER_LABEL = "Unknown user"

OCCUPIED_FILL = "#ff4444"
FREE_FILL = "#4CAF50"


class BoardState(str, Enum):
    """Loading state of the board."""

    IDLE = "idle"
    LOADING_OFFICES = "loading_offices"
    OFFICE_SELECTED = "office_selected"
    LOADING_DESKS = "loading_desks"
    DESKS_LOADED = "desks_loaded"
    LOADING_RESERVATIONS = "loading_reservations"
    READY = "ready"


class BookingLine(BaseModel):
    """Existing reservation as shown in a cell."""

    reservation: Reservation
    label: str
    cancellable: bool

    model_config = {"frozen": True}


class BoardCell(BaseModel):
    """One desk on one date."""

    desk: Desk
    date: date
    bookings: tuple[BookingLine, ...]
    availability: CellAvailability

    model_config = {"frozen": True}


class BoardRow(BaseModel):
    """One desk across the date window."""

    desk: Desk
    cells: tuple[BoardCell, ...]

    model_config = {"frozen": True}


class MapTile(BaseModel):
    """Desk shape coloured by occupancy, for the read-only office map."""

    shape: DeskShape
    desk: Desk | None
    occupied: bool
    fill: str

    model_config = {"frozen": True}


class BookingBoard:
    """Booking grid controller.

    Every office selection bumps a generation counter. Responses that arrive
    for an older generation are dropped, so the latest selection wins even
    when responses arrive out of order.
    """

    def __init__(
        self,
        backend: BookingBackend,
        flash: FlashMessages | None = None,
        display_name_cache: DisplayNameCache | None = None,
        today: date | None = None,
        check_ownership: bool = True,
    ):
        """Initialize booking board.

        Args:
            backend: Backend holding offices, desks and reservations
            flash: Flash message queue (default: a private queue)
            display_name_cache: Cache for other users' display names (default: in-memory)
            today: First day of the window (default: the date ``init`` runs)
            check_ownership: Only allow cancelling own reservations (default: True)
        """
        self.backend = backend
        self.flash = flash if flash is not None else FlashMessages()
        self.display_name_cache = display_name_cache or DisplayNameCache(MemoryCache())
        self.check_ownership = check_ownership
        self._today = today

        self.user: Member | None = None
        self.office_spaces: list[OfficeSpace] = []
        self.selected_office_id: str | None = None
        self.desks: list[Desk] = []
        self.reservations: list[Reservation] = []
        self.shapes: list[DeskShape] = []
        self.date_window: tuple[date, ...] = ()
        self.display_names: dict[str, str] = {}
        self.loading = False
        self.state = BoardState.IDLE
        self._generation = 0

    @property
    def generation(self) -> int:
        return self._generation

    def _is_current(self, generation: int) -> bool:
        return generation == self._generation

    async def init(self) -> None:
        """Fix the date window and load the user and the office spaces."""
        if not self.date_window:
            self.date_window = date_window(self._today)
        self.state = BoardState.LOADING_OFFICES
        self.loading = True
        try:
            await self._load_offices()
        finally:
            self.loading = False
            self.state = BoardState.READY

    @flash_action()
    async def _load_offices(self) -> None:
        self.user = await self.backend.get_current_user()
        self.office_spaces = await self.backend.list_office_spaces()
        logger.info(f"Loaded {len(self.office_spaces)} office spaces")

    async def select_office(self, office_id: str | None) -> None:
        """Select an office and load its desks and reservations.

        Args:
            office_id: Office space id; empty values are ignored
        """
        if not office_id:
            return
        if not self.date_window:
            self.date_window = date_window(self._today)

        self._generation += 1
        generation = self._generation
        self.selected_office_id = office_id
        self.desks = []
        self.reservations = []
        self.shapes = []
        self.state = BoardState.OFFICE_SELECTED
        self.loading = True
        logger.debug(f"Selecting office {office_id} (generation {generation})")

        try:
            await self._load_selection(office_id, generation)
        except Exception as e:
            self._report_background(generation, e)
        finally:
            if self._is_current(generation):
                self.loading = False
                self.state = BoardState.READY

    def _report_background(self, generation: int, error: Exception) -> None:
        if not self._is_current(generation):
            logger.debug(f"Dropping error from stale generation {generation}: {error}")
            return
        if isinstance(error, DeskBookingError):
            logger.info(f"Loading office failed: {error}")
            self.flash.error(str(error), error)
        else:
            logger.exception("Unexpected error while loading office")
            self.flash.error(UNEXPECTED_ERROR_MESSAGE, UnexpectedError(str(error)))

    async def _load_selection(self, office_id: str, generation: int) -> None:
        self.state = BoardState.LOADING_DESKS
        desks = await self.backend.list_desks(office_id)
        if not self._is_current(generation):
            logger.debug(f"Discarding desks of stale generation {generation}")
            return
        self.desks = desks
        self.state = BoardState.DESKS_LOADED
        await self._load_shapes(office_id, generation)

        if not self._is_current(generation) or not desks:
            return
        self.state = BoardState.LOADING_RESERVATIONS
        await self._fetch_reservations(generation)

    async def _load_shapes(self, office_id: str, generation: int) -> None:
        office = next((o for o in self.office_spaces if o.id == office_id), None)
        if office is None:
            office = await self.backend.get_office_space(office_id)
            if not self._is_current(generation):
                return
        if office is None:
            logger.error(f"Selected office space {office_id} not found")
            return

        try:
            self.shapes = layout.parse(office.layout_json)
        except MalformedLayoutError as e:
            logger.error(f"Error rendering layout of office {office_id}: {e}")
            self.flash.error("Error rendering office layout.", e)
            self.shapes = []

    async def _fetch_reservations(self, generation: int) -> None:
        if not self.desks:
            self.reservations = []
            return
        reservations = await self.backend.list_reservations(
            [d.id for d in self.desks], self.date_window[0], self.date_window[-1]
        )
        if not self._is_current(generation):
            logger.debug(f"Discarding reservations of stale generation {generation}")
            return
        self.reservations = reservations
        logger.info(f"Loaded {len(reservations)} reservations for {len(self.desks)} desks")
        await self._load_display_names(generation)

    async def _load_display_names(self, generation: int) -> None:
        user_ids = {r.user_id for r in self.reservations}
        names = self.display_name_cache.get() or {}
        missing = user_ids - names.keys()
        if missing:
            try:
                fetched = await self.backend.get_display_names(sorted(missing))
            except Exception as e:
                logger.warning(f"Failed to resolve display names: {e}")
            else:
                if not self._is_current(generation):
                    logger.debug(f"Discarding display names of stale generation {generation}")
                    return
                names = {**names, **self.display_name_cache.merge(fetched)}
        if self._is_current(generation):
            self.display_names = names

    @flash_action()
    async def refresh_reservations(self) -> None:
        """Re-fetch the reservations of the selected office."""
        await self._fetch_reservations(self._generation)

    def reservations_for(self, desk_id: str, day: date) -> list[Reservation]:
        return [r for r in self.reservations if r.desk_id == desk_id and r.date == day]

    def resolve_label(self, reservation: Reservation) -> str:
        """Name shown for a reservation: index, then booking-time snapshot, then a placeholder."""
        return self.display_names.get(reservation.user_id) or reservation.display_name or UNKNOWN_USER_LABEL

    def cell(self, desk: Desk, day: date) -> BoardCell:
        """Evaluate one (desk, date) cell."""
        existing = self.reservations_for(desk.id, day)
        user_id = self.user.id if self.user else None
        availability = evaluate(existing, user_id)
        lines = tuple(
            BookingLine(
                reservation=r,
                label=self.resolve_label(r),
                cancellable=availability.can_cancel(r.id),
            )
            for r in existing
        )
        return BoardCell(desk=desk, date=day, bookings=lines, availability=availability)

    def grid(self) -> list[BoardRow]:
        """Evaluate every desk across the date window."""
        return [
            BoardRow(desk=desk, cells=tuple(self.cell(desk, day) for day in self.date_window))
            for desk in self.desks
        ]

    def _desk_for_shape(self, shape: DeskShape) -> Desk | None:
        if shape.desk_id is not None:
            return next((d for d in self.desks if d.id == shape.desk_id), None)
        # Layouts saved without desk ids are matched by name
        return next((d for d in self.desks if d.name == shape.name), None)

    def map_tiles(self, on_date: date | None = None) -> list[MapTile]:
        """Colour the office map by occupancy.

        Args:
            on_date: Only count reservations on this date (default: the whole window)

        Returns:
            One MapTile per desk shape
        """
        tiles = []
        for shape in self.shapes:
            desk = self._desk_for_shape(shape)
            occupied = desk is not None and any(
                r.desk_id == desk.id and (on_date is None or r.date == on_date) for r in self.reservations
            )
            tiles.append(
                MapTile(shape=shape, desk=desk, occupied=occupied, fill=OCCUPIED_FILL if occupied else FREE_FILL)
            )
        return tiles

    def _check_in_window(self, day: date) -> None:
        if day not in self.date_window:
            raise ValidationError("Bookings can only be made within the next seven days.")

    async def _refresh_after_change(self) -> None:
        try:
            await self._fetch_reservations(self._generation)
        except DeskBookingError as e:
            logger.warning(f"Failed to refresh reservations: {e}")

    async def book(self, desk_id: str, day: date, slot: TimeSlot) -> Reservation | None:
        """Book a slot for the signed-in user.

        Returns:
            The created Reservation, or None when the booking failed
        """
        return await self._book(desk_id, day, slot)

    @flash_action(success="Booking created successfully!")
    async def _book(self, desk_id: str, day: date, slot: TimeSlot) -> Reservation:
        self._check_in_window(day)
        generation = self._generation
        reservation = await submit_booking(self.backend, desk_id, day, slot, self.user)
        if self._is_current(generation):
            self.reservations = [*self.reservations, reservation]
            await self._refresh_after_change()
        return reservation

    async def cancel(self, reservation_id: str) -> Reservation | None:
        """Cancel one of the signed-in user's reservations.

        Returns:
            The removed Reservation, or None when cancelling failed
        """
        return await self._cancel(reservation_id)

    @flash_action(success="Booking deleted successfully!")
    async def _cancel(self, reservation_id: str) -> Reservation:
        generation = self._generation
        reservation = await cancel_booking(
            self.backend, reservation_id, self.user, check_ownership=self.check_ownership
        )
        if self._is_current(generation):
            self.reservations = [r for r in self.reservations if r.id != reservation_id]
            await self._refresh_after_change()
        return reservation

    def close(self) -> None:
        """Tear the board down; responses still in flight are discarded."""
        self._generation += 1
        self.selected_office_id = None
        self.desks = []
        self.reservations = []
        self.shapes = []
        self.loading = False
        self.state = BoardState.IDLE
