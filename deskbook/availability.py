"""Slot availability rules for one desk on one date.

``evaluate`` is a pure function over the reservations of a single
(desk, date) cell. ``submit_booking`` and ``cancel_booking`` re-check the
rules against the backend at submission time, because other users may have
booked since the cell was rendered.
"""

import logging
from collections.abc import Iterable
from datetime import date
from enum import Enum

from pydantic import BaseModel

from .backend import BookingBackend
from .exceptions import NotAuthenticatedError, OwnershipError, SlotConflictError, ValidationError
from .models import Member, Reservation, TimeSlot

logger = logging.getLogger(__name__)


class ActionKind(str, Enum):
    """What an offered action does."""

    BOOK = "book"
    CANCEL = "cancel"


class OfferedAction(BaseModel):
    """Action a user can take on a cell."""

    kind: ActionKind
    time_slot: TimeSlot
    reservation_id: str | None = None

    model_config = {"frozen": True}


class CellAvailability(BaseModel):
    """Outcome of evaluating one (desk, date) cell for one user."""

    full_day_booked: bool
    morning_booked: bool
    afternoon_booked: bool
    bookable: tuple[TimeSlot, ...]
    cancellable: tuple[str, ...]
    actions: tuple[OfferedAction, ...]

    model_config = {"frozen": True}

    def can_book(self, slot: TimeSlot) -> bool:
        return slot in self.bookable

    def can_cancel(self, reservation_id: str) -> bool:
        return reservation_id in self.cancellable


def evaluate(reservations: Iterable[Reservation], user_id: str | None) -> CellAvailability:
    """Decide which actions a cell offers.

    Args:
        reservations: Reservations of one desk on one date
        user_id: Acting user's id (None when signed out)

    Returns:
        CellAvailability with the offered bookings and cancellations
    """
    reservations = list(reservations)
    slots = {r.time_slot for r in reservations}

    full_day_booked = TimeSlot.FULL_DAY in slots
    morning_booked = full_day_booked or TimeSlot.MORNING in slots
    afternoon_booked = full_day_booked or TimeSlot.AFTERNOON in slots

    bookable: list[TimeSlot] = []
    if not full_day_booked:
        if not morning_booked:
            bookable.append(TimeSlot.MORNING)
        if not afternoon_booked:
            bookable.append(TimeSlot.AFTERNOON)
        if not morning_booked and not afternoon_booked:
            bookable.append(TimeSlot.FULL_DAY)

    cancellable = [r for r in reservations if user_id is not None and r.user_id == user_id]

    actions = [
        OfferedAction(kind=ActionKind.CANCEL, time_slot=r.time_slot, reservation_id=r.id) for r in cancellable
    ]
    actions += [OfferedAction(kind=ActionKind.BOOK, time_slot=slot) for slot in bookable]

    return CellAvailability(
        full_day_booked=full_day_booked,
        morning_booked=morning_booked,
        afternoon_booked=afternoon_booked,
        bookable=tuple(bookable),
        cancellable=tuple(r.id for r in cancellable),
        actions=tuple(actions),
    )


async def submit_booking(
    backend: BookingBackend,
    desk_id: str,
    booking_date: date,
    slot: TimeSlot,
    user: Member | None,
) -> Reservation:
    """Book a slot after re-validating it against the backend.

    Args:
        backend: Backend holding the reservations
        desk_id: Desk to book
        booking_date: Date to book
        slot: Time slot to book
        user: Acting user

    Returns:
        The created Reservation

    Raises:
        NotAuthenticatedError: If there is no acting user
        SlotConflictError: If the slot is no longer bookable
    """
    if user is None:
        raise NotAuthenticatedError("You must be logged in to make a booking.")

    current = await backend.list_reservations([desk_id], booking_date, booking_date)
    availability = evaluate(current, user.id)
    if not availability.can_book(slot):
        raise SlotConflictError(
            f"{slot.label} on {booking_date.isoformat()} is no longer available for this desk."
        )

    reservation = await backend.create_reservation(desk_id, user.id, booking_date, slot, user.label)
    logger.info(f"Booked desk {desk_id} on {booking_date} ({slot.value}) for user {user.id}")
    return reservation


async def cancel_booking(
    backend: BookingBackend,
    reservation_id: str,
    user: Member | None,
    check_ownership: bool = True,
) -> Reservation:
    """Cancel a reservation owned by the acting user.

    Args:
        backend: Backend holding the reservations
        reservation_id: Reservation to cancel
        user: Acting user
        check_ownership: Reject reservations of other users (default: True)

    Returns:
        The removed Reservation

    Raises:
        NotAuthenticatedError: If there is no acting user
        ValidationError: If the reservation does not exist
        OwnershipError: If the reservation belongs to another user
    """
    if user is None:
        raise NotAuthenticatedError("You must be logged in to delete a booking.")

    reservation = await backend.get_reservation(reservation_id)
    if reservation is None:
        raise ValidationError("This booking no longer exists.")

    if reservation.user_id != user.id:
        if check_ownership:
            raise OwnershipError("You can only delete your own bookings.")
        logger.warning(
            f"Deleting reservation {reservation_id} of user {reservation.user_id} without ownership check"
        )

    await backend.delete_reservation(reservation_id)
    logger.info(f"Cancelled reservation {reservation_id}")
    return reservation
