"""Backend contract used by the controllers, plus an in-memory implementation."""

import itertools
import logging
import uuid
from abc import ABC, abstractmethod
from collections.abc import Iterable
from datetime import date, datetime, timezone

from .exceptions import NotAuthenticatedError, RemoteError, SlotConflictError
from .models import Desk, Member, OfficeSpace, Reservation, TimeSlot

logger = logging.getLogger(__name__)

ORDER_BY_NAME = "name"
ORDER_BY_NEWEST = "-created_at"


class BookingBackend(ABC):
    """Abstract hosted backend.

    Implementations raise RemoteError when the backend reports a failure and
    AuthenticationError when the session is rejected.
    """

    @abstractmethod
    async def get_current_user(self) -> Member | None:
        """Get the signed-in user, or None when there is no session."""

    @abstractmethod
    async def list_office_spaces(self, order_by: str = ORDER_BY_NAME) -> list[OfficeSpace]:
        """List office spaces visible to the user.

        Args:
            order_by: ``name`` or ``-created_at`` (newest first)
        """

    @abstractmethod
    async def get_office_space(self, office_id: str) -> OfficeSpace | None:
        """Get one office space by id."""

    @abstractmethod
    async def create_office_space(self, name: str, layout_json: str = "[]") -> OfficeSpace:
        """Create an office space and make the current user a member."""

    @abstractmethod
    async def join_office_space(self, office_id: str, user_id: str) -> None:
        """Grant a user access to an office space."""

    @abstractmethod
    async def list_desks(self, office_id: str) -> list[Desk]:
        """List desks of an office space ordered by name."""

    @abstractmethod
    async def count_desks(self, office_id: str) -> int:
        """Count desks of an office space."""

    @abstractmethod
    async def create_desk(self, office_id: str, name: str) -> Desk:
        """Create a desk and return it with its storage id."""

    @abstractmethod
    async def delete_desk(self, office_id: str, desk_id: str | None = None, name: str | None = None) -> None:
        """Delete a desk by id, or by name within the office when no id is known."""

    @abstractmethod
    async def update_layout(self, office_id: str, layout_json: str) -> None:
        """Replace the layout document of an office space."""

    @abstractmethod
    async def list_reservations(self, desk_ids: Iterable[str], start: date, end: date) -> list[Reservation]:
        """List reservations for a set of desks within [start, end]."""

    @abstractmethod
    async def get_reservation(self, reservation_id: str) -> Reservation | None:
        """Get one reservation by id."""

    @abstractmethod
    async def create_reservation(
        self,
        desk_id: str,
        user_id: str,
        reservation_date: date,
        time_slot: TimeSlot,
        display_name: str,
    ) -> Reservation:
        """Create a reservation and return it with its storage id."""

    @abstractmethod
    async def delete_reservation(self, reservation_id: str) -> None:
        """Delete a reservation."""

    @abstractmethod
    async def get_display_names(self, user_ids: Iterable[str]) -> dict[str, str]:
        """Resolve user ids to display names (unknown ids are left out)."""

    @abstractmethod
    async def update_display_name(self, display_name: str) -> Member:
        """Store the current user's display name."""


def _new_id() -> str:
    return str(uuid.uuid4())


class MemoryBackend(BookingBackend):
    """In-process backend keeping every table in memory.

    Mirrors the constraints of the hosted database: a desk/date can never hold
    overlapping reservations.
    """

    def __init__(self, current_user: Member | None = None):
        self.current_user = current_user
        self.users: dict[str, Member] = {}
        self.office_spaces: dict[str, OfficeSpace] = {}
        self.desks: dict[str, Desk] = {}
        self.reservations: dict[str, Reservation] = {}
        self.memberships: set[tuple[str, str]] = set()
        self._sequence = itertools.count()
        self._created_order: dict[str, int] = {}
        if current_user is not None:
            self.users[current_user.id] = current_user

    # Seeding helpers

    def add_user(self, member: Member) -> Member:
        self.users[member.id] = member
        return member

    def sign_in(self, member: Member | None) -> None:
        """Switch the acting user (None = signed out)."""
        self.current_user = member
        if member is not None:
            self.users.setdefault(member.id, member)

    def add_office(self, name: str, layout_json: str | None = "[]", office_id: str | None = None) -> OfficeSpace:
        office = OfficeSpace(
            id=office_id or _new_id(),
            name=name,
            layout_json=layout_json,
            created_at=datetime.now(timezone.utc),
        )
        self.office_spaces[office.id] = office
        self._created_order[office.id] = next(self._sequence)
        return office

    def add_desk(self, office_id: str, name: str, desk_id: str | None = None) -> Desk:
        desk = Desk(id=desk_id or _new_id(), name=name, office_space_id=office_id)
        self.desks[desk.id] = desk
        return desk

    def add_reservation(self, reservation: Reservation) -> Reservation:
        self.reservations[reservation.id] = reservation
        return reservation

    # BookingBackend

    async def get_current_user(self) -> Member | None:
        return self.current_user

    async def list_office_spaces(self, order_by: str = ORDER_BY_NAME) -> list[OfficeSpace]:
        offices = list(self.office_spaces.values())
        if order_by == ORDER_BY_NEWEST:
            return sorted(offices, key=lambda o: self._created_order[o.id], reverse=True)
        return sorted(offices, key=lambda o: o.name)

    async def get_office_space(self, office_id: str) -> OfficeSpace | None:
        return self.office_spaces.get(office_id)

    async def create_office_space(self, name: str, layout_json: str = "[]") -> OfficeSpace:
        office = self.add_office(name, layout_json)
        if self.current_user is not None:
            self.memberships.add((self.current_user.id, office.id))
        logger.debug(f"Created office space {office.id} ({name})")
        return office

    async def join_office_space(self, office_id: str, user_id: str) -> None:
        if office_id not in self.office_spaces:
            raise RemoteError(f"Office space {office_id} does not exist")
        self.memberships.add((user_id, office_id))

    async def list_desks(self, office_id: str) -> list[Desk]:
        desks = [d for d in self.desks.values() if d.office_space_id == office_id]
        return sorted(desks, key=lambda d: d.name)

    async def count_desks(self, office_id: str) -> int:
        return sum(1 for d in self.desks.values() if d.office_space_id == office_id)

    async def create_desk(self, office_id: str, name: str) -> Desk:
        if office_id not in self.office_spaces:
            raise RemoteError(f"Office space {office_id} does not exist")
        return self.add_desk(office_id, name)

    async def delete_desk(self, office_id: str, desk_id: str | None = None, name: str | None = None) -> None:
        if desk_id is not None:
            doomed = [desk_id] if desk_id in self.desks else []
        else:
            doomed = [d.id for d in self.desks.values() if d.office_space_id == office_id and d.name == name]
        for key in doomed:
            del self.desks[key]
        # Reservations reference their desk and go with it
        orphaned = [r.id for r in self.reservations.values() if r.desk_id in doomed]
        for key in orphaned:
            del self.reservations[key]
        logger.debug(f"Deleted {len(doomed)} desk(s) and {len(orphaned)} reservation(s) of office {office_id}")

    async def update_layout(self, office_id: str, layout_json: str) -> None:
        office = self.office_spaces.get(office_id)
        if office is None:
            raise RemoteError(f"Office space {office_id} does not exist")
        self.office_spaces[office_id] = office.model_copy(update={"layout_json": layout_json})

    async def list_reservations(self, desk_ids: Iterable[str], start: date, end: date) -> list[Reservation]:
        wanted = set(desk_ids)
        return [
            r for r in self.reservations.values() if r.desk_id in wanted and start <= r.date <= end
        ]

    async def get_reservation(self, reservation_id: str) -> Reservation | None:
        return self.reservations.get(reservation_id)

    async def create_reservation(
        self,
        desk_id: str,
        user_id: str,
        reservation_date: date,
        time_slot: TimeSlot,
        display_name: str,
    ) -> Reservation:
        if desk_id not in self.desks:
            raise RemoteError(f"Desk {desk_id} does not exist")

        for existing in self.reservations.values():
            if existing.desk_id != desk_id or existing.date != reservation_date:
                continue
            if existing.occupies(time_slot) or time_slot.covers(existing.time_slot):
                raise SlotConflictError(f"Desk {desk_id} is already booked for {time_slot.label.lower()}")

        reservation = Reservation(
            id=_new_id(),
            desk_id=desk_id,
            user_id=user_id,
            date=reservation_date,
            time_slot=time_slot,
            display_name=display_name,
        )
        return self.add_reservation(reservation)

    async def delete_reservation(self, reservation_id: str) -> None:
        self.reservations.pop(reservation_id, None)

    async def get_display_names(self, user_ids: Iterable[str]) -> dict[str, str]:
        names = {}
        for user_id in user_ids:
            member = self.users.get(user_id)
            if member is not None and member.display_name:
                names[user_id] = member.display_name
        return names

    async def update_display_name(self, display_name: str) -> Member:
        if self.current_user is None:
            raise NotAuthenticatedError("You must be logged in to change your display name.")
        member = self.current_user.model_copy(update={"display_name": display_name})
        self.sign_in(member)
        self.users[member.id] = member
        return member
