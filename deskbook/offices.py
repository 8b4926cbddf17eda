"""Office directory: office summaries, membership and the user's display name."""

import logging

from .backend import ORDER_BY_NEWEST, BookingBackend
from .exceptions import NotAuthenticatedError, RemoteError, ValidationError
from .layout import EMPTY_LAYOUT
from .layout_editor import LayoutEditor
from .models import Member, OfficeSpace
from .notifications import FlashMessages, flash_action

logger = logging.getLogger(__name__)


class OfficeDirectory:
    """Office management for the signed-in user."""

    def __init__(self, backend: BookingBackend, flash: FlashMessages | None = None):
        self.backend = backend
        self.flash = flash if flash is not None else FlashMessages()
        self.offices: list[OfficeSpace] = []
        self.user: Member | None = None
        self.loading = False

    @flash_action()
    async def refresh(self) -> list[OfficeSpace]:
        """Reload office spaces, newest first, with their desk counts."""
        return await self._load_offices()

    async def _load_offices(self) -> list[OfficeSpace]:
        self.loading = True
        try:
            self.user = await self.backend.get_current_user()
            offices = await self.backend.list_office_spaces(order_by=ORDER_BY_NEWEST)

            summaries = []
            for office in offices:
                try:
                    count = await self.backend.count_desks(office.id)
                except RemoteError as e:
                    logger.error(f"Error fetching desk count for office {office.id}: {e}")
                    count = 0
                summaries.append(office.model_copy(update={"desk_count": count}))
        finally:
            self.loading = False

        self.offices = summaries
        logger.info(f"Loaded {len(summaries)} offices")
        return list(summaries)

    @flash_action(success="Office space created!")
    async def create_office(self, name: str) -> OfficeSpace:
        """Create an office space with an empty layout.

        Raises (reported as flash):
            ValidationError: If the name is blank
        """
        name = (name or "").strip()
        if not name:
            raise ValidationError("Please enter an office name")

        office = await self.backend.create_office_space(name, EMPTY_LAYOUT)
        logger.info(f"Created office space {office.id} ({name})")
        await self._reload()
        return office

    @flash_action(success="Successfully joined the office space!")
    async def join_office(self, office_id: str) -> None:
        """Join an office space by id (e.g. from an invitation link)."""
        user = self.user or await self.backend.get_current_user()
        if user is None:
            raise NotAuthenticatedError("You must be logged in to join an office.")
        office_id = (office_id or "").strip()
        if not office_id:
            raise ValidationError("Please enter an office ID")

        await self.backend.join_office_space(office_id, user.id)
        logger.info(f"User {user.id} joined office {office_id}")
        await self._reload()

    @flash_action(success="Display name updated successfully!")
    async def update_display_name(self, display_name: str) -> Member:
        """Store the display name shown on the user's bookings."""
        display_name = (display_name or "").strip()
        if not display_name:
            raise ValidationError("Please enter a display name")
        self.user = await self.backend.update_display_name(display_name)
        return self.user

    async def _reload(self) -> None:
        try:
            await self._load_offices()
        except RemoteError as e:
            logger.warning(f"Failed to reload offices: {e}")

    def layout_editor(self) -> LayoutEditor:
        """Create a layout editor that refreshes desk counts when it closes."""
        return LayoutEditor(self.backend, flash=self.flash, on_close=self.refresh)
