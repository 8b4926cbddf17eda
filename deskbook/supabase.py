"""Supabase clients for the hosted booking backend (PostgREST + GoTrue)."""

import logging
import os
from collections.abc import Iterable
from datetime import date
from typing import Any, NamedTuple

import httpx

from .backend import ORDER_BY_NAME, ORDER_BY_NEWEST, BookingBackend
from .exceptions import AuthenticationError, RemoteError, SlotConflictError, ValidationError
from .models import Desk, Member, OfficeSpace, Reservation, TimeSlot
from .utils import build_url

logger = logging.getLogger(__name__)

DEFAULT_HEADERS = {
    "Accept": "application/json",
    "Content-Type": "application/json",
}

# User metadata attribute holding the chosen display name
DISPLAY_NAME_ATTRIBUTE = "Display name"

OFFICE_COLUMNS = "id,name,layout_json,created_at"
DESK_COLUMNS = "id,name,office_space_id"
BOOKING_COLUMNS = "id,desk_id,user_id,date,time_slot,display_name"

_ORDERING = {
    ORDER_BY_NAME: "name.asc",
    ORDER_BY_NEWEST: "created_at.desc",
}


class _Request(NamedTuple):
    method: str
    path: str
    params: list[tuple[str, str]] | None = None
    json: Any = None
    headers: dict[str, str] | None = None


def _member_from_user(data: dict) -> Member:
    metadata = data.get("user_metadata") or {}
    return Member(
        id=data["id"],
        email=data.get("email"),
        display_name=metadata.get(DISPLAY_NAME_ATTRIBUTE) or None,
    )


def _first_row(data: Any) -> dict | None:
    if isinstance(data, list):
        return data[0] if data else None
    if isinstance(data, dict):
        return data
    return None


def _parse_count(content_range: str | None) -> int:
    # PostgREST answers "0-4/5" or "*/0"
    if not content_range or "/" not in content_range:
        raise RemoteError(f"Missing row count in response: {content_range!r}")
    total = content_range.rsplit("/", 1)[1]
    if not total.isdigit():
        raise RemoteError(f"Invalid row count in response: {content_range!r}")
    return int(total)


def _in_filter(values: Iterable[str]) -> str:
    quoted = ",".join(f'"{v}"' for v in values)
    return f"in.({quoted})"


def _raise_for_status(response: httpx.Response, action: str, conflict_message: str | None = None) -> None:
    if response.is_success:
        return

    try:
        body = response.json()
    except ValueError:
        body = None
    detail = response.text
    if isinstance(body, dict):
        detail = body.get("message") or body.get("msg") or body.get("error_description") or detail

    if response.status_code in (401, 403):
        raise AuthenticationError(f"Failed to {action}: {detail}")
    if response.status_code == 409 and conflict_message is not None:
        raise SlotConflictError(conflict_message)
    raise RemoteError(f"Failed to {action}: {detail} (status {response.status_code})")


class _SupabaseBase:
    """Configuration and request building shared by the sync and async clients."""

    def __init__(
        self,
        url: str | None = None,
        anon_key: str | None = None,
        access_token: str | None = None,
    ):
        self.url = url or os.environ.get("SUPABASE_URL")
        self.anon_key = anon_key or os.environ.get("SUPABASE_ANON_KEY")
        self.access_token = access_token or os.environ.get("SUPABASE_ACCESS_TOKEN")

        if not self.url or not self.anon_key:
            raise ValidationError(
                "Supabase URL and anon key must be provided either as arguments or "
                "via SUPABASE_URL and SUPABASE_ANON_KEY environment variables"
            )

    def _headers(self) -> dict[str, str]:
        return {
            **DEFAULT_HEADERS,
            "apikey": self.anon_key,
            "Authorization": f"Bearer {self.access_token or self.anon_key}",
        }

    def _rest(self, table: str) -> str:
        return build_url(self.url, "rest/v1", table)

    def _auth(self, path: str) -> str:
        return build_url(self.url, "auth/v1", path)

    @staticmethod
    def _office_order(order_by: str) -> str:
        if order_by not in _ORDERING:
            raise ValidationError(f"Unsupported office ordering: {order_by}")
        return _ORDERING[order_by]

    def _delete_desk_request(self, office_id: str, desk_id: str | None, name: str | None) -> _Request:
        if desk_id is not None:
            params = [("id", f"eq.{desk_id}")]
        elif name is not None:
            params = [("office_space_id", f"eq.{office_id}"), ("name", f"eq.{name}")]
        else:
            raise ValidationError("Either a desk id or a desk name is required")
        return _Request("DELETE", self._rest("desks"), params=params)

    def _reservations_request(self, desk_ids: list[str], start: date, end: date) -> _Request:
        return _Request(
            "GET",
            self._rest("bookings"),
            params=[
                ("select", BOOKING_COLUMNS),
                ("desk_id", _in_filter(desk_ids)),
                ("date", f"gte.{start.isoformat()}"),
                ("date", f"lte.{end.isoformat()}"),
            ],
        )

    @staticmethod
    def _reservation_payload(
        desk_id: str, user_id: str, reservation_date: date, time_slot: TimeSlot, display_name: str
    ) -> list[dict]:
        return [
            {
                "desk_id": desk_id,
                "user_id": user_id,
                "date": reservation_date.isoformat(),
                "time_slot": TimeSlot(time_slot).value,
                "display_name": display_name,
            }
        ]

    @staticmethod
    def _display_names(rows: Any) -> dict[str, str]:
        names = {}
        for row in rows or []:
            if row.get("display_name"):
                names[str(row["id"])] = row["display_name"]
        return names


class SupabaseClient(_SupabaseBase):
    """Synchronous client for the Supabase booking backend."""

    def __init__(
        self,
        url: str | None = None,
        anon_key: str | None = None,
        access_token: str | None = None,
        timeout: float = 30,
        transport: httpx.BaseTransport | None = None,
    ):
        """Initialize Supabase client.

        Args:
            url: Project URL (default: read from SUPABASE_URL env var)
            anon_key: Public anon key (default: read from SUPABASE_ANON_KEY env var)
            access_token: User session JWT (default: read from SUPABASE_ACCESS_TOKEN env var)
            timeout: Request timeout in seconds
            transport: Custom httpx transport (e.g. for testing)

        Raises:
            ValidationError: If URL or anon key are neither provided nor in env vars
        """
        super().__init__(url, anon_key, access_token)
        self._client = httpx.Client(headers=self._headers(), timeout=timeout, transport=transport)
        logger.debug(f"Initialized SupabaseClient for {self.url}")

    def _send(self, request: _Request, action: str, conflict_message: str | None = None) -> httpx.Response:
        logger.debug(f"{request.method} {request.path} {request.params or ''}")
        try:
            response = self._client.request(
                request.method, request.path, params=request.params, json=request.json, headers=request.headers
            )
        except httpx.HTTPError as e:
            raise RemoteError(f"Failed to {action}: {e}") from e
        _raise_for_status(response, action, conflict_message)
        return response

    def get_current_user(self) -> Member | None:
        """Get the signed-in user.

        Returns:
            Member, or None when the client has no session token
        """
        if not self.access_token:
            return None
        response = self._send(_Request("GET", self._auth("user")), "fetch current user")
        return _member_from_user(response.json())

    def list_office_spaces(self, order_by: str = ORDER_BY_NAME) -> list[OfficeSpace]:
        """List office spaces visible to the user."""
        response = self._send(
            _Request(
                "GET",
                self._rest("office_spaces"),
                params=[("select", OFFICE_COLUMNS), ("order", self._office_order(order_by))],
            ),
            "fetch office spaces",
        )
        return [OfficeSpace(**row) for row in response.json()]

    def get_office_space(self, office_id: str) -> OfficeSpace | None:
        response = self._send(
            _Request(
                "GET",
                self._rest("office_spaces"),
                params=[("select", OFFICE_COLUMNS), ("id", f"eq.{office_id}")],
            ),
            "fetch office space",
        )
        row = _first_row(response.json())
        return OfficeSpace(**row) if row else None

    def create_office_space(self, name: str, layout_json: str = "[]") -> OfficeSpace:
        """Create an office space and link the current user to it."""
        response = self._send(
            _Request(
                "POST",
                self._rest("rpc/create_office_space_and_link_user"),
                json={"office_space_name": name, "layout_json_input": layout_json},
            ),
            "create office space",
        )
        data = response.json()
        row = _first_row(data)
        if row is not None:
            return OfficeSpace(**row)
        office = self.get_office_space(str(data)) if data else None
        if office is None:
            raise RemoteError("Failed to create office space.")
        return office

    def join_office_space(self, office_id: str, user_id: str) -> None:
        self._send(
            _Request(
                "POST",
                self._rest("user_office_access"),
                json=[{"user_id": user_id, "office_space_id": office_id}],
            ),
            "join office space",
        )

    def list_desks(self, office_id: str) -> list[Desk]:
        response = self._send(
            _Request(
                "GET",
                self._rest("desks"),
                params=[("select", DESK_COLUMNS), ("office_space_id", f"eq.{office_id}"), ("order", "name.asc")],
            ),
            "fetch desks",
        )
        return [Desk(**row) for row in response.json()]

    def count_desks(self, office_id: str) -> int:
        response = self._send(
            _Request(
                "HEAD",
                self._rest("desks"),
                params=[("select", "*"), ("office_space_id", f"eq.{office_id}")],
                headers={"Prefer": "count=exact"},
            ),
            "count desks",
        )
        return _parse_count(response.headers.get("content-range"))

    def create_desk(self, office_id: str, name: str) -> Desk:
        response = self._send(
            _Request(
                "POST",
                self._rest("desks"),
                json=[{"office_space_id": office_id, "name": name}],
                headers={"Prefer": "return=representation"},
            ),
            "add desk",
        )
        row = _first_row(response.json())
        if row is None:
            raise RemoteError("Failed to add desk: empty response")
        return Desk(**row)

    def delete_desk(self, office_id: str, desk_id: str | None = None, name: str | None = None) -> None:
        self._send(self._delete_desk_request(office_id, desk_id, name), "delete desk")

    def update_layout(self, office_id: str, layout_json: str) -> None:
        self._send(
            _Request(
                "PATCH",
                self._rest("office_spaces"),
                params=[("id", f"eq.{office_id}")],
                json={"layout_json": layout_json},
            ),
            "save layout",
        )

    def list_reservations(self, desk_ids: Iterable[str], start: date, end: date) -> list[Reservation]:
        desk_ids = list(desk_ids)
        if not desk_ids:
            return []
        response = self._send(self._reservations_request(desk_ids, start, end), "fetch bookings")
        return [Reservation(**row) for row in response.json()]

    def get_reservation(self, reservation_id: str) -> Reservation | None:
        response = self._send(
            _Request(
                "GET",
                self._rest("bookings"),
                params=[("select", BOOKING_COLUMNS), ("id", f"eq.{reservation_id}")],
            ),
            "fetch booking",
        )
        row = _first_row(response.json())
        return Reservation(**row) if row else None

    def create_reservation(
        self,
        desk_id: str,
        user_id: str,
        reservation_date: date,
        time_slot: TimeSlot,
        display_name: str,
    ) -> Reservation:
        response = self._send(
            _Request(
                "POST",
                self._rest("bookings"),
                json=self._reservation_payload(desk_id, user_id, reservation_date, time_slot, display_name),
                headers={"Prefer": "return=representation"},
            ),
            "create booking",
            conflict_message="This slot has just been booked by someone else.",
        )
        row = _first_row(response.json())
        if row is None:
            raise RemoteError("Failed to create booking: empty response")
        return Reservation(**row)

    def delete_reservation(self, reservation_id: str) -> None:
        self._send(
            _Request("DELETE", self._rest("bookings"), params=[("id", f"eq.{reservation_id}")]),
            "delete booking",
        )

    def get_display_names(self, user_ids: Iterable[str]) -> dict[str, str]:
        user_ids = list(user_ids)
        if not user_ids:
            return {}
        response = self._send(
            _Request("POST", self._rest("rpc/get_user_display_names"), json={"user_ids": user_ids}),
            "resolve display names",
        )
        return self._display_names(response.json())

    def update_display_name(self, display_name: str) -> Member:
        if not self.access_token:
            raise AuthenticationError("You must be logged in to change your display name.")
        response = self._send(
            _Request("PUT", self._auth("user"), json={"data": {DISPLAY_NAME_ATTRIBUTE: display_name}}),
            "update display name",
        )
        return _member_from_user(response.json())

    def close(self) -> None:
        """Close the client session."""
        self._client.close()

    def __enter__(self):
        """Context manager entry."""
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        """Context manager exit."""
        self.close()


class AsyncSupabaseClient(_SupabaseBase, BookingBackend):
    """Asynchronous client for the Supabase booking backend.

    Implements BookingBackend, so it can drive the board and the layout editor.
    """

    def __init__(
        self,
        url: str | None = None,
        anon_key: str | None = None,
        access_token: str | None = None,
        timeout: float = 30,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        """Initialize async Supabase client.

        Args:
            url: Project URL (default: read from SUPABASE_URL env var)
            anon_key: Public anon key (default: read from SUPABASE_ANON_KEY env var)
            access_token: User session JWT (default: read from SUPABASE_ACCESS_TOKEN env var)
            timeout: Request timeout in seconds
            transport: Custom httpx transport (e.g. for testing)

        Raises:
            ValidationError: If URL or anon key are neither provided nor in env vars
        """
        super().__init__(url, anon_key, access_token)
        self._client = httpx.AsyncClient(headers=self._headers(), timeout=timeout, transport=transport)
        logger.debug(f"Initialized AsyncSupabaseClient for {self.url}")

    async def __aenter__(self):
        """Async context manager entry."""
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """Async context manager exit."""
        await self._client.aclose()

    async def _send(self, request: _Request, action: str, conflict_message: str | None = None) -> httpx.Response:
        logger.debug(f"{request.method} {request.path} {request.params or ''}")
        try:
            response = await self._client.request(
                request.method, request.path, params=request.params, json=request.json, headers=request.headers
            )
        except httpx.HTTPError as e:
            raise RemoteError(f"Failed to {action}: {e}") from e
        _raise_for_status(response, action, conflict_message)
        return response

    async def get_current_user(self) -> Member | None:
        """Get the signed-in user.

        Returns:
            Member, or None when the client has no session token
        """
        if not self.access_token:
            return None
        response = await self._send(_Request("GET", self._auth("user")), "fetch current user")
        return _member_from_user(response.json())

    async def list_office_spaces(self, order_by: str = ORDER_BY_NAME) -> list[OfficeSpace]:
        """List office spaces visible to the user."""
        response = await self._send(
            _Request(
                "GET",
                self._rest("office_spaces"),
                params=[("select", OFFICE_COLUMNS), ("order", self._office_order(order_by))],
            ),
            "fetch office spaces",
        )
        return [OfficeSpace(**row) for row in response.json()]

    async def get_office_space(self, office_id: str) -> OfficeSpace | None:
        response = await self._send(
            _Request(
                "GET",
                self._rest("office_spaces"),
                params=[("select", OFFICE_COLUMNS), ("id", f"eq.{office_id}")],
            ),
            "fetch office space",
        )
        row = _first_row(response.json())
        return OfficeSpace(**row) if row else None

    async def create_office_space(self, name: str, layout_json: str = "[]") -> OfficeSpace:
        """Create an office space and link the current user to it."""
        response = await self._send(
            _Request(
                "POST",
                self._rest("rpc/create_office_space_and_link_user"),
                json={"office_space_name": name, "layout_json_input": layout_json},
            ),
            "create office space",
        )
        data = response.json()
        row = _first_row(data)
        if row is not None:
            return OfficeSpace(**row)
        office = await self.get_office_space(str(data)) if data else None
        if office is None:
            raise RemoteError("Failed to create office space.")
        return office

    async def join_office_space(self, office_id: str, user_id: str) -> None:
        await self._send(
            _Request(
                "POST",
                self._rest("user_office_access"),
                json=[{"user_id": user_id, "office_space_id": office_id}],
            ),
            "join office space",
        )

    async def list_desks(self, office_id: str) -> list[Desk]:
        response = await self._send(
            _Request(
                "GET",
                self._rest("desks"),
                params=[("select", DESK_COLUMNS), ("office_space_id", f"eq.{office_id}"), ("order", "name.asc")],
            ),
            "fetch desks",
        )
        return [Desk(**row) for row in response.json()]

    async def count_desks(self, office_id: str) -> int:
        response = await self._send(
            _Request(
                "HEAD",
                self._rest("desks"),
                params=[("select", "*"), ("office_space_id", f"eq.{office_id}")],
                headers={"Prefer": "count=exact"},
            ),
            "count desks",
        )
        return _parse_count(response.headers.get("content-range"))

    async def create_desk(self, office_id: str, name: str) -> Desk:
        response = await self._send(
            _Request(
                "POST",
                self._rest("desks"),
                json=[{"office_space_id": office_id, "name": name}],
                headers={"Prefer": "return=representation"},
            ),
            "add desk",
        )
        row = _first_row(response.json())
        if row is None:
            raise RemoteError("Failed to add desk: empty response")
        return Desk(**row)

    async def delete_desk(self, office_id: str, desk_id: str | None = None, name: str | None = None) -> None:
        await self._send(self._delete_desk_request(office_id, desk_id, name), "delete desk")

    async def update_layout(self, office_id: str, layout_json: str) -> None:
        await self._send(
            _Request(
                "PATCH",
                self._rest("office_spaces"),
                params=[("id", f"eq.{office_id}")],
                json={"layout_json": layout_json},
            ),
            "save layout",
        )

    async def list_reservations(self, desk_ids: Iterable[str], start: date, end: date) -> list[Reservation]:
        desk_ids = list(desk_ids)
        if not desk_ids:
            return []
        response = await self._send(self._reservations_request(desk_ids, start, end), "fetch bookings")
        return [Reservation(**row) for row in response.json()]

    async def get_reservation(self, reservation_id: str) -> Reservation | None:
        response = await self._send(
            _Request(
                "GET",
                self._rest("bookings"),
                params=[("select", BOOKING_COLUMNS), ("id", f"eq.{reservation_id}")],
            ),
            "fetch booking",
        )
        row = _first_row(response.json())
        return Reservation(**row) if row else None

    async def create_reservation(
        self,
        desk_id: str,
        user_id: str,
        reservation_date: date,
        time_slot: TimeSlot,
        display_name: str,
    ) -> Reservation:
        response = await self._send(
            _Request(
                "POST",
                self._rest("bookings"),
                json=self._reservation_payload(desk_id, user_id, reservation_date, time_slot, display_name),
                headers={"Prefer": "return=representation"},
            ),
            "create booking",
            conflict_message="This slot has just been booked by someone else.",
        )
        row = _first_row(response.json())
        if row is None:
            raise RemoteError("Failed to create booking: empty response")
        return Reservation(**row)

    async def delete_reservation(self, reservation_id: str) -> None:
        await self._send(
            _Request("DELETE", self._rest("bookings"), params=[("id", f"eq.{reservation_id}")]),
            "delete booking",
        )

    async def get_display_names(self, user_ids: Iterable[str]) -> dict[str, str]:
        user_ids = list(user_ids)
        if not user_ids:
            return {}
        response = await self._send(
            _Request("POST", self._rest("rpc/get_user_display_names"), json={"user_ids": user_ids}),
            "resolve display names",
        )
        return self._display_names(response.json())

    async def update_display_name(self, display_name: str) -> Member:
        if not self.access_token:
            raise AuthenticationError("You must be logged in to change your display name.")
        response = await self._send(
            _Request("PUT", self._auth("user"), json={"data": {DISPLAY_NAME_ATTRIBUTE: display_name}}),
            "update display name",
        )
        return _member_from_user(response.json())

    async def close(self) -> None:
        """Close the client session."""
        await self._client.aclose()
