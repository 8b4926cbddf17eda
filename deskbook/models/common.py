"""Common Pydantic models shared across deskbook components."""

from pydantic import BaseModel

UNKNOWN_USER = "Unknown User"


class Member(BaseModel):
    """Authenticated user acting on the booking tool."""

    id: str
    email: str | None = None
    display_name: str | None = None

    model_config = {"frozen": True}

    @property
    def label(self) -> str:
        """Get the name stored on new reservations."""
        return self.display_name or UNKNOWN_USER
