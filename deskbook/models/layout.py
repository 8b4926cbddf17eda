"""Pydantic models for the office layout map."""

from pydantic import BaseModel, Field, field_validator

DEFAULT_FILL = "gray"


def wrap_angle(value: float) -> float:
    """Normalize an angle in degrees into [0, 360)."""
    wrapped = value % 360
    # Tiny negative angles round up to exactly 360
    return 0.0 if wrapped >= 360 else wrapped


class DeskShape(BaseModel):
    """One desk rectangle on the office map.

    ``id`` is the shape's own identity inside the layout document. ``desk_id``
    links the shape to the storage-assigned desk; documents written before the
    link existed leave it unset and are matched to desks by ``name``.
    """

    id: str = Field(min_length=1, description="Shape identifier, unique within a layout")
    x: float = Field(allow_inf_nan=False, description="Left edge on the map")
    y: float = Field(allow_inf_nan=False, description="Top edge on the map")
    width: float = Field(gt=0, allow_inf_nan=False)
    height: float = Field(gt=0, allow_inf_nan=False)
    fill: str = DEFAULT_FILL
    name: str = Field(description="Display label, also the desk name")
    rotation: float = Field(default=0.0, allow_inf_nan=False, description="Degrees, wraps at 360")
    desk_id: str | None = Field(default=None, description="Storage id of the booked desk")

    model_config = {"frozen": True, "strict": True}

    @field_validator("rotation")
    @classmethod
    def _wrap_rotation(cls, value: float) -> float:
        return wrap_angle(value)
