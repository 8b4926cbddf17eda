"""Layout document parsing and serialization.

The layout document is the durable form of an office map: a JSON array with
one object per desk shape. Everything drawn on a surface is rebuilt from it.
"""

import logging
from collections.abc import Iterable

from pydantic import TypeAdapter
from pydantic import ValidationError as PydanticValidationError

from .exceptions import MalformedLayoutError
from .models import DeskShape

logger = logging.getLogger(__name__)

EMPTY_LAYOUT = "[]"

_SHAPES = TypeAdapter(list[DeskShape])


def parse(doc: str | None) -> list[DeskShape]:
    """Parse a layout document into desk shapes.

    Args:
        doc: Layout document as stored on the office space (may be None)

    Returns:
        List of DeskShape objects in document order

    Raises:
        MalformedLayoutError: If the document is not a JSON array of desk shapes
    """
    if doc is None or not doc.strip():
        return []

    try:
        shapes = _SHAPES.validate_json(doc)
    except PydanticValidationError as e:
        raise MalformedLayoutError(f"Invalid layout document: {e.error_count()} error(s)") from e

    seen: set[str] = set()
    for shape in shapes:
        if shape.id in seen:
            raise MalformedLayoutError(f"Duplicate desk shape id: {shape.id}")
        seen.add(shape.id)

    logger.debug(f"Parsed layout with {len(shapes)} shapes")
    return shapes


def serialize(shapes: Iterable[DeskShape]) -> str:
    """Serialize desk shapes into a layout document.

    Args:
        shapes: Desk shapes in the order they should be stored

    Returns:
        JSON array string
    """
    return _SHAPES.dump_json(list(shapes), exclude_none=True).decode("utf-8")
