"""Transient user-visible notifications (flash messages)."""

import functools
import logging
import time
from collections.abc import Awaitable, Callable
from enum import Enum
from typing import Any, TypeVar

from pydantic import BaseModel, Field

from .exceptions import DeskBookingError, UnexpectedError

logger = logging.getLogger(__name__)

# Messages disappear on their own after this many seconds
FLASH_LIFETIME = 5.0

UNEXPECTED_ERROR_MESSAGE = "An unexpected error occurred."

T = TypeVar("T")


class FlashCategory(str, Enum):
    """Kind of flash message."""

    ERROR = "error"
    SUCCESS = "success"


class FlashMessage(BaseModel):
    """One notification shown to the user."""

    category: FlashCategory
    message: str
    created_at: float = Field(default_factory=time.monotonic)
    error_type: str | None = None

    model_config = {"frozen": True}

    def expired(self, now: float, lifetime: float = FLASH_LIFETIME) -> bool:
        """Check whether the message has outlived its display time."""
        return now - self.created_at >= lifetime


class FlashMessages:
    """Queue of flash messages with auto-dismiss.

    Args:
        lifetime: Seconds a message stays visible (default: 5)
        clock: Monotonic clock, injectable for tests
    """

    def __init__(self, lifetime: float = FLASH_LIFETIME, clock: Callable[[], float] = time.monotonic):
        self.lifetime = lifetime
        self._clock = clock
        self._messages: list[FlashMessage] = []

    def push(self, category: FlashCategory, message: str, error_type: str | None = None) -> FlashMessage:
        flash = FlashMessage(category=category, message=message, created_at=self._clock(), error_type=error_type)
        self._messages.append(flash)
        logger.debug(f"Flash [{category.value}]: {message}")
        return flash

    def success(self, message: str) -> FlashMessage:
        return self.push(FlashCategory.SUCCESS, message)

    def error(self, message: str, error: Exception | None = None) -> FlashMessage:
        return self.push(
            FlashCategory.ERROR,
            message,
            error_type=type(error).__name__ if error is not None else None,
        )

    def active(self) -> list[FlashMessage]:
        """Get visible messages, dropping the ones that timed out."""
        now = self._clock()
        self._messages = [m for m in self._messages if not m.expired(now, self.lifetime)]
        return list(self._messages)

    def dismiss(self, flash: FlashMessage) -> None:
        """Dismiss a message explicitly."""
        self._messages = [m for m in self._messages if m is not flash]

    def clear(self) -> None:
        self._messages.clear()

    @property
    def last(self) -> FlashMessage | None:
        """Most recently pushed message that is still queued."""
        return self._messages[-1] if self._messages else None

    def __len__(self) -> int:
        return len(self._messages)


def flash_action(success: str | None = None):
    """Decorate an async controller action so its outcome becomes one flash message.

    The decorated method's owner must expose a ``flash`` attribute. Domain
    errors are reported with their message, anything else with a generic
    message and a logged traceback. Failures return None.

    Args:
        success: Message reported when the action completes (None = report nothing)
    """

    def decorator(func: Callable[..., Awaitable[T]]) -> Callable[..., Awaitable[T | None]]:
        @functools.wraps(func)
        async def wrapper(self, *args: Any, **kwargs: Any) -> T | None:
            try:
                result = await func(self, *args, **kwargs)
            except DeskBookingError as e:
                logger.info(f"{func.__name__} failed: {e}")
                self.flash.error(str(e), e)
                return None
            except Exception as e:
                logger.exception(f"Unexpected error in {func.__name__}")
                self.flash.error(UNEXPECTED_ERROR_MESSAGE, UnexpectedError(str(e)))
                return None

            if success is not None:
                self.flash.success(success)
            return result

        return wrapper

    return decorator
