"""Tests for flash messages."""

import logging

import pytest

from deskbook.exceptions import SlotConflictError
from deskbook.notifications import UNEXPECTED_ERROR_MESSAGE, FlashCategory, FlashMessages, flash_action

logger = logging.getLogger(__name__)


def test_messages_expire_after_lifetime(flash, clock):
    """Messages disappear five seconds after they were pushed."""
    first = flash.success("Saved")
    clock.advance(3)
    flash.error("Broken")

    assert [m.message for m in flash.active()] == ["Saved", "Broken"]

    clock.advance(2)
    assert [m.message for m in flash.active()] == ["Broken"]
    assert first.expired(clock.now)

    clock.advance(3)
    assert flash.active() == []


def test_dismiss_and_clear(flash):
    kept = flash.success("Kept")
    dropped = flash.success("Dropped")

    flash.dismiss(dropped)
    assert flash.active() == [kept]

    flash.clear()
    assert len(flash) == 0
    assert flash.last is None


def test_error_records_exception_type(flash):
    message = flash.error("Taken", SlotConflictError("Taken"))

    assert message.category == FlashCategory.ERROR
    assert message.error_type == "SlotConflictError"
    assert flash.error("Plain").error_type is None


class _Controller:
    def __init__(self):
        self.flash = FlashMessages()

    @flash_action(success="Done!")
    async def succeed(self, value):
        return value * 2

    @flash_action(success="Done!")
    async def conflict(self):
        raise SlotConflictError("Morning on 2024-06-03 is no longer available for this desk.")

    @flash_action()
    async def crash(self):
        raise KeyError("boom")


@pytest.mark.asyncio
async def test_flash_action_success():
    controller = _Controller()

    assert await controller.succeed(21) == 42
    assert [m.message for m in controller.flash.active()] == ["Done!"]


@pytest.mark.asyncio
async def test_flash_action_domain_error():
    """Domain errors become one error message with their own text."""
    controller = _Controller()

    assert await controller.conflict() is None
    (message,) = controller.flash.active()
    assert message.category == FlashCategory.ERROR
    assert message.message.startswith("Morning on 2024-06-03")


@pytest.mark.asyncio
async def test_flash_action_unexpected_error():
    """Other exceptions get a generic message."""
    controller = _Controller()

    assert await controller.crash() is None
    assert controller.flash.last.message == UNEXPECTED_ERROR_MESSAGE
    assert controller.flash.last.error_type == "UnexpectedError"
