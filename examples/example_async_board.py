"""Example: Showing the booking board and booking a desk."""

import asyncio
import logging

from dotenv import load_dotenv

from deskbook import AsyncSupabaseClient, BookingBoard, DisplayNameCache, FileCache, TimeSlot

logging.basicConfig(level=logging.INFO)

# Load environment variables from .env file
load_dotenv()


async def main():
    """Main async function."""
    async with AsyncSupabaseClient() as client:
        board = BookingBoard(client, display_name_cache=DisplayNameCache(FileCache()))
        await board.init()

        if not board.office_spaces:
            print("No office spaces yet. Create one first.")
            return

        office = board.office_spaces[0]
        print(f"=== {office.name} ===\n")
        await board.select_office(office.id)

        for row in board.grid():
            cells = []
            for cell in row.cells:
                if cell.availability.full_day_booked:
                    cells.append("full")
                elif cell.bookings:
                    cells.append("half")
                else:
                    cells.append("free")
            print(f"{row.desk.name:>12}: {' '.join(cells)}")

        # Book the first free morning in the window
        for row in board.grid():
            free = next((c for c in row.cells if c.availability.can_book(TimeSlot.MORNING)), None)
            if free is not None:
                await board.book(row.desk.id, free.date, TimeSlot.MORNING)
                break

        for message in board.flash.active():
            print(f"[{message.category.value}] {message.message}")


if __name__ == "__main__":
    asyncio.run(main())
