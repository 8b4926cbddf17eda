"""Example: Editing an office layout."""

import asyncio

from dotenv import load_dotenv

from deskbook import AsyncSupabaseClient, OfficeDirectory

# Load environment variables from .env file
load_dotenv()


async def main():
    """Main async function."""
    async with AsyncSupabaseClient() as client:
        directory = OfficeDirectory(client)
        office = await directory.create_office("Example office")
        if office is None:
            print(directory.flash.last.message)
            return

        editor = directory.layout_editor()
        editor.open(office)

        # Add two desks and spread them out
        for position in [(120, 80), (260, 80)]:
            shape = await editor.add_desk()
            if shape is None:
                break
            editor.surface.move(editor.surface.find(shape.id), *position)

        await editor.save_layout()
        await editor.close()

        for message in directory.flash.active():
            print(f"[{message.category.value}] {message.message}")
        for summary in directory.offices:
            print(f"{summary.name}: {summary.desk_count} desks")


if __name__ == "__main__":
    asyncio.run(main())
