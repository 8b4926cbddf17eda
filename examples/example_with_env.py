"""Example: Listing office spaces with credentials from the environment."""

import os

from dotenv import load_dotenv

from deskbook import SupabaseClient

# Load environment variables from .env file
load_dotenv()

if not os.getenv("SUPABASE_URL") or not os.getenv("SUPABASE_ANON_KEY"):
    print("Error: SUPABASE_URL and SUPABASE_ANON_KEY environment variables must be set")
    print("\nCreate a .env file with:")
    print("SUPABASE_URL=https://your-project.supabase.co")
    print("SUPABASE_ANON_KEY=your_anon_key")
    print("SUPABASE_ACCESS_TOKEN=your_session_jwt")
    exit(1)

with SupabaseClient() as client:
    print("=== Using Environment Variables ===\n")

    user = client.get_current_user()
    print(f"Signed in as: {user.label if user else 'anonymous'}\n")

    print("1. Listing office spaces...")
    offices = client.list_office_spaces()
    print(f"Found {len(offices)} office spaces")

    for office in offices:
        count = client.count_desks(office.id)
        print(f"  - {office.name}: {count} desks")

    print("\n=== Done ===")
