"""
Database initialization script.
Creates tables, seeds one login per role and moves any JSON-file works into the database.
"""
import sys
import os
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from adp_portal.auth import seed_default_users, DEFAULT_USERS
from adp_portal.database import init_database, USE_POSTGRES
from adp_portal.storage import DatabaseBackend, FailoverStorage, JsonFileBackend


def main():
    print("=" * 60, flush=True)
    print("ADP Works Portal - Database Initialization", flush=True)
    print(f"Database: {'PostgreSQL' if USE_POSTGRES else 'SQLite'}", flush=True)
    print("=" * 60, flush=True)

    print("\nStep 1: Creating database tables...")
    print("-" * 40)
    init_database()

    print("\nStep 2: Seeding portal users...")
    print("-" * 40)
    created = seed_default_users()
    print(f"Created {created} user(s)")

    print("\nStep 3: Migrating works from the JSON file...")
    print("-" * 40)
    moved = FailoverStorage(DatabaseBackend(initialize=False), JsonFileBackend()).migrate()
    print(f"Migrated {moved} work(s)")

    print("\n" + "=" * 60)
    print("Default logins (username / role):")
    for username, role, _ in DEFAULT_USERS:
        print(f"  {username:<10} {role}")
    print("=" * 60)


if __name__ == "__main__":
    main()
