#!/usr/bin/env python3
"""
Database setup tool: (re)creates the users table and loads sample users
"""

import os
import sys
import asyncio
import argparse

from dotenv import find_dotenv, load_dotenv

# Load environment variables from the .env in the working directory before settings are read
load_dotenv(find_dotenv(usecwd=True))

# Add src to path for imports
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

from config.settings import get_database_config
from database.connection import Database
from services.users_service import UsersService

DROP_USERS_TABLE_SQL = "DROP TABLE IF EXISTS users CASCADE;"

SAMPLE_USERS_SQL = """
    INSERT INTO users (name, email, age) VALUES
      ('John Doe', 'john@example.com', 30),
      ('Jane Smith', 'jane@example.com', 25),
      ('Bob Johnson', 'bob@example.com', 35)
    ON CONFLICT (email) DO NOTHING;
"""


async def setup_database(database: Database, keep_existing: bool = False, with_samples: bool = True) -> int:
    """
    Prepare the users table

    Args:
        database: Database handle (not yet connected)
        keep_existing: Skip dropping the existing table
        with_samples: Insert the sample users

    Returns:
        Total number of users afterwards
    """
    await database.connect()
    try:
        if not keep_existing:
            print("🔄 Dropping existing users table (if exists)...")
            async with database.acquire() as conn:
                await conn.execute(DROP_USERS_TABLE_SQL)

        print("🔄 Creating users table...")
        await database.create_users_table()

        if with_samples:
            print("🔄 Inserting sample data...")
            async with database.acquire() as conn:
                await conn.execute(SAMPLE_USERS_SQL)

        return await UsersService(database).count_users()
    finally:
        await database.close()


def main(argv=None) -> int:
    load_dotenv(find_dotenv(usecwd=True))

    parser = argparse.ArgumentParser(description="Create the users table and load sample data")
    parser.add_argument("--keep-existing", action="store_true", help="Do not drop the existing users table")
    parser.add_argument("--no-samples", action="store_true", help="Skip inserting sample users")
    args = parser.parse_args(argv)

    config = get_database_config()
    database = Database(config)

    try:
        total = asyncio.run(setup_database(database, args.keep_existing, not args.no_samples))
    except Exception as e:
        print(f"\n❌ Database setup failed: {e}")
        print("\n💡 Troubleshooting tips:")
        print("   1. Make sure PostgreSQL is installed and running")
        print(f"   2. Check that database \"{config['database']}\" exists (create it if not)")
        print("   3. Verify credentials in .env file")
        print(f"   4. Check that port {config['port']} is correct")
        return 1

    print(f"✅ Total users in database: {total}")
    print("\n🎉 Database setup completed successfully!")
    print(f"   Database: {config['database']}")
    print(f"   Host: {config['host']}:{config['port']}")
    print(f"   User: {config['user']}")
    print("\n✨ You can now start the server with: python main.py")
    return 0


if __name__ == "__main__":
    sys.exit(main())
