"""
Script to create an admin user
Run this to create the first account for the admin panel
"""

import sys
import asyncio
import logging
import uuid
from pathlib import Path

# Add parent directory to path
sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

from fibq_certify.database import database, connect_db, disconnect_db
from fibq_certify.auth import hash_password, generate_random_password

logger = logging.getLogger("create_admin")


async def create_admin(email: str, full_name: str, password: str = None) -> None:
    """
    Create an admin user

    Args:
        email: Admin email
        full_name: Admin full name
        password: Password (if None, a random one is generated and printed)
    """
    await connect_db()

    try:
        existing = await database.fetch_one(
            "SELECT id FROM admin_users WHERE email = :email",
            {"email": email}
        )
        if existing:
            logger.error("Admin with email %s already exists", email)
            return

        generated = password is None
        if generated:
            password = generate_random_password()

        await database.execute(
            """
            INSERT INTO admin_users (id, email, password_hash, full_name, is_admin, is_active)
            VALUES (:id, :email, :password_hash, :full_name, :is_admin, :is_active)
            """,
            {
                "id": str(uuid.uuid4()),
                "email": email,
                "password_hash": hash_password(password),
                "full_name": full_name,
                "is_admin": True,
                "is_active": True
            }
        )

        logger.info("Admin created: %s (%s)", email, full_name)
        if generated:
            print(f"Generated password: {password}")

    finally:
        await disconnect_db()


async def main():
    print("\n" + "=" * 60)
    print("CREATE ADMIN")
    print("=" * 60 + "\n")

    email = input("Enter email: ").strip()
    full_name = input("Enter full name: ").strip()

    use_custom = input("Set custom password? (y/n): ").strip().lower()
    password = None
    if use_custom == "y":
        password = input("Enter password: ").strip()
        confirm = input("Confirm password: ").strip()
        if password != confirm:
            print("Passwords do not match!")
            return
        if len(password) < 8:
            print("Password must be at least 8 characters!")
            return

    await create_admin(email, full_name, password)


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(message)s")
    asyncio.run(main())
