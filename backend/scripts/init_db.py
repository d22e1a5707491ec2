#!/usr/bin/env python3
"""
Create the back office schema and, optionally, a first admin account

Purpose: Run Base.metadata.create_all over app.models, then seed an admin
Author: TM3
Date: 2025-10-17

Usage:
    export DATABASE_URL="postgresql://..."
    python3 backend/scripts/init_db.py
    python3 backend/scripts/init_db.py --admin-email admin@shop.vn --admin-password secret123
"""

import argparse
import os
import sys

sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from app.core.auth import hash_password
from app.core.database import init_db
from app.core.logging_config import configure_logging
from app.repositories.user_repository import UserRepository


def create_admin(email: str, password: str, name: str) -> bool:
    """Create the admin account unless the email is already registered"""
    repo = UserRepository()
    email = email.strip().lower()
    if repo.email_exists(email):
        print(f"ℹ️  {email} already exists, skipping admin creation")
        return False

    user = repo.create(
        email=email,
        password_hash=hash_password(password),
        name=name,
        phone=None,
        role="admin",
    )
    print(f"✅ Admin account created: {user.email} (id {user.id})")
    return True


def main():
    parser = argparse.ArgumentParser(description="Initialize the back office database")
    parser.add_argument("--admin-email", help="Email of the first admin account")
    parser.add_argument("--admin-password", help="Password of the first admin account (min 6 chars)")
    parser.add_argument("--admin-name", default="Administrator")
    args = parser.parse_args()

    configure_logging("INFO")

    print("="*60)
    print("🗄️  DATABASE INITIALIZATION")
    print("="*60)

    init_db()
    print("✅ Schema ensured")

    if args.admin_email:
        if not args.admin_password or len(args.admin_password) < 6:
            print("❌ Error: --admin-password must have at least 6 characters")
            return 1
        create_admin(args.admin_email, args.admin_password, args.admin_name)

    return 0


if __name__ == "__main__":
    sys.exit(main())
