#!/usr/bin/env python3
"""
Initialize Evently database tables.

This script creates the tables, seeds the event categories and, when
--admin-username/--admin-email/--admin-password are given, creates an
administrator account.
"""

import argparse
import sys
import os
import logging

# Add the project root to Python path
sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from sqlalchemy import text

from core.config import get_settings
from core.database import create_db_engine, create_session_factory, init_models
from core.security import hash_password
from models.category import Category
from models.user import ROLE_ADMIN, User

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

DEFAULT_CATEGORIES = [
    "Technology",
    "Music",
    "Food & Drink",
    "Arts & Culture",
    "Sports",
    "Business",
]


def seed_categories(session) -> int:
    """Insert missing default categories; returns how many were added."""
    existing = {name for (name,) in session.query(Category.category_name).all()}
    added = 0
    for name in DEFAULT_CATEGORIES:
        if name not in existing:
            session.add(Category(category_name=name))
            added += 1
    session.commit()
    return added


def ensure_admin(session, settings, username: str, email: str, password: str) -> bool:
    """Create the admin account, or promote it if the username already exists."""
    user = session.query(User).filter(User.username == username).first()
    if user:
        if user.role != ROLE_ADMIN:
            user.role = ROLE_ADMIN
            session.commit()
            logger.info(f"Promoted existing user {username} to admin")
        return False

    session.add(User(
        username=username,
        email=email,
        password_hash=hash_password(password, settings),
        role=ROLE_ADMIN,
    ))
    session.commit()
    logger.info(f"Created admin user {username}")
    return True


def main(argv=None) -> bool:
    parser = argparse.ArgumentParser(description="Initialize the Evently database")
    parser.add_argument("--admin-username")
    parser.add_argument("--admin-email")
    parser.add_argument("--admin-password")
    args = parser.parse_args(argv)

    settings = get_settings()
    engine = create_db_engine(settings)

    try:
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
        logger.info("Database connected")

        init_models(engine)
        logger.info("Tables created/exist")

        session = create_session_factory(engine)()
        try:
            added = seed_categories(session)
            logger.info(f"Categories seeded: {added} added")

            if args.admin_username:
                if not (args.admin_email and args.admin_password):
                    logger.error("--admin-email and --admin-password are required with --admin-username")
                    return False
                ensure_admin(session, settings, args.admin_username, args.admin_email, args.admin_password)
        finally:
            session.close()
    except Exception as e:
        logger.error(f"Database initialization failed: {e}")
        return False
    finally:
        engine.dispose()

    logger.info("Database initialization completed successfully")
    return True


if __name__ == "__main__":
    success = main()
    sys.exit(0 if success else 1)
