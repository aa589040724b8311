#!/usr/bin/env python3
"""
Database migration script.
Applies the Alembic migrations and seeds the admin account and feature catalog.
"""

import asyncio
import sys
import argparse
import logging
from pathlib import Path

from alembic import command
from alembic.config import Config
from sqlalchemy import select

from marketplace.config import settings
from marketplace.database import AsyncSessionLocal, close_db_connection
from marketplace.models.user import User, UserRole
from marketplace.models.feature import PropertyFeature

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

ALEMBIC_INI = Path(__file__).parent / "alembic.ini"

# Default feature catalog: (name, category, icon)
DEFAULT_FEATURES = [
    ("Air Conditioning", "interior", "snowflake"),
    ("Heating", "interior", "flame"),
    ("Fireplace", "interior", "fire"),
    ("Furnished", "interior", "sofa"),
    ("Laundry Room", "interior", "washing-machine"),
    ("Balcony", "exterior", "balcony"),
    ("Garden", "exterior", "tree"),
    ("Pool", "exterior", "pool"),
    ("Terrace", "exterior", "sun"),
    ("Parking", "building", "car"),
    ("Elevator", "building", "elevator"),
    ("Doorman", "building", "user-check"),
    ("Gym", "building", "dumbbell"),
    ("Pet Friendly", "policy", "paw"),
]


class MigrationManager:
    """Runs Alembic commands and seeds reference data."""

    def __init__(self, ini_path: Path = ALEMBIC_INI):
        self.config = Config(str(ini_path))
        self.config.set_main_option("script_location", str(ini_path.parent / "alembic"))
        self.config.set_main_option("sqlalchemy.url", settings.database_url)

    def create_migration(self, message: str, autogenerate: bool = True) -> None:
        """Create a new Alembic revision."""
        logger.info(f"Creating migration: {message}")
        command.revision(self.config, message=message, autogenerate=autogenerate)
        logger.info("Migration created successfully")

    def upgrade(self, revision: str = "head") -> None:
        """Apply pending migrations up to a revision."""
        logger.info(f"Upgrading database to {revision}")
        command.upgrade(self.config, revision)
        logger.info("Migrations completed successfully")

    def downgrade(self, revision: str = "-1") -> None:
        """Roll back to a revision."""
        logger.info(f"Rolling back to revision: {revision}")
        command.downgrade(self.config, revision)
        logger.info("Rollback completed successfully")

    def show_history(self) -> None:
        command.history(self.config, verbose=True)

    def show_current(self) -> None:
        command.current(self.config, verbose=True)

    async def seed_database(self, admin_email: str, admin_password: str) -> None:
        """
        Seed the admin account and the default feature catalog.
        Existing rows are left untouched, so seeding can be repeated.
        """
        logger.info("Seeding database with initial data")

        async with AsyncSessionLocal() as session:
            try:
                result = await session.execute(select(User).where(User.email == admin_email))
                if result.scalar_one_or_none():
                    logger.info(f"Admin user {admin_email} already exists")
                else:
                    session.add(User(
                        email=admin_email,
                        hashed_password=User.hash_password(admin_password),
                        full_name="System Administrator",
                        role=UserRole.ADMIN,
                        is_active=True
                    ))
                    logger.info(f"Admin user created: {admin_email}")
                    logger.warning("Please change the admin password in production!")

                result = await session.execute(select(PropertyFeature.name))
                existing = set(result.scalars().all())
                added = 0
                for name, category, icon in DEFAULT_FEATURES:
                    if name not in existing:
                        session.add(PropertyFeature(name=name, category=category, icon=icon))
                        added += 1

                await session.commit()
                logger.info(f"Database seeded successfully ({added} features added)")

            except Exception as e:
                await session.rollback()
                logger.error(f"Failed to seed database: {e}")
                raise
            finally:
                await close_db_connection()


def main():
    """Main CLI interface for migration management."""
    parser = argparse.ArgumentParser(description="Database migration management")
    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    create_parser = subparsers.add_parser("create", help="Create a new migration")
    create_parser.add_argument("message", help="Migration message")
    create_parser.add_argument("--empty", action="store_true", help="Do not autogenerate operations")

    upgrade_parser = subparsers.add_parser("upgrade", help="Apply pending migrations")
    upgrade_parser.add_argument("revision", nargs="?", default="head", help="Target revision")

    downgrade_parser = subparsers.add_parser("downgrade", help="Rollback migrations")
    downgrade_parser.add_argument("revision", nargs="?", default="-1", help="Revision to rollback to")

    subparsers.add_parser("history", help="Show migration history")
    subparsers.add_parser("current", help="Show current revision")

    seed_parser = subparsers.add_parser("seed", help="Seed admin user and feature catalog")
    seed_parser.add_argument("--admin-email", default="admin@example.com")
    seed_parser.add_argument("--admin-password", default="admin123456")

    args = parser.parse_args()

    if not args.command:
        parser.print_help()
        return

    manager = MigrationManager()

    try:
        if args.command == "create":
            manager.create_migration(args.message, autogenerate=not args.empty)

        elif args.command == "upgrade":
            manager.upgrade(args.revision)

        elif args.command == "downgrade":
            manager.downgrade(args.revision)

        elif args.command == "history":
            manager.show_history()

        elif args.command == "current":
            manager.show_current()

        elif args.command == "seed":
            asyncio.run(manager.seed_database(args.admin_email, args.admin_password))

    except Exception as e:
        logger.error(f"Command failed: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
