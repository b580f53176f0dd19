"""Schema bootstrap and default user seeding.

Run ``tasktrack-init-db`` (or ``python -m tasktrack_core.seed``) once
against a fresh database. Seeding is insert-if-absent, so re-running is
harmless.
"""
import logging
import sys

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from . import models
from .database import Base, SessionLocal, engine

logger = logging.getLogger("tasktrack-core.seed")

DEFAULT_USERS: list[tuple[str, models.UserRole]] = [
    ("pm_user", models.UserRole.PM),
    ("dev_user", models.UserRole.DEV),
    ("qa_user", models.UserRole.QA),
]


def create_schema(bind=None) -> None:
    """Create all tables that do not exist yet."""
    Base.metadata.create_all(bind=bind or engine)


def seed_users(db: Session) -> int:
    """
    Insert the default PM, Dev and QA users if they are missing.

    Args:
        db: Database session

    Returns:
        Number of users inserted
    """
    existing = {
        username for (username,) in db.query(models.User.username).filter(
            models.User.username.in_([username for username, _ in DEFAULT_USERS])
        )
    }

    inserted = 0
    for username, role in DEFAULT_USERS:
        if username in existing:
            continue
        db.add(models.User(username=username, role=role))
        inserted += 1

    if inserted:
        db.commit()
        logger.info(f"Seeded {inserted} default users")
    return inserted


def init_db() -> int:
    """Create the schema and seed default users. Returns the number of users inserted."""
    create_schema()
    logger.info("Schema created successfully")

    db = SessionLocal()
    try:
        return seed_users(db)
    finally:
        db.close()


def main() -> None:
    """Console entry point for database initialization."""
    logging.basicConfig(
        level=logging.INFO,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )
    try:
        inserted = init_db()
    except SQLAlchemyError as e:
        logger.error(f"Initialization error: {e}", exc_info=True)
        sys.exit(1)

    logger.info(f"Database initialization complete ({inserted} users added)")


if __name__ == "__main__":
    main()
