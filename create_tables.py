#!/usr/bin/env python3
"""
Create all database tables and, on an empty database, a root department
with a default HR admin so the API can be used straight away.
"""

import logging
import os

from app.config.logging_config import setup_logging
from app.database import Base, SessionLocal, engine
from app.models import Department, User, UserRole
from app.utils.security import hash_password

logger = logging.getLogger(__name__)


def create_tables():
    Base.metadata.create_all(bind=engine)
    logger.info("Database tables created")


def seed_defaults():
    db = SessionLocal()
    try:
        if db.query(User).first() is not None:
            logger.info("Users already exist, skipping default HR admin")
            return

        department = Department(name=os.getenv("ROOT_DEPARTMENT_NAME", "Company"))
        db.add(department)
        db.flush()

        admin = User(
            name="HR Admin",
            email=os.getenv("ADMIN_EMAIL", "admin@example.com"),
            hashed_password=hash_password(os.getenv("ADMIN_PASSWORD", "admin123")),
            role=UserRole.HR_ADMIN,
            department_id=department.id,
            is_hr_admin=True,
        )
        db.add(admin)
        db.commit()
        logger.info(f"Created root department '{department.name}' and HR admin {admin.email}")
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()


if __name__ == "__main__":
    setup_logging()
    create_tables()
    seed_defaults()
