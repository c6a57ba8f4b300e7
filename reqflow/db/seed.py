"""Database seeding for reqflow.

Creates a small demo directory (one manager, two employees) for local
development. Passwords are hashed like any sign-up.
"""

from typing import Dict

from sqlalchemy.orm import Session

from reqflow.core.logger import get_logger
from reqflow.core.security import get_password_hash
from reqflow.core.workflow.states import Role
from reqflow.db.models import User

logger = get_logger(__name__)

DEMO_PASSWORD = "changeme123"

DEMO_USERS = [
    {"key": "manager", "name": "Morgan Manager", "email": "manager@example.com", "role": Role.MANAGER},
    {"key": "employee", "name": "Erin Employee", "email": "employee@example.com", "role": Role.EMPLOYEE},
    {"key": "employee2", "name": "Eli Employee", "email": "employee2@example.com", "role": Role.EMPLOYEE},
]


def seed_demo_directory(db: Session, password: str = DEMO_PASSWORD) -> Dict[str, User]:
    """
    Create the demo users.

    Idempotent - users that already exist (by email) are returned as-is.
    Employees report to the demo manager.

    Returns:
        Dict mapping user key to User object
    """
    users: Dict[str, User] = {}
    manager_id = None

    for entry in DEMO_USERS:
        existing = db.query(User).filter(User.email == entry["email"]).first()
        if existing:
            users[entry["key"]] = existing
            if entry["role"] == Role.MANAGER:
                manager_id = existing.id
            continue

        user = User(
            name=entry["name"],
            email=entry["email"],
            password_hash=get_password_hash(password),
            role=entry["role"].value,
            manager_id=manager_id if entry["role"] == Role.EMPLOYEE else None,
        )
        db.add(user)
        db.flush()
        if entry["role"] == Role.MANAGER:
            manager_id = user.id
        users[entry["key"]] = user
        logger.info("Seeded %s user %s", user.role, user.email)

    db.commit()
    return users


if __name__ == "__main__":
    import sys
    from reqflow.core.logger import configure_logging
    from reqflow.db.session import SessionLocal

    configure_logging()
    db = SessionLocal()
    try:
        seeded = seed_demo_directory(db)
        print(f"Seeded {len(seeded)} demo users (password: {DEMO_PASSWORD})")
        for key, user in seeded.items():
            print(f"  - {key}: {user.email} ({user.role})")
    except Exception as e:
        db.rollback()
        print(f"Error: {e}")
        sys.exit(1)
    finally:
        db.close()
