"""
Seed demo accounts for local role testing (admin, moderator, user). Refuses to run in prod.

  python -m app.scripts.seed_users
"""
import logging
import sys
from dataclasses import dataclass

from sqlalchemy.orm import Session

from app.core.config import get_settings
from app.core.database import SessionLocal
from app.core.exceptions import ConflictError
from app.core.roles import Role
from app.services.auth import create_user_with_role

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SeedAccount:
    name: str
    email: str
    password: str
    role: Role


DEMO_ACCOUNTS = (
    SeedAccount("Admin User", "admin@test.com", "admin123", "admin"),
    SeedAccount("Moderator User", "moderator@test.com", "moderator123", "moderator"),
    SeedAccount("Regular User", "user@test.com", "user123", "user"),
)


def seed_accounts(
    db: Session,
    accounts: tuple[SeedAccount, ...] = DEMO_ACCOUNTS,
) -> tuple[list[str], list[str]]:
    """Create each account; existing emails are skipped. Returns (created, skipped) emails."""
    created: list[str] = []
    skipped: list[str] = []
    for account in accounts:
        try:
            create_user_with_role(db, account.name, account.email, account.password, account.role)
        except ConflictError:
            skipped.append(account.email)
            continue
        created.append(account.email)
    return created, skipped


def main() -> int:
    settings = get_settings()
    logging.basicConfig(
        level=settings.LOG_LEVEL,
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%SZ",
    )
    if settings.is_production:
        logger.error("Refusing to seed demo accounts with APP_ENV=prod")
        return 1

    db = SessionLocal()
    try:
        created, skipped = seed_accounts(db)
    except Exception as e:
        logger.exception("Seeding failed: %s", e)
        return 1
    finally:
        db.close()

    for email in created:
        logger.info("Created demo account %s", email)
    for email in skipped:
        logger.info("Demo account %s already exists; skipped", email)
    return 0


if __name__ == "__main__":
    sys.exit(main())
