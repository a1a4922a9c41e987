"""
Create tables, seed the admin and reader roles, and optionally a default admin user.
Run from project root:

  python -m app.scripts.init_db

The default admin is created only when DEFAULT_ADMIN_EMAIL and DEFAULT_ADMIN_PASSWORD are set.
Production schemas should be managed with alembic (alembic upgrade head) instead.
"""

import logging
import sys

from app.core.config import Settings, get_settings
from app.core.database import SessionLocal, engine
from app.models import Base, RoleName
from app.services.credential_store import CredentialStore

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)s %(name)s %(message)s",
    datefmt="%Y-%m-%dT%H:%M:%SZ",
)
logger = logging.getLogger(__name__)


def seed_default_admin(store: CredentialStore, settings: Settings) -> bool:
    """Create the configured default admin if missing. Returns True if a user was created."""
    email = settings.DEFAULT_ADMIN_EMAIL
    password = settings.DEFAULT_ADMIN_PASSWORD
    if not email or password is None:
        logger.info("DEFAULT_ADMIN_EMAIL/DEFAULT_ADMIN_PASSWORD not set; skipping default admin.")
        return False
    if store.find_user_by_email(email) is not None:
        logger.info("Default admin already exists: %s", email)
        return False
    admin_role = store.find_role_by_name(RoleName.ADMIN)
    if admin_role is None:
        raise RuntimeError("Admin role not found; seed roles before creating the default admin.")
    store.create_user(
        settings.DEFAULT_ADMIN_NAME,
        email,
        password.get_secret_value(),
        admin_role.id,
    )
    logger.info("Default admin created: %s. Change its password.", email)
    return True


def main() -> int:
    settings = get_settings()
    Base.metadata.create_all(bind=engine)
    db = SessionLocal()
    try:
        store = CredentialStore(db, bcrypt_rounds=settings.BCRYPT_ROUNDS)
        roles = store.seed_roles()
        logger.info("Roles ready: %s", ", ".join(r.name.value for r in roles))
        seed_default_admin(store, settings)
        return 0
    except Exception as e:
        logger.exception("Database initialization failed: %s", e)
        return 1
    finally:
        db.close()
        engine.dispose()


if __name__ == "__main__":
    sys.exit(main())
