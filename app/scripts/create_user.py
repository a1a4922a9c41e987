"""
Create a user (e.g. first admin). Run from project root:
  python -m app.scripts.create_user NAME EMAIL PASSWORD [role]
Example:
  python -m app.scripts.create_user "Ada Admin" ada@example.com your-secure-password admin
"""
import argparse
import sys

from app.core.config import get_settings
from app.core.database import SessionLocal
from app.core.errors import ServiceError
from app.models.role import RoleName
from app.services.credential_store import CredentialStore


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Create a Warden user (no registration UI).")
    parser.add_argument("name", help="Display name (1-255 chars)")
    parser.add_argument("email", help="Email address (unique)")
    parser.add_argument("password", help="Password (8-128 chars)")
    parser.add_argument(
        "role",
        nargs="?",
        default=RoleName.READER.value,
        choices=[r.value for r in RoleName],
    )
    args = parser.parse_args(argv)

    db = SessionLocal()
    try:
        store = CredentialStore(db, bcrypt_rounds=get_settings().BCRYPT_ROUNDS)
        role = store.find_role_by_name(args.role)
        if role is None:
            print(
                f"Role '{args.role}' does not exist. Run python -m app.scripts.init_db first.",
                file=sys.stderr,
            )
            return 1
        user = store.create_user(args.name, args.email, args.password, role.id)
        print(f"Created user '{user.email}' with role '{args.role}'.")
        return 0
    except ServiceError as e:
        print(e.message, file=sys.stderr)
        return 1
    finally:
        db.close()


if __name__ == "__main__":
    sys.exit(main())
