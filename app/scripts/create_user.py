"""
Create a user with any role (e.g. the first admin). Run from project root:
  python -m app.scripts.create_user NAME EMAIL PASSWORD [role]
Example:
  python -m app.scripts.create_user "Admin User" admin@example.com your-secure-password admin
"""
import argparse
import sys

from app.core.database import SessionLocal
from app.core.exceptions import AuthError
from app.core.roles import ROLES
from app.services.auth import create_user_with_role


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Create a Secure Dash user (bypasses the register route).")
    parser.add_argument("name", help="Display name")
    parser.add_argument("email", help="Email address")
    parser.add_argument("password", help="Password (at least 6 characters)")
    parser.add_argument("role", nargs="?", default="user", choices=list(ROLES))
    args = parser.parse_args(argv)

    db = SessionLocal()
    try:
        user = create_user_with_role(db, args.name, args.email, args.password, args.role)
    except AuthError as e:
        print(e.message, file=sys.stderr)
        return 1
    finally:
        db.close()
    print(f"Created user '{user.email}' with role '{user.role}'.")
    return 0


if __name__ == "__main__":
    sys.exit(main())
