"""
Create a user with a generated temporary password. Run from project root:
  python -m wakehub.scripts.create_user USERNAME [--admin]
Example:
  python -m wakehub.scripts.create_user alice
The temporary password is printed once; the user must change it after logging in.
"""
import argparse
import sys

from wakehub.core.database import SessionLocal
from wakehub.core.security import USERNAME_MAX_LEN
from wakehub.models.user import ROLE_ADMIN, ROLE_USER
from wakehub.services.accounts import UsernameTakenError, create_user


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Create a Wakehub user (admin-managed accounts).")
    parser.add_argument("username", help=f"Username (1-{USERNAME_MAX_LEN} chars, stored lowercase)")
    parser.add_argument("--admin", action="store_true", help="Create the user with the admin role")
    args = parser.parse_args(argv)

    username = args.username.strip()
    if not username or len(username) > USERNAME_MAX_LEN:
        print("Invalid username length.", file=sys.stderr)
        return 1

    role = ROLE_ADMIN if args.admin else ROLE_USER
    db = SessionLocal()
    try:
        try:
            user, password = create_user(db, username, role=role)
        except UsernameTakenError:
            print(f"User '{username.lower()}' already exists.", file=sys.stderr)
            return 1
        print(f"Created user '{user.username}' with role '{role}'.")
        print(f"Temporary password: {password}")
        return 0
    finally:
        db.close()


if __name__ == "__main__":
    sys.exit(main())
