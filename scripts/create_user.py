"""
Create or reset a portal user.

Usage:
    python scripts/create_user.py <username> <password> <role>
"""
import sys
import os
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from adp_portal.auth import create_user
from adp_portal.database import init_database
from adp_portal.roles import ALL_ROLES, normalize_role


def main(argv):
    if len(argv) != 3:
        print(__doc__)
        return 1
    username, password, role_arg = argv
    role = normalize_role(role_arg)
    if role is None:
        print(f"Unknown role '{role_arg}'. Choose one of: {', '.join(ALL_ROLES)}")
        return 1

    init_database()
    user_id = create_user(username, password, role)
    print("=" * 50)
    print(f"User saved: {username} (id {user_id}, role {role})")
    print("=" * 50)
    return 0


if __name__ == "__main__":
    sys.exit(main(sys.argv[1:]))
