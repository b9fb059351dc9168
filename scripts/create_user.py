#!/usr/bin/env python3
"""
Provision a portal account in the users table.

Usage:
    DB_URI=sqlite:///farm.db python scripts/create_user.py
    DB_URI=... python scripts/create_user.py --email a@b.c --name "Ann" --role farm
"""

import argparse
import getpass
import sys

from farm_portal.config import ROLES
from farm_portal.database import create_schema, init_engine
from farm_portal.rbac import provision_identity


def prompt(label, default=None):
    suffix = f" [{default}]" if default else ""
    value = input(f"{label}{suffix}: ").strip()
    return value or default


def read_password():
    while True:
        password = getpass.getpass("Password: ")
        if len(password) < 8:
            print("  Password must be at least 8 characters.")
            continue
        if password != getpass.getpass("Confirm password: "):
            print("  Passwords do not match.")
            continue
        return password


def main(argv=None):
    parser = argparse.ArgumentParser(description="Create a Farm Portal user")
    parser.add_argument("--email")
    parser.add_argument("--name")
    parser.add_argument("--role", choices=ROLES)
    args = parser.parse_args(argv)

    print("=" * 60)
    print("Farm Portal – Create User")
    print("=" * 60)

    email = args.email or prompt("Email")
    full_name = args.name or prompt("Full name")
    role = args.role or prompt(f"Role ({' / '.join(ROLES)})", "farm")
    password = read_password()

    engine = init_engine()
    create_schema(engine)

    try:
        identity = provision_identity(engine, email or "", full_name, role or "", password)
    except ValueError as e:
        print(f"ERROR: {e}", file=sys.stderr)
        sys.exit(1)

    print(f"\n✓ Created {identity.role} account for {identity.email} (id={identity.id})")


if __name__ == "__main__":
    main()
