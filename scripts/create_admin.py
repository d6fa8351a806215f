"""Create an admin account, or promote and reset an existing one.

Usage:
  python scripts/create_admin.py --email ops@terramail.com --password s3cret
  python scripts/create_admin.py --email ops@terramail.com --password s3cret --days 365
"""

from __future__ import annotations

import argparse

from terramail.config import Settings
from terramail.services import accounts
from terramail.store import build_store


def main() -> None:
    parser = argparse.ArgumentParser()
    parser.add_argument("--email", required=True)
    parser.add_argument("--password", required=True)
    parser.add_argument("--days", type=int, default=9999)
    args = parser.parse_args()

    store = build_store(Settings())
    try:
        existing = store.get_user_by_email(accounts.normalize_email(args.email))
        if existing is None:
            user = accounts.create_account(
                store,
                email=args.email,
                password=args.password,
                role="admin",
                subscription_days=args.days,
            )
            print(f"created {user.id}")
            return
        accounts.update_account(
            store,
            existing.id,
            {"role": "admin", "password": args.password, "is_banned": False},
        )
        print(f"updated {existing.id}")
    finally:
        store.close()


if __name__ == "__main__":
    main()
