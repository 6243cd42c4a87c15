"""Create a user directly in the DB (skips the signup endpoint).

Usage:
  python scripts/create_user.py --name 'Alice' --username alice --email alice@example.com --password '...'

NOTE: This is intended for local/dev seeding.
"""

import argparse
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(ROOT))

from social_platform.config import load_config
from social_platform.db import init_db, connect
from social_platform.auth.crud import create_user


def main() -> None:
    ap = argparse.ArgumentParser()
    ap.add_argument("--name", required=True)
    ap.add_argument("--username", required=True)
    ap.add_argument("--email", required=True)
    ap.add_argument("--password", required=True)
    args = ap.parse_args()

    cfg = load_config()
    init_db(cfg.DB_DSN)

    with connect(cfg.DB_DSN) as conn:
        u = create_user(
            conn,
            name=args.name,
            username=args.username,
            email=args.email,
            password=args.password,
        )

    print("Created user:")
    print(u)


if __name__ == "__main__":
    main()
