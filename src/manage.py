"""Lastmile database management CLI.

Usage:
    python src/manage.py setup-db   # Create all tables
    python src/manage.py drop-db    # Drop all tables
"""

import argparse
import sys


def _domain():
    from delivery.domain import delivery

    delivery.init()
    return delivery


def setup_database():
    from delivery.utils.db import setup_db

    print("Creating delivery database schema...")
    setup_db(_domain())
    print("Done.")


def drop_database():
    from delivery.utils.db import drop_db

    print("Dropping delivery database schema...")
    drop_db(_domain())
    print("Done.")


def main():
    parser = argparse.ArgumentParser(description="Lastmile database management")
    subparsers = parser.add_subparsers(dest="command", required=True)
    subparsers.add_parser("setup-db", help="Create all database tables")
    subparsers.add_parser("drop-db", help="Drop all database tables")

    args = parser.parse_args()

    if args.command == "setup-db":
        setup_database()
    elif args.command == "drop-db":
        drop_database()
    else:
        parser.print_help()
        sys.exit(1)


if __name__ == "__main__":
    main()
