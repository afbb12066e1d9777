"""StockLedger database management CLI.

Creates and drops the tables behind the StockRecord aggregate and the
AuditEntry projection. Only relational providers are touched; the in-memory
provider needs no schema.

Usage:
    python src/manage.py setup-db   # Create all tables
    python src/manage.py drop-db    # Drop all tables
"""

import argparse
import sys


def setup_database():
    from stockledger.domain import stockledger
    from stockledger.utils.db import setup_db

    print("Initializing stockledger domain...")
    stockledger.init()
    print("Creating stockledger database schema...")
    setup_db(stockledger)
    print("Done.")


def drop_database():
    from stockledger.domain import stockledger
    from stockledger.utils.db import drop_db

    print("Initializing stockledger domain...")
    stockledger.init()
    print("Dropping stockledger database schema...")
    drop_db(stockledger)
    print("Done.")


def main():
    parser = argparse.ArgumentParser(description="StockLedger database management")
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
